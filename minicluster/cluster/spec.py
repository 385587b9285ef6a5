from dataclasses import dataclass, field


@dataclass(slots=True)
class MiniClusterSpec:
    """Per-cluster options layered over Env."""

    params: dict[str, str] = field(default_factory=dict)
    namespace: str | None = None
    streaming_enabled: bool | None = None
    host: str | None = None
    health_timeout: float | None = None
    health_interval: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "MiniClusterSpec":
        params = {
            str(key): str(value) for key, value in (data.get("params") or {}).items()
        }

        streaming_value = data.get("streaming_enabled")
        streaming_enabled = None
        if streaming_value is not None:
            streaming_enabled = (
                streaming_value.strip().lower() in ("1", "true", "yes", "on")
                if isinstance(streaming_value, str)
                else bool(streaming_value)
            )

        health_timeout_value = data.get("health_timeout")
        health_timeout = None
        if health_timeout_value is not None:
            health_timeout = float(health_timeout_value)
            if health_timeout < 0:
                raise ValueError("health_timeout must not be negative")

        health_interval_value = data.get("health_interval")
        health_interval = None
        if health_interval_value is not None:
            health_interval = float(health_interval_value)
            if health_interval <= 0:
                raise ValueError("health_interval must be positive")

        return cls(
            params=params,
            namespace=data.get("namespace"),
            streaming_enabled=streaming_enabled,
            host=data.get("host"),
            health_timeout=health_timeout,
            health_interval=health_interval,
        )
