"""
Health gate polling the gateway until the cluster reports healthy.

Roles reporting Running does not mean they have finished registering
with one another. The gate is the single point that turns "all roles
started" into "cluster usable".
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Protocol

from minicluster.logging import Logger
from minicluster.models import CheckHealthResponse

from .logging_models import ClusterDebug, ClusterInfo, ClusterWarning


class HealthProbe(Protocol):

    async def check_health(self, timeout: float | None = None) -> CheckHealthResponse:
        ...


@dataclass(slots=True)
class HealthGateResult:
    healthy: bool
    attempts: int
    elapsed: float
    reasons: list[str] = field(default_factory=list)
    error: str | None = None

    def describe(self) -> str:
        if self.healthy:
            return "healthy"

        if self.error is not None:
            return f"last health check failed: {self.error}"

        if self.reasons:
            return "unhealthy: " + "; ".join(self.reasons)

        return "unhealthy"


class HealthGate:
    def __init__(
        self,
        probe: HealthProbe,
        timeout: float = 120.0,
        interval: float = 1.0,
        namespace: str = "",
        logger: Logger | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("Health check interval must be positive")

        if logger is None:
            logger = Logger()

        self._probe = probe
        self.timeout = timeout
        self.interval = interval
        self._namespace = namespace
        self._logger = logger

    async def wait_healthy(self) -> HealthGateResult:
        """
        Poll the probe every interval until it reports healthy or the
        timeout elapses.

        Each check is bounded by the larger of the remaining budget and
        one interval, so the gate returns within timeout + interval.
        Failed checks count as unhealthy.
        """
        start = time.monotonic()
        deadline = start + self.timeout
        attempts = 0
        reasons: list[str] = []
        error: str | None = None

        while True:
            attempts += 1
            remaining = deadline - time.monotonic()

            try:
                response = await asyncio.wait_for(
                    self._probe.check_health(),
                    timeout=max(remaining, self.interval),
                )

                if response.is_healthy:
                    result = HealthGateResult(
                        healthy=True,
                        attempts=attempts,
                        elapsed=time.monotonic() - start,
                    )

                    await self._logger.log(
                        ClusterInfo(
                            message=f"Cluster healthy after {result.elapsed:.2f}s ({attempts} checks)",
                            namespace=self._namespace,
                            phase="health",
                        )
                    )

                    return result

                reasons = list(response.reasons)
                error = None

            except Exception as err:
                reasons = []
                error = repr(err)

            await self._logger.log(
                ClusterDebug(
                    message=f"Health check {attempts} not healthy: {error or reasons}",
                    namespace=self._namespace,
                    phase="health",
                )
            )

            now = time.monotonic()
            if now >= deadline:
                break

            await asyncio.sleep(min(self.interval, deadline - now))

        result = HealthGateResult(
            healthy=False,
            attempts=attempts,
            elapsed=time.monotonic() - start,
            reasons=reasons,
            error=error,
        )

        await self._logger.log(
            ClusterWarning(
                message=f"Cluster not healthy after {self.timeout}s: {result.describe()}",
                namespace=self._namespace,
                phase="health",
            )
        )

        return result
