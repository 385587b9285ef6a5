from __future__ import annotations

from minicluster.errors import RoleStartError, RoleStopError
from minicluster.logging import Logger
from minicluster.models import RoleHandle, RoleState

from .logging_models import RoleDebug, RoleError, RoleInfo, RoleWarning


class RoleLifecycleController:
    """
    Drives roles through Prepare -> Run and Stop.

    Every handle passed to start() is tracked before its role is
    touched, so a role that fails half way is still reachable from
    stop_all_quietly() during teardown. Handles are released once
    stopped.
    """

    def __init__(self, logger: Logger | None = None) -> None:
        if logger is None:
            logger = Logger()

        self._logger = logger
        self._tracked: dict[int, RoleHandle] = {}

    @property
    def tracked(self) -> list[RoleHandle]:
        return list(self._tracked.values())

    def running(self) -> list[RoleHandle]:
        return [handle for handle in self._tracked.values() if handle.is_running]

    async def start(self, handle: RoleHandle) -> RoleHandle:
        self._tracked.setdefault(id(handle), handle)

        phase = "prepare"

        try:
            await handle.role.prepare()
            handle.transition(RoleState.PREPARED)

            phase = "run"
            await handle.role.run()
            handle.transition(RoleState.RUNNING)

        except Exception as err:
            await self._logger.log(
                RoleError(
                    message=f"Failed to {phase}: {err!r}",
                    role=handle.kind.value,
                    node_id=handle.node_id,
                    address=handle.address,
                )
            )

            raise RoleStartError(handle.kind, handle.node_id, phase, err) from err

        await self._logger.log(
            RoleInfo(
                message="Started",
                role=handle.kind.value,
                node_id=handle.node_id,
                address=handle.address,
            )
        )

        return handle

    async def stop(self, handle: RoleHandle) -> bool:
        """
        Stop the role behind the handle.

        Returns False without calling the role if the handle is already
        stopped. A role that never prepared is marked stopped without
        calling its stop(). The handle always ends STOPPED; a failing
        stop() raises RoleStopError afterwards.
        """
        if handle.is_stopped:
            self._tracked.pop(id(handle), None)
            await self._logger.log(
                RoleDebug(
                    message="Already stopped",
                    role=handle.kind.value,
                    node_id=handle.node_id,
                    address=handle.address,
                )
            )
            return False

        if handle.state == RoleState.CREATED:
            handle.transition(RoleState.STOPPED)
            self._tracked.pop(id(handle), None)
            return True

        try:
            await handle.role.stop()

        except Exception as err:
            raise RoleStopError(handle.kind, handle.node_id, err) from err

        finally:
            handle.transition(RoleState.STOPPED)
            self._tracked.pop(id(handle), None)

        await self._logger.log(
            RoleInfo(
                message="Stopped",
                role=handle.kind.value,
                node_id=handle.node_id,
                address=handle.address,
            )
        )

        return True

    async def stop_quietly(self, handle: RoleHandle) -> bool:
        try:
            return await self.stop(handle)

        except RoleStopError as err:
            await self._logger.log(
                RoleWarning(
                    message=f"Stop failed, continuing: {err.cause!r}",
                    role=handle.kind.value,
                    node_id=handle.node_id,
                    address=handle.address,
                )
            )

            return False

    async def stop_all_quietly(self) -> int:
        """Stop every tracked role not yet stopped, newest first."""
        stopped = 0
        for handle in reversed(list(self._tracked.values())):
            if handle.is_stopped:
                continue

            if await self.stop_quietly(handle):
                stopped += 1

        return stopped
