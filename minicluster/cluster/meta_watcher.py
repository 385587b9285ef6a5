"""
Read-only view over a cluster's coordination-store namespace.

Roles register a Session record under <root>/session/<name>-<id> when
they start. MetaWatcher decodes those records so tests can assert which
roles registered with the control plane.
"""

from __future__ import annotations

import msgspec

from minicluster.models import RoleKind, Session
from minicluster.storage import CoordinationStore

SESSION_PATH = "session"

_session_decoder = msgspec.json.Decoder(Session)


def session_key(root_path: str, kind: RoleKind, node_id: int) -> str:
    return f"{root_path}/{SESSION_PATH}/{kind.value}-{node_id}"


async def register_session(
    store: CoordinationStore,
    root_path: str,
    kind: RoleKind,
    node_id: int,
    address: str,
) -> Session:
    session = Session(
        server_id=node_id,
        server_name=kind.value,
        address=address,
    )

    await store.put(
        session_key(root_path, kind, node_id),
        msgspec.json.encode(session),
    )

    return session


class MetaWatcher:
    def __init__(self, store: CoordinationStore, root_path: str) -> None:
        self._store = store
        self._root_path = root_path.rstrip("/")

    @property
    def root_path(self) -> str:
        return self._root_path

    async def show_keys(self, subpath: str = "") -> list[str]:
        prefix = self._root_path
        if subpath:
            prefix = f"{prefix}/{subpath.strip('/')}"

        return sorted(await self._store.get_prefix(prefix))

    async def show_sessions(self) -> list[Session]:
        records = await self._store.get_prefix(f"{self._root_path}/{SESSION_PATH}/")

        return sorted(
            (_session_decoder.decode(value) for value in records.values()),
            key=lambda session: (session.server_name, session.server_id),
        )
