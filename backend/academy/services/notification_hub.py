from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationHub:
    """Open notification websockets grouped by user id.

    Payloads are only published once the transaction that produced them has
    committed; see ``academy.services.notifications``.
    """

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[user_id].add(websocket)

    async def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._discard(user_id, [websocket])

    def _discard(self, user_id: str, sockets: Iterable[WebSocket]) -> None:
        active = self._connections.get(user_id)
        if active is None:
            return
        active.difference_update(sockets)
        if not active:
            self._connections.pop(user_id, None)

    def connected_users(self) -> int:
        return len(self._connections)

    async def publish(self, user_id: str, payload: dict) -> int:
        return await self.publish_many([(user_id, payload)])

    async def publish_many(self, messages: Iterable[tuple[str, dict]]) -> int:
        """Send queued payloads in order; returns the number of socket deliveries."""
        by_user: dict[str, list[dict]] = defaultdict(list)
        for user_id, payload in messages:
            by_user[user_id].append(payload)

        async with self._lock:
            targets = {user_id: list(self._connections.get(user_id, ())) for user_id in by_user}

        delivered = 0
        stale: dict[str, list[WebSocket]] = defaultdict(list)
        for user_id, sockets in targets.items():
            for websocket in sockets:
                try:
                    for payload in by_user[user_id]:
                        await websocket.send_json(payload)
                        delivered += 1
                except Exception:  # pragma: no cover - network/runtime dependent
                    stale[user_id].append(websocket)

        if stale:
            async with self._lock:
                for user_id, sockets in stale.items():
                    self._discard(user_id, sockets)
            logger.debug("Removed stale notification websocket(s) for %d user(s)", len(stale))
        return delivered


notification_hub = NotificationHub()
