"""
Live collaboration relay — in-memory rooms of WebSocket connections that fan
out cursor, track and playback events between users editing the same jam.

Nothing here touches the database. Room state lives for the life of the
process and is owned by a single ``RoomDirectory`` created in the app
lifespan (``app.state.rooms``).

Delivery is best-effort: a failed send is logged at debug level and the
event is simply lost for that client.

Protocol-level ping/pong belongs to the ASGI server (uvicorn's
``--ws-ping-interval`` / ``--ws-ping-timeout``). The sweep here only evicts
connections whose transport is no longer connected or whose last send failed.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Set

from starlette.websockets import WebSocketState

from hitit.utils.clock import epoch_millis

logger = logging.getLogger(__name__)


def room_key(jam_id: Any) -> Optional[str]:
    """Clients send jam ids as numbers or strings; rooms are keyed by the string form."""
    if jam_id is None or jam_id == "":
        return None
    return str(jam_id)


class RelayConnection:
    """
    One client of the relay.

    ``transport`` is anything with awaitable ``send_json(dict)`` and
    ``close(code=...)``, normally a Starlette ``WebSocket``. Its
    ``client_state`` / ``application_state`` are consulted when present.
    """

    def __init__(self, transport: Any):
        self.transport = transport
        self.jam_id: Optional[str] = None
        self.user_id: Optional[Any] = None
        self.user_name: Optional[str] = None
        self.is_alive = True
        self.closed = False

    def __repr__(self) -> str:
        return f"<RelayConnection user={self.user_id} jam={self.jam_id}>"

    async def send(self, message: Dict[str, Any]) -> bool:
        if self.closed:
            return False
        try:
            await self.transport.send_json(message)
            return True
        except Exception as e:
            self.is_alive = False
            logger.debug("Dropped %s for %r: %s", message.get("type"), self, e)
            return False

    @property
    def transport_connected(self) -> bool:
        for attr in ("client_state", "application_state"):
            state = getattr(self.transport, attr, WebSocketState.CONNECTED)
            if state != WebSocketState.CONNECTED:
                return False
        return True

    async def close(self, code: int = 1000) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self.transport.close(code=code)
        except Exception as e:
            logger.debug("Error closing %r: %s", self, e)


class RoomDirectory:
    """jamId → set of connections, plus every registered connection for the heartbeat."""

    def __init__(self):
        self.rooms: Dict[str, Set[RelayConnection]] = {}
        self.connections: Set[RelayConnection] = set()

    # ── Registry ──

    def register(self, connection: RelayConnection) -> RelayConnection:
        self.connections.add(connection)
        return connection

    async def unregister(self, connection: RelayConnection) -> None:
        """Transport is gone: treat it as a leave and forget the connection."""
        await self.leave(connection)
        self.connections.discard(connection)

    def members(self, jam_id: Any) -> List[RelayConnection]:
        return list(self.rooms.get(room_key(jam_id), ()))

    def active_users(self, jam_id: Any) -> List[Dict[str, Any]]:
        return [
            {"userId": c.user_id, "userName": c.user_name}
            for c in self.members(jam_id)
            if c.user_id is not None
        ]

    # ── Rooms ──

    async def join(self, connection: RelayConnection, jam_id: Any, user_id: Any, user_name: Optional[str]) -> None:
        key = room_key(jam_id)
        if key is None:
            logger.warning("join_jam without a jamId from %r", connection)
            return

        if connection.jam_id is not None:
            await self.leave(connection)

        connection.jam_id = key
        connection.user_id = user_id
        connection.user_name = user_name
        self.rooms.setdefault(key, set()).add(connection)
        logger.info("%s joined jam %s", user_name, key)

        await self.broadcast(
            key,
            {"type": "user_joined", "userId": user_id, "userName": user_name, "timestamp": epoch_millis()},
            exclude=connection,
        )
        others = [
            {"userId": c.user_id, "userName": c.user_name}
            for c in self.members(key)
            if c is not connection and c.user_id is not None
        ]
        await connection.send({"type": "room_state", "users": others, "timestamp": epoch_millis()})

    async def leave(self, connection: RelayConnection) -> None:
        key = connection.jam_id
        if key is None:
            return
        user_id, user_name = connection.user_id, connection.user_name
        connection.jam_id = None
        connection.user_id = None
        connection.user_name = None

        room = self.rooms.get(key)
        if room is None:
            return
        room.discard(connection)
        if not room:
            del self.rooms[key]

        await self.broadcast(
            key,
            {"type": "user_left", "userId": user_id, "userName": user_name, "timestamp": epoch_millis()},
        )
        logger.info("%s left jam %s", user_name, key)

    async def broadcast(
        self, jam_id: Any, message: Dict[str, Any], exclude: Optional[RelayConnection] = None
    ) -> int:
        """Send ``message`` to everyone in the room but ``exclude``. Returns the delivered count."""
        recipients = [c for c in self.members(jam_id) if c is not exclude]
        if not recipients:
            return 0
        results = await asyncio.gather(*(c.send(message) for c in recipients))
        return sum(1 for ok in results if ok)

    # ── Liveness ──

    async def sweep(self) -> int:
        """
        One heartbeat tick. Connections whose transport has dropped, or whose
        last send failed, are closed and leave their room. Idle but connected
        clients are left alone. Returns how many were terminated.
        """
        terminated = 0
        for connection in list(self.connections):
            if connection.is_alive and connection.transport_connected:
                continue
            logger.info("Terminating unresponsive %r", connection)
            await connection.close(code=1001)
            await self.unregister(connection)
            terminated += 1
        return terminated

    async def close(self) -> None:
        """Shutdown: close every connection and drop all room state."""
        connections = list(self.connections)
        for connection in connections:
            await connection.close(code=1001)
        self.connections.clear()
        self.rooms.clear()
        if connections:
            logger.info("Closed %d relay connections", len(connections))


# ═══════════════════════════════════════════════════════════════
#  Message handling
# ═══════════════════════════════════════════════════════════════

class CollaborationRelay:
    """Dispatches inbound client messages onto a ``RoomDirectory``."""

    def __init__(self, rooms: RoomDirectory):
        self.rooms = rooms
        self.handlers = {
            "join_jam": self.handle_join,
            "leave_jam": self.handle_leave,
            "cursor_move": self.handle_cursor_move,
            "track_update": self.handle_track_update,
            "playback_sync": self.handle_playback_sync,
        }

    async def handle_raw(self, connection: RelayConnection, raw: str) -> None:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error("WebSocket message parse error: %s", e)
            return
        await self.handle_message(connection, data)

    async def handle_message(self, connection: RelayConnection, data: Any) -> None:
        # Any traffic proves the client is still there
        connection.is_alive = True

        if not isinstance(data, dict):
            logger.warning("Ignoring non-object message from %r", connection)
            return
        handler = self.handlers.get(data.get("type"))
        if handler is None:
            logger.warning("Unknown message type: %s", data.get("type"))
            return
        await handler(connection, data)

    def _in_room(self, connection: RelayConnection, data: Dict[str, Any]) -> bool:
        return connection.jam_id is not None and room_key(data.get("jamId")) == connection.jam_id

    async def handle_join(self, connection: RelayConnection, data: Dict[str, Any]) -> None:
        await self.rooms.join(connection, data.get("jamId"), data.get("userId"), data.get("userName"))

    async def handle_leave(self, connection: RelayConnection, data: Dict[str, Any]) -> None:
        await self.rooms.leave(connection)

    async def handle_cursor_move(self, connection: RelayConnection, data: Dict[str, Any]) -> None:
        if not self._in_room(connection, data):
            return
        await self.rooms.broadcast(
            connection.jam_id,
            {
                "type": "cursor_move",
                "userId": data.get("userId"),
                "userName": data.get("userName"),
                "x": data.get("x"),
                "y": data.get("y"),
                "timestamp": data.get("timestamp"),
            },
            exclude=connection,
        )

    async def handle_track_update(self, connection: RelayConnection, data: Dict[str, Any]) -> None:
        if not self._in_room(connection, data):
            return
        await self.rooms.broadcast(
            connection.jam_id,
            {
                "type": "track_update",
                "trackId": data.get("trackId"),
                "updates": data.get("updates"),
                "userId": connection.user_id,
                "timestamp": epoch_millis(),
            },
            exclude=connection,
        )

    async def handle_playback_sync(self, connection: RelayConnection, data: Dict[str, Any]) -> None:
        if not self._in_room(connection, data):
            return
        await self.rooms.broadcast(
            connection.jam_id,
            {
                "type": "playback_sync",
                "isPlaying": data.get("isPlaying"),
                "currentTime": data.get("currentTime"),
                "userId": connection.user_id,
                "timestamp": epoch_millis(),
            },
            exclude=connection,
        )


async def run_heartbeat(rooms: RoomDirectory, interval: float) -> None:
    """Sweep ``rooms`` every ``interval`` seconds until cancelled."""
    logger.info("Relay heartbeat started (every %ss)", interval)
    while True:
        await asyncio.sleep(interval)
        try:
            await rooms.sweep()
        except Exception:
            logger.exception("Relay heartbeat sweep failed")
