"""
Live collaboration WebSocket — presence, cursors, track state and playback
sync for users editing the same jam.

The socket itself is unauthenticated: clients announce who they are in
``join_jam``. Nothing sent here is persisted.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from hitit.services.relay import CollaborationRelay, RelayConnection, RoomDirectory

logger = logging.getLogger(__name__)

router = APIRouter(tags=["collaboration"])


@router.websocket("/collaboration")
async def collaboration_socket(websocket: WebSocket):
    rooms: RoomDirectory = websocket.app.state.rooms
    relay = CollaborationRelay(rooms)

    await websocket.accept()
    connection = rooms.register(RelayConnection(websocket))
    logger.info("New WebSocket connection established")

    try:
        while True:
            raw = await websocket.receive_text()
            await relay.handle_raw(connection, raw)
    except WebSocketDisconnect:
        logger.info("WebSocket connection closed")
    finally:
        await rooms.unregister(connection)
