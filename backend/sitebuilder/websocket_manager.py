"""WebSocket connection manager for live canvas updates"""

import asyncio
from typing import Dict, Optional

from fastapi import WebSocket

from sitebuilder.logger import get_logger
from sitebuilder.models import BuilderSession

logger = get_logger(__name__)


class WebSocketManager:
    """One canvas connection per builder session"""

    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}
        self.locks: Dict[str, asyncio.Lock] = {}

    async def connect(self, session_id: str, websocket: WebSocket):
        """Accept a canvas connection, replacing any previous one"""
        await websocket.accept()
        self.connections[session_id] = websocket
        self.locks[session_id] = asyncio.Lock()
        logger.info(f"Canvas connected for session: {session_id}")

    async def disconnect(self, session_id: str, websocket: Optional[WebSocket] = None):
        """Forget the session's canvas; a stale socket leaves a newer one alone"""
        if websocket is not None and self.connections.get(session_id) is not websocket:
            return
        self.connections.pop(session_id, None)
        self.locks.pop(session_id, None)
        logger.info(f"Canvas disconnected for session: {session_id}")

    async def send_message(self, session_id: str, message: dict) -> bool:
        """Send a message to the session's canvas, if one is connected"""
        if session_id not in self.connections:
            return False

        try:
            async with self.locks[session_id]:
                await self.connections[session_id].send_json(message)
            return True
        except Exception as e:
            logger.error(f"Failed to send canvas update to {session_id}: {e}")
            await self.disconnect(session_id)
            return False

    async def send_session(self, session: BuilderSession) -> bool:
        """Push the current document and editor state"""
        return await self.send_message(
            session.id,
            {
                "type": "content",
                "content": session.content.model_dump(mode="json", by_alias=True),
                "editor": session.editor.model_dump(mode="json", by_alias=True),
            },
        )


# --- global websocket manager instance ---
ws_manager = WebSocketManager()
