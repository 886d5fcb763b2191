"""Agent for processing single-turn website chat requests"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sitebuilder import llm
from sitebuilder.content import apply_update
from sitebuilder.logger import get_logger
from sitebuilder.models import ChatMessage, ParsedUpdate, WebsiteContent
from sitebuilder.patch import parse_apply_json
from sitebuilder.prompt import build_prompt_with_page_context
from sitebuilder.utils import (
    get_builder_session,
    get_chat_thread,
    save_chat_thread,
    save_content,
)
from sitebuilder.websocket_manager import ws_manager

logger = get_logger(__name__)

DEFAULT_CHAT_ID = "default"
EMPTY_PROMPT_MESSAGE = "Missing or empty prompt."


@dataclass
class ProcessingResult:
    """Result of processing a chat turn"""

    status: str  # "success", "error" or "busy"
    message: str
    updates: Optional[ParsedUpdate] = None
    content: Optional[WebsiteContent] = None
    error_kind: Optional[str] = None
    http_status: Optional[int] = None


class BuilderAgent:
    """Single-turn chat agent bound to one builder session"""

    def __init__(self, session_id: str):
        self.session_id = session_id

    async def process_chat_message(
        self,
        prompt: str,
        chat_id: str = DEFAULT_CHAT_ID,
        provider: Optional[str] = None,
    ) -> ProcessingResult:
        """Run one chat turn: prompt the model, then apply its update"""
        logger.info(f"Processing chat message for session {self.session_id}, chat {chat_id}")

        session = get_builder_session(self.session_id)
        if not session:
            logger.error(f"Session {self.session_id} not found")
            return ProcessingResult(status="error", message="Session not found", http_status=404)

        prompt = (prompt or "").strip()
        if not prompt:
            return ProcessingResult(status="error", message=EMPTY_PROMPT_MESSAGE, http_status=400)

        thread = get_chat_thread(session, chat_id)
        if thread.pending:
            logger.warning(f"Session {self.session_id}: chat {chat_id} already has a pending reply")
            return ProcessingResult(
                status="busy",
                message="A reply is still pending for this chat.",
                http_status=409,
            )

        # Mark pending before the first await so a second submit sees it
        thread.messages.append(self._message("user", prompt))
        thread.pending = True
        save_chat_thread(self.session_id, thread)

        generation = session.generation
        try:
            formatted_prompt = build_prompt_with_page_context(prompt, session.content)
            result = await asyncio.to_thread(llm.forward, formatted_prompt, provider)

            logger.info(f"Session {self.session_id}: LLM returned status: {result.status}")

            if result.status == "error":
                self._append(chat_id, self._message("agent", result.text, error=True))
                return ProcessingResult(
                    status="error",
                    message=result.text,
                    error_kind=result.error_kind,
                    http_status=result.http_status,
                )

            reply = parse_apply_json(result.text)
            text = reply.clean_text or result.text

            if reply.update.is_empty():
                self._append(chat_id, self._message("agent", text))
                return ProcessingResult(status="success", message=text)

            content = await self._apply_update(reply.update, generation)
            applied = reply.update if content is not None else None
            self._append(chat_id, self._message("agent", text, updates=applied))
            return ProcessingResult(
                status="success", message=text, updates=applied, content=content
            )

        except Exception as e:
            logger.error(f"Session {self.session_id}: Exception: {str(e)}", exc_info=True)
            self._append(chat_id, self._message("agent", f"Error: {str(e)}", error=True))
            return ProcessingResult(status="error", message=f"Error: {str(e)}", http_status=500)

        finally:
            self._clear_pending(chat_id)

    async def _apply_update(
        self, update: ParsedUpdate, generation: int
    ) -> Optional[WebsiteContent]:
        """Merge the update into whatever document is current now"""
        session = get_builder_session(self.session_id)
        if not session:
            return None

        if session.generation != generation:
            logger.warning(
                f"Session {self.session_id}: dropping update for build {generation}, "
                f"document was rebuilt (now build {session.generation})"
            )
            return None

        content = apply_update(session.content, update)
        session = save_content(self.session_id, content)
        logger.info(f"Session {self.session_id}: update applied")

        await ws_manager.send_session(session)
        return content

    def _append(self, chat_id: str, message: ChatMessage):
        session = get_builder_session(self.session_id)
        if not session:
            return
        thread = get_chat_thread(session, chat_id)
        thread.messages.append(message)
        save_chat_thread(self.session_id, thread)

    def _clear_pending(self, chat_id: str):
        session = get_builder_session(self.session_id)
        if not session:
            return
        thread = get_chat_thread(session, chat_id)
        thread.pending = False
        save_chat_thread(self.session_id, thread)

    @staticmethod
    def _message(
        role: str, content: str, error: bool = False, updates: Optional[ParsedUpdate] = None
    ) -> ChatMessage:
        return ChatMessage(
            role=role,
            content=content,
            timestamp=datetime.now().isoformat(),
            error=error,
            updates=updates,
        )


async def process_chat_message(
    session_id: str,
    prompt: str,
    chat_id: str = DEFAULT_CHAT_ID,
    provider: Optional[str] = None,
) -> ProcessingResult:
    """Process a single chat turn in the session"""
    agent = BuilderAgent(session_id)
    return await agent.process_chat_message(prompt, chat_id, provider)
