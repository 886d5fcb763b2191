# --- include all imports here ---
import uuid
from typing import Dict, Optional

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import Field

from sitebuilder import content as content_ops
from sitebuilder import editor as editor_ops
from sitebuilder import llm
from sitebuilder.agent import DEFAULT_CHAT_ID, EMPTY_PROMPT_MESSAGE, process_chat_message
from sitebuilder.logger import get_logger
from sitebuilder.models import (
    CANVAS_COPY_KEYS,
    BuilderSession,
    CamelModel,
    CanvasCopyKey,
    ElementStyle,
    ParsedUpdate,
    WebsiteContent,
)
from sitebuilder.patch import parse_apply_json
from sitebuilder.prompt import build_prompt_with_page_context
from sitebuilder.utils import (
    create_builder_session,
    get_builder_session,
    get_chat_thread,
    rebuild_session,
    save_content,
    save_editor,
)
from sitebuilder.websocket_manager import ws_manager

logger = get_logger(__name__)


router = APIRouter()

PROMPT_LABELS = {
    "fashion-designer": "Fashion Designer",
    "business-website": "Business Website",
    "food-delivery": "Food Delivery Website",
    "mobile-friendly": "Mobile Friendly Design",
    "adaptive-layouts": "Adaptive Layouts",
    "fast-performance": "Fast Performance",
    "cross-device": "Cross Device Support",
}


class PageContext(CamelModel):
    title: Optional[str] = None
    hero_heading: Optional[str] = None
    hero_description: Optional[str] = None
    hero_jumbo_text: Optional[str] = None
    canvas_copy: Dict[str, str] = Field(default_factory=dict)

    def to_content(self) -> WebsiteContent:
        return WebsiteContent(
            title=self.title or "",
            hero_heading=self.hero_heading or "",
            hero_description=self.hero_description or "",
            hero_jumbo_text=self.hero_jumbo_text,
            canvas_copy={k: v for k, v in self.canvas_copy.items() if k in CANVAS_COPY_KEYS},
        )


class WebsiteChatRequest(CamelModel):
    prompt: str = ""
    provider: str = "gemini"
    current_content: Optional[PageContext] = None


class StartBuilderRequest(CamelModel):
    prompt: str = ""


class ChatRequest(CamelModel):
    prompt: str
    provider: Optional[str] = None
    chat_id: str = DEFAULT_CHAT_ID


class ContentPatch(CamelModel):
    title: Optional[str] = None
    hero_heading: Optional[str] = None
    hero_description: Optional[str] = None
    hero_jumbo_text: Optional[str] = None


class CanvasCopyValue(CamelModel):
    value: str


class SectionCreate(CamelModel):
    title: str = "New Section"
    content: str = "Add content here."


class SectionPatch(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None


class SelectRequest(CamelModel):
    node_id: Optional[str] = None
    resolve_alias: bool = True


class NodeRequest(CamelModel):
    node_id: str


class ReorderRequest(CamelModel):
    parent_id: str
    from_index: int
    to_index: int


class RenameRequest(CamelModel):
    node_id: str
    label: str = ""


class StyleRequest(CamelModel):
    node_id: str
    style: ElementStyle


def dump_update(update: ParsedUpdate) -> dict:
    data = update.model_dump(mode="json", by_alias=True, exclude_none=True)
    if not data.get("canvasCopy"):
        data.pop("canvasCopy", None)
    return data


def session_payload(session: BuilderSession) -> dict:
    """Everything the presentation layer needs to render the builder"""
    editor = session.editor
    return {
        "session_id": session.id,
        "status": session.status,
        "generation": session.generation,
        "content": session.content.model_dump(mode="json", by_alias=True),
        "tree": [
            node.model_dump(mode="json", by_alias=True)
            for node in editor_ops.labelled_tree(editor)
        ],
        "selected_id": editor.selected_id,
        "selected_label": editor_ops.selected_label(editor, session.content),
        "breadcrumb": editor_ops.breadcrumb(editor, session.content),
        "expanded_ids": sorted(editor.expanded_ids),
        "label_overrides": editor.label_overrides,
        "styles": {
            node_id: style.model_dump(mode="json", by_alias=True, exclude_none=True)
            for node_id, style in editor.styles.items()
        },
    }


def require_session(session_id: str) -> BuilderSession:
    session = get_builder_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


async def _store_content(session_id: str, content: WebsiteContent) -> dict:
    session = save_content(session_id, content)
    await ws_manager.send_session(session)
    return session_payload(session)


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "Website builder API is running"}


# --- stateless chat, the page sends its own content ---


@router.post("/api/website-chat")
def website_chat(request: WebsiteChatRequest):
    """Answer a chat prompt and return the page updates found in the reply"""
    prompt = request.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail=EMPTY_PROMPT_MESSAGE)

    provider = (request.provider or "gemini").lower()
    if provider not in llm.SUPPORTED_PROVIDERS:
        raise HTTPException(status_code=400, detail="Invalid provider.")

    current = request.current_content.to_content() if request.current_content else None
    effective_prompt = build_prompt_with_page_context(prompt, current)

    generation = llm.forward(effective_prompt, provider)
    if generation.status == "error":
        raise HTTPException(status_code=generation.http_status or 502, detail=generation.text)

    reply = parse_apply_json(generation.text)
    payload = {"text": reply.clean_text or generation.text}
    if not reply.update.is_empty():
        payload["updates"] = dump_update(reply.update)
    return payload


@router.get("/api/website-prompt")
def website_prompt(provider: str = "gemini", prompt: str = ""):
    """Check that the provider key is configured for a prompt preset"""
    provider = provider.lower()
    label = PROMPT_LABELS.get(prompt) or prompt or "Website"

    if provider == "none":
        return {
            "ok": True,
            "provider": "none",
            "message": "No AI provider selected.",
            "promptId": prompt,
            "label": label,
        }

    if provider not in llm.PROVIDER_KEYS:
        raise HTTPException(
            status_code=400,
            detail="Invalid provider. Use gemini, chatgpt, grok, openrouter, or none.",
        )

    if not llm.provider_api_key(provider):
        raise HTTPException(status_code=503, detail=llm.missing_key_message(provider))

    return {
        "ok": True,
        "provider": provider,
        "message": f"{provider} API key is set. Use this endpoint to generate content for: {label}",
        "promptId": prompt,
        "label": label,
    }


# --- builder sessions ---


@router.post("/website/start")
async def start_builder_session(request: StartBuilderRequest):
    """Create a new builder session from a prompt"""
    session_id = str(uuid.uuid4())
    logger.info(f"Creating new builder session: {session_id}")

    try:
        session = create_builder_session(session_id, request.prompt)
        return session_payload(session)
    except Exception as e:
        logger.error(f"Failed to create builder session {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to create session: {str(e)}")


@router.get("/website/{session_id}")
async def get_builder_state(session_id: str):
    return session_payload(require_session(session_id))


@router.post("/website/{session_id}/build")
async def build_new(session_id: str, request: StartBuilderRequest):
    """Throw away the current document and build a new one"""
    require_session(session_id)
    session = rebuild_session(session_id, request.prompt)
    await ws_manager.send_session(session)
    return session_payload(session)


@router.patch("/website/{session_id}/content")
async def patch_content(session_id: str, request: ContentPatch):
    session = require_session(session_id)
    content = session.content
    for field, value in request.model_dump(exclude_unset=True).items():
        if value is not None:
            content = content_ops.update_field(content, field, value)
    return await _store_content(session_id, content)


@router.put("/website/{session_id}/canvas-copy/{key}")
async def put_canvas_copy(session_id: str, key: CanvasCopyKey, request: CanvasCopyValue):
    session = require_session(session_id)
    content = content_ops.set_canvas_copy(session.content, key, request.value)
    return await _store_content(session_id, content)


@router.post("/website/{session_id}/sections")
async def add_section(session_id: str, request: SectionCreate):
    session = require_session(session_id)
    content = content_ops.add_section(session.content, request.title, request.content)
    return await _store_content(session_id, content)


@router.patch("/website/{session_id}/sections/{section_id}")
async def patch_section(session_id: str, section_id: str, request: SectionPatch):
    session = require_session(session_id)
    content = content_ops.update_section(
        session.content, section_id, request.model_dump(exclude_unset=True)
    )
    return await _store_content(session_id, content)


@router.delete("/website/{session_id}/sections/{section_id}")
async def delete_section(session_id: str, section_id: str):
    session = require_session(session_id)
    content = content_ops.remove_section(session.content, section_id)
    return await _store_content(session_id, content)


# --- editor canvas state ---


@router.post("/website/{session_id}/editor/select")
async def select_element(session_id: str, request: SelectRequest):
    session = require_session(session_id)
    if request.node_id is not None and request.resolve_alias:
        editor = editor_ops.select_node(session.editor, request.node_id)
    else:
        editor = editor_ops.select(session.editor, request.node_id)
    return session_payload(save_editor(session_id, editor))


@router.post("/website/{session_id}/editor/toggle-expand")
async def toggle_expand(session_id: str, request: NodeRequest):
    session = require_session(session_id)
    editor = editor_ops.toggle_expand(session.editor, request.node_id)
    return session_payload(save_editor(session_id, editor))


@router.post("/website/{session_id}/editor/reorder")
async def reorder_children(session_id: str, request: ReorderRequest):
    """Reorder within one parent; moving section nodes reorders the document"""
    session = require_session(session_id)
    editor = editor_ops.reorder_children(
        session.editor, request.parent_id, request.from_index, request.to_index
    )
    if editor is session.editor:
        return session_payload(session)

    session = save_editor(session_id, editor)
    order = editor_ops.section_order(editor, session.content)
    content = content_ops.reorder_sections(session.content, order)
    if content is session.content:
        await ws_manager.send_session(session)
        return session_payload(session)
    return await _store_content(session_id, content)


@router.post("/website/{session_id}/editor/rename")
async def rename_node(session_id: str, request: RenameRequest):
    session = require_session(session_id)
    editor = editor_ops.rename(session.editor, request.node_id, request.label)
    return session_payload(save_editor(session_id, editor))


@router.post("/website/{session_id}/editor/style")
async def set_node_style(session_id: str, request: StyleRequest):
    session = require_session(session_id)
    editor = editor_ops.set_style(session.editor, request.node_id, request.style)
    session = save_editor(session_id, editor)
    await ws_manager.send_session(session)
    return session_payload(session)


# --- chat turns against a session ---


@router.post("/website/{session_id}/chat")
async def chat(session_id: str, request: ChatRequest):
    """Run one chat turn; model failures come back as the agent's message"""
    try:
        logger.info(f"Processing chat for session: {session_id}")
        require_session(session_id)

        if not request.prompt.strip():
            raise HTTPException(status_code=400, detail=EMPTY_PROMPT_MESSAGE)

        result = await process_chat_message(
            session_id, request.prompt, request.chat_id, request.provider
        )

        if result.status == "busy":
            raise HTTPException(status_code=409, detail=result.message)

        session = require_session(session_id)
        return {
            "success": result.status == "success",
            "message": result.message,
            "error_kind": result.error_kind,
            "updates": dump_update(result.updates) if result.updates else None,
            "state": session_payload(session),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            f"Error processing chat for session {session_id}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/website/{session_id}/chat/{chat_id}")
async def get_chat(session_id: str, chat_id: str):
    """Messages and pending flag for one chat thread"""
    session = require_session(session_id)
    thread = get_chat_thread(session, chat_id)
    return thread.model_dump(mode="json", by_alias=True)


@router.websocket("/website/{session_id}/ws")
async def canvas_updates(websocket: WebSocket, session_id: str):
    """Push document changes to a connected canvas"""
    session = get_builder_session(session_id)
    if not session:
        await websocket.close(code=4404)
        return

    await ws_manager.connect(session_id, websocket)
    await ws_manager.send_session(session)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await ws_manager.disconnect(session_id, websocket)
