import re
from datetime import datetime
from typing import Optional

from sitebuilder import db
from sitebuilder.content import build_from_prompt
from sitebuilder.editor import build_nav_tree, sync_tree
from sitebuilder.logger import get_logger
from sitebuilder.models import BuilderSession, ChatThread, EditorState, WebsiteContent

logger = get_logger(__name__)

# Text helpers for model replies

_OPENING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\n?[ \t]*```\s*$")


def extract_json_object(text: str, start: int = 0) -> str:
    """Return the first balanced {...} object at or after `start`, or "".

    Quote-aware: braces inside single- or double-quoted strings are inert and
    a backslash inside a string consumes the next character verbatim.
    """
    open_index = text.find("{", start)
    if open_index == -1:
        return ""

    depth = 0
    in_string = False
    quote = ""
    escape = False

    for i in range(open_index, len(text)):
        c = text[i]
        if escape:
            escape = False
            continue
        if in_string:
            if c == "\\":
                escape = True
            elif c == quote:
                in_string = False
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return text[open_index : i + 1]
        elif c in ('"', "'"):
            in_string = True
            quote = c

    # Ran out of text before the object closed
    return ""


def strip_code_fence(text: str) -> str:
    """Remove a ```lang ... ``` wrapper around `text` if present"""
    stripped = text.strip()
    stripped = _OPENING_FENCE.sub("", stripped, count=1)
    stripped = _CLOSING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


# Builder session management functions


def create_builder_session(session_id: str, prompt: str) -> BuilderSession:
    """Create a new builder session with a document built from `prompt`"""
    content = build_from_prompt(prompt)

    now = datetime.now().isoformat()
    session = BuilderSession(
        id=session_id,
        status="created",
        original_prompt=prompt,
        content=content,
        editor=EditorState(tree=build_nav_tree(content)),
        created_at=now,
        updated_at=now,
    )

    success = db.set(session_id, session)
    if not success:
        raise Exception("Failed to save session to database")

    logger.info(
        f"Session {session_id}: built {len(content.sections)} sections from prompt"
    )
    return session


def get_builder_session(session_id: str) -> Optional[BuilderSession]:
    """Get a builder session by ID"""
    return db.get(session_id)


def update_session(session_id: str, updates: dict) -> Optional[BuilderSession]:
    """Update a builder session with new data and return the stored copy"""
    session = db.get(session_id)
    if not session:
        return None

    updates = dict(updates)
    updates["updated_at"] = datetime.now().isoformat()
    session = session.model_copy(update=updates)

    db.set(session_id, session)
    return session


def save_content(session_id: str, content: WebsiteContent) -> Optional[BuilderSession]:
    """Store a new document and re-derive the navigator tree from it"""
    session = db.get(session_id)
    if not session:
        return None

    editor = sync_tree(session.editor, content)
    return update_session(session_id, {"content": content, "editor": editor})


def save_editor(session_id: str, editor: EditorState) -> Optional[BuilderSession]:
    return update_session(session_id, {"editor": editor})


def rebuild_session(session_id: str, prompt: str) -> Optional[BuilderSession]:
    """Discard the document and build a new one; late chat updates are dropped"""
    session = db.get(session_id)
    if not session:
        return None

    content = build_from_prompt(prompt)
    logger.info(
        f"Session {session_id}: rebuilt document (build {session.generation + 1})"
    )
    return update_session(
        session_id,
        {
            "content": content,
            "editor": EditorState(tree=build_nav_tree(content)),
            "original_prompt": prompt,
            "generation": session.generation + 1,
        },
    )


def get_chat_thread(session: BuilderSession, chat_id: str) -> ChatThread:
    """Copy of an existing chat thread, or a fresh, empty one"""
    thread = session.chats.get(chat_id)
    if thread is None:
        return ChatThread(id=chat_id)
    return thread.model_copy(deep=True)


def save_chat_thread(session_id: str, thread: ChatThread) -> Optional[BuilderSession]:
    """Store one chat thread without touching the others"""
    session = db.get(session_id)
    if not session:
        return None

    chats = dict(session.chats)
    chats[thread.id] = thread
    status = "processing" if any(chat.pending for chat in chats.values()) else "ready"
    return update_session(session_id, {"chats": chats, "status": status})
