# In-memory builder session store; sessions live as long as the process
import threading
from typing import Any, Optional

_sessions: dict = {}
_lock = threading.Lock()


def get(session_id: str) -> Optional[Any]:
    """Get a stored session by id"""
    with _lock:
        return _sessions.get(session_id)


def set(session_id: str, session) -> bool:
    """Store (or replace) a session under its id"""
    with _lock:
        _sessions[session_id] = session
        return True


def clear():
    """Clear all sessions (used by the tests)"""
    with _lock:
        _sessions.clear()
