import pytest

from sitebuilder import db, llm
from sitebuilder.llm import Generation
from sitebuilder.websocket_manager import ws_manager


@pytest.fixture(autouse=True)
def clean_store():
    """Every test starts with no sessions and no canvas connections"""
    db.clear()
    ws_manager.connections.clear()
    ws_manager.locks.clear()
    yield
    db.clear()


@pytest.fixture
def llm_reply(monkeypatch):
    """Replace the provider call with a canned reply.

    Returns an installer; the list it returns records (prompt, provider)
    for each call.
    """
    calls = []

    def install(text="", generation=None, side_effect=None):
        def fake_forward(formatted_prompt, provider=None):
            calls.append((formatted_prompt, provider))
            if side_effect is not None:
                side_effect()
            return generation or Generation(status="success", text=text)

        monkeypatch.setattr(llm, "forward", fake_forward)
        return calls

    return install
