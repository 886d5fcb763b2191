from contextlib import ExitStack

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

import config
from main import app
from sitebuilder.llm import NO_PROVIDER_TEXT
from sitebuilder.routes import PageContext
from sitebuilder.utils import get_builder_session, get_chat_thread, save_chat_thread
from sitebuilder.websocket_manager import ws_manager


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def session_id(client):
    response = client.post("/website/start", json={"prompt": "Acme\nWe build things"})
    assert response.status_code == 200
    return response.json()["session_id"]


def body_children(payload):
    return [child["id"] for child in payload["tree"][0]["children"]]


def body_children_labels(payload):
    return {child["id"]: child["label"] for child in payload["tree"][0]["children"]}


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


# --- stateless chat ---


def test_website_chat_returns_text_and_updates(client, llm_reply):
    calls = llm_reply('Done!\nAPPLY_JSON: {"title": "Dr. Ayushi", "contactHeading": "Call"}')

    response = client.post(
        "/api/website-chat",
        json={
            "prompt": "doctor theme",
            "provider": "gemini",
            "currentContent": {"title": "Old", "canvasCopy": {"footerText": "F", "bogus": "x"}},
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "text": "Done!",
        "updates": {"title": "Dr. Ayushi", "canvasCopy": {"contactHeading": "Call"}},
    }
    prompt, provider = calls[0]
    assert provider == "gemini"
    assert '- title: "Old"' in prompt
    assert '- footerText: "F"' in prompt


def test_page_context_without_canvas_copy(client, llm_reply):
    calls = llm_reply("Ok.")

    response = client.post(
        "/api/website-chat", json={"prompt": "hi", "currentContent": {"title": "Solo"}}
    )

    assert response.status_code == 200
    assert PageContext().canvas_copy is not PageContext().canvas_copy
    assert '- footerText: "All rights reserved."' in calls[0][0]


def test_website_chat_without_page_sends_raw_prompt(client, llm_reply):
    calls = llm_reply("Hello!")

    response = client.post("/api/website-chat", json={"prompt": "hi", "provider": "grok"})

    assert response.json() == {"text": "Hello!"}
    assert calls[0] == ("hi", "grok")


def test_website_chat_rejects_empty_prompt(client):
    response = client.post("/api/website-chat", json={"prompt": "   "})

    assert response.status_code == 400


def test_website_chat_rejects_unknown_provider(client):
    response = client.post("/api/website-chat", json={"prompt": "hi", "provider": "clippy"})

    assert response.status_code == 400


def test_website_chat_with_no_provider(client):
    response = client.post("/api/website-chat", json={"prompt": "hi", "provider": "none"})

    assert response.status_code == 200
    assert response.json() == {"text": NO_PROVIDER_TEXT}


def test_website_chat_missing_key(client, monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", None)

    response = client.post("/api/website-chat", json={"prompt": "hi", "provider": "chatgpt"})

    assert response.status_code == 503
    assert "OPENAI_API_KEY" in response.json()["detail"]


def test_website_prompt(client, monkeypatch):
    monkeypatch.setattr(config, "XAI_API_KEY", "xai-test")

    response = client.get("/api/website-prompt", params={"provider": "grok", "prompt": "food-delivery"})

    assert response.status_code == 200
    assert response.json()["label"] == "Food Delivery Website"


def test_website_prompt_errors(client, monkeypatch):
    monkeypatch.setattr(config, "GEMINI_API_KEY", None)

    assert client.get("/api/website-prompt", params={"provider": "gemini"}).status_code == 503
    assert client.get("/api/website-prompt", params={"provider": "clippy"}).status_code == 400
    assert client.get("/api/website-prompt", params={"provider": "none"}).json()["ok"] is True


# --- sessions ---


def test_start_and_get_session(client, session_id):
    payload = client.get(f"/website/{session_id}").json()

    assert payload["content"]["title"] == "Acme"
    assert payload["content"]["heroHeading"] == "We build things"
    assert payload["breadcrumb"] == "Body"
    assert "hero" in payload["expanded_ids"]
    assert body_children(payload)[:2] == ["navigation", "hero"]


def test_unknown_session_is_404(client):
    assert client.get("/website/nope").status_code == 404
    assert client.post("/website/nope/sections", json={}).status_code == 404
    assert client.post("/website/nope/chat", json={"prompt": "hi"}).status_code == 404


def test_patch_content(client, session_id):
    response = client.patch(f"/website/{session_id}/content", json={"heroJumboText": "Hi there"})

    assert response.json()["content"]["heroJumboText"] == "Hi there"
    assert response.json()["content"]["title"] == "Acme"


def test_put_canvas_copy(client, session_id):
    response = client.put(f"/website/{session_id}/canvas-copy/footerText", json={"value": "Bye"})

    assert response.status_code == 200
    assert response.json()["content"]["canvasCopy"] == {"footerText": "Bye"}


def test_put_unknown_canvas_key_is_422(client, session_id):
    response = client.put(f"/website/{session_id}/canvas-copy/notAKey", json={"value": "x"})

    assert response.status_code == 422


def test_section_lifecycle(client, session_id):
    payload = client.post(f"/website/{session_id}/sections", json={}).json()
    section = payload["content"]["sections"][-1]
    assert section["title"] == "New Section"
    assert section["id"] in body_children(payload)

    payload = client.patch(
        f"/website/{session_id}/sections/{section['id']}", json={"content": "Updated"}
    ).json()
    assert payload["content"]["sections"][-1]["content"] == "Updated"

    payload = client.delete(f"/website/{session_id}/sections/{section['id']}").json()
    assert section["id"] not in [s["id"] for s in payload["content"]["sections"]]
    assert section["id"] not in body_children(payload)


def test_remove_unknown_section_is_noop(client, session_id):
    before = client.get(f"/website/{session_id}").json()["content"]

    response = client.delete(f"/website/{session_id}/sections/nope")

    assert response.status_code == 200
    assert response.json()["content"] == before


def test_rebuild_resets_document(client, session_id):
    client.post(f"/website/{session_id}/editor/select", json={"nodeId": "footer"})

    payload = client.post(f"/website/{session_id}/build", json={"prompt": "Fresh"}).json()

    assert payload["content"]["title"] == "Fresh"
    assert payload["generation"] == 1
    assert payload["selected_id"] is None


# --- editor ---


def test_select_with_alias(client, session_id):
    payload = client.post(
        f"/website/{session_id}/editor/select", json={"nodeId": "hero-t-name"}
    ).json()

    assert payload["selected_id"] == "hero"
    assert payload["breadcrumb"] == "Body > Section"


def test_toggle_expand(client, session_id):
    payload = client.post(
        f"/website/{session_id}/editor/toggle-expand", json={"nodeId": "hero"}
    ).json()

    assert "hero" not in payload["expanded_ids"]


def test_reorder_section_nodes_reorders_document(client, session_id):
    payload = client.get(f"/website/{session_id}").json()
    first, second = [s["id"] for s in payload["content"]["sections"]]
    children = body_children(payload)

    payload = client.post(
        f"/website/{session_id}/editor/reorder",
        json={
            "parentId": "body",
            "fromIndex": children.index(first),
            "toIndex": children.index(second),
        },
    ).json()

    assert [s["id"] for s in payload["content"]["sections"]] == [second, first]
    ids = body_children(payload)
    assert ids.index(second) < ids.index(first)


def test_rename(client, session_id):
    payload = client.post(
        f"/website/{session_id}/editor/rename", json={"nodeId": "footer", "label": "Bottom"}
    ).json()

    assert payload["label_overrides"] == {"footer": "Bottom"}
    assert body_children_labels(payload)["footer"] == "Bottom"


def test_set_style(client, session_id):
    url = f"/website/{session_id}/editor/style"
    client.post(url, json={"nodeId": "hero", "style": {"marginTop": 4}})
    payload = client.post(url, json={"nodeId": "hero", "style": {"color": "red"}}).json()

    assert payload["styles"]["hero"] == {"marginTop": 4, "color": "red"}


def test_invalid_style_is_422(client, session_id):
    response = client.post(
        f"/website/{session_id}/editor/style",
        json={"nodeId": "hero", "style": {"display": "sideways"}},
    )

    assert response.status_code == 422


# --- chat ---


def test_chat_applies_update(client, session_id, llm_reply):
    llm_reply('Renamed.\nAPPLY_JSON: {"title": "Beta", "footerText": "(c) Beta"}')

    response = client.post(f"/website/{session_id}/chat", json={"prompt": "rename to Beta"})

    payload = response.json()
    assert payload["success"] is True
    assert payload["message"] == "Renamed."
    assert payload["updates"] == {"title": "Beta", "canvasCopy": {"footerText": "(c) Beta"}}
    assert payload["state"]["content"]["title"] == "Beta"

    chat = client.get(f"/website/{session_id}/chat/default").json()
    assert [m["role"] for m in chat["messages"]] == ["user", "agent"]
    assert chat["pending"] is False


def test_chat_error_is_reported_as_message(client, session_id, monkeypatch):
    monkeypatch.setattr(config, "GEMINI_API_KEY", None)

    response = client.post(
        f"/website/{session_id}/chat", json={"prompt": "hi", "provider": "gemini"}
    )

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error_kind"] == "config"


def test_chat_rejects_blank_prompt(client, session_id, llm_reply):
    calls = llm_reply("never")

    response = client.post(f"/website/{session_id}/chat", json={"prompt": "   "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing or empty prompt."
    assert calls == []
    chat = client.get(f"/website/{session_id}/chat/default").json()
    assert chat["messages"] == []
    assert chat["pending"] is False


def test_chat_busy_is_409(client, session_id, llm_reply):
    thread = get_chat_thread(get_builder_session(session_id), "default")
    thread.pending = True
    save_chat_thread(session_id, thread)
    llm_reply("never")

    response = client.post(f"/website/{session_id}/chat", json={"prompt": "again"})

    assert response.status_code == 409


def test_websocket_sends_current_state(client, session_id):
    with client.websocket_connect(f"/website/{session_id}/ws") as websocket:
        message = websocket.receive_json()

    assert message["type"] == "content"
    assert message["content"]["title"] == "Acme"


def test_websocket_unknown_session(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/website/nope/ws") as websocket:
            websocket.receive_json()


def test_closing_old_canvas_keeps_newer_one(client, session_id):
    url = f"/website/{session_id}/ws"
    old_tab = ExitStack()
    old_socket = old_tab.enter_context(client.websocket_connect(url))
    old_socket.receive_json()

    with client.websocket_connect(url) as new_socket:
        new_socket.receive_json()
        newest = ws_manager.connections[session_id]

        old_tab.close()

        assert ws_manager.connections.get(session_id) is newest

    assert session_id not in ws_manager.connections
