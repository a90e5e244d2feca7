"""WebSocket round trip through the live client endpoint."""

import json

import pytest
from fastapi.testclient import TestClient

from school_leave.api.v1.deps import get_store
from school_leave.core.config import settings
from school_leave.main import app


@pytest.fixture
def ws_client(memory_store):
    app.dependency_overrides[get_store] = lambda: memory_store
    yield TestClient(app)


def _wait_for(ws, predicate, attempts=25):
    for _ in range(attempts):
        frame = ws.receive_json()
        if frame["type"] == "view" and predicate(frame["view"]):
            return frame["view"]
    raise AssertionError("expected view never arrived")


def test_student_submits_over_websocket(ws_client, memory_store):
    with ws_client.websocket_connect("/api/v1/live") as ws:
        view = _wait_for(ws, lambda v: v["connected"] and not v["bootstrapping"])
        assert view["role"] is None
        assert view["loginPlaceholder"] == "STU-001"

        ws.send_json({"action": "login", "tab": "student", "identifier": "stu-001"})
        view = _wait_for(ws, lambda v: v["role"] == "student")
        assert view["draft"]["studentId"] == "STU-001"

        ws.send_json({
            "action": "update_draft",
            "fields": {"studentName": "Mg Mg", "startDate": "2024-01-01", "reason": "flu", "totalDays": "3"},
        })
        ws.send_json({"action": "submit"})
        view = _wait_for(ws, lambda v: len(v["requests"]) == 1 and v["draft"]["studentName"] == "")
        assert view["requests"][0]["status"] == "pending"
        assert view["requests"][0]["actions"] == []

    assert memory_store.subscriber_count(settings.collection_path) == 0


def test_teacher_approves_over_websocket(ws_client, memory_store, make_document):
    doc_id = memory_store.seed(settings.collection_path, make_document())
    with ws_client.websocket_connect("/api/v1/live") as ws:
        ws.send_json({"action": "select_tab", "tab": "teacher"})
        ws.send_json({"action": "login", "identifier": "TCH-001"})
        view = _wait_for(ws, lambda v: v["role"] == "teacher" and v["requests"])
        assert view["requests"][0]["actions"] == ["approve", "reject"]
        assert view["summary"] == {"pending": 1, "total": 1}

        ws.send_json({"action": "approve", "id": doc_id})
        view = _wait_for(ws, lambda v: v["requests"][0]["status"] == "approved")
        assert view["requests"][0]["actions"] == []
        assert view["summary"] == {"pending": 0, "total": 1}


def test_malformed_command_is_reported(ws_client):
    with ws_client.websocket_connect("/api/v1/live") as ws:
        ws.send_text(json.dumps({"action": "drop_tables"}))
        view = _wait_for(ws, lambda v: v["notification"] is not None)
        assert view["notification"]["message"] == "Unrecognised command."

        ws.send_text("not json")
        ws.send_json({"action": "login", "tab": "teacher", "identifier": "tch-9"})
        view = _wait_for(ws, lambda v: v["role"] == "teacher")
        assert view["userLabel"] == "Teacher"
