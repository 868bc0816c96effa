"""
Tests for the HTTP control surface.

These use FastAPI TestClient against an isolated TrackerContext injected
through ``app.dependency_overrides``; no email leaves the process.
"""

import pytest
from fastapi.testclient import TestClient

from api.deps import get_context
from api.main import app
from cadence.dispatch import GmailDispatcher
from cadence.errors import StoreError
from cadence.models import Status
from cadence.service import TrackerContext
from cadence.store import MemoryRecordStore

from conftest import NOW


@pytest.fixture
def client(ctx):
    app.dependency_overrides[get_context] = lambda: ctx
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/").json()["status"] == "ok"


def test_list_reminders(client):
    body = client.get("/reminders").json()
    assert [r["id"] for r in body][:3] == ["acme", "widget", "sunrise"]
    assert body[0]["status"] == "pending"


def test_complete_by_click(client, ctx):
    resp = client.get("/complete/acme")
    assert resp.status_code == 200
    assert "Acme Robotics" in resp.text
    assert ctx.get("acme").status is Status.COMPLETE

    again = client.get("/complete/acme")
    assert again.status_code == 200
    assert "already marked" in again.text


def test_complete_unknown_is_404(client):
    resp = client.get("/complete/ghost")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_trigger_endpoints(client, dispatcher):
    resp = client.post("/send-test-reminder")
    assert resp.status_code == 200
    assert resp.json()["sent"] == 3

    assert client.post("/send-test-chase").json()["sent"] == 1
    assert client.post("/send-test-review").json()["sent"] == 1
    final = client.post("/send-test-final").json()
    assert final["success"] is True and final["sent"] == 1
    assert dispatcher.outbox[-1][0] == "rick@example.com"


def test_trigger_requires_authenticated_dispatcher(store, engine):
    ctx = TrackerContext(store, GmailDispatcher(None), engine, clock=lambda: NOW)
    ctx.load()
    app.dependency_overrides[get_context] = lambda: ctx
    try:
        with TestClient(app) as c:
            assert c.get("/auth/status").json() == {"authenticated": False}
            assert c.post("/send-test-reminder").status_code == 401
            assert c.post("/feedback", json={"acme": "hi"}).status_code == 401
    finally:
        app.dependency_overrides.clear()


def test_resets(client, ctx):
    client.get("/complete/acme")
    assert client.post("/reset-reminders").json()["count"] == 3
    assert ctx.get("acme").last_updated == NOW
    assert client.post("/reset-cycle").json()["count"] == 3
    assert ctx.get("acme").last_updated is None


def test_store_failure_is_503(records, dispatcher, engine):
    class BrokenStore(MemoryRecordStore):
        def save(self, records):
            raise StoreError("disk full")

    ctx = TrackerContext(BrokenStore(records), dispatcher, engine, clock=lambda: NOW)
    ctx.load()
    app.dependency_overrides[get_context] = lambda: ctx
    try:
        with TestClient(app) as c:
            assert c.get("/complete/acme").status_code == 503
    finally:
        app.dependency_overrides.clear()
    assert ctx.get("acme").status is Status.PENDING


def test_feedback_flow(client, dispatcher):
    resp = client.post("/feedback", json={"widget": "Please add Q3 numbers", "ghost": "x"})
    body = resp.json()
    assert body["success"] is True
    assert body["companies"] == ["Widget Industries"]
    assert body["count"] == 2

    ack = client.get("/feedback-complete/widget")
    assert ack.status_code == 200
    assert "Widget Industries" in ack.text
    assert client.get("/feedback-complete/chase-1").status_code == 404


def test_empty_feedback_rejected(client):
    assert client.post("/feedback", json={"acme": "  "}).json() == {
        "success": False,
        "error": "No feedback provided",
    }


def test_document_check_without_monitor_is_409(client):
    assert client.post("/document/check").status_code == 409
