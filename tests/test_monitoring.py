# tests/test_monitoring.py
"""
Tests for structured logging, the audit trail and error recording.
"""
import base64
import json
import logging

import httpx
import pytest
import pytest_asyncio

from app.api.deps import get_registry
from app.db.repositories.audit_log_repository import AuditLogRepository
from app.db.repositories.error_repository import ErrorRepository
from app.db.session import SessionLocal, init_models
from app.main import app
from app.monitoring import errors as error_monitoring
from app.monitoring.audit import audit_event
from app.monitoring.context import client_id_var, provider_id_var, request_id_var
from app.monitoring.errors import record_error
from app.monitoring.logger import JsonFormatter, log


@pytest.fixture
def request_context():
    tokens = [
        (request_id_var, request_id_var.set("req-ctx")),
        (client_id_var, client_id_var.set("client-ctx")),
        (provider_id_var, provider_id_var.set("gmail")),
    ]
    yield
    for var, token in reversed(tokens):
        var.reset(token)


@pytest.fixture
def alerts(monkeypatch):
    sent = []

    async def fake_alert(**kwargs):
        sent.append(kwargs)

    monkeypatch.setattr(error_monitoring, "send_slack_alert", fake_alert)
    return sent


@pytest_asyncio.fixture
async def lenient_client(registry):
    # Unhandled exceptions are re-raised by Starlette after the 500 is sent
    await init_models()
    app.dependency_overrides[get_registry] = lambda: registry
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


def test_log_lines_carry_request_context(request_context, caplog):
    with caplog.at_level(logging.INFO, logger="files_gateway"):
        log("INFO", "Listing /", module="localfs_provider", folder="/")

    line = json.loads(JsonFormatter().format(caplog.records[-1]))
    assert line["message"] == "Listing /"
    assert line["level"] == "INFO"
    assert line["component"] == "localfs_provider"
    assert line["request_id"] == "req-ctx"
    assert line["client_id"] == "client-ctx"
    assert line["provider_id"] == "gmail"
    assert line["folder"] == "/"


@pytest.mark.asyncio
async def test_audit_entries_carry_context(request_context):
    await init_models()
    await audit_event("file_deleted", {"path": "/x"}, actor="client-ctx")

    async with SessionLocal() as db:
        entries = await AuditLogRepository(db).list_by_client("client-ctx")
    [entry] = [e for e in entries if e.request_id == "req-ctx"]
    assert entry.action == "file_deleted"
    assert entry.provider_id == "gmail"
    assert entry.details == {"path": "/x"}


@pytest.mark.asyncio
async def test_audit_never_raises(monkeypatch):
    class BrokenRepository:
        def __init__(self, db):
            pass

        async def create(self, **kwargs):
            raise RuntimeError("database is gone")

    monkeypatch.setattr("app.monitoring.audit.AuditLogRepository", BrokenRepository)
    await audit_event("file_created", {"path": "/a"})


@pytest.mark.asyncio
async def test_record_error_persists_and_alerts(alerts):
    await init_models()
    await record_error(
        component="tests",
        function="test_record_error",
        message="boom",
        details={"attempt": 1},
        request_id="req-record",
        severity="CRITICAL",
    )

    async with SessionLocal() as db:
        rows = [row for row in await ErrorRepository(db).list_all() if row.request_id == "req-record"]
    assert len(rows) == 1
    assert rows[0].severity == "CRITICAL"
    assert rows[0].details == {"attempt": 1}
    assert alerts[0]["message"] == "boom"
    assert alerts[0]["severity"] == "CRITICAL"


@pytest.mark.asyncio
async def test_warnings_are_not_alerted(alerts):
    await init_models()
    await record_error(component="tests", function="f", message="minor", severity="WARNING")
    assert alerts == []


@pytest.mark.asyncio
async def test_unexpected_exception_returns_internal_error(lenient_client, registry, alerts, monkeypatch):
    issued = (await lenient_client.post("/files-api/v3/clients")).json()["content"]
    token = base64.b64encode(f"{issued['id']}:{issued['apiKey']}".encode()).decode()

    async def explode(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(registry.get("local"), "_list", explode)

    resp = await lenient_client.get(
        "/files-api/v3/data/%2F", params={"providerId": "local"}, headers={"X-Credentials": token}
    )

    assert resp.status_code == 500
    assert resp.json() == {"code": 500, "error": {"message": "disk on fire", "reason": "internalServerError"}}
    async with SessionLocal() as db:
        rows = await ErrorRepository(db).list_all(limit=1000)
    assert any(row.message == "Unhandled exception: disk on fire" for row in rows)
    assert alerts
