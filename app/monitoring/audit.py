# app/monitoring/audit.py
"""
Audit trail for mutating operations and client key lifecycle events.
"""
from typing import Any, Dict, Optional

from app.db.repositories.audit_log_repository import AuditLogRepository
from app.db.session import SessionLocal
from app.monitoring.context import get_request_context
from app.monitoring.logger import log


async def audit_event(action: str, payload: Dict[str, Any], actor: Optional[str] = None, request_id: Optional[str] = None):
    """Persist an audit log entry in a fail-safe way.

    action: a short action name (e.g. 'file_created', 'client_key_rotated')
    Client and provider ids are taken from the request context.
    This helper never raises: on DB errors it logs locally and returns.
    """
    ctx = get_request_context()
    request_id = request_id or ctx.get("request_id")
    try:
        async with SessionLocal() as session:
            await AuditLogRepository(session).create(
                action=action,
                client_id=ctx.get("client_id"),
                provider_id=ctx.get("provider_id"),
                actor=actor,
                request_id=request_id,
                details=payload,
            )
    except Exception as e:
        # Fail-safe: log locally and do not raise
        log("ERROR", f"Failed to write audit_event {action}: {e}", component="audit", request_id=request_id)
