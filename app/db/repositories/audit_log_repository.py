# app/db/repositories/audit_log_repository.py
"""
CRUD operations for AuditLog model.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.db.models import AuditLog
from typing import Optional, List


class AuditLogRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        action: str,
        client_id: str = None,
        provider_id: str = None,
        actor: str = None,
        request_id: str = None,
        details: dict = None,
    ) -> AuditLog:
        audit_log = AuditLog(
            action=action,
            client_id=client_id,
            provider_id=provider_id,
            actor=actor,
            request_id=request_id,
            details=details,
        )
        self.db.add(audit_log)
        await self.db.commit()
        await self.db.refresh(audit_log)
        return audit_log

    async def list_by_client(self, client_id: str, limit: int = 100, offset: int = 0) -> List[AuditLog]:
        result = await self.db.execute(
            select(AuditLog)
            .where(AuditLog.client_id == client_id)
            .order_by(AuditLog.created_at)
            .limit(limit)
            .offset(offset)
        )
        return result.scalars().all()

    async def list_by_action(self, action: str) -> List[AuditLog]:
        result = await self.db.execute(select(AuditLog).where(AuditLog.action == action))
        return result.scalars().all()
