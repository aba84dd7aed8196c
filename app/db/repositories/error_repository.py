from app.db.models import ErrorLog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


class ErrorRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, *, request_id=None, client_id=None, provider_id=None, component=None, function=None, severity="ERROR", message="", details=None, stacktrace=None):
        el = ErrorLog(
            request_id=request_id,
            client_id=client_id,
            provider_id=provider_id,
            component=component,
            function=function,
            severity=severity,
            message=message,
            details=details,
            stacktrace=stacktrace,
        )
        self.db.add(el)
        await self.db.commit()
        await self.db.refresh(el)
        return el

    async def list_all(self, limit=100, offset=0):
        q = await self.db.execute(select(ErrorLog).limit(limit).offset(offset))
        return q.scalars().all()
