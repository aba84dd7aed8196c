# app/db/repositories/client_repository.py
"""
CRUD operations for Client model.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.db.models import Client
from typing import Optional


class ClientRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, client_id: str, api_key_hash: str) -> Client:
        client = Client(id=client_id, api_key_hash=api_key_hash)
        self.db.add(client)
        await self.db.commit()
        await self.db.refresh(client)
        return client

    async def get(self, client_id: str) -> Optional[Client]:
        result = await self.db.execute(select(Client).where(Client.id == client_id))
        return result.scalar_one_or_none()

    async def update_key(self, client_id: str, api_key_hash: str) -> Optional[Client]:
        client = await self.get(client_id)
        if not client:
            return None
        client.api_key_hash = api_key_hash
        await self.db.commit()
        await self.db.refresh(client)
        return client

    async def delete(self, client_id: str) -> bool:
        client = await self.get(client_id)
        if not client:
            return False
        await self.db.delete(client)
        await self.db.commit()
        return True
