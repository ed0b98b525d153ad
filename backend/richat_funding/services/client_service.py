"""Business logic for client organizations."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from richat_funding.models.client_models import ClientCreate, ClientUpdate
from richat_funding.models.db.client import Client
from richat_funding.services.errors import NotFoundError

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client operations."""

    @staticmethod
    async def list_clients(db: AsyncSession) -> list[Client]:
        result = await db.execute(
            select(Client).order_by(Client.organization_name, Client.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_client(db: AsyncSession, client_id: int) -> Client:
        client = await db.get(Client, client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    @staticmethod
    async def create_client(db: AsyncSession, data: ClientCreate) -> Client:
        client = Client(**data.model_dump())
        db.add(client)
        await db.flush()
        await db.refresh(client)
        logger.info("Registered client %s (%s)", client.id, client.organization_name)
        return client

    @staticmethod
    async def update_client(
        db: AsyncSession, client_id: int, data: ClientUpdate
    ) -> Client:
        client = await ClientService.get_client(db, client_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(client, field, value)
        client.updated_at = datetime.now(timezone.utc)
        await db.flush()
        await db.refresh(client)
        return client
