"""Clients router: the organizations consultants build dossiers for."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from richat_funding.deps import get_db, raise_not_found, raise_server_error
from richat_funding.models.client_models import (
    ClientCreate,
    ClientResponse,
    ClientUpdate,
)
from richat_funding.services.client_service import ClientService
from richat_funding.services.errors import NotFoundError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["clients"])


@router.get("/clients", response_model=list[ClientResponse])
async def list_clients(db: AsyncSession = Depends(get_db)):
    """All clients, alphabetical by organization name."""
    try:
        clients = await ClientService.list_clients(db)
    except Exception as e:
        raise_server_error("listing clients", e)

    return [ClientResponse.model_validate(c) for c in clients]


@router.get("/clients/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, db: AsyncSession = Depends(get_db)):
    try:
        client = await ClientService.get_client(db, client_id)
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("fetching client", e)

    return ClientResponse.model_validate(client)


@router.post(
    "/clients",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_client(body: ClientCreate, db: AsyncSession = Depends(get_db)):
    try:
        client = await ClientService.create_client(db, body)
    except Exception as e:
        raise_server_error("client creation", e)

    return ClientResponse.model_validate(client)


@router.put("/clients/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    body: ClientUpdate,
    db: AsyncSession = Depends(get_db),
):
    try:
        client = await ClientService.update_client(db, client_id, body)
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("client update", e)

    return ClientResponse.model_validate(client)
