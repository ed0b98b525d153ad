"""Applications router for the consultant dossier tracker.

Dossier aggregates (client, opportunity and documents embedded) with their
completeness evaluation, plus CRUD for dossiers and their documents.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from richat_funding.deps import (
    get_db,
    get_required_documents,
    raise_not_found,
    raise_server_error,
)
from richat_funding.models.application_models import (
    ApplicationCreate,
    ApplicationUpdate,
    ApplicationWithDetails,
    DocumentCreate,
    DocumentResponse,
    RequiredDocumentsResponse,
)
from richat_funding.services.application_service import (
    ApplicationService,
    build_application_details,
)
from richat_funding.services.errors import NotFoundError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["applications"])


# ---------------------------------------------------------------------------
# GET  /applications
# ---------------------------------------------------------------------------


@router.get("/applications", response_model=list[ApplicationWithDetails])
async def list_applications(
    search: Optional[str] = Query(
        None, description="Matches client organization name or opportunity title"
    ),
    status_filter: Optional[str] = Query(
        None, alias="status", description="Exact workflow status"
    ),
    db: AsyncSession = Depends(get_db),
    catalog: tuple[str, ...] = Depends(get_required_documents),
):
    """List dossiers, newest submission first, each with its evaluation.

    ``status=all`` (the dashboard's "every status" option) means no filter.
    """
    if status_filter in ("all", "tous"):
        status_filter = None
    try:
        applications = await ApplicationService.list_applications(
            db, search=search, status_filter=status_filter
        )
    except Exception as e:
        raise_server_error("listing applications", e)

    return [build_application_details(app, catalog) for app in applications]


# ---------------------------------------------------------------------------
# GET  /applications/{application_id}
# ---------------------------------------------------------------------------


@router.get("/applications/{application_id}", response_model=ApplicationWithDetails)
async def get_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    catalog: tuple[str, ...] = Depends(get_required_documents),
):
    try:
        application = await ApplicationService.get_application(db, application_id)
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("fetching application", e)

    return build_application_details(application, catalog)


# ---------------------------------------------------------------------------
# POST /applications
# ---------------------------------------------------------------------------


@router.post(
    "/applications",
    response_model=ApplicationWithDetails,
    status_code=status.HTTP_201_CREATED,
)
async def create_application(
    body: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    catalog: tuple[str, ...] = Depends(get_required_documents),
):
    """Open a dossier for an existing client on an existing opportunity.

    Raises:
        HTTPException 404: Client or opportunity not found.
    """
    try:
        application = await ApplicationService.create_application(db, body)
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("application creation", e)

    return build_application_details(application, catalog)


# ---------------------------------------------------------------------------
# PUT  /applications/{application_id}
# ---------------------------------------------------------------------------


@router.put("/applications/{application_id}", response_model=ApplicationWithDetails)
async def update_application(
    application_id: int,
    body: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    catalog: tuple[str, ...] = Depends(get_required_documents),
):
    try:
        application = await ApplicationService.update_application(
            db, application_id, body
        )
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("application update", e)

    return build_application_details(application, catalog)


# ---------------------------------------------------------------------------
# DELETE /applications/{application_id}
# ---------------------------------------------------------------------------


@router.delete(
    "/applications/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
):
    try:
        await ApplicationService.delete_application(db, application_id)
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("application deletion", e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.get(
    "/applications/{application_id}/documents",
    response_model=list[DocumentResponse],
)
async def list_application_documents(
    application_id: int,
    db: AsyncSession = Depends(get_db),
):
    try:
        documents = await ApplicationService.list_documents(db, application_id)
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("listing documents", e)

    return [DocumentResponse.model_validate(d) for d in documents]


@router.post(
    "/applications/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_application_document(
    application_id: int,
    body: DocumentCreate,
    db: AsyncSession = Depends(get_db),
):
    """Record a document's metadata against a dossier (no file upload)."""
    try:
        document = await ApplicationService.create_document(db, application_id, body)
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("document creation", e)

    return DocumentResponse.model_validate(document)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
):
    try:
        await ApplicationService.delete_document(db, document_id)
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("document deletion", e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# GET  /required-documents
# ---------------------------------------------------------------------------


@router.get("/required-documents", response_model=RequiredDocumentsResponse)
async def get_required_document_catalog(
    catalog: tuple[str, ...] = Depends(get_required_documents),
):
    """The document types every dossier is checked against."""
    return RequiredDocumentsResponse(documents=list(catalog))
