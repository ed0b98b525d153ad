"""Business logic for application dossiers and their documents."""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from richat_funding.helpers.text_utils import LIKE_ESCAPE, contains_pattern
from richat_funding.models.application_models import (
    ApplicationCreate,
    ApplicationUpdate,
    ApplicationWithDetails,
    DocumentCreate,
    DossierEvaluationResponse,
)
from richat_funding.models.db.application import Application, Document
from richat_funding.models.db.client import Client
from richat_funding.models.db.funding_opportunity import FundingOpportunity
from richat_funding.services.completeness import (
    DEFAULT_REQUIRED_DOCUMENTS,
    evaluate_dossier,
)
from richat_funding.services.errors import NotFoundError

logger = logging.getLogger(__name__)

_AGGREGATE_OPTIONS = (
    selectinload(Application.client),
    selectinload(Application.funding_opportunity),
    selectinload(Application.documents),
)


def build_application_list_query(
    search: Optional[str] = None,
    status_filter: Optional[str] = None,
) -> Select:
    """SELECT for the dossier list, with relations eagerly loaded.

    ``search`` matches the client's organization name or the opportunity
    title (case-insensitive substring); ``status_filter`` is an exact match.
    """
    stmt = (
        select(Application)
        .join(Client, Client.id == Application.client_id)
        .join(
            FundingOpportunity,
            FundingOpportunity.id == Application.funding_opportunity_id,
        )
        .options(*_AGGREGATE_OPTIONS)
    )
    if search and search.strip():
        pattern = contains_pattern(search.strip())
        stmt = stmt.where(
            or_(
                Client.organization_name.ilike(pattern, escape=LIKE_ESCAPE),
                FundingOpportunity.title.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    if status_filter:
        stmt = stmt.where(Application.status == status_filter)
    return stmt.order_by(Application.submission_date.desc(), Application.id.desc())


def build_application_details(
    application: Application,
    catalog: Sequence[str] = DEFAULT_REQUIRED_DOCUMENTS,
) -> ApplicationWithDetails:
    """Serialise a loaded application with its completeness evaluation."""
    evaluation = evaluate_dossier(application, catalog)
    return ApplicationWithDetails.model_validate(
        {
            "id": application.id,
            "client": application.client,
            "funding_opportunity": application.funding_opportunity,
            "status": application.status,
            "submission_date": application.submission_date,
            "assigned_consultant": application.assigned_consultant,
            "completion_score": application.completion_score,
            "notes": application.notes,
            "documents": list(application.documents),
            "evaluation": DossierEvaluationResponse(
                missing_documents=evaluation.missing_documents,
                submitted_document_types=evaluation.submitted_document_types,
                progress_pct=evaluation.progress_pct,
                stars=evaluation.stars,
                completion_label=evaluation.completion_label,
                is_complete=evaluation.is_complete,
            ),
        },
        from_attributes=True,
    )


class ApplicationService:
    """Service layer for dossier operations."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    async def list_applications(
        db: AsyncSession,
        search: Optional[str] = None,
        status_filter: Optional[str] = None,
    ) -> list[Application]:
        result = await db.execute(build_application_list_query(search, status_filter))
        return list(result.scalars().unique().all())

    @staticmethod
    async def get_application(db: AsyncSession, application_id: int) -> Application:
        """Fetch one dossier with client, opportunity and documents loaded.

        Raises:
            NotFoundError: If no row has this id.
        """
        result = await db.execute(
            select(Application)
            .where(Application.id == application_id)
            .options(*_AGGREGATE_OPTIONS)
            .execution_options(populate_existing=True)
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFoundError("Application", application_id)
        return application

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    async def create_application(
        db: AsyncSession, data: ApplicationCreate
    ) -> Application:
        """Open a dossier linking an existing client and opportunity.

        Raises:
            NotFoundError: If the client or the opportunity does not exist.
        """
        if await db.get(Client, data.client_id) is None:
            raise NotFoundError("Client", data.client_id)
        if await db.get(FundingOpportunity, data.funding_opportunity_id) is None:
            raise NotFoundError("Funding opportunity", data.funding_opportunity_id)

        values = data.model_dump(exclude_none=True)
        application = Application(**values)
        db.add(application)
        await db.flush()
        logger.info(
            "Opened application %s for client %s on opportunity %s",
            application.id,
            data.client_id,
            data.funding_opportunity_id,
        )
        return await ApplicationService.get_application(db, application.id)

    @staticmethod
    async def update_application(
        db: AsyncSession, application_id: int, data: ApplicationUpdate
    ) -> Application:
        application = await ApplicationService.get_application(db, application_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(application, field, value)
        application.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return await ApplicationService.get_application(db, application_id)

    @staticmethod
    async def delete_application(db: AsyncSession, application_id: int) -> None:
        """Delete a dossier; its documents go with it."""
        application = await ApplicationService.get_application(db, application_id)
        await db.delete(application)
        await db.flush()
        logger.info("Deleted application %s", application_id)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @staticmethod
    async def list_documents(db: AsyncSession, application_id: int) -> list[Document]:
        await ApplicationService._ensure_application(db, application_id)
        result = await db.execute(
            select(Document)
            .where(Document.application_id == application_id)
            .order_by(Document.document_type, Document.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def create_document(
        db: AsyncSession, application_id: int, data: DocumentCreate
    ) -> Document:
        await ApplicationService._ensure_application(db, application_id)
        document = Document(application_id=application_id, **data.model_dump())
        db.add(document)
        await db.flush()
        await db.refresh(document)
        return document

    @staticmethod
    async def delete_document(db: AsyncSession, document_id: int) -> None:
        document = await db.get(Document, document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        await db.delete(document)
        await db.flush()

    @staticmethod
    async def _ensure_application(db: AsyncSession, application_id: int) -> None:
        if await db.get(Application, application_id) is None:
            raise NotFoundError("Application", application_id)
