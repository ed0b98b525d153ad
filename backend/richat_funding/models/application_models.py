"""Pydantic request/response schemas for application dossiers and documents."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from richat_funding.models.client_models import ClientResponse
from richat_funding.models.common import CamelModel, reject_explicit_nulls
from richat_funding.models.opportunity_models import OpportunityResponse
from richat_funding.services.completeness import DEFAULT_APPLICATION_STATUS


_NULLABLE_COLUMNS = frozenset({"assigned_consultant", "notes"})


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentCreate(CamelModel):
    """Metadata for a document attached to a dossier (no file payload)."""

    document_type: str = Field(..., min_length=1, max_length=200)
    file_name: str = Field(..., min_length=1, max_length=500)
    file_size: Optional[int] = Field(None, ge=0)
    file_type: Optional[str] = Field(None, max_length=50)
    is_required: bool = True
    status: str = Field("Soumis", min_length=1, max_length=100)


class DocumentResponse(CamelModel):
    id: int
    application_id: int
    document_type: str
    file_name: str
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    upload_date: Optional[datetime] = None
    is_required: bool = True
    status: str = "Soumis"
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


class ApplicationCreate(CamelModel):
    """Request body for opening a dossier for a client."""

    client_id: int = Field(..., ge=1)
    funding_opportunity_id: int = Field(..., ge=1)
    status: str = Field(DEFAULT_APPLICATION_STATUS, min_length=1, max_length=100)
    submission_date: Optional[datetime] = None
    assigned_consultant: Optional[str] = Field(None, max_length=200)
    completion_score: int = Field(0, ge=0, le=100)
    notes: Optional[str] = Field(None, max_length=10000)


class ApplicationUpdate(CamelModel):
    """Request body for updating dossier fields. All fields optional."""

    status: Optional[str] = Field(None, min_length=1, max_length=100)
    submission_date: Optional[datetime] = None
    assigned_consultant: Optional[str] = Field(None, max_length=200)
    completion_score: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = Field(None, max_length=10000)

    @model_validator(mode="after")
    def reject_null_required(self) -> "ApplicationUpdate":
        reject_explicit_nulls(self, _NULLABLE_COLUMNS)
        return self


class DossierEvaluationResponse(CamelModel):
    """Derived completeness data for one dossier."""

    missing_documents: List[str] = Field(default_factory=list)
    submitted_document_types: List[str] = Field(default_factory=list)
    progress_pct: int = 0
    stars: int = 0
    completion_label: str
    is_complete: bool = False


class ApplicationWithDetails(CamelModel):
    """Dossier aggregate: client, opportunity and documents embedded."""

    id: int
    client: ClientResponse
    funding_opportunity: OpportunityResponse
    status: str
    submission_date: Optional[datetime] = None
    assigned_consultant: Optional[str] = None
    completion_score: int = 0
    notes: Optional[str] = None
    documents: List[DocumentResponse] = Field(default_factory=list)
    evaluation: DossierEvaluationResponse


class RequiredDocumentsResponse(CamelModel):
    documents: List[str]
