"""Pydantic request/response schemas for funding opportunities."""

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import Field, computed_field, field_validator, model_validator

from richat_funding.helpers.deadline import parse_deadline
from richat_funding.helpers.text_utils import dedupe, split_list, split_required_documents
from richat_funding.models.common import CamelModel, reject_explicit_nulls

# ---------------------------------------------------------------------------
# Vocabularies (stored as free text, validated here)
# ---------------------------------------------------------------------------
FUNDING_TYPES: tuple[str, ...] = ("Don", "Subvention", "Prêt", "Mixte")

STATUS_OPEN = "Ouvert"
STATUS_UPCOMING = "À venir"
STATUS_CLOSED = "Fermé"
OPPORTUNITY_STATUSES: tuple[str, ...] = (STATUS_OPEN, STATUS_UPCOMING, STATUS_CLOSED)

DEFAULT_SORT = "deadline"

# Sentinel meaning "no filter" for the select-style filters
ALL = "all"


def _check_choice(value: Optional[str], choices: tuple[str, ...], field: str):
    if value is not None and value not in choices:
        raise ValueError(
            f"Invalid {field} '{value}'. Must be one of: {', '.join(choices)}"
        )
    return value


def _coerce_sectors(value: Any) -> Any:
    # The add-opportunity form sends "Agriculture, Climat"
    if isinstance(value, str):
        return split_list(value, ",")
    if isinstance(value, (list, tuple)):
        return dedupe(str(v).strip() for v in value)
    return value


# Columns a partial update may explicitly clear
_NULLABLE_COLUMNS = frozenset({"external_link", "min_amount", "max_amount"})


def _check_amount_range(min_amount: Optional[int], max_amount: Optional[int]) -> None:
    if min_amount is not None and max_amount is not None and min_amount > max_amount:
        raise ValueError("minAmount must be less than or equal to maxAmount")


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class OpportunityFilters(CamelModel):
    """Optional, independently combinable list filters (logical AND)."""

    sector: Optional[str] = None
    funding_type: Optional[str] = None
    # Decimal input is allowed; stored amounts are whole numbers
    min_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    max_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    status: Optional[str] = None
    deadline: Optional[str] = None
    search_term: Optional[str] = None
    fonds: Optional[str] = None
    sort_by: str = DEFAULT_SORT

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: v
                for k, v in data.items()
                if not (isinstance(v, str) and not v.strip())
            }
        return data


# ---------------------------------------------------------------------------
# Write schemas
# ---------------------------------------------------------------------------


class OpportunityCreate(CamelModel):
    """Request body for creating a funding opportunity (no id/timestamps)."""

    title: str = Field(..., min_length=1, max_length=500)
    funding_program: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    eligibility_criteria: str = Field(..., min_length=1)
    required_documents: str = Field(
        ..., min_length=1, description="Semicolon-delimited document list"
    )
    external_link: Optional[str] = Field(None, max_length=2000)
    deadline: str = Field(
        ..., min_length=1, description="ISO date or descriptive phrase"
    )
    min_amount: Optional[int] = Field(None, ge=0)
    max_amount: Optional[int] = Field(None, ge=0)
    funding_type: str
    status: str
    sectors: List[str] = Field(..., min_length=1)

    @field_validator("sectors", mode="before")
    @classmethod
    def split_sectors(cls, v: Any) -> Any:
        return _coerce_sectors(v)

    @field_validator("funding_type")
    @classmethod
    def validate_funding_type(cls, v: str) -> str:
        return _check_choice(v, FUNDING_TYPES, "fundingType")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_choice(v, OPPORTUNITY_STATUSES, "status")

    @model_validator(mode="after")
    def validate_amount_range(self) -> "OpportunityCreate":
        _check_amount_range(self.min_amount, self.max_amount)
        return self


class OpportunityUpdate(CamelModel):
    """Request body for a partial update. All fields optional."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    funding_program: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, min_length=1)
    eligibility_criteria: Optional[str] = Field(None, min_length=1)
    required_documents: Optional[str] = Field(None, min_length=1)
    external_link: Optional[str] = Field(None, max_length=2000)
    deadline: Optional[str] = Field(None, min_length=1)
    min_amount: Optional[int] = Field(None, ge=0)
    max_amount: Optional[int] = Field(None, ge=0)
    funding_type: Optional[str] = None
    status: Optional[str] = None
    sectors: Optional[List[str]] = Field(None, min_length=1)

    @field_validator("sectors", mode="before")
    @classmethod
    def split_sectors(cls, v: Any) -> Any:
        return _coerce_sectors(v)

    @field_validator("funding_type")
    @classmethod
    def validate_funding_type(cls, v: Optional[str]) -> Optional[str]:
        return _check_choice(v, FUNDING_TYPES, "fundingType")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        return _check_choice(v, OPPORTUNITY_STATUSES, "status")

    @model_validator(mode="after")
    def reject_null_required(self) -> "OpportunityUpdate":
        reject_explicit_nulls(self, _NULLABLE_COLUMNS)
        return self

    @model_validator(mode="after")
    def validate_amount_range(self) -> "OpportunityUpdate":
        _check_amount_range(self.min_amount, self.max_amount)
        return self


# ---------------------------------------------------------------------------
# Read schemas
# ---------------------------------------------------------------------------


class OpportunityResponse(CamelModel):
    """Full funding opportunity (mirrors all DB columns plus derived fields)."""

    id: int
    title: str
    funding_program: str
    description: str
    eligibility_criteria: str
    required_documents: str
    external_link: Optional[str] = None
    deadline: str
    min_amount: Optional[int] = None
    max_amount: Optional[int] = None
    funding_type: str
    status: str
    sectors: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="deadlineDate")
    @property
    def deadline_date(self) -> Optional[date]:
        return parse_deadline(self.deadline).parsed

    @computed_field(alias="isRolling")
    @property
    def is_rolling(self) -> bool:
        return parse_deadline(self.deadline).is_rolling

    @computed_field(alias="requiredDocumentsList")
    @property
    def required_documents_list(self) -> List[str]:
        return split_required_documents(self.required_documents)


class FundingStatistics(CamelModel):
    """Aggregate statistics over the whole opportunity collection."""

    total_open: int = 0
    total_pending: int = 0
    total_amount: int = 0
    this_week: int = 0
