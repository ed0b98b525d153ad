"""Pydantic request/response schemas for clients."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from richat_funding.models.common import CamelModel, reject_explicit_nulls

_NULLABLE_COLUMNS = frozenset({"phone", "address", "legal_status"})

STRUCTURE_TYPES: tuple[str, ...] = ("État", "Institution publique", "Privé")
DEFAULT_STRUCTURE_TYPE = "Privé"


def _validate_structure_type(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in STRUCTURE_TYPES:
        raise ValueError(
            f"Invalid structureType '{v}'. Must be one of: {', '.join(STRUCTURE_TYPES)}"
        )
    return v


class ClientCreate(CamelModel):
    """Request body for registering a client organization."""

    organization_name: str = Field(..., min_length=1, max_length=500)
    contact_person: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=1000)
    legal_status: Optional[str] = Field(None, max_length=200)
    structure_type: str = DEFAULT_STRUCTURE_TYPE

    @field_validator("structure_type")
    @classmethod
    def validate_structure_type(cls, v: str) -> str:
        return _validate_structure_type(v)


class ClientUpdate(CamelModel):
    """Request body for updating a client. All fields optional."""

    organization_name: Optional[str] = Field(None, min_length=1, max_length=500)
    contact_person: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(
        None, min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$"
    )
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=1000)
    legal_status: Optional[str] = Field(None, max_length=200)
    structure_type: Optional[str] = None

    @field_validator("structure_type")
    @classmethod
    def validate_structure_type(cls, v: Optional[str]) -> Optional[str]:
        return _validate_structure_type(v)

    @model_validator(mode="after")
    def reject_null_required(self) -> "ClientUpdate":
        reject_explicit_nulls(self, _NULLABLE_COLUMNS)
        return self


class ClientResponse(CamelModel):
    """Full client record."""

    id: int
    organization_name: str
    contact_person: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    legal_status: Optional[str] = None
    structure_type: str = DEFAULT_STRUCTURE_TYPE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
