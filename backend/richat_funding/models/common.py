"""Base schema shared by every API model.

Python attributes are snake_case; the JSON wire format is camelCase, as the
dashboard front-end expects (``fundingProgram``, ``totalOpen``...).
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Pydantic base with camelCase aliases, accepting either spelling on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def reject_explicit_nulls(model: BaseModel, nullable: frozenset[str]) -> None:
    """Raise if a partial-update body sets a non-nullable column to null."""
    for name in model.model_fields_set:
        if getattr(model, name) is None and name not in nullable:
            raise ValueError(f"{to_camel(name)} cannot be null")
