"""Base schema configuration for HTTP response models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIResponse(BaseModel):
    """Base class for outgoing API response schemas.

    Fields are declared in snake_case and always serialized as camelCase.
    Extra fields are forbidden so responses only carry what is declared.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        serialize_by_alias=True,
        extra="forbid",
    )
