"""Base schema and the JSON response envelope shared by all endpoints."""
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """
    Base schema that speaks camelCase on the wire.

    Fields are declared in snake_case; request bodies are accepted in either
    form and responses are serialized with camelCase aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: `{success, data, message}`."""

    success: bool = True
    data: T | None = None
    message: str | None = None


class ErrorResponse(BaseModel):
    """Error envelope. `data` is only set for conflicts (the existing record)."""

    success: bool = False
    error: str
    data: Any | None = None
