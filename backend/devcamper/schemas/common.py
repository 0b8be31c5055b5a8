"""
DevCamper API: Shared Schemas
==============================

What:  The uniform response envelope and the base model every schema uses.

Envelope:
    {success, data?, count?, pagination?, token?, error?}
    Routes declare response_model_exclude_none=True so absent members and
    unset record fields are omitted rather than sent as null.
"""

import uuid
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """
    Base for all API schemas.

    camelCase on the wire (`averageCost`), snake_case in Python
    (`average_cost`); either spelling is accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class DataResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class PageRef(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    """Present only for the directions in which another page exists."""

    next: Optional[PageRef] = None
    prev: Optional[PageRef] = None


class ListResponse(BaseModel):
    """
    Listing envelope.

    `data` items are plain dicts because `select=` may project each record
    down to a subset of its fields.
    """

    success: bool = True
    count: int = Field(description="Number of records in this page")
    pagination: Optional[Pagination] = None
    data: List[Dict[str, Any]]


class TokenResponse(BaseModel):
    success: bool = True
    token: str


class ErrorResponse(BaseModel):
    """
    Error envelope returned by every exception handler.

    Example:
        {"success": false, "error": "Bootcamp not found with id of 5d72..."}
    """

    success: bool = False
    error: str


class BootcampSummary(CamelModel):
    """Bootcamp reference expanded into `{id, name, description}`."""

    id: uuid.UUID
    name: str
    description: str


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float
