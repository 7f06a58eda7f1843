"""
DevCamper API — Shared Response Schemas
=========================================

What:  Envelope, pagination, error and health models shared by all routes.
Why:   Every endpoint answers in the same envelope:

           {"success": true, "data": ...}
           {"success": true, "count": n, "pagination": {...}, "data": [...]}
           {"success": false, "error": "..."}

       Clients check `success` first and never need per-endpoint parsing.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_serializer


class PageLink(BaseModel):
    """Points at an adjacent page: the page number and the active limit."""

    page: int = Field(ge=1, description="Adjacent page number (1-based)")
    limit: int = Field(ge=1, description="Page size in effect for this listing")


class Pagination(BaseModel):
    """
    What:  Links to the neighbouring pages of a listing.

    Invariants:
        next is present iff end_index < total
        prev is present iff start_index > 0

    Absent links are left out of the JSON entirely (`{}` on a single-page
    listing) instead of being rendered as null.
    """

    next: Optional[PageLink] = None
    prev: Optional[PageLink] = None

    @model_serializer(mode="wrap")
    def omit_absent_links(self, handler) -> Dict[str, Any]:
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}


class ListEnvelope(BaseModel):
    """
    Response body of every listing endpoint.

    `data` holds plain documents rather than a fixed model because a
    `select` projection can trim each document down to a few fields.
    """

    success: bool = True
    count: int = Field(description="Number of documents on this page")
    pagination: Pagination = Field(default_factory=Pagination)
    data: List[Dict[str, Any]] = Field(default_factory=list)


class EmptyEnvelope(BaseModel):
    """Returned by delete endpoints: `{"success": true, "data": {}}`."""

    success: bool = True
    data: Dict[str, Any] = Field(default_factory=dict)


class PhotoEnvelope(BaseModel):
    """Returned by photo upload: the stored filename."""

    success: bool = True
    data: str = Field(description="Filename the photo was stored under")


class ErrorResponse(BaseModel):
    """
    What:  Error body produced by the global exception handlers.

    Example:
        {
            "success": false,
            "error": "Bootcamp not found with id of 5d725a1b7b292f5f8ceff788",
            "request_id": "a1b2c3d4"
        }
    """

    success: bool = False
    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
