"""Pydantic models for the ASNINFO lookup API.

Defines request/response schemas for all API endpoints.
"""

from __future__ import annotations

from typing import Annotated, List

from pydantic import BaseModel, Field

from asninfo.core.models import AsnRecord
from asninfo.utils.helpers import MAX_ASN

Asn = Annotated[int, Field(ge=0, le=MAX_ASN)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LookupRequest(BaseModel):
    """Request body for ``POST /lookup``.

    Attributes:
        asns: ASNs to look up. Values outside the 32-bit range make the body invalid.
    """

    asns: List[Asn] = Field(
        ...,
        description="ASNs to look up",
        examples=[[13335, 15169]],
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response body for ``GET /health``.

    Attributes:
        status: Service status string.
        updatedAt: Build time of the snapshot currently served.
    """

    status: str = "ok"
    updatedAt: str


class LookupResponse(BaseModel):
    """Structured response body for ``/lookup``.

    Attributes:
        data: Records found, ascending by ASN.
        count: Number of records in ``data``.
        updatedAt: Build time of the snapshot the records came from.
        page: Always ``1``; lookups are not paginated.
        page_size: Equal to ``count``.
    """

    data: List[AsnRecord] = Field(default_factory=list)
    count: int = 0
    updatedAt: str
    page: int = 1
    page_size: int = 0


class ErrorResponse(BaseModel):
    """Error body returned for rejected requests."""

    error: str
