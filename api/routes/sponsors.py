"""
api/routes/sponsors.py -- Sponsor routes.

Routes:
  POST   /sponsor/  -- create from form fields name, logo, tier, expiry; returns the generated id
  DELETE /sponsor/  -- delete the sponsor whose UUID is in form field id

expiry is an RFC 3339 timestamp ("2025-12-31T00:00:00Z"). It is stored as
Unix seconds; a timestamp without an offset is read as UTC.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Form, Request

from api.models import EmptyResponse, SponsorCreatedResponse
from content.models import Sponsor
from content.store import ContentStore
from core.errors import NotFoundError, ValidationError

router = APIRouter()


def _parse_expiry(raw: str) -> int:
    """Convert an RFC 3339 timestamp to Unix seconds. Raises ValidationError."""
    try:
        parsed = datetime.fromisoformat(raw.strip())
    except ValueError as exc:
        raise ValidationError("expiry must be an RFC 3339 timestamp.", detail=raw) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _parse_sponsor_id(raw: str) -> str:
    try:
        return str(uuid.UUID(raw.strip()))
    except ValueError as exc:
        raise ValidationError("id must be a sponsor UUID.", detail=raw) from exc


@router.post("/sponsor/", response_model=SponsorCreatedResponse)
def create_sponsor(
    request: Request,
    name: str = Form(default=""),
    logo: str = Form(default=""),
    tier: str = Form(default=""),
    expiry: str = Form(default=""),
) -> SponsorCreatedResponse:
    if not name.strip():
        raise ValidationError("name is required.")
    content: ContentStore = request.app.state.content
    sponsor_id = content.create_sponsor(Sponsor(name=name, logo=logo, tier=tier, expiry=_parse_expiry(expiry)))
    return SponsorCreatedResponse(id=sponsor_id)


@router.delete("/sponsor/", response_model=EmptyResponse)
def delete_sponsor(request: Request, sponsor_id: str = Form(default="", alias="id")) -> EmptyResponse:
    content: ContentStore = request.app.state.content
    parsed = _parse_sponsor_id(sponsor_id)
    if not content.delete_sponsor(parsed):
        raise NotFoundError(f"Sponsor {parsed} not found.")
    return EmptyResponse()
