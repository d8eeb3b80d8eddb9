"""Badge lookup endpoint.

- POST /v1/badges/lookup: fetch a public badge and confirm the email

Every failure is a 404 with the same body.  A caller must not be able to
tell "no such badge" from "wrong email"; otherwise the endpoint becomes a
way to find out who holds a badge.  The log and badge_lookups_total
record the actual reason.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from app.api.ratelimit import require_rate_limit
from app.services.badge_clients import BadgeClient

router = APIRouter(prefix="/v1/badges", tags=["badges"])


class BadgeLookupIn(BaseModel):
    # Unconstrained: a URL that is too long or malformed is just another
    # failed lookup and gets the same 404.
    url: str
    # Not EmailStr: the email is hashed byte-for-byte as the holder typed it
    # on the platform, so it must not be normalized or rejected here.
    email: str


class BadgeRecordOut(BaseModel):
    name: str
    issuer: str
    external_id: str
    issued_at: str
    description: str | None
    image_url: str | None
    tags: list[str]
    expires_at: str | None


def get_badge_client(request: Request) -> BadgeClient:
    """The client built once in the app lifespan."""
    return request.app.state.badge_client


@router.post(
    "/lookup",
    response_model=BadgeRecordOut,
    dependencies=[Depends(require_rate_limit())],
)
async def lookup_badge(
    body: BadgeLookupIn,
    client: Annotated[BadgeClient, Depends(get_badge_client)],
) -> BadgeRecordOut:
    record = await client.fetch_badge(body.url, body.email)
    if record is None:
        raise HTTPException(status_code=404, detail="badge not found")
    return BadgeRecordOut(**record.to_dict())
