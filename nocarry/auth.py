"""Identity gateway: resolves a bearer token to the caller's identity.

Sessions and passwords live with the hosted identity provider. We only
introspect the access token and map the resulting subject onto our own
``users`` row.
"""
import logging
from dataclasses import dataclass

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from nocarry.config import settings
from nocarry.database import get_db
from nocarry.errors import NotFound, Unauthenticated
from nocarry.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    id: str
    email: str


def resolve_token(token: str) -> Identity:
    """Ask the identity provider who owns ``token``."""
    if not settings.IDENTITY_URL:
        logger.error("IDENTITY_URL is not configured; rejecting request")
        raise Unauthenticated()

    try:
        resp = httpx.get(
            f"{settings.IDENTITY_URL.rstrip('/')}/auth/v1/user",
            headers={"Authorization": f"Bearer {token}", "apikey": settings.IDENTITY_API_KEY},
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as exc:
        logger.warning("Identity provider unreachable: %s", exc)
        raise Unauthenticated() from exc

    if resp.status_code != 200:
        raise Unauthenticated()

    try:
        data = resp.json()
    except ValueError as exc:
        logger.warning("Identity provider returned a non-JSON body")
        raise Unauthenticated() from exc
    if not isinstance(data, dict) or not data.get("id") or not data.get("email"):
        raise Unauthenticated()
    return Identity(id=data["id"], email=data["email"])


def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """FastAPI dependency: 401 unless the request carries a valid bearer token."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return resolve_token(credentials.credentials)


def get_current_user(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> User:
    """FastAPI dependency: the registered account behind the identity."""
    user = db.query(User).filter(User.user_id == identity.id).first()
    if not user:
        raise NotFound("User not found")
    return user
