"""
Bearer token handling.

Tokens are HS256 JWTs whose subject is the user's UUID. Issuing them is
another service's job in production; ``make_jwt`` exists for tooling and
tests.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional
from uuid import UUID

import jwt

from ...core.media.errors import MissingOrInvalidCredentialError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_ISSUER = "tubely-access"


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    Header lookup is case-insensitive when ``headers`` is (Starlette's
    ``Headers`` is).
    """
    auth_header = headers.get("authorization") or headers.get("Authorization")
    if not auth_header:
        raise MissingOrInvalidCredentialError("Couldn't find JWT")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise MissingOrInvalidCredentialError("Malformed authorization header")

    return parts[1]


def validate_jwt(token: str, secret: str, issuer: str = DEFAULT_ISSUER) -> UUID:
    """
    Verify signature, expiry and issuer, and return the subject as a UUID.
    """
    if not secret:
        logger.error("JWT secret is not configured")
        raise MissingOrInvalidCredentialError()

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            issuer=issuer,
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        logger.info("Rejected expired token")
        raise MissingOrInvalidCredentialError("Token expired") from e
    except jwt.PyJWTError as e:
        logger.warning("Rejected invalid token", extra={"error": str(e)})
        raise MissingOrInvalidCredentialError() from e

    try:
        return UUID(claims["sub"])
    except (TypeError, ValueError) as e:
        raise MissingOrInvalidCredentialError("Invalid user ID in token") from e


def make_jwt(
    user_id: UUID,
    secret: str,
    expires_in: timedelta = timedelta(hours=1),
    issuer: str = DEFAULT_ISSUER,
    now: Optional[datetime] = None,
) -> str:
    """Issue a signed token for ``user_id``."""
    issued_at = now or datetime.now(timezone.utc)
    return jwt.encode(
        {
            "iss": issuer,
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + expires_in,
        },
        secret,
        algorithm=ALGORITHM,
    )
