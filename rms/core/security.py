"""
Security Primitives

Password hashing (bcrypt), bearer token issue/verification (PyJWT) and the
single ownership predicate shared by every protected route.

bcrypt is CPU bound, so the async wrappers push it onto a worker thread to
keep the event loop free for other requests.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from rms.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


# =============================================================================
# PASSWORDS
# =============================================================================

def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """Return a salted bcrypt hash of ``password``."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        logger.warning("Stored password hash could not be parsed")
        return False


async def hash_password_async(password: str, rounds: int = 10) -> str:
    return await asyncio.to_thread(hash_password, password, rounds)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, password_hash)


# =============================================================================
# ACCESS TOKENS
# =============================================================================

def create_access_token(
    claims: dict[str, Any],
    *,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
    now: Optional[datetime] = None,
) -> str:
    """
    Issue a signed token carrying ``claims``.

    Args:
        claims: Identity fields to embed (id, email, type, restaurantId)
        secret: HMAC signing key
        algorithm: JWT algorithm
        expires_hours: Lifetime of the token
        now: Issuance time (defaults to the current UTC time)

    Returns:
        Encoded JWT string
    """
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=expires_hours),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(token: str, *, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    """
    Verify a token's signature and expiry and return its claims.

    Raises:
        AuthenticationError: If the token is malformed, expired or forged
    """
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired access token")
        raise AuthenticationError("Invalid token", status_code=403)
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected invalid access token: {e}")
        raise AuthenticationError("Invalid token", status_code=403)


# =============================================================================
# AUTHORIZATION
# =============================================================================

def is_owner(claims: Any, restaurant_id: int) -> bool:
    """
    True when the token holder is the restaurant account owning ``restaurant_id``.
    """
    if claims is None:
        return False
    account_type = getattr(claims.type, "value", claims.type)
    return account_type == "restaurant" and claims.restaurant_id == restaurant_id
