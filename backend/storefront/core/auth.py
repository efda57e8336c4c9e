"""
Bearer token helpers

Tokens are issued by the commerce backend; the storefront never holds the
signing secret, so only the embedded claims are read (no signature check,
no network call).
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from jose import jwt, JWTError

logger = logging.getLogger(__name__)


def read_token_claims(token: str) -> Optional[dict]:
    """
    Read the claims of a JWT without verifying its signature.

    Returns:
        Claims dict, or None if the token is malformed
    """
    try:
        return jwt.get_unverified_claims(token)
    except JWTError as e:
        logger.debug(f"Unreadable token: {e}")
        return None


def is_token_live(token: Optional[str], now: Optional[datetime] = None) -> bool:
    """
    Check token liveness against its embedded ``exp`` claim.

    A missing token, a malformed token or a token without a numeric
    ``exp`` is not live.
    """
    if not token:
        return False

    claims = read_token_claims(token)
    if not claims:
        return False

    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return False

    current = now or datetime.now(timezone.utc)
    return exp > int(current.timestamp())
