"""
JWT payload inspection for Codex credentials.

Tokens are decoded without signature verification; only the identity
(email) and issuance time (iat) are read.
"""
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from .errors import MalformedTokenError
from .models import Credential

logger = logging.getLogger(__name__)


def decode_jwt(token: str) -> Dict[str, Any]:
    """
    Decode the payload segment of a JWT.

    Args:
        token: JWT string (header.payload.signature)

    Returns:
        Decoded payload as a dictionary

    Raises:
        MalformedTokenError: if the token is not three non-empty segments,
            or the payload is not base64url-encoded JSON object
    """
    if not isinstance(token, str):
        raise MalformedTokenError("Invalid JWT format: token is not a string")

    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedTokenError(f"Invalid JWT format: expected 3 parts, got {len(parts)}")
    if not all(parts):
        raise MalformedTokenError("Invalid JWT format: empty segment")

    # JWT uses base64url without padding
    payload = parts[1]
    padded = payload + "=" * (-len(payload) % 4)

    try:
        decoded = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
        claims = json.loads(decoded)
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise MalformedTokenError(f"Failed to decode JWT: {e}") from e

    if not isinstance(claims, dict):
        raise MalformedTokenError("Failed to decode JWT: payload is not an object")

    return claims


def safe_decode_jwt(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode a JWT payload, returning None instead of raising"""
    if not token:
        return None
    try:
        return decode_jwt(token)
    except MalformedTokenError as e:
        logger.debug(f"Ignoring undecodable token: {e}")
        return None


def get_token_issued_at(token: Optional[str]) -> Optional[int]:
    """Issuance time (iat) of a token, or None if unknown"""
    claims = safe_decode_jwt(token)
    if not claims:
        return None
    iat = claims.get("iat")
    if isinstance(iat, bool) or not isinstance(iat, (int, float)):
        return None
    return int(iat)


def get_token_email(token: Optional[str]) -> Optional[str]:
    """Email claim of a token, or None if missing"""
    claims = safe_decode_jwt(token)
    if not claims:
        return None
    email = claims.get("email")
    return email if isinstance(email, str) and email else None


def get_credential_issued_at(credential: Optional[Credential]) -> Optional[int]:
    """
    Issuance time of a credential.

    The ID token's iat wins; the access token's iat is the fallback.
    """
    if credential is None:
        return None
    issued_at = get_token_issued_at(credential.id_token)
    if issued_at is not None:
        return issued_at
    return get_token_issued_at(credential.access_token)
