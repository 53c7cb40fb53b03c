"""OAuth refresh_token grant against the OpenAI auth server"""

import json
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from settings import (
    CHATGPT_CLIENT_ID,
    REFRESH_SCOPE,
    REFRESH_TOKEN_URL,
    REQUEST_TIMEOUT,
    USER_AGENT,
)
from .payloads import RefreshTokenResponse


logger = logging.getLogger(__name__)


async def refresh_access_token(
    client: httpx.AsyncClient,
    refresh_token: str
) -> Optional[RefreshTokenResponse]:
    """Exchange a refresh token for new tokens

    Args:
        client: HTTP client used for the request
        refresh_token: Refresh token of the credential

    Returns:
        Parsed token response, or None if the refresh failed for any reason
    """
    if not refresh_token:
        logger.error("No refresh token provided")
        return None

    body = {
        "client_id": CHATGPT_CLIENT_ID,
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
        "scope": REFRESH_SCOPE,
    }

    try:
        response = await client.post(
            REFRESH_TOKEN_URL,
            json=body,
            headers={
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            },
            timeout=REQUEST_TIMEOUT,
        )
    except httpx.RequestError as e:
        logger.error(f"Token refresh request failed: {e}")
        return None

    if not response.is_success:
        logger.error(f"Token refresh failed with status {response.status_code}")
        return None

    try:
        refreshed = RefreshTokenResponse.model_validate(response.json())
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Failed to parse token refresh response: {e}")
        return None

    if not refreshed.access_token:
        logger.error("Token refresh response missing access token")
        return None

    logger.info("Successfully refreshed ChatGPT OAuth tokens")
    return refreshed
