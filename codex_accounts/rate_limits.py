"""Rate limit synchronization against the ChatGPT usage endpoint

A sync is a fixed two-step state machine: fetch usage with the stored access
token, and only on HTTP 401 refresh the token once and retry once.
"""

import json
import logging
import math
from typing import Optional, Tuple

import httpx
from pydantic import ValidationError

from settings import ACCOUNT_ID_HEADER, RATE_LIMIT_URL, REQUEST_TIMEOUT, USER_AGENT
from .errors import AuthorizationError, TransportError, UpstreamStatusError
from .models import Credential, Credits, RateLimitSnapshot, RateLimitWindow, SyncResult
from .payloads import RateLimitStatusPayload, RateLimitWindowPayload
from .token_refresh import refresh_access_token


logger = logging.getLogger(__name__)


def window_minutes_from_seconds(seconds: Optional[float]) -> Optional[int]:
    """Convert a window length in seconds to whole minutes, rounding up

    Returns:
        Minutes, or None for missing, non-finite or non-positive input
    """
    if seconds is None or not math.isfinite(seconds) or seconds <= 0:
        return None
    return int((seconds + 59) // 60)


def _window_from_payload(window: Optional[RateLimitWindowPayload]) -> RateLimitWindow:
    if window is None:
        return RateLimitWindow.empty()
    resets_at = window.reset_at
    return RateLimitWindow(
        used_percent=window.used_percent or 0,
        window_minutes=window_minutes_from_seconds(window.limit_window_seconds) or 0,
        resets_at=int(resets_at) if resets_at else 0,
    )


def snapshot_from_payload(payload: RateLimitStatusPayload) -> RateLimitSnapshot:
    """Normalize a /wham/usage response into a RateLimitSnapshot"""
    rate_limit = payload.rate_limit
    primary = rate_limit.primary_window if rate_limit else None
    secondary = rate_limit.secondary_window if rate_limit else None

    credits = payload.credits
    if credits is not None:
        normalized_credits = Credits(
            has_credits=bool(credits.has_credits),
            unlimited=bool(credits.unlimited),
            balance=credits.balance,
        )
    else:
        normalized_credits = Credits(has_credits=False, unlimited=False, balance=None)

    return RateLimitSnapshot(
        primary=_window_from_payload(primary),
        secondary=_window_from_payload(secondary),
        credits=normalized_credits,
        plan_type=payload.plan_type or "unknown",
    )


async def fetch_rate_limit(
    client: httpx.AsyncClient,
    access_token: str,
    account_id: Optional[str] = None,
) -> Tuple[RateLimitStatusPayload, int]:
    """Fetch the usage status for one access token

    Returns:
        Tuple of (payload, status_code) for a successful response

    Raises:
        TransportError: the request never got a response
        AuthorizationError: the endpoint answered 401
        UpstreamStatusError: any other non-success status, or an unparseable body
    """
    headers = {
        "Authorization": f"Bearer {access_token}",
        "User-Agent": USER_AGENT,
    }
    if account_id:
        headers[ACCOUNT_ID_HEADER] = account_id

    try:
        response = await client.get(RATE_LIMIT_URL, headers=headers, timeout=REQUEST_TIMEOUT)
    except httpx.RequestError as e:
        raise TransportError(f"Usage request failed: {e}") from e

    if response.status_code == 401:
        raise AuthorizationError("Usage request unauthorized")
    if not response.is_success:
        raise UpstreamStatusError(
            f"Usage request failed with status {response.status_code}",
            response.status_code,
        )

    try:
        payload = RateLimitStatusPayload.model_validate(response.json())
    except (json.JSONDecodeError, ValidationError) as e:
        raise UpstreamStatusError(
            f"Failed to parse usage response: {e}",
            response.status_code,
        ) from e

    return payload, response.status_code


class RateLimitClient:
    """Fetches rate limit snapshots, refreshing the access token at most once"""

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        """Initialize the client

        Args:
            http_client: Shared HTTP client. When None, a client is opened
                for each sync call and closed afterwards.
        """
        self.http_client = http_client

    async def sync(self, credential: Credential, allow_refresh: bool = True) -> SyncResult:
        """Fetch the current rate limits for a credential

        Args:
            credential: Credential whose access token is used
            allow_refresh: Whether a 401 may trigger a token refresh

        Returns:
            SyncResult; snapshot is None whenever nothing usable was fetched
        """
        if not credential.access_token:
            logger.debug("Credential has no access token, skipping sync")
            return SyncResult(None, None, None)

        if self.http_client is not None:
            return await self._sync(self.http_client, credential, allow_refresh)

        async with httpx.AsyncClient() as client:
            return await self._sync(client, credential, allow_refresh)

    async def _sync(
        self,
        client: httpx.AsyncClient,
        credential: Credential,
        allow_refresh: bool,
    ) -> SyncResult:
        account_id = credential.account_id or None

        # Attempt
        try:
            payload, status = await fetch_rate_limit(client, credential.access_token, account_id)
            return SyncResult(snapshot_from_payload(payload), None, status)
        except AuthorizationError as e:
            first_status = e.status_code
        except UpstreamStatusError as e:
            logger.warning(str(e))
            return SyncResult(None, None, e.status_code)
        except TransportError as e:
            logger.warning(str(e))
            return SyncResult(None, None, None)

        if not allow_refresh or not credential.refresh_token:
            logger.info("Usage request unauthorized and token refresh not permitted")
            return SyncResult(None, None, first_status)

        # Refresh
        logger.info("Access token rejected, attempting refresh...")
        refreshed = await refresh_access_token(client, credential.refresh_token)
        if refreshed is None or not refreshed.access_token:
            return SyncResult(None, None, first_status)

        updated = credential.with_refreshed_tokens(
            access_token=refreshed.access_token,
            id_token=refreshed.id_token,
            refresh_token=refreshed.refresh_token,
        )

        # Retry, exactly once. The refreshed credential is returned either way.
        try:
            payload, status = await fetch_rate_limit(client, updated.access_token, account_id)
            return SyncResult(snapshot_from_payload(payload), updated, status)
        except UpstreamStatusError as e:
            logger.warning(f"Retry after refresh failed: {e}")
            return SyncResult(None, updated, e.status_code)
        except TransportError as e:
            logger.warning(f"Retry after refresh failed: {e}")
            return SyncResult(None, updated, None)
