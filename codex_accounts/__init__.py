"""Codex account management

Stores several ChatGPT OAuth credentials for the Codex CLI, picks the
freshest credential per identity, and keeps a cached rate limit snapshot
for every saved account.
"""

from .errors import (
    CotateError,
    MalformedTokenError,
    TransportError,
    UpstreamStatusError,
    AuthorizationError,
    NotFoundError,
    StoreIOError,
)
from .models import (
    Credential,
    RateLimitWindow,
    Credits,
    RateLimitSnapshot,
    AccountEntry,
    SyncResult,
    LatestCredential,
)
from .jwt_utils import (
    decode_jwt,
    safe_decode_jwt,
    get_token_issued_at,
    get_token_email,
    get_credential_issued_at,
)
from .freshness import select_latest_credential
from .cache import CACHE_MAX_AGE_SECONDS, is_stale, should_update_rate_limit
from .rate_limits import (
    RateLimitClient,
    fetch_rate_limit,
    snapshot_from_payload,
    window_minutes_from_seconds,
)
from .token_refresh import refresh_access_token
from .storage import AccountStore
from .coordinator import (
    AccountSyncCoordinator,
    BatchSyncReport,
    refresh_account_store,
    resolve_active_account,
)

__all__ = [
    "CotateError",
    "MalformedTokenError",
    "TransportError",
    "UpstreamStatusError",
    "AuthorizationError",
    "NotFoundError",
    "StoreIOError",
    "Credential",
    "RateLimitWindow",
    "Credits",
    "RateLimitSnapshot",
    "AccountEntry",
    "SyncResult",
    "LatestCredential",
    "decode_jwt",
    "safe_decode_jwt",
    "get_token_issued_at",
    "get_token_email",
    "get_credential_issued_at",
    "select_latest_credential",
    "CACHE_MAX_AGE_SECONDS",
    "is_stale",
    "should_update_rate_limit",
    "RateLimitClient",
    "fetch_rate_limit",
    "snapshot_from_payload",
    "window_minutes_from_seconds",
    "refresh_access_token",
    "AccountStore",
    "AccountSyncCoordinator",
    "BatchSyncReport",
    "refresh_account_store",
    "resolve_active_account",
]
