"""Batch rate limit refresh across all saved accounts"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from settings import RATE_LIMIT_CACHE_SECONDS, SYNC_PACING_SECONDS
from .cache import is_stale, now_seconds
from .errors import StoreIOError
from .freshness import select_latest_credential
from .jwt_utils import get_token_email
from .models import AccountEntry, Credential
from .rate_limits import RateLimitClient
from .storage import AccountStore


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


def resolve_active_account(store: AccountStore) -> Tuple[Optional[Credential], Optional[str]]:
    """Read the active credential and the email it belongs to

    An unreadable auth.json, or an ID token without an email, counts as
    "no active account" instead of an error.

    Returns:
        Tuple of (credential, email); either may be None
    """
    try:
        credential = store.load_active_credential()
    except StoreIOError as e:
        logger.warning(f"Ignoring unreadable active credential: {e}")
        return None, None

    if credential is None:
        return None, None

    email = get_token_email(credential.id_token)
    if email is None:
        logger.debug("Active credential has no email claim")
    return credential, email


@dataclass
class BatchSyncReport:
    """Which accounts a batch touched"""
    attempted: List[str] = field(default_factory=list)
    refreshed: List[str] = field(default_factory=list)
    credentials_updated: List[str] = field(default_factory=list)


class AccountSyncCoordinator:
    """Refreshes stale rate limit snapshots one account at a time"""

    def __init__(
        self,
        client: Optional[RateLimitClient] = None,
        pacing_seconds: float = SYNC_PACING_SECONDS,
        max_age_seconds: int = RATE_LIMIT_CACHE_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], int] = now_seconds,
    ):
        self.client = client or RateLimitClient()
        self.pacing_seconds = pacing_seconds
        self.max_age_seconds = max_age_seconds
        self._sleep = sleep
        self._clock = clock

    def stale_accounts(self, accounts: Dict[str, AccountEntry]) -> List[str]:
        """Emails whose cached snapshot is stale, in collection order"""
        now = self._clock()
        return [
            email for email, entry in accounts.items()
            if is_stale(entry.last_updated, self.max_age_seconds, now=now)
        ]

    async def sync_stale_accounts(
        self,
        accounts: Dict[str, AccountEntry],
        active_credential: Optional[Credential] = None,
        active_email: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchSyncReport:
        """Sync every stale account in place

        Requests run strictly one after another with a pacing delay in
        between. The active account is synced with whichever of the active
        and stored credentials is newer, and never refreshed. Other accounts
        may refresh, and keep the refreshed credential. A failed sync leaves
        the cached snapshot untouched. Persisting is left to the caller.

        Args:
            accounts: Saved accounts, mutated in place
            active_credential: Credential from auth.json, if any
            active_email: Email of the active credential, if known
            on_progress: Called with (email, index, total) before each sync

        Returns:
            BatchSyncReport describing what changed
        """
        report = BatchSyncReport()
        pending = self.stale_accounts(accounts)
        total = len(pending)

        for index, email in enumerate(pending):
            entry = accounts[email]
            report.attempted.append(email)
            if on_progress:
                on_progress(email, index, total)

            is_active = active_credential is not None and active_email == email

            if is_active:
                selected = select_latest_credential(active_credential, entry.credential)
                result = await self.client.sync(selected.credential, allow_refresh=False)
                if selected.from_preferred and entry.credential != selected.credential:
                    entry.credential = selected.credential
                    report.credentials_updated.append(email)
            else:
                result = await self.client.sync(entry.credential, allow_refresh=True)
                if result.updated_credential is not None:
                    entry.credential = result.updated_credential
                    report.credentials_updated.append(email)

            if result.snapshot is not None:
                entry.rate_limits = result.snapshot
                entry.last_updated = self._clock()
                report.refreshed.append(email)
            else:
                logger.info(f"Keeping cached rate limits for {email} (status {result.status_code})")

            if index < total - 1:
                await self._sleep(self.pacing_seconds)

        return report


async def refresh_account_store(
    store: AccountStore,
    coordinator: AccountSyncCoordinator,
    on_progress: Optional[ProgressCallback] = None,
) -> Tuple[Dict[str, AccountEntry], Optional[str], BatchSyncReport]:
    """Read the store once, sync stale accounts, write the store once

    The accounts file is only rewritten when at least one account was stale.

    Returns:
        Tuple of (accounts, active email or None, report)
    """
    accounts = store.load_accounts()
    active_credential, active_email = resolve_active_account(store)

    report = await coordinator.sync_stale_accounts(
        accounts,
        active_credential=active_credential,
        active_email=active_email,
        on_progress=on_progress,
    )

    if report.attempted:
        store.save_accounts(accounts)

    return accounts, active_email, report
