"""Data models for saved Codex accounts and their rate limit status"""

import datetime
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string with a trailing Z"""
    return (
        datetime.datetime.now(datetime.timezone.utc)
        .isoformat()
        .replace("+00:00", "Z")
    )


def _str_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class Credential:
    """One set of OAuth tokens for one identity (the auth.json shape)

    Instances are immutable; every update returns a new record.

    Attributes:
        api_key: Optional static API key (OPENAI_API_KEY)
        id_token: JWT ID token carrying the user's email and issuance time
        access_token: Bearer token for the ChatGPT backend
        refresh_token: Token used to obtain a new access token
        account_id: ChatGPT account identifier
        last_refresh: ISO 8601 timestamp of the last token refresh
        extra: Unknown top-level keys, preserved on round trip
    """
    id_token: str = ""
    access_token: str = ""
    refresh_token: str = ""
    account_id: str = ""
    api_key: Optional[str] = None
    last_refresh: str = ""
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credential":
        tokens = data.get("tokens") or {}
        if not isinstance(tokens, dict):
            tokens = {}
        extra = {
            k: v for k, v in data.items()
            if k not in ("OPENAI_API_KEY", "tokens", "last_refresh")
        }
        api_key = data.get("OPENAI_API_KEY")
        return cls(
            id_token=_str_or_empty(tokens.get("id_token")),
            access_token=_str_or_empty(tokens.get("access_token")),
            refresh_token=_str_or_empty(tokens.get("refresh_token")),
            account_id=_str_or_empty(tokens.get("account_id")),
            api_key=api_key if isinstance(api_key, str) else None,
            last_refresh=_str_or_empty(data.get("last_refresh")),
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data["OPENAI_API_KEY"] = self.api_key
        data["tokens"] = {
            "id_token": self.id_token,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "account_id": self.account_id,
        }
        data["last_refresh"] = self.last_refresh
        return data

    def with_refreshed_tokens(
        self,
        access_token: str,
        id_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> "Credential":
        """Copy of this credential carrying freshly issued tokens"""
        return replace(
            self,
            access_token=access_token,
            id_token=id_token or self.id_token,
            refresh_token=refresh_token or self.refresh_token,
            last_refresh=utc_now_iso(),
        )


@dataclass(frozen=True)
class RateLimitWindow:
    """Usage of one rate limit window"""
    used_percent: float = 0
    window_minutes: int = 0
    resets_at: int = 0

    @classmethod
    def empty(cls) -> "RateLimitWindow":
        return cls(0, 0, 0)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RateLimitWindow":
        if not isinstance(data, dict):
            return cls.empty()
        return cls(
            used_percent=data.get("used_percent") or 0,
            window_minutes=int(data.get("window_minutes") or 0),
            resets_at=int(data.get("resets_at") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "used_percent": self.used_percent,
            "window_minutes": self.window_minutes,
            "resets_at": self.resets_at,
        }


@dataclass(frozen=True)
class Credits:
    """Credit balance information"""
    has_credits: bool = False
    unlimited: bool = False
    balance: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Credits":
        if not isinstance(data, dict):
            return cls()
        balance = data.get("balance")
        return cls(
            has_credits=bool(data.get("has_credits", False)),
            unlimited=bool(data.get("unlimited", False)),
            balance=None if balance is None else str(balance),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_credits": self.has_credits,
            "unlimited": self.unlimited,
            "balance": self.balance,
        }


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Normalized usage status for one identity

    Both windows are always present; a window without upstream data is
    all-zero.
    """
    primary: RateLimitWindow = field(default_factory=RateLimitWindow.empty)
    secondary: RateLimitWindow = field(default_factory=RateLimitWindow.empty)
    credits: Credits = field(default_factory=Credits)
    plan_type: str = "unknown"

    @classmethod
    def placeholder(cls, now: int) -> "RateLimitSnapshot":
        """Snapshot stored for a freshly saved account before the first sync"""
        return cls(
            primary=RateLimitWindow(0, 300, now + 300 * 60),
            secondary=RateLimitWindow(0, 10080, now + 10080 * 60),
            credits=Credits(),
            plan_type="unknown",
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RateLimitSnapshot":
        if not isinstance(data, dict):
            return cls()
        return cls(
            primary=RateLimitWindow.from_dict(data.get("primary")),
            secondary=RateLimitWindow.from_dict(data.get("secondary")),
            credits=Credits.from_dict(data.get("credits")),
            plan_type=data.get("plan_type") or "unknown",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict(),
            "credits": self.credits.to_dict(),
            "plan_type": self.plan_type,
        }


@dataclass
class AccountEntry:
    """A saved account: credential plus cached rate limit metadata

    Attributes:
        credential: Stored credential for the account
        rate_limits: Last known rate limit snapshot
        last_updated: Epoch seconds of the last successful sync, 0 if never
        notes: Optional free-form note
    """
    credential: Credential
    rate_limits: RateLimitSnapshot = field(default_factory=RateLimitSnapshot)
    last_updated: int = 0
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccountEntry":
        metadata = data.get("metadata") or {}
        notes = metadata.get("notes")
        return cls(
            credential=Credential.from_dict(data.get("auth") or {}),
            rate_limits=RateLimitSnapshot.from_dict(metadata.get("rate_limits")),
            last_updated=int(metadata.get("last_updated") or 0),
            notes=notes if isinstance(notes, str) and notes else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "rate_limits": self.rate_limits.to_dict(),
            "last_updated": self.last_updated,
        }
        if self.notes:
            metadata["notes"] = self.notes
        return {"auth": self.credential.to_dict(), "metadata": metadata}


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one rate limit sync call

    Attributes:
        snapshot: Normalized status, or None if nothing was fetched
        updated_credential: Credential with refreshed tokens, if a refresh happened
        status_code: HTTP status of the last usage request, None on transport failure
    """
    snapshot: Optional[RateLimitSnapshot] = None
    updated_credential: Optional[Credential] = None
    status_code: Optional[int] = None


@dataclass(frozen=True)
class LatestCredential:
    """Result of choosing between two credentials for the same identity"""
    credential: Credential
    from_preferred: bool
