import base64
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

from codex_accounts import AccountStore, Credential, RateLimitClient
from settings import RATE_LIMIT_URL, REFRESH_TOKEN_URL


FULL_USAGE_PAYLOAD: Dict[str, Any] = {
    "plan_type": "plus",
    "rate_limit": {
        "primary_window": {
            "used_percent": 42,
            "limit_window_seconds": 18000,
            "reset_after_seconds": 1200,
            "reset_at": 1_700_001_200,
        },
        "secondary_window": {
            "used_percent": 7.5,
            "limit_window_seconds": 604800,
            "reset_after_seconds": 86400,
            "reset_at": 1_700_086_400,
        },
    },
    "credits": {"has_credits": True, "unlimited": False, "balance": "12.50"},
}


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def make_jwt(claims: Dict[str, Any]) -> str:
    header = _b64url(json.dumps({"alg": "none", "typ": "JWT"}).encode())
    payload = _b64url(json.dumps(claims).encode())
    return f"{header}.{payload}.signature"


def make_credential(
    email: str = "alice@example.com",
    iat: Optional[int] = 1_700_000_000,
    access_token: Optional[str] = None,
    refresh_token: str = "refresh-1",
    account_id: str = "acct-1",
) -> Credential:
    claims: Dict[str, Any] = {"email": email}
    if iat is not None:
        claims["iat"] = iat
    return Credential(
        id_token=make_jwt(claims),
        access_token=access_token if access_token is not None else f"access-{email}-{iat}",
        refresh_token=refresh_token,
        account_id=account_id,
        api_key=None,
        last_refresh="2023-11-14T22:13:20Z",
    )


class FakeChatGPT:
    """Scripted stand-in for the usage and token endpoints

    usage_responses and refresh_responses are consumed in order; each item
    is either an httpx.Response, an int status code, a JSON-able dict (200),
    or an exception instance to raise.
    """

    def __init__(self):
        self.usage_responses: List[Any] = []
        self.refresh_responses: List[Any] = []
        self.usage_requests: List[httpx.Request] = []
        self.refresh_requests: List[httpx.Request] = []

    def _respond(self, item: Any, request: httpx.Request) -> httpx.Response:
        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        if isinstance(item, int):
            return httpx.Response(item, json={"detail": "error"})
        return httpx.Response(200, json=item)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == RATE_LIMIT_URL:
            self.usage_requests.append(request)
            return self._respond(self.usage_responses.pop(0), request)
        if url == REFRESH_TOKEN_URL:
            self.refresh_requests.append(request)
            return self._respond(self.refresh_responses.pop(0), request)
        return httpx.Response(404)

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_chatgpt() -> FakeChatGPT:
    return FakeChatGPT()


@pytest.fixture
def rate_limit_client(fake_chatgpt: FakeChatGPT) -> RateLimitClient:
    return RateLimitClient(fake_chatgpt.http_client())


@pytest.fixture
def store(tmp_path: Path) -> AccountStore:
    return AccountStore(auth_file=tmp_path / "auth.json", auths_file=tmp_path / "_auths.json")


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
