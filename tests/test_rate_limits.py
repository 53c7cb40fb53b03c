import json
import math

import httpx
import pytest

from codex_accounts import (
    Credential,
    Credits,
    RateLimitClient,
    RateLimitSnapshot,
    RateLimitWindow,
    snapshot_from_payload,
    window_minutes_from_seconds,
)
from codex_accounts.payloads import RateLimitStatusPayload
from settings import CHATGPT_CLIENT_ID, REFRESH_SCOPE
from conftest import FULL_USAGE_PAYLOAD, make_credential, make_jwt


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, None), (-5, None), (60, 1), (61, 2), (3600, 60), (18000, 300), (None, None), (math.inf, None), (math.nan, None)],
)
def test_window_minutes_from_seconds(seconds, expected) -> None:
    assert window_minutes_from_seconds(seconds) == expected


def test_snapshot_from_full_payload() -> None:
    snapshot = snapshot_from_payload(RateLimitStatusPayload.model_validate(FULL_USAGE_PAYLOAD))
    assert snapshot == RateLimitSnapshot(
        primary=RateLimitWindow(used_percent=42, window_minutes=300, resets_at=1_700_001_200),
        secondary=RateLimitWindow(used_percent=7.5, window_minutes=10080, resets_at=1_700_086_400),
        credits=Credits(has_credits=True, unlimited=False, balance="12.50"),
        plan_type="plus",
    )


def test_snapshot_from_empty_payload_is_all_zero() -> None:
    snapshot = snapshot_from_payload(RateLimitStatusPayload.model_validate({}))
    assert snapshot.primary == RateLimitWindow(0, 0, 0)
    assert snapshot.secondary == RateLimitWindow(0, 0, 0)
    assert snapshot.credits == Credits(False, False, None)
    assert snapshot.plan_type == "unknown"


def test_snapshot_with_partial_window() -> None:
    payload = RateLimitStatusPayload.model_validate(
        {"plan_type": "pro", "rate_limit": {"primary_window": {"used_percent": 3, "limit_window_seconds": 0}}}
    )
    snapshot = snapshot_from_payload(payload)
    assert snapshot.primary == RateLimitWindow(3, 0, 0)
    assert snapshot.secondary == RateLimitWindow.empty()


def test_numeric_credit_balance_becomes_string() -> None:
    payload = RateLimitStatusPayload.model_validate({"credits": {"has_credits": True, "unlimited": False, "balance": 5}})
    assert snapshot_from_payload(payload).credits.balance == "5"


@pytest.mark.asyncio
async def test_missing_access_token_skips_network(fake_chatgpt, rate_limit_client) -> None:
    result = await rate_limit_client.sync(Credential(id_token="x", access_token=""))
    assert (result.snapshot, result.updated_credential, result.status_code) == (None, None, None)
    assert fake_chatgpt.usage_requests == []


@pytest.mark.asyncio
async def test_success_returns_snapshot_without_refresh(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.append(FULL_USAGE_PAYLOAD)
    credential = make_credential(access_token="access-1", account_id="acct-9")

    result = await rate_limit_client.sync(credential)

    assert result.status_code == 200
    assert result.updated_credential is None
    assert result.snapshot == snapshot_from_payload(RateLimitStatusPayload.model_validate(FULL_USAGE_PAYLOAD))
    assert fake_chatgpt.refresh_requests == []

    request = fake_chatgpt.usage_requests[0]
    assert request.method == "GET"
    assert request.headers["Authorization"] == "Bearer access-1"
    assert request.headers["ChatGPT-Account-Id"] == "acct-9"
    assert "codex_cli_rs" in request.headers["User-Agent"]


@pytest.mark.asyncio
async def test_account_id_header_omitted_when_empty(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.append(FULL_USAGE_PAYLOAD)
    await rate_limit_client.sync(make_credential(account_id=""))
    assert "ChatGPT-Account-Id" not in fake_chatgpt.usage_requests[0].headers


@pytest.mark.asyncio
async def test_unauthorized_refreshes_and_retries_once(fake_chatgpt, rate_limit_client) -> None:
    new_id_token = make_jwt({"email": "alice@example.com", "iat": 1_700_009_999})
    fake_chatgpt.usage_responses.extend([401, FULL_USAGE_PAYLOAD])
    fake_chatgpt.refresh_responses.append(
        {"access_token": "access-new", "id_token": new_id_token, "refresh_token": "refresh-new"}
    )
    original = make_credential(access_token="access-old", refresh_token="refresh-old")

    result = await rate_limit_client.sync(original, allow_refresh=True)

    assert result.status_code == 200
    assert result.snapshot is not None
    assert result.snapshot.plan_type == "plus"
    assert result.updated_credential is not None
    assert result.updated_credential.access_token == "access-new"
    assert result.updated_credential.id_token == new_id_token
    assert result.updated_credential.refresh_token == "refresh-new"
    assert result.updated_credential.account_id == original.account_id
    assert result.updated_credential.last_refresh != original.last_refresh
    assert result.updated_credential.last_refresh.endswith("Z")
    # original record is untouched
    assert original.access_token == "access-old"

    assert len(fake_chatgpt.refresh_requests) == 1
    body = json.loads(fake_chatgpt.refresh_requests[0].content)
    assert body == {
        "client_id": CHATGPT_CLIENT_ID,
        "grant_type": "refresh_token",
        "refresh_token": "refresh-old",
        "scope": REFRESH_SCOPE,
    }
    assert [r.headers["Authorization"] for r in fake_chatgpt.usage_requests] == [
        "Bearer access-old",
        "Bearer access-new",
    ]


@pytest.mark.asyncio
async def test_refresh_keeps_tokens_missing_from_response(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.extend([401, FULL_USAGE_PAYLOAD])
    fake_chatgpt.refresh_responses.append({"access_token": "access-new"})
    original = make_credential(refresh_token="refresh-old")

    result = await rate_limit_client.sync(original)

    assert result.updated_credential.id_token == original.id_token
    assert result.updated_credential.refresh_token == "refresh-old"


@pytest.mark.asyncio
async def test_unauthorized_without_refresh_permission(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.append(401)

    result = await rate_limit_client.sync(make_credential(), allow_refresh=False)

    assert (result.snapshot, result.updated_credential, result.status_code) == (None, None, 401)
    assert fake_chatgpt.refresh_requests == []
    assert len(fake_chatgpt.usage_requests) == 1


@pytest.mark.asyncio
async def test_unauthorized_without_refresh_token(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.append(401)

    result = await rate_limit_client.sync(make_credential(refresh_token=""))

    assert (result.snapshot, result.updated_credential, result.status_code) == (None, None, 401)
    assert fake_chatgpt.refresh_requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("refresh_response", [400, {"id_token": "only-id"}, httpx.Response(200, text="not json")])
async def test_failed_refresh_reports_original_status(fake_chatgpt, rate_limit_client, refresh_response) -> None:
    fake_chatgpt.usage_responses.append(401)
    fake_chatgpt.refresh_responses.append(refresh_response)

    result = await rate_limit_client.sync(make_credential())

    assert (result.snapshot, result.updated_credential, result.status_code) == (None, None, 401)
    assert len(fake_chatgpt.usage_requests) == 1


@pytest.mark.asyncio
async def test_refresh_transport_failure(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.append(401)
    fake_chatgpt.refresh_responses.append(httpx.ConnectError("connection refused"))

    result = await rate_limit_client.sync(make_credential())

    assert (result.snapshot, result.updated_credential, result.status_code) == (None, None, 401)


@pytest.mark.asyncio
async def test_repeated_unauthorized_never_loops(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.extend([401, 401])
    fake_chatgpt.refresh_responses.append({"access_token": "access-new"})

    result = await rate_limit_client.sync(make_credential())

    assert result.snapshot is None
    assert result.status_code == 401
    assert result.updated_credential is not None
    assert result.updated_credential.access_token == "access-new"
    assert len(fake_chatgpt.refresh_requests) == 1
    assert len(fake_chatgpt.usage_requests) == 2


@pytest.mark.asyncio
async def test_retry_transport_failure_still_returns_refreshed_credential(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.extend([401, httpx.ReadTimeout("timed out")])
    fake_chatgpt.refresh_responses.append({"access_token": "access-new"})

    result = await rate_limit_client.sync(make_credential())

    assert result.snapshot is None
    assert result.status_code is None
    assert result.updated_credential.access_token == "access-new"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 429, 500])
async def test_other_errors_do_not_refresh(fake_chatgpt, rate_limit_client, status) -> None:
    fake_chatgpt.usage_responses.append(status)

    result = await rate_limit_client.sync(make_credential())

    assert (result.snapshot, result.updated_credential, result.status_code) == (None, None, status)
    assert fake_chatgpt.refresh_requests == []


@pytest.mark.asyncio
async def test_transport_failure_has_no_status(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.append(httpx.ConnectError("connection refused"))

    result = await rate_limit_client.sync(make_credential())

    assert (result.snapshot, result.updated_credential, result.status_code) == (None, None, None)


@pytest.mark.asyncio
async def test_unparseable_success_body_is_treated_as_no_payload(fake_chatgpt, rate_limit_client) -> None:
    fake_chatgpt.usage_responses.append(httpx.Response(200, text="<html>maintenance</html>"))

    result = await rate_limit_client.sync(make_credential())

    assert (result.snapshot, result.updated_credential, result.status_code) == (None, None, 200)
    assert fake_chatgpt.refresh_requests == []


@pytest.mark.asyncio
async def test_null_fields_in_success_body_still_yield_snapshot(fake_chatgpt, rate_limit_client) -> None:
    body = json.loads(json.dumps(FULL_USAGE_PAYLOAD))
    body["rate_limit"]["primary_window"]["used_percent"] = None
    body["credits"]["has_credits"] = None
    body["credits"]["unlimited"] = None
    fake_chatgpt.usage_responses.append(body)

    result = await rate_limit_client.sync(make_credential())

    assert result.status_code == 200
    assert result.snapshot.primary == RateLimitWindow(used_percent=0, window_minutes=300, resets_at=1_700_001_200)
    assert result.snapshot.secondary.used_percent == 7.5
    assert result.snapshot.credits == Credits(has_credits=False, unlimited=False, balance="12.50")
    assert fake_chatgpt.refresh_requests == []


@pytest.mark.asyncio
async def test_client_opens_its_own_http_client(monkeypatch: pytest.MonkeyPatch, fake_chatgpt) -> None:
    fake_chatgpt.usage_responses.append(FULL_USAGE_PAYLOAD)
    transport = httpx.MockTransport(fake_chatgpt.handler)
    real_async_client = httpx.AsyncClient
    monkeypatch.setattr(
        "codex_accounts.rate_limits.httpx.AsyncClient",
        lambda *args, **kwargs: real_async_client(transport=transport),
    )

    result = await RateLimitClient().sync(make_credential())

    assert result.status_code == 200
