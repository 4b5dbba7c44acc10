"""Tests for account listing, lookup and the OTP linking flow."""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from respx import MockRouter

from mutasiku import AccountAction, ErrorKind, MutasikuClient
from tests._helpers import ACCOUNTS_PATH, ACCOUNTS_URL, request_json

DANA_ACCOUNT: dict[str, Any] = {
    "action": "dana-send-otp",
    "phone_number": "081234567890",
    "account_name": "Toko Utama",
    "interval_minutes": 5,
    "verification_method": "whatsapp",
    "provider_code": "dana",
    "pin": "123456",
}


@pytest.mark.asyncio
async def test_get_accounts_sends_only_given_filters(client: MutasikuClient, respx_mock: MockRouter) -> None:
    route = respx_mock.get(path=ACCOUNTS_PATH).mock(
        return_value=httpx.Response(200, json={"success": True, "data": [{"id": "acc-1"}]})
    )

    envelope = await client.get_accounts(limit=5, is_active=False, provider_code="DANA")

    assert envelope.data == [{"id": "acc-1"}]
    assert dict(route.calls.last.request.url.params) == {
        "limit": "5",
        "isActive": "false",
        "providerCode": "DANA",
    }


@pytest.mark.asyncio
async def test_get_accounts_without_filters(client: MutasikuClient, respx_mock: MockRouter) -> None:
    route = respx_mock.get(path=ACCOUNTS_PATH).mock(return_value=httpx.Response(200, json={"success": True}))

    await client.get_accounts()

    assert route.calls.last.request.url.query == b""


@pytest.mark.asyncio
async def test_get_account_by_id(client: MutasikuClient, respx_mock: MockRouter) -> None:
    route = respx_mock.get(f"{ACCOUNTS_URL}/acc-1").mock(
        return_value=httpx.Response(200, json={"success": True, "data": {"id": "acc-1"}})
    )

    envelope = await client.get_account_by_id("acc-1")

    assert route.called
    assert envelope.data == {"id": "acc-1"}


@pytest.mark.asyncio
async def test_remove_account_uses_delete(client: MutasikuClient, respx_mock: MockRouter) -> None:
    route = respx_mock.delete(f"{ACCOUNTS_URL}/acc-1").mock(return_value=httpx.Response(200, json={"success": True}))

    envelope = await client.remove_account("acc-1")

    assert route.call_count == 1
    assert envelope.success is True


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["get_account_by_id", "remove_account"])
@pytest.mark.parametrize("account_id", [None, ""])
async def test_account_id_is_required(
    client: MutasikuClient, respx_mock: MockRouter, operation: str, account_id: Any
) -> None:
    envelope = await getattr(client, operation)(account_id)

    assert envelope.to_dict() == {"success": False, "message": "Account ID is required"}
    assert len(respx_mock.calls) == 0


@pytest.mark.asyncio
async def test_add_account_sends_dana_payload_with_pin(client: MutasikuClient, respx_mock: MockRouter) -> None:
    route = respx_mock.post(ACCOUNTS_URL).mock(
        return_value=httpx.Response(200, json={"success": True, "sessionId": "sess-1"})
    )

    envelope = await client.add_account(**DANA_ACCOUNT)

    assert envelope.sessionId == "sess-1"
    assert request_json(route.calls.last.request) == {
        "action": "dana-send-otp",
        "phoneNumber": "081234567890",
        "providerCode": "dana",
        "accountName": "Toko Utama",
        "intervalMinutes": 5,
        "verificationMethod": "whatsapp",
        "pin": "123456",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("field", "wire_name"),
    [
        ("action", "action"),
        ("phone_number", "phoneNumber"),
        ("account_name", "accountName"),
        ("interval_minutes", "intervalMinutes"),
        ("verification_method", "verificationMethod"),
        ("provider_code", "providerCode"),
    ],
)
async def test_add_account_required_fields(
    client: MutasikuClient, respx_mock: MockRouter, field: str, wire_name: str
) -> None:
    envelope = await client.add_account(**{**DANA_ACCOUNT, field: None})

    assert envelope.success is False
    assert wire_name in envelope.message
    assert envelope.error_kind is ErrorKind.VALIDATION
    assert len(respx_mock.calls) == 0


@pytest.mark.asyncio
async def test_add_account_dana_requires_pin(client: MutasikuClient, respx_mock: MockRouter) -> None:
    envelope = await client.add_account(**{**DANA_ACCOUNT, "pin": None})

    assert envelope.to_dict() == {"success": False, "message": "PIN is required for DANA accounts"}
    assert len(respx_mock.calls) == 0


@pytest.mark.asyncio
async def test_add_account_ovo_omits_pin(client: MutasikuClient, respx_mock: MockRouter) -> None:
    route = respx_mock.post(ACCOUNTS_URL).mock(return_value=httpx.Response(200, json={"success": True}))

    await client.add_account(**{**DANA_ACCOUNT, "action": AccountAction.OVO_SEND_OTP, "provider_code": "ovo"})

    payload = request_json(route.calls.last.request)
    assert payload["action"] == "ovo-send-otp"
    assert "pin" not in payload


@pytest.mark.asyncio
async def test_add_account_rejects_unknown_action(client: MutasikuClient, respx_mock: MockRouter) -> None:
    envelope = await client.add_account(**{**DANA_ACCOUNT, "action": "gopay-send-otp"})

    assert envelope.success is False
    assert "gopay-send-otp" in envelope.message
    assert len(respx_mock.calls) == 0


@pytest.mark.asyncio
async def test_add_account_rejects_verify_action(client: MutasikuClient, respx_mock: MockRouter) -> None:
    envelope = await client.add_account(**{**DANA_ACCOUNT, "action": "dana-verify-otp"})

    assert envelope.success is False
    assert len(respx_mock.calls) == 0


@pytest.mark.asyncio
async def test_verify_account_payload(client: MutasikuClient, respx_mock: MockRouter) -> None:
    route = respx_mock.post(ACCOUNTS_URL).mock(return_value=httpx.Response(200, json={"success": True}))

    await client.verify_account(action="dana-verify-otp", session_id="sess-1", otp="654321", pin="999999")

    assert request_json(route.calls.last.request) == {
        "action": "dana-verify-otp",
        "sessionId": "sess-1",
        "otp": "654321",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("kwargs", "wire_name"),
    [
        ({"session_id": "sess-1", "otp": "1"}, "action"),
        ({"action": "dana-verify-otp", "otp": "1"}, "sessionId"),
        ({"action": "dana-verify-otp", "session_id": "sess-1"}, "otp"),
    ],
)
async def test_verify_account_required_fields(
    client: MutasikuClient, respx_mock: MockRouter, kwargs: dict[str, str], wire_name: str
) -> None:
    envelope = await client.verify_account(**kwargs)

    assert envelope.success is False
    assert wire_name in envelope.message
    assert len(respx_mock.calls) == 0


@pytest.mark.asyncio
async def test_verify_ovo_requires_pin(client: MutasikuClient, respx_mock: MockRouter) -> None:
    envelope = await client.verify_account(action="ovo-verify-otp", session_id="sess-1", otp="111111")

    assert envelope.to_dict() == {
        "success": False,
        "message": "PIN is required for OVO account verification",
    }
    assert len(respx_mock.calls) == 0


@pytest.mark.asyncio
async def test_verify_ovo_sends_pin(client: MutasikuClient, respx_mock: MockRouter) -> None:
    route = respx_mock.post(ACCOUNTS_URL).mock(return_value=httpx.Response(200, json={"success": True}))

    await client.verify_account(action="ovo-verify-otp", session_id="sess-1", otp="111111", pin="222222")

    assert request_json(route.calls.last.request)["pin"] == "222222"


@pytest.mark.asyncio
async def test_dana_linking_round_trip(client: MutasikuClient, respx_mock: MockRouter) -> None:
    route = respx_mock.post(ACCOUNTS_URL).mock(
        side_effect=[
            httpx.Response(200, json={"success": True, "sessionId": "sess-7"}),
            httpx.Response(200, json={"success": True, "data": {"id": "acc-9"}}),
        ]
    )

    otp_request = await client.add_dana_account(phone_number="081200000000", pin="123456", account_name="Kasir")
    verification = await client.verify_dana_account(session_id=otp_request.sessionId, otp="424242")

    assert verification.data == {"id": "acc-9"}
    first, second = (call.request for call in route.calls)
    assert request_json(first)["providerCode"] == "DANA"
    assert request_json(first)["intervalMinutes"] == 1
    assert request_json(first)["verificationMethod"] == "SMS"
    assert request_json(second) == {"action": "dana-verify-otp", "sessionId": "sess-7", "otp": "424242"}


def test_account_action_metadata() -> None:
    assert AccountAction.DANA_SEND_OTP.is_otp_request
    assert AccountAction.DANA_SEND_OTP.requires_pin
    assert not AccountAction.DANA_VERIFY_OTP.requires_pin
    assert AccountAction.OVO_VERIFY_OTP.is_otp_verification
    assert AccountAction.OVO_VERIFY_OTP.requires_pin
    assert AccountAction.parse("OVO-SEND-OTP") is AccountAction.OVO_SEND_OTP
    assert AccountAction.parse("bca-login") is None
