from __future__ import annotations

import dataclasses
import logging
import math
import mimetypes
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Tuple, Union

import httpx

from ..config import API_BASE_URL, API_KEY_HEADER, API_PREFIX, DEFAULT_TIMEOUT, ClientConfig
from .data_models import (
    MIN_TRANSFER_AMOUNT,
    AccountAction,
    ResponseEnvelope,
    TransferAction,
)

BODY_METHODS = {"POST", "PUT", "PATCH"}
ACCOUNT_ID_REQUIRED = "Account ID is required"
AMOUNT_NOT_POSITIVE = "Amount must be a positive number"

QrImage = Union[bytes, bytearray, BinaryIO]


def _coerce_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, Decimal, str)):
        return None
    try:
        numeric = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    return numeric if math.isfinite(numeric) else None


def _wire_amount(value: Any) -> Union[int, float]:
    numeric = _coerce_amount(value)
    if numeric is None:
        raise ValueError(f"Not a numeric amount: {value!r}")
    return int(numeric) if numeric.is_integer() else numeric


def _transfer_amount_problem(value: Any) -> Optional[str]:
    numeric = _coerce_amount(value)
    if numeric is None or numeric <= 0:
        return AMOUNT_NOT_POSITIVE
    if numeric < MIN_TRANSFER_AMOUNT:
        return f"Minimum transfer amount is {MIN_TRANSFER_AMOUNT}"
    return None


def _missing_fields(fields: Mapping[str, Any]) -> List[str]:
    return [name for name, value in fields.items() if not value]


def _absent_fields(fields: Mapping[str, Any]) -> List[str]:
    return [name for name, value in fields.items() if value is None or value == ""]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (AccountAction, TransferAction)):
        return value.value
    return str(value)


def _query_params(data: Mapping[str, Any]) -> Dict[str, str]:
    return {key: _stringify(value) for key, value in data.items() if value is not None}


def _is_file_part(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, tuple)) or hasattr(value, "read")


def _split_multipart(data: Mapping[str, Any]) -> Tuple[Dict[str, str], Dict[str, Any]]:
    fields: Dict[str, str] = {}
    files: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if _is_file_part(value):
            files[key] = value
        else:
            fields[key] = _stringify(value)
    return fields, files


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    return response.json()


def _error_body(response: httpx.Response) -> Any:
    try:
        return _decode_body(response)
    except ValueError:
        return response.text or None


def _isoformat(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MutasikuClient:
    """Async façade over the Mutasiku REST API.

    Every public coroutine returns a :class:`ResponseEnvelope`; validation,
    remote and transport failures are reported in the envelope instead of
    being raised. The only exception surfaced to callers is the ``ValueError``
    raised at construction time when no API key is supplied.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        logger: Optional[logging.Logger] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = API_BASE_URL,
        timeout: Union[httpx.Timeout, float, None] = DEFAULT_TIMEOUT,
    ) -> None:
        if config is None:
            overrides: Dict[str, Any] = {"logger": logger} if logger is not None else {}
            config = ClientConfig(api_key=api_key, base_url=base_url, timeout=timeout, **overrides)
        elif logger is not None:
            config = dataclasses.replace(config, logger=logger)

        self._config = config
        self._logger = config.logger
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout)

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Path] = None,
        *,
        logger: Optional[logging.Logger] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "MutasikuClient":
        return cls(config=ClientConfig.from_env(env_file, logger=logger), http_client=http_client)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "MutasikuClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _log_failure(self, endpoint: str, detail: Any) -> None:
        self._logger.error(
            "API request failed for %s: %s",
            endpoint,
            detail,
            extra={"endpoint": endpoint, "error": detail},
        )

    # Request dispatcher

    async def make_api_request(
        self,
        endpoint: str,
        data: Optional[Mapping[str, Any]] = None,
        method: str = "POST",
        multipart: bool = False,
    ) -> ResponseEnvelope:
        """Issue one request against ``endpoint`` and normalize the outcome.

        Body methods send ``data`` as JSON, or as multipart form data when
        ``multipart`` is set (bytes, file objects and ``(filename, content,
        content_type)`` tuples become file parts). GET and DELETE send it as
        query parameters, skipping ``None`` values.
        """
        method = method.upper()
        headers = {API_KEY_HEADER: self._config.api_key}
        if not multipart:
            headers["Content-Type"] = "application/json"

        request_kwargs: Dict[str, Any] = {"headers": headers}
        if method in BODY_METHODS:
            if multipart:
                fields, files = _split_multipart(data or {})
                if not files:
                    # httpx falls back to urlencoded without at least one file part
                    files = {key: (None, value) for key, value in fields.items()}
                    fields = {}
                request_kwargs["data"] = fields
                request_kwargs["files"] = files
            elif data is not None:
                request_kwargs["json"] = dict(data)
        elif data:
            params = _query_params(data)
            if params:
                request_kwargs["params"] = params

        try:
            response = await self._client.request(method, self._config.url_for(endpoint), **request_kwargs)
            response.raise_for_status()
            return ResponseEnvelope.from_remote(_decode_body(response))
        except httpx.HTTPStatusError as exc:
            body = _error_body(exc.response)
            self._log_failure(endpoint, body)
            return ResponseEnvelope.remote_failure(body, exc.response.status_code)
        except (httpx.HTTPError, ValueError) as exc:
            self._log_failure(endpoint, str(exc))
            return ResponseEnvelope.transport_failure(str(exc))

    # Accounts

    async def get_accounts(
        self,
        limit: Optional[int] = None,
        page: Optional[int] = None,
        type: Optional[str] = None,
        is_active: Optional[bool] = None,
        provider_code: Optional[str] = None,
    ) -> ResponseEnvelope:
        params: Dict[str, Any] = {}
        if limit:
            params["limit"] = limit
        if page:
            params["page"] = page
        if type:
            params["type"] = type
        if is_active is not None:
            params["isActive"] = is_active
        if provider_code:
            params["providerCode"] = provider_code

        return await self.make_api_request(f"{API_PREFIX}/accounts", params, "GET")

    async def get_account_by_id(self, account_id: Optional[str]) -> ResponseEnvelope:
        if not account_id:
            return ResponseEnvelope.invalid(ACCOUNT_ID_REQUIRED)
        return await self.make_api_request(f"{API_PREFIX}/accounts/{account_id}", None, "GET")

    async def remove_account(self, account_id: Optional[str]) -> ResponseEnvelope:
        if not account_id:
            return ResponseEnvelope.invalid(ACCOUNT_ID_REQUIRED)
        return await self.make_api_request(f"{API_PREFIX}/accounts/{account_id}", None, "DELETE")

    # Transactions (mutasi)

    async def get_mutasi(
        self,
        limit: Optional[int] = None,
        page: Optional[int] = None,
        days: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        account_id: Optional[str] = None,
        type: Optional[str] = None,
        provider_code: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        search: Optional[str] = None,
    ) -> ResponseEnvelope:
        """List transaction history.

        ``days`` takes precedence over ``start_date``/``end_date`` and covers
        the window ending now (UTC).
        """
        params: Dict[str, Any] = {"limit": limit or 10, "page": page or 1}

        if days:
            end = datetime.now(timezone.utc)
            start = end - timedelta(days=days)
            params["startDate"] = _isoformat(start)
            params["endDate"] = _isoformat(end)
        else:
            if start_date:
                params["startDate"] = start_date
            if end_date:
                params["endDate"] = end_date

        if account_id:
            params["accountId"] = account_id
        if type:
            params["type"] = str(type).upper()
        if provider_code:
            params["providerCode"] = str(provider_code).upper()
        if min_amount is not None:
            params["minAmount"] = min_amount
        if max_amount is not None:
            params["maxAmount"] = max_amount
        if search:
            params["search"] = search

        return await self.make_api_request(f"{API_PREFIX}/mutations", params, "GET")

    # Account linking

    async def add_account(
        self,
        action: Union[AccountAction, str, None] = None,
        phone_number: Optional[str] = None,
        account_name: Optional[str] = None,
        interval_minutes: Optional[int] = None,
        verification_method: Optional[str] = None,
        provider_code: Optional[str] = None,
        pin: Optional[str] = None,
    ) -> ResponseEnvelope:
        """Step 1 of account linking: register the account and request an OTP.

        The returned envelope carries the ``sessionId`` the caller must pass
        to :meth:`verify_account`.
        """
        missing = _missing_fields(
            {
                "action": action,
                "phoneNumber": phone_number,
                "accountName": account_name,
                "intervalMinutes": interval_minutes,
                "verificationMethod": verification_method,
                "providerCode": provider_code,
            }
        )
        if missing:
            return ResponseEnvelope.invalid(f"Required fields missing: {', '.join(missing)}")

        parsed = AccountAction.parse(action)
        if parsed is None:
            return ResponseEnvelope.invalid(f"Unsupported account action: {action}")
        if not parsed.is_otp_request:
            return ResponseEnvelope.invalid(f"Action {parsed.value} cannot be used to request an OTP")
        if parsed.requires_pin and not pin:
            return ResponseEnvelope.invalid(f"PIN is required for {parsed.provider} accounts")

        payload: Dict[str, Any] = {
            "action": parsed.value,
            "phoneNumber": phone_number,
            "providerCode": provider_code,
            "accountName": account_name,
            "intervalMinutes": interval_minutes or 1,
            "verificationMethod": verification_method or "SMS",
        }
        if parsed.requires_pin:
            payload["pin"] = pin

        return await self.make_api_request(f"{API_PREFIX}/accounts", payload)

    async def verify_account(
        self,
        action: Union[AccountAction, str, None] = None,
        session_id: Optional[str] = None,
        otp: Optional[str] = None,
        pin: Optional[str] = None,
    ) -> ResponseEnvelope:
        """Step 2 of account linking: confirm the OTP for a pending session."""
        missing = _missing_fields({"action": action, "sessionId": session_id, "otp": otp})
        if missing:
            return ResponseEnvelope.invalid(f"Required fields missing: {', '.join(missing)}")

        parsed = AccountAction.parse(action)
        if parsed is None:
            return ResponseEnvelope.invalid(f"Unsupported account action: {action}")
        if not parsed.is_otp_verification:
            return ResponseEnvelope.invalid(f"Action {parsed.value} cannot be used to verify an OTP")
        if parsed.requires_pin and not pin:
            return ResponseEnvelope.invalid(f"PIN is required for {parsed.provider} account verification")

        payload: Dict[str, Any] = {"action": parsed.value, "sessionId": session_id, "otp": otp}
        if parsed.requires_pin:
            payload["pin"] = pin

        return await self.make_api_request(f"{API_PREFIX}/accounts", payload)

    async def add_dana_account(
        self,
        phone_number: Optional[str],
        pin: Optional[str],
        account_name: Optional[str],
        interval_minutes: int = 1,
        verification_method: str = "SMS",
    ) -> ResponseEnvelope:
        return await self.add_account(
            action=AccountAction.DANA_SEND_OTP,
            phone_number=phone_number,
            account_name=account_name,
            interval_minutes=interval_minutes,
            verification_method=verification_method,
            provider_code=AccountAction.DANA_SEND_OTP.provider,
            pin=pin,
        )

    async def verify_dana_account(self, session_id: Optional[str], otp: Optional[str]) -> ResponseEnvelope:
        return await self.verify_account(action=AccountAction.DANA_VERIFY_OTP, session_id=session_id, otp=otp)

    # Transfers

    def _transfer_endpoint(self, account_id: str) -> str:
        return f"{API_PREFIX}/accounts/{account_id}/transfer"

    async def get_transfer_banks(self, account_id: Optional[str]) -> ResponseEnvelope:
        if not account_id:
            return ResponseEnvelope.invalid(ACCOUNT_ID_REQUIRED)
        payload = {"action": TransferAction.BANK_LIST.value}
        return await self.make_api_request(self._transfer_endpoint(account_id), payload)

    async def pay_qris(
        self,
        account_id: Optional[str],
        qr_image: Optional[QrImage],
        amount: Any,
        filename: str = "qris.png",
    ) -> ResponseEnvelope:
        """Pay a QRIS code from the given image; sent as multipart form data."""
        if not account_id:
            return ResponseEnvelope.invalid(ACCOUNT_ID_REQUIRED)
        if not qr_image:
            return ResponseEnvelope.invalid("QR image is required")
        numeric = _coerce_amount(amount)
        if numeric is None or numeric <= 0:
            return ResponseEnvelope.invalid(AMOUNT_NOT_POSITIVE)

        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        image = bytes(qr_image) if isinstance(qr_image, bytearray) else qr_image
        payload = {
            "action": TransferAction.QRIS_CREATE.value,
            "qrImage": (filename, image, content_type),
            "amount": str(_wire_amount(amount)),
        }
        return await self.make_api_request(self._transfer_endpoint(account_id), payload, "POST", multipart=True)

    async def init_bank_transfer(
        self,
        account_id: Optional[str],
        account_number: Optional[str] = None,
        amount: Any = None,
        inst_id: Optional[str] = None,
        inst_local_name: Optional[str] = None,
        pay_method: Optional[str] = None,
        pay_option: Optional[str] = None,
    ) -> ResponseEnvelope:
        """Step 1 of a bank transfer: validate the destination and quote the transfer."""
        if not account_id:
            return ResponseEnvelope.invalid(ACCOUNT_ID_REQUIRED)

        fields: Dict[str, Any] = {
            "accountNumber": account_number,
            "amount": amount,
            "instId": inst_id,
            "instLocalName": inst_local_name,
            "payMethod": pay_method,
            "payOption": pay_option,
        }
        missing = _absent_fields(fields)
        if missing:
            return ResponseEnvelope.invalid(f"Missing required fields: {', '.join(missing)}")
        problem = _transfer_amount_problem(amount)
        if problem:
            return ResponseEnvelope.invalid(problem)

        fields["amount"] = _wire_amount(amount)
        payload = {"action": TransferAction.BANK_INIT.value, **fields}
        return await self.make_api_request(self._transfer_endpoint(account_id), payload)

    async def create_bank_transfer(
        self,
        account_id: Optional[str],
        amount: Any = None,
        bank_account_index_no: Optional[str] = None,
    ) -> ResponseEnvelope:
        """Step 2 of a bank transfer: confirm it against a destination returned by step 1."""
        if not account_id:
            return ResponseEnvelope.invalid(ACCOUNT_ID_REQUIRED)

        fields: Dict[str, Any] = {"amount": amount, "bankAccountIndexNo": bank_account_index_no}
        missing = _absent_fields(fields)
        if missing:
            return ResponseEnvelope.invalid(f"Missing required fields: {', '.join(missing)}")
        problem = _transfer_amount_problem(amount)
        if problem:
            return ResponseEnvelope.invalid(problem)

        fields["amount"] = _wire_amount(amount)
        payload = {"action": TransferAction.BANK_CREATE.value, **fields}
        return await self.make_api_request(self._transfer_endpoint(account_id), payload)
