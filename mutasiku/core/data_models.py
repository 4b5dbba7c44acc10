"""Data models shared by the Mutasiku client."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr

MIN_TRANSFER_AMOUNT = 10_000
GENERIC_FAILURE_MESSAGE = "API request failed"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    REMOTE = "remote"
    TRANSPORT = "transport"


class AccountAction(str, Enum):
    """Account-linking steps accepted by `POST /accounts`."""

    DANA_SEND_OTP = "dana-send-otp"
    DANA_VERIFY_OTP = "dana-verify-otp"
    OVO_SEND_OTP = "ovo-send-otp"
    OVO_VERIFY_OTP = "ovo-verify-otp"

    @property
    def is_otp_request(self) -> bool:
        return self.value.endswith("-send-otp")

    @property
    def is_otp_verification(self) -> bool:
        return self.value.endswith("-verify-otp")

    @property
    def requires_pin(self) -> bool:
        return self in _PIN_REQUIRED_ACTIONS

    @property
    def provider(self) -> str:
        return self.value.split("-", 1)[0].upper()

    @classmethod
    def parse(cls, value: Any) -> Optional["AccountAction"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


_PIN_REQUIRED_ACTIONS = frozenset({AccountAction.DANA_SEND_OTP, AccountAction.OVO_VERIFY_OTP})


class TransferAction(str, Enum):
    """Action tags posted to `/accounts/{id}/transfer`."""

    BANK_LIST = "dana-bank-list"
    QRIS_CREATE = "dana-qris-create"
    BANK_INIT = "dana-bank-init"
    BANK_CREATE = "dana-bank-create"


class ResponseEnvelope(BaseModel):
    """Uniform result of every client call.

    Successful calls carry the remote body verbatim, including any extra keys
    such as ``sessionId``. Failures are synthesized locally and remember which
    kind of failure produced them.
    """

    model_config = ConfigDict(extra="allow")

    success: Any
    status: Optional[Any] = None
    message: Optional[Any] = None
    data: Optional[Any] = None
    error: Optional[Any] = None

    _error_kind: Optional[ErrorKind] = PrivateAttr(default=None)
    _status_code: Optional[int] = PrivateAttr(default=None)

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self._error_kind

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    def to_dict(self) -> Dict[str, Any]:
        payload = self.model_dump(exclude_unset=True)
        payload.update(self.model_extra or {})
        return payload

    @classmethod
    def from_remote(cls, body: Any) -> "ResponseEnvelope":
        if body is None:
            return cls(success=True)
        if not isinstance(body, dict):
            return cls(success=True, data=body)
        if "success" not in body:
            body = {"success": True, **body}
        # remote fields are passed through untouched
        return cls.model_construct(**body)

    @classmethod
    def invalid(cls, message: str) -> "ResponseEnvelope":
        envelope = cls(success=False, message=message)
        envelope._error_kind = ErrorKind.VALIDATION
        return envelope

    @classmethod
    def remote_failure(cls, body: Any, status_code: Optional[int] = None) -> "ResponseEnvelope":
        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, str):
            message = None
        envelope = cls(
            success=False,
            status="error",
            message=message or GENERIC_FAILURE_MESSAGE,
            error=body,
        )
        envelope._error_kind = ErrorKind.REMOTE
        envelope._status_code = status_code
        return envelope

    @classmethod
    def transport_failure(cls, message: Optional[str]) -> "ResponseEnvelope":
        envelope = cls(success=False, status="error", message=message or GENERIC_FAILURE_MESSAGE)
        envelope._error_kind = ErrorKind.TRANSPORT
        return envelope
