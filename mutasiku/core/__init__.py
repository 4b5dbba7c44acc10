"""Core package exposing the client and its data models."""

from .client import MutasikuClient
from .data_models import (
    MIN_TRANSFER_AMOUNT,
    AccountAction,
    ErrorKind,
    ResponseEnvelope,
    TransferAction,
)

__all__ = [
    "MutasikuClient",
    "ResponseEnvelope",
    "ErrorKind",
    "AccountAction",
    "TransferAction",
    "MIN_TRANSFER_AMOUNT",
]
