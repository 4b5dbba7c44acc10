"""Async client for the Mutasiku account and transaction history API."""

import logging

from .config import API_BASE_URL, ClientConfig
from .core import (
    MIN_TRANSFER_AMOUNT,
    AccountAction,
    ErrorKind,
    MutasikuClient,
    ResponseEnvelope,
    TransferAction,
)

logging.getLogger("mutasiku").addHandler(logging.NullHandler())

__version__ = "1.1.0"

__all__ = [
    "MutasikuClient",
    "ClientConfig",
    "ResponseEnvelope",
    "ErrorKind",
    "AccountAction",
    "TransferAction",
    "MIN_TRANSFER_AMOUNT",
    "API_BASE_URL",
]
