"""Constants and request helpers shared across client tests."""

from __future__ import annotations

import json
from typing import Any

import httpx

from mutasiku import API_BASE_URL

API_KEY = "test-api-key"
ACCOUNT_ID = "acc-123"
ACCOUNTS_PATH = "/api/v1/accounts"
MUTATIONS_PATH = "/api/v1/mutations"
ACCOUNTS_URL = f"{API_BASE_URL}{ACCOUNTS_PATH}"
TRANSFER_URL = f"{ACCOUNTS_URL}/{ACCOUNT_ID}/transfer"


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)
