"""Shared fixtures for Mutasiku client tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest

from mutasiku import MutasikuClient
from tests._helpers import API_KEY


@pytest.fixture
async def client() -> AsyncIterator[MutasikuClient]:
    """Client backed by a real httpx client so respx can intercept it."""
    async with httpx.AsyncClient() as http_client:
        yield MutasikuClient(API_KEY, http_client=http_client)
