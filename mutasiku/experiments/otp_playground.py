"""
Experimental helper to walk through DANA account linking against the live API.

It lists accounts, pulls the last 30 days of mutasi for the first one, then
requests an OTP for a DANA account and verifies the code typed at the prompt.
All credentials come from environment variables (or a local `.env`).

Usage:
    export MUTASIKU_API_KEY=...
    export DANA_PHONE_NUMBER=08xxxxxxxxxx
    export DANA_PIN=xxxxxx
    python -m mutasiku.experiments.otp_playground
"""

from __future__ import annotations

import asyncio
import json
import logging
import os

from mutasiku import MutasikuClient, ResponseEnvelope

ACCOUNT_NAME = os.getenv("DANA_ACCOUNT_NAME", "playground")
VERIFICATION_METHOD = os.getenv("DANA_VERIFICATION_METHOD", "SMS")


def _dump(label: str, envelope: ResponseEnvelope) -> None:
    print(f"{label}:")
    print(json.dumps(envelope.to_dict(), indent=2, ensure_ascii=False, default=str))


async def show_accounts(client: MutasikuClient) -> None:
    accounts = await client.get_accounts(limit=5)
    _dump("📋 Accounts", accounts)

    if not accounts.success or not isinstance(accounts.data, list) or not accounts.data:
        return

    account_id = accounts.data[0].get("id")
    _dump(f"🏦 Account {account_id}", await client.get_account_by_id(account_id))
    _dump("💸 Mutasi (30 days)", await client.get_mutasi(account_id=account_id, days=30, limit=3))


async def link_dana_account(client: MutasikuClient) -> None:
    phone_number = os.getenv("DANA_PHONE_NUMBER")
    pin = os.getenv("DANA_PIN")

    otp_request = await client.add_dana_account(
        phone_number=phone_number,
        pin=pin,
        account_name=ACCOUNT_NAME,
        verification_method=VERIFICATION_METHOD,
    )
    _dump("🔑 OTP request", otp_request)

    session_id = getattr(otp_request, "sessionId", None)
    if not otp_request.success or not session_id:
        print("⚠️  No session id returned; stopping here.")
        return

    otp = (await asyncio.to_thread(input, "Enter the OTP received: ")).strip()
    _dump("✅ Verification", await client.verify_dana_account(session_id=session_id, otp=otp))


async def main() -> None:
    async with MutasikuClient.from_env() as client:
        await show_accounts(client)
        await link_dana_account(client)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("This script is for local experimentation; it is not used by the library.")
    asyncio.run(main())
