"""Telegram client factory and interactive login for birdwatch.

We explicitly manage the client's lifecycle (connect/authorize/run) so it
is obvious when the session is created and when it ends.
"""

from __future__ import annotations

from getpass import getpass
import logging
import os

from dotenv import load_dotenv
import qrcode
from telethon import TelegramClient, errors

LOGGER = logging.getLogger(__name__)


def build_client() -> TelegramClient:
    """Create a Telethon client from environment variables.

    API_ID/API_HASH are read via python-dotenv to keep secrets out of the
    repo. The session name defaults to "birdwatch" (a local .session file).
    """

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_name = os.getenv("SESSION_NAME", "birdwatch")

    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    LOGGER.info("Initializing Telegram client")
    return TelegramClient(session_name, int(api_id), api_hash)


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def _resolve_2fa_password() -> str:
    return os.getenv("2FA") or getpass("2FA password: ")


async def _authorize_with_qr(client: TelegramClient) -> None:
    qr = await client.qr_login()
    _print_qr(qr.url)
    await qr.wait(timeout=120)


async def _authorize_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    code = input("Login code: ").strip()
    await client.sign_in(phone=phone, code=code)


def _pick_login_method() -> str:
    method = (os.getenv("LOGIN_METHOD") or "").strip().lower()
    if method in {"qr", "phone"}:
        return method
    while True:
        print("\nLogin methods:\n[1] QR code\n[2] Phone code\n[3] Exit")
        choice = input("birdwatch > ").strip()
        if choice == "1":
            return "qr"
        if choice == "2":
            return "phone"
        if choice == "3":
            raise SystemExit(0)
        print("Invalid option. Please choose 1, 2, or 3.")


async def authorize(client: TelegramClient) -> None:
    """Log the session in interactively unless it is already authorized."""

    if await client.is_user_authorized():
        return

    try:
        if _pick_login_method() == "phone":
            await _authorize_with_phone(client)
        else:
            await _authorize_with_qr(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())

    me = await client.get_me()
    LOGGER.info("Logged in as %s", getattr(me, "username", None) or getattr(me, "first_name", "unknown"))
