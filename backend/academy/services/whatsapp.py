from __future__ import annotations

import logging

import httpx

from academy.core.config import get_settings

logger = logging.getLogger(__name__)


class WhatsAppDeliveryError(RuntimeError):
    pass


def _normalize_number(raw: str) -> str:
    digits = "".join(ch for ch in raw if ch.isdigit() or ch == "+")
    return digits.lstrip("+")


def send_whatsapp_message(*, to_number: str, text: str) -> None:
    settings = get_settings()
    if not settings.whatsapp_api_url:
        raise WhatsAppDeliveryError("WhatsApp gateway is not configured")

    number = _normalize_number(to_number)
    if not number:
        raise WhatsAppDeliveryError(f"Invalid WhatsApp number: {to_number!r}")

    headers = {}
    if settings.whatsapp_api_token:
        headers["Authorization"] = f"Bearer {settings.whatsapp_api_token}"
    try:
        response = httpx.post(
            settings.whatsapp_api_url,
            json={"to": number, "type": "text", "text": {"body": text}},
            headers=headers,
            timeout=settings.whatsapp_timeout_seconds,
        )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise WhatsAppDeliveryError(f"WhatsApp delivery to {number} failed") from exc


def send_whatsapp_bulk(recipients: list[tuple[str, str | None]], text: str) -> int:
    """Send ``text`` to each ``(user_id, number)`` pair; return how many went out."""
    sent = 0
    for user_id, number in recipients:
        if not number:
            continue
        try:
            send_whatsapp_message(to_number=number, text=text)
        except WhatsAppDeliveryError:
            logger.warning("WhatsApp delivery failed for user %s", user_id, exc_info=True)
            continue
        sent += 1
    return sent
