"""
WhatsApp Business (Graph API) client.

Only the plain text send is used: the webhook relays the generator's
result back to the sender.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from chatbridge.config import get_settings
from chatbridge.telegram_bot.logging_config import bot_logger as logger

GRAPH_API_URL = "https://graph.facebook.com"


@dataclass
class SendResult:
    success: bool
    message: Any


async def send_graph_message(
    to: str,
    text: str,
    http_client: Optional[httpx.AsyncClient] = None
) -> SendResult:
    """
    Send a WhatsApp text message.

    Args:
        to: Recipient phone number (as received in the webhook)
        text: Message body

    Returns:
        SendResult; on failure message holds the API error body or reason
    """
    settings = get_settings()

    url = f"{GRAPH_API_URL}/{settings.graph_api_version}/{settings.phone_id}/messages"
    payload = {
        "messaging_product": "whatsapp",
        "to": to,
        "text": {"body": text},
    }
    headers = {
        "Authorization": f"Bearer {settings.graph_api_token}",
        "Content-Type": "application/json",
    }

    try:
        if http_client is not None:
            response = await http_client.post(url, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"Error sending message: {e}")
        return SendResult(success=False, message=str(e))

    if response.status_code != 200:
        logger.error(f"Error sending message: {response.status_code} {response.text}")
        return SendResult(success=False, message=response.reason_phrase)

    return SendResult(success=True, message=text)
