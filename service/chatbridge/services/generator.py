"""
Client for the external generator service behind the WhatsApp webhook.
"""

from typing import Optional

import httpx

from chatbridge.config import get_settings
from chatbridge.telegram_bot.logging_config import bot_logger as logger


async def generate_request(
    username: str,
    message: str,
    http_client: Optional[httpx.AsyncClient] = None
) -> Optional[dict]:
    """
    POST a message to <GENERATOR_URL>/generate.

    Returns:
        Parsed JSON response (expected to carry "signedUrl"), or None on failure
    """
    settings = get_settings()

    url = f"{settings.generator_url.rstrip('/')}/generate"
    body = {"username": username, "message": message}
    headers = {"Content-Type": "application/json", "accept": "application/json"}

    try:
        if http_client is not None:
            response = await http_client.post(url, json=body, headers=headers)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, json=body, headers=headers, timeout=60)
        response.raise_for_status()
        return response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Generator request failed: {e}")
        return None
