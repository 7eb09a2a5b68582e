"""
Telegram Bot API client for sending messages.

Every call takes the token of the bot identity that should answer, so one
process can reply as several bots. Text is escaped for MarkdownV2 before
it leaves the process.

Sends are best-effort: transport errors are logged and reported as False,
never raised to the caller.
"""

import re
from typing import Optional

import httpx

from chatbridge.config import get_settings
from chatbridge.services.product_lookup import parse_product_lookup
from .logging_config import bot_logger as logger

TELEGRAM_API_URL = "https://api.telegram.org"

_MARKDOWN_V2_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!])")


def escape_markdown_v2(text: str) -> str:
    """Prefix every MarkdownV2 syntax character with a backslash."""
    return _MARKDOWN_V2_SPECIAL.sub(r"\\\1", text)


class TelegramClient:
    """Outbound Telegram sends shared by the router and the job queue."""

    def __init__(
        self,
        default_token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = TELEGRAM_API_URL,
    ):
        self.default_token = default_token if default_token is not None else get_settings().telegram_token
        self._http_client = http_client
        self.base_url = base_url

    def _url(self, token: Optional[str], method: str) -> str:
        return f"{self.base_url}/bot{token or self.default_token}/{method}"

    async def _post(self, url: str, payload: dict) -> None:
        if self._http_client is not None:
            response = await self._http_client.post(url, json=payload)
            response.raise_for_status()
            return

        async with httpx.AsyncClient() as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()

    async def send_text(self, chat_id: int, text: str, token: Optional[str] = None) -> bool:
        """
        Send a text message.

        Args:
            chat_id: Telegram chat ID
            text: Plain message text (escaped here)
            token: Bot token to answer with; default identity if None

        Returns:
            True if Telegram accepted the message
        """
        payload = {
            "chat_id": chat_id,
            "text": escape_markdown_v2(text),
            "parse_mode": "MarkdownV2",
        }

        try:
            await self._post(self._url(token, "sendMessage"), payload)
        except httpx.HTTPError as e:
            logger.error(f"Error sending message \"{text}\" to chat_id={chat_id}: {e}")
            return False

        logger.info(f"Message \"{text}\" sent to chat_id={chat_id}")
        return True

    async def send_photo(
        self,
        chat_id: int,
        image_url: str,
        caption: str,
        token: Optional[str] = None
    ) -> bool:
        """
        Send a photo with a caption, falling back to a text message.

        Args:
            chat_id: Telegram chat ID
            image_url: Public URL of the image
            caption: Plain caption text (escaped here)
            token: Bot token to answer with

        Returns:
            True if either the photo or the fallback text was delivered
        """
        payload = {
            "chat_id": chat_id,
            "photo": image_url,
            "caption": escape_markdown_v2(caption),
            "parse_mode": "MarkdownV2",
        }

        try:
            await self._post(self._url(token, "sendPhoto"), payload)
        except httpx.HTTPError as e:
            logger.error(f"Error sending photo to chat_id={chat_id}, falling back to text: {e}")
            return await self.send_text(chat_id, caption, token)

        logger.info(f"Photo message sent to chat_id={chat_id}")
        return True

    async def send_product_details(
        self,
        chat_id: int,
        json_output: str,
        token: Optional[str] = None,
        is_group: bool = False
    ) -> bool:
        """Format product lookup output and send it, with its image if any."""
        try:
            product = parse_product_lookup(json_output, is_group)

            if product.image_url:
                return await self.send_photo(chat_id, product.image_url, product.message, token)
            return await self.send_text(chat_id, product.message, token)

        except Exception as e:
            logger.error(f"Error sending product details to {chat_id}: {e}", exc_info=True)
            return await self.send_text(chat_id, f"❌ Error al enviar detalles del producto: {e}", token)
