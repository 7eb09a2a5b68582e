"""
Telegram webhook update intake.

Uses python-telegram-bot only to parse raw webhook JSON into Update
objects; routing is done by CommandRouter and replies go out through
TelegramClient with whichever bot token the command selected.
"""

from typing import Optional

from telegram import Chat, Update

from .handlers import CommandRouter, InboundMessage, RouteOutcome
from .logging_config import bot_logger as logger

GROUP_CHAT_TYPES = (Chat.GROUP, Chat.SUPERGROUP)


def sender_reference(update: Update) -> str:
    """Phone number of the sender if Telegram shared it, else the user id."""
    user = update.message.from_user if update.message else None
    if user is None:
        return "unknown"
    phone = (user.api_kwargs or {}).get("phone_number")
    return str(phone or user.id or "unknown")


def _from_raw_message(raw: dict) -> Optional[InboundMessage]:
    """
    Read the fields the router needs straight from the message dict.

    Covers bodies that are not complete Bot API updates, e.g.
    {"message": {"chat": {"id", "type"}, "text", "from"}}.
    """
    chat = raw.get("chat")
    if not isinstance(chat, dict) or chat.get("id") is None:
        logger.warning("Received message without chat id")
        return None

    is_group = chat.get("type") in GROUP_CHAT_TYPES

    text = raw.get("text")
    if not isinstance(text, str) or not text:
        logger.info(
            f"Received non-text message "
            f"{'(group chat)' if is_group else '(private chat)'}"
        )
        return None

    sender = raw.get("from")
    if not isinstance(sender, dict):
        sender = {}

    return InboundMessage(
        chat_id=chat["id"],
        text=text,
        is_group=is_group,
        sender_ref=str(sender.get("phone_number") or sender.get("id") or "unknown"),
    )


def to_inbound_message(update_data: dict) -> Optional[InboundMessage]:
    """
    Convert a raw Telegram update into an InboundMessage.

    Returns None for updates the router does not handle: membership
    changes, callback queries, edits, and messages without text.
    Bodies python-telegram-bot rejects as incomplete are read field by
    field instead.
    """
    if update_data.get("my_chat_member"):
        logger.info(f"Received my_chat_member update {update_data['my_chat_member']}")
        return None

    raw = update_data.get("message")
    if not isinstance(raw, dict) or not raw:
        logger.info(f"Received non-message update {list(update_data.keys())}")
        return None

    try:
        update = Update.de_json(update_data, None)
    except (TypeError, KeyError, ValueError) as e:
        logger.debug(f"Incomplete Telegram update ({e}), reading message fields directly")
        return _from_raw_message(raw)

    message = update.message if update else None
    if message is None:
        logger.warning("Received invalid update data")
        return None

    is_group = message.chat.type in GROUP_CHAT_TYPES

    if not message.text:
        if message.new_chat_members:
            kind = "new_chat_members"
        else:
            kind = "unknown message type"
        logger.info(
            f"Received non-text message {kind} "
            f"{'(group chat)' if is_group else '(private chat)'}"
        )
        return None

    return InboundMessage(
        chat_id=message.chat.id,
        text=message.text,
        is_group=is_group,
        sender_ref=sender_reference(update),
    )


async def handle_telegram_update(update_data: dict, router: CommandRouter) -> RouteOutcome:
    """
    Process one incoming webhook update from Telegram.

    Never raises: failures are logged and the update counts as ignored,
    so the webhook can always acknowledge it.
    """
    logger.debug(f"CHAT full request {update_data}")

    try:
        message = to_inbound_message(update_data)
        if message is None:
            return RouteOutcome.IGNORED
        return await router.handle(message)

    except Exception as e:
        logger.error(f"Failed to process update: {e}", exc_info=True)
        return RouteOutcome.IGNORED
