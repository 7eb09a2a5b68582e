"""
WhatsApp Business webhook.

GET /webhook is the Graph API verification handshake.
POST /webhook relays text messages to the generator service and sends
the generated link back to the sender.
"""

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from chatbridge.api.schemas import WhatsAppWebhook
from chatbridge.config import get_settings
from chatbridge.services.generator import generate_request
from chatbridge.services.graph_api import send_graph_message
from chatbridge.telegram_bot.logging_config import bot_logger as logger

router = APIRouter(prefix="/webhook", tags=["whatsapp"])


@router.get("")
async def verify_webhook(
    mode: str | None = Query(None, alias="hub.mode"),
    token: str | None = Query(None, alias="hub.verify_token"),
    challenge: str | None = Query(None, alias="hub.challenge"),
):
    """
    Verification request sent by Meta when the webhook is configured.

    Echoes hub.challenge when the mode is "subscribe" and the token
    matches WEBHOOK_VERIFY_TOKEN; 403 otherwise.
    """
    settings = get_settings()

    if mode == "subscribe" and settings.webhook_verify_token and token == settings.webhook_verify_token:
        logger.info("Webhook verified successfully!")
        return PlainTextResponse(challenge or "")

    return Response(status_code=403)


@router.post("")
async def receive_webhook(request: Request):
    """Handle an inbound WhatsApp message. Always acknowledges with 200."""
    try:
        body = await request.json()
        payload = WhatsAppWebhook.model_validate(body)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Ignoring malformed WhatsApp payload: {e}")
        return Response(status_code=200)

    logger.debug(f"req {body}")

    entry, message = payload.first_message()
    if message is None or not message.from_ or message.text is None or not message.text.body:
        return Response(status_code=200)

    generated = await generate_request(username=entry.id or "", message=message.text.body)
    if not generated or not generated.get("signedUrl"):
        logger.error(f"Generator returned no signedUrl for {message.text.body!r}")
        return Response(status_code=200)

    result = await send_graph_message(message.from_, generated["signedUrl"])
    logger.info(f"sent {message.text.body} => {generated['signedUrl']} (success={result.success})")

    return Response(status_code=200)
