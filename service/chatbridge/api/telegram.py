from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from chatbridge.services.container import Services, get_services
from chatbridge.telegram_bot.bot import handle_telegram_update
from chatbridge.telegram_bot.logging_config import bot_logger as logger

router = APIRouter(tags=["telegram"])


@router.post("/telegram", response_class=PlainTextResponse)
async def telegram_webhook(
    request: Request,
    services: Services = Depends(get_services)
):
    """
    Webhook endpoint for Telegram updates, shared by every bot identity.

    Always answers 200 OK; updates the bridge does not handle are
    acknowledged and dropped.
    """
    try:
        update_data = await request.json()
    except ValueError:
        logger.warning("Received non-JSON Telegram update")
        return PlainTextResponse("OK")

    if not isinstance(update_data, dict):
        logger.warning(f"Received unexpected Telegram payload: {update_data!r}")
        return PlainTextResponse("OK")

    outcome = await handle_telegram_update(update_data, services.router)
    logger.debug(f"Telegram update handled: {outcome.value}")

    return PlainTextResponse("OK")
