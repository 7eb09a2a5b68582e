"""
Direct expense relay.

POST /chat hands the text straight to the expense parser and answers
immediately; the outcome is only logged. This path does not go through
the job queue and sends nothing back to any chat.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from chatbridge.api.schemas import ChatRelayRequest, ChatRelayResponse
from chatbridge.services.container import Services, get_services
from chatbridge.services.process_runner import RunSuccess
from chatbridge.telegram_bot.logging_config import bot_logger as logger

# Each relay spawns a worker process
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(tags=["chat"])


@router.post("/chat", response_model=ChatRelayResponse)
@limiter.limit("20/minute")
async def relay_expense(
    request: Request,  # Required for rate limiter
    chat_request: ChatRelayRequest,
    background_tasks: BackgroundTasks,
    services: Services = Depends(get_services)
):
    """Fire-and-forget expense registration."""
    logger.info(f"CHAT req {chat_request.model_dump()}")

    program = services.settings.python_bin
    args = services.workers.expense_args(chat_request.message)

    async def relay_async():
        result = await services.runner(program, args)
        if isinstance(result, RunSuccess):
            logger.info(f"Expense relay done: {result.stdout}")
        else:
            logger.error(f"Expense relay failed: {result}")

    # Run after the response is sent
    background_tasks.add_task(relay_async)

    return ChatRelayResponse(context_id=chat_request.context_id)
