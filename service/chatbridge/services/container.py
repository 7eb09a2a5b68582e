"""
Process-wide services, created once at startup.

The conversation store and the job queue live here instead of in module
globals; the FastAPI app keeps the container on app.state and routes
reach it through the get_services dependency.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from fastapi import Request

from chatbridge.config import Settings, get_settings
from chatbridge.services.job_queue import JobQueue, Runner
from chatbridge.services.process_runner import run
from chatbridge.services.replies import JobReplier
from chatbridge.services.workers import WorkerCatalog
from chatbridge.telegram_bot.context import ConversationStore
from chatbridge.telegram_bot.handlers import CommandRouter
from chatbridge.telegram_bot.registry import BotRegistry
from chatbridge.telegram_bot.telegram_api import TelegramClient


@dataclass
class Services:
    settings: Settings
    registry: BotRegistry
    telegram: TelegramClient
    store: ConversationStore
    queue: JobQueue
    workers: WorkerCatalog
    router: CommandRouter
    runner: Runner


def build_services(
    settings: Optional[Settings] = None,
    runner: Runner = run,
    telegram: Optional[TelegramClient] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Services:
    settings = settings or get_settings()

    registry = BotRegistry.from_environ(environ, default_token=settings.telegram_token or None)
    registry.warn_missing(settings.required_bots)

    telegram = telegram or TelegramClient(default_token=settings.telegram_token)
    store = ConversationStore()
    replier = JobReplier(telegram)
    queue = JobQueue(on_complete=replier, runner=runner, on_error=replier.send_unknown_failure)
    workers = WorkerCatalog(settings)
    router = CommandRouter(
        store=store,
        queue=queue,
        registry=registry,
        telegram=telegram,
        workers=workers,
        pagomovil_accounts=settings.pagomovil_accounts,
    )

    return Services(
        settings=settings,
        registry=registry,
        telegram=telegram,
        store=store,
        queue=queue,
        workers=workers,
        router=router,
        runner=runner,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
