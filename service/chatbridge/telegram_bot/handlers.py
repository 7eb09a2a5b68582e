"""
Telegram command router and conversation state machine.

FLOWS:
======
/gasto            -> WAITING_FOR_AMOUNT         -> any text       -> expense job
/report           -> WAITING_FOR_REPORT_OPTION  -> "0".."6"       -> report job
                                                -> anything else  -> re-prompt
/consulta_codigo  -> WAITING_FOR_PRODUCT_CODE   -> non-empty code -> product job
                                                -> empty          -> re-prompt
/pagomovil_<acc>  -> payment lookup job right away

A recognized command always starts over, whatever the chat was waiting
for. Text that is not a command answers the pending prompt, or is
ignored when nothing is pending.

ORDERING:
=========
The state entry is read and cleared before anything is awaited, and
before the job is queued. A second copy of the same answer arriving while
the acknowledgement is in flight finds no state and produces no job.
The queue is kicked only after the acknowledgement is sent, so the
"queued" message reaches the chat before the job's result.

BOT IDENTITIES:
===============
"/cmd@name" answers with the token registered for "name". In groups,
commands addressed to a name this process does not know are meant for a
sibling bot and are dropped silently.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from chatbridge.services.job_queue import JobQueue
from chatbridge.services.workers import WorkerCatalog
from .context import ConversationState, ConversationStore, FlowState
from .logging_config import bot_logger as logger
from .registry import BotRegistry, split_command
from .telegram_api import TelegramClient

GASTO_COMMAND = "/gasto"
REPORT_COMMAND = "/report"
PRODUCT_COMMAND = "/consulta_codigo"
PAGOMOVIL_PREFIX = "/pagomovil_"

REPORT_OPTIONS = ("0", "1", "2", "3", "4", "5", "6")

AMOUNT_PROMPT = "💰 ¿Cuánto gastaste y en qué?"
REPORT_PROMPT = (
    "📊 ¿Qué período deseas para el reporte?\n"
    "[0] 📅 Hoy\n"
    "[1] 🗓️ Semana actual\n"
    "[2] 📆 Semana pasada\n"
    "[3] 🗓️ Mes actual\n"
    "[4] 📆 Mes pasado\n"
    "[5] 📊 Trimestre actual\n"
    "[6] 📈 Trimestre pasado"
)
REPORT_REPROMPT = "❗ Por favor, responde con un número entre 0 y 6 para seleccionar el período del reporte."
REPORT_ACK = "⏳ Estamos generando tu reporte. Te lo enviaremos en cuanto esté listo. 📑"
PRODUCT_PROMPT = "🔍 Por favor, ingresa el código del producto que deseas consultar:"
PRODUCT_REPROMPT = "❗ Por favor, ingresa un código de producto válido."


@dataclass(frozen=True)
class InboundMessage:
    chat_id: int
    text: str
    is_group: bool = False
    sender_ref: str = "unknown"


class RouteOutcome(str, Enum):
    """What the router did with a message (used for logging and tests)."""
    IGNORED = "ignored"
    FLOW_STARTED = "flow_started"
    JOB_QUEUED = "job_queued"
    REPROMPTED = "reprompted"
    NO_OP = "no_op"


class CommandRouter:
    def __init__(
        self,
        store: ConversationStore,
        queue: JobQueue,
        registry: BotRegistry,
        telegram: TelegramClient,
        workers: WorkerCatalog,
        pagomovil_accounts: list[str],
    ):
        self.store = store
        self.queue = queue
        self.registry = registry
        self.telegram = telegram
        self.workers = workers
        self.pagomovil_accounts = [a.lower() for a in pagomovil_accounts]

    async def handle(self, message: InboundMessage) -> RouteOutcome:
        raw_text = message.text
        chat_id = message.chat_id

        bot_name: Optional[str] = None
        command = raw_text
        if raw_text.startswith("/"):
            first, _, _ = raw_text.partition(" ")
            target = split_command(first)
            bot_name = target.bot_name
            command = target.command

        bot_token = self.registry.token_for(bot_name)

        logger.info(
            f"CHAT req: {raw_text!r} "
            f"{f'(bot: {bot_name}) ' if bot_name else ''}"
            f"{'(group chat)' if message.is_group else '(private chat)'}"
        )

        if message.is_group and raw_text.startswith("/") and bot_name and not self.registry.is_known(bot_name):
            logger.info(f"Ignoring command with unknown bot name: {bot_name}")
            return RouteOutcome.IGNORED

        # Commands pre-empt any pending prompt
        if command == GASTO_COMMAND:
            return await self._start_flow(chat_id, FlowState.WAITING_FOR_AMOUNT, bot_name, bot_token, AMOUNT_PROMPT)

        if command == REPORT_COMMAND:
            return await self._start_flow(chat_id, FlowState.WAITING_FOR_REPORT_OPTION, bot_name, bot_token, REPORT_PROMPT)

        if command == PRODUCT_COMMAND:
            return await self._start_flow(chat_id, FlowState.WAITING_FOR_PRODUCT_CODE, bot_name, bot_token, PRODUCT_PROMPT)

        if command.startswith(PAGOMOVIL_PREFIX):
            account = command[len(PAGOMOVIL_PREFIX):].lower()
            if account in self.pagomovil_accounts:
                return await self._payment_lookup(message, account, bot_token)

        # Answers to a pending prompt
        state = self.store.get(chat_id)
        if state is None:
            logger.info(f"nothing to do for {raw_text!r}")
            return RouteOutcome.NO_OP

        token = state.bot_token or bot_token
        answer = raw_text.strip()

        if state.state == FlowState.WAITING_FOR_REPORT_OPTION:
            if answer not in REPORT_OPTIONS:
                await self.telegram.send_text(chat_id, REPORT_REPROMPT, token)
                return RouteOutcome.REPROMPTED
            self.store.clear(chat_id)
            self.queue.enqueue(self.workers.report_job(chat_id, answer, token))
            await self.telegram.send_text(chat_id, REPORT_ACK, token)
            self.queue.kick()
            return RouteOutcome.JOB_QUEUED

        if state.state == FlowState.WAITING_FOR_PRODUCT_CODE:
            if not answer:
                await self.telegram.send_text(chat_id, PRODUCT_REPROMPT, token)
                return RouteOutcome.REPROMPTED
            self.store.clear(chat_id)
            self.queue.enqueue(self.workers.product_job(chat_id, answer, token, message.is_group))
            await self.telegram.send_text(
                chat_id,
                f'⏳ Consultando información del producto con código "{answer}". '
                "Te informaremos cuando esté listo.",
                token,
            )
            self.queue.kick()
            return RouteOutcome.JOB_QUEUED

        if state.state == FlowState.WAITING_FOR_AMOUNT:
            self.store.clear(chat_id)
            self.queue.enqueue(self.workers.expense_job(chat_id, raw_text, message.sender_ref, token))
            await self.telegram.send_text(
                chat_id,
                f'⏳ Gasto "{raw_text}" encolado. Te avisaré cuando esté listo. ✨',
                token,
            )
            self.queue.kick()
            return RouteOutcome.JOB_QUEUED

        logger.warning(f"Unhandled conversation state {state.state} for chat_id={chat_id}")
        self.store.clear(chat_id)
        return RouteOutcome.NO_OP

    async def _start_flow(
        self,
        chat_id: int,
        flow: FlowState,
        bot_name: Optional[str],
        bot_token: Optional[str],
        prompt: str
    ) -> RouteOutcome:
        self.store.set(chat_id, ConversationState(state=flow, bot_name=bot_name, bot_token=bot_token))
        await self.telegram.send_text(chat_id, prompt, bot_token)
        return RouteOutcome.FLOW_STARTED

    async def _payment_lookup(
        self,
        message: InboundMessage,
        account: str,
        bot_token: Optional[str]
    ) -> RouteOutcome:
        self.store.clear(message.chat_id)
        job = self.workers.payment_job(
            message.chat_id, account, message.text, bot_token, message.is_group
        )
        self.queue.enqueue(job)
        await self.telegram.send_text(
            message.chat_id,
            f"⏳ Consultando transacciones de PagoMóvil {account.capitalize()} en BBVA Provincial. "
            "Te avisaré cuando esté listo. 🔍",
            bot_token,
        )
        self.queue.kick()
        return RouteOutcome.JOB_QUEUED
