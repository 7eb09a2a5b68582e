"""
Job completion replies.

Maps (job type, run outcome) to the message sent back to the chat that
asked for the job. Every job type has a success reply and three failure
phrasings: execution error, stderr-only, and unknown.
"""

from dataclasses import dataclass

from chatbridge.services.job_queue import Job, JobType
from chatbridge.services.process_runner import RunFailure, RunResult, RunSuccess
from chatbridge.telegram_bot.logging_config import bot_logger as logger
from chatbridge.telegram_bot.telegram_api import TelegramClient

BALANCE_MARKER = "💳 Saldo:"


@dataclass(frozen=True)
class FailureTemplates:
    error: str
    stderr: str
    unknown: str


FAILURE_TEMPLATES: dict[JobType, FailureTemplates] = {
    JobType.EXPENSE_LOG: FailureTemplates(
        error='❌ Error al registrar "{text}": {detail}',
        stderr='⚠️ Error (stderr) al registrar "{text}": {detail}',
        unknown='❌ Error desconocido al registrar "{text}"',
    ),
    JobType.PAYMENT_LOOKUP: FailureTemplates(
        error="❌ Error inesperado buscando pagomovil: {detail}",
        stderr="⚠️ Error (stderr) buscando pagomovil: {detail}",
        unknown="❌ Error inesperado buscando pagomovil: Error desconocido",
    ),
    JobType.REPORT: FailureTemplates(
        error="❌ Error al generar el reporte: {detail}",
        stderr="⚠️ Error (stderr) al generar el reporte: {detail}",
        unknown="❌ Error desconocido al generar el reporte",
    ),
    JobType.PRODUCT_LOOKUP: FailureTemplates(
        error="❌ Error al consultar el producto: {detail}",
        stderr="⚠️ Error (stderr) al consultar el producto: {detail}",
        unknown="❌ Error desconocido al consultar el producto",
    ),
}


def strip_balance_lines(output: str) -> str:
    """Remove account balance lines from a transaction listing."""
    return "\n".join(line for line in output.split("\n") if BALANCE_MARKER not in line)


def success_message(job: Job, stdout: str) -> str:
    """Reply text for a successful job (product lookups are sent as cards instead)."""
    if job.job_type == JobType.EXPENSE_LOG:
        return f'✅ Gasto "{job.original_text}" registrado con éxito! 💰'

    if job.job_type == JobType.PAYMENT_LOOKUP:
        output = strip_balance_lines(stdout) if job.is_group else stdout
        return f"💳 *Transacciones PagoMóvil - BBVA Provincial*\n\n{output}"

    if job.job_type == JobType.REPORT:
        return f"📊 Reporte generado:\n\n{stdout}"

    raise ValueError(f"No text reply for job type {job.job_type}")


def failure_message(job: Job, failure: RunFailure) -> str:
    templates = FAILURE_TEMPLATES[job.job_type]

    if failure.error is not None and failure.error.message:
        return templates.error.format(text=job.original_text, detail=failure.error.message)
    if failure.stderr:
        return templates.stderr.format(text=job.original_text, detail=failure.stderr)
    return templates.unknown.format(text=job.original_text)


class JobReplier:
    """Completion handler for the job queue: sends the job's reply."""

    def __init__(self, telegram: TelegramClient):
        self.telegram = telegram

    async def __call__(self, job: Job, result: RunResult) -> None:
        if isinstance(result, RunSuccess):
            logger.info(f"Job for {job.original_text} completed")
            if job.job_type == JobType.PRODUCT_LOOKUP:
                await self.telegram.send_product_details(
                    job.chat_id, result.stdout, job.bot_token, job.is_group
                )
                return
            await self.telegram.send_text(job.chat_id, success_message(job, result.stdout), job.bot_token)
            return

        logger.error(f"Job for {job.original_text} failed: {result}")
        await self.telegram.send_text(job.chat_id, failure_message(job, result), job.bot_token)

    async def send_unknown_failure(self, job: Job, error: Exception) -> None:
        """Fallback reply for a job that crashed before its normal reply went out."""
        text = FAILURE_TEMPLATES[job.job_type].unknown.format(text=job.original_text)
        await self.telegram.send_text(job.chat_id, text, job.bot_token)
