"""
Command job queue with a single-flight executor.

Jobs are external worker invocations created by the command router.
The queue runs them strictly in arrival order and never lets two
worker processes run at the same time.

kick() claims the busy flag, pops the head job and starts it as a task.
When the job finishes (success or failure) its reply handler runs, the
busy flag is released and the next kick() is posted to the event loop
with call_soon instead of being called recursively.
If the runner or the reply handler raises, the optional error handler
gets a chance to tell the chat.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from chatbridge.services.process_runner import RunResult, run
from chatbridge.telegram_bot.logging_config import bot_logger as logger


class JobType(str, Enum):
    EXPENSE_LOG = "gasto"
    PAYMENT_LOOKUP = "pagomovil"
    REPORT = "report"
    PRODUCT_LOOKUP = "product_lookup"


@dataclass(frozen=True)
class Job:
    chat_id: int
    program: str
    args: tuple[str, ...]
    original_text: str
    job_type: JobType
    bot_token: Optional[str] = None
    is_group: bool = False


Runner = Callable[[str, Sequence[str]], Awaitable[RunResult]]
CompletionHandler = Callable[[Job, RunResult], Awaitable[None]]
ErrorHandler = Callable[[Job, Exception], Awaitable[None]]


class JobQueue:
    """FIFO queue of jobs plus the serial executor that drains it."""

    def __init__(
        self,
        on_complete: CompletionHandler,
        runner: Runner = run,
        on_error: Optional[ErrorHandler] = None,
    ):
        self._jobs: deque[Job] = deque()
        self._busy = False
        self._runner = runner
        self._on_complete = on_complete
        self._on_error = on_error
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def pending(self) -> int:
        return len(self._jobs)

    def enqueue(self, job: Job) -> None:
        """Append a job to the tail of the queue. Does not start it."""
        self._jobs.append(job)
        self._idle.clear()
        logger.info(
            f"Queued {job.job_type.value} job for chat_id={job.chat_id} "
            f"({len(self._jobs)} pending)"
        )

    def kick(self) -> None:
        """Start the next job if nothing is running. Safe to call any time."""
        if self._busy:
            return
        if not self._jobs:
            self._idle.set()
            return

        self._busy = True
        job = self._jobs.popleft()
        asyncio.get_running_loop().create_task(self._execute(job))

    async def join(self) -> None:
        """Wait until every queued job has finished."""
        await self._idle.wait()

    async def _execute(self, job: Job) -> None:
        logger.info(
            f"Processing job for chat_id={job.chat_id}: "
            f"{job.original_text} (type: {job.job_type.value})"
        )
        try:
            result = await self._runner(job.program, job.args)
            await self._on_complete(job, result)
        except Exception as e:
            logger.error(f"Job for {job.original_text} failed: {e}", exc_info=True)
            await self._report_error(job, e)
        finally:
            self._busy = False
            asyncio.get_running_loop().call_soon(self.kick)

    async def _report_error(self, job: Job, error: Exception) -> None:
        """Tell the chat its job crashed. Errors here are logged and dropped."""
        if self._on_error is None:
            return
        try:
            await self._on_error(job, error)
        except Exception as e:
            logger.error(f"Could not report failure of {job.original_text} to chat_id={job.chat_id}: {e}")
