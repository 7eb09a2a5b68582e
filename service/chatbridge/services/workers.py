"""
Worker command catalogue.

Knows which interpreter and script each job type runs and how its
arguments are laid out. Paths come from settings; the script path is
always the first argument since the program is a generic interpreter.
"""

from typing import Optional

from chatbridge.config import Settings, get_settings
from chatbridge.services.job_queue import Job, JobType


class WorkerCatalog:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def expense_args(self, spending: str) -> list[str]:
        return [self.settings.expense_script, "--mode=stdin", f"--spending={spending}"]

    def expense_job(
        self,
        chat_id: int,
        text: str,
        sender_ref: str,
        bot_token: Optional[str] = None
    ) -> Job:
        """Expense entry answered after /gasto; the sender is appended as source."""
        args = self.expense_args(f"{text} source:{sender_ref}") + ["--sheets"]
        return Job(
            chat_id=chat_id,
            program=self.settings.python_bin,
            args=tuple(args),
            original_text=text,
            job_type=JobType.EXPENSE_LOG,
            bot_token=bot_token,
        )

    def payment_job(
        self,
        chat_id: int,
        account: str,
        original_text: str,
        bot_token: Optional[str] = None,
        is_group: bool = False
    ) -> Job:
        args = [
            self.settings.pagomovil_script,
            f"--account={account}",
            f"--group={'true' if is_group else 'false'}",
        ]
        return Job(
            chat_id=chat_id,
            program=self.settings.python_bin,
            args=tuple(args),
            original_text=original_text,
            job_type=JobType.PAYMENT_LOOKUP,
            bot_token=bot_token,
            is_group=is_group,
        )

    def report_job(self, chat_id: int, period: str, bot_token: Optional[str] = None) -> Job:
        args = [self.settings.report_script, "--period", period, "--ai", "true"]
        return Job(
            chat_id=chat_id,
            program=self.settings.node_bin,
            args=tuple(args),
            original_text=f"/report {period}",
            job_type=JobType.REPORT,
            bot_token=bot_token,
        )

    def product_job(
        self,
        chat_id: int,
        code: str,
        bot_token: Optional[str] = None,
        is_group: bool = False
    ) -> Job:
        args = [self.settings.product_lookup_script, "--code", code]
        return Job(
            chat_id=chat_id,
            program=self.settings.node_bin,
            args=tuple(args),
            original_text=code,
            job_type=JobType.PRODUCT_LOOKUP,
            bot_token=bot_token,
            is_group=is_group,
        )
