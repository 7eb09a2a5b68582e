"""
Process runner for external worker programs.

Every worker (expense parser, payment scraper, report generator, product
lookup) is an opaque command-line program. A run is a single attempt:
no retries, no timeout, output buffered until the process exits.

Outcomes are returned as values, never raised:
- RunSuccess: exit code 0 and nothing on stderr
- RunFailure(kind="error"): spawn failure or non-zero exit
- RunFailure(kind="stderr"): exit code 0 but stderr was not empty

Workers that print warnings to stderr are reported as failed jobs.
"""

import asyncio
from dataclasses import dataclass
from typing import Literal, Optional, Sequence, Union

from chatbridge.telegram_bot.logging_config import bot_logger as logger


@dataclass(frozen=True)
class ExecutionError:
    message: str
    exit_code: Optional[int] = None


@dataclass(frozen=True)
class RunSuccess:
    stdout: str


@dataclass(frozen=True)
class RunFailure:
    kind: Literal["error", "stderr"]
    error: Optional[ExecutionError] = None
    stderr: str = ""


RunResult = Union[RunSuccess, RunFailure]


def quote_arg(arg: str) -> str:
    """Wrap an argument in single quotes, escaping embedded single quotes."""
    return "'" + arg.replace("'", "'\\''") + "'"


def build_command(program: str, args: Sequence[str]) -> str:
    """
    Build the shell command line for a worker invocation.

    Args:
        program: Interpreter or executable path
        args: Arguments, each passed through as one literal token

    Returns:
        Command line; an empty argument list becomes a single '' token
    """
    quoted = " ".join(quote_arg(arg) for arg in args)
    return f"{program} {quoted or quote_arg('')}"


async def run(program: str, args: Sequence[str]) -> RunResult:
    """Run a worker program once and collect its outcome."""
    cmd = build_command(program, args)
    logger.debug(f"Running command: {cmd}")

    try:
        process = await asyncio.create_subprocess_shell(
            cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout_bytes, stderr_bytes = await process.communicate()
    except (OSError, ValueError) as e:
        # ValueError: arguments with embedded NUL bytes
        logger.error(f"Error executing command: {e}")
        return RunFailure(kind="error", error=ExecutionError(message=str(e)))

    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")

    if process.returncode != 0:
        message = f"Command failed with exit code {process.returncode}: {cmd}"
        if stderr.strip():
            message = f"{message}\n{stderr.strip()}"
        logger.error(f"Error executing command: {message}")
        return RunFailure(
            kind="error",
            error=ExecutionError(message=message, exit_code=process.returncode),
            stderr=stderr,
        )

    if stderr:
        logger.warning(f"Command produced stderr: {stderr}")
        return RunFailure(kind="stderr", stderr=stderr)

    logger.debug(f"stdout: {stdout}")
    return RunSuccess(stdout=stdout)

