"""
Tests for the worker process runner.

Run with: pytest service/tests/test_process_runner.py -v
"""

import asyncio
import shlex

import pytest

from chatbridge.services.process_runner import (
    RunFailure,
    RunSuccess,
    build_command,
    quote_arg,
    run,
)


class TestBuildCommand:
    """Command line construction and quoting."""

    def test_every_argument_is_single_quoted(self):
        """Each argument is single-quoted."""
        cmd = build_command("/usr/bin/python", ["script.py", "--mode=stdin"])
        assert cmd == "/usr/bin/python 'script.py' '--mode=stdin'"

    def test_empty_args_use_empty_quotes(self):
        """No arguments becomes one empty token."""
        assert build_command("/usr/bin/node", []) == "/usr/bin/node ''"

    def test_empty_args_same_shape_as_single_empty_arg(self):
        """Empty list and [""] build the same line."""
        assert build_command("prog", []) == build_command("prog", [""])

    def test_embedded_single_quote(self):
        """Single quotes inside an argument."""
        assert quote_arg("it's") == "'it'\\''s'"

    @pytest.mark.parametrize("arg", [
        "it's",
        "almuerzo 20$ en McDonald's",
        "a; rm -rf / && echo $HOME `id`",
        "\"double\" and 'single'",
        "",
        "   spaces   ",
        "--spending=café 15 source:+58412",
    ])
    def test_arguments_survive_shell_parsing(self, arg):
        """Shell parsing gives back the original arguments."""
        cmd = build_command("prog", ["first", arg])
        assert shlex.split(cmd) == ["prog", "first", arg]


class TestRun:
    """Runs real commands through /bin/sh."""

    def test_success_returns_stdout(self):
        """Exit 0 with clean stderr."""
        result = asyncio.run(run("echo", ["hello world"]))
        assert result == RunSuccess(stdout="hello world\n")

    def test_empty_args_still_runs(self):
        """Program runs with only the empty token."""
        result = asyncio.run(run("printf", []))
        assert isinstance(result, RunSuccess)
        assert result.stdout == ""

    def test_metacharacters_are_not_interpreted(self):
        """No shell expansion of arguments."""
        result = asyncio.run(run("echo", ["$HOME; echo injected"]))
        assert result == RunSuccess(stdout="$HOME; echo injected\n")

    def test_non_zero_exit_is_execution_error(self):
        """Non-zero exit code."""
        result = asyncio.run(run("sh", ["-c", "echo partial; exit 3"]))
        assert isinstance(result, RunFailure)
        assert result.kind == "error"
        assert result.error is not None
        assert result.error.exit_code == 3

    def test_non_zero_exit_keeps_stderr(self):
        """stderr is kept on non-zero exit."""
        result = asyncio.run(run("sh", ["-c", "echo boom >&2; exit 1"]))
        assert result.kind == "error"
        assert "boom" in result.stderr
        assert "boom" in result.error.message

    def test_stderr_on_success_is_failure(self):
        """Exit 0 with stderr output."""
        result = asyncio.run(run("sh", ["-c", "echo out; echo careful >&2"]))
        assert isinstance(result, RunFailure)
        assert result.kind == "stderr"
        assert result.error is None
        assert result.stderr == "careful\n"

    def test_missing_program_is_execution_error(self):
        """Program not found."""
        result = asyncio.run(run("/nonexistent/worker-binary", ["x"]))
        assert isinstance(result, RunFailure)
        assert result.kind == "error"
        assert result.error.exit_code == 127

    def test_nul_byte_argument_is_execution_error(self):
        """Argument with a NUL byte."""
        result = asyncio.run(run("echo", ["a\x00b"]))
        assert isinstance(result, RunFailure)
        assert result.kind == "error"
        assert "null byte" in result.error.message
