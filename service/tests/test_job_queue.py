"""
Tests for the serial job queue.

Run with: pytest service/tests/test_job_queue.py -v
"""

import asyncio

from chatbridge.services.job_queue import Job, JobQueue, JobType
from chatbridge.services.process_runner import RunFailure, RunSuccess, ExecutionError
from chatbridge.services.replies import JobReplier

from conftest import FakeRunner, FakeTelegram


def make_job(n: int, job_type: JobType = JobType.REPORT) -> Job:
    return Job(
        chat_id=100 + n,
        program="/usr/bin/node",
        args=("report.js", "--period", str(n)),
        original_text=f"job {n}",
        job_type=job_type,
    )


class Recorder:
    def __init__(self, fail_on=()):
        self.completed: list[tuple[Job, object]] = []
        self.fail_on = set(fail_on)

    async def __call__(self, job, result):
        await asyncio.sleep(0)
        self.completed.append((job, result))
        if job.chat_id in self.fail_on:
            raise RuntimeError("send failed")


class TestJobQueue:
    """FIFO order and single-flight execution."""

    def test_runs_every_job_once_in_order(self):
        """FIFO order, each job once."""
        runner = FakeRunner()
        recorder = Recorder()

        async def scenario():
            queue = JobQueue(on_complete=recorder, runner=runner)
            for n in range(5):
                queue.enqueue(make_job(n))
                queue.kick()
            await queue.join()
            return queue

        queue = asyncio.run(scenario())

        assert len(runner.calls) == 5
        assert [args[2] for _, args in runner.calls] == ["0", "1", "2", "3", "4"]
        assert [job.chat_id for job, _ in recorder.completed] == [100, 101, 102, 103, 104]
        assert not queue.busy
        assert queue.pending == 0

    def test_never_runs_two_jobs_at_once(self):
        """Repeated kicks never overlap runs."""
        runner = FakeRunner()

        async def scenario():
            queue = JobQueue(on_complete=Recorder(), runner=runner)
            for n in range(10):
                queue.enqueue(make_job(n))
            # Many kicks from many handlers must not start parallel runs
            for _ in range(10):
                queue.kick()
            await queue.join()

        asyncio.run(scenario())

        assert len(runner.calls) == 10
        assert runner.max_active == 1

    def test_completion_runs_before_next_job_starts(self):
        """Reply for a job goes out before the next job runs."""
        events: list[str] = []

        async def runner(program, args):
            events.append(f"run {args[2]}")
            await asyncio.sleep(0)
            return RunSuccess(stdout="")

        async def on_complete(job, result):
            await asyncio.sleep(0)
            events.append(f"reply {job.args[2]}")

        async def scenario():
            queue = JobQueue(on_complete=on_complete, runner=runner)
            for n in range(3):
                queue.enqueue(make_job(n))
            queue.kick()
            await queue.join()

        asyncio.run(scenario())

        assert events == ["run 0", "reply 0", "run 1", "reply 1", "run 2", "reply 2"]

    def test_kick_without_jobs_is_noop(self):
        """Kick on an empty queue."""
        async def scenario():
            queue = JobQueue(on_complete=Recorder(), runner=FakeRunner())
            queue.kick()
            assert not queue.busy
            await queue.join()

        asyncio.run(scenario())

    def test_enqueue_does_not_start_work(self):
        """Only kick starts a job."""
        runner = FakeRunner()

        async def scenario():
            queue = JobQueue(on_complete=Recorder(), runner=runner)
            queue.enqueue(make_job(1))
            await asyncio.sleep(0)
            assert queue.pending == 1
            assert runner.calls == []
            queue.kick()
            assert queue.busy
            await queue.join()

        asyncio.run(scenario())
        assert len(runner.calls) == 1

    def test_failures_are_passed_to_completion_handler(self):
        """Failed runs reach the reply handler as values."""
        failure = RunFailure(kind="error", error=ExecutionError("exit 1", 1))
        runner = FakeRunner(results=[failure, RunSuccess(stdout="fine")])
        recorder = Recorder()

        async def scenario():
            queue = JobQueue(on_complete=recorder, runner=runner)
            queue.enqueue(make_job(1))
            queue.enqueue(make_job(2))
            queue.kick()
            await queue.join()

        asyncio.run(scenario())

        assert [result for _, result in recorder.completed] == [failure, RunSuccess(stdout="fine")]

    def test_reply_error_does_not_stall_queue(self):
        """A raising reply handler does not block later jobs."""
        runner = FakeRunner()
        recorder = Recorder(fail_on={101})

        async def scenario():
            queue = JobQueue(on_complete=recorder, runner=runner)
            for n in range(3):
                queue.enqueue(make_job(n))
            queue.kick()
            await queue.join()
            return queue

        queue = asyncio.run(scenario())

        assert len(recorder.completed) == 3
        assert not queue.busy

    def test_runner_exception_releases_busy_flag(self):
        """Runner crash frees the queue."""
        async def broken_runner(program, args):
            raise RuntimeError("unexpected")

        recorder = Recorder()

        async def scenario():
            queue = JobQueue(on_complete=recorder, runner=broken_runner)
            queue.enqueue(make_job(1))
            queue.kick()
            await queue.join()
            return queue

        queue = asyncio.run(scenario())
        assert not queue.busy
        assert recorder.completed == []

    def test_long_queue_of_instant_jobs_drains(self):
        """Thousands of instant jobs drain without recursion."""
        async def instant_runner(program, args):
            return RunSuccess(stdout="")

        async def instant_reply(job, result):
            return None

        async def scenario():
            queue = JobQueue(on_complete=instant_reply, runner=instant_runner)
            for n in range(3000):
                queue.enqueue(make_job(n))
            queue.kick()
            await queue.join()
            return queue

        queue = asyncio.run(scenario())
        assert queue.pending == 0
        assert not queue.busy

    def test_jobs_enqueued_while_running_wait_their_turn(self):
        """Jobs added mid-run wait for the current one."""
        runner = FakeRunner()
        recorder = Recorder()

        async def scenario():
            queue = JobQueue(on_complete=recorder, runner=runner)
            queue.enqueue(make_job(1))
            queue.kick()
            assert queue.busy
            queue.enqueue(make_job(2))
            queue.kick()
            await queue.join()

        asyncio.run(scenario())

        assert [job.chat_id for job, _ in recorder.completed] == [101, 102]
        assert runner.max_active == 1

    def test_crashed_job_still_gets_a_reply(self):
        """Runner crash sends the unknown-error phrasing."""
        async def broken_runner(program, args):
            raise ValueError("embedded null byte")

        telegram = FakeTelegram()
        replier = JobReplier(telegram)

        async def scenario():
            queue = JobQueue(on_complete=replier, runner=broken_runner, on_error=replier.send_unknown_failure)
            queue.enqueue(make_job(1))
            queue.enqueue(make_job(2))
            queue.kick()
            await queue.join()
            return queue

        queue = asyncio.run(scenario())

        assert telegram.messages_for(101) == ["❌ Error desconocido al generar el reporte"]
        assert telegram.messages_for(102) == ["❌ Error desconocido al generar el reporte"]
        assert not queue.busy

    def test_failing_error_handler_does_not_stall_queue(self):
        """A raising error handler does not block later jobs."""
        async def broken_runner(program, args):
            raise RuntimeError("unexpected")

        async def broken_error_handler(job, error):
            raise RuntimeError("telegram down")

        async def scenario():
            queue = JobQueue(on_complete=Recorder(), runner=broken_runner, on_error=broken_error_handler)
            for n in range(3):
                queue.enqueue(make_job(n))
            queue.kick()
            await queue.join()
            return queue

        queue = asyncio.run(scenario())
        assert queue.pending == 0
        assert not queue.busy
