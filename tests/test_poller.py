import threading
from typing import Any, List, Optional

import pytest

from print_agent.errors import FetchError
from print_agent.jobs.poller import PollOutcome, Poller
from print_agent.jobs.schemas import Job
from print_agent.printing.worker import JobOutcome, ProcessorState


class FakeClient:
    printer_id = "2"

    def __init__(self, results: List[Any]):
        self.results = list(results)
        self.fetches = 0

    def fetch_next(self) -> Optional[Job]:
        self.fetches += 1
        r = self.results.pop(0) if self.results else None
        if isinstance(r, Exception):
            raise r
        return r


class FakeProcessor:
    def __init__(self, printed: bool = True):
        self.printed = printed
        self.jobs: List[Job] = []

    def process(self, job: Job) -> JobOutcome:
        self.jobs.append(job)
        if self.printed:
            return JobOutcome(job.id, ProcessorState.SUCCEEDED, 1, reported=True)
        return JobOutcome(job.id, ProcessorState.FAILED, 3, error="paper out", reported=True)


def _job(job_id=1) -> Job:
    return Job(id=job_id, print_data={"company_name": "Acme"})


def test_no_job_does_not_invoke_processor():
    proc = FakeProcessor()
    poller = Poller(FakeClient([None]), proc)
    assert poller.poll_once() is PollOutcome.NO_JOB
    assert proc.jobs == []
    assert poller.status()["last_outcome"] == "no_job"


def test_fetch_failure_is_logged_and_not_raised(caplog):
    proc = FakeProcessor()
    poller = Poller(FakeClient([FetchError("Job fetch failed: HTTP 500 boom")]), proc)
    assert poller.poll_once() is PollOutcome.FETCH_FAILED
    assert proc.jobs == []
    st = poller.status()
    assert st["last_outcome"] == "fetch_failed"
    assert "HTTP 500" in st["last_error"]
    assert any(r.levelname == "ERROR" and "HTTP 500" in r.getMessage() for r in caplog.records)


def test_job_is_handed_to_processor_and_counted():
    proc = FakeProcessor()
    poller = Poller(FakeClient([_job(7)]), proc)
    assert poller.poll_once() is PollOutcome.JOB_HANDLED
    assert [j.id for j in proc.jobs] == [7]
    st = poller.status()
    assert st["jobs_printed"] == 1
    assert st["jobs_failed"] == 0
    assert st["last_poll_at"] is not None


def test_failed_job_is_counted():
    poller = Poller(FakeClient([_job(8)]), FakeProcessor(printed=False))
    poller.poll_once()
    st = poller.status()
    assert st["jobs_failed"] == 1
    assert st["last_error"] == "paper out"


def test_fetch_next_reports_outcome():
    poller = Poller(FakeClient([None, FetchError("x"), _job(3)]), FakeProcessor())
    assert poller.fetch_next() == (PollOutcome.NO_JOB, None)
    assert poller.fetch_next() == (PollOutcome.FETCH_FAILED, None)
    outcome, job = poller.fetch_next()
    assert outcome is PollOutcome.JOB_HANDLED and job.id == 3


def test_run_forever_survives_unexpected_errors():
    poller = Poller(FakeClient([]), FakeProcessor(), interval=0.01)
    calls = {"n": 0}

    def _poll_once():
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("kaboom")
        poller.stop()
        return PollOutcome.NO_JOB

    poller.poll_once = _poll_once  # type: ignore[assignment]
    poller.run_forever()
    assert calls["n"] == 2
    assert poller.status()["running"] is False


def test_overrunning_cycle_skips_ticks():
    times = iter([0.0, 3.5])
    poller = Poller(FakeClient([]), FakeProcessor(), interval=1.0, clock=lambda: next(times))

    def _poll_once():
        poller.stop()
        return PollOutcome.NO_JOB

    poller.poll_once = _poll_once  # type: ignore[assignment]
    poller.run_forever()
    # Ticks due at 1, 2 and 3 fell inside the 3.5s cycle
    assert poller.status()["skipped_ticks"] == 3


def test_cycle_within_interval_skips_nothing():
    times = iter([0.0, 0.2])
    poller = Poller(FakeClient([]), FakeProcessor(), interval=1.0, clock=lambda: next(times))

    def _poll_once():
        poller.stop()
        return PollOutcome.NO_JOB

    poller.poll_once = _poll_once  # type: ignore[assignment]
    poller.run_forever()
    assert poller.status()["skipped_ticks"] == 0


def test_start_polls_immediately_and_stop_joins():
    client = FakeClient([None])
    polled = threading.Event()
    poller = Poller(client, FakeProcessor(), interval=60)

    original = poller.poll_once

    def _poll_once():
        result = original()
        polled.set()
        return result

    poller.poll_once = _poll_once  # type: ignore[assignment]
    poller.start()
    poller.start()  # idempotent
    assert polled.wait(2.0)
    assert poller.status()["alive"] is True
    poller.stop(timeout=2.0)
    assert poller.status()["alive"] is False
    assert client.fetches == 1


def test_stop_event_is_shared():
    stop = threading.Event()
    poller = Poller(FakeClient([]), FakeProcessor(), stop_event=stop)
    poller.stop()
    assert stop.is_set()
    assert poller.wait(5.0) is True


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        Poller(FakeClient([]), FakeProcessor(), interval=0)
