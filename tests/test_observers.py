"""Unit tests for poll progress observers.

Each observer is driven directly through its lifecycle methods.
"""

import logging

import pytest

from fleetops.core.managers.observers import LoggingProgressObserver, PollHistoryObserver
from fleetops.core.models.job import JobHandle, JobState, JobStatus, PollOutcome


@pytest.fixture
def handle():
    return JobHandle(resource_uri="/jobs/1")


@pytest.mark.asyncio
async def test_history_records_states_and_outcome(handle):
    observer = PollHistoryObserver()
    final = JobStatus(state="COMPLETE")
    outcome = PollOutcome(final_status=final, timed_out=False, handle=handle)

    await observer.on_poll_started(handle, 5)
    await observer.on_poll_iteration(handle, 1, JobStatus(state="QUEUED"))
    await observer.on_poll_iteration(handle, 2, None)
    await observer.on_poll_iteration(handle, 3, final)
    await observer.on_poll_finished(outcome)

    assert observer.history["/jobs/1"] == [JobState.queued, None, JobState.complete]
    assert observer.outcomes["/jobs/1"] is outcome


@pytest.mark.asyncio
async def test_progress_logs_state_changes_only(handle, caplog):
    observer = LoggingProgressObserver(every=100)
    running = JobStatus(state="RUNNING")

    with caplog.at_level(logging.INFO, logger="fleetops.core.managers.observers"):
        await observer.on_poll_started(handle, 10)
        for iteration in range(1, 4):
            await observer.on_poll_iteration(handle, iteration, running)
        await observer.on_poll_finished(PollOutcome(final_status=None, timed_out=True, handle=handle))

    messages = [r.getMessage() for r in caplog.records]
    assert sum("state=RUNNING" in m for m in messages) == 1
    assert any("timed out" in m for m in messages)


@pytest.mark.asyncio
async def test_progress_heartbeat_every_n_iterations(handle, caplog):
    observer = LoggingProgressObserver(every=2)

    with caplog.at_level(logging.INFO, logger="fleetops.core.managers.observers"):
        await observer.on_poll_started(handle, 10)
        for iteration in range(1, 5):
            await observer.on_poll_iteration(handle, iteration, None)

    heartbeats = [r.getMessage() for r in caplog.records if "still" in r.getMessage()]
    assert len(heartbeats) == 2


@pytest.mark.asyncio
async def test_progress_forgets_abandoned_jobs(handle, caplog):
    observer = LoggingProgressObserver()

    with caplog.at_level(logging.INFO, logger="fleetops.core.managers.observers"):
        await observer.on_poll_started(handle, 10)
        await observer.on_poll_iteration(handle, 1, JobStatus(state="RUNNING"))
        await observer.on_poll_abandoned(handle, KeyError("status"))

    assert observer._last_state == {}
    assert any("abandoned error=KeyError" in r.getMessage() for r in caplog.records)
