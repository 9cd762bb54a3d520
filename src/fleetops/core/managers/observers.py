"""Concrete poll progress observers.

This module provides observers that handle:
- Progress logging (the non-interactive replacement for a spinner)
- Poll history recording for diagnostics
"""

import logging
from typing import Dict, List, Optional

from fleetops.core.models.job import JobHandle, JobState, JobStatus, PollOutcome


logger = logging.getLogger(__name__)


class LoggingProgressObserver:
    """Logs a line whenever a job changes state, and one per `every` iterations.

    Keeps only the last seen state per job locator; safe to share between
    concurrent poll loops on the same event loop.
    """

    def __init__(self, every: int = 10):
        self._every = max(1, every)
        self._last_state: Dict[str, Optional[JobState]] = {}

    async def on_poll_started(self, handle: JobHandle, attempts: int) -> None:
        self._last_state[handle.resource_uri] = None
        logger.info(f"[observer:progress] waiting for job_uri={handle.resource_uri} max_fetches={attempts}")

    async def on_poll_iteration(
        self,
        handle: JobHandle,
        iteration: int,
        status: Optional[JobStatus],
    ) -> None:
        state = status.state if status else None
        previous = self._last_state.get(handle.resource_uri)
        if state is not None and state != previous:
            logger.info(
                f"[observer:progress] job_uri={handle.resource_uri} state={state} iteration={iteration}"
            )
            self._last_state[handle.resource_uri] = state
        elif iteration % self._every == 0:
            logger.info(
                f"[observer:progress] job_uri={handle.resource_uri} still {previous or 'unknown'} "
                f"iteration={iteration}"
            )

    async def on_poll_finished(self, outcome: PollOutcome) -> None:
        self._last_state.pop(outcome.handle.resource_uri, None)
        if outcome.timed_out:
            logger.info(f"[observer:progress] job_uri={outcome.handle.resource_uri} timed out")
        else:
            logger.info(
                f"[observer:progress] job_uri={outcome.handle.resource_uri} "
                f"finished state={outcome.final_status.state}"
            )

    async def on_poll_abandoned(self, handle: JobHandle, error: BaseException) -> None:
        self._last_state.pop(handle.resource_uri, None)
        logger.info(
            f"[observer:progress] job_uri={handle.resource_uri} abandoned error={type(error).__name__}"
        )


class PollHistoryObserver:
    """Records every fetched state per job locator.

    A `None` entry stands for an iteration whose fetch failed transiently.
    """

    def __init__(self):
        self.history: Dict[str, List[Optional[JobState]]] = {}
        self.outcomes: Dict[str, PollOutcome] = {}
        self.abandoned: Dict[str, BaseException] = {}

    async def on_poll_started(self, handle: JobHandle, attempts: int) -> None:
        self.history.setdefault(handle.resource_uri, [])

    async def on_poll_iteration(
        self,
        handle: JobHandle,
        iteration: int,
        status: Optional[JobStatus],
    ) -> None:
        self.history.setdefault(handle.resource_uri, []).append(status.state if status else None)

    async def on_poll_finished(self, outcome: PollOutcome) -> None:
        self.outcomes[outcome.handle.resource_uri] = outcome

    async def on_poll_abandoned(self, handle: JobHandle, error: BaseException) -> None:
        self.abandoned[handle.resource_uri] = error
