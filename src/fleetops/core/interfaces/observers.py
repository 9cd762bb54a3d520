"""Observer protocol for poll loop progress.

Progress display (spinners, status lines) and diagnostics hang off these
callbacks instead of living inside the poll loop.
"""

from typing import Optional, Protocol

from fleetops.core.models.job import JobHandle, JobStatus, PollOutcome


class PollProgressObserver(Protocol):
    """Observer protocol for a single poll loop.

    - on_poll_started: before the first status fetch
    - on_poll_iteration: after every fetch (status is None when the fetch failed
      transiently or returned an unparseable body)
    - on_poll_finished: once, with the outcome
    - on_poll_abandoned: instead of on_poll_finished when the loop ends on an
      unexpected error or cancellation

    Observers may be shared between concurrent poll loops and must not assume
    a single handle.
    """

    async def on_poll_started(self, handle: JobHandle, attempts: int) -> None:
        ...

    async def on_poll_iteration(
        self,
        handle: JobHandle,
        iteration: int,
        status: Optional[JobStatus],
    ) -> None:
        ...

    async def on_poll_finished(self, outcome: PollOutcome) -> None:
        ...

    async def on_poll_abandoned(self, handle: JobHandle, error: BaseException) -> None:
        ...
