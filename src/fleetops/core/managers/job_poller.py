"""JobPoller: waits for a submitted job to reach a terminal state.

Responsibilities:
1. Derive the iteration budget from the timeout and the poll interval.
2. Fetch a fresh JobStatus for the handle once per iteration.
3. Treat transient fetch failures as "keep waiting".
4. Abort early on terminal client errors (auth, unknown job) with a FAILED status.
5. Report timeouts as a first-class outcome that keeps the handle.
6. Notify progress observers once per iteration.
"""

from __future__ import annotations

import asyncio
import math
from typing import Optional

from fleetops.core.config import OperationsConfig
from fleetops.core.exceptions import PlatformException, TransientPlatformError
from fleetops.core.interfaces.http_client import HttpClientPort
from fleetops.core.interfaces.observers import PollProgressObserver
from fleetops.core.interfaces.polling import PollingPort
from fleetops.core.models.job import (
    JobHandle,
    JobResultCode,
    JobState,
    JobStatus,
    PollOutcome,
)
from fleetops.core.models.platform_error import PlatformErrorResponse
from fleetops.core.settings import logger

TRANSIENT_STATUSES = {408, 429, 500, 502, 503, 504}


class JobPoller:
    """Polls job status until terminal state or the budget runs out.

    The poller keeps no per-job state on the instance: concurrent `poll` calls
    for different handles are independent.
    """

    def __init__(
        self,
        http_client: HttpClientPort,
        polling_port: PollingPort,
        config: OperationsConfig,
        observers: Optional[list[PollProgressObserver]] = None,
    ) -> None:
        self._http = http_client
        self._polling = polling_port
        self.config = config
        self._observers = observers or []

    def iterations_for(self, timeout: float) -> int:
        """Number of status fetches that fit into `timeout` seconds."""
        # round() absorbs float noise such as 0.03 / 0.01 == 2.9999999999999996
        return max(1, math.ceil(round(timeout / self.config.poll_interval, 6)))

    async def poll(self, handle: JobHandle, timeout: Optional[float] = None) -> PollOutcome:
        budget = timeout if timeout is not None else self.config.default_timeout
        attempts = self.iterations_for(budget)
        logger.debug(
            f"[job:poll] start job_uri={handle.resource_uri} timeout={budget}s attempts={attempts} "
            f"interval={self.config.poll_interval}s"
        )
        await self._notify_started(handle, attempts)

        iteration = 0

        async def fetch_once() -> Optional[JobStatus]:
            nonlocal iteration
            iteration += 1
            try:
                status = await self._fetch_status(handle)
            except TransientPlatformError:
                await self._notify_iteration(handle, iteration, None)
                raise
            await self._notify_iteration(handle, iteration, status)
            return status

        try:
            final_status = await self._polling.poll_until(
                fetch_once,
                is_done=lambda status: status is not None and status.is_terminal(),
                attempts=attempts,
                interval=self.config.poll_interval,
                retry_on=(TransientPlatformError,),
            )
        except PlatformException as exc:
            logger.warning(
                f"[job:poll] aborting on terminal error job_uri={handle.resource_uri} "
                f"status={exc.status} title={exc.response.title}"
            )
            outcome = PollOutcome(
                final_status=self._aborted_status(exc),
                timed_out=False,
                handle=handle,
            )
            await self._notify_finished(outcome)
            return outcome
        except BaseException as exc:
            # Unexpected errors and cancellation end the loop without an outcome
            logger.debug(
                f"[job:poll] abandoned job_uri={handle.resource_uri} error={type(exc).__name__}: {exc}"
            )
            await self._notify_abandoned(handle, exc)
            raise

        if final_status is None:
            logger.info(
                f"[job:poll] timed out job_uri={handle.resource_uri} after {iteration} fetches "
                f"(budget {budget}s); handle kept for resumption"
            )
            outcome = PollOutcome(final_status=None, timed_out=True, handle=handle)
        else:
            logger.debug(
                f"[job:poll] terminal job_uri={handle.resource_uri} state={final_status.state} "
                f"result_code={final_status.result_code} fetches={iteration}"
            )
            outcome = PollOutcome(final_status=final_status, timed_out=False, handle=handle)

        await self._notify_finished(outcome)
        return outcome

    async def _fetch_status(self, handle: JobHandle) -> Optional[JobStatus]:
        """Fetch one status snapshot; None for bodies that are not a job status.

        Transient errors are re-raised as TransientPlatformError so the polling
        port keeps waiting; terminal client errors propagate unchanged.
        """
        try:
            body = await self._http.get(handle.resource_uri)
        except PlatformException as exc:
            if self._is_transient_error(exc):
                logger.debug(
                    f"[job:poll] transient fetch error job_uri={handle.resource_uri} status={exc.status}"
                )
                raise TransientPlatformError(exc.response) from exc
            raise
        except (OSError, asyncio.TimeoutError) as exc:
            # Raw connection errors from clients that do not map them
            logger.debug(
                f"[job:poll] connection error job_uri={handle.resource_uri} err={exc}"
            )
            raise TransientPlatformError(
                PlatformErrorResponse(
                    title="Connection Error",
                    status=502,
                    detail=str(exc) or type(exc).__name__,
                )
            ) from exc

        status = JobStatus.from_wire(body)
        if status is None:
            logger.debug(f"[job:poll] no valid job status job_uri={handle.resource_uri}")
        return status

    def _is_transient_error(self, exc: PlatformException) -> bool:
        """Check if a status fetch error is worth waiting out.

        Transient: connection errors, request timeouts, throttling, 5xx.
        Terminal: authentication/authorization failures and other 4xx.
        """
        if exc.status in TRANSIENT_STATUSES or exc.status >= 500:
            return True
        return False

    def _aborted_status(self, exc: PlatformException) -> JobStatus:
        return JobStatus(
            state=JobState.failed,
            result_code=str(JobResultCode.failure),
            status=f"Status polling aborted: {exc.response.title}",
            result_payload={
                "reason": exc.response.message(),
                "httpStatus": exc.status,
            },
        )

    async def _notify_started(self, handle: JobHandle, attempts: int) -> None:
        for observer in self._observers:
            try:
                await observer.on_poll_started(handle, attempts)
            except Exception as exc:
                logger.error(
                    f"[observer:error] on_poll_started failed observer={type(observer).__name__} "
                    f"job_uri={handle.resource_uri} error={exc}"
                )

    async def _notify_iteration(
        self, handle: JobHandle, iteration: int, status: Optional[JobStatus]
    ) -> None:
        for observer in self._observers:
            try:
                await observer.on_poll_iteration(handle, iteration, status)
            except Exception as exc:
                logger.error(
                    f"[observer:error] on_poll_iteration failed observer={type(observer).__name__} "
                    f"job_uri={handle.resource_uri} error={exc}"
                )

    async def _notify_finished(self, outcome: PollOutcome) -> None:
        for observer in self._observers:
            try:
                await observer.on_poll_finished(outcome)
            except Exception as exc:
                logger.error(
                    f"[observer:error] on_poll_finished failed observer={type(observer).__name__} "
                    f"job_uri={outcome.handle.resource_uri} error={exc}"
                )

    async def _notify_abandoned(self, handle: JobHandle, error: BaseException) -> None:
        for observer in self._observers:
            try:
                await observer.on_poll_abandoned(handle, error)
            except Exception as exc:
                logger.error(
                    f"[observer:error] on_poll_abandoned failed observer={type(observer).__name__} "
                    f"job_uri={handle.resource_uri} error={exc}"
                )
