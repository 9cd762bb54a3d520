"""Eventual-consistency reconciliation for platform reads.

Some platform data only exists after a background job has populated it. The
platform signals this with a specific error (typically HTTP 404 whose message
asks the caller to run a job). `EventualConsistencyReconciler` recognises that
signature, runs the remediation job to completion and re-issues the read once.
"""

from __future__ import annotations

import re
from typing import Awaitable, Callable, Optional, TypeVar

from fleetops.core.exceptions import (
    JobFailure,
    PlatformException,
    ReconciliationExhausted,
    RemediationTimeout,
)
from fleetops.core.managers.job_poller import JobPoller
from fleetops.core.managers.job_submitter import JobSubmitter
from fleetops.core.models.job import JobHandle, JobRequest
from fleetops.core.settings import logger

T = TypeVar("T")

DEFAULT_SIGNATURE_PATTERN = r"\brun\b.*\bjob\b"


def not_yet_available(
    status: int = 404,
    pattern: str = DEFAULT_SIGNATURE_PATTERN,
) -> Callable[[Exception], bool]:
    """Build a predicate matching "data not populated yet, run job X" errors.

    Matches a PlatformException with the given HTTP status whose platform
    message matches `pattern` (case-insensitive).
    """
    regex = re.compile(pattern, re.IGNORECASE)

    def matches(exc: Exception) -> bool:
        if not isinstance(exc, PlatformException):
            return False
        if exc.status != status:
            return False
        return bool(regex.search(exc.response.message()))

    return matches


class EventualConsistencyReconciler:
    """Wraps a read with at most one remediation cycle."""

    def __init__(self, submitter: JobSubmitter, poller: JobPoller) -> None:
        self._submitter = submitter
        self._poller = poller

    async def read_with_reconciliation(
        self,
        primary_read: Callable[[], Awaitable[T]],
        failure_signature: Callable[[Exception], bool],
        remediation: JobRequest,
        timeout: Optional[float] = None,
    ) -> T:
        """Run `primary_read`, remediating once if it fails with `failure_signature`.

        Raises:
            The original exception, unchanged, when it does not match the signature.
            SubmissionError when the remediation job is rejected.
            JobFailure when the remediation job ends FAILED or without success.
            RemediationTimeout when the remediation job outlives `timeout`.
            ReconciliationExhausted when the read fails again after remediation.
        """
        try:
            return await primary_read()
        except Exception as exc:
            if not failure_signature(exc):
                raise
            first_error = exc

        logger.info(
            f"[reconcile] read not yet available, running remediation template={remediation.template_id} "
            f"resource_id={remediation.resource_id} cause={first_error}"
        )
        handle = await self._submitter.submit(remediation)
        return await self._finish_remediation(handle, primary_read, timeout, cause=first_error)

    async def resume_remediation(
        self,
        handle: JobHandle,
        primary_read: Callable[[], Awaitable[T]],
        timeout: Optional[float] = None,
    ) -> T:
        """Continue a remediation cycle whose job outlived an earlier budget.

        Polls the existing remediation job and, on success, issues the read
        once. Raises the same errors as `read_with_reconciliation` after its
        submission step; no new job is submitted.
        """
        logger.info(f"[reconcile] resuming remediation job_uri={handle.resource_uri}")
        return await self._finish_remediation(handle, primary_read, timeout, cause=None)

    async def _finish_remediation(
        self,
        handle: JobHandle,
        primary_read: Callable[[], Awaitable[T]],
        timeout: Optional[float],
        cause: Optional[Exception],
    ) -> T:
        outcome = await self._poller.poll(handle, timeout)

        if outcome.timed_out:
            budget = timeout if timeout is not None else self._poller.config.default_timeout
            logger.warning(
                f"[reconcile] remediation still running job_uri={handle.resource_uri} budget={budget}s"
            )
            raise RemediationTimeout(handle.resource_uri, budget) from cause

        final_status = outcome.final_status
        if not final_status.is_success():
            reason = final_status.failure_reason()
            logger.warning(
                f"[reconcile] remediation failed job_uri={handle.resource_uri} "
                f"state={final_status.state} result_code={final_status.result_code} reason={reason}"
            )
            raise JobFailure(
                reason,
                job_uri=handle.resource_uri,
                result_code=final_status.result_code,
                diagnostic=str(cause) if cause is not None else None,
            ) from cause

        logger.debug(f"[reconcile] remediation complete job_uri={handle.resource_uri}; retrying read")
        try:
            return await primary_read()
        except Exception as exc:
            logger.warning(
                f"[reconcile] read failed again after remediation job_uri={handle.resource_uri} error={exc}"
            )
            raise ReconciliationExhausted(exc, remediation_uri=handle.resource_uri) from exc
