"""Operation orchestrators: turn one subject into one StatusRecord.

Flow per invocation (job-backed operations):
1. Resolve the subject to a platform resource.
2. Run the strategy precheck (Warning record, no job, when it objects).
3. Build the JobRequest and submit it.
4. Unless fire-and-forget, poll with the operation's timeout.
5. Success -> extract the result; FAILED -> Failed; timeout -> Timeout with
   the job locator so the caller can resume.

Expected conditions (not found, rejected submission, failed job, timeout,
remediation failure) never raise past this boundary. Only ConfigurationError
escapes.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, Optional

from fleetops.core.config import OperationsConfig
from fleetops.core.exceptions import (
    ConfigurationError,
    JobExecutionError,
    JobFailure,
    PlatformException,
    ReconciliationExhausted,
    RemediationTimeout,
    ResourceNotFoundError,
    SubmissionError,
)
from fleetops.core.interfaces.http_client import HttpClientPort
from fleetops.core.interfaces.operations import JobOperation, ReconciledReadOperation
from fleetops.core.interfaces.resources import ResourceResolverPort
from fleetops.core.logging_config import correlation_scope
from fleetops.core.managers.job_poller import JobPoller
from fleetops.core.managers.job_submitter import JobSubmitter
from fleetops.core.managers.reconciler import EventualConsistencyReconciler
from fleetops.core.models.job import JobHandle, PollOutcome
from fleetops.core.models.resource import ResolvedResource
from fleetops.core.models.status_record import RecordStatus, StatusRecord
from fleetops.core.settings import logger


class BaseOrchestrator:
    """Shared resolution, error mapping and batch fan-out."""

    operation_name = "operation"

    def __init__(
        self,
        resolver: ResourceResolverPort,
        http_client: HttpClientPort,
        config: OperationsConfig,
    ) -> None:
        self._resolver = resolver
        self._http = http_client
        self.config = config

    async def execute(self, subject: str, **kwargs) -> StatusRecord:  # pragma: no cover - abstract
        raise NotImplementedError

    async def execute_many(self, subjects: Iterable[str], **kwargs) -> List[StatusRecord]:
        """Run `execute` for every subject concurrently; one record per subject, in order."""
        subjects = list(subjects)
        semaphore = asyncio.Semaphore(self.config.batch_concurrency)

        async def run(subject: str) -> StatusRecord:
            async with semaphore:
                return await self.execute(subject, **kwargs)

        logger.debug(
            f"[orchestrator:{self.operation_name}] batch size={len(subjects)} "
            f"concurrency={self.config.batch_concurrency}"
        )
        return list(await asyncio.gather(*(run(s) for s in subjects)))

    async def _guarded(
        self, subject: str, body: Callable[[], Awaitable[StatusRecord]]
    ) -> StatusRecord:
        """Run one invocation, converting expected failures into records."""
        with correlation_scope(f"{self.operation_name}:{subject}"):
            try:
                return await body()
            except ConfigurationError:
                raise
            except ResourceNotFoundError as exc:
                logger.warning(f"[orchestrator:{self.operation_name}] subject not found subject={subject}")
                return self._failed(subject, str(exc), exc)
            except SubmissionError as exc:
                return self._failed(subject, exc.message, exc)
            except RemediationTimeout as exc:
                return StatusRecord(
                    subject_key=subject,
                    status=RecordStatus.timeout,
                    details=exc.message,
                    job_uri=exc.job_uri,
                )
            except ReconciliationExhausted as exc:
                return self._failed(subject, exc.message, exc.last_error, job_uri=exc.job_uri)
            except JobExecutionError as exc:
                return self._failed(subject, exc.message, exc, job_uri=exc.job_uri)
            except PlatformException as exc:
                logger.warning(
                    f"[orchestrator:{self.operation_name}] platform error subject={subject} "
                    f"status={exc.status} title={exc.response.title}"
                )
                return self._failed(subject, exc.response.message(), exc)
            except Exception as exc:
                # One record per subject even for bugs; ConfigurationError is the only escape
                logger.exception(
                    f"[orchestrator:{self.operation_name}] unexpected error subject={subject} error={exc}"
                )
                return self._failed(subject, f"Unexpected error: {exc}", exc)

    async def _resolve(self, subject: str, resource_type: str) -> ResolvedResource:
        resource = await self._resolver.resolve(subject, resource_type)
        logger.debug(
            f"[orchestrator:{self.operation_name}] resolved subject={subject} resource_id={resource.resource_id}"
        )
        return resource

    def _failed(
        self,
        subject: str,
        details: str,
        exc: Optional[BaseException] = None,
        job_uri: Optional[str] = None,
    ) -> StatusRecord:
        return StatusRecord(
            subject_key=subject,
            status=RecordStatus.failed,
            details=details,
            exception=exc,
            job_uri=job_uri,
        )


class JobOperationOrchestrator(BaseOrchestrator):
    """Runs a job-backed operation (submit, poll, extract) for each subject."""

    def __init__(
        self,
        operation: JobOperation,
        resolver: ResourceResolverPort,
        http_client: HttpClientPort,
        submitter: JobSubmitter,
        poller: JobPoller,
        config: OperationsConfig,
    ) -> None:
        super().__init__(resolver, http_client, config)
        if not getattr(operation, "resource_type", None):
            raise ConfigurationError(f"operation {operation!r} has no resource_type")
        self._operation = operation
        self._submitter = submitter
        self._poller = poller
        self.operation_name = operation.name

    async def execute(
        self,
        subject: str,
        wait: bool = True,
        timeout: Optional[float] = None,
    ) -> StatusRecord:
        """Run the operation for one subject.

        With `wait=False` the job is submitted and a Running record carrying
        the job locator is returned immediately.
        """

        async def body() -> StatusRecord:
            resource = await self._resolve(subject, self._operation.resource_type)

            warning = self._operation.precheck(resource)
            if warning:
                logger.info(f"[orchestrator:{self.operation_name}] precheck warning subject={subject}: {warning}")
                return StatusRecord(subject_key=subject, status=RecordStatus.warning, details=warning)

            request = self._operation.build_request(resource)
            handle = await self._submitter.submit(request)

            if not wait:
                return StatusRecord(
                    subject_key=subject,
                    status=RecordStatus.running,
                    details=f"Job submitted: {handle.resource_uri}",
                    job_uri=handle.resource_uri,
                )

            budget = self._budget(timeout)
            outcome = await self._poller.poll(handle, budget)
            return await self._record_from_outcome(subject, outcome, budget)

        return await self._guarded(subject, body)

    async def resume(
        self,
        subject_key: str,
        job_uri: str,
        timeout: Optional[float] = None,
    ) -> StatusRecord:
        """Re-poll a job left Running or Timeout by an earlier invocation."""

        async def body() -> StatusRecord:
            logger.info(f"[orchestrator:{self.operation_name}] resuming job_uri={job_uri}")
            budget = self._budget(timeout)
            outcome = await self._poller.poll(JobHandle(resource_uri=job_uri), budget)
            return await self._record_from_outcome(subject_key, outcome, budget)

        return await self._guarded(subject_key, body)

    def _budget(self, timeout: Optional[float]) -> float:
        if timeout is not None:
            return timeout
        return getattr(self._operation, "timeout", None) or self.config.default_timeout

    async def _record_from_outcome(
        self, subject: str, outcome: PollOutcome, budget: float
    ) -> StatusRecord:
        job_uri = outcome.handle.resource_uri
        if outcome.timed_out:
            return StatusRecord(
                subject_key=subject,
                status=RecordStatus.timeout,
                details=(
                    f"Job still running after {budget}s; "
                    f"poll {job_uri} later to follow it"
                ),
                job_uri=job_uri,
            )

        final_status = outcome.final_status
        if not final_status.is_success():
            raise JobFailure(
                final_status.failure_reason(),
                job_uri=job_uri,
                result_code=final_status.result_code,
            )

        result = await self._operation.extract_result(final_status, self._http)
        logger.info(f"[orchestrator:{self.operation_name}] complete subject={subject} job_uri={job_uri}")
        return StatusRecord(
            subject_key=subject,
            status=RecordStatus.complete,
            details=result.details,
            job_uri=job_uri,
            result=result.data,
        )


class ReconciledReadOrchestrator(BaseOrchestrator):
    """Runs a read operation that may need one remediation job first."""

    def __init__(
        self,
        operation: ReconciledReadOperation,
        resolver: ResourceResolverPort,
        http_client: HttpClientPort,
        reconciler: EventualConsistencyReconciler,
        config: OperationsConfig,
    ) -> None:
        super().__init__(resolver, http_client, config)
        self._operation = operation
        self._reconciler = reconciler
        self.operation_name = operation.name

    async def execute(self, subject: str, timeout: Optional[float] = None) -> StatusRecord:
        async def body() -> StatusRecord:
            resource = await self._resolve(subject, self._operation.resource_type)
            url = self._operation.read_url(resource)

            async def primary_read():
                return await self._http.get(url)

            data = await self._reconciler.read_with_reconciliation(
                primary_read,
                self._operation.failure_signature(),
                self._operation.remediation_request(resource),
                timeout if timeout is not None else self._operation.remediation_timeout,
            )
            result = self._operation.extract_result(data)
            return StatusRecord(
                subject_key=subject,
                status=RecordStatus.complete,
                details=result.details,
                result=result.data,
            )

        return await self._guarded(subject, body)

    async def resume(
        self,
        subject_key: str,
        job_uri: str,
        timeout: Optional[float] = None,
    ) -> StatusRecord:
        """Follow a remediation job left Timeout by an earlier read, then read once more."""

        async def body() -> StatusRecord:
            logger.info(f"[orchestrator:{self.operation_name}] resuming remediation job_uri={job_uri}")
            resource = await self._resolve(subject_key, self._operation.resource_type)
            url = self._operation.read_url(resource)

            async def primary_read():
                return await self._http.get(url)

            data = await self._reconciler.resume_remediation(
                JobHandle(resource_uri=job_uri),
                primary_read,
                timeout if timeout is not None else self._operation.remediation_timeout,
            )
            result = self._operation.extract_result(data)
            return StatusRecord(
                subject_key=subject_key,
                status=RecordStatus.complete,
                details=result.details,
                job_uri=job_uri,
                result=result.data,
            )

        return await self._guarded(subject_key, body)
