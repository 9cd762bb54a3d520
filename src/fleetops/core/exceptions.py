from typing import Any, Optional

from fleetops.core.models.platform_error import PlatformErrorResponse


class PlatformException(Exception):
    """Base exception for errors reported by the platform API."""
    def __init__(self, response: PlatformErrorResponse):
        self.response = response
        super().__init__(f"{response.status} {response.title}: {response.message()}")

    @property
    def status(self) -> int:
        return self.response.status


class TransientPlatformError(PlatformException):
    """Wrapper for platform errors worth waiting out inside a poll loop.

    Used to distinguish retryable errors (connection, 5xx, 408, 429) from
    terminal client errors (other 4xx) in the polling retry predicate.
    """

    pass


class ConfigurationError(Exception):
    """Invalid wiring or configuration (programmer error, never converted to a record)."""


class ResourceNotFoundError(Exception):
    """Raised by resource resolution when the subject does not exist."""
    def __init__(self, subject: str, resource_type: str):
        self.subject = subject
        self.resource_type = resource_type
        super().__init__(f"{resource_type} '{subject}' not found")


# Domain-specific job execution exceptions

class JobExecutionError(Exception):
    """Base exception for job execution failures.

    Attributes:
        message: Human-readable error description
        diagnostic: Technical diagnostic information for debugging
        job_uri: Optional job resource locator
    """
    def __init__(
        self,
        message: str,
        diagnostic: Optional[str] = None,
        job_uri: Optional[str] = None
    ):
        self.message = message
        self.diagnostic = diagnostic
        self.job_uri = job_uri
        super().__init__(message)


class SubmissionError(JobExecutionError):
    """Raised when the platform rejects a job submission. Never retried.

    Attributes:
        http_status: HTTP status code returned by the jobs endpoint
        body: Response body returned by the platform (if available)
    """
    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        body: Optional[Any] = None,
        diagnostic: Optional[str] = None
    ):
        self.http_status = http_status
        self.body = body
        super().__init__(message=message, diagnostic=diagnostic)


class JobFailure(JobExecutionError):
    """Raised when a job reached FAILED or a non-success result code.

    Attributes:
        reason: Platform-provided failure reason
        result_code: Result code reported by the platform
    """
    def __init__(
        self,
        reason: str,
        job_uri: Optional[str] = None,
        result_code: Optional[str] = None,
        diagnostic: Optional[str] = None
    ):
        self.reason = reason
        self.result_code = result_code
        super().__init__(message=reason, diagnostic=diagnostic, job_uri=job_uri)


class RemediationTimeout(JobExecutionError):
    """Raised when a remediation job did not finish within its budget.

    The remediation job keeps running on the platform; `job_uri` can be polled
    again later.
    """
    def __init__(self, job_uri: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        message = f"Remediation job {job_uri} still running after {timeout_seconds}s"
        super().__init__(message=message, job_uri=job_uri)


class ReconciliationExhausted(JobExecutionError):
    """Raised when the read still fails after a successful remediation job.

    Carries the error of the final read, not the one that triggered remediation.
    """
    def __init__(self, last_error: Exception, remediation_uri: Optional[str] = None):
        self.last_error = last_error
        super().__init__(
            message=str(last_error),
            diagnostic="read failed again after remediation",
            job_uri=remediation_uri,
        )
