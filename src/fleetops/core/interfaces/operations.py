"""Protocols for per-feature operation strategies.

An orchestrator owns the generic submit/poll/reconcile flow; a strategy only
knows how to shape the job payload for its feature and how to turn a finished
job (or a successful read) into a result, following the Strategy pattern.
"""

from typing import Any, Callable, Dict, Optional, Protocol

from fleetops.core.interfaces.http_client import HttpClientPort
from fleetops.core.models.job import JobRequest, JobStatus
from fleetops.core.models.resource import ResolvedResource


class OperationResult:
    """Feature result extracted after success.

    Attributes:
        details: Human-readable summary placed in StatusRecord.details
        data: Structured result placed in StatusRecord.result
    """

    def __init__(self, details: str, data: Optional[Dict[str, Any]] = None):
        self.details = details
        self.data = data or {}


class JobOperation(Protocol):
    """Strategy for operations backed by a single platform job.

    Attributes:
        name: Short operation name used in logs and correlation ids
        resource_type: Resource type tag sent with the job and used for resolution
        timeout: Poll budget in seconds
    """

    name: str
    resource_type: str
    timeout: float

    def precheck(self, resource: ResolvedResource) -> Optional[str]:
        """Return a warning message to skip the job, or None to proceed."""
        ...

    def build_request(self, resource: ResolvedResource) -> JobRequest:
        ...

    async def extract_result(
        self, status: JobStatus, http_client: HttpClientPort
    ) -> OperationResult:
        """Turn a successful terminal status into a result (may issue follow-up reads)."""
        ...


class ReconciledReadOperation(Protocol):
    """Strategy for reads that may need a remediation job before data exists.

    Attributes:
        name: Short operation name used in logs and correlation ids
        resource_type: Resource type tag used for resolution and remediation
        remediation_timeout: Poll budget in seconds for the remediation job
    """

    name: str
    resource_type: str
    remediation_timeout: float

    def read_url(self, resource: ResolvedResource) -> str:
        ...

    def failure_signature(self) -> Callable[[Exception], bool]:
        ...

    def remediation_request(self, resource: ResolvedResource) -> JobRequest:
        ...

    def extract_result(self, body: Any) -> OperationResult:
        ...
