from enum import StrEnum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


class JobState(StrEnum):
    queued = "QUEUED"
    running = "RUNNING"
    complete = "COMPLETE"
    failed = "FAILED"


class JobResultCode(StrEnum):
    success = "SUCCESS"
    failure = "FAILURE"


# Platform state strings vary between services; normalize them once here.
_STATE_ALIASES: Dict[str, JobState] = {
    "QUEUED": JobState.queued,
    "PENDING": JobState.queued,
    "CREATED": JobState.queued,
    "INITIALIZED": JobState.queued,
    "SUBMITTED": JobState.queued,
    "RUNNING": JobState.running,
    "IN_PROGRESS": JobState.running,
    "STARTED": JobState.running,
    "COMPLETE": JobState.complete,
    "COMPLETED": JobState.complete,
    "SUCCEEDED": JobState.complete,
    "ERROR": JobState.failed,
    "FAILED": JobState.failed,
    "STALLED": JobState.failed,
    "CANCELED": JobState.failed,
    "CANCELLED": JobState.failed,
    "TIMEDOUT": JobState.failed,
}

TERMINAL_STATES = {JobState.complete, JobState.failed}


def normalize_state(raw: Any) -> Optional[JobState]:
    """Map a wire state string onto JobState, None if unknown."""
    if raw is None:
        return None
    key = str(raw).strip().upper().replace("-", "_").replace(" ", "_")
    return _STATE_ALIASES.get(key)


class JobRequest(BaseModel):
    """Description of a job the platform knows how to run."""

    template_id: str
    resource_id: str
    resource_type: str
    parameters: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    def to_wire(self) -> Dict[str, Any]:
        return {
            "jobTemplate": self.template_id,
            "resourceId": self.resource_id,
            "resourceType": self.resource_type,
            "jobParams": dict(self.parameters),
        }


class JobHandle(BaseModel):
    resource_uri: str

    model_config = {"frozen": True}


class JobStatus(BaseModel):
    """One snapshot of a job as reported by the status endpoint.

    `result_payload` mirrors the platform's `statusDetails` map; its content
    depends on the job template (download URL, resource URI, failure reason).
    """

    state: JobState
    result_code: Optional[str] = None
    status: Optional[str] = None
    result_payload: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_wire(cls, body: Any) -> Optional["JobStatus"]:
        """Parse a status response body; None when it is not a job status."""
        if not isinstance(body, dict):
            return None
        state = normalize_state(body.get("state"))
        if state is None:
            return None
        details = body.get("statusDetails")
        return cls(
            state=state,
            result_code=str(body["resultCode"]).upper() if body.get("resultCode") else None,
            status=body.get("status"),
            result_payload=details if isinstance(details, dict) else {},
        )

    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def is_success(self) -> bool:
        # Some templates finish COMPLETE without a result code; treat that as success.
        return self.state == JobState.complete and (
            self.result_code is None or self.result_code == JobResultCode.success
        )

    def failure_reason(self) -> str:
        payload = self.result_payload
        for key in ("reason", "message", "errorMessage", "failureReason"):
            if payload.get(key):
                return str(payload[key])
        if self.status:
            return self.status
        return f"Job finished with state={self.state} resultCode={self.result_code}"


class PollOutcome(BaseModel):
    final_status: Optional[JobStatus] = None
    timed_out: bool = False
    handle: JobHandle

    @model_validator(mode="after")
    def _check_consistency(self) -> "PollOutcome":
        if self.timed_out and self.final_status is not None:
            raise ValueError("timed out poll outcome must not carry a final status")
        if not self.timed_out:
            if self.final_status is None or not self.final_status.is_terminal():
                raise ValueError("completed poll outcome requires a terminal final status")
        return self
