from enum import StrEnum
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_serializer


class RecordStatus(StrEnum):
    complete = "Complete"
    failed = "Failed"
    warning = "Warning"
    running = "Running"
    timeout = "Timeout"


class StatusRecord(BaseModel):
    """Outcome of one logical unit of work (one server, one domain, ...).

    Notes:
    - `job_uri` is set whenever a job is still alive on the platform
      (`Running` / `Timeout`) so callers can resume polling later.
    - `exception` keeps the raw underlying error for diagnostics; it is
      rendered as text when the record is dumped.
    """

    subject_key: str
    status: RecordStatus
    details: Optional[str] = None
    exception: Optional[Any] = None
    job_uri: Optional[str] = None
    result: Optional[Dict[str, Any]] = None

    model_config = {"arbitrary_types_allowed": True}

    @field_serializer("exception")
    def _serialize_exception(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, BaseException):
            return f"{type(value).__name__}: {value}"
        return str(value)
