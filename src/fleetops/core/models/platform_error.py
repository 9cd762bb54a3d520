from typing import Any, Optional

from pydantic import BaseModel


class PlatformErrorResponse(BaseModel):
    title: str
    status: int
    detail: str
    instance: Optional[str] = None
    # Raw error body returned by the platform (JSON or text)
    body: Optional[Any] = None

    def message(self) -> str:
        """Best-effort human message: platform body first, then detail."""
        if isinstance(self.body, dict):
            for key in ("message", "errorMessage", "detail", "error"):
                value = self.body.get(key)
                if isinstance(value, str) and value:
                    return value
        if isinstance(self.body, str) and self.body:
            return self.body
        return self.detail
