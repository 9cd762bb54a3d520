from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ResolvedResource(BaseModel):
    """Canonical platform identity of a human-supplied subject."""

    resource_id: str
    resource_type: str
    name: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


SERVER_RESOURCE_TYPE = "compute-ops-mgmt/server"
DOMAIN_RESOURCE_TYPE = "identity/domain"
