"""Shared test doubles for the platform ports.

FakeHttpClient serves scripted responses per (method, url); each scripted
entry is returned once in order and the last one repeats. Exceptions in the
script are raised instead of returned; callables are called with the request body.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from fleetops.adapters.polling_tenacity import TenacityPollingAdapter
from fleetops.core.config import OperationsConfig
from fleetops.core.exceptions import PlatformException, ResourceNotFoundError
from fleetops.core.interfaces.http_client import HttpClientPort
from fleetops.core.interfaces.resources import ResourceResolverPort
from fleetops.core.models.platform_error import PlatformErrorResponse
from fleetops.core.models.resource import ResolvedResource


JOBS_PATH = "/compute-ops-mgmt/v1/jobs"


def platform_error(status: int, body: Any = None, title: str = "Upstream HTTP Error") -> PlatformException:
    return PlatformException(
        PlatformErrorResponse(
            title=title,
            status=status,
            detail=f"The platform returned an HTTP error: {status}",
            body=body,
        )
    )


def job_status(state: str, result_code: Optional[str] = None, **details) -> Dict[str, Any]:
    body: Dict[str, Any] = {"state": state, "statusDetails": details}
    if result_code:
        body["resultCode"] = result_code
    return body


class FakeHttpClient(HttpClientPort):
    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.calls: List[Tuple[str, str, Any]] = []

    def script(self, method: str, url: str, *responses: Any) -> None:
        self.routes[(method, url)] = list(responses)

    def count(self, method: str, url: str) -> int:
        return sum(1 for m, u, _ in self.calls if m == method and u == url)

    async def _dispatch(self, method: str, url: str, json: Any = None) -> Any:
        self.calls.append((method, url, json))
        queue = self.routes.get((method, url))
        if not queue:
            raise platform_error(404, {"message": f"no route for {method} {url}"}, title="Not Found")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(json)
        return response

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def get(self, url, timeout=None):
        return await self._dispatch("GET", url)

    async def post(self, url, json, timeout=None):
        return await self._dispatch("POST", url, json)

    async def patch(self, url, json, timeout=None):
        return await self._dispatch("PATCH", url, json)

    async def put(self, url, json, timeout=None):
        return await self._dispatch("PUT", url, json)

    async def delete(self, url, timeout=None):
        return await self._dispatch("DELETE", url)

    async def close(self):
        return None


class StaticResolver(ResourceResolverPort):
    """Resolves subjects from a fixed table; unknown subjects are not found."""

    def __init__(self, resources: Optional[Dict[str, ResolvedResource]] = None):
        self.resources = resources or {}

    async def resolve(self, subject: str, resource_type: str) -> ResolvedResource:
        resource = self.resources.get(subject)
        if resource is None or resource.resource_type != resource_type:
            raise ResourceNotFoundError(subject, resource_type)
        return resource


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def config():
    return OperationsConfig(
        poll_interval=0.01,
        default_timeout=0.05,
        server_logs_timeout=0.05,
        domain_claim_timeout=0.05,
        ilo_sso_timeout=0.05,
        storage_remediation_timeout=0.05,
        batch_concurrency=4,
    )


@pytest.fixture
def http():
    return FakeHttpClient()


@pytest.fixture
def polling():
    return TenacityPollingAdapter(sleep=no_sleep)
