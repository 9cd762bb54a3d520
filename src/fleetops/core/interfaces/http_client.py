from abc import ABC, abstractmethod
from typing import Any, Dict


class HttpClientPort(ABC):
    """Async JSON client for the platform API.

    `url` may be absolute or a path relative to the platform base URL (job
    locators are usually relative). Methods return the parsed JSON body, None
    for an empty body, and raise `PlatformException` on HTTP error statuses
    with the status code and the platform error body attached.

    `timeout` overrides the adapter's default per-request budget in seconds.
    """

    @abstractmethod
    async def __aenter__(self) -> "HttpClientPort":
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass

    @abstractmethod
    async def get(self, url: str, timeout: float | None = None) -> Any:
        pass

    @abstractmethod
    async def post(self, url: str, json: Dict[str, Any] | None, timeout: float | None = None) -> Any:
        pass

    @abstractmethod
    async def patch(self, url: str, json: Dict[str, Any] | None, timeout: float | None = None) -> Any:
        pass

    @abstractmethod
    async def put(self, url: str, json: Dict[str, Any] | None, timeout: float | None = None) -> Any:
        pass

    @abstractmethod
    async def delete(self, url: str, timeout: float | None = None) -> Any:
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection pool."""
        pass
