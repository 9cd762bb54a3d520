# fleetops/adapters/aiohttp_client_adapter.py
import asyncio
import aiohttp
from typing import Any, Dict, Optional

from fleetops.core.interfaces.http_client import HttpClientPort
from fleetops.core.interfaces.session import SessionPort
from fleetops.core.exceptions import PlatformException
from fleetops.core.models.platform_error import PlatformErrorResponse
from fleetops.core.settings import logger
from fleetops.core.utils.uri import resolve_uri


class AioHttpClientAdapter(HttpClientPort):
    """aiohttp-backed platform client.

    One ClientSession is shared by all concurrent operations; the bearer token
    is read from the injected session on every request.
    """

    def __init__(
        self,
        base_url: str = "",
        session: Optional[SessionPort] = None,
        default_timeout: float = 30.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._auth = session
        self._session: Optional[aiohttp.ClientSession] = None
        self._default_total: float = default_timeout
        self._default_sock_connect: float = 5.0
        # Pre-built adapter ClientTimeout to use when callers do not provide a timeout
        self._default_client_timeout = aiohttp.ClientTimeout(
            total=self._default_total,
            sock_connect=self._default_sock_connect,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def get(self, url: str, timeout: float | None = None) -> Any:
        return await self._request("GET", url, timeout=timeout)

    async def post(self, url: str, json: Dict[str, Any] | None, timeout: float | None = None) -> Any:
        return await self._request("POST", url, json=json, timeout=timeout)

    async def patch(self, url: str, json: Dict[str, Any] | None, timeout: float | None = None) -> Any:
        return await self._request("PATCH", url, json=json, timeout=timeout)

    async def put(self, url: str, json: Dict[str, Any] | None, timeout: float | None = None) -> Any:
        return await self._request("PUT", url, json=json, timeout=timeout)

    async def delete(self, url: str, timeout: float | None = None) -> Any:
        return await self._request("DELETE", url, timeout=timeout)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._auth is not None:
            token = self._auth.get_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def _client_timeout(self, timeout: float | None) -> aiohttp.ClientTimeout:
        if timeout is None:
            return self._default_client_timeout
        # Keep adapter-level sock_connect but apply provided total
        return aiohttp.ClientTimeout(total=timeout, sock_connect=self._default_sock_connect)

    async def _request(
        self,
        method: str,
        url: str,
        json: Dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Send a request and return the parsed JSON body.

        Translates HTTP/network errors into PlatformException. HTTP error
        responses keep the platform error body so callers can match on it.
        """
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")

        full_url = resolve_uri(self._base_url, url)
        try:
            async with self._session.request(
                method,
                full_url,
                json=json,
                headers=self._headers(),
                timeout=self._client_timeout(timeout),
            ) as response:
                body = await self._read_body(response)

                if response.status >= 400:
                    self._raise_http_error(method, full_url, response.status, body)

                if isinstance(body, str) and body:
                    # 2xx with a non-JSON body breaks the API contract
                    logger.error(
                        "Invalid JSON response from platform. URL: %s, Content: %s",
                        full_url,
                        body[:500],
                    )
                    raise PlatformException(
                        PlatformErrorResponse(
                            title="Invalid Response Content",
                            status=502,
                            detail=f"The response from the platform was not valid JSON: '{body[:100]}'",
                            instance=full_url,
                        )
                    )
                return body

        except PlatformException:
            raise

        except asyncio.TimeoutError:
            logger.error("Timeout when requesting platform. Method: %s, URL: %s", method, full_url)
            raise PlatformException(
                PlatformErrorResponse(
                    title="Upstream Timeout",
                    status=504,
                    detail="The request to the platform timed out.",
                    instance=full_url,
                )
            )

        except aiohttp.ClientError as client_error:
            logger.error(
                "Connection error when requesting platform. Method: %s, URL: %s, Error: %s",
                method,
                full_url,
                str(client_error),
            )
            raise PlatformException(
                PlatformErrorResponse(
                    title="Upstream Connection Error",
                    status=502,
                    detail="There was a connection error with the platform.",
                    instance=full_url,
                )
            )

    async def _read_body(self, response: aiohttp.ClientResponse) -> Any:
        try:
            # content_type=None: platform error bodies are not always labelled JSON
            return await response.json(content_type=None)
        except ValueError:
            return await response.text()

    def _raise_http_error(self, method: str, url: str, status: int, body: Any) -> None:
        if status == 401:
            logger.warning("Authentication failed when requesting platform. Method: %s, URL: %s", method, url)
            title = "Authentication Failed"
        elif status == 403:
            logger.warning("Access denied when requesting platform. Method: %s, URL: %s", method, url)
            title = "Forbidden"
        elif status == 404:
            logger.debug("Resource not found. Method: %s, URL: %s", method, url)
            title = "Not Found"
        else:
            logger.error("HTTP error when requesting platform. Method: %s, URL: %s, Status: %s", method, url, status)
            title = "Upstream HTTP Error"
        raise PlatformException(
            PlatformErrorResponse(
                title=title,
                status=status,
                detail=f"The platform returned an HTTP error: {status}",
                instance=url,
                body=body,
            )
        )
