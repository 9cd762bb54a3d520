"""Resource resolution against the platform's collection endpoints.

Servers are looked up by name first and serial number second; domains by
name. Canonical ids (UUIDs or "<product>+<serial>" server ids) are accepted
as-is after a direct GET.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from fleetops.core.exceptions import ConfigurationError, PlatformException, ResourceNotFoundError
from fleetops.core.interfaces.http_client import HttpClientPort
from fleetops.core.interfaces.resources import ResourceResolverPort
from fleetops.core.models.resource import (
    DOMAIN_RESOURCE_TYPE,
    SERVER_RESOURCE_TYPE,
    ResolvedResource,
)
from fleetops.core.settings import logger


class PlatformResourceResolver(ResourceResolverPort):
    def __init__(
        self,
        http_client: HttpClientPort,
        servers_path: str = "/compute-ops-mgmt/v1/servers",
        domains_path: str = "/identity/v1/domains",
    ):
        self._http = http_client
        self._collections = {
            SERVER_RESOURCE_TYPE: (servers_path.rstrip("/"), ["name", "hardware/serialNumber"]),
            DOMAIN_RESOURCE_TYPE: (domains_path.rstrip("/"), ["name"]),
        }

    async def resolve(self, subject: str, resource_type: str) -> ResolvedResource:
        if resource_type not in self._collections:
            raise ConfigurationError(f"no collection registered for resource type '{resource_type}'")
        path, filter_fields = self._collections[resource_type]

        direct = await self._get_by_id(path, subject)
        if direct is not None:
            return self._to_resource(direct, resource_type)

        for field in filter_fields:
            items = await self._filter(path, field, subject)
            if len(items) > 1:
                logger.warning(
                    f"[resolver] ambiguous {resource_type} subject={subject} field={field} matches={len(items)}; "
                    "using the first"
                )
            if items:
                return self._to_resource(items[0], resource_type)

        raise ResourceNotFoundError(subject, resource_type)

    async def _get_by_id(self, path: str, subject: str) -> Optional[Dict[str, Any]]:
        try:
            body = await self._http.get(f"{path}/{quote(subject, safe='+')}")
        except PlatformException as exc:
            # 400/404: not an id, fall back to filtered lookups
            if exc.status in (400, 404):
                return None
            raise
        return body if isinstance(body, dict) and body.get("id") else None

    async def _filter(self, path: str, field: str, value: str) -> List[Dict[str, Any]]:
        escaped = value.replace("'", "''")
        query = quote(f"{field} eq '{escaped}'", safe="")
        body = await self._http.get(f"{path}?filter={query}")
        items = body.get("items") if isinstance(body, dict) else None
        return items if isinstance(items, list) else []

    def _to_resource(self, item: Dict[str, Any], resource_type: str) -> ResolvedResource:
        attributes = dict(item)
        hardware = item.get("hardware") if isinstance(item.get("hardware"), dict) else {}
        if "powerState" not in attributes and hardware.get("powerState"):
            attributes["powerState"] = hardware["powerState"]
        return ResolvedResource(
            resource_id=str(item["id"]),
            resource_type=resource_type,
            name=item.get("name"),
            attributes=attributes,
        )
