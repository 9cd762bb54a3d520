"""Concrete operation strategies.

Provides the per-feature payload shaping and result extraction used by the
orchestrators:
1. ServerLogCollectionOperation: collect a server's logs, return the download URL
2. DomainClaimOperation: claim an SSO/SAML domain for the workspace
3. IloSsoTokenOperation: generate an iLO single-sign-on URL/token for a server
4. ExternalStorageDetailsOperation: reconciled read of external storage details
"""

from typing import Any, Callable, Optional

from fleetops.core.config import OperationsConfig
from fleetops.core.exceptions import JobFailure
from fleetops.core.interfaces.http_client import HttpClientPort
from fleetops.core.interfaces.operations import OperationResult
from fleetops.core.managers.reconciler import not_yet_available
from fleetops.core.models.job import JobRequest, JobStatus
from fleetops.core.models.resource import (
    DOMAIN_RESOURCE_TYPE,
    SERVER_RESOURCE_TYPE,
    ResolvedResource,
)
from fleetops.core.settings import logger


def _first(payload: dict, *keys: str) -> Optional[Any]:
    for key in keys:
        value = payload.get(key)
        if value:
            return value
    return None


class ServerLogCollectionOperation:
    """Collects a support log bundle from a server.

    The job reports the artifact either directly (`downloadUrl`) or as a
    resource to fetch once ready (`downloadUri` / `resourceUri`).
    """

    name = "server-logs"
    resource_type = SERVER_RESOURCE_TYPE

    def __init__(self, config: OperationsConfig):
        self._template = config.server_logs_template
        self.timeout = config.server_logs_timeout

    def precheck(self, resource: ResolvedResource) -> Optional[str]:
        power_state = resource.attributes.get("powerState")
        if power_state and str(power_state).upper() != "ON":
            return f"Server is powered {str(power_state).lower()}; log collection skipped"
        return None

    def build_request(self, resource: ResolvedResource) -> JobRequest:
        return JobRequest(
            template_id=self._template,
            resource_id=resource.resource_id,
            resource_type=self.resource_type,
            parameters={},
        )

    async def extract_result(
        self, status: JobStatus, http_client: HttpClientPort
    ) -> OperationResult:
        payload = status.result_payload
        download_url = payload.get("downloadUrl")
        if not download_url:
            follow_up = _first(payload, "downloadUri", "resourceUri")
            if not follow_up:
                raise JobFailure(
                    "Log collection finished without a download location",
                    result_code=status.result_code,
                )
            logger.debug(f"[operation:server-logs] fetching download resource uri={follow_up}")
            artifact = await http_client.get(follow_up)
            download_url = artifact.get("downloadUrl") if isinstance(artifact, dict) else None
            if not download_url:
                raise JobFailure(
                    f"Download resource {follow_up} did not contain a downloadUrl",
                    result_code=status.result_code,
                )
        return OperationResult(
            details=f"Server logs ready for download: {download_url}",
            data={"downloadUrl": download_url},
        )


class DomainClaimOperation:
    """Claims an identity domain so it can be used for SSO/SAML federation."""

    name = "domain-claim"
    resource_type = DOMAIN_RESOURCE_TYPE

    def __init__(self, config: OperationsConfig):
        self._template = config.domain_claim_template
        self.timeout = config.domain_claim_timeout

    def precheck(self, resource: ResolvedResource) -> Optional[str]:
        state = str(resource.attributes.get("verificationStatus") or "").upper()
        if state == "VERIFIED":
            return f"Domain '{resource.name or resource.resource_id}' is already claimed"
        return None

    def build_request(self, resource: ResolvedResource) -> JobRequest:
        return JobRequest(
            template_id=self._template,
            resource_id=resource.resource_id,
            resource_type=self.resource_type,
            parameters={"domain": resource.name or resource.resource_id},
        )

    async def extract_result(
        self, status: JobStatus, http_client: HttpClientPort
    ) -> OperationResult:
        payload = status.result_payload
        data = {}
        verification = payload.get("verificationStatus")
        if verification:
            data["verificationStatus"] = verification
        txt_record = _first(payload, "txtRecord", "verificationRecord")
        if txt_record:
            data["txtRecord"] = txt_record
        if verification:
            details = f"Domain claim {str(verification).lower()}"
        else:
            # Job finished without reporting a verification state
            details = status.status or "Domain claim job completed"
        return OperationResult(details=details, data=data)


class IloSsoTokenOperation:
    """Generates an iLO single-sign-on URL for a server.

    The job only reports where the token resource lives; the token itself is
    read from `statusDetails.resourceUri` afterwards.
    """

    name = "ilo-sso"
    resource_type = SERVER_RESOURCE_TYPE

    def __init__(self, config: OperationsConfig):
        self._template = config.ilo_sso_template
        self.timeout = config.ilo_sso_timeout

    def precheck(self, resource: ResolvedResource) -> Optional[str]:
        connected = resource.attributes.get("iloConnected")
        if connected is False:
            return "iLO is not connected to the platform; SSO token not generated"
        return None

    def build_request(self, resource: ResolvedResource) -> JobRequest:
        return JobRequest(
            template_id=self._template,
            resource_id=resource.resource_id,
            resource_type=self.resource_type,
            parameters={},
        )

    async def extract_result(
        self, status: JobStatus, http_client: HttpClientPort
    ) -> OperationResult:
        payload = status.result_payload
        sso_url = payload.get("ssoUrl")
        token = payload.get("token")
        if not sso_url:
            resource_uri = payload.get("resourceUri")
            if not resource_uri:
                raise JobFailure(
                    "SSO job finished without an SSO resource",
                    result_code=status.result_code,
                )
            body = await http_client.get(resource_uri)
            body = body if isinstance(body, dict) else {}
            sso_url = body.get("ssoUrl")
            token = body.get("token", token)
            if not sso_url:
                raise JobFailure(
                    f"SSO resource {resource_uri} did not contain an ssoUrl",
                    result_code=status.result_code,
                )
        data = {"ssoUrl": sso_url}
        if token:
            data["token"] = token
        return OperationResult(details="iLO SSO URL generated", data=data)


class ExternalStorageDetailsOperation:
    """Reads external storage details, populating them with a job if needed."""

    name = "storage-details"
    resource_type = SERVER_RESOURCE_TYPE

    def __init__(self, config: OperationsConfig, servers_path: str = "/compute-ops-mgmt/v1/servers"):
        self._template = config.storage_remediation_template
        self._servers_path = servers_path.rstrip("/")
        self.remediation_timeout = config.storage_remediation_timeout

    def read_url(self, resource: ResolvedResource) -> str:
        return f"{self._servers_path}/{resource.resource_id}/external-storage-details"

    def failure_signature(self) -> Callable[[Exception], bool]:
        return not_yet_available(status=404)

    def remediation_request(self, resource: ResolvedResource) -> JobRequest:
        return JobRequest(
            template_id=self._template,
            resource_id=resource.resource_id,
            resource_type=self.resource_type,
            parameters={},
        )

    def extract_result(self, body: Any) -> OperationResult:
        data = body if isinstance(body, dict) else {"items": body}
        items = data.get("items")
        count = len(items) if isinstance(items, list) else None
        details = (
            f"External storage details retrieved ({count} entries)"
            if count is not None
            else "External storage details retrieved"
        )
        return OperationResult(details=details, data=data)
