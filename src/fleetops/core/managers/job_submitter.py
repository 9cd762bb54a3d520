"""JobSubmitter: posts job descriptions to the platform jobs collection."""

from __future__ import annotations

from typing import Any

from fleetops.core.config import OperationsConfig
from fleetops.core.exceptions import PlatformException, SubmissionError
from fleetops.core.interfaces.http_client import HttpClientPort
from fleetops.core.models.job import JobHandle, JobRequest
from fleetops.core.settings import logger


class JobSubmitter:
    """Submits a JobRequest and returns the handle of the created job.

    Submission is a single attempt: any rejection surfaces as SubmissionError
    and is never retried here.
    """

    def __init__(self, http_client: HttpClientPort, config: OperationsConfig) -> None:
        self._http = http_client
        self.config = config

    async def submit(self, request: JobRequest) -> JobHandle:
        payload = request.to_wire()
        logger.debug(
            f"[job:submit] template={request.template_id} resource_id={request.resource_id} "
            f"resource_type={request.resource_type} param_keys={list(request.parameters.keys())}"
        )
        try:
            body = await self._http.post(self.config.jobs_path, json=payload)
        except PlatformException as exc:
            logger.warning(
                f"[job:submit] rejected template={request.template_id} resource_id={request.resource_id} "
                f"status={exc.status} title={exc.response.title}"
            )
            raise SubmissionError(
                f"Job submission rejected: {exc.response.message()}",
                http_status=exc.status,
                body=exc.response.body,
                diagnostic=exc.response.detail,
            ) from exc

        resource_uri = self._extract_resource_uri(body)
        if not resource_uri:
            logger.error(
                f"[job:submit] response without resourceUri template={request.template_id} "
                f"body_type={type(body).__name__}"
            )
            raise SubmissionError(
                "Job submission response did not contain a resourceUri",
                body=body,
            )

        logger.info(
            f"[job:submit] submitted template={request.template_id} resource_id={request.resource_id} "
            f"job_uri={resource_uri}"
        )
        return JobHandle(resource_uri=resource_uri)

    def _extract_resource_uri(self, body: Any) -> str | None:
        if not isinstance(body, dict):
            return None
        uri = body.get("resourceUri")
        if isinstance(uri, str) and uri:
            return uri
        return None
