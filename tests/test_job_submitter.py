import pytest

from conftest import JOBS_PATH, platform_error

from fleetops.core.exceptions import SubmissionError
from fleetops.core.managers.job_submitter import JobSubmitter
from fleetops.core.models.job import JobRequest


@pytest.fixture
def request_model():
    return JobRequest(
        template_id="ClaimDomain",
        resource_id="dom-1",
        resource_type="identity/domain",
        parameters={"domain": "example.com"},
    )


@pytest.mark.asyncio
async def test_submit_posts_job_description(http, config, request_model):
    http.script("POST", JOBS_PATH, {"resourceUri": "/compute-ops-mgmt/v1/jobs/abc", "state": "QUEUED"})

    handle = await JobSubmitter(http, config).submit(request_model)

    assert handle.resource_uri == "/compute-ops-mgmt/v1/jobs/abc"
    method, url, payload = http.calls[0]
    assert (method, url) == ("POST", JOBS_PATH)
    assert payload == {
        "jobTemplate": "ClaimDomain",
        "resourceId": "dom-1",
        "resourceType": "identity/domain",
        "jobParams": {"domain": "example.com"},
    }


@pytest.mark.asyncio
async def test_rejection_keeps_status_and_body(http, config, request_model):
    body = {"errorCode": "HPE_GL_ERROR_BAD_REQUEST", "message": "unknown job template"}
    http.script("POST", JOBS_PATH, platform_error(400, body))

    with pytest.raises(SubmissionError) as excinfo:
        await JobSubmitter(http, config).submit(request_model)

    assert excinfo.value.http_status == 400
    assert excinfo.value.body == body
    assert "unknown job template" in excinfo.value.message
    assert http.count("POST", JOBS_PATH) == 1


@pytest.mark.asyncio
async def test_server_errors_are_not_retried(http, config, request_model):
    http.script("POST", JOBS_PATH, platform_error(503), {"resourceUri": "/jobs/late"})

    with pytest.raises(SubmissionError) as excinfo:
        await JobSubmitter(http, config).submit(request_model)

    assert excinfo.value.http_status == 503
    assert http.count("POST", JOBS_PATH) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"resourceUri": ""}, None, "accepted"])
async def test_response_without_locator_is_a_submission_error(http, config, request_model, body):
    http.script("POST", JOBS_PATH, body)

    with pytest.raises(SubmissionError):
        await JobSubmitter(http, config).submit(request_model)


@pytest.mark.asyncio
async def test_custom_jobs_path(http, config, request_model):
    custom = config.model_copy(update={"jobs_path": "/ops/v2/jobs"})
    http.script("POST", "/ops/v2/jobs", {"resourceUri": "/ops/v2/jobs/1"})

    handle = await JobSubmitter(http, custom).submit(request_model)

    assert handle.resource_uri == "/ops/v2/jobs/1"
