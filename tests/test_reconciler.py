"""Unit tests for EventualConsistencyReconciler.

The primary read is an AsyncMock so the number of read attempts can be
asserted directly; the remediation job runs through the real submitter and
poller against the fake HTTP client.
"""

import pytest
from unittest.mock import AsyncMock

from conftest import JOBS_PATH, job_status, platform_error

from fleetops.core.exceptions import (
    JobFailure,
    PlatformException,
    ReconciliationExhausted,
    RemediationTimeout,
    SubmissionError,
)
from fleetops.core.managers.job_poller import JobPoller
from fleetops.core.managers.job_submitter import JobSubmitter
from fleetops.core.managers.reconciler import EventualConsistencyReconciler, not_yet_available
from fleetops.core.models.job import JobHandle, JobRequest

REMEDIATION_URI = "/compute-ops-mgmt/v1/jobs/roundup-1"

NOT_POPULATED = {
    "errorCode": "HPE_GL_ERROR_NOT_FOUND",
    "message": "External storage details not found. Run the DataRoundupReport job to collect them.",
}


@pytest.fixture
def reconciler(http, polling, config):
    return EventualConsistencyReconciler(
        JobSubmitter(http, config),
        JobPoller(http, polling, config),
    )


@pytest.fixture
def remediation():
    return JobRequest(
        template_id="DataRoundupReport",
        resource_id="srv-1",
        resource_type="compute-ops-mgmt/server",
    )


# --- signature predicate ---

def test_signature_matches_status_and_message():
    matches = not_yet_available(status=404)
    assert matches(platform_error(404, NOT_POPULATED))
    assert not matches(platform_error(404, {"message": "server not found"}))
    assert not matches(platform_error(400, NOT_POPULATED))
    assert not matches(ValueError("run the job"))


def test_signature_reads_text_bodies():
    matches = not_yet_available(status=404, pattern=r"roundup")
    assert matches(platform_error(404, "please trigger a ROUNDUP first"))


# --- read paths ---

@pytest.mark.asyncio
async def test_first_read_success_runs_no_job(reconciler, http, remediation):
    primary = AsyncMock(return_value={"items": []})

    result = await reconciler.read_with_reconciliation(
        primary, not_yet_available(), remediation, timeout=0.05
    )

    assert result == {"items": []}
    assert primary.await_count == 1
    assert http.calls == []


@pytest.mark.asyncio
async def test_unmatched_error_propagates_unchanged(reconciler, http, remediation):
    error = platform_error(500, {"message": "internal"})
    primary = AsyncMock(side_effect=error)

    with pytest.raises(PlatformException) as excinfo:
        await reconciler.read_with_reconciliation(primary, not_yet_available(), remediation)

    assert excinfo.value is error
    assert primary.await_count == 1
    assert http.count("POST", JOBS_PATH) == 0


@pytest.mark.asyncio
async def test_matched_error_remediates_and_retries_once(reconciler, http, remediation):
    http.script("POST", JOBS_PATH, {"resourceUri": REMEDIATION_URI})
    http.script("GET", REMEDIATION_URI, job_status("RUNNING"), job_status("COMPLETE", "SUCCESS"))
    primary = AsyncMock(side_effect=[platform_error(404, NOT_POPULATED), {"items": [{"id": "vol-1"}]}])

    result = await reconciler.read_with_reconciliation(
        primary, not_yet_available(), remediation, timeout=1.0
    )

    assert result == {"items": [{"id": "vol-1"}]}
    assert primary.await_count == 2
    assert http.count("POST", JOBS_PATH) == 1
    assert http.calls[0][2]["jobTemplate"] == "DataRoundupReport"


@pytest.mark.asyncio
async def test_second_failure_is_exhausted_with_last_error(reconciler, http, remediation):
    http.script("POST", JOBS_PATH, {"resourceUri": REMEDIATION_URI})
    http.script("GET", REMEDIATION_URI, job_status("COMPLETE"))
    first = platform_error(404, NOT_POPULATED)
    second = platform_error(404, {"message": "still missing, run the job again"})
    primary = AsyncMock(side_effect=[first, second])

    with pytest.raises(ReconciliationExhausted) as excinfo:
        await reconciler.read_with_reconciliation(primary, not_yet_available(), remediation, timeout=1.0)

    assert excinfo.value.last_error is second
    assert excinfo.value.job_uri == REMEDIATION_URI
    assert primary.await_count == 2
    assert http.count("POST", JOBS_PATH) == 1


@pytest.mark.asyncio
async def test_failed_remediation_skips_second_read(reconciler, http, remediation):
    http.script("POST", JOBS_PATH, {"resourceUri": REMEDIATION_URI})
    http.script("GET", REMEDIATION_URI, job_status("FAILED", "FAILURE", reason="server offline"))
    first = platform_error(404, NOT_POPULATED)
    primary = AsyncMock(side_effect=[first, {"items": []}])

    with pytest.raises(JobFailure) as excinfo:
        await reconciler.read_with_reconciliation(primary, not_yet_available(), remediation, timeout=1.0)

    assert excinfo.value.reason == "server offline"
    assert excinfo.value.job_uri == REMEDIATION_URI
    assert excinfo.value.__cause__ is first
    assert primary.await_count == 1


@pytest.mark.asyncio
async def test_remediation_timeout_is_distinct(reconciler, http, remediation):
    http.script("POST", JOBS_PATH, {"resourceUri": REMEDIATION_URI})
    http.script("GET", REMEDIATION_URI, job_status("RUNNING"))
    primary = AsyncMock(side_effect=[platform_error(404, NOT_POPULATED), {"items": []}])

    with pytest.raises(RemediationTimeout) as excinfo:
        await reconciler.read_with_reconciliation(primary, not_yet_available(), remediation, timeout=0.03)

    assert excinfo.value.job_uri == REMEDIATION_URI
    assert excinfo.value.timeout_seconds == 0.03
    assert primary.await_count == 1
    assert http.count("GET", REMEDIATION_URI) == 3


@pytest.mark.asyncio
async def test_rejected_remediation_is_a_submission_error(reconciler, http, remediation):
    http.script("POST", JOBS_PATH, platform_error(403, {"message": "forbidden"}))
    primary = AsyncMock(side_effect=platform_error(404, NOT_POPULATED))

    with pytest.raises(SubmissionError) as excinfo:
        await reconciler.read_with_reconciliation(primary, not_yet_available(), remediation)

    assert excinfo.value.http_status == 403
    assert primary.await_count == 1


# --- resuming a remediation ---

@pytest.mark.asyncio
async def test_resume_remediation_reads_once_after_job_completes(reconciler, http):
    http.script("GET", REMEDIATION_URI, job_status("RUNNING"), job_status("COMPLETE", "SUCCESS"))
    primary = AsyncMock(return_value={"items": [{"id": "vol-1"}]})

    result = await reconciler.resume_remediation(JobHandle(resource_uri=REMEDIATION_URI), primary, timeout=1.0)

    assert result == {"items": [{"id": "vol-1"}]}
    assert primary.await_count == 1
    assert http.count("POST", JOBS_PATH) == 0


@pytest.mark.asyncio
async def test_resume_remediation_still_running_times_out_again(reconciler, http):
    http.script("GET", REMEDIATION_URI, job_status("RUNNING"))
    primary = AsyncMock(return_value={"items": []})

    with pytest.raises(RemediationTimeout) as excinfo:
        await reconciler.resume_remediation(JobHandle(resource_uri=REMEDIATION_URI), primary, timeout=0.02)

    assert excinfo.value.job_uri == REMEDIATION_URI
    assert excinfo.value.__cause__ is None
    assert primary.await_count == 0


@pytest.mark.asyncio
async def test_resume_remediation_failed_job(reconciler, http):
    http.script("GET", REMEDIATION_URI, job_status("FAILED", "FAILURE", reason="server offline"))
    primary = AsyncMock(return_value={"items": []})

    with pytest.raises(JobFailure) as excinfo:
        await reconciler.resume_remediation(JobHandle(resource_uri=REMEDIATION_URI), primary, timeout=1.0)

    assert excinfo.value.reason == "server offline"
    assert primary.await_count == 0
