"""Configuration models for core domain components.

This module provides Pydantic-based configuration classes that consolidate
settings for the job submitter, poller, reconciler and orchestrators, enabling
dependency injection and testability.
"""

from pydantic import BaseModel, Field


class OperationsConfig(BaseModel):
    """Configuration for job execution behavior.

    Attributes:
        poll_interval: Seconds between job status fetches (float for test flexibility)
        default_timeout: Poll budget in seconds when an operation does not define one
        jobs_path: Path of the jobs collection endpoint (relative to the base URL)
        batch_concurrency: Maximum number of subjects processed at once by execute_many
    """

    poll_interval: float = Field(
        default=1.0,
        gt=0,
        description="Interval in seconds between job status requests"
    )

    default_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Default poll budget in seconds"
    )

    jobs_path: str = Field(
        default="/compute-ops-mgmt/v1/jobs",
        description="Jobs collection endpoint used for submission"
    )

    batch_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum number of concurrent invocations in a batch"
    )

    server_logs_template: str = Field(default="CollectServerLogs")
    server_logs_timeout: float = Field(default=240.0, gt=0)

    domain_claim_template: str = Field(default="ClaimDomain")
    domain_claim_timeout: float = Field(default=300.0, gt=0)

    ilo_sso_template: str = Field(default="GetIloSsoUrl")
    ilo_sso_timeout: float = Field(default=60.0, gt=0)

    storage_remediation_template: str = Field(default="DataRoundupReport")
    storage_remediation_timeout: float = Field(default=180.0, gt=0)

    model_config = {
        "frozen": True,  # Immutable after creation for safety
        "extra": "forbid",  # Reject unknown fields
    }

    @classmethod
    def from_app_settings(cls, settings) -> "OperationsConfig":
        """Factory method to construct config from FleetOpsSettings instance.

        Args:
            settings: FleetOpsSettings instance from core.settings

        Returns:
            OperationsConfig with values from app settings
        """
        return cls(
            poll_interval=settings.FLEETOPS_POLL_INTERVAL,
            default_timeout=settings.FLEETOPS_DEFAULT_TIMEOUT,
            jobs_path=settings.FLEETOPS_JOBS_PATH,
            batch_concurrency=settings.FLEETOPS_BATCH_CONCURRENCY,
            server_logs_template=settings.FLEETOPS_SERVER_LOGS_TEMPLATE,
            server_logs_timeout=settings.FLEETOPS_SERVER_LOGS_TIMEOUT,
            domain_claim_template=settings.FLEETOPS_DOMAIN_CLAIM_TEMPLATE,
            domain_claim_timeout=settings.FLEETOPS_DOMAIN_CLAIM_TIMEOUT,
            ilo_sso_template=settings.FLEETOPS_ILO_SSO_TEMPLATE,
            ilo_sso_timeout=settings.FLEETOPS_ILO_SSO_TIMEOUT,
            storage_remediation_template=settings.FLEETOPS_STORAGE_REMEDIATION_TEMPLATE,
            storage_remediation_timeout=settings.FLEETOPS_STORAGE_REMEDIATION_TIMEOUT,
        )
