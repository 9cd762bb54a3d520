# Logging adapter for application-wide logging
from fleetops.adapters.logging_adapter import LoggingAdapter

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings
from rich import print

from fleetops.core.interfaces.logging import LoggingPort

# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class FleetOpsSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }
    FLEETOPS_LOG_LEVEL: str = "INFO"
    FLEETOPS_BASE_URL: str = "https://us-west.api.greenlake.hpe.com"
    FLEETOPS_API_TOKEN: SecretStr = SecretStr("")
    FLEETOPS_HTTP_TIMEOUT: float = 30.0  # seconds per request
    FLEETOPS_JOBS_PATH: str = "/compute-ops-mgmt/v1/jobs"
    FLEETOPS_SERVERS_PATH: str = "/compute-ops-mgmt/v1/servers"
    FLEETOPS_DOMAINS_PATH: str = "/identity/v1/domains"
    FLEETOPS_POLL_INTERVAL: float = 1.0
    FLEETOPS_DEFAULT_TIMEOUT: float = 120.0
    FLEETOPS_BATCH_CONCURRENCY: int = 8

    # Job templates and poll budgets per operation
    FLEETOPS_SERVER_LOGS_TEMPLATE: str = "CollectServerLogs"
    FLEETOPS_SERVER_LOGS_TIMEOUT: float = 240.0
    FLEETOPS_DOMAIN_CLAIM_TEMPLATE: str = "ClaimDomain"
    FLEETOPS_DOMAIN_CLAIM_TIMEOUT: float = 300.0
    FLEETOPS_ILO_SSO_TEMPLATE: str = "GetIloSsoUrl"
    FLEETOPS_ILO_SSO_TIMEOUT: float = 60.0
    FLEETOPS_STORAGE_REMEDIATION_TEMPLATE: str = "DataRoundupReport"
    FLEETOPS_STORAGE_REMEDIATION_TIMEOUT: float = 180.0

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("FleetOps Settings:")
        print(self)

    @field_validator("FLEETOPS_BASE_URL", mode="before")
    def strip_trailing_slash(cls, value: str) -> str:
        """Paths are joined with a leading slash; keep the base without one."""
        return str(value).rstrip("/")


app_settings = FleetOpsSettings()

logger = LoggingAdapter("fleetops", app_settings.FLEETOPS_LOG_LEVEL)
