# fleetops/core/managers/fleet_manager.py
from __future__ import annotations

from typing import Iterable, List, Optional

from fleetops.core.config import OperationsConfig
from fleetops.core.exceptions import ConfigurationError
from fleetops.core.interfaces.http_client import HttpClientPort
from fleetops.core.interfaces.observers import PollProgressObserver
from fleetops.core.interfaces.polling import PollingPort
from fleetops.core.interfaces.resources import ResourceResolverPort
from fleetops.core.managers.job_poller import JobPoller
from fleetops.core.managers.job_submitter import JobSubmitter
from fleetops.core.managers.operation_strategies import (
    DomainClaimOperation,
    ExternalStorageDetailsOperation,
    IloSsoTokenOperation,
    ServerLogCollectionOperation,
)
from fleetops.core.managers.orchestrator import (
    JobOperationOrchestrator,
    ReconciledReadOrchestrator,
)
from fleetops.core.managers.reconciler import EventualConsistencyReconciler
from fleetops.core.models.status_record import StatusRecord


class FleetOperationsManager:
    """Facade wiring one submitter/poller/reconciler into the feature orchestrators.

    All orchestrators share the same HTTP client (and through it the session
    credentials); nothing else is shared between invocations.
    """

    def __init__(
        self,
        http_client: HttpClientPort,
        resolver: ResourceResolverPort,
        polling_port: PollingPort,
        config: OperationsConfig,
        observers: Optional[list[PollProgressObserver]] = None,
        servers_path: str = "/compute-ops-mgmt/v1/servers",
    ) -> None:
        self.config = config
        self.submitter = JobSubmitter(http_client, config)
        self.poller = JobPoller(http_client, polling_port, config, observers=observers)
        self.reconciler = EventualConsistencyReconciler(self.submitter, self.poller)

        def job_orchestrator(operation) -> JobOperationOrchestrator:
            return JobOperationOrchestrator(
                operation,
                resolver,
                http_client,
                self.submitter,
                self.poller,
                config,
            )

        self.server_logs = job_orchestrator(ServerLogCollectionOperation(config))
        self.domain_claim = job_orchestrator(DomainClaimOperation(config))
        self.ilo_sso = job_orchestrator(IloSsoTokenOperation(config))
        self.storage_details = ReconciledReadOrchestrator(
            ExternalStorageDetailsOperation(config, servers_path=servers_path),
            resolver,
            http_client,
            self.reconciler,
            config,
        )
        self._resumable = {
            orchestrator.operation_name: orchestrator
            for orchestrator in (self.server_logs, self.domain_claim, self.ilo_sso, self.storage_details)
        }

    async def collect_server_logs(
        self, servers: Iterable[str], wait: bool = True, timeout: Optional[float] = None
    ) -> List[StatusRecord]:
        return await self.server_logs.execute_many(servers, wait=wait, timeout=timeout)

    async def claim_domains(
        self, domains: Iterable[str], wait: bool = True, timeout: Optional[float] = None
    ) -> List[StatusRecord]:
        return await self.domain_claim.execute_many(domains, wait=wait, timeout=timeout)

    async def get_ilo_sso_tokens(
        self, servers: Iterable[str], wait: bool = True, timeout: Optional[float] = None
    ) -> List[StatusRecord]:
        return await self.ilo_sso.execute_many(servers, wait=wait, timeout=timeout)

    async def get_external_storage_details(
        self, servers: Iterable[str], timeout: Optional[float] = None
    ) -> List[StatusRecord]:
        return await self.storage_details.execute_many(servers, timeout=timeout)

    async def resume(
        self,
        operation: str,
        subject_key: str,
        job_uri: str,
        timeout: Optional[float] = None,
    ) -> StatusRecord:
        """Resume a Running/Timeout record by operation name.

        For storage details the job_uri is the remediation job of a timed-out read.
        """
        orchestrator = self._resumable.get(operation)
        if orchestrator is None:
            raise ConfigurationError(
                f"unknown operation '{operation}', expected one of {sorted(self._resumable)}"
            )
        return await orchestrator.resume(subject_key, job_uri, timeout=timeout)
