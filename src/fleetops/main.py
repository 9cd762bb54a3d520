# main.py
import argparse
import asyncio
import sys
from typing import List, Optional, Sequence

from rich import print_json

from fleetops.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from fleetops.adapters.polling_tenacity import TenacityPollingAdapter
from fleetops.adapters.resource_resolver_platform import PlatformResourceResolver
from fleetops.adapters.session_static_adapter import StaticTokenSession
from fleetops.core.config import OperationsConfig
from fleetops.core.exceptions import ConfigurationError
from fleetops.core.logging_config import configure_logging
from fleetops.core.managers.fleet_manager import FleetOperationsManager
from fleetops.core.managers.observers import LoggingProgressObserver
from fleetops.core.models.status_record import RecordStatus, StatusRecord
from fleetops.core.settings import FleetOpsSettings, app_settings, logger


# main lives at the outermost layer (not in core)
# Instantiates all the concrete adapters
# Wires dependencies together
# Runs one CLI command


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fleetops",
        description="Run long-running fleet operations against the management platform.",
    )
    p.add_argument("--log-level", default=None, help="Override FLEETOPS_LOG_LEVEL")
    p.add_argument(
        "--show-settings",
        action="store_true",
        help="Print the effective settings before running the command",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_job_command(name: str, help_text: str, subject_help: str) -> None:
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("subjects", nargs="+", help=subject_help)
        cmd.add_argument(
            "--async",
            dest="wait",
            action="store_false",
            help="Return Running records with job URIs instead of waiting",
        )
        cmd.add_argument("--timeout", type=float, default=None, help="Poll budget in seconds")

    add_job_command("collect-logs", "Collect support logs from servers", "Server names, serials or ids")
    add_job_command("claim-domain", "Claim SSO/SAML domains", "Domain names or ids")
    add_job_command("ilo-sso", "Generate iLO single-sign-on URLs", "Server names, serials or ids")

    storage = sub.add_parser("storage-details", help="Read external storage details of servers")
    storage.add_argument("subjects", nargs="+", help="Server names, serials or ids")
    storage.add_argument(
        "--timeout", type=float, default=None, help="Remediation job budget in seconds"
    )

    resume = sub.add_parser("resume", help="Resume waiting on a Running or Timeout record")
    resume.add_argument("operation", choices=["server-logs", "domain-claim", "ilo-sso", "storage-details"])
    resume.add_argument("subject_key", help="Subject key of the original record")
    resume.add_argument("job_uri", help="Job URI reported by the original record")
    resume.add_argument("--timeout", type=float, default=None, help="Poll budget in seconds")
    return p


def build_manager(
    http_client: AioHttpClientAdapter, settings: FleetOpsSettings
) -> FleetOperationsManager:
    resolver = PlatformResourceResolver(
        http_client,
        servers_path=settings.FLEETOPS_SERVERS_PATH,
        domains_path=settings.FLEETOPS_DOMAINS_PATH,
    )
    return FleetOperationsManager(
        http_client=http_client,
        resolver=resolver,
        polling_port=TenacityPollingAdapter(),
        config=OperationsConfig.from_app_settings(settings),
        observers=[LoggingProgressObserver()],
        servers_path=settings.FLEETOPS_SERVERS_PATH,
    )


async def run_command(args: argparse.Namespace, settings: FleetOpsSettings) -> List[StatusRecord]:
    session = StaticTokenSession(settings.FLEETOPS_API_TOKEN)
    async with AioHttpClientAdapter(
        base_url=settings.FLEETOPS_BASE_URL,
        session=session,
        default_timeout=settings.FLEETOPS_HTTP_TIMEOUT,
    ) as http_client:
        manager = build_manager(http_client, settings)

        if args.cmd == "collect-logs":
            return await manager.collect_server_logs(args.subjects, wait=args.wait, timeout=args.timeout)
        if args.cmd == "claim-domain":
            return await manager.claim_domains(args.subjects, wait=args.wait, timeout=args.timeout)
        if args.cmd == "ilo-sso":
            return await manager.get_ilo_sso_tokens(args.subjects, wait=args.wait, timeout=args.timeout)
        if args.cmd == "storage-details":
            return await manager.get_external_storage_details(args.subjects, timeout=args.timeout)
        if args.cmd == "resume":
            record = await manager.resume(
                args.operation, args.subject_key, args.job_uri, timeout=args.timeout
            )
            return [record]
    raise ConfigurationError(f"unknown command '{args.cmd}'")


def exit_code(records: Sequence[StatusRecord]) -> int:
    """0 when every record finished or is still running, 1 on any failure, 2 on any timeout."""
    statuses = {record.status for record in records}
    if RecordStatus.failed in statuses:
        return 1
    if RecordStatus.timeout in statuses:
        return 2
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = app_settings

    configure_logging(args.log_level or settings.FLEETOPS_LOG_LEVEL)
    if args.show_settings:
        settings.print_settings(logger)

    if not settings.FLEETOPS_API_TOKEN.get_secret_value():
        logger.warning("FLEETOPS_API_TOKEN is empty; requests will be sent unauthenticated")

    try:
        records = asyncio.run(run_command(args, settings))
    except ConfigurationError as exc:
        logger.error(f"Configuration error: {exc}")
        return 3

    print_json(data=[record.model_dump(mode="json") for record in records])
    return exit_code(records)


if __name__ == "__main__":
    sys.exit(main())
