"""Command line entry point for registrar-migrate."""

import argparse
import asyncio
import os
import signal
import sys

import structlog
from dotenv import load_dotenv

from .core.config_loader import AppConfig, get_config_path, load_config
from .core.error_hints import format_error
from .core.exceptions import ConfigurationError, RegistrarMigrateError
from .core.logging_config import setup_logging
from .core.settings import MigrationSettings
from .core.store import MigrationStore
from .models.cloudflare import RegistrantContact
from .models.migration import MigrationOptions, MigrationReport, TransferProgress
from .services.migration import (
    MigrationService,
    build_interrupt_summary,
    build_status_report,
    cleanup_all,
)
from .utils import plural

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="registrar-migrate", description="Migrate domains from GoDaddy to Cloudflare"
    )
    parser.add_argument(
        "--config",
        default=os.getenv("REGISTRAR_MIGRATE_CONFIG"),
        help=f"Credentials file path (default: {get_config_path()})",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--log-dir", default=os.getenv("LOG_DIR"), help="Also log to this directory"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate = subparsers.add_parser("migrate", help="Migrate domains to Cloudflare")
    migrate.add_argument("domains", nargs="*", help="Domains to migrate")
    migrate.add_argument("--all", action="store_true", help="Migrate every active domain")
    migrate.add_argument(
        "--dry-run", action="store_true", help="Back up DNS records only, change nothing"
    )
    migrate.add_argument(
        "--no-records", action="store_true", help="Create zones without copying DNS records"
    )
    migrate.add_argument(
        "--proxied", action="store_true", help="Proxy A, AAAA and CNAME records through Cloudflare"
    )

    subparsers.add_parser("resume", help="Resume the active migration")
    subparsers.add_parser("status", help="Show transfer status across migrations")
    subparsers.add_parser("cleanup", help="Delete migration state and stored credentials")
    subparsers.add_parser("list", help="List active GoDaddy domains with eligibility")

    args = parser.parse_args(argv)
    if args.command == "migrate" and not args.domains and not args.all:
        parser.error("migrate requires domain names or --all")
    return args


def print_progress(event: TransferProgress) -> None:
    """Write one progress event as a line; failures go to stderr."""
    line = f"[{event.status.label}] {event.domain}: {event.step}"
    print(line, file=sys.stderr if event.error else sys.stdout, flush=True)


def _transfer_contact(config: AppConfig) -> RegistrantContact | None:
    """Registrant contact, only when the Cloudflare credentials can drive transfers."""
    if config.cloudflare is None or not config.cloudflare.transfer_capable:
        return None
    if config.registrant_contact is None:
        print(
            "No registrant contact configured; domains will stop at 'NS Changed' "
            "ready for transfer.",
            file=sys.stderr,
        )
    return config.registrant_contact


def _print_report(report: MigrationReport) -> int:
    for result in report.ineligible:
        print(f"Skipped {result.domain}:", file=sys.stderr)
        for reason in result.reasons:
            print(f"  - {reason}", file=sys.stderr)

    batch = report.batch
    for name in batch.failed:
        print(f"Failed {name}: {batch.results[name].error}", file=sys.stderr)

    print(
        f"\n{plural(len(batch.succeeded), 'domain')} succeeded, "
        f"{len(batch.failed)} failed, {len(report.ineligible)} skipped"
    )
    if batch.failed:
        print("Run `registrar-migrate resume` to retry failed domains.")
    return EXIT_FAILURE if batch.failed else EXIT_OK


async def _run_migrate(
    args: argparse.Namespace, service: MigrationService, config: AppConfig
) -> int:
    if args.all:
        domains = [d.domain for d in await service.list_domains()]
    else:
        domains = args.domains

    options = MigrationOptions(
        dry_run=args.dry_run, migrate_records=not args.no_records, proxied=args.proxied
    )
    report = await service.migrate(
        domains, options, contact=_transfer_contact(config), on_progress=print_progress
    )
    return _print_report(report)


async def _run_resume(service: MigrationService, config: AppConfig) -> int:
    report = await service.resume(contact=_transfer_contact(config), on_progress=print_progress)
    if report.migration_id is None:
        print("No migration to resume. Run `registrar-migrate migrate` to start one.")
        return EXIT_OK
    if not report.batch.results:
        print("Every domain in the active migration is already transferring.")
        return EXIT_OK
    return _print_report(report)


async def _run_list(service: MigrationService) -> int:
    domains = await service.list_domains()
    ineligible = {result.domain: result.reasons for result in service.preflight(domains).ineligible}
    for domain in domains:
        reasons = ineligible.get(domain.domain, [])
        verdict = "ineligible" if reasons else "eligible"
        print(f"{domain.domain:<40} {domain.expires or '-':<26} {verdict}")
        for reason in reasons:
            print(f"    {reason}")
    print(f"\n{plural(len(domains), 'active domain')}")
    return EXIT_OK


async def _run_status(store: MigrationStore) -> int:
    report = await build_status_report(store)
    if not report.domains:
        print("No transfers yet. Run `registrar-migrate migrate` to start one.")
        return EXIT_OK

    for state in report.domains:
        line = f"{state.domain:<40} {state.status.label:<24} {state.last_updated:%Y-%m-%d %H:%M}"
        print(line)
        if state.error:
            print(f"    {state.error}")
    print()
    for status, count in report.counts.items():
        print(f"{status.label}: {count}")
    return EXIT_OK


async def _run_command(args: argparse.Namespace, settings: MigrationSettings) -> int:
    store = MigrationStore(settings.store_path)
    if args.command == "status":
        return await _run_status(store)
    if args.command == "cleanup":
        removed = await cleanup_all(store, args.config)
        print("Migration state cleared." + (" Stored credentials removed." if removed else ""))
        return EXIT_OK

    config = load_config(args.config)
    service = MigrationService.from_config(config, settings=settings, config_path=args.config)
    try:
        verified = await service.verify_credentials()
        rejected = [provider for provider, ok in verified.items() if not ok]
        if rejected:
            print(f"Credentials rejected by: {', '.join(rejected)}", file=sys.stderr)
            return EXIT_CONFIG_ERROR

        if args.command == "list":
            return await _run_list(service)
        if args.command == "migrate":
            return await _run_migrate(args, service, config)
        return await _run_resume(service, config)
    finally:
        await service.aclose()


async def _main(args: argparse.Namespace) -> int:
    settings = MigrationSettings()
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    received: list[str] = []

    def on_signal(sig: signal.Signals) -> None:
        received.append(sig.name)
        task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, on_signal, sig)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            pass

    try:
        return await _run_command(args, settings)
    except asyncio.CancelledError:
        if not received:
            raise
        summary = await build_interrupt_summary(MigrationStore(settings.store_path))
        print(f"\n\nInterrupted ({received[0]}).", file=sys.stderr)
        if summary.migration_id is not None:
            print(
                f"Migration state saved ({summary.done}/{summary.total} domains processed). "
                "Run `registrar-migrate resume` to continue.",
                file=sys.stderr,
            )
        return EXIT_INTERRUPTED
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(log_dir=args.log_dir, log_level=args.log_level)

    try:
        return asyncio.run(_main(args))
    except RegistrarMigrateError as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(format_error(e), file=sys.stderr)
        return EXIT_CONFIG_ERROR if isinstance(e, ConfigurationError) else EXIT_FAILURE
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
