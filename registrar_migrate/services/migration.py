"""
Migration Service

Operator-facing operations composed from the provider adapters, the
migration store and the migration pipeline.
"""

import asyncio

import structlog

from ..constants import CLOUDFLARE, GODADDY
from ..core.config_loader import AppConfig, clear_config
from ..core.exceptions import ConfigurationError, TransferIneligibleError
from ..core.migration import BatchScheduler, TransferEngine, raise_if_ineligible
from ..core.rate_limiter import SlidingWindowRateLimiter
from ..core.settings import MigrationSettings
from ..core.store import MigrationStore
from ..models.cloudflare import RegistrantContact
from ..models.enums import DONE_STATUSES, DomainStatus
from ..models.godaddy import GoDaddyDomain
from ..models.migration import (
    DomainMigrationState,
    InterruptSummary,
    MigrationOptions,
    MigrationReport,
    PreflightReport,
    PreflightResult,
    ProgressCallback,
    StatusReport,
)
from ..providers.cloudflare import CloudflareClient
from ..providers.godaddy import GoDaddyClient

logger = structlog.get_logger()

# Options used when resuming; the original choices are not persisted
RESUME_OPTIONS = MigrationOptions(dry_run=False, migrate_records=True, proxied=False)


class MigrationService:
    """Service for bulk GoDaddy to Cloudflare migrations."""

    def __init__(
        self,
        godaddy: GoDaddyClient,
        cloudflare: CloudflareClient,
        store: MigrationStore,
        settings: MigrationSettings | None = None,
        config_path: str | None = None,
    ):
        self.godaddy = godaddy
        self.cloudflare = cloudflare
        self.store = store
        self.settings = settings or MigrationSettings()
        self.config_path = config_path
        self.engine = TransferEngine(godaddy, cloudflare, store, self.settings)
        self.scheduler = BatchScheduler(self.engine, concurrency=self.settings.concurrency)
        self.logger = logger.bind(service="MigrationService")

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        settings: MigrationSettings | None = None,
        config_path: str | None = None,
    ) -> "MigrationService":
        """Build adapters, rate limiters and the store from stored configuration.

        Raises:
            ConfigurationError: If either provider's credentials are missing
        """
        settings = settings or MigrationSettings()
        if config.godaddy is None:
            raise ConfigurationError(
                "GoDaddy credentials are not configured. Set GODADDY_API_KEY and "
                "GODADDY_API_SECRET or add them to the config file."
            )
        if config.cloudflare is None:
            raise ConfigurationError(
                "Cloudflare credentials are not configured. Set CLOUDFLARE_ACCOUNT_ID "
                "and CLOUDFLARE_API_TOKEN or add them to the config file."
            )

        godaddy = GoDaddyClient(
            config.godaddy,
            rate_limiter=SlidingWindowRateLimiter(
                settings.godaddy_rate_limit, settings.godaddy_rate_window, name=GODADDY
            ),
            timeout=settings.http_timeout,
            lock_max_retries=settings.lock_max_retries,
            lock_base_delay=settings.lock_base_delay,
        )
        cloudflare = CloudflareClient(
            config.cloudflare,
            rate_limiter=SlidingWindowRateLimiter(
                settings.cloudflare_rate_limit, settings.cloudflare_rate_window, name=CLOUDFLARE
            ),
            timeout=settings.http_timeout,
            zone_poll_interval=settings.zone_poll_interval,
            zone_activation_timeout=settings.zone_activation_timeout,
        )
        return cls(
            godaddy,
            cloudflare,
            MigrationStore(settings.store_path),
            settings=settings,
            config_path=config_path,
        )

    async def aclose(self) -> None:
        await self.godaddy.aclose()
        await self.cloudflare.aclose()

    async def verify_credentials(self) -> dict[str, bool]:
        """Check both providers' credentials concurrently."""
        godaddy_ok, cloudflare_ok = await asyncio.gather(
            self.godaddy.verify_credentials(), self.cloudflare.verify_credentials()
        )
        return {GODADDY: godaddy_ok, CLOUDFLARE: cloudflare_ok}

    async def list_domains(self) -> list[GoDaddyDomain]:
        """List active GoDaddy domains, sorted by name."""
        domains = await self.godaddy.list_domains()
        return sorted(domains, key=lambda d: d.domain)

    def preflight(self, domains: list[GoDaddyDomain]) -> PreflightReport:
        """Split domains into eligible names and ineligible results."""
        report = PreflightReport()
        for domain in domains:
            try:
                raise_if_ineligible(domain)
            except TransferIneligibleError as e:
                report.ineligible.append(
                    PreflightResult(domain=e.domain, eligible=False, reasons=e.reasons)
                )
            else:
                report.eligible.append(domain.domain)
        return report

    async def migrate(
        self,
        domain_names: list[str],
        options: MigrationOptions | None = None,
        contact: RegistrantContact | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> MigrationReport:
        """Preflight the selection, create a run for the eligible domains and migrate them.

        Args:
            domain_names: Domains selected by the operator
            options: Dry-run, record migration and proxy choices
            contact: Registrant contact; only given with transfer-capable credentials
            on_progress: Observer for per-step progress events

        Returns:
            Batch outcome plus the domains rejected before any mutation
        """
        options = options or MigrationOptions()
        domain_names = list(dict.fromkeys(domain_names))
        details, fetch_failures = await self._fetch_details(domain_names)
        preflight = self.preflight(details)
        ineligible = fetch_failures + preflight.ineligible

        for result in ineligible:
            self.logger.warning(
                "Skipping ineligible domain", domain=result.domain, reasons=result.reasons
            )

        if not preflight.eligible:
            self.logger.info("No eligible domains to migrate", requested=len(domain_names))
            return MigrationReport(ineligible=ineligible)

        run = await self.store.create_migration(preflight.eligible)
        self.logger.info(
            "Starting migration",
            migration_id=run.id,
            domains=len(preflight.eligible),
            dry_run=options.dry_run,
            transfer=contact is not None,
        )
        batch = await self.scheduler.run(
            preflight.eligible, run.id, options, contact=contact, on_progress=on_progress
        )
        return MigrationReport(migration_id=run.id, batch=batch, ineligible=ineligible)

    async def resume(
        self,
        contact: RegistrantContact | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> MigrationReport:
        """Re-run every domain of the active run that is not durably done."""
        run = await self.store.get_active_migration()
        if run is None:
            self.logger.info("No active migration to resume")
            return MigrationReport()

        domains = await self.store.get_resumable_domains(run.id)
        if not domains:
            self.logger.info("Nothing to resume", migration_id=run.id)
            return MigrationReport(migration_id=run.id)

        self.logger.info("Resuming migration", migration_id=run.id, domains=len(domains))
        batch = await self.scheduler.run(
            domains, run.id, RESUME_OPTIONS, contact=contact, on_progress=on_progress
        )
        return MigrationReport(migration_id=run.id, batch=batch)

    async def status(self) -> StatusReport:
        return await build_status_report(self.store)

    async def cleanup(self) -> bool:
        return await cleanup_all(self.store, self.config_path)

    async def interrupt_summary(self) -> InterruptSummary:
        return await build_interrupt_summary(self.store)

    async def _fetch_details(
        self, domain_names: list[str]
    ) -> tuple[list[GoDaddyDomain], list[PreflightResult]]:
        """Read every domain's detail; a failed read makes that domain ineligible."""
        results = await asyncio.gather(
            *(self.godaddy.get_domain_detail(name) for name in domain_names),
            return_exceptions=True,
        )
        details: list[GoDaddyDomain] = []
        failures: list[PreflightResult] = []
        for name, result in zip(domain_names, results, strict=True):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                failures.append(
                    PreflightResult(
                        domain=name,
                        eligible=False,
                        reasons=[f"Could not read domain details: {result}"],
                    )
                )
            else:
                details.append(result)
        return details, failures


# Store-only operations, usable without provider credentials


async def build_status_report(store: MigrationStore) -> StatusReport:
    """Most recent state of every domain that reached a transfer, across all runs."""
    latest: dict[str, DomainMigrationState] = {}
    # Oldest first so newer runs overwrite older entries
    for run in reversed(await store.get_all_migrations()):
        latest.update(
            {name: state for name, state in run.domains.items() if state.status in DONE_STATUSES}
        )

    domains = sorted(latest.values(), key=lambda s: s.last_updated)
    counts: dict[DomainStatus, int] = {}
    for state in domains:
        counts[state.status] = counts.get(state.status, 0) + 1
    return StatusReport(domains=domains, counts=counts)


async def build_interrupt_summary(store: MigrationStore) -> InterruptSummary:
    """Count of durably done domains in the active run."""
    run = await store.get_active_migration()
    if run is None:
        return InterruptSummary()
    return InterruptSummary(migration_id=run.id, done=run.count_done(), total=len(run.domains))


async def cleanup_all(store: MigrationStore, config_path: str | None = None) -> bool:
    """Clear the migration store and the stored credentials.

    Returns:
        Whether a config file was removed
    """
    await store.clear()
    removed = clear_config(config_path)
    logger.info("Cleanup finished", config_removed=removed)
    return removed
