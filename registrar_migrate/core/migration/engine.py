"""Per-domain transfer pipeline from GoDaddy to Cloudflare."""

import asyncio

import structlog

from ...constants import ALREADY_EXISTS_MARKER, GODADDY
from ...models.cloudflare import CloudflareZone, RegistrantContact
from ...models.enums import DomainStatus
from ...models.migration import (
    DomainMigrationState,
    MigrationOptions,
    ProgressCallback,
    TransferProgress,
)
from ...providers.cloudflare import CloudflareClient
from ...providers.godaddy import GoDaddyClient
from ..error_hints import format_error
from ..exceptions import PollTimeoutError, ProviderError, ProviderHttpError, StoreError
from ..settings import MigrationSettings
from ..store import MigrationStore
from .dns_translator import apply_records, translate_records

logger = structlog.get_logger()

# Privacy removal answers these when there is nothing to remove
PRIVACY_IGNORED_STATUSES = (404, 409)


class TransferEngine:
    """Drive one domain through the migration pipeline.

    Steps run strictly in order, each persisting its status before the next
    begins. A domain re-entering the pipeline (resume) skips the steps its
    persisted status has already passed and reuses the persisted backup,
    zone id and nameservers. The auth code is held in memory only.
    """

    def __init__(
        self,
        godaddy: GoDaddyClient,
        cloudflare: CloudflareClient,
        store: MigrationStore,
        settings: MigrationSettings | None = None,
    ):
        self.godaddy = godaddy
        self.cloudflare = cloudflare
        self.store = store
        self.settings = settings or MigrationSettings()
        self.logger = logger.bind(component="transfer_engine")

    async def transfer_domain(
        self,
        domain: str,
        migration_id: str,
        options: MigrationOptions,
        contact: RegistrantContact | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> DomainMigrationState:
        """Run (or resume) the pipeline for one domain.

        Args:
            domain: Domain name, already seeded into the migration run
            migration_id: Run the domain belongs to
            options: Dry-run, record migration and proxy choices
            contact: Registrant contact; without it the pipeline stops at
                ``ns_changed`` and the domain is reported ready for transfer
            on_progress: Observer receiving one event per step

        Returns:
            The domain state after the last step that ran

        Raises:
            StoreError: If the migration store cannot be read or written
            Exception: Any step failure, after it is recorded as ``failed``
        """
        log = self.logger.bind(domain=domain, migration_id=migration_id)

        def report(step: str, status: DomainStatus, error: str | None = None) -> None:
            if on_progress is None:
                return
            try:
                on_progress(TransferProgress(domain=domain, step=step, status=status, error=error))
            except Exception as e:
                log.warning("Progress observer failed", error=str(e))

        state = await self.store.get_domain_state(migration_id, domain)
        if state.status.is_done:
            report(state.status.label, state.status)
            return state

        resume_from = state.resume_point
        if resume_from != DomainStatus.PENDING:
            log.info("Resuming domain", resume_from=resume_from.value)
            if state.status == DomainStatus.FAILED:
                state = await self.store.update_domain_status(migration_id, domain, resume_from)

        try:
            return await self._run_steps(
                state, resume_from, migration_id, options, contact, report, log
            )
        except StoreError:
            raise
        except Exception as e:
            persisted = format_error(e, plain=True)
            log.error("Domain migration failed", error=persisted)
            await self.store.update_domain_status(
                migration_id, domain, DomainStatus.FAILED, error=persisted
            )
            report(format_error(e), DomainStatus.FAILED, persisted)
            raise

    async def _run_steps(
        self,
        state: DomainMigrationState,
        resume_from: DomainStatus,
        migration_id: str,
        options: MigrationOptions,
        contact: RegistrantContact | None,
        report,
        log,
    ) -> DomainMigrationState:
        domain = state.domain

        # Backup
        records = state.dns_records_backup
        if resume_from == DomainStatus.PENDING:
            report("Exporting DNS records", DomainStatus.PENDING)
            records = await self.godaddy.get_dns_records(domain)
            state = await self.store.save_dns_backup(migration_id, domain, records)
            log.info("DNS records backed up", records=len(records))

            if options.dry_run:
                report(
                    f"Dry run: would migrate {len(records)} DNS records", DomainStatus.PENDING
                )
                return state

        # Zone provisioning
        zone_id = state.zone_id
        nameservers = list(state.nameservers)
        if zone_id is None:
            report("Creating Cloudflare zone", DomainStatus.PENDING)
            zone = await self._provision_zone(domain, report)
            zone_id = zone.id
            nameservers = zone.name_servers or []
            state = await self.store.update_domain_status(
                migration_id,
                domain,
                state.status,
                zone_id=zone_id,
                nameservers=nameservers,
            )

        # DNS application
        if not resume_from.reached(DomainStatus.DNS_MIGRATED):
            if options.migrate_records:
                report("Migrating DNS records", DomainStatus.PENDING)
                translated = translate_records(records, domain, proxied=options.proxied)
                result = await apply_records(self.cloudflare, zone_id, translated)
                if result.failed:
                    log.warning(
                        "Some DNS records were not created",
                        created=result.created,
                        failed=len(result.failed),
                    )
                    report(
                        f"DNS migration: {result.created} created, "
                        f"{len(result.failed)} failed",
                        DomainStatus.PENDING,
                    )
            state = await self.store.update_domain_status(
                migration_id, domain, DomainStatus.DNS_MIGRATED
            )
            report("DNS migrated", DomainStatus.DNS_MIGRATED)

        # Privacy removal, unlock and auto-renew disable
        if not resume_from.reached(DomainStatus.UNLOCKED):
            await self._remove_privacy(domain, report, log)

            report("Unlocking + disabling auto-renew", DomainStatus.DNS_MIGRATED)
            await self.godaddy.prepare_for_transfer(domain)

            report("Waiting for unlock to propagate", DomainStatus.DNS_MIGRATED)
            await self._wait_for_unlock(domain)
            state = await self.store.update_domain_status(
                migration_id, domain, DomainStatus.UNLOCKED
            )
            report("Domain unlocked", DomainStatus.UNLOCKED)

        # Auth code; re-fetched on resume only when the transfer still needs it
        auth_code: str | None = None
        needs_auth_code = not resume_from.reached(DomainStatus.AUTH_OBTAINED) or (
            contact is not None and not resume_from.reached(DomainStatus.TRANSFER_INITIATED)
        )
        if needs_auth_code:
            report("Fetching auth code", state.status)
            auth_code = await self.godaddy.get_auth_code(domain)
            if not resume_from.reached(DomainStatus.AUTH_OBTAINED):
                state = await self.store.update_domain_status(
                    migration_id, domain, DomainStatus.AUTH_OBTAINED
                )
                report("Auth code obtained", DomainStatus.AUTH_OBTAINED)

        # Nameserver update
        if not resume_from.reached(DomainStatus.NS_CHANGED):
            if not nameservers:
                nameservers = (await self.cloudflare.get_zone_status(zone_id)).name_servers or []
            if nameservers:
                report("Updating nameservers", DomainStatus.AUTH_OBTAINED)
                await self.godaddy.update_nameservers(domain, nameservers)
                state = await self.store.update_domain_status(
                    migration_id, domain, DomainStatus.NS_CHANGED, nameservers=nameservers
                )
                report("Nameservers updated", DomainStatus.NS_CHANGED)
            else:
                log.warning("Cloudflare zone has no assigned nameservers", zone_id=zone_id)
                report("No Cloudflare nameservers assigned yet, resume later", state.status)
                return state

        # Transfer initiation
        if contact is None:
            report("Ready for transfer", state.status)
            return state

        report("Waiting for zone activation (may take a few minutes)", state.status)
        await self.cloudflare.wait_for_zone_active(zone_id)

        report("Validating auth code", state.status)
        await self.cloudflare.check_auth_code(domain, auth_code)

        report("Initiating transfer", state.status)
        await self.cloudflare.initiate_transfer(zone_id, domain, auth_code, contact)
        state = await self.store.update_domain_status(
            migration_id, domain, DomainStatus.TRANSFER_INITIATED
        )
        log.info("Transfer initiated")
        report("Transfer initiated", DomainStatus.TRANSFER_INITIATED)
        return state

    async def _provision_zone(self, domain: str, report) -> CloudflareZone:
        """Create the zone, adopting an existing one left by an earlier run."""
        try:
            return await self.cloudflare.create_zone(domain)
        except ProviderError as e:
            if ALREADY_EXISTS_MARKER not in str(e):
                raise
            report("Zone already exists, looking up", DomainStatus.PENDING)
            existing = await self.cloudflare.get_zone_by_name(domain)
            if existing is None:
                raise
            return existing

    async def _remove_privacy(self, domain: str, report, log) -> None:
        """Clear WHOIS privacy; failures never block the transfer."""
        report("Removing WHOIS privacy", DomainStatus.DNS_MIGRATED)
        try:
            await self.godaddy.remove_privacy(domain)
        except ProviderError as e:
            if not (
                isinstance(e, ProviderHttpError) and e.status_code in PRIVACY_IGNORED_STATUSES
            ):
                log.warning("Privacy removal failed", error=str(e))
                report("Privacy removal failed (non-blocking)", DomainStatus.DNS_MIGRATED)

        # GoDaddy holds the resource lock briefly after a mutation
        await self._sleep(self.settings.privacy_settle_delay)

    async def _wait_for_unlock(self, domain: str) -> None:
        """Poll the domain detail until GoDaddy reports it unlocked.

        Raises:
            PollTimeoutError: If the domain is still locked after every poll
        """
        for _ in range(self.settings.unlock_poll_attempts):
            await self._sleep(self.settings.unlock_poll_interval)
            detail = await self.godaddy.get_domain_detail(domain)
            if not detail.locked:
                return
        raise PollTimeoutError(
            f"GoDaddy domain {domain} is still locked after unlock request", GODADDY
        )

    async def _sleep(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)
