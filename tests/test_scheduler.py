"""Tests for the batch scheduler."""

import asyncio
from unittest.mock import MagicMock

import pytest

from registrar_migrate.constants import GODADDY
from registrar_migrate.core.exceptions import ProviderHttpError, StoreCorruptionError
from registrar_migrate.core.migration.engine import TransferEngine
from registrar_migrate.core.migration.scheduler import BatchScheduler
from registrar_migrate.models import DomainMigrationState, DomainStatus, MigrationOptions

DOMAINS = [f"domain{i}.com" for i in range(1, 11)]


class TestBatchScheduler:
    async def test_one_failure_is_isolated(
        self, mock_godaddy, mock_cloudflare, store, settings, dns_records
    ):
        async def get_dns_records(domain):
            if domain == "domain3.com":
                raise ProviderHttpError("GoDaddy API error 500: backup failed", GODADDY, 500)
            return dns_records

        mock_godaddy.get_dns_records.side_effect = get_dns_records
        engine = TransferEngine(mock_godaddy, mock_cloudflare, store, settings)
        run = await store.create_migration(DOMAINS)

        scheduler = BatchScheduler(engine, concurrency=8)
        result = await scheduler.run(DOMAINS, run.id, MigrationOptions())

        assert list(result.results) == DOMAINS
        assert len(result.succeeded) == 9
        assert result.failed == ["domain3.com"]
        assert "backup failed" in result.results["domain3.com"].error

        persisted = await store.get_migration(run.id)
        failed = [name for name, s in persisted.domains.items() if s.status == DomainStatus.FAILED]
        assert failed == ["domain3.com"]
        assert all(
            s.status == DomainStatus.NS_CHANGED
            for name, s in persisted.domains.items()
            if name != "domain3.com"
        )

    async def test_concurrency_is_bounded(self):
        running = 0
        peak = 0

        async def transfer_domain(domain, migration_id, options, contact, on_progress):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return DomainMigrationState(
                domain=domain, status=DomainStatus.NS_CHANGED, last_updated="2026-01-01T00:00:00Z"
            )

        engine = MagicMock()
        engine.transfer_domain = transfer_domain

        scheduler = BatchScheduler(engine, concurrency=3)
        result = await scheduler.run(DOMAINS, "run-1", MigrationOptions())

        assert peak == 3
        assert len(result.succeeded) == 10

    async def test_store_corruption_aborts_batch(self):
        async def transfer_domain(domain, migration_id, options, contact, on_progress):
            if domain == "domain2.com":
                raise StoreCorruptionError("Undecodable domain state")
            await asyncio.sleep(0)
            return DomainMigrationState(
                domain=domain, status=DomainStatus.NS_CHANGED, last_updated="2026-01-01T00:00:00Z"
            )

        engine = MagicMock()
        engine.transfer_domain = transfer_domain

        with pytest.raises(StoreCorruptionError):
            await BatchScheduler(engine, concurrency=2).run(DOMAINS, "run-1", MigrationOptions())

    async def test_outcome_reports_final_status(
        self, mock_godaddy, mock_cloudflare, store, settings, contact
    ):
        engine = TransferEngine(mock_godaddy, mock_cloudflare, store, settings)
        run = await store.create_migration(DOMAINS[:2])

        result = await BatchScheduler(engine).run(DOMAINS[:2], run.id, MigrationOptions(), contact)

        assert {o.status for o in result.results.values()} == {DomainStatus.TRANSFER_INITIATED}

    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            BatchScheduler(MagicMock(), concurrency=0)

    async def test_repeated_domain_runs_once(self):
        calls: list[str] = []

        async def transfer_domain(domain, migration_id, options, contact, on_progress):
            calls.append(domain)
            await asyncio.sleep(0)
            return DomainMigrationState(
                domain=domain, status=DomainStatus.NS_CHANGED, last_updated="2026-01-01T00:00:00Z"
            )

        engine = MagicMock()
        engine.transfer_domain = transfer_domain

        result = await BatchScheduler(engine).run(
            ["a.com", "b.com", "a.com"], "run-1", MigrationOptions()
        )

        assert sorted(calls) == ["a.com", "b.com"]
        assert list(result.results) == ["a.com", "b.com"]
