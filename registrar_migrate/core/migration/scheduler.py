"""Bounded-concurrency batch runner for the transfer engine."""

import asyncio

import structlog

from ...models.cloudflare import RegistrantContact
from ...models.enums import DomainStatus
from ...models.migration import BatchResult, DomainOutcome, MigrationOptions, ProgressCallback
from ..error_hints import format_error
from ..exceptions import StoreError
from .engine import TransferEngine

logger = structlog.get_logger()

DEFAULT_CONCURRENCY = 8


class BatchScheduler:
    """Run the transfer engine over many domains with per-domain error isolation.

    A failing domain never cancels its siblings. Only store failures, which
    leave persisted state untrustworthy, abort the whole batch.
    """

    def __init__(self, engine: TransferEngine, concurrency: int = DEFAULT_CONCURRENCY):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.engine = engine
        self.concurrency = concurrency
        self.logger = logger.bind(component="batch_scheduler")

    async def run(
        self,
        domains: list[str],
        migration_id: str,
        options: MigrationOptions,
        contact: RegistrantContact | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Migrate every domain, at most ``concurrency`` at a time.

        Returns:
            Per-domain outcomes in the order the domains were given

        Raises:
            StoreError: If the migration store fails for any domain
        """
        # Each domain gets exactly one task
        domains = list(dict.fromkeys(domains))
        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes: dict[str, DomainOutcome] = {}

        async def run_one(domain: str) -> None:
            async with semaphore:
                try:
                    state = await self.engine.transfer_domain(
                        domain, migration_id, options, contact, on_progress
                    )
                except StoreError:
                    raise
                except Exception as e:
                    outcomes[domain] = DomainOutcome(
                        domain=domain,
                        success=False,
                        status=DomainStatus.FAILED,
                        error=format_error(e, plain=True),
                    )
                    return
                outcomes[domain] = DomainOutcome(domain=domain, success=True, status=state.status)

        self.logger.info(
            "Starting batch",
            migration_id=migration_id,
            domains=len(domains),
            concurrency=self.concurrency,
        )
        try:
            async with asyncio.TaskGroup() as tg:
                for domain in domains:
                    tg.create_task(run_one(domain))
        except* StoreError as eg:
            self.logger.error(
                "Migration store failure, aborting batch", error=str(eg.exceptions[0])
            )
            raise eg.exceptions[0] from None

        result = BatchResult(results={domain: outcomes[domain] for domain in domains})
        self.logger.info(
            "Batch finished",
            migration_id=migration_id,
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )
        return result
