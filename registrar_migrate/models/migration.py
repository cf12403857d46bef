"""Migration state, options and result models."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .cloudflare import CloudflareDnsRecord
from .enums import DomainStatus
from .godaddy import GoDaddyDnsRecord


class MigrationOptions(BaseModel):
    """Operator choices for one migrate invocation."""

    dry_run: bool = False
    migrate_records: bool = True
    proxied: bool = False


class DomainMigrationState(BaseModel):
    """Persisted progress of one domain within a migration run.

    The transfer auth code is deliberately absent: it only ever lives in
    memory for the duration of a single pipeline execution.
    """

    model_config = ConfigDict(extra="ignore")

    domain: str
    status: DomainStatus = DomainStatus.PENDING
    dns_records_backup: list[GoDaddyDnsRecord] = Field(default_factory=list)
    zone_id: str | None = None
    nameservers: list[str] = Field(default_factory=list)
    error: str | None = None
    # Last pipeline status reached before entering FAILED
    failed_from: DomainStatus | None = None
    last_updated: datetime

    @property
    def resume_point(self) -> DomainStatus:
        """Status the pipeline re-enters at."""
        if self.status == DomainStatus.FAILED:
            return self.failed_from or DomainStatus.PENDING
        return self.status


class MigrationRun(BaseModel):
    """One invocation of the migrate operation."""

    id: str
    started_at: datetime
    domains: dict[str, DomainMigrationState] = Field(default_factory=dict)

    def count_done(self) -> int:
        return sum(1 for state in self.domains.values() if state.status.is_done)


class PreflightResult(BaseModel):
    """Eligibility verdict for one domain; empty reasons means eligible."""

    domain: str
    eligible: bool
    reasons: list[str] = Field(default_factory=list)


class FailedRecord(BaseModel):
    record: CloudflareDnsRecord
    error: str


class DnsMigrationReport(BaseModel):
    """Outcome of creating translated records at the destination."""

    created: int = 0
    failed: list[FailedRecord] = Field(default_factory=list)


class DomainOutcome(BaseModel):
    """Final per-domain result of a batch run."""

    domain: str
    success: bool
    status: DomainStatus | None = None
    error: str | None = None


class BatchResult(BaseModel):
    """Per-domain results of one batch, in submission order."""

    results: dict[str, DomainOutcome] = Field(default_factory=dict)

    @property
    def succeeded(self) -> list[str]:
        return [name for name, outcome in self.results.items() if outcome.success]

    @property
    def failed(self) -> list[str]:
        return [name for name, outcome in self.results.items() if not outcome.success]


@dataclass(frozen=True)
class TransferProgress:
    """One progress event emitted by the transfer engine."""

    domain: str
    step: str
    status: DomainStatus
    error: str | None = None


ProgressCallback = Callable[[TransferProgress], None]


class PreflightReport(BaseModel):
    """Domains split by transfer eligibility."""

    eligible: list[str] = Field(default_factory=list)
    ineligible: list[PreflightResult] = Field(default_factory=list)


class MigrationReport(BaseModel):
    """Outcome of one migrate or resume invocation."""

    migration_id: str | None = None
    batch: BatchResult = Field(default_factory=BatchResult)
    ineligible: list[PreflightResult] = Field(default_factory=list)


class StatusReport(BaseModel):
    """Most recent state of every domain that reached a transfer, across all runs."""

    domains: list[DomainMigrationState] = Field(default_factory=list)
    counts: dict[DomainStatus, int] = Field(default_factory=dict)


class InterruptSummary(BaseModel):
    """Progress of the active run at the moment of an interrupt."""

    migration_id: str | None = None
    done: int = 0
    total: int = 0
