"""Data models for registrar migrations."""

from .cloudflare import (  # noqa: F401
    AuthCodeCheck,
    CaaData,
    CloudflareCredentials,
    CloudflareDnsRecord,
    CloudflareEnvelope,
    CloudflareZone,
    RegistrantContact,
    SrvData,
    TransferResponse,
)
from .enums import DONE_STATUSES, PIPELINE_ORDER, DomainStatus  # noqa: F401
from .godaddy import GoDaddyCredentials, GoDaddyDnsRecord, GoDaddyDomain  # noqa: F401
from .migration import (  # noqa: F401
    BatchResult,
    DnsMigrationReport,
    DomainMigrationState,
    DomainOutcome,
    FailedRecord,
    InterruptSummary,
    MigrationOptions,
    MigrationReport,
    MigrationRun,
    PreflightReport,
    PreflightResult,
    ProgressCallback,
    StatusReport,
    TransferProgress,
)

__all__ = [
    # Cloudflare models
    "AuthCodeCheck",
    "CaaData",
    "CloudflareCredentials",
    "CloudflareDnsRecord",
    "CloudflareEnvelope",
    "CloudflareZone",
    "RegistrantContact",
    "SrvData",
    "TransferResponse",
    # Status
    "DONE_STATUSES",
    "PIPELINE_ORDER",
    "DomainStatus",
    # GoDaddy models
    "GoDaddyCredentials",
    "GoDaddyDnsRecord",
    "GoDaddyDomain",
    # Migration models
    "BatchResult",
    "DnsMigrationReport",
    "DomainMigrationState",
    "DomainOutcome",
    "FailedRecord",
    "InterruptSummary",
    "MigrationOptions",
    "MigrationReport",
    "MigrationRun",
    "PreflightReport",
    "PreflightResult",
    "ProgressCallback",
    "StatusReport",
    "TransferProgress",
]
