"""Enum definitions for registrar migrations."""

from enum import Enum
from typing import Literal

# Type aliases
CloudflareAuthType = Literal["token", "global-key"]


class DomainStatus(str, Enum):
    """Per-domain migration status, ordered along the transfer pipeline."""

    PENDING = "pending"
    DNS_MIGRATED = "dns_migrated"
    UNLOCKED = "unlocked"
    AUTH_OBTAINED = "auth_obtained"
    NS_CHANGED = "ns_changed"
    TRANSFER_INITIATED = "transfer_initiated"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        """Position along the pipeline; FAILED has no position."""
        return PIPELINE_ORDER.index(self) if self in PIPELINE_ORDER else -1

    def reached(self, other: "DomainStatus") -> bool:
        """Whether this status is at or past ``other`` in pipeline order."""
        return self.rank >= other.rank >= 0

    @property
    def is_done(self) -> bool:
        """Durably finished; never retried on resume."""
        return self in DONE_STATUSES

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


PIPELINE_ORDER: tuple[DomainStatus, ...] = (
    DomainStatus.PENDING,
    DomainStatus.DNS_MIGRATED,
    DomainStatus.UNLOCKED,
    DomainStatus.AUTH_OBTAINED,
    DomainStatus.NS_CHANGED,
    DomainStatus.TRANSFER_INITIATED,
    DomainStatus.COMPLETED,
)

DONE_STATUSES = frozenset({DomainStatus.TRANSFER_INITIATED, DomainStatus.COMPLETED})

STATUS_LABELS: dict[DomainStatus, str] = {
    DomainStatus.PENDING: "Pending",
    DomainStatus.DNS_MIGRATED: "DNS Migrated",
    DomainStatus.UNLOCKED: "Unlocked",
    DomainStatus.AUTH_OBTAINED: "Auth Obtained",
    DomainStatus.NS_CHANGED: "NS Changed",
    DomainStatus.TRANSFER_INITIATED: "Transferring (1-5 days)",
    DomainStatus.COMPLETED: "Completed",
    DomainStatus.FAILED: "Failed",
}
