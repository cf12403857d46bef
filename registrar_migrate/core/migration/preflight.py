"""Read-only transfer eligibility checks run before any mutation."""

import math
from datetime import UTC, datetime

from ...constants import GODADDY_ACTIVE_STATUS, ICANN_TRANSFER_LOCK_DAYS, UNSUPPORTED_SUFFIXES
from ...models.godaddy import GoDaddyDomain
from ...models.migration import PreflightResult
from ...utils import domain_suffixes
from ..exceptions import TransferIneligibleError

SECONDS_PER_DAY = 86400


def domain_age_days(created_at: datetime, now: datetime) -> float:
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return (now - created_at).total_seconds() / SECONDS_PER_DAY


def preflight_check(domain: GoDaddyDomain, now: datetime | None = None) -> PreflightResult:
    """Classify a domain as eligible or not for transfer to Cloudflare.

    Every rule is evaluated; reasons are returned in a fixed rule order.

    Args:
        domain: Domain detail from GoDaddy
        now: Reference time for the age check (defaults to the current time)

    Returns:
        Result with an empty reason list when the domain is eligible
    """
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    reasons: list[str] = []

    if domain.status != GODADDY_ACTIVE_STATUS:
        reasons.append(
            f"Status is {domain.status}: domain must be {GODADDY_ACTIVE_STATUS} to transfer. "
            "Check your GoDaddy dashboard for holds or suspensions."
        )

    if domain.created_at is not None:
        age = domain_age_days(domain.created_at, now)
        if age < ICANN_TRANSFER_LOCK_DAYS:
            remaining = math.ceil(ICANN_TRANSFER_LOCK_DAYS - age)
            reasons.append(
                f"Domain is only {math.floor(age)} days old; ICANN requires "
                f"{ICANN_TRANSFER_LOCK_DAYS} days before transfer. "
                f"Try again in {remaining} day(s)."
            )

    unsupported = next(
        (suffix for suffix in domain_suffixes(domain.domain) if suffix in UNSUPPORTED_SUFFIXES),
        None,
    )
    if unsupported is not None:
        reasons.append(
            f"TLD .{unsupported} is not supported by Cloudflare Registrar "
            "(see https://www.cloudflare.com/tld-policies/)"
        )

    if domain.transfer_protected:
        reasons.append(
            "Domain Protection is enabled. Disable it in the GoDaddy dashboard "
            "(requires identity verification)."
        )

    return PreflightResult(domain=domain.domain, eligible=not reasons, reasons=reasons)


def raise_if_ineligible(domain: GoDaddyDomain, now: datetime | None = None) -> None:
    """Raise TransferIneligibleError when the preflight check fails."""
    result = preflight_check(domain, now)
    if not result.eligible:
        raise TransferIneligibleError(result.domain, result.reasons)
