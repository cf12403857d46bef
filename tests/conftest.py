"""Shared pytest fixtures for registrar-migrate tests."""

from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from registrar_migrate.core.rate_limiter import SlidingWindowRateLimiter
from registrar_migrate.core.settings import MigrationSettings
from registrar_migrate.core.store import MigrationStore
from registrar_migrate.models import (
    CloudflareZone,
    GoDaddyDnsRecord,
    GoDaddyDomain,
    RegistrantContact,
)

CLOUDFLARE_NAMESERVERS = ["ada.ns.cloudflare.com", "bob.ns.cloudflare.com"]


def make_domain(
    name: str = "example.com",
    status: str = "ACTIVE",
    age_days: float = 365,
    now: datetime | None = None,
    **fields,
) -> GoDaddyDomain:
    """Build a GoDaddy domain detail as the API would return it."""
    now = now or datetime.now(UTC)
    payload = {
        "domain": name,
        "domainId": 1000,
        "status": status,
        "createdAt": (now - timedelta(days=age_days)).isoformat(),
        "locked": False,
        "privacy": False,
        "renewAuto": True,
        "transferProtected": False,
    }
    payload.update(fields)
    return GoDaddyDomain.model_validate(payload)


def make_zone(domain: str, status: str = "pending") -> CloudflareZone:
    return CloudflareZone(
        id=f"zone-{domain}", name=domain, status=status, name_servers=CLOUDFLARE_NAMESERVERS
    )


@pytest.fixture
def settings(tmp_path: Path) -> MigrationSettings:
    """Settings with every pipeline delay disabled."""
    return MigrationSettings(
        data_dir=tmp_path,
        privacy_settle_delay=0,
        unlock_poll_attempts=3,
        unlock_poll_interval=0,
        lock_base_delay=0,
        zone_poll_interval=0,
    )


@pytest.fixture
def store(tmp_path: Path) -> MigrationStore:
    return MigrationStore(tmp_path / "migrations.db")


@pytest.fixture
def rate_limiter() -> SlidingWindowRateLimiter:
    """Limiter that never makes tests wait."""
    return SlidingWindowRateLimiter(10_000, 60, name="test")


@pytest.fixture
def dns_records() -> list[GoDaddyDnsRecord]:
    return [
        GoDaddyDnsRecord(type="A", name="@", data="192.0.2.10", ttl=3600),
        GoDaddyDnsRecord(type="CNAME", name="www", data="@", ttl=3600),
        GoDaddyDnsRecord(type="MX", name="@", data="mx.example.net", ttl=3600, priority=5),
        GoDaddyDnsRecord(type="NS", name="@", data="ns01.domaincontrol.com", ttl=3600),
    ]


@pytest.fixture
def mock_godaddy(dns_records):
    """GoDaddy adapter double whose domains unlock immediately."""
    godaddy = MagicMock()
    godaddy.get_dns_records = AsyncMock(return_value=dns_records)
    godaddy.get_domain_detail = AsyncMock(side_effect=lambda name: make_domain(name))
    godaddy.remove_privacy = AsyncMock()
    godaddy.prepare_for_transfer = AsyncMock()
    godaddy.get_auth_code = AsyncMock(return_value="AUTH-123")
    godaddy.update_nameservers = AsyncMock()
    godaddy.list_domains = AsyncMock(return_value=[])
    godaddy.verify_credentials = AsyncMock(return_value=True)
    godaddy.aclose = AsyncMock()
    return godaddy


@pytest.fixture
def mock_cloudflare():
    """Cloudflare adapter double that provisions one zone per domain."""
    cloudflare = MagicMock()
    cloudflare.create_zone = AsyncMock(side_effect=make_zone)
    cloudflare.get_zone_by_name = AsyncMock(side_effect=make_zone)
    cloudflare.get_zone_status = AsyncMock(
        side_effect=lambda zone_id: make_zone(zone_id.removeprefix("zone-"), status="active")
    )
    cloudflare.create_dns_record = AsyncMock()
    cloudflare.wait_for_zone_active = AsyncMock(
        side_effect=lambda zone_id: make_zone(zone_id.removeprefix("zone-"), status="active")
    )
    cloudflare.check_auth_code = AsyncMock()
    cloudflare.initiate_transfer = AsyncMock()
    cloudflare.verify_credentials = AsyncMock(return_value=True)
    cloudflare.aclose = AsyncMock()
    return cloudflare


@pytest.fixture
def contact() -> RegistrantContact:
    return RegistrantContact(
        first_name="Ada",
        last_name="Lovelace",
        address="1 Analytical Way",
        city="London",
        state="London",
        zip="N1 9GU",
        country="GB",
        phone="+44.2071234567",
        email="ada@example.com",
    )
