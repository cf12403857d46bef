"""Translation of GoDaddy DNS records into Cloudflare records."""

import re

import structlog

from ...constants import ALREADY_EXISTS_MARKER, INFRASTRUCTURE_SUFFIXES, PARKED_SENTINEL
from ...models.cloudflare import CaaData, CloudflareDnsRecord, SrvData
from ...models.godaddy import GoDaddyDnsRecord
from ...models.migration import DnsMigrationReport, FailedRecord
from ..exceptions import ProviderError

logger = structlog.get_logger()

APEX = "@"

# Cloudflare manages these itself
SKIPPED_TYPES = frozenset({"SOA"})
SUPPORTED_TYPES = frozenset({"A", "AAAA", "CNAME", "MX", "TXT", "SRV", "CAA", "NS"})
PROXIABLE_TYPES = frozenset({"A", "AAAA", "CNAME"})

MIN_TTL = 120
AUTOMATIC_TTL = 1
DEFAULT_MX_PRIORITY = 10

CAA_PATTERN = re.compile(r"^(\d+)\s+(\S+)\s+(.+)$")


def is_apex(name: str, domain: str) -> bool:
    return name in ("", APEX) or name.rstrip(".").lower() == domain.lower()


def is_parking_record(record: GoDaddyDnsRecord, domain: str) -> bool:
    """Whether a record is GoDaddy's parking page or forwarding artifact."""
    if record.type == "A" and is_apex(record.name, domain) and record.data == PARKED_SENTINEL:
        return True
    if record.type == "CNAME":
        target = record.data.rstrip(".").lower()
        return target.endswith(INFRASTRUCTURE_SUFFIXES)
    return False


def resolve_name(name: str, domain: str) -> str:
    """Expand a GoDaddy relative name into a fully-qualified one.

    Examples:
        >>> resolve_name("@", "example.com")
        'example.com'
        >>> resolve_name("www", "example.com")
        'www.example.com'
    """
    if is_apex(name, domain):
        return domain
    return f"{name}.{domain}"


def normalize_ttl(ttl: int) -> int:
    """Map TTLs below Cloudflare's floor to its automatic TTL."""
    return AUTOMATIC_TTL if ttl < MIN_TTL else ttl


def translate_record(
    record: GoDaddyDnsRecord, domain: str, proxied: bool = False
) -> CloudflareDnsRecord | None:
    """Translate one record; None when it has no Cloudflare counterpart."""
    record_type = record.type.upper()
    if record_type in SKIPPED_TYPES or record_type not in SUPPORTED_TYPES:
        return None
    if record_type == "NS" and is_apex(record.name, domain):
        return None
    if is_parking_record(record, domain):
        return None

    name = resolve_name(record.name, domain)
    ttl = normalize_ttl(record.ttl)

    if record_type in ("A", "AAAA"):
        return CloudflareDnsRecord(
            type=record_type, name=name, content=record.data, ttl=ttl, proxied=proxied
        )

    if record_type == "CNAME":
        content = domain if record.data == APEX else record.data
        return CloudflareDnsRecord(
            type="CNAME", name=name, content=content, ttl=ttl, proxied=proxied
        )

    if record_type == "MX":
        priority = record.priority if record.priority is not None else DEFAULT_MX_PRIORITY
        return CloudflareDnsRecord(
            type="MX", name=name, content=record.data, ttl=ttl, priority=priority
        )

    if record_type == "SRV":
        srv_name = (
            f"{record.service}.{record.protocol}.{name}"
            if record.service and record.protocol
            else name
        )
        srv = SrvData(
            priority=record.priority or 0,
            weight=record.weight or 0,
            port=record.port or 0,
            target=record.data,
            service=record.service or "",
            proto=record.protocol or "",
            name=name,
        )
        return CloudflareDnsRecord(
            type="SRV",
            name=srv_name,
            content=f"{srv.priority} {srv.weight} {srv.port} {srv.target}",
            ttl=ttl,
            data=srv.model_dump(),
        )

    if record_type == "CAA":
        match = CAA_PATTERN.match(record.data)
        if match is None:
            logger.warning("Dropping malformed CAA record", name=name, data=record.data)
            return None
        caa = CaaData(flags=int(match.group(1)), tag=match.group(2), value=match.group(3))
        return CloudflareDnsRecord(
            type="CAA", name=name, content=record.data, ttl=ttl, data=caa.model_dump()
        )

    # TXT and non-apex NS
    return CloudflareDnsRecord(type=record_type, name=name, content=record.data, ttl=ttl)


def translate_records(
    records: list[GoDaddyDnsRecord], domain: str, proxied: bool = False
) -> list[CloudflareDnsRecord]:
    """Translate a GoDaddy record set, dropping records Cloudflare should not receive.

    Args:
        records: Records as returned by GoDaddy
        domain: Domain the records belong to
        proxied: Default proxy flag for A, AAAA and CNAME records

    Returns:
        Records ready to create in the Cloudflare zone
    """
    translated = []
    for record in records:
        cf_record = translate_record(record, domain, proxied)
        if cf_record is None:
            logger.debug("Skipping record", domain=domain, type=record.type, name=record.name)
            continue
        translated.append(cf_record)
    return translated


async def apply_records(
    cloudflare, zone_id: str, records: list[CloudflareDnsRecord]
) -> DnsMigrationReport:
    """Create records in a zone, collecting failures instead of raising.

    A record that already exists counts as created; jump_start or an earlier
    partial run may have added it.
    """
    report = DnsMigrationReport()
    for record in records:
        try:
            await cloudflare.create_dns_record(zone_id, record)
        except ProviderError as e:
            if ALREADY_EXISTS_MARKER in str(e):
                report.created += 1
                continue
            logger.warning(
                "DNS record creation failed",
                zone_id=zone_id,
                type=record.type,
                name=record.name,
                error=str(e),
            )
            report.failed.append(FailedRecord(record=record, error=str(e)))
        else:
            report.created += 1
    return report
