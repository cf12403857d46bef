"""Centralized constants for registrar migrations."""

# Provider endpoints
GODADDY_BASE_URL = "https://api.godaddy.com"
CLOUDFLARE_BASE_URL = "https://api.cloudflare.com/client/v4"

# Provider display names (used to qualify error messages)
GODADDY = "GoDaddy"
CLOUDFLARE = "Cloudflare"

# GoDaddy status value for transferable domains
GODADDY_ACTIVE_STATUS = "ACTIVE"

# GoDaddy answers 422 "Resource is being used in another request" when
# mutations on one domain overlap
RESOURCE_LOCK_STATUS = 422
RESOURCE_LOCK_MARKER = "Resource is being used"

# Cloudflare zone status once nameservers are confirmed
ZONE_ACTIVE_STATUS = "active"

# Substring of destination responses for idempotent re-creation
ALREADY_EXISTS_MARKER = "already exists"

# GoDaddy placeholder artifacts that must not follow the domain
PARKED_SENTINEL = "Parked"
INFRASTRUCTURE_SUFFIXES = (".secureserver.net", ".domaincontrol.com")

# ICANN 60-day lock after registration or transfer
ICANN_TRANSFER_LOCK_DAYS = 60

# Suffixes Cloudflare Registrar does not accept for transfer
UNSUPPORTED_SUFFIXES = frozenset(
    {
        "uk",
        "co.uk",
        "org.uk",
        "me.uk",
        "de",
        "ca",
        "au",
        "com.au",
        "net.au",
        "jp",
        "eu",
        "be",
        "fr",
        "nl",
    }
)

# Domain name limits (RFC 1035)
MAX_DOMAIN_LENGTH = 253
MAX_LABEL_LENGTH = 63
