"""Provider adapters for the migration source and destination."""

from .base import BaseProviderClient  # noqa: F401
from .cloudflare import CloudflareClient  # noqa: F401
from .godaddy import GoDaddyClient  # noqa: F401

__all__ = [
    "BaseProviderClient",
    "CloudflareClient",
    "GoDaddyClient",
]
