"""Utility functions for registrar migrations."""

import re

from .constants import MAX_DOMAIN_LENGTH, MAX_LABEL_LENGTH
from .core.exceptions import ValidationError

_LABEL_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")


def assert_valid_domain(domain: str) -> None:
    """Reject anything that is not a plain hostname before it reaches a URL path.

    Args:
        domain: Domain name to check

    Raises:
        ValidationError: If the name is empty, too long, or has a bad label

    Examples:
        >>> assert_valid_domain("example.com")
        >>> assert_valid_domain("../admin")
        Traceback (most recent call last):
        ...
        registrar_migrate.core.exceptions.ValidationError: Invalid domain name: ../admin
    """
    if not isinstance(domain, str) or not domain or len(domain) > MAX_DOMAIN_LENGTH:
        raise ValidationError(f"Invalid domain name: {domain}")

    for label in domain.split("."):
        if len(label) > MAX_LABEL_LENGTH or not _LABEL_RE.match(label):
            raise ValidationError(f"Invalid domain name: {domain}")


def domain_suffixes(domain: str) -> list[str]:
    """Return the second-level and top-level suffixes of a domain, longest first.

    Examples:
        >>> domain_suffixes("shop.example.co.uk")
        ['co.uk', 'uk']
        >>> domain_suffixes("example.com")
        ['com']
    """
    labels = domain.lower().split(".")[1:]
    suffixes = []
    if len(labels) >= 2:
        suffixes.append(".".join(labels[-2:]))
    if labels:
        suffixes.append(labels[-1])
    return suffixes


def plural(count: int, word: str) -> str:
    """Format a count with a naively pluralized word.

    Examples:
        >>> plural(1, "domain")
        '1 domain'
        >>> plural(3, "domain")
        '3 domains'
    """
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
