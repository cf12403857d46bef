"""Operator-facing error messages with provider-specific suggestions.

Failures recorded into migration state and reported to the progress observer
pass through ``format_error`` so the operator sees what went wrong and, for
known failure patterns, what to do about it.
"""

from collections.abc import Callable
from dataclasses import dataclass

from ..constants import CLOUDFLARE, GODADDY
from .exceptions import ProviderError, ProviderHttpError


@dataclass(frozen=True)
class ErrorHint:
    match: Callable[[str, int | None], bool]
    suggestion: str


GODADDY_HINTS: tuple[ErrorHint, ...] = (
    ErrorHint(
        match=lambda _, status: status in (401, 403),
        suggestion="Check your GoDaddy API key and secret at https://developer.godaddy.com/keys",
    ),
    ErrorHint(
        match=lambda _, status: status == 429,
        suggestion="GoDaddy rate limit hit. Wait a minute and try again, or reduce concurrency.",
    ),
    ErrorHint(
        match=lambda msg, _: "DOMAIN_LOCKED" in msg,
        suggestion=(
            "Domain is locked. It may take a few minutes after unlocking "
            "before GoDaddy reflects the change."
        ),
    ),
    ErrorHint(
        match=lambda msg, _: "409" in msg or "Conflict" in msg,
        suggestion=(
            "The auth code may have been sent to your email instead. "
            "Check your inbox and run `registrar-migrate resume` to continue."
        ),
    ),
    ErrorHint(
        match=lambda msg, _: "UNABLE_TO_AUTHENTICATE" in msg or "NOT_FOUND" in msg,
        suggestion=(
            "Make sure you are using a Production API key (not OTE/Test) "
            "at https://developer.godaddy.com/keys"
        ),
    ),
)

CLOUDFLARE_HINTS: tuple[ErrorHint, ...] = (
    ErrorHint(
        match=lambda _, status: status in (401, 403),
        suggestion=(
            "Check your Cloudflare API token permissions. "
            "Required: Zone:Edit, DNS:Edit, Registrar Domains:Edit"
        ),
    ),
    ErrorHint(
        match=lambda msg, _: "already exists" in msg,
        suggestion=(
            "This zone already exists in Cloudflare. "
            "You may need to delete it first or use the existing zone."
        ),
    ),
    ErrorHint(
        match=lambda _, status: status == 429,
        suggestion="Cloudflare rate limit hit. Wait a few minutes and resume.",
    ),
    ErrorHint(
        match=lambda msg, _: "not_registrable" in msg,
        suggestion=(
            "This TLD cannot be transferred to Cloudflare Registrar. "
            "DNS-only setup is still possible."
        ),
    ),
    ErrorHint(
        match=lambda msg, _: "did not become active" in msg,
        suggestion=(
            "Nameserver changes can take up to 48 hours to propagate. "
            "Run `registrar-migrate resume` to retry later."
        ),
    ),
)

_HINTS_BY_PROVIDER: dict[str, tuple[ErrorHint, ...]] = {
    GODADDY: GODADDY_HINTS,
    CLOUDFLARE: CLOUDFLARE_HINTS,
}


def find_hint(err: BaseException) -> ErrorHint | None:
    """Return the first hint matching the error, searching its provider's hints."""
    message = str(err)
    status = err.status_code if isinstance(err, ProviderHttpError) else None
    provider = err.provider if isinstance(err, ProviderError) else None
    hints = _HINTS_BY_PROVIDER.get(provider or "", GODADDY_HINTS + CLOUDFLARE_HINTS)

    for hint in hints:
        if hint.match(message, status):
            return hint
    return None


def format_error(err: BaseException, plain: bool = False) -> str:
    """Render an error for display (multi-line) or persistence (single line).

    Args:
        err: The failure to describe
        plain: Single-line form suitable for storing in migration state

    Returns:
        The error message, followed by a suggestion when one matches
    """
    message = str(err) or type(err).__name__
    hint = find_hint(err)
    if hint is None:
        return message
    if plain:
        return f"{message} | Suggestion: {hint.suggestion}"
    return f"{message}\n  Suggestion: {hint.suggestion}"
