"""Migration pipeline: preflight, DNS translation, per-domain engine and batch scheduler."""

from .dns_translator import apply_records, translate_records  # noqa: F401
from .engine import TransferEngine  # noqa: F401
from .preflight import preflight_check, raise_if_ineligible  # noqa: F401
from .scheduler import BatchScheduler  # noqa: F401

__all__ = [
    "BatchScheduler",
    "TransferEngine",
    "apply_records",
    "preflight_check",
    "raise_if_ineligible",
    "translate_records",
]
