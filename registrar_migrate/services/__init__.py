"""
Registrar Migrate Services

Service layer for operator-facing migration operations.
"""

from .migration import (  # noqa: F401
    MigrationService,
    build_interrupt_summary,
    build_status_report,
    cleanup_all,
)

__all__ = [
    "MigrationService",
    "build_interrupt_summary",
    "build_status_report",
    "cleanup_all",
]
