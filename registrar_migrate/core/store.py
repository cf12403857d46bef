"""SQLite-backed persistence for migration runs and per-domain state."""

import asyncio
import json
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite
import structlog
from pydantic import ValidationError as PydanticValidationError

from ..models.enums import DomainStatus
from ..models.godaddy import GoDaddyDnsRecord
from ..models.migration import DomainMigrationState, MigrationRun
from .exceptions import StoreCorruptionError, StoreError

logger = structlog.get_logger()

ACTIVE_MIGRATION_KEY = "active_migration_id"

# Fields a status transition may merge into the domain state
MERGEABLE_FIELDS = frozenset({"dns_records_backup", "zone_id", "nameservers", "error"})

# Keys written by older releases that must never be loaded back
LEGACY_SECRET_KEYS = ("auth_code", "authCode")


def _now() -> datetime:
    return datetime.now(UTC)


class MigrationStore:
    """Persisted, resumable migration state.

    One row per run, one row per (run, domain). Every status transition is a
    single read-modify-write transaction on the domain's row, serialized by an
    in-process lock.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._lock = asyncio.Lock()
        self._initialized = False
        self.logger = logger.bind(component="migration_store")

    async def initialize(self) -> None:
        """Create the database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS migrations (
                    id TEXT PRIMARY KEY,
                    started_at TEXT NOT NULL  -- ISO timestamp
                )
            """)
            await db.execute("""
                CREATE TABLE IF NOT EXISTS domain_states (
                    migration_id TEXT NOT NULL,
                    domain TEXT NOT NULL,
                    status TEXT NOT NULL,
                    state TEXT NOT NULL,  -- JSON serialized DomainMigrationState
                    last_updated TEXT NOT NULL,
                    PRIMARY KEY (migration_id, domain)
                )
            """)
            await db.execute("""
                CREATE TABLE IF NOT EXISTS store_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            await db.commit()

        self._initialized = True
        self.logger.debug("Migration store initialized", db_path=str(self.db_path))

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    async def create_migration(self, domains: list[str]) -> MigrationRun:
        """Create a run with every domain pending and mark it active."""
        await self._ensure_initialized()
        started_at = _now()
        run = MigrationRun(
            id=str(uuid.uuid4()),
            started_at=started_at,
            domains={
                name: DomainMigrationState(domain=name, last_updated=started_at)
                for name in domains
            },
        )

        async with self._lock, aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT INTO migrations (id, started_at) VALUES (?, ?)",
                (run.id, started_at.isoformat()),
            )
            await db.executemany(
                "INSERT INTO domain_states (migration_id, domain, status, state, last_updated) "
                "VALUES (?, ?, ?, ?, ?)",
                [
                    (
                        run.id,
                        state.domain,
                        state.status.value,
                        state.model_dump_json(),
                        started_at.isoformat(),
                    )
                    for state in run.domains.values()
                ],
            )
            await db.execute(
                "INSERT OR REPLACE INTO store_meta (key, value) VALUES (?, ?)",
                (ACTIVE_MIGRATION_KEY, run.id),
            )
            await db.commit()

        self.logger.info("Migration run created", migration_id=run.id, domains=len(domains))
        return run

    async def get_active_migration(self) -> MigrationRun | None:
        await self._ensure_initialized()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT value FROM store_meta WHERE key = ?", (ACTIVE_MIGRATION_KEY,)
            ) as cursor:
                row = await cursor.fetchone()
        if row is None:
            return None
        return await self.get_migration(row[0])

    async def get_migration(self, migration_id: str) -> MigrationRun | None:
        await self._ensure_initialized()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT started_at FROM migrations WHERE id = ?", (migration_id,)
            ) as cursor:
                row = await cursor.fetchone()
            if row is None:
                return None
            async with db.execute(
                "SELECT state FROM domain_states WHERE migration_id = ? ORDER BY rowid",
                (migration_id,),
            ) as cursor:
                state_rows = await cursor.fetchall()

        states = [self._decode_state(raw) for (raw,) in state_rows]
        return MigrationRun(
            id=migration_id,
            started_at=self._decode_timestamp(row[0]),
            domains={state.domain: state for state in states},
        )

    async def get_domain_state(self, migration_id: str, domain: str) -> DomainMigrationState:
        """Read one domain's state.

        Raises:
            StoreError: If the run or the domain is unknown
        """
        await self._ensure_initialized()
        async with aiosqlite.connect(self.db_path) as db:
            raw = await self._fetch_state(db, migration_id, domain)
        return self._decode_state(raw)

    async def update_domain_status(
        self,
        migration_id: str,
        domain: str,
        status: DomainStatus,
        **changes: Any,
    ) -> DomainMigrationState:
        """Atomically transition one domain, merging any artifact fields.

        Entering ``failed`` remembers the status it was entered from so a
        resume can re-enter the pipeline there; any other transition clears
        the previous error.

        Args:
            migration_id: Run identifier
            domain: Domain name within the run
            status: New status
            **changes: Any of dns_records_backup, zone_id, nameservers, error

        Returns:
            The state as written

        Raises:
            StoreError: If the run or domain is unknown or a field is not mergeable
        """
        unknown = set(changes) - MERGEABLE_FIELDS
        if unknown:
            raise StoreError(f"Cannot update fields on domain state: {', '.join(sorted(unknown))}")

        await self._ensure_initialized()
        async with self._lock, aiosqlite.connect(self.db_path) as db:
            current = self._decode_state(await self._fetch_state(db, migration_id, domain))

            update: dict[str, Any] = {"status": status, "last_updated": _now(), **changes}
            if status == DomainStatus.FAILED:
                if current.status != DomainStatus.FAILED:
                    update["failed_from"] = current.status
            else:
                update["failed_from"] = None
                update.setdefault("error", None)

            try:
                new_state = DomainMigrationState.model_validate(
                    {**current.model_dump(), **update}
                )
            except PydanticValidationError as e:
                raise StoreError(f"Invalid state update for {domain}: {e}") from e

            await db.execute(
                "UPDATE domain_states SET status = ?, state = ?, last_updated = ? "
                "WHERE migration_id = ? AND domain = ?",
                (
                    new_state.status.value,
                    new_state.model_dump_json(),
                    new_state.last_updated.isoformat(),
                    migration_id,
                    domain,
                ),
            )
            await db.commit()

        self.logger.debug(
            "Domain status updated",
            migration_id=migration_id,
            domain=domain,
            status=status.value,
        )
        return new_state

    async def save_dns_backup(
        self, migration_id: str, domain: str, records: list[GoDaddyDnsRecord]
    ) -> DomainMigrationState:
        """Persist the DNS backup without changing the domain's status."""
        state = await self.get_domain_state(migration_id, domain)
        status = state.status if state.status != DomainStatus.FAILED else state.resume_point
        return await self.update_domain_status(
            migration_id, domain, status, dns_records_backup=records
        )

    async def get_all_migrations(self) -> list[MigrationRun]:
        """All runs, most recent first."""
        await self._ensure_initialized()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT id FROM migrations ORDER BY started_at DESC, rowid DESC"
            ) as cursor:
                ids = [row[0] for row in await cursor.fetchall()]

        runs = []
        for migration_id in ids:
            run = await self.get_migration(migration_id)
            if run is not None:
                runs.append(run)
        return runs

    async def get_resumable_domains(self, migration_id: str | None = None) -> list[str]:
        """Domains of a run (the active one by default) that are not durably done."""
        if migration_id is None:
            run = await self.get_active_migration()
        else:
            run = await self.get_migration(migration_id)
        if run is None:
            return []
        return [name for name, state in run.domains.items() if not state.status.is_done]

    async def clear(self) -> None:
        """Delete every run and the active pointer."""
        await self._ensure_initialized()
        async with self._lock, aiosqlite.connect(self.db_path) as db:
            await db.execute("DELETE FROM domain_states")
            await db.execute("DELETE FROM migrations")
            await db.execute("DELETE FROM store_meta")
            await db.commit()
        self.logger.info("Migration store cleared", db_path=str(self.db_path))

    async def _fetch_state(self, db: aiosqlite.Connection, migration_id: str, domain: str) -> str:
        async with db.execute(
            "SELECT state FROM domain_states WHERE migration_id = ? AND domain = ?",
            (migration_id, domain),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            raise StoreError(f"No state for {domain} in migration {migration_id}")
        return row[0]

    def _decode_state(self, raw: str) -> DomainMigrationState:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreCorruptionError(f"Undecodable domain state: {e}") from e
        if not isinstance(data, dict):
            raise StoreCorruptionError("Undecodable domain state: expected an object")

        for key in LEGACY_SECRET_KEYS:
            data.pop(key, None)

        try:
            return DomainMigrationState.model_validate(data)
        except PydanticValidationError as e:
            raise StoreCorruptionError(f"Invalid domain state: {e}") from e

    def _decode_timestamp(self, raw: str) -> datetime:
        try:
            return datetime.fromisoformat(raw)
        except ValueError as e:
            raise StoreCorruptionError(f"Invalid run timestamp: {raw}") from e
