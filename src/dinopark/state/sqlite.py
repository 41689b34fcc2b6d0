"""SQLite-backed entity store.

Each merge is a single ``INSERT ... ON CONFLICT DO UPDATE`` whose ``CASE``
guards encode :mod:`dinopark.state.policy`, so concurrent writers never
lose an update between a read and a write.
"""

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dinopark._constants import DEFAULT_DIGESTION_PERIOD_HOURS
from dinopark.exceptions import StoreUnavailableError
from dinopark.models.agent import Agent, AgentIdentity, DietClass
from dinopark.models.zone import MaintenanceRecord, Zone
from dinopark.zones import normalize_zone_code

_logger = logging.getLogger(__name__)

# Fixed-width UTC text sorts in time order, so SQL can compare it directly.
_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS zones (
        code TEXT PRIMARY KEY,
        last_maintenance_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS agents (
        external_id INTEGER PRIMARY KEY,
        display_name TEXT,
        species TEXT,
        gender TEXT,
        diet_class TEXT,
        digestion_period_hours INTEGER NOT NULL DEFAULT {DEFAULT_DIGESTION_PERIOD_HOURS},
        park_id INTEGER,
        identity_updated_at TEXT,
        current_zone TEXT,
        location_updated_at TEXT,
        last_fed_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS agents_zone_diet ON agents (current_zone, diet_class)",
    """
    CREATE TABLE IF NOT EXISTS maintenance_records (
        zone_code TEXT NOT NULL,
        performed_at TEXT NOT NULL,
        performed_by TEXT NOT NULL,
        notes TEXT,
        PRIMARY KEY (zone_code, performed_at)
    )
    """,
)

_IDENTITY_COLUMNS = (
    "display_name",
    "species",
    "gender",
    "diet_class",
    "digestion_period_hours",
    "park_id",
    "identity_updated_at",
)
_IDENTITY_WINS = "agents.identity_updated_at IS NULL OR excluded.identity_updated_at >= agents.identity_updated_at"
_LOCATION_WINS = "agents.location_updated_at IS NULL OR excluded.location_updated_at >= agents.location_updated_at"

_IDENTITY_INSERT_COLUMNS = ", ".join(_IDENTITY_COLUMNS)
_IDENTITY_PLACEHOLDERS = ", ".join("?" for _ in _IDENTITY_COLUMNS)
_IDENTITY_ASSIGNMENTS = ",\n        ".join(
    f"{col} = CASE WHEN {_IDENTITY_WINS} THEN excluded.{col} ELSE agents.{col} END" for col in _IDENTITY_COLUMNS
)

_UPSERT_IDENTITY = f"""
    INSERT INTO agents (external_id, {_IDENTITY_INSERT_COLUMNS})
    VALUES (?, {_IDENTITY_PLACEHOLDERS})
    ON CONFLICT(external_id) DO UPDATE SET
        {_IDENTITY_ASSIGNMENTS}
"""

_UPSERT_LOCATION = f"""
    INSERT INTO agents (external_id, current_zone, location_updated_at)
    VALUES (?, ?, ?)
    ON CONFLICT(external_id) DO UPDATE SET
        current_zone = CASE WHEN {_LOCATION_WINS} THEN excluded.current_zone ELSE agents.current_zone END,
        location_updated_at = CASE WHEN {_LOCATION_WINS}
            THEN excluded.location_updated_at ELSE agents.location_updated_at END
"""

_UPSERT_FED = """
    INSERT INTO agents (external_id, last_fed_at)
    VALUES (?, ?)
    ON CONFLICT(external_id) DO UPDATE SET
        last_fed_at = CASE
            WHEN agents.last_fed_at IS NULL OR excluded.last_fed_at > agents.last_fed_at THEN excluded.last_fed_at
            ELSE agents.last_fed_at
        END
"""

_INSERT_MAINTENANCE = """
    INSERT INTO maintenance_records (zone_code, performed_at, performed_by, notes)
    VALUES (?, ?, ?, ?)
    ON CONFLICT(zone_code, performed_at) DO NOTHING
"""

_UPSERT_ZONE_MAINTENANCE = """
    INSERT INTO zones (code, last_maintenance_at)
    VALUES (?, ?)
    ON CONFLICT(code) DO UPDATE SET
        last_maintenance_at = CASE
            WHEN zones.last_maintenance_at IS NULL OR excluded.last_maintenance_at > zones.last_maintenance_at
            THEN excluded.last_maintenance_at
            ELSE zones.last_maintenance_at
        END
"""


def _ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(_TS_FORMAT)


def _parse_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.strptime(value, _TS_FORMAT).replace(tzinfo=UTC)


def _agent_from_row(row: sqlite3.Row) -> Agent:
    return Agent(
        external_id=row["external_id"],
        display_name=row["display_name"],
        species=row["species"],
        gender=row["gender"],
        diet_class=row["diet_class"],
        digestion_period_hours=row["digestion_period_hours"],
        park_id=row["park_id"],
        current_zone=row["current_zone"],
        last_fed_at=_parse_ts(row["last_fed_at"]),
        identity_updated_at=_parse_ts(row["identity_updated_at"]),
        location_updated_at=_parse_ts(row["location_updated_at"]),
    )


def _zone_from_row(row: sqlite3.Row) -> Zone:
    return Zone(code=row["code"], last_maintenance_at=_parse_ts(row["last_maintenance_at"]))


def _record_from_row(row: sqlite3.Row) -> MaintenanceRecord:
    return MaintenanceRecord(
        zone_code=row["zone_code"],
        performed_at=_parse_ts(row["performed_at"]),
        performed_by=row["performed_by"],
        notes=row["notes"],
    )


class SqliteEntityStore:
    """:class:`~dinopark.state.base.EntityStore` persisted in a SQLite file.

    A connection is opened per call; ``timeout`` bounds how long a call
    waits on a database locked by another writer.
    """

    def __init__(self, path: str | Path, *, timeout: float = 5.0) -> None:
        self.path = Path(path)
        self._timeout = timeout
        if self.path.parent != Path():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside one transaction, mapping driver errors."""
        try:
            conn = sqlite3.connect(self.path, timeout=self._timeout)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"cannot open {self.path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            _logger.debug("SQLite call failed", exc_info=True)
            raise StoreUnavailableError(f"store call failed: {exc}") from exc
        finally:
            conn.close()

    def _select_agent(self, conn: sqlite3.Connection, external_id: int) -> Agent:
        row = conn.execute("SELECT * FROM agents WHERE external_id = ?", (external_id,)).fetchone()
        return _agent_from_row(row)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def initialize_zones(self, codes: Iterable[str]) -> None:
        rows = [(normalize_zone_code(code),) for code in codes]
        with self._connect() as conn:
            conn.executemany("INSERT INTO zones (code) VALUES (?) ON CONFLICT(code) DO NOTHING", rows)

    def upsert_agent_identity(self, identity: AgentIdentity, *, observed_at: datetime) -> Agent:
        params: tuple[Any, ...] = (
            identity.external_id,
            identity.display_name,
            identity.species,
            identity.gender,
            identity.diet_class.value,
            identity.digestion_period_hours,
            identity.park_id,
            _ts(observed_at),
        )
        with self._connect() as conn:
            conn.execute(_UPSERT_IDENTITY, params)
            return self._select_agent(conn, identity.external_id)

    def upsert_agent_location(self, external_id: int, zone_code: str, *, observed_at: datetime) -> Agent:
        zone_code = normalize_zone_code(zone_code)
        with self._connect() as conn:
            conn.execute(_UPSERT_LOCATION, (external_id, zone_code, _ts(observed_at)))
            return self._select_agent(conn, external_id)

    def upsert_agent_fed(self, external_id: int, *, fed_at: datetime) -> Agent:
        with self._connect() as conn:
            conn.execute(_UPSERT_FED, (external_id, _ts(fed_at)))
            return self._select_agent(conn, external_id)

    def delete_agent(self, external_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM agents WHERE external_id = ?", (external_id,))
            return cursor.rowcount > 0

    def record_maintenance(self, zone_code: str, *, performed_at: datetime) -> Zone:
        zone_code = normalize_zone_code(zone_code)
        performed = _ts(performed_at)
        with self._connect() as conn:
            conn.execute(
                _INSERT_MAINTENANCE,
                (zone_code, performed, "NUDLS", f"Maintenance performed via NUDLS event at {performed}"),
            )
            conn.execute(_UPSERT_ZONE_MAINTENANCE, (zone_code, performed))
            row = conn.execute("SELECT * FROM zones WHERE code = ?", (zone_code,)).fetchone()
            return _zone_from_row(row)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_agent(self, external_id: int) -> Agent | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM agents WHERE external_id = ?", (external_id,)).fetchone()
        return _agent_from_row(row) if row is not None else None

    def list_agents(self, *, zone_code: str | None = None, diet_class: DietClass | None = None) -> list[Agent]:
        clauses: list[str] = []
        params: list[Any] = []
        if zone_code is not None:
            clauses.append("current_zone = ?")
            params.append(zone_code)
        if diet_class is not None:
            clauses.append("diet_class = ?")
            params.append(diet_class.value)
        where = " WHERE " + " AND ".join(clauses) if clauses else ""
        with self._connect() as conn:
            rows = conn.execute(f"SELECT * FROM agents{where} ORDER BY external_id", params).fetchall()
        return [_agent_from_row(row) for row in rows]

    def get_zone(self, code: str) -> Zone | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM zones WHERE code = ?", (code,)).fetchone()
        return _zone_from_row(row) if row is not None else None

    def list_zones(self) -> list[Zone]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM zones ORDER BY code").fetchall()
        return [_zone_from_row(row) for row in rows]

    def maintenance_history(self, zone_code: str) -> list[MaintenanceRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM maintenance_records WHERE zone_code = ? ORDER BY performed_at",
                (zone_code,),
            ).fetchall()
        return [_record_from_row(row) for row in rows]

    def latest_maintenance(self, zone_code: str) -> MaintenanceRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM maintenance_records WHERE zone_code = ? ORDER BY performed_at DESC LIMIT 1",
                (zone_code,),
            ).fetchone()
        return _record_from_row(row) if row is not None else None

    def count_maintenance_records(self) -> int:
        with self._connect() as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM maintenance_records").fetchone()
        return int(count)
