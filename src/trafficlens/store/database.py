"""SQL-backed row source for aggregated capture observations."""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any, Iterable, Literal, Mapping
from urllib.parse import ParseResult, unquote, urlparse

from ..core.errors import StoreUnavailableError
from .base import DIMENSIONS, Row

logger = logging.getLogger(__name__)

DatabaseBackend = Literal["sqlite", "postgres"]

#: Table holding each dimension's rows.
TABLES: dict[str, str] = {
    "protocols": "protocol_counts",
    "ports": "top_ports",
    "talkers": "top_talkers",
    "dns_domains": "dns_domains",
    "destinations": "destinations",
}

#: Columns each dimension is grouped by. The remaining columns are summed.
GROUP_COLUMNS: dict[str, tuple[str, ...]] = {
    "protocols": ("protocol",),
    "ports": ("port", "protocol"),
    "talkers": ("ip",),
    "dns_domains": ("domain",),
    "destinations": ("address",),
}

_TEXT_COLUMNS = frozenset({"protocol", "ip", "domain", "address"})


@dataclass(frozen=True)
class DatabaseInfo:
    """Resolved database connection info."""

    backend: DatabaseBackend
    dsn: str


def detect_database_backend(dsn: str) -> DatabaseInfo:
    """Detect database backend from a DSN or path.

    Args:
        dsn: Database connection string or SQLite file path.

    Returns:
        DatabaseInfo with backend and normalized DSN/path.
    """
    parsed = urlparse(dsn)

    if parsed.scheme in {"postgresql", "postgres"}:
        return DatabaseInfo(backend="postgres", dsn=dsn)

    if parsed.scheme == "sqlite":
        return DatabaseInfo(backend="sqlite", dsn=_normalize_sqlite_path(parsed))

    if parsed.scheme:
        raise ValueError(f"Unsupported database scheme: {parsed.scheme}")

    return DatabaseInfo(backend="sqlite", dsn=dsn)


def _normalize_sqlite_path(parsed: ParseResult) -> str:
    """Normalize a sqlite:// URL into a filesystem path or :memory:."""
    path = unquote(parsed.path)

    if path in {"", "/", "/:memory:"}:
        return ":memory:"

    if path.startswith("//"):
        path = path[1:]

    return path


def _quote_identifier(name: str) -> str:
    """Quote SQL identifiers safely."""
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


class DatabaseStore:
    """Serve grouped per-capture sums from SQLite or PostgreSQL.

    Reads group and sum in SQL and return groups in the order their first
    row was inserted. A single connection is shared and guarded by a lock,
    so one store can serve concurrent dimension reads.

    Example:
        >>> with DatabaseStore("traffic.db") as store:
        ...     store.create_schema()
        ...     store.insert_rows("ports", [{"port": 443, "protocol": "TCP", "count": 9}], 1)
        ...     list(store.port_rows(1))
        [{'port': 443, 'protocol': 'TCP', 'count': 9}]
    """

    def __init__(self, dsn: str, read_only: bool = False) -> None:
        """Open a database connection.

        Args:
            dsn: Database connection string or SQLite path.
            read_only: Open without write access. A missing SQLite file is
                then an error instead of being created.

        Raises:
            StoreUnavailableError: If the connection cannot be opened.
        """
        info = detect_database_backend(dsn)
        self.backend = info.backend
        self.dsn = info.dsn
        self.read_only = read_only
        self._lock = threading.Lock()
        self._errors: tuple[type[BaseException], ...] = (sqlite3.Error, OSError)
        self._conn = self._connect()

    def __enter__(self) -> "DatabaseStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _connect(self) -> Any:
        if self.backend == "sqlite":
            try:
                if self.read_only and self.dsn != ":memory:":
                    uri = Path(self.dsn).resolve().as_uri() + "?mode=ro"
                    return sqlite3.connect(uri, uri=True, check_same_thread=False)
                return sqlite3.connect(self.dsn, check_same_thread=False)
            except sqlite3.Error as exc:
                raise StoreUnavailableError(
                    f"Cannot open SQLite database {self.dsn}: {exc}"
                ) from exc

        try:
            import psycopg
        except ImportError as exc:
            raise ImportError(
                "PostgreSQL support requires psycopg. Install with: pip install psycopg"
            ) from exc

        self._errors = (psycopg.Error, OSError)
        try:
            conn = psycopg.connect(self.dsn)
        except psycopg.Error as exc:
            raise StoreUnavailableError(f"Cannot connect to PostgreSQL: {exc}") from exc
        conn.read_only = self.read_only
        return conn

    @property
    def _placeholder(self) -> str:
        return "?" if self.backend == "sqlite" else "%s"

    def _execute(
        self,
        sql: str,
        params: Iterable[Any] = (),
        *,
        many: bool = False,
        fetch: bool = False,
    ) -> list[tuple[Any, ...]]:
        with self._lock:
            cursor = self._conn.cursor()
            try:
                if many:
                    cursor.executemany(sql, params)
                else:
                    cursor.execute(sql, tuple(params))
                rows = cursor.fetchall() if fetch else []
                if not fetch:
                    self._conn.commit()
                return rows
            except self._errors as exc:
                try:
                    self._conn.rollback()
                except self._errors:
                    logger.debug("Rollback after failed statement also failed")
                raise StoreUnavailableError(
                    f"Database query failed: {exc}",
                    context=sql,
                ) from exc
            finally:
                cursor.close()

    def create_schema(self) -> None:
        """Create the dimension tables if they do not exist."""
        id_column = (
            "id INTEGER PRIMARY KEY AUTOINCREMENT"
            if self.backend == "sqlite"
            else "id BIGSERIAL PRIMARY KEY"
        )
        int_type = "INTEGER" if self.backend == "sqlite" else "BIGINT"

        for dimension, table in TABLES.items():
            col_defs = [id_column, f"{_quote_identifier('capture_id')} {int_type}"]
            for column in DIMENSIONS[dimension]:
                sql_type = "TEXT" if column in _TEXT_COLUMNS else int_type
                col_defs.append(f"{_quote_identifier(column)} {sql_type} NOT NULL")
            self._execute(
                f"CREATE TABLE IF NOT EXISTS {_quote_identifier(table)} "
                f"({', '.join(col_defs)})"
            )
        logger.debug("Ensured %d dimension tables exist", len(TABLES))

    def insert_rows(
        self,
        dimension: str,
        rows: Iterable[Mapping[str, Any]],
        capture_id: int | None = None,
    ) -> int:
        """Insert aggregated rows for one dimension.

        Args:
            dimension: One of the dimension names in ``TABLES``.
            rows: Row mappings carrying the dimension's columns.
            capture_id: Capture the rows belong to.

        Returns:
            Number of rows inserted.
        """
        if dimension not in TABLES:
            raise ValueError(f"Unknown dimension: {dimension}")

        columns = DIMENSIONS[dimension]
        group_cols = GROUP_COLUMNS[dimension]
        values = [
            (capture_id, *(row[col] if col in group_cols else row.get(col, 0) for col in columns))
            for row in rows
        ]
        if not values:
            return 0

        placeholders = ", ".join([self._placeholder] * (len(columns) + 1))
        column_list = ", ".join(_quote_identifier(c) for c in ("capture_id", *columns))
        self._execute(
            f"INSERT INTO {_quote_identifier(TABLES[dimension])} ({column_list}) "
            f"VALUES ({placeholders})",
            values,
            many=True,
        )
        logger.debug("Inserted %d %s rows for capture %s", len(values), dimension, capture_id)
        return len(values)

    def grouped_rows(self, dimension: str, capture_id: int | None = None) -> list[Row]:
        """Grouped sums for one dimension, in first-inserted order.

        Args:
            dimension: One of the dimension names in ``TABLES``.
            capture_id: Capture to filter on, or None for all captures.

        Returns:
            One mapping per group.
        """
        if dimension not in TABLES:
            raise ValueError(f"Unknown dimension: {dimension}")

        group_cols = GROUP_COLUMNS[dimension]
        sum_cols = [c for c in DIMENSIONS[dimension] if c not in group_cols]
        select = [_quote_identifier(c) for c in group_cols] + [
            f"SUM({_quote_identifier(c)}) AS {_quote_identifier(c)}" for c in sum_cols
        ]

        sql = f"SELECT {', '.join(select)} FROM {_quote_identifier(TABLES[dimension])}"
        params: list[Any] = []
        if capture_id is not None:
            sql += f" WHERE {_quote_identifier('capture_id')} = {self._placeholder}"
            params.append(capture_id)
        sql += f" GROUP BY {', '.join(_quote_identifier(c) for c in group_cols)} ORDER BY MIN(id)"

        names = [*group_cols, *sum_cols]
        return [dict(zip(names, row)) for row in self._execute(sql, params, fetch=True)]

    def protocol_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.grouped_rows("protocols", capture_id)

    def port_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.grouped_rows("ports", capture_id)

    def talker_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.grouped_rows("talkers", capture_id)

    def dns_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.grouped_rows("dns_domains", capture_id)

    def destination_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.grouped_rows("destinations", capture_id)

    def close(self) -> None:
        """Close the database connection."""
        try:
            self._conn.close()
        except self._errors as exc:
            logger.debug("Error closing database connection: %s", exc)
