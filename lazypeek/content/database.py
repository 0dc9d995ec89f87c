"""Read-only SQLite schema summaries and paginated table rows."""

from __future__ import annotations

import contextlib
import logging
import sqlite3
from pathlib import Path

from .types import ColumnSummary, DatabaseContent, TableRows, TableSummary

logger = logging.getLogger(__name__)

DATABASE_FORMAT_SQLITE = "SQLite"
DATABASE_EXTENSIONS = frozenset({".db", ".sqlite", ".sqlite3", ".db3"})
SQLITE_MAGIC = b"SQLite format 3"
TABLE_SAMPLE_ROWS = 5


def is_database(path: Path) -> bool:
    """Return whether ``path`` has a database extension or SQLite header."""
    path = Path(path)
    if path.suffix.lower() in DATABASE_EXTENSIONS:
        return True
    try:
        with path.open("rb") as handle:
            header = handle.read(16)
    except OSError:
        return False
    return len(header) >= 16 and header.startswith(SQLITE_MAGIC)


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _connect_read_only(path: Path) -> sqlite3.Connection:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"no such file: {path}")
    uri = path.resolve().as_uri() + "?mode=ro"
    return sqlite3.connect(uri, uri=True)


def _display_value(value: object) -> object:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _rows_as_dicts(cursor: sqlite3.Cursor) -> tuple[tuple[str, ...], tuple[dict[str, object], ...]]:
    columns = tuple(description[0] for description in cursor.description or ())
    rows = tuple(
        {column: _display_value(value) for column, value in zip(columns, row)}
        for row in cursor.fetchall()
    )
    return columns, rows


def _table_columns(conn: sqlite3.Connection, table: str) -> tuple[ColumnSummary, ...]:
    out: list[ColumnSummary] = []
    for _cid, name, data_type, not_null, _default, pk in conn.execute(
        f"PRAGMA table_info({_quote_identifier(table)})"
    ):
        out.append(
            ColumnSummary(
                name=str(name),
                type=str(data_type or ""),
                not_null=bool(not_null),
                primary_key=bool(pk),
            )
        )
    return tuple(out)


def _summarize_table(conn: sqlite3.Connection, name: str, schema: str | None) -> TableSummary:
    quoted = _quote_identifier(name)
    row_count = 0
    columns: tuple[ColumnSummary, ...] = ()
    sample: tuple[dict[str, object], ...] = ()
    try:
        row_count = int(conn.execute(f"SELECT COUNT(*) FROM {quoted}").fetchone()[0])
        columns = _table_columns(conn, name)
        _names, sample = _rows_as_dicts(conn.execute(f"SELECT * FROM {quoted} LIMIT {TABLE_SAMPLE_ROWS}"))
    except sqlite3.Error as exc:
        logger.warning("could not summarize table %s: %s", name, exc)
    return TableSummary(name=name, row_count=row_count, schema=schema or "", columns=columns, sample=sample)


def list_tables(path: Path) -> list[TableSummary]:
    """Summaries of user tables (``sqlite_*`` excluded), sorted by name.

    Raises ``sqlite3.Error`` or ``OSError`` when the file is not readable as a
    database.
    """
    with contextlib.closing(_connect_read_only(path)) as conn:
        return _list_tables(conn)


def _list_tables(conn: sqlite3.Connection) -> list[TableSummary]:
    rows = conn.execute(
        "SELECT name, sql FROM sqlite_master "
        "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
    ).fetchall()
    return [_summarize_table(conn, str(name), schema) for name, schema in rows]


def _schema_dump(tables: list[TableSummary]) -> str:
    parts = ["-- SQLite Database Schema\n\n"]
    for table in tables:
        if table.schema:
            parts.append(table.schema + ";\n\n")
    return "".join(parts)


def read_database_info(path: Path) -> tuple[DatabaseContent | None, str | None, bool]:
    """Return ``(content, error, is_decode_error)`` for a database file."""
    path = Path(path)
    try:
        file_size = path.stat().st_size
    except OSError as exc:
        return None, str(exc), False

    try:
        with contextlib.closing(_connect_read_only(path)) as conn:
            version = str(conn.execute("SELECT sqlite_version()").fetchone()[0])
            tables = _list_tables(conn)
    except sqlite3.OperationalError as exc:
        return None, str(exc), False
    except sqlite3.DatabaseError as exc:
        logger.debug("%s is not a readable SQLite database: %s", path, exc)
        return None, f"not a valid SQLite database: {exc}", True
    except (sqlite3.Error, OSError) as exc:
        return None, str(exc), False

    content = DatabaseContent(
        format=DATABASE_FORMAT_SQLITE,
        version=version,
        table_count=len(tables),
        tables=tuple(tables),
        file_size=file_size,
        schema=_schema_dump(tables),
    )
    return content, None, False


def fetch_rows(path: Path, table: str, offset: int, limit: int) -> tuple[TableRows | None, str | None]:
    """Fetch ``limit`` rows of ``table`` starting at ``offset``."""
    offset = max(0, offset)
    limit = max(0, limit)
    quoted = _quote_identifier(table)
    try:
        with contextlib.closing(_connect_read_only(path)) as conn:
            total_rows = int(conn.execute(f"SELECT COUNT(*) FROM {quoted}").fetchone()[0])
            cursor = conn.execute(f"SELECT * FROM {quoted} LIMIT ? OFFSET ?", (limit, offset))
            columns, rows = _rows_as_dicts(cursor)
    except (sqlite3.Error, OSError) as exc:
        return None, str(exc)
    return TableRows(table=table, columns=columns, rows=rows, offset=offset, total_rows=total_rows), None
