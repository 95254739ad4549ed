"""A small SQLite-backed store for scan result records."""

from __future__ import annotations

import re
import sqlite3
from collections.abc import Mapping, Sequence
from os import PathLike
from typing import Any

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _quote(name: str) -> str:
    """Quote a table or column name, rejecting anything that is not a plain identifier."""
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"invalid identifier: {name!r}")
    return f'"{name}"'


def _where_sql(where: str | None) -> str:
    return f" WHERE {where}" if where else ""


class Database:
    """A connection to an SQLite database holding one table per record type.

    Every table carries an auto-incremented integer ``id`` primary key.
    Write operations are committed immediately.
    """

    def __init__(self, path: str | PathLike[str] = ":memory:") -> None:
        self._conn = sqlite3.connect(str(path))
        self._conn.row_factory = sqlite3.Row

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def ensure_table(self, table: str, columns: Mapping[str, str]) -> None:
        """Create ``table`` with an ``id`` key and the given column definitions if missing."""
        definitions = ['"id" INTEGER PRIMARY KEY AUTOINCREMENT']
        definitions.extend(
            f"{_quote(name)} {sql_type}" for name, sql_type in columns.items() if name != "id"
        )
        with self._conn:
            self._conn.execute(
                f"CREATE TABLE IF NOT EXISTS {_quote(table)} ({', '.join(definitions)})"
            )

    def insert(self, table: str, values: Mapping[str, Any]) -> int:
        """Insert one row and return its new id."""
        if values:
            names = ", ".join(_quote(name) for name in values)
            marks = ", ".join("?" for _ in values)
            sql = f"INSERT INTO {_quote(table)} ({names}) VALUES ({marks})"
        else:
            sql = f"INSERT INTO {_quote(table)} DEFAULT VALUES"
        with self._conn:
            cursor = self._conn.execute(sql, tuple(values.values()))
        return int(cursor.lastrowid)

    def select(
        self,
        table: str,
        where: str | None = None,
        params: Sequence[Any] = (),
        columns: Sequence[str] | None = None,
        distinct: bool = False,
    ) -> list[dict[str, Any]]:
        """Return matching rows as dictionaries.

        Full rows are returned in id order; a column selection keeps the
        order the engine yields.
        """
        selection = ", ".join(_quote(name) for name in columns) if columns else "*"
        keyword = "SELECT DISTINCT" if distinct else "SELECT"
        sql = f"{keyword} {selection} FROM {_quote(table)}{_where_sql(where)}"
        if not columns:
            sql += ' ORDER BY "id"'
        return [dict(row) for row in self._conn.execute(sql, tuple(params))]

    def select_one(
        self, table: str, where: str | None = None, params: Sequence[Any] = ()
    ) -> dict[str, Any] | None:
        """Return the first matching row, or None when nothing matches."""
        sql = f'SELECT * FROM {_quote(table)}{_where_sql(where)} ORDER BY "id" LIMIT 1'
        row = self._conn.execute(sql, tuple(params)).fetchone()
        return dict(row) if row is not None else None

    def update(self, table: str, row_id: int, values: Mapping[str, Any]) -> int:
        """Set the given columns on the row with ``row_id``; return the rows changed."""
        if not values:
            return 0
        assignments = ", ".join(f"{_quote(name)} = ?" for name in values)
        sql = f'UPDATE {_quote(table)} SET {assignments} WHERE "id" = ?'
        with self._conn:
            cursor = self._conn.execute(sql, (*values.values(), row_id))
        return cursor.rowcount

    def delete(self, table: str, where: str | None = None, params: Sequence[Any] = ()) -> int:
        """Delete matching rows and return how many were removed."""
        with self._conn:
            cursor = self._conn.execute(
                f"DELETE FROM {_quote(table)}{_where_sql(where)}", tuple(params)
            )
        return cursor.rowcount

    def count(self, table: str, where: str | None = None, params: Sequence[Any] = ()) -> int:
        """Return the number of matching rows."""
        row = self._conn.execute(
            f"SELECT COUNT(*) FROM {_quote(table)}{_where_sql(where)}", tuple(params)
        ).fetchone()
        return int(row[0])