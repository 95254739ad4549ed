"""Static code analysis findings stored per repository and branch.

The table and search helpers used by the other finding stores live here too.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any, TypeVar

from vulnstore.database import Database

DETECTED_LABEL = "Detected"

_COLUMN_TYPES = {
    "int": "INTEGER NOT NULL DEFAULT 0",
    "float": "REAL NOT NULL DEFAULT 0",
    "str": "TEXT NOT NULL DEFAULT ''",
}

_Options = TypeVar("_Options")


def _filter_key(column: str) -> str:
    """Name under which a column is offered as a list filter."""
    return "location" if column == "target" else column


def _search_conds(options: Any, like_column: str) -> tuple[str, tuple[Any, ...]]:
    """Build an SQL condition from non-empty option fields and the ``q`` pattern."""
    clauses: list[str] = []
    params: list[Any] = []
    for field in fields(options):
        value = getattr(options, field.name)
        if field.name != "q" and value:
            clauses.append(f'"{field.name}" = ?')
            params.append(value)
    if options.q:
        clauses.append(f'LOWER("{like_column}") LIKE ?')
        params.append(options.q)
    return " AND ".join(clauses), tuple(params)


def _options_from_filters(
    options_type: type[_Options], repo_id: int, filters: Mapping[str, str] | None
) -> _Options:
    """Create search options for a repository from user-supplied list filters."""
    options = options_type(repo_id=repo_id)  # type: ignore[call-arg]
    if filters:
        if filters.get("q"):
            options.q = f"%{filters['q'].lower()}%"  # type: ignore[attr-defined]
        for field in fields(options):  # type: ignore[arg-type]
            if field.name not in ("repo_id", "q"):
                setattr(options, field.name, filters.get(_filter_key(field.name)) or "")
    return options


@dataclass(frozen=True)
class _Table:
    """Storage of one kind of record, keyed by its ``id`` field."""

    name: str
    record: type
    noun: str

    def prepare(self, db: Database) -> None:
        columns = {
            field.name: _COLUMN_TYPES[getattr(field.type, "__name__", field.type)]
            for field in fields(self.record)
            if field.name != "id"
        }
        db.ensure_table(self.name, columns)

    def get(self, db: Database, row_id: int) -> Any:
        self.prepare(db)
        row = db.select_one(self.name, '"id" = ?', (row_id,))
        return self.record(**row) if row else None

    def find_one(self, db: Database, **criteria: Any) -> Any:
        self.prepare(db)
        where = " AND ".join(f'"{column}" = ?' for column in criteria)
        row = db.select_one(self.name, where, tuple(criteria.values()))
        return self.record(**row) if row else None

    def find(self, db: Database, where: str, params: tuple[Any, ...]) -> list[Any]:
        self.prepare(db)
        return [self.record(**row) for row in db.select(self.name, where, params)]

    def insert(self, db: Database, record: Any) -> Any:
        values = asdict(record)
        del values["id"]
        record.id = db.insert(self.name, values)
        return record

    def update(self, db: Database, record: Any, **changes: Any) -> Any:
        for name, value in changes.items():
            setattr(record, name, value)
        db.update(self.name, record.id, changes)
        return record

    def relabel(self, db: Database, row_id: int, label: str) -> None:
        existing = self.get(db, row_id)
        if existing is None:
            raise LookupError(f"{self.noun} {row_id} not found")
        self.update(db, existing, label=label)

    def filter_values(
        self, db: Database, repo_id: int, columns: Iterable[str]
    ) -> dict[str, list[str]]:
        columns = tuple(columns)
        result: dict[str, list[str]] = {_filter_key(column): [] for column in columns}
        try:
            self.prepare(db)
            rows = db.select(
                self.name, '"repo_id" = ?', (repo_id,), columns=columns, distinct=True
            )
        except sqlite3.Error:
            return result
        for row in rows:
            for column in columns:
                seen = result[_filter_key(column)]
                if row[column] not in seen:
                    seen.append(row[column])
        return result


@dataclass
class RepoCodeVuln:
    """One code vulnerability reported by a scan."""

    id: int = 0
    repo_id: int = 0
    branch_name: str = ""
    check_id: str = ""
    target: str = ""
    vuln_class: str = ""
    owasps: str = ""
    cwes: str = ""
    severity: str = ""
    message: str = ""
    solution: str = ""
    code_content: str = ""
    references: str = ""
    last_scanned: int = 0
    label: str = ""


@dataclass
class RepoCodeVulnSearchOptions:
    """Criteria for listing code vulnerabilities; empty fields match anything."""

    repo_id: int = 0
    vuln_class: str = ""
    target: str = ""
    branch_name: str = ""
    severity: str = ""
    q: str = ""

    def to_conds(self) -> tuple[str, tuple[Any, ...]]:
        """Return an SQL condition and its parameters."""
        return _search_conds(self, "check_id")


_TABLE = _Table("repo_code_vuln", RepoCodeVuln, "code vulnerability")
TABLE = _TABLE.name


def get_repo_code_vuln(db: Database, vuln_id: int) -> RepoCodeVuln | None:
    """Return the code vulnerability with ``vuln_id``, or None."""
    return _TABLE.get(db, vuln_id)


def get_exist_repo_code_vuln(
    db: Database,
    repo_id: int,
    check_id: str,
    target: str,
    code_content: str,
    branch_name: str,
) -> RepoCodeVuln | None:
    """Return the finding with the same identity, or None."""
    return _TABLE.find_one(
        db,
        check_id=check_id,
        repo_id=repo_id,
        target=target,
        branch_name=branch_name,
        code_content=code_content,
    )


def list_repo_code_vulns(
    db: Database, repo_id: int, filters: dict[str, str] | None = None
) -> list[RepoCodeVuln]:
    """List a repository's code vulnerabilities matching the optional filters.

    Recognised keys: ``q`` (substring of the check id, case-insensitive),
    ``location``, ``vuln_class``, ``severity`` and ``branch_name``.
    """
    opts = _options_from_filters(RepoCodeVulnSearchOptions, repo_id, filters)
    return _TABLE.find(db, *opts.to_conds())


def get_list_code_vuln_filter(db: Database, repo_id: int) -> dict[str, list[str]]:
    """Return the distinct values available for each list filter of a repository."""
    return _TABLE.filter_values(db, repo_id, ("target", "vuln_class", "severity", "branch_name"))


def create_or_update_repo_code_vuln(
    db: Database,
    repo_id: int,
    check_id: str,
    target: str,
    vuln_class: str,
    owasps: str,
    cwes: str,
    severity: str,
    message: str,
    solution: str,
    branch_name: str,
    code_content: str,
    references: str,
    last_scanned: int,
) -> RepoCodeVuln:
    """Record a finding, or refresh the scan time of an identical existing one."""
    existing = get_exist_repo_code_vuln(db, repo_id, check_id, target, code_content, branch_name)
    if existing is not None:
        return _TABLE.update(db, existing, last_scanned=last_scanned)
    return _TABLE.insert(
        db,
        RepoCodeVuln(
            repo_id=repo_id,
            branch_name=branch_name,
            check_id=check_id,
            target=target,
            vuln_class=vuln_class,
            owasps=owasps,
            cwes=cwes,
            severity=severity,
            message=message,
            solution=solution,
            code_content=code_content,
            references=references,
            last_scanned=last_scanned,
            label=DETECTED_LABEL,
        ),
    )


def update_code_vuln_label(db: Database, vuln_id: int, label: str) -> None:
    """Set the label of a code vulnerability; raise LookupError if it does not exist."""
    _TABLE.relabel(db, vuln_id, label)