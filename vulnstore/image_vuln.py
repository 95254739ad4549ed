"""Vulnerabilities found in container images referenced by repositories."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from typing import Any

from vulnstore.database import Database

TABLE = "repo_image_vuln"

_TEXT = "TEXT NOT NULL DEFAULT ''"
_INT = "INTEGER NOT NULL DEFAULT 0"

_COLUMNS = {
    "vuln_id": _TEXT,
    "repo_id": _INT,
    "branch_name": _TEXT,
    "image_vuln_title": _TEXT,
    "description": _TEXT,
    "severity": _TEXT,
    "pkg_name": _TEXT,
    "version": _TEXT,
    "type": _TEXT,
    "target": _TEXT,
    "status": _TEXT,
    "created_time": _INT,
    "updated_time": _INT,
    "references": _TEXT,
    "last_scanned": _INT,
}


@dataclass
class RepoImageVuln:
    """One vulnerability reported against a package inside an image."""

    id: int = 0
    vuln_id: str = ""
    repo_id: int = 0
    branch_name: str = ""
    image_vuln_title: str = ""
    description: str = ""
    severity: str = ""
    pkg_name: str = ""
    version: str = ""
    type: str = ""
    target: str = ""
    status: str = ""
    created_time: int = 0
    updated_time: int = 0
    references: str = ""
    last_scanned: int = 0

    def _values(self) -> dict[str, Any]:
        values = asdict(self)
        del values["id"]
        return values


@dataclass
class RepoImageVulnSearchOptions:
    """Criteria for listing image vulnerabilities; empty fields match anything."""

    repo_id: int = 0
    target: str = ""
    severity: str = ""
    branch_name: str = ""
    q: str = ""

    def to_conds(self) -> tuple[str, tuple[Any, ...]]:
        """Return an SQL condition and its parameters."""
        clauses: list[str] = []
        params: list[Any] = []
        for column, value in (
            ("repo_id", self.repo_id),
            ("target", self.target),
            ("severity", self.severity),
            ("branch_name", self.branch_name),
        ):
            if value:
                clauses.append(f'"{column}" = ?')
                params.append(value)
        if self.q:
            clauses.append('LOWER("image_vuln_title") LIKE ?')
            params.append(self.q)
        return " AND ".join(clauses), tuple(params)


def _ensure_table(db: Database) -> None:
    db.ensure_table(TABLE, _COLUMNS)


def get_repo_image_vuln(db: Database, vuln_id: int) -> RepoImageVuln | None:
    """Return the image vulnerability whose row id is ``vuln_id``, or None."""
    _ensure_table(db)
    row = db.select_one(TABLE, '"id" = ?', (vuln_id,))
    return RepoImageVuln(**row) if row else None


def get_exist_repo_image_vuln(
    db: Database,
    repo_id: int,
    vuln_id: str,
    image_vuln_title: str,
    version: str,
    pkg_name: str,
    target: str,
    branch_name: str,
) -> RepoImageVuln | None:
    """Return the image vulnerability with the same identity, or None."""
    _ensure_table(db)
    row = db.select_one(
        TABLE,
        '"repo_id" = ? AND "target" = ? AND "vuln_id" = ? AND "image_vuln_title" = ? '
        'AND "version" = ? AND "pkg_name" = ? AND "branch_name" = ?',
        (repo_id, target, vuln_id, image_vuln_title, version, pkg_name, branch_name),
    )
    return RepoImageVuln(**row) if row else None


def create_or_update_repo_image_vuln(
    db: Database,
    repo_id: int,
    vuln_id: str,
    image_vuln_title: str,
    target: str,
    severity: str,
    description: str,
    version: str,
    status: str,
    references: str,
    pkg_name: str,
    image_type: str,
    branch_name: str,
    created_time: int,
    updated_time: int,
    last_scanned: int,
) -> RepoImageVuln:
    """Record an image vulnerability, or refresh the times of an identical existing one."""
    existing = get_exist_repo_image_vuln(
        db, repo_id, vuln_id, image_vuln_title, version, pkg_name, target, branch_name
    )
    if existing is None:
        vuln = RepoImageVuln(
            vuln_id=vuln_id,
            repo_id=repo_id,
            branch_name=branch_name,
            image_vuln_title=image_vuln_title,
            description=description,
            severity=severity,
            pkg_name=pkg_name,
            version=version,
            type=image_type,
            target=target,
            status=status,
            created_time=created_time,
            updated_time=updated_time,
            references=references,
            last_scanned=last_scanned,
        )
        vuln.id = db.insert(TABLE, vuln._values())
        return vuln
    existing.updated_time = updated_time
    existing.last_scanned = last_scanned
    db.update(
        TABLE, existing.id, {"updated_time": updated_time, "last_scanned": last_scanned}
    )
    return existing


def list_repo_image_vulns(
    db: Database, repo_id: int, filters: dict[str, str] | None = None
) -> list[RepoImageVuln]:
    """List a repository's image vulnerabilities matching the optional filters.

    Recognised keys: ``q`` (substring of the title, case-insensitive),
    ``location``, ``severity`` and ``branch_name``.
    """
    _ensure_table(db)
    opts = RepoImageVulnSearchOptions(repo_id=repo_id)
    if filters:
        if filters.get("q"):
            opts.q = f"%{filters['q'].lower()}%"
        opts.target = filters.get("location") or ""
        opts.severity = filters.get("severity") or ""
        opts.branch_name = filters.get("branch_name") or ""
    where, params = opts.to_conds()
    return [RepoImageVuln(**row) for row in db.select(TABLE, where, params)]


def get_list_image_vuln_filter(db: Database, repo_id: int) -> dict[str, list[str]]:
    """Return the distinct values available for each list filter of a repository."""
    result: dict[str, list[str]] = {"location": [], "severity": [], "branch_name": []}
    try:
        _ensure_table(db)
        rows = db.select(
            TABLE,
            '"repo_id" = ?',
            (repo_id,),
            columns=("target", "severity", "branch_name"),
            distinct=True,
        )
    except sqlite3.Error:
        return result
    for row in rows:
        for key, column in (
            ("location", "target"),
            ("severity", "severity"),
            ("branch_name", "branch_name"),
        ):
            if row[column] not in result[key]:
                result[key].append(row[column])
    return result


def update_image_vuln(
    db: Database,
    vuln_id: int,
    repo_id: int,
    status: str = "",
    description: str = "",
    title: str = "",
    severity: str = "",
) -> RepoImageVuln | None:
    """Overwrite the non-empty given fields of an image vulnerability.

    Returns the updated record, or None when no record has ``vuln_id``.
    """
    existing = get_repo_image_vuln(db, vuln_id)
    if existing is None:
        return None
    changes = {
        "severity": severity,
        "status": status,
        "description": description,
        "image_vuln_title": title,
    }
    changes = {name: value for name, value in changes.items() if value}
    for name, value in changes.items():
        setattr(existing, name, value)
    db.update(TABLE, vuln_id, changes)
    return existing