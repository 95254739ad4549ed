"""Dependencies discovered in repositories by scans."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from vulnstore.code_vuln import _options_from_filters, _search_conds, _Table
from vulnstore.database import Database


@dataclass
class RepoDependency:
    """One package dependency found in a repository."""

    id: int = 0
    repo_id: int = 0
    type: str = ""
    target: str = ""
    pkg_name: str = ""
    version: str = ""
    licenses: str = ""
    last_scanned: int = 0


@dataclass
class RepoDependencySearchOptions:
    """Criteria for listing dependencies; empty fields match anything."""

    repo_id: int = 0
    target: str = ""
    licenses: str = ""
    q: str = ""

    def to_conds(self) -> tuple[str, tuple[Any, ...]]:
        """Return an SQL condition and its parameters."""
        return _search_conds(self, "pkg_name")


_TABLE = _Table("repo_dependency", RepoDependency, "dependency")
TABLE = _TABLE.name


def get_repo_dependency(db: Database, dependency_id: int) -> RepoDependency | None:
    """Return the dependency with ``dependency_id``, or None."""
    return _TABLE.get(db, dependency_id)


def get_existing_dependency(
    db: Database, repo_id: int, target: str, pkg_name: str, version: str
) -> RepoDependency | None:
    """Return the dependency with the same identity, or None."""
    return _TABLE.find_one(
        db, repo_id=repo_id, version=version, target=target, pkg_name=pkg_name
    )


def get_dependency_list(
    db: Database, repo_id: int, filters: dict[str, str] | None = None
) -> list[RepoDependency]:
    """List a repository's dependencies matching the optional filters.

    Recognised keys: ``q`` (substring of the package name, case-insensitive),
    ``location`` and ``licenses``.
    """
    opts = _options_from_filters(RepoDependencySearchOptions, repo_id, filters)
    return _TABLE.find(db, *opts.to_conds())


def get_list_dependency_filter(db: Database, repo_id: int) -> dict[str, list[str]]:
    """Return the distinct locations and licences of a repository's dependencies."""
    return _TABLE.filter_values(db, repo_id, ("target", "licenses"))


def create_or_update_dependency(
    db: Database,
    repo_id: int,
    target: str,
    dependency_type: str,
    pkg_name: str,
    version: str,
    licenses: str,
    last_scanned: int,
) -> RepoDependency:
    """Record a dependency, or refresh the scan time of an identical existing one."""
    existing = get_existing_dependency(db, repo_id, target, pkg_name, version)
    if existing is not None:
        return _TABLE.update(db, existing, last_scanned=last_scanned)
    return _TABLE.insert(
        db,
        RepoDependency(
            repo_id=repo_id,
            type=dependency_type,
            target=target,
            pkg_name=pkg_name,
            version=version,
            licenses=licenses,
            last_scanned=last_scanned,
        ),
    )


def delete_dependency_by_last_scanned(db: Database, repo_id: int, last_scanned: int) -> int:
    """Delete a repository's dependencies not seen in the scan at ``last_scanned``.

    Returns the number of dependencies removed.
    """
    _TABLE.prepare(db)
    return db.delete(TABLE, '"repo_id" = ? AND "last_scanned" != ?', (repo_id, last_scanned))