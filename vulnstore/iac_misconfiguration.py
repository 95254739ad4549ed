"""Infrastructure-as-code misconfigurations found by scans."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from vulnstore.code_vuln import _options_from_filters, _search_conds, _Table
from vulnstore.database import Database


@dataclass
class RepoIacMisconfiguration:
    """One misconfiguration found in an infrastructure-as-code file."""

    id: int = 0
    vuln_id: str = ""
    avd_id: str = ""
    repo_id: int = 0
    branch_name: str = ""
    type: str = ""
    target: str = ""
    title: str = ""
    description: str = ""
    message: str = ""
    resolution: str = ""
    severity: str = ""
    code_content: str = ""
    references: str = ""
    last_scanned: int = 0


@dataclass
class RepoIacMisconfigurationSearchOptions:
    """Criteria for listing misconfigurations; empty fields match anything."""

    repo_id: int = 0
    type: str = ""
    target: str = ""
    severity: str = ""
    branch_name: str = ""
    q: str = ""

    def to_conds(self) -> tuple[str, tuple[Any, ...]]:
        """Return an SQL condition and its parameters."""
        return _search_conds(self, "title")


_TABLE = _Table("repo_iac_misconfiguration", RepoIacMisconfiguration, "misconfiguration")
TABLE = _TABLE.name


def get_repo_iac_misconfiguration(
    db: Database, misconfig_id: int
) -> RepoIacMisconfiguration | None:
    """Return the misconfiguration with ``misconfig_id``, or None."""
    return _TABLE.get(db, misconfig_id)


def get_repo_iac_misconfiguration_by_vuln_id_and_target(
    db: Database, vuln_id: str, target: str, code_content: str, branch_name: str
) -> RepoIacMisconfiguration | None:
    """Return the misconfiguration with this check, file, snippet and branch, or None.

    The lookup does not consider the repository.
    """
    return _TABLE.find_one(
        db, vuln_id=vuln_id, target=target, code_content=code_content, branch_name=branch_name
    )


def list_repo_iac_misconfigurations(
    db: Database, repo_id: int, filters: dict[str, str] | None = None
) -> list[RepoIacMisconfiguration]:
    """List a repository's misconfigurations matching the optional filters.

    Recognised keys: ``q`` (substring of the title, case-insensitive),
    ``location``, ``type``, ``severity`` and ``branch_name``.
    """
    opts = _options_from_filters(RepoIacMisconfigurationSearchOptions, repo_id, filters)
    return _TABLE.find(db, *opts.to_conds())


def get_list_iac_filter(db: Database, repo_id: int) -> dict[str, list[str]]:
    """Return the distinct values available for each list filter of a repository."""
    return _TABLE.filter_values(db, repo_id, ("target", "type", "severity", "branch_name"))


def create_or_update_repo_iac_misconfiguration(
    db: Database,
    repo_id: int,
    vuln_id: str,
    avd_id: str,
    misconfig_type: str,
    target: str,
    title: str,
    description: str,
    message: str,
    resolution: str,
    severity: str,
    code_content: str,
    references: str,
    branch_name: str,
    last_scanned: int,
) -> RepoIacMisconfiguration:
    """Record a misconfiguration, or refresh the scan time of an identical existing one."""
    existing = get_repo_iac_misconfiguration_by_vuln_id_and_target(
        db, vuln_id, target, code_content, branch_name
    )
    if existing is not None:
        return _TABLE.update(db, existing, last_scanned=last_scanned)
    return _TABLE.insert(
        db,
        RepoIacMisconfiguration(
            vuln_id=vuln_id,
            avd_id=avd_id,
            repo_id=repo_id,
            branch_name=branch_name,
            type=misconfig_type,
            target=target,
            title=title,
            description=description,
            message=message,
            resolution=resolution,
            severity=severity,
            code_content=code_content,
            references=references,
            last_scanned=last_scanned,
        ),
    )