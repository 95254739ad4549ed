"""Known vulnerabilities affecting a repository's dependencies."""

from __future__ import annotations

from dataclasses import dataclass

from vulnstore.code_vuln import _Table
from vulnstore.database import Database


@dataclass
class RepoDependencyVuln:
    """One vulnerability reported against an installed dependency."""

    id: int = 0
    vuln_id: str = ""
    repo_id: int = 0
    branch_name: str = ""
    type: str = ""
    target: str = ""
    pkg_name: str = ""
    installed_version: str = ""
    fixed_version: str = ""
    status: str = ""
    severity: str = ""
    cwe_ids: str = ""
    cvss_score: float = 0.0
    title: str = ""
    description: str = ""
    published_at: str = ""
    last_modified_at: str = ""
    references: str = ""
    label: str = ""
    last_scanned: str = ""


_TABLE = _Table("repo_dependency_vuln", RepoDependencyVuln, "dependency vulnerability")
TABLE = _TABLE.name


def get_dependency_vuln(db: Database, vuln_id: int) -> RepoDependencyVuln | None:
    """Return the dependency vulnerability whose row id is ``vuln_id``, or None."""
    return _TABLE.get(db, vuln_id)


def get_existing_dependency_vuln(
    db: Database,
    repo_id: int,
    vuln_id: str,
    target: str,
    pkg_name: str,
    installed_version: str,
    branch_name: str,
) -> RepoDependencyVuln | None:
    """Return the vulnerability record with the same identity, or None."""
    return _TABLE.find_one(
        db,
        repo_id=repo_id,
        vuln_id=vuln_id,
        installed_version=installed_version,
        target=target,
        pkg_name=pkg_name,
        branch_name=branch_name,
    )


def list_dependency_vulns(db: Database, repo_id: int) -> list[RepoDependencyVuln]:
    """List every dependency vulnerability recorded for a repository."""
    return _TABLE.find(db, '"repo_id" = ?', (repo_id,))


def update_dependency_vuln_label(db: Database, vuln_id: int, label: str) -> None:
    """Set the label of a dependency vulnerability; raise LookupError if it does not exist."""
    _TABLE.relabel(db, vuln_id, label)


def update_dependency_vuln(
    db: Database,
    vuln_id: int,
    repo_id: int,
    severity: str = "",
    title: str = "",
    description: str = "",
    references: str = "",
    label: str = "",
) -> RepoDependencyVuln | None:
    """Overwrite the non-empty given fields of a vulnerability.

    Returns the updated record, or None when no record has ``vuln_id``.
    """
    existing = get_dependency_vuln(db, vuln_id)
    if existing is None:
        return None
    changes = {
        "severity": severity,
        "title": title,
        "description": description,
        "references": references,
        "label": label,
    }
    return _TABLE.update(db, existing, **{name: value for name, value in changes.items() if value})


def create_or_update_dependency_vuln(
    db: Database,
    repo_id: int,
    vuln_id: str,
    target: str,
    dependency_type: str,
    pkg_name: str,
    installed_version: str,
    fixed_version: str,
    status: str,
    severity: str,
    cwe_ids: str,
    title: str,
    description: str,
    published_at: str,
    last_modified_at: str,
    references: str,
    label: str,
    last_scanned: str,
    branch_name: str,
    cvss_score: float,
) -> RepoDependencyVuln:
    """Record a vulnerability, or refresh the scan time of an identical existing one."""
    existing = get_existing_dependency_vuln(
        db, repo_id, vuln_id, target, pkg_name, installed_version, branch_name
    )
    if existing is not None:
        return _TABLE.update(db, existing, last_scanned=last_scanned)
    return _TABLE.insert(
        db,
        RepoDependencyVuln(
            vuln_id=vuln_id,
            repo_id=repo_id,
            branch_name=branch_name,
            type=dependency_type,
            target=target,
            pkg_name=pkg_name,
            installed_version=installed_version,
            fixed_version=fixed_version,
            status=status,
            severity=severity,
            cwe_ids=cwe_ids,
            cvss_score=cvss_score,
            title=title,
            description=description,
            published_at=published_at,
            last_modified_at=last_modified_at,
            references=references,
            label=label,
            last_scanned=last_scanned,
        ),
    )