"""Daily vulnerability counts per repository and scan type."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from vulnstore.database import Database

TABLE = "vuln_statistic"
SCAN_TYPES = ("dependency_vuln", "iac_misconfig", "secret_detection")
PERIODS = 12

_COLUMNS = {
    "repo_id": "INTEGER NOT NULL DEFAULT 0",
    "scan_type": "TEXT NOT NULL DEFAULT ''",
    "vuln_quantity": "INTEGER NOT NULL DEFAULT 0",
    "date": "TEXT NOT NULL DEFAULT ''",
}


@dataclass
class VulnStatistic:
    """The number of vulnerabilities a scan type found in a repository on one day."""

    id: int = 0
    repo_id: int = 0
    scan_type: str = ""
    vuln_quantity: int = 0
    date: date = date(1970, 1, 1)

    @classmethod
    def _from_row(cls, row: dict) -> VulnStatistic:
        return cls(
            id=row["id"],
            repo_id=row["repo_id"],
            scan_type=row["scan_type"],
            vuln_quantity=row["vuln_quantity"],
            date=date.fromisoformat(row["date"]),
        )


def _ensure_table(db: Database) -> None:
    db.ensure_table(TABLE, _COLUMNS)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _midnight(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def _sunday_based_weekday(day: date) -> int:
    """Weekday numbered from Sunday as 0."""
    return day.isoweekday() % 7


def _week_monday(day: date) -> date:
    # A Sunday counts towards the Monday that follows it.
    return day + timedelta(days=1 - _sunday_based_weekday(day))


def _stats_since(db: Database, repo_id: int, start: date) -> list[VulnStatistic]:
    _ensure_table(db)
    rows = db.select(TABLE, '"repo_id" = ? AND "date" >= ?', (repo_id, start.isoformat()))
    return [VulnStatistic._from_row(row) for row in rows]


def _empty_result() -> dict[str, list[int]]:
    return {scan_type: [0] * PERIODS for scan_type in SCAN_TYPES}


def _accumulate(result: dict[str, list[int]], stat: VulnStatistic, periods_ago: int) -> None:
    series = result.get(stat.scan_type)
    if series is not None and 0 <= periods_ago < PERIODS:
        series[PERIODS - 1 - periods_ago] += stat.vuln_quantity


def update_vuln_scan_statistic(
    db: Database, repo_id: int, scan_type: str, vuln_quantity: int
) -> VulnStatistic:
    """Set today's (UTC) count for a repository and scan type, creating it if needed."""
    _ensure_table(db)
    today = _now().date()
    row = db.select_one(
        TABLE,
        '"repo_id" = ? AND "scan_type" = ? AND "date" = ?',
        (repo_id, scan_type, today.isoformat()),
    )
    if row is not None:
        stat = VulnStatistic._from_row(row)
        stat.vuln_quantity = vuln_quantity
        db.update(TABLE, stat.id, {"vuln_quantity": vuln_quantity})
        return stat
    stat = VulnStatistic(
        repo_id=repo_id, scan_type=scan_type, vuln_quantity=vuln_quantity, date=today
    )
    stat.id = db.insert(
        TABLE,
        {
            "repo_id": repo_id,
            "scan_type": scan_type,
            "vuln_quantity": vuln_quantity,
            "date": today.isoformat(),
        },
    )
    return stat


def get_vuln_scan_statistics_last_12_days(db: Database, repo_id: int) -> dict[str, list[int]]:
    """Return per-scan-type counts for the last 12 days, oldest first, today last."""
    now = _now()
    stats = _stats_since(db, repo_id, (now - timedelta(days=12)).date())
    result = _empty_result()
    for stat in stats:
        days_ago = int((now - _midnight(stat.date)).total_seconds() / 86400)
        _accumulate(result, stat, days_ago)
    return result


def get_vuln_scan_statistics_last_12_weeks(db: Database, repo_id: int) -> dict[str, list[int]]:
    """Return per-scan-type counts for the last 12 weeks, oldest first, this week last."""
    now = _now()
    start = _week_monday((now - timedelta(days=7 * PERIODS)).date())
    stats = _stats_since(db, repo_id, start)
    result = _empty_result()
    for stat in stats:
        monday = _midnight(_week_monday(stat.date))
        weeks_ago = int((now - monday).total_seconds() / (86400 * 7))
        _accumulate(result, stat, weeks_ago)
    return result


def get_vuln_scan_statistics_last_12_months(
    db: Database, repo_id: int
) -> dict[str, list[int]]:
    """Return per-scan-type counts for the last 12 months, oldest first, this month last."""
    now = _now()
    if now.month == 2 and now.day == 29:
        start = date(now.year - 1, 3, 1)
    else:
        start = date(now.year - 1, now.month, 1)
    stats = _stats_since(db, repo_id, start)
    result = _empty_result()
    for stat in stats:
        months_ago = (now.year - stat.date.year) * 12 + now.month - stat.date.month
        _accumulate(result, stat, months_ago)
    return result