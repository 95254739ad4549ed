import datetime

import pytest
from freezegun import freeze_time

from vulnstore.database import Database
from vulnstore.vuln_statistic import (
    get_vuln_scan_statistics_last_12_days,
    get_vuln_scan_statistics_last_12_months,
    get_vuln_scan_statistics_last_12_weeks,
    update_vuln_scan_statistic,
)

NOW = "2024-05-15 10:00:00"  # a Wednesday


@pytest.fixture
def db():
    with Database() as database:
        yield database


def _record(db, when, scan_type, quantity, repo_id=1):
    with freeze_time(when):
        return update_vuln_scan_statistic(db, repo_id, scan_type, quantity)


def test_update_records_today(db):
    stat = _record(db, "2024-05-10 23:30:00", "dependency_vuln", 4)
    assert stat.date == datetime.date(2024, 5, 10)
    assert stat.vuln_quantity == 4
    assert stat.repo_id == 1


def test_update_same_day_overwrites(db):
    first = _record(db, "2024-05-15 01:00:00", "iac_misconfig", 3)
    second = _record(db, "2024-05-15 20:00:00", "iac_misconfig", 9)
    assert second.id == first.id
    with freeze_time(NOW):
        result = get_vuln_scan_statistics_last_12_days(db, 1)
    assert result["iac_misconfig"][-1] == 9
    assert sum(result["iac_misconfig"]) == 9


def test_days_layout(db):
    _record(db, "2024-05-15 08:00:00", "dependency_vuln", 2)
    _record(db, "2024-05-10 08:00:00", "dependency_vuln", 3)
    _record(db, "2024-05-04 08:00:00", "secret_detection", 5)
    _record(db, "2024-05-01 08:00:00", "dependency_vuln", 7)
    _record(db, "2024-05-14 08:00:00", "dependency_vuln", 6, repo_id=2)
    with freeze_time(NOW):
        result = get_vuln_scan_statistics_last_12_days(db, 1)
    assert set(result) == {"dependency_vuln", "iac_misconfig", "secret_detection"}
    assert all(len(series) == 12 for series in result.values())
    assert result["dependency_vuln"][11] == 2
    assert result["dependency_vuln"][6] == 3
    assert result["secret_detection"][0] == 5
    assert sum(result["dependency_vuln"]) == 5
    assert result["iac_misconfig"] == [0] * 12


def test_unknown_scan_type_is_ignored(db):
    _record(db, "2024-05-15 08:00:00", "other_scan", 8)
    with freeze_time(NOW):
        result = get_vuln_scan_statistics_last_12_days(db, 1)
    assert "other_scan" not in result
    assert all(sum(series) == 0 for series in result.values())


def test_weeks_layout(db):
    _record(db, "2024-05-13 08:00:00", "dependency_vuln", 2)
    _record(db, "2024-05-12 08:00:00", "dependency_vuln", 3)
    _record(db, "2024-05-08 08:00:00", "dependency_vuln", 5)
    _record(db, "2024-01-01 08:00:00", "dependency_vuln", 7)
    with freeze_time(NOW):
        result = get_vuln_scan_statistics_last_12_weeks(db, 1)
    series = result["dependency_vuln"]
    assert len(series) == 12
    # Sunday the 12th counts with Monday the 13th.
    assert series[11] == 2 + 3
    assert series[10] == 5
    assert sum(series) == 10


def test_months_layout(db):
    _record(db, "2024-05-01 08:00:00", "iac_misconfig", 2)
    _record(db, "2024-04-20 08:00:00", "iac_misconfig", 3)
    _record(db, "2024-04-02 08:00:00", "iac_misconfig", 4)
    _record(db, "2023-06-10 08:00:00", "iac_misconfig", 5)
    _record(db, "2023-05-10 08:00:00", "iac_misconfig", 6)
    with freeze_time(NOW):
        result = get_vuln_scan_statistics_last_12_months(db, 1)
    series = result["iac_misconfig"]
    assert series[11] == 2
    assert series[10] == 3 + 4
    assert series[0] == 5
    assert sum(series) == 14


def test_empty_database_gives_zero_series(db):
    with freeze_time(NOW):
        for fetch in (
            get_vuln_scan_statistics_last_12_days,
            get_vuln_scan_statistics_last_12_weeks,
            get_vuln_scan_statistics_last_12_months,
        ):
            result = fetch(db, 1)
            assert result == {
                "dependency_vuln": [0] * 12,
                "iac_misconfig": [0] * 12,
                "secret_detection": [0] * 12,
            }