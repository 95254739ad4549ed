import pytest

from vulnstore.database import Database
from vulnstore.image_vuln import (
    RepoImageVulnSearchOptions,
    create_or_update_repo_image_vuln,
    get_exist_repo_image_vuln,
    get_list_image_vuln_filter,
    get_repo_image_vuln,
    list_repo_image_vulns,
    update_image_vuln,
)

IDENTITY = ("CVE-1", "OpenSSL Overflow", "1.0", "openssl", "app:latest")


@pytest.fixture(name="db")
def _open_db():
    with Database() as database:
        yield database


def _add(db, repo_id=1, vuln_id="CVE-1", title="OpenSSL Overflow", target="app:latest",
         severity="HIGH", branch_name="main"):
    return create_or_update_repo_image_vuln(
        db, repo_id, vuln_id, title, target, severity, "desc", "1.0", "fixed",
        "refs", "openssl", "debian", branch_name, 100, 100, 100,
    )


@pytest.fixture
def seeded(db):
    records = [
        _add(db, vuln_id="CVE-1", title="OpenSSL Overflow", severity="HIGH"),
        _add(db, vuln_id="CVE-2", title="Zlib Bug", severity="LOW", target="db:1"),
        _add(db, vuln_id="CVE-3", title="Curl issue", branch_name="dev"),
    ]
    _add(db, repo_id=2, vuln_id="CVE-4")
    return records


def test_create_and_get_round_trip(db):
    created = _add(db)
    fetched = get_repo_image_vuln(db, created.id)
    assert fetched == created
    assert (fetched.type, fetched.image_vuln_title) == ("debian", "OpenSSL Overflow")


def test_create_existing_refreshes_times_only(db):
    first = _add(db)
    second = create_or_update_repo_image_vuln(
        db, 1, "CVE-1", "OpenSSL Overflow", "app:latest", "LOW", "other", "1.0",
        "open", "other refs", "openssl", "alpine", "main", 500, 600, 700,
    )
    assert second.id == first.id
    stored = get_repo_image_vuln(db, first.id)
    assert (stored.updated_time, stored.last_scanned, stored.created_time) == (600, 700, 100)
    assert stored.severity == "HIGH"
    assert len(list_repo_image_vulns(db, 1)) == 1


@pytest.mark.parametrize("branch_name, found", [("main", True), ("dev", False)])
def test_get_exist_matches_identity(db, branch_name, found):
    created = _add(db)
    result = get_exist_repo_image_vuln(db, 1, *IDENTITY, branch_name)
    assert result == (created if found else None)


@pytest.mark.parametrize(
    "filters, expected",
    [
        ({}, [0, 1, 2]),
        ({"q": "OPENSSL"}, [0]),
        ({"location": "db:1"}, [1]),
        ({"severity": "HIGH"}, [0, 2]),
        ({"branch_name": "dev"}, [2]),
        ({"q": "", "severity": ""}, [0, 1, 2]),
    ],
)
def test_list_filters(db, seeded, filters, expected):
    assert list_repo_image_vulns(db, 1, filters) == [seeded[i] for i in expected]


def test_search_options_conditions():
    where, params = RepoImageVulnSearchOptions(repo_id=3, severity="HIGH", q="%x%").to_conds()
    assert params == (3, "HIGH", "%x%")
    assert "image_vuln_title" in where
    assert RepoImageVulnSearchOptions().to_conds() == ("", ())


def test_filter_values_are_distinct(db, seeded):
    result = get_list_image_vuln_filter(db, 1)
    assert sorted(result["location"]) == ["app:latest", "db:1"]
    assert sorted(result["severity"]) == ["HIGH", "LOW"]
    assert sorted(result["branch_name"]) == ["dev", "main"]


def test_filter_on_empty_repository(db):
    assert get_list_image_vuln_filter(db, 1) == {
        "location": [],
        "severity": [],
        "branch_name": [],
    }


def test_update_image_vuln_changes_non_empty_fields(db):
    created = _add(db)
    updated = update_image_vuln(db, created.id, 1, status="", description="new", title="T",
                                severity="")
    assert (updated.description, updated.image_vuln_title) == ("new", "T")
    stored = get_repo_image_vuln(db, created.id)
    assert stored == updated
    assert (stored.status, stored.severity) == (created.status, created.severity)


@pytest.mark.parametrize(
    "lookup",
    [
        lambda db: get_repo_image_vuln(db, 42),
        lambda db: update_image_vuln(db, 99, 1, "open", "d", "t", "HIGH"),
    ],
)
def test_missing_record_gives_none(db, lookup):
    assert lookup(db) is None