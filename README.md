# vulnstore

vulnstore keeps the results of repository security scans in an SQLite database and reads them back. It stores five kinds of record:

- **Code vulnerabilities**: static analysis findings (`vulnstore.code_vuln`, record class `RepoCodeVuln`).
- **Dependencies**: the packages a repository uses (`vulnstore.dependency_list`, `RepoDependency`).
- **Dependency vulnerabilities**: known vulnerabilities in those packages (`vulnstore.dependency_vuln`, `RepoDependencyVuln`).
- **IaC misconfigurations**: problems in infrastructure-as-code files (`vulnstore.iac_misconfiguration`, `RepoIacMisconfiguration`).
- **Image vulnerabilities**: vulnerabilities in container images (`vulnstore.image_vuln`, `RepoImageVuln`).

It also keeps daily counts of findings per scan type (`vulnstore.vuln_statistic`, `VulnStatistic`). You can read these counts back as twelve-slot series covering the last 12 days, weeks or months.

The package uses only the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The database

`vulnstore.database.Database` wraps one SQLite connection. Pass it a file path, or leave the path out (`":memory:"`) for a throwaway store. You can use it as a context manager, and leaving the `with` block closes the connection. Each record module creates its table on first use. Every table has an auto-incremented `id`, and every write is committed at once.

`Database` also has general methods that the record modules use: `ensure_table`, `insert`, `select`, `select_one`, `update`, `delete` and `count`. Table and column names must be plain identifiers, or a `ValueError` is raised.

## Usage

```python
from vulnstore.database import Database
from vulnstore.code_vuln import (
    create_or_update_repo_code_vuln,
    list_repo_code_vulns,
    get_list_code_vuln_filter,
    update_code_vuln_label,
)

with Database(":memory:") as db:
    vuln = create_or_update_repo_code_vuln(
        db, 1, "python.sqli", "app/db.py", "injection", "A03", "CWE-89",
        "HIGH", "SQL built from user input", "Use bound parameters",
        "main", "cursor.execute(q % x)", "", 1700000000,
    )
    print(vuln.label)  # "Detected"

    hits = list_repo_code_vulns(db, 1, {"q": "SQLI", "severity": "HIGH"})
    choices = get_list_code_vuln_filter(db, 1)
    # {"location": [...], "vuln_class": [...], "severity": [...], "branch_name": [...]}
    update_code_vuln_label(db, vuln.id, "Fixed")
```

### Creating or refreshing records

The `create_or_update_*` functions first look for a record with the same identifying fields:

| Function | Matched on |
|---|---|
| `create_or_update_repo_code_vuln` | repo, check id, target, code content, branch |
| `create_or_update_dependency` | repo, target, package name, version |
| `create_or_update_dependency_vuln` | repo, vulnerability id, target, package name, installed version, branch |
| `create_or_update_repo_iac_misconfiguration` | vulnerability id, target, code content, branch (not the repo) |
| `create_or_update_repo_image_vuln` | repo, vulnerability id, title, version, package name, target, branch |

If a match exists, only its `last_scanned` is changed. For image vulnerabilities, `updated_time` is changed as well. The function returns the existing record in that case. Otherwise it inserts a new record and returns it with its new `id`. New code vulnerabilities get the label `"Detected"` (`DETECTED_LABEL`). Dependency vulnerabilities take their label from the caller.

The lookups are also available on their own: `get_exist_repo_code_vuln`, `get_existing_dependency`, `get_existing_dependency_vuln`, `get_repo_iac_misconfiguration_by_vuln_id_and_target` and `get_exist_repo_image_vuln`. Each returns the record, or `None` when there is no match.

### Fetching by id

`get_repo_code_vuln`, `get_repo_dependency`, `get_dependency_vuln`, `get_repo_iac_misconfiguration` and `get_repo_image_vuln` return the record with the given row id, or `None`.

### Listing and filtering

These functions take a repository id and an optional dict of filters, and return matching records in id order:

- `list_repo_code_vulns`: keys `q` (searches the check id), `location`, `vuln_class`, `severity` and `branch_name`.
- `get_dependency_list`: keys `q` (searches the package name), `location` and `licenses`.
- `list_repo_iac_misconfigurations`: keys `q` (searches the title), `location`, `type`, `severity` and `branch_name`.
- `list_repo_image_vulns`: keys `q` (searches the title), `location`, `severity` and `branch_name`.

`q` is a case-insensitive substring search. `location` matches the target exactly, and so do the other keys on their own columns. Empty values are ignored. `list_dependency_vulns(db, repo_id)` lists every dependency vulnerability of a repository and takes no filters.

The search-option dataclasses (`RepoCodeVulnSearchOptions`, `RepoDependencySearchOptions`, `RepoIacMisconfigurationSearchOptions`, `RepoImageVulnSearchOptions`) have a `to_conds()` method. It returns the SQL condition and its parameters.

For building filter menus, `get_list_code_vuln_filter`, `get_list_dependency_filter`, `get_list_iac_filter` and `get_list_image_vuln_filter` return each filter key with the distinct values present for the repository.

### Editing and removing

- `update_code_vuln_label` and `update_dependency_vuln_label` set a record's label. They raise `LookupError` if the id does not exist.
- `update_dependency_vuln` overwrites a record's severity, title, description, references and label. `update_image_vuln` overwrites its status, description, title and severity. Both change only the fields given as non-empty strings, and return the updated record, or `None` if the id does not exist.
- `delete_dependency_by_last_scanned(db, repo_id, last_scanned)` removes a repository's dependencies whose `last_scanned` differs from the given scan and returns how many were removed.

### Statistics

```python
from vulnstore.vuln_statistic import (
    update_vuln_scan_statistic,
    get_vuln_scan_statistics_last_12_days,
)

update_vuln_scan_statistic(db, 1, "dependency_vuln", 7)
series = get_vuln_scan_statistics_last_12_days(db, 1)
print(series["dependency_vuln"][-1])  # today's count
```

`update_vuln_scan_statistic` sets today's count (UTC date) for a repository and scan type. It replaces the count if one was already stored today, and returns the `VulnStatistic`.

`get_vuln_scan_statistics_last_12_days`, `..._last_12_weeks` and `..._last_12_months` return a dict keyed by `"dependency_vuln"`, `"iac_misconfig"` and `"secret_detection"` (`SCAN_TYPES`). Each value is a list of twelve totals, oldest first, with the current day, week or month last. Weeks start on Monday, and a Sunday counts towards the following week. Counts stored under other scan types are not included.

## What it does not do

vulnstore only stores and queries findings. It does not run scanners, parse scanner output, or offer a command line or web interface. It has no record of repositories themselves. So it cannot, for example, count the findings on a repository's default branch; callers must pass branch names explicitly.