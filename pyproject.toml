[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vulnstore"
version = "0.1.0"
description = "SQLite-backed storage for repository security scan results: code, dependency, IaC and image findings plus scan statistics"
requires-python = ">=3.10"
dependencies = []
keywords = ["security", "vulnerability", "sqlite", "scanning", "dependencies", "iac"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest", "freezegun"]

[tool.hatch.build.targets.wheel]
packages = ["vulnstore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
