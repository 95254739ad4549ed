"""SQLite-backed storage for repository security scan findings and daily scan statistics."""

__version__ = "0.1.0"