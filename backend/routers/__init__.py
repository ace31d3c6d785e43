"""API Routers package."""

from . import fleet, records, expenses, files, audit, users, preferences

__all__ = ["fleet", "records", "expenses", "files", "audit", "users", "preferences"]
