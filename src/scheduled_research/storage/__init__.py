"""Persistence for jobs and runs."""
from .sqlite_store import SQLiteJobStore

__all__ = ["SQLiteJobStore"]
