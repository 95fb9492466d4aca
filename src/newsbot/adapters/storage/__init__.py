"""Persistence adapters."""

from newsbot.adapters.storage.sqlite_store import SQLiteItemStore

__all__ = ["SQLiteItemStore"]
