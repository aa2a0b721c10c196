"""Infra layer utilities (SQLite connection management)."""

from .storage import ASSOCIATION_TABLES, SQLiteManager

__all__ = ["ASSOCIATION_TABLES", "SQLiteManager"]
