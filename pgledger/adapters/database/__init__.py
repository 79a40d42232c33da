"""
Database adapters for ledger persistence.

This module provides the database integration adapter:
- PostgresAdapter: PostgreSQL session with ad-hoc, prepared and COPY execution
"""

from .postgres_adapter import PostgresAdapter

__all__ = ['PostgresAdapter']
