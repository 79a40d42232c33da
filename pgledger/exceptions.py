"""
Error taxonomy for pgledger.

Every failure of the store surfaces as a StoreError subclass carrying the offending
statement and the server's diagnostic. None of them is retried: a write failure stops
ingestion of further blocks.
"""

from typing import Optional

from pgledger.config.settings import settings
from pgledger.core.utils import sanitize_for_log


class StoreError(Exception):
    """Base class for every PostgreSQL store failure"""

    def __init__(self, message: str, statement: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.statement = statement
        self.detail = detail

    def __str__(self) -> str:
        parts = [self.message]
        if self.statement:
            parts.append(f"statement: {sanitize_for_log(self.statement, settings.LOG_STATEMENT_LIMIT)}")
        if self.detail:
            parts.append(f"detail: {sanitize_for_log(self.detail.strip(), settings.LOG_STATEMENT_LIMIT)}")
        return ", ".join(parts)


class DatabaseConnectionError(StoreError):
    """Cannot reach or authenticate to the store"""


class SchemaError(StoreError):
    """DDL, database creation or drop failed"""


class VersionError(StoreError):
    """Stored schema version is missing or older than the running software"""


class SyncError(StoreError):
    """Sync checkpoint is missing or disagrees with the latest stored block"""


class ExecutionError(StoreError):
    """A statement, prepared statement, COPY or statement-log flush failed"""
