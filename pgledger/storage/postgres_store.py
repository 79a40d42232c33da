"""
PostgreSQL ledger store.

PostgresStore sits on top of a PostgresAdapter session and provides:
- database and table provisioning (create / drop / exists)
- the stats map and the schema version gate
- point lookups used for bookkeeping (latest block, block existence)
- the two commit paths: COPY for the bulk append buffer and one transactional
  execution for the statement log
"""

import logging
import re
from typing import Optional

from pgledger.adapters.database.postgres_adapter import PostgresAdapter
from pgledger.exceptions import SchemaError, VersionError
from pgledger.storage.copy_context import CopyContext
from pgledger.storage.schema import SEQUENCES, TABLE_DEFINITIONS, TABLES
from pgledger.storage.statements import PREPARED_STATEMENTS
from pgledger.storage.trx_context import TrxContext
from pgledger.units.version import SCHEMA_VERSION, is_schema_compatible

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]{0,62}")

# Keys of the stats map
VERSION_KEY = "version"
LAST_SYNC_BLOCK_KEY = "last_sync_block_id"


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.fullmatch(name or ""):
        raise ValueError(f"Invalid identifier: {name!r}")
    return name


class PostgresStore:
    """Ledger tables, stats and commit paths over one PostgreSQL session"""

    def __init__(self, adapter: PostgresAdapter, schema_version: str = SCHEMA_VERSION):
        """
        Initialize the store.

        Args:
            adapter: Connected PostgreSQL adapter
            schema_version: Version string written by prepare_stats and required by check_version
        """
        self.adapter = adapter
        self.schema_version = schema_version

    # Database provisioning

    def create_db(self, db: str) -> None:
        """Create a database; the adapter must be connected to another database."""
        sql = (f'CREATE DATABASE "{_check_identifier(db)}" '
               "WITH ENCODING = 'UTF8' LC_COLLATE = 'C' LC_CTYPE = 'C' "
               "TEMPLATE = template0 CONNECTION LIMIT = -1;")
        self.adapter.execute(sql, error_type=SchemaError, message="Create database failed")
        logger.info(f"Created database {db}")

    def drop_db(self, db: str) -> None:
        sql = f'DROP DATABASE "{_check_identifier(db)}";'
        self.adapter.execute(sql, error_type=SchemaError, message="Drop database failed")
        logger.info(f"Dropped database {db}")

    def exists_db(self, db: str) -> bool:
        rows = self.adapter.query(
            "SELECT EXISTS(SELECT datname FROM pg_catalog.pg_database WHERE datname = %s);",
            (db,),
            message="Check if database existed failed"
        )
        return bool(rows and rows[0][0])

    # Tables and sequences

    def prepare_tables(self) -> None:
        """Create every table, index and sequence that does not exist yet."""
        for name, ddl in TABLE_DEFINITIONS:
            self.adapter.execute(ddl, error_type=SchemaError, message=f"Create table {name} failed")
        logger.info("PostgreSQL tables created successfully")

    def prepare_statements(self) -> None:
        """Register the prepared statements on the session; repeated calls are no-ops."""
        self.adapter.prepare_all(PREPARED_STATEMENTS)

    def drop_table(self, table: str) -> None:
        self.adapter.execute(f"DROP TABLE IF EXISTS {_check_identifier(table)};",
                             error_type=SchemaError, message="Drop table failed")

    def drop_sequence(self, seq: str) -> None:
        self.adapter.execute(f"DROP SEQUENCE IF EXISTS {_check_identifier(seq)};",
                             error_type=SchemaError, message="Drop sequence failed")

    def drop_all_tables(self) -> None:
        # Plans that reference dropped tables must not outlive them
        self.adapter.deallocate_all()
        for table in TABLES:
            self.drop_table(table)
        logger.info("Dropped all tables")

    def drop_all_sequences(self) -> None:
        for seq in SEQUENCES:
            self.drop_sequence(seq)
        logger.info("Dropped all sequences")

    def table_exists(self, table: str) -> bool:
        """Return True when the table is present in the public schema."""
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        rows = self.adapter.query("SELECT to_regclass(%s) IS NOT NULL;", (f"public.{table}",),
                                  message=f"Check if table {table} exists failed")
        return bool(rows and rows[0][0])

    def is_table_empty(self, table: str) -> bool:
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        rows = self.adapter.query(f"SELECT 1 FROM {table} LIMIT 1;",
                                  message=f"Check if table {table} is empty failed")
        return len(rows) == 0

    # Stats and version gate

    def read_stat(self, key: str) -> Optional[str]:
        """
        Read one entry of the stats map.

        Returns:
            Stored value, or None when the key does not exist
        """
        self.prepare_statements()
        rows = self.adapter.execute_prepared("rs_plan", (key,), message="Get stat value failed")
        if not rows:
            return None
        return rows[0][0]

    def stats_initialized(self) -> bool:
        return self.read_stat(VERSION_KEY) is not None

    def prepare_stats(self) -> None:
        """Seed the stats map with the schema version and an empty checkpoint, atomically."""
        tctx = self.new_trx_context()
        tctx.add_stat(VERSION_KEY, self.schema_version)
        tctx.add_stat(LAST_SYNC_BLOCK_KEY, "")
        tctx.commit()
        logger.info(f"Initialized stats with version {self.schema_version}")

    def check_version(self) -> None:
        """
        Reject databases written by an older schema.

        Raises:
            VersionError: if the version entry is missing or older than the running one
        """
        cur_ver = self.read_stat(VERSION_KEY)
        if cur_ver is None:
            raise VersionError("Version information doesn't exist in current database")
        if not is_schema_compatible(cur_ver, self.schema_version):
            raise VersionError(
                f"Version of current postgres database is obsolete, "
                f"cur: {cur_ver}, latest: {self.schema_version}"
            )
        logger.info(f"Database schema version {cur_ver} accepted")

    # Block lookups

    def get_latest_block_id(self) -> Optional[str]:
        """Return the id of the block with the highest number, None for an empty table."""
        self.prepare_statements()
        rows = self.adapter.execute_prepared("glb_plan", message="Get latest block id failed")
        if not rows:
            return None
        # block_id is a blank-padded character column
        return rows[0][0].rstrip(" ")

    def exists_block(self, block_id: str) -> bool:
        self.prepare_statements()
        rows = self.adapter.execute_prepared("eb_plan", (block_id,), message="Check block existed failed")
        return len(rows) > 0

    # Buffers

    def new_copy_context(self) -> CopyContext:
        return CopyContext(self)

    def new_trx_context(self) -> TrxContext:
        return TrxContext(self)

    def commit_copy_context(self, cctx: CopyContext) -> None:
        """Stream every non-empty row buffer with one COPY each: blocks, transactions, actions."""
        for table, data in cctx.buffers():
            self.adapter.copy_from(table, data)
            logger.debug(f"Copied {data.count(chr(10))} rows into {table}")

    def commit_trx_context(self, tctx: TrxContext) -> None:
        """
        Execute a statement log as one unit.

        An empty log makes no round trip. Otherwise the whole text runs inside one
        transaction; any failing statement rolls back every line of the log.
        """
        if tctx.is_empty():
            return

        self.prepare_statements()
        with self.adapter.transaction():
            self.adapter.execute(tctx.text, message="Commit transactions failed")
        logger.debug(f"Committed {tctx.count} statements")
