"""
Sync checkpoint protocol.

The id of the last fully committed block is kept in the stats map under
``last_sync_block_id``. It is updated by the last line of each block's statement log,
while the block's rows arrive through a separate COPY round trip before it. A crash
between the two leaves the checkpoint behind the latest stored block, and the next
startup reports that divergence instead of writing on top of it. There is no automatic
repair.
"""

import logging
from enum import Enum
from typing import Optional

from pgledger.exceptions import SyncError
from pgledger.storage.postgres_store import LAST_SYNC_BLOCK_KEY, PostgresStore
from pgledger.storage.trx_context import TrxContext

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """Relation between the stored checkpoint and the blocks table"""
    UNINITIALIZED = "uninitialized"  # no checkpoint entry
    CONSISTENT = "consistent"        # checkpoint names the latest stored block
    DIVERGENT = "divergent"          # checkpoint and latest stored block differ


class SyncCheckpoint:
    """Reads, verifies and advances the sync checkpoint of a store"""

    def __init__(self, store: PostgresStore):
        self.store = store
        self.last_sync_block_id: Optional[str] = None

    def state(self) -> SyncState:
        """Classify the store without raising; a database without tables is uninitialized."""
        if not self.store.table_exists("stats"):
            return SyncState.UNINITIALIZED
        sync_block_id = self.store.read_stat(LAST_SYNC_BLOCK_KEY)
        if sync_block_id is None:
            return SyncState.UNINITIALIZED
        if sync_block_id == (self.store.get_latest_block_id() or ""):
            return SyncState.CONSISTENT
        return SyncState.DIVERGENT

    def verify(self) -> str:
        """
        Check that the checkpoint matches the latest stored block.

        An empty checkpoint with an empty blocks table is consistent.

        Returns:
            The verified checkpoint, "" before the first block

        Raises:
            SyncError: if the checkpoint is missing or diverges from the blocks table
        """
        sync_block_id = self.store.read_stat(LAST_SYNC_BLOCK_KEY)
        if sync_block_id is None:
            raise SyncError("Last sync block id doesn't exist in current database")

        last_block_id = self.store.get_latest_block_id() or ""
        if sync_block_id != last_block_id:
            logger.error(f"Sync checkpoint {sync_block_id!r} does not match latest block {last_block_id!r}")
            raise SyncError(
                f"Sync block and latest block are not match, "
                f"sync is {sync_block_id!r}, latest is {last_block_id!r}"
            )

        self.last_sync_block_id = sync_block_id
        logger.info(f"Sync check passed, last sync block: {sync_block_id or '<none>'}")
        return sync_block_id

    @staticmethod
    def advance(tctx: TrxContext, block_id: str) -> None:
        """Append the checkpoint update; it must be the last line of the block's log."""
        tctx.upd_stat(LAST_SYNC_BLOCK_KEY, block_id)
