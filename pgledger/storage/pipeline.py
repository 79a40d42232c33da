"""
Block write pipeline.

For every ledger block the pipeline:
1. opens one bulk append buffer and one statement log
2. appends the block, transaction and action rows to the buffer
3. translates entity-mutating actions into statement-log lines
4. appends the checkpoint update as the last statement-log line
5. flushes the buffer (COPY) and then the statement log

Blocks are applied strictly one after another on a single session. The first
failure halts the pipeline; recovery is an operator decision.
"""

import logging
from typing import Iterable, Optional

from pgledger.adapters.database.postgres_adapter import PostgresAdapter
from pgledger.config.settings import settings
from pgledger.core.models import Block
from pgledger.exceptions import ExecutionError, StoreError
from pgledger.storage.postgres_store import PostgresStore
from pgledger.storage.sync import SyncCheckpoint, SyncState
from pgledger.storage.translators import translate_action

logger = logging.getLogger(__name__)


class BlockPipeline:
    """
    Projects ledger blocks into the PostgreSQL store.

    Usage:
        with BlockPipeline.from_url(url) as pipeline:
            for block in blocks:
                pipeline.apply_block(block)
    """

    def __init__(self, store: PostgresStore, atomic_block_commit: Optional[bool] = None):
        """
        Initialize the pipeline.

        Args:
            store: Store over a (possibly not yet connected) adapter
            atomic_block_commit: Run the COPY flush and the statement log in one
                transaction. Defaults to settings.ATOMIC_BLOCK_COMMIT
        """
        self.store = store
        self.checkpoint = SyncCheckpoint(store)
        if atomic_block_commit is None:
            atomic_block_commit = settings.ATOMIC_BLOCK_COMMIT
        self.atomic_block_commit = atomic_block_commit
        self._opened = False
        self._halted: Optional[StoreError] = None

    @classmethod
    def from_url(cls, connection_string: str, **kwargs) -> 'BlockPipeline':
        return cls(PostgresStore(PostgresAdapter(connection_string)), **kwargs)

    @property
    def adapter(self) -> PostgresAdapter:
        return self.store.adapter

    @property
    def last_sync_block_id(self) -> Optional[str]:
        return self.checkpoint.last_sync_block_id

    def open(self, wipe: bool = False) -> None:
        """
        Connect and run the startup checks.

        Creates missing tables, seeds the stats map on first run, then enforces the
        version gate and the sync checkpoint.

        Args:
            wipe: Drop every table and sequence first

        Raises:
            DatabaseConnectionError, SchemaError, VersionError, SyncError
        """
        if not self.adapter.is_connected:
            self.adapter.connect()

        if wipe:
            self.store.drop_all_tables()
            self.store.drop_all_sequences()

        self.store.prepare_tables()
        self.store.prepare_statements()

        # First run: neither the version nor the checkpoint entry exists
        if not self.store.stats_initialized() and self.checkpoint.state() == SyncState.UNINITIALIZED:
            self.store.prepare_stats()

        self.store.check_version()
        self.checkpoint.verify()
        self._opened = True
        self._halted = None

    def close(self) -> None:
        self.adapter.close()
        self._opened = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _check_ready(self) -> None:
        if not self._opened:
            raise RuntimeError("pipeline not opened")
        if self._halted is not None:
            raise ExecutionError("Pipeline halted after a failed block", detail=str(self._halted))

    def apply_block(self, block: Block, irreversible_ids: Iterable[str] = ()) -> None:
        """
        Write one block and advance the checkpoint to it.

        Args:
            block: Block to project
            irreversible_ids: Ids of earlier blocks the ledger reports final; their
                pending flags flip in the same statement log
        """
        self._check_ready()

        try:
            cctx, tctx = self._buffer_block(block, irreversible_ids)
            if self.atomic_block_commit:
                with self.adapter.transaction():
                    cctx.commit()
                    tctx.commit()
            else:
                cctx.commit()
                tctx.commit()
        except StoreError as e:
            self._halted = e
            logger.error(f"Block {block.block_num} could not be written, halting pipeline")
            raise

        self.checkpoint.last_sync_block_id = block.block_id
        logger.debug(f"Applied block {block.block_num} ({block.trx_count} transactions, {tctx.count} statements)")

    def _buffer_block(self, block: Block, irreversible_ids: Iterable[str]):
        """Fill the append buffer and the statement log of one block; nothing is sent yet."""
        cctx = self.store.new_copy_context()
        tctx = self.store.new_trx_context()

        cctx.append_block_row(block)
        for trx_seq, trx in enumerate(block.transactions):
            cctx.append_transaction_row(block, trx, trx_seq)
            for act_seq, action in enumerate(trx.actions):
                cctx.append_action_row(block, trx.trx_id, action, act_seq)
                try:
                    translate_action(tctx, action)
                except (ValueError, KeyError, TypeError) as e:
                    raise ExecutionError(
                        f"Cannot translate action {action.name} ({trx.trx_id}, seq {act_seq})",
                        detail=f"{type(e).__name__}: {e}"
                    ) from e

        for block_id in irreversible_ids:
            tctx.set_block_irreversible(block_id)

        self.checkpoint.advance(tctx, block.block_id)
        return cctx, tctx

    def apply_blocks(self, blocks: Iterable[Block]) -> int:
        """Apply blocks in order and return how many were written."""
        count = 0
        for block in blocks:
            self.apply_block(block)
            count += 1
        return count

    def mark_irreversible(self, block_id: str) -> None:
        """Flip pending to false for a block and its transactions."""
        self._check_ready()
        tctx = self.store.new_trx_context()
        tctx.set_block_irreversible(block_id)
        tctx.commit()
        logger.info(f"Block {block_id} marked irreversible")
