"""
Bulk append buffer for the append-only ledger tables.

One CopyContext collects the rows of exactly one block: the block itself, its
transactions and their actions. Appending only formats text; nothing touches the
database until commit(), which streams each non-empty buffer with one COPY.
"""

import io
import logging
from typing import Iterator, Tuple

from pgledger.core.models import Action, Block, Transaction
from pgledger.core.utils import to_json
from pgledger.storage.encoding import COPY_NOW, format_array, format_copy_row

logger = logging.getLogger(__name__)


class CopyContext:
    """
    Row buffers for the blocks, transactions and actions tables.

    Rows are rendered in the column order of the table definitions, ending with
    ``now`` for ``created_at``.
    """

    # Flush order
    TABLES = ("blocks", "transactions", "actions")

    def __init__(self, store):
        self._store = store
        self.blocks_copy = io.StringIO()
        self.trxs_copy = io.StringIO()
        self.actions_copy = io.StringIO()

    def append_block_row(self, block: Block) -> None:
        self.blocks_copy.write(format_copy_row([
            block.block_id,
            block.block_num,
            block.prev_block_id,
            block.timestamp,
            block.trx_merkle_root,
            block.trx_count,
            block.producer,
            not block.irreversible,
            COPY_NOW,
        ]))

    def append_transaction_row(self, block: Block, trx: Transaction, seq_num: int) -> None:
        """
        Append one transaction row.

        Args:
            block: Owning block; supplies id, number, timestamp and pending state
            trx: Transaction to store
            seq_num: Position of the transaction inside the block
        """
        self.trxs_copy.write(format_copy_row([
            trx.trx_id,
            seq_num,
            block.block_id,
            block.block_num,
            trx.action_count,
            block.timestamp,
            trx.expiration,
            trx.max_charge,
            trx.payer,
            not block.irreversible,
            trx.type,
            trx.status,
            format_array(trx.signatures),
            format_array(trx.keys),
            trx.elapsed,
            trx.charge,
            trx.suspend_name,
            COPY_NOW,
        ]))

    def append_action_row(self, block: Block, trx_id: str, action: Action, seq_num: int) -> None:
        self.actions_copy.write(format_copy_row([
            block.block_id,
            block.block_num,
            trx_id,
            seq_num,
            action.name,
            action.domain,
            action.key,
            to_json(action.data),
            COPY_NOW,
        ]))

    def buffers(self) -> Iterator[Tuple[str, str]]:
        """Yield (table, rows) for every non-empty buffer in flush order."""
        for table, buf in zip(self.TABLES, (self.blocks_copy, self.trxs_copy, self.actions_copy)):
            data = buf.getvalue()
            if data:
                yield table, data

    def is_empty(self) -> bool:
        return next(self.buffers(), None) is None

    def commit(self) -> None:
        self._store.commit_copy_context(self)
