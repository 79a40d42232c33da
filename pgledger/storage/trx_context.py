"""
Buffered statement log for the mutable ledger tables.

A TrxContext accumulates EXECUTE lines for prepared statements, one line per
invocation, with every argument inlined as an escaped SQL literal. commit() sends the
whole log to the server as a single execution inside one transaction, so a block's
mutations and its checkpoint update are applied together or not at all.
"""

import io
import logging
from typing import Any

from pgledger.storage.encoding import format_literal
from pgledger.storage.statements import PREPARED_STATEMENTS

logger = logging.getLogger(__name__)


class TrxContext:
    """Ordered log of prepared-statement invocations for one block"""

    def __init__(self, store):
        self._store = store
        self.trx_buf = io.StringIO()
        self.count = 0

    def add(self, plan: str, *args: Any) -> None:
        """
        Append one invocation of a prepared statement.

        Args:
            plan: Name of a statement in PREPARED_STATEMENTS
            *args: Statement arguments, in parameter order
        """
        if plan not in PREPARED_STATEMENTS:
            raise ValueError(f"Unknown prepared statement: {plan}")
        if args:
            self.trx_buf.write(f"EXECUTE {plan}({','.join(format_literal(a) for a in args)});\n")
        else:
            self.trx_buf.write(f"EXECUTE {plan};\n")
        self.count += 1

    def add_stat(self, key: str, value: str) -> None:
        self.add("as_plan", key, value)

    def upd_stat(self, key: str, value: str) -> None:
        self.add("us_plan", value, key)

    def set_block_irreversible(self, block_id: str) -> None:
        """Flip pending to false for a block and its transactions."""
        self.add("sbi_plan", block_id)

    @property
    def text(self) -> str:
        return self.trx_buf.getvalue()

    def is_empty(self) -> bool:
        return self.count == 0

    def commit(self) -> None:
        self._store.commit_trx_context(self)
