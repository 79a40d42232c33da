"""
Ledger records consumed by the write pipeline.

A Block contains Transactions, a Transaction contains Actions. The records mirror
what the ledger reports after applying a block; they hold no database state.
Sequence numbers of transactions and actions are their position inside the parent.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Action:
    """A single action of a transaction, addressed to a domain and key"""
    name: str
    domain: str
    key: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Action':
        return cls(
            name=data["name"],
            domain=data["domain"],
            key=data["key"],
            data=data.get("data") or {}
        )


@dataclass
class Transaction:
    """
    A transaction receipt together with the signed transaction.

    ``keys`` are the public keys recovered from ``signatures``, in the same order.
    ``elapsed`` and ``charge`` come from the execution trace.
    """
    trx_id: str
    expiration: str
    max_charge: int
    payer: str
    type: str = "input"
    status: str = "executed"
    signatures: list[str] = field(default_factory=list)
    keys: list[str] = field(default_factory=list)
    elapsed: int = 0
    charge: int = 0
    suspend_name: Optional[str] = None
    actions: list[Action] = field(default_factory=list)

    @property
    def action_count(self) -> int:
        return len(self.actions)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Transaction':
        return cls(
            trx_id=data["trx_id"],
            expiration=data["expiration"],
            max_charge=int(data["max_charge"]),
            payer=data["payer"],
            type=data.get("type", "input"),
            status=data.get("status", "executed"),
            signatures=list(data.get("signatures", [])),
            keys=list(data.get("keys", [])),
            elapsed=int(data.get("elapsed", 0)),
            charge=int(data.get("charge", 0)),
            suspend_name=data.get("suspend_name"),
            actions=[Action.from_dict(a) for a in data.get("actions", [])]
        )


@dataclass
class Block:
    """
    A ledger block as applied by the chain.

    ``irreversible`` is True when the ledger already reports the block as final at
    the time it is written; such rows are stored with pending = false.
    """
    block_id: str
    block_num: int
    prev_block_id: str
    timestamp: str
    trx_merkle_root: str
    producer: str
    transactions: list[Transaction] = field(default_factory=list)
    irreversible: bool = False

    @property
    def trx_count(self) -> int:
        return len(self.transactions)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Block':
        """
        Build a block from its JSON form.

        Args:
            data: Dictionary with the block header fields and a ``transactions`` list

        Returns:
            Block instance
        """
        return cls(
            block_id=data["block_id"],
            block_num=int(data["block_num"]),
            prev_block_id=data["prev_block_id"],
            timestamp=data["timestamp"],
            trx_merkle_root=data["trx_merkle_root"],
            producer=data["producer"],
            transactions=[Transaction.from_dict(t) for t in data.get("transactions", [])],
            irreversible=bool(data.get("irreversible", False))
        )

    def __repr__(self):
        return f"<Block(num={self.block_num}, id='{self.block_id[:8]}...')>"
