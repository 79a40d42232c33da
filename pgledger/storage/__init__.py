"""
Storage layer: schema, buffers, translators, sync checkpoint and the block pipeline.
"""

from .postgres_store import PostgresStore
from .copy_context import CopyContext
from .trx_context import TrxContext
from .sync import SyncCheckpoint, SyncState
from .pipeline import BlockPipeline

__all__ = [
    'PostgresStore',
    'CopyContext',
    'TrxContext',
    'SyncCheckpoint',
    'SyncState',
    'BlockPipeline'
]
