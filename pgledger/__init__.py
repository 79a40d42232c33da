"""
pgledger
========

Projects an append-only ledger of blocks, transactions and actions into PostgreSQL,
keeping the visible state of the database equal to a committed prefix of the ledger.
"""

from pgledger.units.version import get_version, VERSION


__version__ = get_version(VERSION)

# Define what should be imported with "from pgledger import *"
__all__ = ["__version__", "VERSION"]
