"""
Utility functions for pgledger.

This module provides the helpers shared across the pipeline: compact JSON
serialization of ledger documents, sanitizing of SQL text before it reaches a log
line, and logging setup for the command line.
"""

import json
import logging
from typing import Any


# Characters that would break a single log line
LOG_INJECTION_CHARS = {
    "\n": "\\n",
    "\r": "\\r",
    "\x00": "\\x00",
    "\x1b": "\\x1b",  # ANSI escape
    "\t": "\\t",
}


def to_json(data: Any) -> str:
    """
    Serialize a ledger document to compact JSON.

    Key order is preserved so that the stored document matches the ledger payload.

    Args:
        data: JSON-compatible value (dict, list, str, number, bool or None)

    Returns:
        JSON text without insignificant whitespace
    """
    return json.dumps(data, separators=(',', ':'), ensure_ascii=False)


def sanitize_for_log(value: Any, limit: int = 500) -> str:
    """
    Sanitize a value before logging so it stays on one line.

    Args:
        value: Value to sanitize, usually SQL text or a server diagnostic
        limit: Maximum number of characters kept

    Returns:
        Safe string representation
    """
    if value is None:
        return "null"

    result = value if isinstance(value, str) else str(value)
    for char, replacement in LOG_INJECTION_CHARS.items():
        result = result.replace(char, replacement)

    if len(result) > limit:
        result = result[:limit] + "...[truncated]"
    return result


def setup_logging(level: str = "INFO", fmt: str | None = None) -> None:
    """Configure root logging for command line use."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt or "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
