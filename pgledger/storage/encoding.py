"""
Text encodings shared by the bulk append buffer and the statement log.

COPY text format:
- fields are tab separated, rows end with a newline
- backslash, tab, newline and carriage return inside a field are backslash escaped
- ``\\N`` is NULL

SQL literals follow PostgreSQL's quote_literal(): single quotes are doubled and a
value containing a backslash is written as an E'' string with doubled backslashes,
so the result reads back identically whatever standard_conforming_strings is set to.
"""

from typing import Any, Iterable

from pgledger.core.utils import to_json


COPY_NULL = "\\N"
COPY_NOW = "now"

_COPY_ESCAPES = str.maketrans({
    "\\": "\\\\",
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
})


def escape_copy_field(value: str) -> str:
    """Escape one text field for the COPY text format."""
    return value.translate(_COPY_ESCAPES)


def format_copy_field(value: Any) -> str:
    """
    Render a column value as a COPY field.

    Args:
        value: None, bool, int, str, or a list/dict document (rendered as JSON)

    Returns:
        Escaped field text
    """
    if value is None:
        return COPY_NULL
    if isinstance(value, bool):
        return "t" if value else "f"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (dict, list)):
        return escape_copy_field(to_json(value))
    return escape_copy_field(str(value))


def format_copy_row(fields: Iterable[Any]) -> str:
    """Render a row: tab separated fields and a trailing newline."""
    return "\t".join(format_copy_field(f) for f in fields) + "\n"


def format_array(values: Iterable[str]) -> str:
    """
    Render a text array literal, e.g. ``{"a","b"}``.

    Elements are always double quoted; quotes and backslashes inside an element are
    backslash escaped. An empty sequence renders as ``{}``.
    """
    elements = []
    for value in values:
        escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
        elements.append(f'"{escaped}"')
    return "{" + ",".join(elements) + "}"


def quote_literal(value: str) -> str:
    """
    Quote a string as an SQL literal.

    Args:
        value: Text to quote; NUL characters cannot be stored in PostgreSQL text

    Returns:
        Quoted literal
    """
    if "\x00" in value:
        raise ValueError("NUL character cannot be written to a text literal")
    quoted = value.replace("'", "''")
    if "\\" in value:
        return "E'" + quoted.replace("\\", "\\\\") + "'"
    return "'" + quoted + "'"


def format_literal(value: Any) -> str:
    """
    Render a statement argument as an inline SQL literal.

    None becomes NULL, booleans and integers are written bare, documents are
    serialized to JSON and quoted, everything else is quoted as text.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (dict, list)):
        return quote_literal(to_json(value))
    if isinstance(value, str):
        return quote_literal(value)
    raise TypeError(f"Unsupported statement argument type: {type(value).__name__}")
