"""
CQL statement splitting.

Splits a free-form query text into individual statements on ';' while
respecting:
- Single quoted strings (')
- Double quoted identifiers (")
- Doubled delimiters inside quotes ('it''s')
- Line comments (-- ... until end of line)
"""

from typing import List
from wq.core.logger import setup_logger

logger = setup_logger(__name__, include_location=True)

STATEMENT_TERMINATOR = ";"
QUOTE_CHARS = ("'", '"')
LINE_COMMENT = "--"


def _flush(current: List[str], statements: List[str]) -> None:
    stmt = ''.join(current).strip()
    if stmt:
        statements.append(stmt)
    current.clear()


def split_cql_statements(query: str) -> List[str]:
    """
    Split CQL text into trimmed, non-empty statements in source order.

    Comment text is dropped before boundaries are computed. A string left
    open at the end of input swallows everything after it, including any
    ';', so it ends up in the last statement as-is.

    Args:
        query: Raw query text, possibly empty

    Returns:
        List of individual CQL statement strings
    """
    statements: List[str] = []
    current: List[str] = []
    in_string = False
    in_comment = False
    string_delimiter = ""
    i = 0
    n = len(query)

    while i < n:
        ch = query[i]

        # Line comment start, only outside strings
        if not in_string and query.startswith(LINE_COMMENT, i):
            in_comment = True
            i += 2
            continue

        if in_comment:
            if ch == '\n':
                in_comment = False
            i += 1
            continue

        if not in_string and ch in QUOTE_CHARS:
            in_string = True
            string_delimiter = ch
            current.append(ch)
        elif in_string and ch == string_delimiter:
            # Doubled delimiter is an escaped literal quote
            if i + 1 < n and query[i + 1] == string_delimiter:
                current.append(ch)
                current.append(query[i + 1])
                i += 2
                continue
            in_string = False
            current.append(ch)
        elif not in_string and ch == STATEMENT_TERMINATOR:
            _flush(current, statements)
        else:
            current.append(ch)

        i += 1

    # Final statement without a trailing terminator
    _flush(current, statements)

    if in_string:
        logger.debug(f"CQL: Unterminated {string_delimiter} string at end of input")
    logger.debug(f"CQL: Split query text ({n} chars) into {len(statements)} statement(s)")
    return statements
