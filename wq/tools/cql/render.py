"""
Rendering of CQL results into a console preview and a Markdown fragment.

Both views are built from the same rows in one pass:
- console: fixed-width, pipe delimited, long values truncated
- document: Markdown table with full values and escaped pipes
"""

from typing import Any, List, Sequence

from wq.tools.cql.models import RenderedResult, ResultRow, StatementResult

CONSOLE_COLUMN_WIDTH = 16
CONSOLE_TRUNCATE_AT = 13
ELLIPSIS = "..."
NULL_TEXT = "null"

CONTEXT_SWITCH_PREFIX = "USE "
CONTEXT_SWITCH_MESSAGE = "Database context switched."
NO_ROWS_MESSAGE = "Statement executed successfully (no rows returned)."


def format_value(value: Any) -> str:
    """Full textual form of a column value."""
    if value is None:
        return NULL_TEXT
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


def truncate_for_console(text: str) -> str:
    if len(text) > CONSOLE_COLUMN_WIDTH:
        return text[:CONSOLE_TRUNCATE_AT] + ELLIPSIS
    return text


def escape_cell(text: str) -> str:
    return text.replace("|", "\\|")


def row_count_summary(row_count: int) -> str:
    return f"{row_count} row(s) returned."


def is_context_switch(statement: str) -> bool:
    return statement.strip().upper().startswith(CONTEXT_SWITCH_PREFIX)


def _markdown_table(table_rows: List[List[str]]) -> str:
    col_count = len(table_rows[0])
    lines = [
        "|" + "".join(f" Column {i + 1} |" for i in range(col_count)),
        "|" + " --- |" * col_count,
    ]
    for cells in table_rows:
        lines.append("|" + "".join(f" {escape_cell(cell)} |" for cell in cells))
    return "\n".join(lines) + "\n\n"


def render_rows(rows: Sequence[ResultRow]) -> RenderedResult:
    """
    Render a row set.

    An empty row set produces only the row count summary, with no table
    markup in either view.
    """
    console_lines = [""]
    table_rows: List[List[str]] = []

    for row in rows:
        cells = [format_value(value) for value in row]
        console_lines.append(
            "|" + "".join(f" {truncate_for_console(cell):<{CONSOLE_COLUMN_WIDTH}} |" for cell in cells)
        )
        table_rows.append(cells)

    summary = row_count_summary(len(table_rows))
    console_lines.append("")
    console_lines.append(summary)

    document = _markdown_table(table_rows) if table_rows else ""
    document += f"*{summary}*\n\n"

    return RenderedResult(
        console="\n".join(console_lines),
        document=document,
        row_count=len(table_rows),
    )


def render_acknowledgement(statement: str) -> RenderedResult:
    """Single informational line for statements that return no rows."""
    message = CONTEXT_SWITCH_MESSAGE if is_context_switch(statement) else NO_ROWS_MESSAGE
    return RenderedResult(console=message, document=f"*{message}*\n\n")


def render_result(statement: str, result: StatementResult) -> RenderedResult:
    if is_context_switch(statement) or not result.has_rows:
        return render_acknowledgement(statement)
    return render_rows(result.rows)
