"""
CQL query text execution orchestration.

Main entry point for running a block of CQL text with:
- Cluster connection
- Statement splitting
- Sequential per-statement execution, continuing past failures
- Console preview and Markdown report rendering
- A single write of the report at the end of the run
"""

import asyncio
from pathlib import Path
from typing import Callable, List, Optional

import typer

from wq.core.config import Settings, get_settings, get_preview_file_path
from wq.core.errors import ResultDecodingError, StatementExecutionError, classify_cql_error
from wq.core.logger import setup_logger
from wq.tools.cql.command import split_cql_statements
from wq.tools.cql.execution import Connector, CqlSession, connect_cluster
from wq.tools.cql.models import RunSummary, StatementOutcome
from wq.tools.cql.render import render_acknowledgement, render_result

logger = setup_logger(__name__, include_location=True)

REPORT_TITLE = "# CQL Query Results"
NO_STATEMENTS_MESSAGE = "No valid CQL statements found."
STATEMENT_RULE = "─" * 41
RESULT_RULE = "═" * 43

Echo = Callable[..., None]


async def _execute_statement(
    session: CqlSession,
    statement: str,
    index: int,
    total: int,
    output: List[str],
    echo: Echo,
) -> StatementOutcome:
    logger.debug(f"CQL: Executing statement {index}/{total}: {statement[:100]}{'...' if len(statement) > 100 else ''}")
    try:
        try:
            result = await session.execute(statement)
            rendered = render_result(statement, result)
        except ResultDecodingError as e:
            logger.warning(f"CQL: Could not decode rows of statement {index}: {e}")
            rendered = render_acknowledgement(statement)
    except StatementExecutionError as e:
        logger.error(f"CQL: Error executing statement {index}: {e}")
        echo(f"✗ Error executing statement {index}: {e}\n", err=True)
        output.append(f"**Error:** {e}\n\n")
        return StatementOutcome(
            index=index,
            statement=statement,
            status="error",
            error=classify_cql_error(e),
        )

    echo(rendered.console)
    output.append(rendered.document)
    echo(f"✓ Statement {index} executed successfully\n")
    output.append("\n")
    return StatementOutcome(
        index=index,
        statement=statement,
        status="success",
        row_count=rendered.row_count,
    )


async def _write_report(output_path: Path, output: List[str]) -> None:
    await asyncio.to_thread(output_path.write_text, "".join(output), encoding="utf-8")
    logger.success(f"CQL: Report written to {output_path}")


async def run_query_text(
    query: str,
    preview_dir_path,
    settings: Optional[Settings] = None,
    connector: Optional[Connector] = None,
    echo: Optional[Echo] = None,
) -> RunSummary:
    """
    Execute every statement of a CQL text and write the Markdown report.

    Statements run one after another in source order. A failing statement
    is recorded in the report and the run continues with the next one.

    Args:
        query: Raw CQL text with one or more ';' separated statements
        preview_dir_path: Directory that receives the .pw.cql.md report
        settings: Connection settings (defaults to get_settings())
        connector: Async callable returning a CqlSession (defaults to connect_cluster)
        echo: Console writer with typer.echo's signature

    Returns:
        RunSummary with one outcome per executed statement

    Raises:
        ClusterConnectionError: If the initial connection fails; nothing is written
        OSError: If the report cannot be written
    """
    settings = settings or get_settings()
    connector = connector or connect_cluster
    echo = echo or typer.echo

    session = await connector(settings)
    try:
        output_path = get_preview_file_path(preview_dir_path)
        output: List[str] = []
        statements = split_cql_statements(query)
        summary = RunSummary(output_path=output_path, statements=len(statements))

        if not statements:
            echo(NO_STATEMENTS_MESSAGE)
            output.append(f"{REPORT_TITLE}\n\n{NO_STATEMENTS_MESSAGE}\n")
            await _write_report(output_path, output)
            echo(f"\nResults written to: {output_path}")
            return summary

        total = len(statements)
        output.append(f"{REPORT_TITLE}\n\n")
        output.append(f"Executed {total} statement(s)\n\n")
        output.append("---\n\n")
        echo(f"Executing {total} statement(s)...\n")

        for index, statement in enumerate(statements, start=1):
            echo(STATEMENT_RULE)
            echo(f"Statement {index}/{total}: {statement}")
            echo(STATEMENT_RULE)

            output.append(f"## Statement {index}/{total}\n\n")
            output.append(f"```cql\n{statement}\n```\n\n")

            outcome = await _execute_statement(session, statement, index, total, output, echo)
            summary.outcomes.append(outcome)

        output.append("---\n\n")
        output.append(f"*{summary.succeeded} succeeded, {summary.failed} failed.*\n")

        await _write_report(output_path, output)
        echo(f"\n{RESULT_RULE}")
        echo(f"Results written to: {output_path}")
        echo(RESULT_RULE)
        return summary
    finally:
        await session.close()
