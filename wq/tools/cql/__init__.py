"""
CQL tool for wq.

This package runs a block of CQL text against a Scylla/Cassandra cluster:
- Quote and comment aware statement splitting
- Sequential execution, continuing past failed statements
- Console preview and Markdown report rendering

Usage:
    from wq.tools.cql import run_query_text

    summary = asyncio.run(run_query_text("SELECT * FROM ks.t;", "/tmp/preview"))
"""

from wq.tools.cql.command import split_cql_statements
from wq.tools.cql.executor import run_query_text
from wq.tools.cql.render import render_rows, render_result

__all__ = [
    "split_cql_statements",
    "run_query_text",
    "render_rows",
    "render_result",
]
