"""
CQL execution against a Scylla/Cassandra cluster.

This module provides:
- CqlSession, the capability interface the orchestrator talks to
- CassandraSession, its implementation on top of cassandra-driver
- connect_cluster, the default connector

The driver API is blocking, so connect and execute run in a worker thread.
Queries are unpaged: every row of a result is fetched in one request.
"""

import asyncio
from typing import Awaitable, Callable, Protocol

from wq.core.config import Settings
from wq.core.errors import ClusterConnectionError, ResultDecodingError, StatementExecutionError
from wq.core.logger import setup_logger
from wq.tools.cql.models import StatementResult

logger = setup_logger(__name__, include_location=True)

DECODE_FAILURE_MARKER = "Failed decoding result column"


class CqlSession(Protocol):
    async def execute(self, statement: str) -> StatementResult:
        ...

    async def close(self) -> None:
        ...


Connector = Callable[[Settings], Awaitable[CqlSession]]


def _to_statement_result(result_set) -> StatementResult:
    columns = result_set.column_names
    if columns is None:
        return StatementResult()
    return StatementResult(
        columns=list(columns),
        rows=[tuple(row) for row in result_set.current_rows],
    )


class CassandraSession:
    """CqlSession backed by a cassandra-driver Cluster/Session pair."""

    def __init__(self, cluster, session, request_timeout: float):
        self._cluster = cluster
        self._session = session
        self._request_timeout = request_timeout

    async def execute(self, statement: str) -> StatementResult:
        from cassandra.query import SimpleStatement

        query = SimpleStatement(statement, fetch_size=None)
        try:
            result_set = await asyncio.to_thread(
                self._session.execute, query, timeout=self._request_timeout
            )
        except Exception as e:
            if DECODE_FAILURE_MARKER in str(e):
                raise ResultDecodingError(str(e)) from e
            raise StatementExecutionError(statement, e) from e
        return _to_statement_result(result_set)

    async def close(self) -> None:
        logger.debug("CQL: Shutting down cluster connection")
        await asyncio.to_thread(self._cluster.shutdown)


async def connect_cluster(settings: Settings) -> CassandraSession:
    """
    Connect to the node named by SCYLLA_URI.

    Raises:
        ClusterConnectionError: If the cluster cannot be reached within
            the connection timeout
    """
    from cassandra.cluster import Cluster, ExecutionProfile, EXEC_PROFILE_DEFAULT
    from cassandra.query import tuple_factory

    host, port = settings.node_address
    address = f"{host}:{port}"
    logger.info(f"CQL: Connecting to {address} (timeout={settings.connect_timeout}s)")

    profile = ExecutionProfile(
        request_timeout=settings.request_timeout,
        row_factory=tuple_factory,
    )
    cluster = Cluster(
        contact_points=[host],
        port=port,
        execution_profiles={EXEC_PROFILE_DEFAULT: profile},
        connect_timeout=settings.connect_timeout,
        control_connection_timeout=settings.connect_timeout,
        schema_event_refresh_window=settings.metadata_refresh_interval,
        topology_event_refresh_window=settings.metadata_refresh_interval,
    )
    try:
        session = await asyncio.to_thread(cluster.connect)
    except Exception as e:
        logger.error(f"CQL: Connection to {address} failed: {e}")
        await asyncio.to_thread(cluster.shutdown)
        raise ClusterConnectionError(address, e) from e

    session.default_fetch_size = None
    logger.info(f"CQL: Connected to {address}")
    return CassandraSession(cluster, session, settings.request_timeout)
