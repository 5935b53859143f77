import pytest

from wq.core.config import PREVIEW_FILE_NAME, Settings
from wq.core.errors import (
    ClusterConnectionError,
    ErrorKind,
    ResultDecodingError,
    StatementExecutionError,
)
from wq.tools.cql.executor import run_query_text
from wq.tools.cql.models import StatementResult


class SyntaxException(Exception):
    pass


class _FakeSession:
    def __init__(self, scripted):
        self._scripted = scripted
        self.executed = []
        self.closed = False

    async def execute(self, statement):
        self.executed.append(statement)
        outcome = self._scripted.get(statement, StatementResult())
        if isinstance(outcome, ResultDecodingError):
            raise outcome
        if isinstance(outcome, Exception):
            raise StatementExecutionError(statement, outcome) from outcome
        return outcome

    async def close(self):
        self.closed = True


class _Console:
    def __init__(self):
        self.lines = []

    def __call__(self, message="", err=False):
        self.lines.append((message, err))

    @property
    def stdout(self):
        return "\n".join(m for m, err in self.lines if not err)

    @property
    def stderr(self):
        return "\n".join(m for m, err in self.lines if err)


def _connector(session):
    async def connect(settings):
        return session
    return connect


@pytest.mark.asyncio
async def test_runs_statements_in_order_and_writes_report(tmp_path):
    session = _FakeSession({
        "SELECT id, name FROM ks.users": StatementResult(columns=["id", "name"], rows=[(1, "ann"), (2, None)]),
    })
    console = _Console()

    summary = await run_query_text(
        "USE ks; SELECT id, name FROM ks.users; CREATE TABLE t (id int PRIMARY KEY)",
        tmp_path,
        settings=Settings(),
        connector=_connector(session),
        echo=console,
    )

    assert session.executed == [
        "USE ks",
        "SELECT id, name FROM ks.users",
        "CREATE TABLE t (id int PRIMARY KEY)",
    ]
    assert session.closed
    assert summary.statements == 3
    assert summary.succeeded == 3
    assert summary.failed == 0
    assert summary.outcomes[1].row_count == 2

    report = (tmp_path / PREVIEW_FILE_NAME).read_text(encoding="utf-8")
    assert report.startswith("# CQL Query Results\n\nExecuted 3 statement(s)\n\n---\n\n")
    assert "## Statement 1/3\n\n```cql\nUSE ks\n```\n\n*Database context switched.*\n\n" in report
    assert "| 1 | ann |\n| 2 | null |\n" in report
    assert "*2 row(s) returned.*" in report
    assert "*Statement executed successfully (no rows returned).*" in report
    assert report.index("## Statement 1/3") < report.index("## Statement 2/3") < report.index("## Statement 3/3")
    assert report.endswith("*3 succeeded, 0 failed.*\n")

    assert "Executing 3 statement(s)..." in console.stdout
    assert "Statement 2/3: SELECT id, name FROM ks.users" in console.stdout
    assert "✓ Statement 3 executed successfully" in console.stdout
    assert "| 1                | ann              |" in console.stdout


@pytest.mark.asyncio
async def test_failed_statement_does_not_abort_batch(tmp_path):
    session = _FakeSession({
        "SELEC broken": SyntaxException("line 1:0 no viable alternative at input 'SELEC'"),
    })
    console = _Console()

    summary = await run_query_text(
        "SELECT 1 FROM system.local; SELEC broken; SELECT 2 FROM system.local;",
        tmp_path,
        settings=Settings(),
        connector=_connector(session),
        echo=console,
    )

    assert len(session.executed) == 3
    assert summary.succeeded == 2
    assert summary.failed == 1

    failed = summary.outcomes[1]
    assert failed.status == "error"
    assert failed.index == 2
    assert failed.error.kind == ErrorKind.SYNTAX
    assert failed.error.exception_type == "SyntaxException"

    report = (tmp_path / PREVIEW_FILE_NAME).read_text(encoding="utf-8")
    assert "**Error:** line 1:0 no viable alternative at input 'SELEC'" in report
    assert "## Statement 3/3" in report
    assert report.endswith("*2 succeeded, 1 failed.*\n")
    assert "✗ Error executing statement 2:" in console.stderr


@pytest.mark.asyncio
async def test_decoding_error_is_reported_as_success_without_rows(tmp_path):
    session = _FakeSession({"SELECT v FROM t": ResultDecodingError("Failed decoding result column \"v\"")})

    summary = await run_query_text(
        "SELECT v FROM t",
        tmp_path,
        settings=Settings(),
        connector=_connector(session),
        echo=_Console(),
    )

    assert summary.succeeded == 1
    assert summary.outcomes[0].status == "success"
    assert summary.outcomes[0].error is None
    report = (tmp_path / PREVIEW_FILE_NAME).read_text(encoding="utf-8")
    assert "*Statement executed successfully (no rows returned).*" in report
    assert "**Error:**" not in report


@pytest.mark.asyncio
async def test_no_statements_writes_notice(tmp_path):
    session = _FakeSession({})
    console = _Console()

    summary = await run_query_text(
        "  -- nothing to run\n;;",
        tmp_path,
        settings=Settings(),
        connector=_connector(session),
        echo=console,
    )

    assert summary.statements == 0
    assert session.executed == []
    assert session.closed
    report = (tmp_path / PREVIEW_FILE_NAME).read_text(encoding="utf-8")
    assert report == "# CQL Query Results\n\nNo valid CQL statements found.\n"
    assert "No valid CQL statements found." in console.stdout


@pytest.mark.asyncio
async def test_connection_failure_aborts_before_writing(tmp_path):
    async def failing_connector(settings):
        raise ClusterConnectionError("172.17.0.2:9042", "connection refused")

    with pytest.raises(ClusterConnectionError):
        await run_query_text(
            "SELECT 1;",
            tmp_path,
            settings=Settings(),
            connector=failing_connector,
            echo=_Console(),
        )

    assert not (tmp_path / PREVIEW_FILE_NAME).exists()


@pytest.mark.asyncio
async def test_session_closed_when_report_cannot_be_written(tmp_path):
    session = _FakeSession({})
    missing_dir = tmp_path / "missing"

    with pytest.raises(OSError):
        await run_query_text(
            "SELECT 1;",
            missing_dir,
            settings=Settings(),
            connector=_connector(session),
            echo=_Console(),
        )

    assert session.closed
