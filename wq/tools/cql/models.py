"""
Result and run-summary models for CQL execution.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple
from pydantic import BaseModel, Field

from wq.core.errors import ErrorInfo


ResultRow = Tuple[Optional[Any], ...]


@dataclass
class StatementResult:
    """
    Outcome of one successfully executed statement.

    columns is None when the cluster answered with a non-row
    acknowledgement (schema change, USE, plain writes).
    """
    columns: Optional[List[str]] = None
    rows: Sequence[ResultRow] = field(default_factory=list)

    @property
    def has_rows(self) -> bool:
        return self.columns is not None


@dataclass
class RenderedResult:
    console: str
    document: str
    row_count: int = 0


class StatementOutcome(BaseModel):
    index: int = Field(..., description="1-based position of the statement in the query text")
    statement: str
    status: str = Field(..., description="'success' or 'error'")
    row_count: int = 0
    error: Optional[ErrorInfo] = None


class RunSummary(BaseModel):
    output_path: Path
    statements: int = 0
    outcomes: List[StatementOutcome] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "success")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "error")
