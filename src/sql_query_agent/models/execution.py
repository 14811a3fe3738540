"""
Query execution models.

These models carry the outcome of running generated SQL against the
database. Failures are values, not exceptions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class QueryResult(BaseModel):
    """Outcome of one ``Database.execute`` call.

    On success ``rows`` holds one mapping per row in result order. On
    failure ``success`` is False, ``error`` holds the database message and
    there are no rows.
    """

    success: bool = Field(description="Whether the statement executed without a database error")
    columns: list[str] = Field(default_factory=list, description="Column names in result order")
    rows: list[dict[str, Any]] = Field(
        default_factory=list, description="Result rows as column → value mappings"
    )
    row_count: int = Field(default=0, description="Number of rows returned")
    error: str | None = Field(default=None, description="Error message if execution failed")

    @classmethod
    def ok(cls, columns: list[str], rows: list[dict[str, Any]]) -> QueryResult:
        """Build a successful result."""
        return cls(success=True, columns=columns, rows=rows, row_count=len(rows))

    @classmethod
    def failed(cls, error: str) -> QueryResult:
        """Build a "no result" outcome carrying the database error."""
        return cls(success=False, error=error)
