"""Shared test fixtures for the SQL query agent."""

from collections.abc import Mapping
from typing import Any

import pytest

from sql_query_agent.config.settings import Settings
from sql_query_agent.entities.shared.protocols import NoOpReporter
from sql_query_agent.models import QueryResult, UniformResponse

# ---------------------------------------------------------------------------
# Protocol fakes
# ---------------------------------------------------------------------------

SCHEMA_SNAPSHOT = "CREATE TABLE users(id, salary, job)"


class FakeCompletionTransport:
    """In-memory fake satisfying the ``CompletionTransport`` protocol.

    Returns canned payloads in order (the last one repeats) and records
    every ``invoke`` call for assertions.
    """

    def __init__(self, *payloads: dict[str, Any], error: Exception | None = None) -> None:
        self.payloads: list[dict[str, Any]] = list(payloads) or [{"completion": ""}]
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def invoke(self, model_id: str, body: Mapping[str, Any]) -> dict[str, Any]:
        """Record the call and return the next canned payload."""
        self.calls.append((model_id, dict(body)))
        if self.error is not None:
            raise self.error
        index = min(len(self.calls), len(self.payloads)) - 1
        return self.payloads[index]


class ScriptedAdapter:
    """In-memory fake satisfying the ``TextGenerator`` protocol.

    Returns scripted completions in order and records prompts and
    request fields.
    """

    def __init__(
        self,
        *completions: str,
        model_id: str = "anthropic.claude-v2",
        error: Exception | None = None,
    ) -> None:
        self.completions: list[str] = list(completions)
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._model_id = model_id

    @property
    def model_id(self) -> str:
        return self._model_id

    def complete(self, prompt: str, **request: Any) -> UniformResponse:
        """Record the call and return the next scripted completion."""
        self.calls.append((prompt, request))
        if self.error is not None:
            raise self.error
        return UniformResponse(completion=self.completions.pop(0), model=self._model_id)


class FakeDatabase:
    """In-memory fake satisfying the ``DatabaseHandle`` protocol.

    Returns canned rows or a failed result, and records every statement.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        *,
        schema: str | None = SCHEMA_SNAPSHOT,
        error: str | None = None,
    ) -> None:
        self.rows: list[dict[str, Any]] = rows or []
        self.schema_text = schema
        self.error = error
        self.schema_calls = 0
        self.calls: list[str] = []

    def schema(self) -> str | None:
        """Return the canned schema snapshot."""
        self.schema_calls += 1
        return self.schema_text

    def execute(self, sql: str) -> QueryResult:
        """Return a success/failure result mimicking ``Database.execute``."""
        self.calls.append(sql)
        if self.error:
            return QueryResult.failed(self.error)
        columns = list(self.rows[0]) if self.rows else []
        return QueryResult.ok(columns=columns, rows=self.rows)


class SpyReporter:
    """Spy satisfying the ``ProgressReporter`` protocol.

    Captures every ``step_start`` / ``step_end`` call for assertions.
    """

    def __init__(self) -> None:
        self.events: list[dict[str, str]] = []

    def step_start(self, step: str) -> None:
        """Record a step-start event."""
        self.events.append({"step": step, "status": "started"})

    def step_end(self, step: str) -> None:
        """Record a step-end event."""
        self.events.append({"step": step, "status": "completed"})


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Return a ``Settings`` instance populated with safe test defaults."""
    return Settings(
        completion_model_id="anthropic.claude-v2",
        bedrock_endpoint="https://bedrock.test",
        bedrock_api_key="test-key",
        database_url="",
    )


@pytest.fixture
def fake_database() -> FakeDatabase:
    """Return a ``FakeDatabase`` with no rows."""
    return FakeDatabase()


@pytest.fixture
def spy_reporter() -> SpyReporter:
    """Return a fresh ``SpyReporter`` instance."""
    return SpyReporter()


@pytest.fixture
def noop_reporter() -> NoOpReporter:
    """Return a ``NoOpReporter`` from the protocols module."""
    return NoOpReporter()
