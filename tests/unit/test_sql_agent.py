"""Unit tests for ``SQLAgent.ask()``.

All tests use injected fakes: ``ScriptedAdapter`` for generation and
``FakeDatabase`` for schema and execution. No network, no real database.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sql_query_agent.entities.shared.errors import (
    BackendTransportError,
    PromptRenderError,
    TokenBudgetExceededError,
    UnsupportedModelError,
)
from sql_query_agent.entities.shared.prompts import FilePromptRenderer
from sql_query_agent.entities.shared.token_counter import TokenCounter, TokenRule
from sql_query_agent.entities.sql_agent.agent import (
    NO_ROWS_TEXT,
    SQL_DIALECT,
    AgentState,
    SQLAgent,
    format_results,
)
from tests.conftest import SCHEMA_SNAPSHOT, FakeDatabase, ScriptedAdapter, SpyReporter

_QUESTION = "How many users are there?"
_SQL = "SELECT COUNT(*) FROM users"
_ANSWER = "There are 42 users."


def _fixed_counter(tokens_per_prompt: int, window: int) -> TokenCounter:
    rule = TokenRule(count=lambda _text: tokens_per_prompt, default_context_window=window)
    return TokenCounter().register("anthropic", rule)


# ── Happy path ───────────────────────────────────────────────────────────


class TestAsk:
    """Test the generate → execute → answer sequence."""

    def test_answers_from_query_rows(self) -> None:
        adapter = ScriptedAdapter(_SQL, _ANSWER)
        database = FakeDatabase(rows=[{"count": 42}])

        answer = SQLAgent(adapter, database).ask(_QUESTION)

        assert answer == _ANSWER
        assert database.calls == [_SQL]
        assert len(adapter.calls) == 2

    def test_sql_prompt_contents(self) -> None:
        adapter = ScriptedAdapter(_SQL, _ANSWER)
        SQLAgent(adapter, FakeDatabase(rows=[{"count": 42}])).ask(_QUESTION)

        sql_prompt = adapter.calls[0][0]
        assert SCHEMA_SNAPSHOT in sql_prompt
        assert _QUESTION in sql_prompt
        assert SQL_DIALECT in sql_prompt

    def test_answer_prompt_contents(self) -> None:
        adapter = ScriptedAdapter(_SQL, _ANSWER)
        SQLAgent(adapter, FakeDatabase(rows=[{"count": 42}])).ask(_QUESTION)

        answer_prompt = adapter.calls[1][0]
        assert _QUESTION in answer_prompt
        assert _SQL in answer_prompt
        assert "count: 42" in answer_prompt

    def test_generated_sql_is_executed_verbatim(self) -> None:
        raw_sql = "  select count(*) from users; -- as generated\n"
        database = FakeDatabase(rows=[{"count": 1}])
        SQLAgent(ScriptedAdapter(raw_sql, _ANSWER), database).ask(_QUESTION)
        assert database.calls == [raw_sql]

    def test_returns_answer_verbatim(self) -> None:
        agent = SQLAgent(ScriptedAdapter(_SQL, "  42\n"), FakeDatabase(rows=[{"count": 42}]))
        assert agent.ask(_QUESTION) == "  42\n"

    @pytest.mark.parametrize("question", ["", "   ", "\n\t"])
    def test_blank_question_raises(self, question: str) -> None:
        adapter = ScriptedAdapter()
        database = FakeDatabase()
        with pytest.raises(ValueError, match="non-empty"):
            SQLAgent(adapter, database).ask(question)
        assert adapter.calls == []
        assert database.calls == []


# ── Schema snapshot ──────────────────────────────────────────────────────


class TestSchemaSnapshot:
    """Test that the schema is captured once at construction."""

    def test_schema_read_once(self) -> None:
        database = FakeDatabase(rows=[{"count": 1}])
        agent = SQLAgent(ScriptedAdapter(_SQL, _ANSWER, _SQL, _ANSWER), database)

        agent.ask(_QUESTION)
        agent.ask(_QUESTION)

        assert database.schema_calls == 1

    def test_later_schema_changes_are_invisible(self) -> None:
        database = FakeDatabase(rows=[{"count": 1}])
        adapter = ScriptedAdapter(_SQL, _ANSWER)
        agent = SQLAgent(adapter, database)

        database.schema_text = "CREATE TABLE orders(id)"
        agent.ask(_QUESTION)

        assert SCHEMA_SNAPSHOT in adapter.calls[0][0]
        assert "orders" not in adapter.calls[0][0]

    def test_unavailable_schema_renders_empty(self) -> None:
        adapter = ScriptedAdapter(_SQL, _ANSWER)
        SQLAgent(adapter, FakeDatabase(schema=None)).ask(_QUESTION)
        assert "None" not in adapter.calls[0][0]


# ── Failure handling ─────────────────────────────────────────────────────


class TestFailures:
    """Test which failures are recovered and which propagate."""

    def test_database_failure_still_answers(self, caplog: pytest.LogCaptureFixture) -> None:
        adapter = ScriptedAdapter("SELECT * FROM nonexistent", "I could not find that data.")
        database = FakeDatabase(error="no such table: nonexistent")

        with caplog.at_level(logging.WARNING):
            answer = SQLAgent(adapter, database).ask(_QUESTION)

        assert answer == "I could not find that data."
        assert NO_ROWS_TEXT in adapter.calls[1][0]
        assert any("no such table" in r.getMessage() for r in caplog.records)

    @pytest.mark.parametrize(
        "error",
        ["syntax error", "permission denied for table users", "connection reset"],
    )
    def test_any_database_failure_reaches_answer_step(self, error: str) -> None:
        adapter = ScriptedAdapter(_SQL, "No data.")
        assert SQLAgent(adapter, FakeDatabase(error=error)).ask(_QUESTION) == "No data."
        assert len(adapter.calls) == 2

    def test_backend_failure_propagates(self) -> None:
        database = FakeDatabase()
        adapter = ScriptedAdapter(error=BackendTransportError("unreachable"))
        with pytest.raises(BackendTransportError):
            SQLAgent(adapter, database).ask(_QUESTION)
        assert database.calls == []

    def test_missing_template_variable_propagates(self, tmp_path: Path) -> None:
        (tmp_path / "sql_prompt.md").write_text(
            "{dialect} {schema} {question} {examples}", encoding="utf-8"
        )
        adapter = ScriptedAdapter(_SQL, _ANSWER)
        agent = SQLAgent(adapter, FakeDatabase(), renderer=FilePromptRenderer(tmp_path))

        with pytest.raises(PromptRenderError, match="examples"):
            agent.ask(_QUESTION)
        assert adapter.calls == []


# ── Token budget ─────────────────────────────────────────────────────────


class TestTokenBudget:
    """Test generation length sizing on both backend calls."""

    def test_both_calls_request_max_tokens(self) -> None:
        adapter = ScriptedAdapter(_SQL, _ANSWER)
        SQLAgent(adapter, FakeDatabase(rows=[{"count": 42}]), max_tokens=256).ask(_QUESTION)
        assert [request["max_tokens"] for _, request in adapter.calls] == [256, 256]

    def test_length_is_clamped_to_window(self) -> None:
        adapter = ScriptedAdapter(_SQL, _ANSWER)
        agent = SQLAgent(
            adapter,
            FakeDatabase(rows=[{"count": 42}]),
            token_counter=_fixed_counter(tokens_per_prompt=10, window=100),
            safety_margin=64,
        )
        agent.ask(_QUESTION)
        assert [request["max_tokens"] for _, request in adapter.calls] == [26, 26]

    def test_oversized_prompt_fails_before_generation(self) -> None:
        adapter = ScriptedAdapter(_SQL, _ANSWER)
        agent = SQLAgent(
            adapter,
            FakeDatabase(),
            token_counter=_fixed_counter(tokens_per_prompt=90, window=100),
            safety_margin=64,
        )
        with pytest.raises(TokenBudgetExceededError):
            agent.ask(_QUESTION)
        assert adapter.calls == []

    def test_unsupported_model_raises_when_enforced(self) -> None:
        adapter = ScriptedAdapter(_SQL, _ANSWER, model_id="meta.llama2-13b")
        with pytest.raises(UnsupportedModelError):
            SQLAgent(adapter, FakeDatabase()).ask(_QUESTION)

    def test_budget_can_be_disabled(self) -> None:
        adapter = ScriptedAdapter(_SQL, _ANSWER, model_id="meta.llama2-13b")
        agent = SQLAgent(
            adapter, FakeDatabase(rows=[{"count": 42}]), max_tokens=128, enforce_token_budget=False
        )
        assert agent.ask(_QUESTION) == _ANSWER
        assert [request["max_tokens"] for _, request in adapter.calls] == [128, 128]


# ── Progress reporting ───────────────────────────────────────────────────


class TestReporting:
    """Test step events emitted through the reporter."""

    def test_steps_in_order(self, spy_reporter: SpyReporter) -> None:
        agent = SQLAgent(
            ScriptedAdapter(_SQL, _ANSWER), FakeDatabase(rows=[{"count": 42}]), reporter=spy_reporter
        )
        agent.ask(_QUESTION)

        started = [e["step"] for e in spy_reporter.events if e["status"] == "started"]
        completed = [e["step"] for e in spy_reporter.events if e["status"] == "completed"]
        assert started == [state.value for state in AgentState]
        assert completed == started

    def test_failed_step_is_closed(self, spy_reporter: SpyReporter) -> None:
        agent = SQLAgent(
            ScriptedAdapter(error=BackendTransportError("down")),
            FakeDatabase(),
            reporter=spy_reporter,
        )
        with pytest.raises(BackendTransportError):
            agent.ask(_QUESTION)

        assert spy_reporter.events[-1] == {
            "step": AgentState.GENERATE_SQL.value,
            "status": "completed",
        }


# ── format_results ───────────────────────────────────────────────────────


class TestFormatResults:
    """Test row formatting for the answer prompt."""

    def test_rows(self) -> None:
        rows = [{"job": "analyst", "count": 2}, {"job": "engineer", "count": 1}]
        assert format_results(rows) == "job: analyst, count: 2\njob: engineer, count: 1"

    def test_empty(self) -> None:
        assert format_results([]) == NO_ROWS_TEXT
