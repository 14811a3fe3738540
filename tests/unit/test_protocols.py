"""Production classes and test fakes satisfy the boundary protocols."""

from __future__ import annotations

from pathlib import Path

from sql_query_agent.entities.completion.adapter import BackendAdapter
from sql_query_agent.entities.completion.transport import HttpxCompletionTransport
from sql_query_agent.entities.shared.database import Database
from sql_query_agent.entities.shared.prompts import FilePromptRenderer
from sql_query_agent.entities.shared.protocols import (
    CompletionTransport,
    DatabaseHandle,
    NoOpReporter,
    ProgressReporter,
    PromptRenderer,
    TextGenerator,
)
from tests.conftest import FakeCompletionTransport, FakeDatabase, ScriptedAdapter, SpyReporter


def test_production_implementations() -> None:
    transport = HttpxCompletionTransport("https://bedrock.test", "key")
    try:
        assert isinstance(transport, CompletionTransport)
        assert isinstance(BackendAdapter(transport, "anthropic.claude-v2"), TextGenerator)
    finally:
        transport.close()
    assert isinstance(Database(), DatabaseHandle)
    assert isinstance(FilePromptRenderer(Path(".")), PromptRenderer)
    assert isinstance(NoOpReporter(), ProgressReporter)


def test_fakes() -> None:
    assert isinstance(FakeCompletionTransport(), CompletionTransport)
    assert isinstance(ScriptedAdapter(), TextGenerator)
    assert isinstance(FakeDatabase(), DatabaseHandle)
    assert isinstance(SpyReporter(), ProgressReporter)
