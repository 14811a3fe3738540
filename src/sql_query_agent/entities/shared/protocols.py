"""Protocol interfaces for I/O boundaries.

These protocols enable dependency injection for testability.
Production implementations wrap httpx and SQLAlchemy; test fakes
return canned data with zero network or filesystem access.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from sql_query_agent.models import QueryResult, UniformResponse


@runtime_checkable
class CompletionTransport(Protocol):
    """Sends a composed request body to a text-generation backend.

    Transport and authentication failures are raised as
    ``BackendTransportError`` / ``AuthenticationError`` and are never
    retried by callers.
    """

    def invoke(self, model_id: str, body: Mapping[str, Any]) -> dict[str, Any]:
        """Invoke a model.

        Args:
            model_id: Provider-qualified model identifier.
            body: Wire parameters including the wrapped prompt.

        Returns:
            The decoded response payload.
        """
        ...


@runtime_checkable
class TextGenerator(Protocol):
    """Produces completions for one model; satisfied by ``BackendAdapter``."""

    @property
    def model_id(self) -> str:
        """Target model identifier (used for token budgeting)."""
        ...

    def complete(self, prompt: str, **request: Any) -> UniformResponse:
        """Generate a completion.

        Args:
            prompt: Unwrapped prompt text.
            **request: Canonical sampling fields such as ``max_tokens``.

        Returns:
            The provider-independent response.
        """
        ...


@runtime_checkable
class DatabaseHandle(Protocol):
    """Schema introspection and SQL execution.

    ``execute`` must never raise for database-level errors; it returns
    ``QueryResult.failed(...)`` instead.
    """

    def schema(self) -> str | None:
        """Return a DDL-like description of the database, if available."""
        ...

    def execute(self, sql: str) -> QueryResult:
        """Execute a SQL statement verbatim.

        Args:
            sql: Statement text.

        Returns:
            Success result with rows, or a failed result.
        """
        ...


@runtime_checkable
class PromptRenderer(Protocol):
    """Renders named prompt templates."""

    def render(self, template_id: str, variables: Mapping[str, Any]) -> str:
        """Render a template.

        Args:
            template_id: Template name, e.g. ``"sql_prompt"``.
            variables: Values for every placeholder in the template.

        Returns:
            The rendered prompt text.

        Raises:
            PromptRenderError: If the template is unknown or a variable is missing.
        """
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """Reports step-level progress of an ``ask()`` call."""

    def step_start(self, step: str) -> None:
        """Signal that a named step has started.

        Args:
            step: Step label.
        """
        ...

    def step_end(self, step: str) -> None:
        """Signal that a named step has completed.

        Args:
            step: Step label (must match a prior start).
        """
        ...


# ---------------------------------------------------------------------------
# Concrete implementations
# ---------------------------------------------------------------------------


class NoOpReporter:
    """ProgressReporter that silently discards all events.

    Useful in tests and batch contexts where nothing consumes progress.
    """

    def step_start(self, step: str) -> None:
        """No-op."""

    def step_end(self, step: str) -> None:
        """No-op."""
