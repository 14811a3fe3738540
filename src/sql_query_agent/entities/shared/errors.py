"""Exception taxonomy for the SQL query agent.

Only database execution failures are recovered locally (inside
``Database.execute``). Everything else propagates to the caller of
``SQLAgent.ask()``.
"""

from __future__ import annotations


class SQLAgentError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(SQLAgentError):
    """Invalid configuration detected while constructing a component."""


class UnsupportedProviderError(ConfigurationError):
    """The model identifier names a provider family with no profile."""

    def __init__(self, family: str, model_id: str = "") -> None:
        self.family = family
        self.model_id = model_id
        super().__init__(f"Completion provider '{family}' is not supported (model: '{model_id}')")


class UnsupportedModelError(SQLAgentError):
    """No token counting rule is registered for the model's family."""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"No token counting rule registered for model '{model_id}'")


class PromptRenderError(SQLAgentError):
    """A prompt template could not be loaded or rendered."""


class DatabaseExecutionError(SQLAgentError):
    """A statement failed inside the database.

    Built and logged by ``Database.execute``; never raised out of it.
    """

    def __init__(self, sql: str, cause: Exception) -> None:
        self.sql = sql
        self.cause = cause
        super().__init__(f"{type(cause).__name__}: {cause}")


class BackendError(SQLAgentError):
    """Base class for failures talking to the completion backend."""


class BackendTransportError(BackendError):
    """Network failure or non-success HTTP status from the backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AuthenticationError(BackendError):
    """The backend rejected the request credentials."""


class BackendResponseError(BackendError):
    """The backend payload did not have the shape its provider promises."""


class TokenBudgetExceededError(SQLAgentError):
    """The rendered prompt leaves no room for generation in the context window."""

    def __init__(
        self,
        model_id: str,
        prompt_tokens: int,
        context_window: int,
        safety_margin: int,
    ) -> None:
        self.model_id = model_id
        self.prompt_tokens = prompt_tokens
        self.context_window = context_window
        self.safety_margin = safety_margin
        remaining = context_window - prompt_tokens - safety_margin
        super().__init__(
            f"Prompt uses {prompt_tokens} tokens of the {context_window}-token window "
            f"for '{model_id}' (safety margin {safety_margin}); {remaining} left for generation"
        )
