"""Multi-provider completion dispatch.

``BackendAdapter`` accepts a canonical request and returns a
``UniformResponse`` while hiding each provider family's prompt wrapping,
wire vocabulary and response shape. The provider profile is resolved
once, at construction.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from sql_query_agent.entities.completion.providers import (
    BASE_ALIASES,
    BASE_SCHEMA,
    DEFAULTS,
    ProviderKind,
    ProviderProfile,
    get_profile,
)
from sql_query_agent.entities.shared.parameters import ParameterNormalizer
from sql_query_agent.entities.shared.protocols import CompletionTransport
from sql_query_agent.models import UniformResponse

logger = logging.getLogger(__name__)


class BackendAdapter:
    """Completion client for one model, independent of its provider's wire format.

    Args:
        transport: Sends composed bodies to the backend.
        model_id: Provider-qualified model identifier, e.g. ``anthropic.claude-v2``.
        default_options: Canonical parameter overrides applied to every call.

    Raises:
        UnsupportedProviderError: The model's provider family is not supported.
    """

    def __init__(
        self,
        transport: CompletionTransport,
        model_id: str,
        default_options: Mapping[str, Any] | None = None,
    ) -> None:
        self._transport = transport
        self._model_id = model_id
        self._kind = ProviderKind.from_model_id(model_id)
        self._profile = get_profile(self._kind)
        self._defaults: Mapping[str, Any] = MappingProxyType({**DEFAULTS, **(default_options or {})})

    @property
    def model_id(self) -> str:
        """Target model identifier."""
        return self._model_id

    @property
    def provider(self) -> ProviderKind:
        """Provider family of the target model."""
        return self._kind

    @property
    def profile(self) -> ProviderProfile:
        """Wire profile of the provider family."""
        return self._profile

    @property
    def defaults(self) -> Mapping[str, Any]:
        """Read-only canonical defaults merged into every call."""
        return self._defaults

    def normalizer(self) -> ParameterNormalizer:
        """Build a fresh normalizer for this provider's canonical fields."""
        return ParameterNormalizer(BASE_SCHEMA, BASE_ALIASES).extend(
            self._profile.schema,
            self._profile.aliases,
        )

    def wrap_prompt(self, prompt: str) -> str:
        """Apply the provider's prompt wrapping rule."""
        return self._profile.wrap_prompt(prompt)

    def compose_parameters(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Translate a canonical request into this provider's wire parameters.

        Caller values are normalized first so aliases resolve against what
        the caller sent; unset or ``None`` fields then fall back to the
        adapter defaults.

        Args:
            request: Canonical (or aliased) sampling fields.

        Returns:
            Wire parameters, without the prompt.
        """
        resolved = self.normalizer().resolve(request)
        merged = {**self._defaults, **{k: v for k, v in resolved.items() if v is not None}}
        return self._profile.compose_parameters(merged)

    def complete(self, prompt: str, **request: Any) -> UniformResponse:
        """Generate a completion for ``prompt``.

        Args:
            prompt: Caller prompt text, unwrapped.
            **request: Canonical sampling fields, e.g. ``max_tokens=256``.

        Returns:
            The provider-independent response.

        Raises:
            BackendTransportError: Network failure or non-success status.
            AuthenticationError: The backend rejected the credentials.
            BackendResponseError: The payload could not be parsed.
        """
        body = self.compose_parameters(request)
        body["prompt"] = self.wrap_prompt(prompt)

        logger.info(
            "Invoking %s (%s) with %s=%s",
            self._model_id,
            self._kind.value,
            self._profile.max_tokens_key,
            body.get(self._profile.max_tokens_key),
        )
        raw = self._transport.invoke(self._model_id, body)
        response = self._profile.parse_response(raw, self._model_id)

        logger.info(
            "Completion from %s: %d chars (prompt_tokens=%s, completion_tokens=%s)",
            self._model_id,
            len(response.completion),
            response.prompt_tokens,
            response.completion_tokens,
        )
        return response
