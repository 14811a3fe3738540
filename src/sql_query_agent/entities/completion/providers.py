"""Provider profiles for text-completion backends.

Each supported provider family is a ``ProviderKind`` member mapped to a
``ProviderProfile`` describing how that family wraps prompts, names its
wire parameters and shapes its responses. The profile table is closed:
an unknown family fails with ``UnsupportedProviderError`` instead of
falling through to a default.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from sql_query_agent.entities.shared.errors import BackendResponseError, UnsupportedProviderError
from sql_query_agent.entities.shared.hash_transformer import camelize_lower, deep_transform_keys
from sql_query_agent.models import UniformResponse

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Supported completion provider families."""

    ANTHROPIC = "anthropic"
    COHERE = "cohere"
    AI21 = "ai21"

    @classmethod
    def from_model_id(cls, model_id: str) -> ProviderKind:
        """Classify a model identifier by the text before its first ``.``.

        Raises:
            UnsupportedProviderError: The family is not supported.
        """
        family = model_id.split(".", 1)[0]
        try:
            return cls(family)
        except ValueError:
            raise UnsupportedProviderError(family, model_id) from None


# ── Canonical vocabulary ─────────────────────────────────────────────────

PENALTY_FLAGS: tuple[str, ...] = (
    "apply_to_whitespaces",
    "apply_to_punctuations",
    "apply_to_numbers",
    "apply_to_stopwords",
    "apply_to_emojis",
)

PENALTY_FIELDS: tuple[str, ...] = ("count_penalty", "presence_penalty", "frequency_penalty")


def _neutral_penalty() -> dict[str, Any]:
    return {"scale": 0, **dict.fromkeys(PENALTY_FLAGS, False)}


BASE_SCHEMA: Mapping[str, Mapping[str, Any]] = MappingProxyType({
    "max_tokens": {"type": "integer"},
    "temperature": {"type": "number"},
    "top_p": {"type": "number"},
    "top_k": {"type": "integer"},
    "stop_sequences": {"type": "array"},
})

BASE_ALIASES: Mapping[str, str] = MappingProxyType({
    "max_tokens_to_sample": "max_tokens",
    "max_output_tokens": "max_tokens",
    "p": "top_p",
    "k": "top_k",
    "stop": "stop_sequences",
})

DEFAULTS: Mapping[str, Any] = MappingProxyType({
    "max_tokens": 300,
    "temperature": 1,
    "top_k": 250,
    "top_p": 0.999,
    "stop_sequences": ("\n\nHuman:",),
    "anthropic_version": "bedrock-2023-05-31",
    "return_likelihoods": "NONE",
    **{name: MappingProxyType(_neutral_penalty()) for name in PENALTY_FIELDS},
})


# ── Prompt wrapping ──────────────────────────────────────────────────────


def wrap_dialogue(prompt: str) -> str:
    """Wrap ``prompt`` as a single Human/Assistant dialogue turn."""
    return f"\n\nHuman: {prompt}\n\nAssistant:"


def pass_through(prompt: str) -> str:
    """Return ``prompt`` unchanged."""
    return prompt


# ── Parameter composers ──────────────────────────────────────────────────


def _list_or_none(value: Any) -> list[Any] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return list(value)


def compose_anthropic(params: Mapping[str, Any]) -> dict[str, Any]:
    """Map canonical parameters to the Anthropic text-completion body."""
    return {
        "max_tokens_to_sample": params["max_tokens"],
        "temperature": params["temperature"],
        "top_k": params["top_k"],
        "top_p": params["top_p"],
        "stop_sequences": _list_or_none(params["stop_sequences"]),
        "anthropic_version": params["anthropic_version"],
    }


def compose_cohere(params: Mapping[str, Any]) -> dict[str, Any]:
    """Map canonical parameters to the Cohere generate body."""
    return {
        "max_tokens": params["max_tokens"],
        "temperature": params["temperature"],
        "p": params["top_p"],
        "k": params["top_k"],
        "stop_sequences": _list_or_none(params["stop_sequences"]),
        "return_likelihoods": params["return_likelihoods"],
    }


def _penalty_group(value: Mapping[str, Any] | None) -> dict[str, Any]:
    group = _neutral_penalty()
    group.update(value or {})
    return {key: group[key] for key in ("scale", *PENALTY_FLAGS)}


def compose_ai21(params: Mapping[str, Any]) -> dict[str, Any]:
    """Map canonical parameters to the AI21 Jurassic body (camelCase, nested penalties)."""
    body = {
        "max_tokens": params["max_tokens"],
        "temperature": params["temperature"],
        "top_p": params["top_p"],
        "stop_sequences": _list_or_none(params["stop_sequences"]),
        **{name: _penalty_group(params.get(name)) for name in PENALTY_FIELDS},
    }
    return deep_transform_keys(body, camelize_lower)


# ── Response parsers ─────────────────────────────────────────────────────


def _int_or_none(value: Any) -> int | None:
    return int(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else None


def _uniform(
    completion: Any,
    raw: dict[str, Any],
    model_id: str,
    prompt_tokens: int | None,
    completion_tokens: int | None,
    total_tokens: int | None = None,
) -> UniformResponse:
    if not isinstance(completion, str):
        raise BackendResponseError(f"Completion text missing from {model_id} response")
    if total_tokens is None and prompt_tokens is not None and completion_tokens is not None:
        total_tokens = prompt_tokens + completion_tokens
    return UniformResponse(
        completion=completion,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
        model=model_id,
        raw_response=raw,
    )


def parse_anthropic(raw: dict[str, Any], model_id: str) -> UniformResponse:
    """Parse ``{"completion": ..., "stop_reason": ...}`` payloads."""
    usage = raw.get("usage") or {}
    metrics = raw.get("amazon-bedrock-invocationMetrics") or {}
    return _uniform(
        raw.get("completion"),
        raw,
        model_id,
        _int_or_none(usage.get("input_tokens", metrics.get("inputTokenCount"))),
        _int_or_none(usage.get("output_tokens", metrics.get("outputTokenCount"))),
    )


def parse_cohere(raw: dict[str, Any], model_id: str) -> UniformResponse:
    """Parse ``{"generations": [{"text": ...}], "meta": {...}}`` payloads."""
    generations = raw.get("generations") or []
    if not generations or not isinstance(generations[0], dict):
        raise BackendResponseError(f"No generations in {model_id} response")
    billed = (raw.get("meta") or {}).get("billed_units") or {}
    return _uniform(
        generations[0].get("text"),
        raw,
        model_id,
        _int_or_none(billed.get("input_tokens")),
        _int_or_none(billed.get("output_tokens")),
    )


def parse_ai21(raw: dict[str, Any], model_id: str) -> UniformResponse:
    """Parse ``{"prompt": {...}, "completions": [{"data": {"text": ...}}]}`` payloads."""
    completions = raw.get("completions") or []
    if not completions or not isinstance(completions[0], dict):
        raise BackendResponseError(f"No completions in {model_id} response")
    data = completions[0].get("data") or {}
    prompt_token_list = (raw.get("prompt") or {}).get("tokens")
    completion_token_list = data.get("tokens")
    return _uniform(
        data.get("text"),
        raw,
        model_id,
        len(prompt_token_list) if isinstance(prompt_token_list, list) else None,
        len(completion_token_list) if isinstance(completion_token_list, list) else None,
    )


# ── Profile table ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProviderProfile:
    """Wire behavior of one provider family.

    Attributes:
        kind: Provider family.
        wrap_prompt: Turns caller text into the provider's prompt form.
        compose_parameters: Maps canonical parameters to wire fields.
        parse_response: Turns a decoded payload into a ``UniformResponse``.
        max_tokens_key: Wire field holding the generation length.
        schema: Provider-specific canonical fields layered on ``BASE_SCHEMA``.
        aliases: Provider-specific aliases layered on ``BASE_ALIASES``.
    """

    kind: ProviderKind
    wrap_prompt: Callable[[str], str]
    compose_parameters: Callable[[Mapping[str, Any]], dict[str, Any]]
    parse_response: Callable[[dict[str, Any], str], UniformResponse]
    max_tokens_key: str
    schema: Mapping[str, Mapping[str, Any]] = field(default_factory=lambda: MappingProxyType({}))
    aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


PROVIDER_PROFILES: Mapping[ProviderKind, ProviderProfile] = MappingProxyType({
    ProviderKind.ANTHROPIC: ProviderProfile(
        kind=ProviderKind.ANTHROPIC,
        wrap_prompt=wrap_dialogue,
        compose_parameters=compose_anthropic,
        parse_response=parse_anthropic,
        max_tokens_key="max_tokens_to_sample",
        schema=MappingProxyType({"anthropic_version": {"type": "string"}}),
    ),
    ProviderKind.COHERE: ProviderProfile(
        kind=ProviderKind.COHERE,
        wrap_prompt=pass_through,
        compose_parameters=compose_cohere,
        parse_response=parse_cohere,
        max_tokens_key="max_tokens",
        schema=MappingProxyType({"return_likelihoods": {"type": "string"}}),
    ),
    ProviderKind.AI21: ProviderProfile(
        kind=ProviderKind.AI21,
        wrap_prompt=pass_through,
        compose_parameters=compose_ai21,
        parse_response=parse_ai21,
        max_tokens_key="maxTokens",
        schema=MappingProxyType({name: {"type": "object"} for name in PENALTY_FIELDS}),
        aliases=MappingProxyType({
            "maxTokens": "max_tokens",
            "topP": "top_p",
            "stopSequences": "stop_sequences",
            "countPenalty": "count_penalty",
            "presencePenalty": "presence_penalty",
            "frequencyPenalty": "frequency_penalty",
        }),
    ),
})


def get_profile(kind: ProviderKind) -> ProviderProfile:
    """Return the profile for ``kind``."""
    return PROVIDER_PROFILES[kind]
