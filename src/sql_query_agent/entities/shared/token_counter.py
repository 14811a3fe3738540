"""Token counting and generation budgets per model family.

Different provider families tokenize text differently. Each family
registers a ``TokenRule``: a pure counting function plus the context
window sizes of its models. The family is the part of the model
identifier before the first ``.`` (``anthropic.claude-v2`` → ``anthropic``).

Counts are estimates tuned to err on the high side so that budgets stay
inside the real window.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from sql_query_agent.entities.shared.errors import TokenBudgetExceededError, UnsupportedModelError
from sql_query_agent.models import TokenBudget

logger = logging.getLogger(__name__)

_WORD_PIECE_RE = re.compile(r"\w+|[^\w\s]+")
_WORD_RE = re.compile(r"\w+")
_PUNCT_RE = re.compile(r"[^\w\s]")

_COHERE_PIECE_LENGTH = 6
_ANTHROPIC_CHARS_PER_TOKEN = 3.5


def model_family(model_id: str) -> str:
    """Return the provider family prefix of a model identifier."""
    return model_id.split(".", 1)[0]


def _count_anthropic(text: str) -> int:
    """Character-based estimate for Claude models."""
    return math.ceil(len(text) / _ANTHROPIC_CHARS_PER_TOKEN)


def _count_cohere(text: str) -> int:
    """Word-piece estimate: long words split into fixed-size pieces."""
    return sum(math.ceil(len(piece) / _COHERE_PIECE_LENGTH) for piece in _WORD_PIECE_RE.findall(text))


def _count_ai21(text: str) -> int:
    """Jurassic vocabulary holds whole words; punctuation is tokenized separately."""
    return len(_WORD_RE.findall(text)) + len(_PUNCT_RE.findall(text))


@dataclass(frozen=True)
class TokenRule:
    """Counting function and context windows for one provider family.

    Attributes:
        count: Pure function mapping text to a token count.
        default_context_window: Window used when the model is not listed.
        context_windows: Model identifier → context window.
    """

    count: Callable[[str], int]
    default_context_window: int
    context_windows: Mapping[str, int] = field(default_factory=dict)

    def context_window(self, model_id: str) -> int:
        """Return the context window for ``model_id``."""
        return self.context_windows.get(model_id, self.default_context_window)


_BUILTIN_RULES: Mapping[str, TokenRule] = MappingProxyType({
    "anthropic": TokenRule(
        count=_count_anthropic,
        default_context_window=100_000,
        context_windows=MappingProxyType({
            "anthropic.claude-v1": 100_000,
            "anthropic.claude-v2": 100_000,
            "anthropic.claude-v2:1": 200_000,
            "anthropic.claude-instant-v1": 100_000,
        }),
    ),
    "cohere": TokenRule(
        count=_count_cohere,
        default_context_window=4_096,
        context_windows=MappingProxyType({
            "cohere.command-text-v14": 4_096,
            "cohere.command-light-text-v14": 4_096,
        }),
    ),
    "ai21": TokenRule(
        count=_count_ai21,
        default_context_window=8_191,
        context_windows=MappingProxyType({
            "ai21.j2-mid-v1": 8_191,
            "ai21.j2-ultra-v1": 8_191,
        }),
    ),
})


class TokenCounter:
    """Estimates token counts and context windows per model family.

    Each instance starts from the built-in rules; ``register()`` only
    affects that instance.
    """

    def __init__(self, rules: Mapping[str, TokenRule] | None = None) -> None:
        self._rules: dict[str, TokenRule] = dict(_BUILTIN_RULES)
        if rules:
            self._rules.update(rules)

    def register(self, family: str, rule: TokenRule) -> TokenCounter:
        """Add or replace the counting rule for ``family``."""
        self._rules[family] = rule
        return self

    def supports(self, model_id: str) -> bool:
        """Return True if a rule exists for the model's family."""
        return model_family(model_id) in self._rules

    def _rule(self, model_id: str) -> TokenRule:
        rule = self._rules.get(model_family(model_id))
        if rule is None:
            raise UnsupportedModelError(model_id)
        return rule

    def count(self, text: str, model_id: str) -> int:
        """Count the tokens ``text`` costs for ``model_id``.

        Raises:
            UnsupportedModelError: No rule is registered for the family.
        """
        return self._rule(model_id).count(text)

    def context_window(self, model_id: str) -> int:
        """Return the context window size for ``model_id``.

        Raises:
            UnsupportedModelError: No rule is registered for the family.
        """
        return self._rule(model_id).context_window(model_id)

    def token_budget(
        self,
        prompt: str,
        model_id: str,
        *,
        max_tokens: int,
        safety_margin: int = 0,
        min_tokens: int = 1,
    ) -> TokenBudget:
        """Size the generation length for ``prompt`` against the context window.

        The remainder is ``context_window - prompt_tokens - safety_margin``.
        The granted length is ``min(max_tokens, remainder)``.

        Args:
            prompt: Fully rendered prompt text.
            model_id: Target model identifier.
            max_tokens: Largest generation length to request.
            safety_margin: Tokens held back from the window.
            min_tokens: Smallest acceptable generation length (at least 1).

        Returns:
            The computed ``TokenBudget``.

        Raises:
            TokenBudgetExceededError: The remainder is below ``min_tokens``.
            UnsupportedModelError: No rule is registered for the family.
        """
        prompt_tokens = self.count(prompt, model_id)
        window = self.context_window(model_id)
        remaining = window - prompt_tokens - safety_margin

        if remaining < max(min_tokens, 1):
            raise TokenBudgetExceededError(model_id, prompt_tokens, window, safety_margin)

        granted = min(max_tokens, remaining)
        logger.debug(
            "Token budget for %s: window=%d prompt=%d margin=%d granted=%d",
            model_id,
            window,
            prompt_tokens,
            safety_margin,
            granted,
        )
        return TokenBudget(
            model_id=model_id,
            context_window=window,
            prompt_tokens=prompt_tokens,
            safety_margin=safety_margin,
            max_tokens=granted,
        )
