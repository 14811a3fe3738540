"""Schema- and alias-driven normalization of sampling parameters.

A ``ParameterNormalizer`` declares which canonical fields a backend call
accepts (the *schema*) and which alternate names map onto them (the
*aliases*). ``resolve()`` turns an arbitrary caller mapping into a
``NormalizedParameters`` holding only canonical fields.

Precedence: a canonical value that is set (anything but ``None`` or
``False``) is never replaced by a value reachable only through an alias.
Zero, empty strings and empty lists count as set.

Every normalizer owns its schema, aliases and cache. Module-level
templates are copied on construction and never mutated.
"""

from __future__ import annotations

import copy
import operator
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

SchemaInput = Mapping[str, Mapping[str, Any]] | Iterable[str]


class NormalizedParameters(Mapping[str, Any]):
    """Read-only canonical parameter mapping produced by ``resolve()``.

    Iteration order is schema declaration order followed by alias
    application order. Equality and ordering compare the canonical
    mappings.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = dict(values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NormalizedParameters):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, NormalizedParameters):
            return NotImplemented
        key = operator.itemgetter(0)
        return sorted(self._values.items(), key=key) < sorted(other._values.items(), key=key)

    def __le__(self, other: object) -> bool:
        if not isinstance(other, NormalizedParameters):
            return NotImplemented
        return self == other or self < other

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, NormalizedParameters):
            return NotImplemented
        return other < self

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, NormalizedParameters):
            return NotImplemented
        return self == other or other < self

    def __repr__(self) -> str:
        return f"NormalizedParameters({self._values!r})"

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable copy of the canonical mapping."""
        return dict(self._values)


def _same_values(cached: dict[str, Any], raw: dict[str, Any]) -> bool:
    # 0 == False, but only False lets an alias fill the field
    return cached == raw and all(type(cached[key]) is type(raw[key]) for key in raw)


def _coerce_schema(schema: SchemaInput | None) -> dict[str, dict[str, Any]]:
    if schema is None:
        return {}
    if isinstance(schema, Mapping):
        return {name: copy.deepcopy(dict(meta or {})) for name, meta in schema.items()}
    return {name: {} for name in schema}


class ParameterNormalizer:
    """Maps caller-supplied fields onto a declared canonical field set.

    Args:
        schema: Canonical field name → metadata mapping, or an iterable of names.
        aliases: Alternate field name → canonical field name.
    """

    def __init__(
        self,
        schema: SchemaInput | None = None,
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self._schema: dict[str, dict[str, Any]] = _coerce_schema(schema)
        self._aliases: dict[str, str] = dict(aliases or {})
        self._cache: tuple[dict[str, Any], NormalizedParameters] | None = None

    @classmethod
    def null(cls, aliases: Mapping[str, str] | None = None) -> ParameterNormalizer:
        """Build a normalizer with an empty schema; only aliased fields survive."""
        return cls(schema={}, aliases=aliases)

    @property
    def schema(self) -> Mapping[str, Mapping[str, Any]]:
        """Read-only view of the declared canonical fields."""
        return MappingProxyType(self._schema)

    @property
    def aliases(self) -> Mapping[str, str]:
        """Read-only view of the alias table."""
        return MappingProxyType(self._aliases)

    def extend(
        self,
        schema: SchemaInput | None = None,
        aliases: Mapping[str, str] | None = None,
    ) -> ParameterNormalizer:
        """Merge additional fields and aliases into this normalizer.

        Args:
            schema: Fields to add (or whose metadata to replace).
            aliases: Aliases to add (or redirect).

        Returns:
            This normalizer, for chaining.
        """
        self._schema.update(_coerce_schema(schema))
        self._aliases.update(aliases or {})
        self._cache = None
        return self

    def alias_field(self, canonical: str, *, as_: str) -> ParameterNormalizer:
        """Accept ``as_`` as an alternate name for ``canonical``."""
        return self.extend(aliases={as_: canonical})

    def resolve(self, raw_values: Mapping[str, Any]) -> NormalizedParameters:
        """Normalize ``raw_values`` onto the canonical field set.

        Fields declared in the schema are copied in declaration order.
        Then, for each alias, the aliased value fills its canonical field
        only when that field is unset, ``None`` or ``False``.

        Args:
            raw_values: Caller-supplied fields in any vocabulary.

        Returns:
            The canonical parameters for this call.
        """
        raw = dict(raw_values)
        if self._cache is not None and _same_values(self._cache[0], raw):
            return self._cache[1]

        resolved = {name: raw[name] for name in self._schema if name in raw}
        for alias, canonical in self._aliases.items():
            current = resolved.get(canonical)
            if (current is None or current is False) and alias in raw:
                resolved[canonical] = raw[alias]

        result = NormalizedParameters(resolved)
        self._cache = (raw, result)
        return result

    def __repr__(self) -> str:
        return f"ParameterNormalizer(schema={list(self._schema)!r}, aliases={self._aliases!r})"


# ---------------------------------------------------------------------------
# Chat preset
# ---------------------------------------------------------------------------

_CHAT_FIELDS: tuple[str, ...] = (
    "messages",
    "model",
    "prompt",
    "response_format",
    "stop",
    "stream",
    "max_tokens",
    "temperature",
    "top_p",
    "top_k",
    "frequency_penalty",
    "presence_penalty",
    "repetition_penalty",
    "seed",
    "tools",
    "tool_choice",
    "logit_bias",
)


def chat_parameters(aliases: Mapping[str, str] | None = None) -> ParameterNormalizer:
    """Return a fresh normalizer declaring the common chat-completion fields."""
    return ParameterNormalizer(schema=_CHAT_FIELDS, aliases=aliases)
