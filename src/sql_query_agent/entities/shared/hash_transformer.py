"""Pure helpers for rewriting mapping keys into provider wire casing."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any


def camelize_lower(name: str) -> str:
    """Convert ``snake_case`` to ``lowerCamelCase``.

    Args:
        name: Underscore-separated name, e.g. ``apply_to_whitespaces``.

    Returns:
        The lower camel case form, e.g. ``applyToWhitespaces``.
    """
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def deep_transform_keys(value: Any, transform: Callable[[str], str]) -> Any:
    """Recursively apply ``transform`` to every mapping key.

    Nested mappings and lists are rebuilt; other values are returned as-is.

    Args:
        value: A mapping, list, or scalar.
        transform: Key rewriting function.

    Returns:
        A new structure with rewritten keys.
    """
    if isinstance(value, Mapping):
        return {transform(key): deep_transform_keys(item, transform) for key, item in value.items()}
    if isinstance(value, list):
        return [deep_transform_keys(item, transform) for item in value]
    return value
