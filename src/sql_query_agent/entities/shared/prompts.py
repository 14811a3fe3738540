"""File-backed prompt templates.

Templates are Markdown files named ``<template_id>.md`` whose
placeholders use ``str.format`` syntax (``{question}``). Literal braces
are written doubled (``{{`` / ``}}``).
"""

from __future__ import annotations

import logging
import string
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from sql_query_agent.entities.shared.errors import PromptRenderError

logger = logging.getLogger(__name__)

_FORMATTER = string.Formatter()


def template_fields(template: str) -> list[str]:
    """Return the placeholder names used by ``template`` in order of appearance.

    Raises:
        PromptRenderError: If the template has unbalanced braces.
    """
    try:
        parsed = list(_FORMATTER.parse(template))
    except ValueError as exc:
        raise PromptRenderError(f"Malformed prompt template: {exc}") from exc

    fields: list[str] = []
    for _, field_name, _, _ in parsed:
        if field_name is None:
            continue
        root = field_name.split(".", 1)[0].split("[", 1)[0]
        if root and root not in fields:
            fields.append(root)
    return fields


def render_template(template: str, variables: Mapping[str, Any], template_id: str = "") -> str:
    """Fill ``template`` with ``variables``.

    Args:
        template: Template text.
        variables: Placeholder values. Extra keys are ignored.
        template_id: Name used in error messages.

    Returns:
        The rendered text.

    Raises:
        PromptRenderError: If a placeholder has no value.
    """
    missing = [name for name in template_fields(template) if name not in variables]
    if missing:
        raise PromptRenderError(
            f"Missing variable(s) for prompt '{template_id}': {', '.join(missing)}"
        )
    return template.format_map(dict(variables))


class FilePromptRenderer:
    """``PromptRenderer`` reading ``<template_id>.md`` files from a directory.

    Templates are read lazily and kept for the lifetime of the renderer.

    Args:
        prompts_dir: Directory holding the template files.
    """

    def __init__(self, prompts_dir: Path | str) -> None:
        self._prompts_dir = Path(prompts_dir)
        self._templates: dict[str, str] = {}

    def load(self, template_id: str) -> str:
        """Return the raw text of ``template_id``.

        Raises:
            PromptRenderError: If the file does not exist.
        """
        if template_id not in self._templates:
            path = self._prompts_dir / f"{template_id}.md"
            if not path.is_file():
                raise PromptRenderError(f"Prompt template not found: {path}")
            self._templates[template_id] = path.read_text(encoding="utf-8")
            logger.debug("Loaded prompt template '%s' from %s", template_id, path)
        return self._templates[template_id]

    def render(self, template_id: str, variables: Mapping[str, Any]) -> str:
        """Render ``template_id`` with ``variables``."""
        return render_template(self.load(template_id), variables, template_id)
