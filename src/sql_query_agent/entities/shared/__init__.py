"""Shared utilities for the completion adapter and the agent."""

from .database import Database
from .parameters import NormalizedParameters, ParameterNormalizer, chat_parameters
from .prompts import FilePromptRenderer
from .token_counter import TokenCounter, TokenRule

__all__ = [
    "Database",
    "FilePromptRenderer",
    "NormalizedParameters",
    "ParameterNormalizer",
    "TokenCounter",
    "TokenRule",
    "chat_parameters",
]
