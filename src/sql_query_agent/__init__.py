"""Natural-language question answering over a relational database."""

from .entities.completion import BackendAdapter, ProviderKind
from .entities.shared import Database, ParameterNormalizer, TokenCounter
from .entities.sql_agent import SQLAgent, create_sql_agent

__all__ = [
    "BackendAdapter",
    "Database",
    "ParameterNormalizer",
    "ProviderKind",
    "SQLAgent",
    "TokenCounter",
    "create_sql_agent",
]
