"""
Shared models for entities.

These models are used across the completion adapter, the database
boundary and the agent.
"""

from .execution import QueryResult
from .generation import TokenBudget, UniformResponse

__all__ = [
    # Execution (query results)
    "QueryResult",
    # Generation (completion responses and budgets)
    "TokenBudget",
    "UniformResponse",
]
