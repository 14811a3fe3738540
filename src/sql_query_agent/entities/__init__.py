"""
Entities package.

Each subdirectory groups one part of the agent:
- completion/: provider profiles, HTTP transport and the backend adapter
- shared/: protocols, errors, database handle, prompts, token counting, parameter normalization
- sql_agent/: the question-answering orchestrator and its factory

Shared models are available at the package level.
"""

from sql_query_agent.models import QueryResult, UniformResponse

__all__ = ["QueryResult", "UniformResponse"]
