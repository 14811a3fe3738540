"""SQL query agent and its production factory."""

from .agent import AgentState, SQLAgent
from .factory import create_sql_agent

__all__ = ["AgentState", "SQLAgent", "create_sql_agent"]
