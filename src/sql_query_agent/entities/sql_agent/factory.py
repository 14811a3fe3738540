"""Builds a production ``SQLAgent`` from application settings.

Production code calls ``create_sql_agent()``; tests construct ``SQLAgent``
directly from in-memory fakes.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sql_query_agent.config.settings import Settings, get_settings
from sql_query_agent.entities.completion.adapter import BackendAdapter
from sql_query_agent.entities.completion.transport import HttpxCompletionTransport, runtime_endpoint
from sql_query_agent.entities.shared.database import Database
from sql_query_agent.entities.shared.prompts import FilePromptRenderer
from sql_query_agent.entities.shared.protocols import NoOpReporter, ProgressReporter
from sql_query_agent.entities.shared.token_counter import TokenCounter
from sql_query_agent.entities.sql_agent.agent import PROMPTS_DIR, SQLAgent

logger = logging.getLogger(__name__)


def create_sql_agent(
    settings: Settings | None = None,
    reporter: ProgressReporter | None = None,
) -> SQLAgent:
    """Build an ``SQLAgent`` wired to the configured backend and database.

    No module-level singletons are created; each call produces a fresh,
    self-contained agent with its own database handle.

    Args:
        settings: Application configuration. Defaults to ``get_settings()``.
        reporter: Optional progress reporter. Defaults to ``NoOpReporter``.

    Returns:
        A ready-to-use ``SQLAgent``.

    Raises:
        ConfigurationError: Unsupported provider family or unusable database URL.
    """
    settings = settings or get_settings()

    # -- Completion backend ------------------------------------------------
    transport = HttpxCompletionTransport(
        endpoint=settings.bedrock_endpoint or runtime_endpoint(settings.bedrock_region),
        api_key=settings.bedrock_api_key,
        timeout=settings.request_timeout_seconds,
    )
    adapter = BackendAdapter(
        transport,
        settings.completion_model_id,
        default_options={"max_tokens": settings.max_output_tokens},
    )

    # -- Database ----------------------------------------------------------
    database = Database(
        settings.database_url,
        use_azure_ad=settings.sql_use_azure_ad,
        azure_client_id=settings.azure_client_id,
        max_rows=settings.max_result_rows,
    )

    # -- Prompts -----------------------------------------------------------
    prompts_dir = Path(settings.prompts_dir) if settings.prompts_dir else PROMPTS_DIR

    logger.info(
        "Creating SQL agent for model %s (provider %s)",
        adapter.model_id,
        adapter.provider.value,
    )
    return SQLAgent(
        adapter,
        database,
        renderer=FilePromptRenderer(prompts_dir),
        token_counter=TokenCounter(),
        reporter=reporter or NoOpReporter(),
        max_tokens=settings.max_output_tokens,
        safety_margin=settings.token_safety_margin,
        min_tokens=settings.min_generation_tokens,
        enforce_token_budget=settings.enforce_token_budget,
    )
