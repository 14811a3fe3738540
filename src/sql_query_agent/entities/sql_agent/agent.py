"""SQL query agent: answers natural-language questions from a live database.

One ``ask()`` call runs a fixed sequence with no loops or retries:

1. render the SQL-generation prompt from the schema snapshot and question;
2. generate SQL with the backend;
3. execute the SQL verbatim;
4. render the answer-synthesis prompt from the question, SQL and rows;
5. generate the final answer.

Database failures degrade to an empty result set and the pipeline still
asks the backend for an answer. Backend, prompt and token-budget errors
propagate to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any

from sql_query_agent.entities.shared.prompts import FilePromptRenderer
from sql_query_agent.entities.shared.protocols import (
    DatabaseHandle,
    NoOpReporter,
    ProgressReporter,
    PromptRenderer,
    TextGenerator,
)
from sql_query_agent.entities.shared.token_counter import TokenCounter
from sql_query_agent.models import QueryResult

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"

SQL_PROMPT_ID = "sql_prompt"
ANSWER_PROMPT_ID = "answer_prompt"
SQL_DIALECT = "standard SQL"
NO_ROWS_TEXT = "No rows returned."

_DEFAULT_MAX_TOKENS = 300
_DEFAULT_SAFETY_MARGIN = 64


class AgentState(str, Enum):
    """Steps of one ``ask()`` pass, in execution order."""

    INIT = "Validating question"
    BUILD_SQL_PROMPT = "Building SQL prompt"
    GENERATE_SQL = "Generating SQL"
    EXECUTE_SQL = "Executing SQL"
    BUILD_ANSWER_PROMPT = "Building answer prompt"
    GENERATE_ANSWER = "Generating answer"
    DONE = "Done"


def format_results(rows: Sequence[dict[str, Any]]) -> str:
    """Format result rows as ``column: value`` pairs, one row per line.

    Args:
        rows: Result rows in order.

    Returns:
        Text for the answer prompt, or ``NO_ROWS_TEXT`` when empty.
    """
    if not rows:
        return NO_ROWS_TEXT
    return "\n".join(", ".join(f"{col}: {value}" for col, value in row.items()) for row in rows)


class SQLAgent:
    """Answers questions by generating, executing and explaining SQL.

    The schema snapshot is captured once, here. Schema changes made after
    construction are invisible until a new agent is built.

    Args:
        adapter: Completion backend for the target model.
        database: Schema source and SQL executor, owned by this agent.
        renderer: Prompt template renderer. Defaults to the packaged prompts.
        token_counter: Token counter used for budgeting.
        reporter: Progress reporter for each step.
        max_tokens: Largest generation length per call.
        safety_margin: Tokens held back from the context window per call.
        min_tokens: Smallest acceptable generation length.
        enforce_token_budget: Size ``max_tokens`` against the context window.
    """

    def __init__(  # noqa: PLR0913
        self,
        adapter: TextGenerator,
        database: DatabaseHandle,
        *,
        renderer: PromptRenderer | None = None,
        token_counter: TokenCounter | None = None,
        reporter: ProgressReporter | None = None,
        max_tokens: int = _DEFAULT_MAX_TOKENS,
        safety_margin: int = _DEFAULT_SAFETY_MARGIN,
        min_tokens: int = 1,
        enforce_token_budget: bool = True,
    ) -> None:
        self.adapter = adapter
        self.database = database
        self.renderer = renderer or FilePromptRenderer(PROMPTS_DIR)
        self.token_counter = token_counter or TokenCounter()
        self.reporter = reporter or NoOpReporter()
        self.max_tokens = max_tokens
        self.safety_margin = safety_margin
        self.min_tokens = min_tokens
        self.enforce_token_budget = enforce_token_budget
        self.schema = database.schema()

    @contextmanager
    def _step(self, state: AgentState) -> Iterator[None]:
        self.reporter.step_start(state.value)
        try:
            yield
        finally:
            self.reporter.step_end(state.value)

    def _generation_length(self, prompt: str) -> int:
        """Return ``max_tokens`` for ``prompt``, budgeted against the context window."""
        if not self.enforce_token_budget:
            return self.max_tokens
        budget = self.token_counter.token_budget(
            prompt,
            self.adapter.model_id,
            max_tokens=self.max_tokens,
            safety_margin=self.safety_margin,
            min_tokens=self.min_tokens,
        )
        return budget.max_tokens

    def _generate(self, prompt: str) -> str:
        max_tokens = self._generation_length(prompt)
        return self.adapter.complete(prompt, max_tokens=max_tokens).completion

    def create_prompt_for_sql(self, question: str) -> str:
        """Render the SQL-generation prompt."""
        return self.renderer.render(
            SQL_PROMPT_ID,
            {"dialect": SQL_DIALECT, "schema": self.schema or "", "question": question},
        )

    def create_prompt_for_answer(
        self,
        question: str,
        sql_query: str,
        rows: Sequence[dict[str, Any]],
    ) -> str:
        """Render the answer-synthesis prompt."""
        return self.renderer.render(
            ANSWER_PROMPT_ID,
            {"question": question, "sql_query": sql_query, "results": format_results(rows)},
        )

    def _rows_or_empty(self, result: QueryResult, sql: str) -> list[dict[str, Any]]:
        if result.success:
            return result.rows
        logger.warning(
            "SQL execution failed, continuing with no rows: %s (sql: %s)",
            result.error,
            sql[:200],
        )
        return []

    def ask(self, question: str) -> str:
        """Answer ``question`` from the database.

        Args:
            question: Natural-language question.

        Returns:
            The synthesized answer text.

        Raises:
            ValueError: ``question`` is blank.
            PromptRenderError: A template variable is missing.
            TokenBudgetExceededError: A prompt leaves no room for generation.
            BackendError: Transport, authentication or response failures.
            UnsupportedModelError: No token counting rule for the model.
        """
        with self._step(AgentState.INIT):
            if not question or not question.strip():
                raise ValueError("question must be a non-empty string")

        with self._step(AgentState.BUILD_SQL_PROMPT):
            sql_prompt = self.create_prompt_for_sql(question)

        with self._step(AgentState.GENERATE_SQL):
            logger.info("Passing the SQL prompt to %s", self.adapter.model_id)
            sql = self._generate(sql_prompt)

        with self._step(AgentState.EXECUTE_SQL):
            logger.info("Passing the SQL to the database: %s", sql[:200])
            rows = self._rows_or_empty(self.database.execute(sql), sql)

        with self._step(AgentState.BUILD_ANSWER_PROMPT):
            answer_prompt = self.create_prompt_for_answer(question, sql, rows)

        with self._step(AgentState.GENERATE_ANSWER):
            logger.info(
                "Passing the answer prompt to %s with %d row(s)",
                self.adapter.model_id,
                len(rows),
            )
            answer = self._generate(answer_prompt)

        with self._step(AgentState.DONE):
            logger.info("Answer ready (%d chars)", len(answer))

        return answer
