"""
StoreChat Pipeline Orchestrator

Runs the agents in a fixed order for one tenant question:
- ContextAgent → SQLAgent → ValidatorAgent → ExecutorAgent → chart compiler
- Every arrow is a hard gate: the first Err stops the run
- No retries, no partial results
- Only ask_or_raise() turns an Err into user-facing text
"""

import logging
import time

from storechat.agents import ContextAgent, ExecutorAgent, SQLAgent, SQLValidator, ValidatorAgent
from storechat.charts import to_chart_config
from storechat.config import Settings
from storechat.connectors import BaseConnector
from storechat.llm import BaseLLMProvider, CompletionClient, OpenAIProvider
from storechat.models import (
    MAX_QUESTION_LENGTH,
    ChartMeta,
    ContextAgentInput,
    Err,
    ErrorKind,
    ExecutorAgentInput,
    GeneratedQuery,
    Ok,
    PipelineAnswer,
    Question,
    Result,
    SQLAgentInput,
    ValidatorAgentInput,
)

DEFAULT_SUGGESTIONS: tuple[str, ...] = (
    "What was my total revenue this month?",
    "What are my top 5 selling products?",
    "How many new customers did I get this week?",
    "What is my average order value?",
    "Show revenue trend for the last 30 days",
    "Which product categories perform best?",
)

TENANT_PLACEHOLDER_INDEX = 1


def get_suggestions() -> list[str]:
    """Starter questions for an empty conversation (a fresh copy each call)."""
    return list(DEFAULT_SUGGESTIONS)


class QueryPipeline:
    """
    Question → answer pipeline for one store.

    Flow:
        1. Question validation (tenant UUID, non-empty, bounded length)
        2. ContextAgent: store statistics
        3. SQLAgent: candidate SQL from the completion endpoint
        4. ValidatorAgent: safety gate, LIMIT enforcement
        5. ExecutorAgent: read-only execution with the tenant id bound to $1
        6. Chart compilation from the model's chart spec

    Usage:
        pipeline = QueryPipeline(context_agent, sql_agent, validator_agent, executor_agent)
        result = await pipeline.ask(store_id, "What was my revenue last month?")
        if isinstance(result, Ok):
            print(result.value.answer)
    """

    def __init__(
        self,
        context_agent: ContextAgent,
        sql_agent: SQLAgent,
        validator_agent: ValidatorAgent,
        executor_agent: ExecutorAgent,
        max_question_length: int = MAX_QUESTION_LENGTH,
        logger: logging.Logger | None = None,
    ):
        self.context_agent = context_agent
        self.sql_agent = sql_agent
        self.validator_agent = validator_agent
        self.executor_agent = executor_agent
        self.max_question_length = max_question_length
        self.logger = logger or logging.getLogger("storechat.pipeline")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        context_connector: BaseConnector,
        readonly_connector: BaseConnector,
        provider: BaseLLMProvider | None = None,
        logger: logging.Logger | None = None,
    ) -> "QueryPipeline":
        """
        Wire every agent from application settings.

        Raises:
            ValueError: If no provider is given and no OpenAI key is configured
        """
        pipeline_settings = settings.pipeline
        if provider is None:
            if not settings.llm.openai_api_key:
                raise ValueError("LLM_OPENAI_API_KEY is not configured")
            provider = OpenAIProvider(
                api_key=settings.llm.openai_api_key,
                model=settings.llm.openai_model,
                max_tokens=settings.llm.max_tokens,
                timeout=settings.llm.timeout,
            )

        completion_client = CompletionClient(
            provider,
            max_tokens=settings.llm.max_tokens,
            timeout=settings.llm.timeout,
        )
        validator = SQLValidator(
            allowed_tables=pipeline_settings.allowed_tables,
            tenant_column=pipeline_settings.tenant_column,
            default_limit=pipeline_settings.default_limit,
            max_limit=pipeline_settings.max_limit,
        )
        # Client-side bound sits just above the server statement timeout
        executor_timeout = settings.database.statement_timeout_ms / 1000 + 1

        return cls(
            context_agent=ContextAgent(context_connector),
            sql_agent=SQLAgent(
                completion_client,
                default_limit=pipeline_settings.default_limit,
                tenant_column=pipeline_settings.tenant_column,
            ),
            validator_agent=ValidatorAgent(validator),
            executor_agent=ExecutorAgent(
                readonly_connector,
                max_rows=pipeline_settings.max_rows,
                timeout_seconds=executor_timeout,
            ),
            max_question_length=pipeline_settings.max_question_length,
            logger=logger,
        )

    async def ask(self, tenant_id: str, question_text: str) -> Result[PipelineAnswer]:
        """
        Answer one question for one tenant.

        Returns:
            ``Ok(PipelineAnswer)`` or the first ``Err`` from any stage
        """
        start_time = time.perf_counter()
        result = await self._run(tenant_id, question_text)
        duration_ms = (time.perf_counter() - start_time) * 1000

        if isinstance(result, Err):
            self.logger.warning(
                "Pipeline failed",
                extra={"tenant_id": tenant_id, "duration_ms": duration_ms, **result.to_log_extra()},
            )
        else:
            self.logger.info(
                "Pipeline complete",
                extra={
                    "tenant_id": tenant_id,
                    "duration_ms": duration_ms,
                    "row_count": result.value.execution.row_count,
                    "chart_type": result.value.chart.type if result.value.chart else None,
                },
            )
        return result

    async def ask_or_raise(self, tenant_id: str, question_text: str) -> PipelineAnswer:
        """
        Answer a question, raising PipelineError with a user-safe message on failure.
        """
        result = await self.ask(tenant_id, question_text)
        return result.unwrap()

    async def _run(self, tenant_id: str, question_text: str) -> Result[PipelineAnswer]:
        try:
            question = Question.create(tenant_id, question_text, self.max_question_length)
        except ValueError as e:
            return Err(kind=ErrorKind.INPUT, detail=str(e), stage="input")

        self.logger.info(
            "Pipeline started",
            extra={"tenant_id": tenant_id, "question_preview": question.text[:50]},
        )

        context = await self.context_agent(ContextAgentInput(tenant_id=tenant_id))
        if isinstance(context, Err):
            return context

        candidate = await self.sql_agent(
            SQLAgentInput(tenant_id=tenant_id, question=question, store_context=context.value)
        )
        if isinstance(candidate, Err):
            return candidate

        validation = await self.validator_agent(
            ValidatorAgentInput(
                tenant_id=tenant_id,
                candidate=candidate.value,
                tenant_placeholder_index=TENANT_PLACEHOLDER_INDEX,
            )
        )
        if isinstance(validation, Err):
            return validation

        chart_spec = candidate.value.chart_spec
        generated_query = GeneratedQuery(
            sql=validation.value.sql,
            params=[tenant_id],
            explanation=candidate.value.explanation,
            chart_spec=chart_spec,
        )

        execution = await self.executor_agent(
            ExecutorAgentInput(tenant_id=tenant_id, generated_query=generated_query)
        )
        if isinstance(execution, Err):
            return execution

        chart = to_chart_config(chart_spec, execution.value.rows, logger=self.logger)
        chart_meta = ChartMeta.from_spec(chart_spec) if chart_spec else None

        return Ok(
            PipelineAnswer(
                query=generated_query,
                execution=execution.value,
                chart=chart,
                chart_meta=chart_meta,
            )
        )
