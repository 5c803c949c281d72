"""Pipeline orchestration for StoreChat."""

from storechat.pipeline.orchestrator import DEFAULT_SUGGESTIONS, QueryPipeline, get_suggestions

__all__ = ["DEFAULT_SUGGESTIONS", "QueryPipeline", "get_suggestions"]
