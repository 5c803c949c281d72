"""
System prompt builder.

Renders the NL to SQL system prompt: schema, store metadata, rules,
response format and few-shot examples. Output is a pure function of the
store context, so the same context always yields the same prompt.
"""

from functools import lru_cache

from storechat.models import StoreContext
from storechat.prompts.examples import FewShotExample, get_few_shot_examples
from storechat.prompts.loader import PromptLoader

SYSTEM_PROMPT_TEMPLATE = "system.md"


@lru_cache(maxsize=1)
def _default_loader() -> PromptLoader:
    return PromptLoader()


def build_system_prompt(
    context: StoreContext,
    *,
    loader: PromptLoader | None = None,
    examples: tuple[FewShotExample, ...] | None = None,
    tenant_column: str = "store_id",
    tenant_placeholder_index: int = 1,
    default_limit: int = 100,
) -> str:
    """
    Build the system prompt for a store.

    Args:
        context: Tenant-scoped store statistics
        loader: Prompt loader (default: package templates)
        examples: Few-shot examples (default: built-in set)
        tenant_column: Column bound to the tenant placeholder
        tenant_placeholder_index: Placeholder number for the tenant id
        default_limit: LIMIT suggested for list queries

    Returns:
        Rendered system prompt
    """
    loader = loader or _default_loader()
    return loader.render(
        SYSTEM_PROMPT_TEMPLATE,
        context=context,
        examples=examples if examples is not None else get_few_shot_examples(),
        tenant_column=tenant_column,
        placeholder=f"${tenant_placeholder_index}",
        default_limit=default_limit,
    ).strip()
