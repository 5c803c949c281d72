"""
Prompt Module

System prompt template, few-shot examples and the Jinja2 prompt loader.
"""

from storechat.prompts.examples import FEW_SHOT_EXAMPLES, FewShotExample, get_few_shot_examples
from storechat.prompts.loader import PromptLoader
from storechat.prompts.system import build_system_prompt

__all__ = [
    "FEW_SHOT_EXAMPLES",
    "FewShotExample",
    "get_few_shot_examples",
    "PromptLoader",
    "build_system_prompt",
]
