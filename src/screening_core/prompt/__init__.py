"""Prompt and report rendering.

Provides ``PromptManager``, a Jinja2-based template engine that renders
LLM analysis prompts and plain-text doctor reports.
"""

from screening_core.prompt.manager import PromptManager

__all__ = ["PromptManager"]
