"""Prompt templates for LLM-assisted document analysis.

Modules:
    analysis_prompts: Credential analysis prompt and JSON response schema
"""

from verifivue.config.prompts.analysis_prompts import (
    CREDENTIAL_ANALYSIS_PROMPT,
    CREDENTIAL_ANALYSIS_SCHEMA,
)

__all__ = [
    "CREDENTIAL_ANALYSIS_PROMPT",
    "CREDENTIAL_ANALYSIS_SCHEMA",
]
