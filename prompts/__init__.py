"""
Prompts module - LLM prompts organized by feature.

Import prompts directly:
    from prompts import COMPANION_SYSTEM_PROMPT, RECAP_SYSTEM_PROMPT

Or import from specific modules:
    from prompts.companion import COMPANION_SYSTEM_PROMPT
"""

from prompts.companion import (
    ADULT_ALLOWED_RULE,
    ADULT_BLOCKED_RULE,
    COMPANION_SYSTEM_PROMPT,
    FLIRTATION_ALLOWED_RULE,
    FLIRTATION_BLOCKED_RULE,
)
from prompts.recap import RECAP_SYSTEM_PROMPT

__all__ = [
    "COMPANION_SYSTEM_PROMPT",
    "FLIRTATION_ALLOWED_RULE",
    "FLIRTATION_BLOCKED_RULE",
    "ADULT_ALLOWED_RULE",
    "ADULT_BLOCKED_RULE",
    "RECAP_SYSTEM_PROMPT",
]
