"""
Prompt Composer - turns loaded state into the instruction list for a completion.

Pure functions: same inputs, same prompt. Nothing here reads configuration,
the clock or a store.

Chat mode:   [system directive] + history (oldest first) + new user message
Recap mode:  [recap directive]  + message window (oldest first)
"""

import json
from typing import Any, Dict, List, Sequence

from prompts.companion import (
    COMPANION_SYSTEM_PROMPT,
    FLIRTATION_ALLOWED_RULE,
    FLIRTATION_BLOCKED_RULE,
    ADULT_ALLOWED_RULE,
    ADULT_BLOCKED_RULE,
)
from prompts.recap import RECAP_SYSTEM_PROMPT
from schemas import CompanionSchema, ContentPolicy, MemoryFactSchema, MessageSchema

Instruction = Dict[str, str]


def render_memories(memories: Sequence[MemoryFactSchema]) -> str:
    """Serialize ranked memories verbatim, keeping their order."""
    return json.dumps(
        [{"key": m.key, "value": m.value, "importance": m.importance} for m in memories],
        ensure_ascii=False,
    )


def render_persona(persona: Any) -> str:
    """Serialize persona attributes opaquely; values JSON can't encode fall back to str()."""
    return json.dumps(persona, ensure_ascii=False, default=str)


def render_policy(policy: ContentPolicy) -> Dict[str, str]:
    rules = [
        FLIRTATION_ALLOWED_RULE if policy.allow_flirtation else FLIRTATION_BLOCKED_RULE,
        ADULT_ALLOWED_RULE if policy.allow_adult_content else ADULT_BLOCKED_RULE,
    ]
    return {
        "flirtation": "allowed (PG-13)" if policy.allow_flirtation else "not allowed",
        "adult_content": "allowed" if policy.allow_adult_content else "not allowed",
        "content_rules": "\n".join(rules),
    }


def build_system_directive(
    policy: ContentPolicy,
    memories: Sequence[MemoryFactSchema],
    companion: CompanionSchema,
) -> str:
    """Build the leading system directive for a chat turn."""
    return COMPANION_SYSTEM_PROMPT.format(
        memories=render_memories(memories),
        persona=render_persona(companion.persona),
        tone_level=companion.tone_level,
        **render_policy(policy),
    ).strip()


def build_chat_prompt(
    policy: ContentPolicy,
    memories: Sequence[MemoryFactSchema],
    companion: CompanionSchema,
    history: Sequence[MessageSchema],
    user_message: str,
) -> List[Instruction]:
    """
    Compose the chat-mode prompt.

    Args:
        policy: Content policy resolved for this request
        memories: Ranked memories (importance descending)
        companion: Companion supplying persona and tone level
        history: Prior messages, oldest first
        user_message: The new message, always last

    Returns:
        Ordered role/content instructions
    """
    instructions: List[Instruction] = [
        {"role": "system", "content": build_system_directive(policy, memories, companion)}
    ]
    instructions.extend(m.to_instruction() for m in history)
    instructions.append({"role": "user", "content": user_message})
    return instructions


def build_recap_prompt(messages: Sequence[MessageSchema]) -> List[Instruction]:
    """Compose the recap-mode prompt over a chronological message window."""
    instructions: List[Instruction] = [
        {"role": "system", "content": RECAP_SYSTEM_PROMPT.strip()}
    ]
    instructions.extend(m.to_instruction() for m in messages)
    return instructions
