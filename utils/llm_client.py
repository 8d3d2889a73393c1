"""
LLM Client using LiteLLM for multi-provider support.

Supports: OpenAI, Anthropic, Cohere, and 100+ other providers.
Switch providers by changing the model string.

Examples:
    - "gpt-5" (OpenAI)
    - "claude-sonnet-4-5-20250929" (Anthropic)
"""

from typing import List, Dict, Optional, Any
import litellm
from tenacity import retry, stop_after_attempt, wait_exponential

from core import get_logger, CompletionError
from config.settings import settings

logger = get_logger(__name__)

# Configure LiteLLM
litellm.set_verbose = False  # Set True for debugging


class LLMClient:
    """
    Completion client over LiteLLM.

    Usage:
        client = LLMClient()
        reply = await client.complete([{"role": "system", "content": "..."}, ...])

    Retries transient failures itself; callers see either text (possibly
    empty) or a single ``CompletionError``.
    """

    def __init__(self, model: Optional[str] = None):
        """Initialize LLM client."""
        # LiteLLM automatically picks up API keys from environment:
        # - OPENAI_API_KEY
        # - ANTHROPIC_API_KEY
        # etc.
        self.model = model or settings.MODEL_CONVERSATION
        logger.info("LLM client initialized", model=self.model)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _acompletion(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        temperature: float,
        max_tokens: int,
        **kwargs: Any,
    ):
        return await litellm.acompletion(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> str:
        """
        Generate a completion for an ordered instruction list.

        Args:
            messages: Role/content dicts, system directive first
            model: Model identifier (defaults to the client's model)
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            **kwargs: Additional LiteLLM parameters

        Returns:
            Generated text, or "" when the model returns no content

        Raises:
            CompletionError: If every attempt fails
        """
        model = model or self.model
        temperature = settings.COMPLETION_TEMPERATURE if temperature is None else temperature
        max_tokens = max_tokens or settings.COMPLETION_MAX_TOKENS

        logger.debug(
            "LLM request",
            model=model,
            message_count=len(messages),
            temperature=temperature,
        )

        try:
            response = await self._acompletion(
                model, messages, temperature, max_tokens, **kwargs
            )
        except Exception as e:
            logger.error("LLM request failed", model=model, error=str(e))
            raise CompletionError(model=model, details=str(e)) from e

        content = ""
        finish_reason = None
        if response.choices:
            content = response.choices[0].message.content or ""
            finish_reason = response.choices[0].finish_reason

        logger.debug(
            "LLM response",
            model=model,
            tokens_used=response.usage.total_tokens if getattr(response, "usage", None) else None,
            response_length=len(content),
            finish_reason=finish_reason,
        )

        # Log truncated response for debugging at DEBUG level
        if len(content) > 200:
            truncated = f"{content[:100]}...{content[-100:]}"
        else:
            truncated = content

        logger.debug(
            "LLM response preview",
            model=model,
            finish_reason=finish_reason,
            response_preview=truncated,
        )

        return content
