"""
Anthropic Claude completion provider.

Sends the conversation as Messages API turns and joins the text of all
returned content blocks.
"""

import os
import logging
import time
from typing import Optional, Sequence

from anthropic import Anthropic, APIError, APIConnectionError, APITimeoutError

from ..models import ConversationTurn
from ..utils.errors import ProviderError
from ..utils.llm import BaseLLMClient
from ..utils.llm_constants import DEFAULT_MAX_OUTPUT_TOKENS, DEFAULT_TEMPERATURE

logger = logging.getLogger(__name__)

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5"
DEFAULT_TIMEOUT_SECONDS = 60


class AnthropicProvider(BaseLLMClient):
    """Provider for the Anthropic Messages API."""

    provider_name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_ANTHROPIC_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[Anthropic] = None,
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key (if None, uses ANTHROPIC_API_KEY env var)
            model_name: Model name
            timeout: Per-request timeout in seconds
            client: Pre-built client (mainly for tests)

        Raises:
            ValueError: If no API key is available and no client is given
        """
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if client is None and not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")

        self.timeout = timeout
        self._model_name = model_name
        # Retries are owned by the structured completion engine
        self.client = client or Anthropic(api_key=self.api_key, timeout=timeout, max_retries=0)

        logger.info(f"Initialized AnthropicProvider with model: {self._model_name}")

    @property
    def model_name(self) -> str:
        return self._model_name

    def complete(
        self,
        turns: Sequence[ConversationTurn],
        model: Optional[str] = None,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        model_name = model or self._model_name
        start_time = time.time()

        try:
            response = self.client.messages.create(
                model=model_name,
                max_tokens=max_output_tokens,
                temperature=temperature,
                messages=[{"role": turn.role, "content": turn.content} for turn in turns],
            )
        except APITimeoutError as e:
            logger.error(f"Anthropic request timed out after {self.timeout}s: {e}", exc_info=True)
            raise ProviderError(self.provider_name, f"Anthropic request timed out after {self.timeout}s") from e
        except APIConnectionError as e:
            logger.error(f"Network error calling Anthropic: {e}", exc_info=True)
            raise ProviderError(self.provider_name, f"Network error calling Anthropic: {e}") from e
        except APIError as e:
            logger.error(f"Anthropic API error: {e}", exc_info=True)
            raise ProviderError(self.provider_name, f"Anthropic API error: {e}") from e

        text = "".join(
            getattr(block, "text", "") or ""
            for block in (response.content or [])
        )
        logger.debug(
            f"Anthropic completion in {time.time() - start_time:.2f}s: {len(text)} chars, "
            f"stop reason {getattr(response, 'stop_reason', None)}"
        )
        return text

    def check_availability(self) -> bool:
        return bool(self.api_key)
