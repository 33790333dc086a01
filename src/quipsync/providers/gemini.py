"""
Google Gemini completion provider.

This module provides the GeminiProvider class for sending multi-turn
conversations to Google's Generative AI models. All Gemini-specific code is
isolated here.
"""

import os
import logging
import time
from typing import List, Optional, Sequence

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..models import ConversationTurn
from ..utils.errors import ProviderError
from ..utils.llm import BaseLLMClient
from ..utils.llm_constants import DEFAULT_MAX_OUTPUT_TOKENS, DEFAULT_TEMPERATURE

logger = logging.getLogger(__name__)

ALLOWED_GEMINI_MODELS: List[str] = [
    "gemini-2.5-flash",
    "gemini-2.5-pro",
    "gemini-2.0-flash",
    "gemini-1.5-pro",
    "gemini-1.5-flash",
]

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_SECONDS = 60

# Gemini names the assistant side of a conversation "model"
_ROLE_MAP = {"user": "user", "assistant": "model"}


def _validate_gemini_model_name(model_name: str) -> str:
    """
    Validate and normalize a Gemini model name.

    Args:
        model_name: Model name (with or without 'models/' prefix)

    Returns:
        Normalized model name with 'models/' prefix

    Raises:
        ValueError: If model is not in the allowed list
    """
    base_name = model_name.replace("models/", "")
    if base_name not in ALLOWED_GEMINI_MODELS:
        raise ValueError(
            f"Invalid Gemini model: {model_name}. Allowed models: {', '.join(ALLOWED_GEMINI_MODELS)}"
        )
    return f"models/{base_name}"


def _to_gemini_contents(turns: Sequence[ConversationTurn]) -> List[dict]:
    return [
        {"role": _ROLE_MAP[turn.role], "parts": [turn.content]}
        for turn in turns
    ]


def _response_text(response) -> str:
    """Concatenate the text of every part of the first candidate."""
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        texts = [getattr(part, "text", "") or "" for part in parts]
        if any(texts):
            return "".join(texts)
    try:
        return response.text or ""
    except ValueError:
        # .text raises when the candidate was blocked or has no parts
        return ""


class GeminiProvider(BaseLLMClient):
    """
    Provider for the Google Gemini API.

    Conversation turns map directly onto Gemini ``contents`` with the assistant
    role renamed to ``model``. Every failure of the API call is reported as
    ProviderError.
    """

    provider_name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_GEMINI_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize Gemini provider.

        Args:
            api_key: Google API key (if None, uses GOOGLE_API_KEY env var)
            model_name: Model name (default: gemini-2.5-flash)
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If the API key is missing or the model name is invalid
        """
        self.api_key = api_key or os.getenv("GOOGLE_API_KEY")
        if not self.api_key:
            raise ValueError("GOOGLE_API_KEY environment variable is required")

        genai.configure(api_key=self.api_key)
        self._genai = genai
        self._model_name = _validate_gemini_model_name(model_name)
        self.timeout = timeout

        logger.info(f"Initialized GeminiProvider with model: {self._model_name}")

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
        model_name = _validate_gemini_model_name(model) if model else self._model_name
        start_time = time.time()

        try:
            generative_model = self._genai.GenerativeModel(model_name)
            generation_config = self._genai.GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            )
            response = generative_model.generate_content(
                _to_gemini_contents(turns),
                generation_config=generation_config,
                request_options={"timeout": self.timeout},
            )
        except google_exceptions.DeadlineExceeded as e:
            logger.error(f"Gemini request timed out after {self.timeout}s: {e}", exc_info=True)
            raise ProviderError(self.provider_name, f"Gemini request timed out after {self.timeout}s") from e
        except (ConnectionError, TimeoutError, OSError) as e:
            logger.error(f"Network error calling Gemini: {e}", exc_info=True)
            raise ProviderError(self.provider_name, f"Network error calling Gemini: {e}") from e
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Gemini API error: {e}", exc_info=True)
            raise ProviderError(self.provider_name, f"Gemini API error: {e}") from e
        except Exception as e:
            logger.error(f"Error generating content with Gemini: {e}", exc_info=True)
            raise ProviderError(self.provider_name, f"Gemini call failed: {e}") from e

        text = _response_text(response)
        duration = time.time() - start_time

        finish_reason = "UNKNOWN"
        candidates = getattr(response, "candidates", None) or []
        if candidates:
            finish_reason = getattr(candidates[0], "finish_reason", "UNKNOWN")

        if not text:
            logger.warning(f"Gemini returned no text (finish reason: {finish_reason})")
        else:
            logger.debug(
                f"Gemini completion in {duration:.2f}s: {len(text)} chars, "
                f"finish reason {finish_reason}"
            )
        return text

    def check_availability(self) -> bool:
        """True when an API key is configured and the model is allowed."""
        return bool(self.api_key) and self._model_name.replace("models/", "") in ALLOWED_GEMINI_MODELS
