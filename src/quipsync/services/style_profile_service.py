"""
Style profile service.

Distills a DJ's personal writing style from their own script samples.
Profiles are not cached.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from ..models import CompletionRequest, StyleProfile, StyleProfileRequest
from ..utils.completion import complete_structured
from ..utils.llm import BaseLLMClient
from ..utils.llm_constants import (
    STYLE_MAX_OUTPUT_TOKENS,
    STYLE_RETRY_BUDGET,
    STYLE_TEMPERATURE,
)
from ..utils.prompt_builder import build_style_prompt
from .request_validation_service import RequestValidationService
from .script_generation_service import resolve_default_provider

logger = logging.getLogger(__name__)


class StyleProfileService:
    """Service for creating personal style profiles."""

    def __init__(
        self,
        provider: Optional[BaseLLMClient] = None,
        validator: Optional[RequestValidationService] = None,
    ):
        self._provider = provider
        self.validator = validator or RequestValidationService()

    @property
    def provider(self) -> BaseLLMClient:
        if self._provider is None:
            self._provider = resolve_default_provider()
        return self._provider

    def create_style_profile(
        self,
        style_description: str,
        script_samples: Sequence[str],
    ) -> Dict[str, Any]:
        """
        Analyze script samples and return a StyleProfile.

        Args:
            style_description: The DJ's own description of their style
            script_samples: Script texts written by the DJ (blank ones are ignored)

        Returns:
            StyleProfile as a dict with wire (camelCase) field names

        Raises:
            ValidationError: If the description or samples are missing
            SchemaValidationError: If the model never produced a valid profile
            ProviderError: If the completion provider failed
        """
        request = self.validator.validate_style_profile_input(style_description, script_samples)
        return self.create_from_request(request)

    def create_from_request(self, request: StyleProfileRequest) -> Dict[str, Any]:
        prompt = build_style_prompt(request.style_description, request.script_samples)
        profile = complete_structured(
            self.provider,
            CompletionRequest(
                instruction_text=prompt,
                target_schema=StyleProfile,
                max_output_tokens=STYLE_MAX_OUTPUT_TOKENS,
                temperature=STYLE_TEMPERATURE,
                retry_budget=STYLE_RETRY_BUDGET,
            ),
        )
        logger.info(f"Created style profile from {len(request.script_samples)} sample(s)")
        return profile
