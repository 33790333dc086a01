"""
Script generation service.

Orchestrates transition script generation: story URL extraction, style
resolution, cache lookup, the structured completion call and the cache write.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from ..models import CompletionRequest, ScriptRequest, ScriptResult, check_schema
from ..styles import DEFAULT_STYLE_ID
from ..utils.cache import ScriptCache, compute_cache_key, create_script_cache
from ..utils.completion import complete_structured
from ..utils.errors import ProviderError, ValidationError
from ..utils.extraction import ArticleExtractor, is_url
from ..utils.llm import BaseLLMClient
from ..utils.llm_constants import (
    MAX_STORY_CHARS,
    SCRIPT_MAX_OUTPUT_TOKENS,
    SCRIPT_RETRY_BUDGET,
    SCRIPT_TEMPERATURE,
)
from ..utils.prompt_builder import build_script_prompt, resolve_style
from .request_validation_service import RequestValidationService

logger = logging.getLogger(__name__)


def resolve_default_provider() -> BaseLLMClient:
    """
    Get the configured default provider, reporting setup problems as ProviderError.

    A missing API key or unknown provider name surfaces as ProviderError so it
    reaches callers the same way as a failing provider call.
    """
    from ..providers.factory import get_default_provider

    try:
        return get_default_provider()
    except ValueError as e:
        provider_name = os.getenv("LLM_PROVIDER", "gemini")
        logger.error(f"Could not create completion provider '{provider_name}': {e}")
        raise ProviderError(provider_name, str(e)) from e


class ScriptGenerationService:
    """Service for generating the three transition scripts for a story and song."""

    def __init__(
        self,
        provider: Optional[BaseLLMClient] = None,
        cache: Optional[ScriptCache] = None,
        extractor: Optional[ArticleExtractor] = None,
        validator: Optional[RequestValidationService] = None,
    ):
        """
        Initialize script generation service.

        Args:
            provider: Completion provider (default provider from the factory if None)
            cache: Script cache (configured backend from create_script_cache if None)
            extractor: Article extractor for story URLs
            validator: Request validation service
        """
        self._provider = provider
        self._cache = cache
        self._extractor = extractor
        self.validator = validator or RequestValidationService()

    @property
    def provider(self) -> BaseLLMClient:
        if self._provider is None:
            self._provider = resolve_default_provider()
        return self._provider

    @property
    def cache(self) -> ScriptCache:
        if self._cache is None:
            self._cache = create_script_cache()
        return self._cache

    @property
    def extractor(self) -> ArticleExtractor:
        if self._extractor is None:
            self._extractor = ArticleExtractor()
        return self._extractor

    def generate_scripts(
        self,
        story_input: str,
        song_title: str,
        artist: str,
        style_selection: str = DEFAULT_STYLE_ID,
        pg_safe: bool = True,
        personal_style: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Generate transition scripts for a story and song.

        Args:
            story_input: Story text, or an http(s) URL to extract the story from
            song_title: Song title
            artist: Artist name
            style_selection: Predefined style id or "personal"
            pg_safe: Whether to keep the content PG-safe
            personal_style: StyleProfile dict, required when style is "personal"

        Returns:
            ScriptResult as a dict with wire (camelCase) field names

        Raises:
            ValidationError: If input is invalid or the story URL has no text
            ExtractionError: If the story URL could not be fetched or parsed
            SchemaValidationError: If the model never produced a valid result
            ProviderError: If the completion provider failed
        """
        request = self.validator.validate_script_input(
            story_input,
            song_title,
            artist,
            style_selection=style_selection,
            pg_safe=pg_safe,
            personal_style=personal_style,
        )
        return self.generate_from_request(request)

    def generate_from_request(self, request: ScriptRequest) -> Dict[str, Any]:
        """Generate scripts for an already validated request."""
        cleaned_story = self.resolve_story(request.story_input)
        style = resolve_style(request.style_selection, request.personal_style)

        cache_key = compute_cache_key(
            cleaned_story,
            request.song_title,
            request.artist,
            style.descriptor,
            request.pg_safe,
        )

        cached = self._cache_lookup(cache_key)
        if cached is not None:
            logger.info(f"Script cache hit for {cache_key[:16]}")
            return cached

        prompt = build_script_prompt(
            cleaned_story,
            request.song_title,
            request.artist,
            style,
            request.pg_safe,
        )
        result = complete_structured(
            self.provider,
            CompletionRequest(
                instruction_text=prompt,
                target_schema=ScriptResult,
                max_output_tokens=SCRIPT_MAX_OUTPUT_TOKENS,
                temperature=SCRIPT_TEMPERATURE,
                retry_budget=SCRIPT_RETRY_BUDGET,
            ),
        )

        self._cache_store(cache_key, result)
        logger.info(
            f"Generated scripts for \"{request.song_title}\" by {request.artist} "
            f"(style: {request.style_selection}, pg_safe: {request.pg_safe})"
        )
        return result

    def resolve_story(self, story_input: str) -> str:
        """
        Turn story input into the text used for the prompt and the cache key.

        URLs are extracted and truncated; anything else is used verbatim.

        Raises:
            ExtractionError: If the URL could not be fetched or parsed
            ValidationError: If the URL yielded no article text
        """
        story = story_input.strip()
        if not is_url(story):
            return story

        text = self.extractor.extract_text(story)[:MAX_STORY_CHARS].strip()
        if not text:
            raise ValidationError(
                "No article text could be found at the story URL. Paste the story text instead.",
                details={"field": "storyInput", "url": story}
            )
        return text

    def _cache_lookup(self, key: str) -> Optional[Dict[str, Any]]:
        """Read a cached result; backend failures and stale values count as misses."""
        try:
            raw = self.cache.get(key)
        except Exception as e:
            # Any backend failure is a miss
            logger.warning(f"Script cache read failed, treating as miss: {e}")
            return None
        if raw is None:
            return None

        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            logger.warning(f"Discarding unparseable script cache entry {key[:16]}: {e}")
            return None

        outcome = check_schema(ScriptResult, data)
        if not outcome.ok:
            logger.warning(f"Discarding invalid script cache entry {key[:16]}")
            return None
        return outcome.value

    def _cache_store(self, key: str, result: Dict[str, Any]) -> None:
        try:
            self.cache.set(key, json.dumps(result, ensure_ascii=False))
        except Exception as e:
            logger.warning(f"Script cache write failed, continuing without cache: {e}")
