"""
Shared pytest fixtures for test suite.

This module provides common fixtures used across multiple test files,
reducing duplication and ensuring consistency.
"""

import json
from typing import Any, Dict, List, Optional, Sequence, Union
from unittest.mock import MagicMock

import pytest

from quipsync.models import ConversationTurn
from quipsync.providers.factory import reset_default_provider
from quipsync.services import (
    RequestValidationService,
    ScriptGenerationService,
    StyleProfileService,
)
from quipsync.utils.cache import MemoryScriptCache
from quipsync.utils.extraction import ArticleExtractor
from quipsync.utils.llm import BaseLLMClient


class FakeProvider(BaseLLMClient):
    """
    Scripted completion provider that records every call.

    Each queued response is either a string (returned) or an exception (raised).
    When the queue runs dry the last response is repeated.
    """

    provider_name = "fake"

    def __init__(self, responses: Sequence[Union[str, Exception]] = ()):
        self.responses: List[Union[str, Exception]] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    def complete(
        self,
        turns: Sequence[ConversationTurn],
        model: Optional[str] = None,
        max_output_tokens: int = 1400,
        temperature: float = 0.7,
    ) -> str:
        self.calls.append({
            "turns": tuple(turns),
            "model": model,
            "max_output_tokens": max_output_tokens,
            "temperature": temperature,
        })
        if not self.responses:
            raise AssertionError("FakeProvider has no scripted responses")
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture(autouse=True)
def _reset_provider_singleton():
    """Keep the default provider singleton from leaking between tests."""
    reset_default_provider()
    yield
    reset_default_provider()


# Result fixtures
@pytest.fixture
def valid_script_result() -> Dict[str, Any]:
    """A ScriptResult for the bakery / Here Comes the Sun example."""
    return {
        "storyDetails": (
            "A neighborhood bakery that burned down last spring reopened this week, "
            "and the whole block lined up at dawn for the first loaf."
        ),
        "songAnalysis": (
            "A gentle song about relief after a long, cold stretch and the warmth "
            "of things finally turning around."
        ),
        "whyThisWorks": "Both are about the sun coming back after a hard season.",
        "scripts": [
            {
                "script": (
                    "Last spring the ovens on Maple Street went cold when a fire took "
                    "the corner bakery. This week the lights came back on, and by six "
                    "a.m. the line wrapped around the block. Neighbors brought coffee, "
                    "the owner cried, and the first loaf sold in under a minute. "
                    "Sometimes the long winter ends right on your corner. Here's The Beatles."
                ),
                "deliveryNotes": "Warm, unhurried. Let the line about the first loaf breathe.",
            },
            {
                "script": (
                    "The corner bakery that burned last spring is open again, and the "
                    "whole neighborhood showed up at dawn. Feels like the sun's back. "
                    "The Beatles."
                ),
                "deliveryNotes": "Smile in the voice, hit the post on 'The Beatles'.",
            },
            {
                "script": (
                    "A bakery rises from the ashes, a neighborhood lines up at dawn. "
                    "Here comes the sun."
                ),
                "deliveryNotes": "Quick and bright over the intro.",
            },
        ],
    }


@pytest.fixture
def valid_script_json(valid_script_result) -> str:
    return json.dumps(valid_script_result)


@pytest.fixture
def valid_style_profile() -> Dict[str, Any]:
    return {
        "styleProfile": "Dry, self-deprecating morning host who undercuts big moments with small details.",
        "keyCharacteristics": ["short punchy sentences", "local references", "gentle sarcasm"],
        "samplePhrases": ["Look, I'm not saying...", "And that's your traffic, folks."],
        "instructions": "Open with a small concrete detail, land one wry aside, then hand off cleanly.",
    }


@pytest.fixture
def valid_style_json(valid_style_profile) -> str:
    return json.dumps(valid_style_profile)


# Collaborator fixtures
@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances with scripted responses."""
    def _make(*responses):
        return FakeProvider(responses)
    return _make


@pytest.fixture
def memory_cache():
    return MemoryScriptCache()


@pytest.fixture
def mock_extractor():
    """ArticleExtractor double that returns fixed article text."""
    extractor = MagicMock(spec=ArticleExtractor)
    extractor.extract_text.return_value = (
        "The Maple Street Bakery reopened on Monday, a year after a fire gutted the building."
    )
    return extractor


@pytest.fixture
def script_service_factory(memory_cache, mock_extractor):
    """Build a ScriptGenerationService around a given provider."""
    def _build(provider, cache=None, extractor=None):
        return ScriptGenerationService(
            provider=provider,
            cache=cache if cache is not None else memory_cache,
            extractor=extractor if extractor is not None else mock_extractor,
            validator=RequestValidationService(),
        )
    return _build


@pytest.fixture
def style_service_factory():
    def _build(provider):
        return StyleProfileService(provider=provider)
    return _build


# Payload fixtures
@pytest.fixture
def sample_script_payload() -> Dict[str, Any]:
    """Script generation payload in wire (camelCase) form."""
    return {
        "storyInput": "Local bakery reopens after fire",
        "songTitle": "Here Comes the Sun",
        "artist": "The Beatles",
        "styleSelection": "touching",
        "pgSafe": True,
    }


@pytest.fixture
def sample_style_payload() -> Dict[str, Any]:
    return {
        "styleDescription": "Dry morning-show humor with a soft landing",
        "scriptSamples": [
            "Good morning, it's 6:05 and the coffee is winning.",
            "   ",
            "That was the weather. I'd tell you to bring an umbrella but you won't.",
        ],
    }
