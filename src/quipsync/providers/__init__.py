"""
Completion provider implementations.

Supports Google Gemini (GeminiProvider) and Anthropic Claude (AnthropicProvider).
"""

from .claude import AnthropicProvider
from .gemini import GeminiProvider
from .factory import create_provider, get_default_provider, reset_default_provider

__all__ = [
    "AnthropicProvider",
    "GeminiProvider",
    "create_provider",
    "get_default_provider",
    "reset_default_provider",
]
