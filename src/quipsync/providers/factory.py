"""
Completion provider factory.

This module provides factory functions for creating and managing completion
providers. It handles provider selection based on environment configuration
and provides a default provider instance.
"""

import os
import logging
from typing import Optional

from .claude import AnthropicProvider, DEFAULT_ANTHROPIC_MODEL
from .gemini import GeminiProvider, DEFAULT_GEMINI_MODEL
from ..utils.llm import BaseLLMClient

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("gemini", "anthropic")
DEFAULT_LLM_TIMEOUT = 60

_default_provider: Optional[BaseLLMClient] = None


def create_provider(provider_name: Optional[str] = None, **kwargs) -> BaseLLMClient:
    """
    Create a completion provider instance.

    Args:
        provider_name: 'gemini' or 'anthropic' (None reads LLM_PROVIDER)
        **kwargs: Provider-specific configuration (api_key, model_name, timeout)

    Returns:
        BaseLLMClient instance

    Raises:
        ValueError: If provider_name is invalid or the provider cannot be configured
    """
    if provider_name is None:
        provider_name = os.getenv("LLM_PROVIDER", "gemini")
    provider_name = provider_name.lower()

    timeout = kwargs.get("timeout", float(os.getenv("LLM_TIMEOUT", str(DEFAULT_LLM_TIMEOUT))))
    api_key = kwargs.get("api_key")

    if provider_name == "gemini":
        model_name = kwargs.get("model_name") or os.getenv("LLM_MODEL") or DEFAULT_GEMINI_MODEL
        return GeminiProvider(api_key=api_key, model_name=model_name, timeout=timeout)
    elif provider_name == "anthropic":
        model_name = kwargs.get("model_name") or os.getenv("LLM_MODEL") or DEFAULT_ANTHROPIC_MODEL
        return AnthropicProvider(api_key=api_key, model_name=model_name, timeout=timeout)
    else:
        raise ValueError(
            f"Unknown LLM provider: {provider_name}. "
            f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
        )


def get_default_provider() -> BaseLLMClient:
    """
    Get or create the default completion provider.

    Uses environment variables for configuration:
    - LLM_PROVIDER: Provider name (default: 'gemini')
    - GOOGLE_API_KEY / ANTHROPIC_API_KEY: credentials for the chosen provider
    - LLM_MODEL: Model name (provider default if unset)
    - LLM_TIMEOUT: Request timeout in seconds (default: 60)

    Returns:
        BaseLLMClient instance
    """
    global _default_provider

    if _default_provider is None:
        _default_provider = create_provider()
        logger.info(f"Created default LLM provider: {type(_default_provider).__name__}")

    return _default_provider


def reset_default_provider() -> None:
    """
    Reset the default provider instance.

    This is useful for testing or when configuration changes.
    """
    global _default_provider
    _default_provider = None
    logger.info("Reset default LLM provider")
