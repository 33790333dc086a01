"""
Completion provider interface.

Every provider turns an ordered conversation into one string of response text.
Transport details stay inside the concrete provider modules.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..models import ConversationTurn


class BaseLLMClient(ABC):
    """
    Abstract text-completion provider.

    Implementations must raise ``ProviderError`` for transport, auth and timeout
    failures so callers can tell them apart from bad model output.
    """

    provider_name = "base"

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Default model used when a call does not name one."""

    @abstractmethod
    def complete(
        self,
        turns: Sequence[ConversationTurn],
        model: Optional[str] = None,
        max_output_tokens: int = 1400,
        temperature: float = 0.7,
    ) -> str:
        """
        Send a conversation and return the concatenated response text.

        Args:
            turns: Ordered user/assistant turns, starting with a user turn
            model: Model override (provider default if None)
            max_output_tokens: Upper bound on generated tokens
            temperature: Sampling temperature

        Returns:
            All text fragments of the response joined into one string
        """

    def check_availability(self) -> bool:
        """Return True if the provider looks usable. Providers may override."""
        return True
