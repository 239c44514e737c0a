"""
Base abstract class for generative-text providers.
All backends (OpenAI-compatible endpoints, Gemini) inherit from this class.
"""
from abc import ABC, abstractmethod
from typing import Optional


class ProviderClient(ABC):
    """
    Uniform async interface over a single chat-completion backend.

    Implementations translate backend failures into
    ``turbolearn.errors.ProviderError`` so callers never handle SDK-specific
    exceptions.
    """

    name: str = 'provider'
    model: str = ''

    @abstractmethod
    async def complete(self, prompt: str, request_id: Optional[str] = None) -> str:
        """
        Send ``prompt`` as a single user message and return the raw reply text.

        Args:
            prompt: Non-empty prompt string.
            request_id: Optional id used for structured logging.

        Returns:
            The completion text; an empty string when the backend returned none.

        Raises:
            ProviderError: on any backend or transport failure.
        """
        raise NotImplementedError

    def describe(self) -> str:
        return f'{self.name}:{self.model}'
