"""
Provider clients for generative-text backends.
The concrete backend is chosen once from configuration by ``build_provider``.
"""
from typing import Optional

from turbolearn.config import ProviderConfig

from .base import ProviderClient
from .retrying import RetryingProvider


def build_provider(config: ProviderConfig, governor=None) -> Optional[ProviderClient]:
    """Create the provider selected by ``config.provider``.

    Returns None when no API key is configured.
    """
    if not config.is_configured:
        return None
    # backend SDKs are imported only when selected
    if config.provider == 'gemini':
        from .gemini_provider import GeminiProvider
        provider = GeminiProvider(
            api_key=config.api_key,
            model=config.model_id,
            fallback_model=config.fallback_model,
            timeout=config.request_timeout_s,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
    else:
        from .openai_provider import OpenAICompatibleProvider
        provider = OpenAICompatibleProvider(
            api_key=config.api_key,
            base_url=config.base_url,
            model=config.model_id,
            timeout=config.request_timeout_s,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
    if config.retry_attempts > 1:
        provider = RetryingProvider(provider, attempts=config.retry_attempts, governor=governor)
    return provider


__all__ = ['ProviderClient', 'RetryingProvider', 'build_provider']
