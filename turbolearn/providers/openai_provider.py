from __future__ import annotations

import time
from typing import Optional

import openai
from openai import AsyncOpenAI

from turbolearn.config import DEFAULT_BASE_URL
from turbolearn.errors import ProviderError, ProviderErrorKind
from turbolearn.utils import get_logger, log_llm_call

from .base import ProviderClient

LOG = get_logger()

_QUOTA_MARKERS = ('insufficient_quota', 'insufficient balance', 'billing')


def _is_quota_signal(e: openai.APIStatusError) -> bool:
    if e.status_code == 402:
        return True
    code = (getattr(e, 'code', None) or '').lower()
    if code == 'insufficient_quota':
        return True
    msg = str(e).lower()
    return any(m in msg for m in _QUOTA_MARKERS)


def map_openai_error(e: Exception) -> ProviderError:
    """Translate an ``openai`` SDK exception into a ProviderError."""
    msg = str(e)
    status = getattr(e, 'status_code', None)
    if isinstance(e, (openai.AuthenticationError, openai.PermissionDeniedError)):
        kind = ProviderErrorKind.UNAUTHENTICATED
    elif isinstance(e, openai.APIStatusError) and _is_quota_signal(e):
        kind = ProviderErrorKind.QUOTA_EXCEEDED
    elif isinstance(e, openai.RateLimitError):
        kind = ProviderErrorKind.RATE_LIMITED
    elif isinstance(e, openai.APIConnectionError):
        # includes APITimeoutError
        kind = ProviderErrorKind.UNAVAILABLE
    elif isinstance(e, openai.APIStatusError) and e.status_code >= 500:
        kind = ProviderErrorKind.UNAVAILABLE
    else:
        kind = ProviderErrorKind.UNKNOWN
    return ProviderError(kind, msg, status_code=status)


class OpenAICompatibleProvider(ProviderClient):
    """Chat-completion client for any OpenAI-compatible endpoint (DeepSeek, OpenRouter, OpenAI)."""

    name = 'openai'

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        model: str = 'deepseek-chat',
        timeout: float = 60.0,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature
        # max_retries=0: a failed call surfaces after one attempt
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
        LOG.info('OpenAICompatibleProvider initialized', extra={'model': self.model, 'base_url': self.base_url})

    async def complete(self, prompt: str, request_id: Optional[str] = None) -> str:
        start = time.time()
        try:
            resp = await self._client.chat.completions.create(
                model=self.model,
                messages=[{'role': 'user', 'content': prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            err = map_openai_error(e)
            LOG.warning('openai_call_failed', extra={'request_id': request_id, 'provider_kind': err.provider_kind.value, 'error': err.message})
            raise err from e
        duration_ms = int((time.time() - start) * 1000)
        usage = getattr(resp, 'usage', None)
        log_llm_call(
            request_id or '',
            self.name,
            self.model,
            getattr(usage, 'prompt_tokens', 0) or 0,
            getattr(usage, 'completion_tokens', 0) or 0,
            duration_ms,
        )
        if not resp.choices:
            return ''
        return resp.choices[0].message.content or ''
