from __future__ import annotations

import asyncio
import time
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from turbolearn.errors import ProviderError, ProviderErrorKind
from turbolearn.utils import get_logger, log_llm_call

from .base import ProviderClient

LOG = get_logger()


def map_google_error(e: Exception) -> ProviderError:
    msg = str(e)
    lowered = msg.lower()
    if isinstance(e, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)):
        kind = ProviderErrorKind.UNAUTHENTICATED
    elif isinstance(e, google_exceptions.InvalidArgument) and 'api key' in lowered:
        # Gemini reports a bad key as 400 INVALID_ARGUMENT
        kind = ProviderErrorKind.UNAUTHENTICATED
    elif isinstance(e, google_exceptions.ResourceExhausted):
        kind = ProviderErrorKind.QUOTA_EXCEEDED if 'billing' in lowered else ProviderErrorKind.RATE_LIMITED
    elif isinstance(e, (google_exceptions.ServiceUnavailable, google_exceptions.InternalServerError,
                        google_exceptions.DeadlineExceeded, asyncio.TimeoutError)):
        kind = ProviderErrorKind.UNAVAILABLE
    else:
        kind = ProviderErrorKind.UNKNOWN
    return ProviderError(kind, msg or e.__class__.__name__, status_code=getattr(e, 'code', None))


class GeminiProvider(ProviderClient):
    """
    Google Gemini provider using the google-generativeai SDK.

    When the configured model is reported missing and a fallback model is
    set, the provider switches to the fallback for this and every later call.
    """

    name = 'gemini'

    def __init__(
        self,
        api_key: str,
        model: str = 'gemini-1.5-pro',
        fallback_model: Optional[str] = None,
        timeout: float = 60.0,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ):
        genai.configure(api_key=api_key)
        self.model = model
        self.fallback_model = fallback_model
        self.timeout = timeout
        self.generation_config = {
            'temperature': temperature,
            'max_output_tokens': max_tokens,
        }
        self._model = genai.GenerativeModel(model)
        LOG.info('GeminiProvider initialized', extra={'model': self.model})

    async def _generate(self, prompt: str, request_id: Optional[str]) -> str:
        start = time.time()
        resp = await asyncio.wait_for(
            self._model.generate_content_async(prompt, generation_config=self.generation_config),
            timeout=self.timeout,
        )
        duration_ms = int((time.time() - start) * 1000)
        usage = getattr(resp, 'usage_metadata', None)
        log_llm_call(
            request_id or '',
            self.name,
            self.model,
            getattr(usage, 'prompt_token_count', 0) or 0,
            getattr(usage, 'candidates_token_count', 0) or 0,
            duration_ms,
        )
        try:
            return resp.text or ''
        except ValueError:
            # no text part, e.g. a safety block
            LOG.warning('gemini_empty_response', extra={'request_id': request_id})
            return ''

    def _switch_to_fallback(self) -> bool:
        if not self.fallback_model or self.fallback_model == self.model:
            return False
        LOG.warning('gemini_model_not_found', extra={'model': self.model, 'fallback_model': self.fallback_model})
        self.model = self.fallback_model
        self._model = genai.GenerativeModel(self.fallback_model)
        return True

    async def complete(self, prompt: str, request_id: Optional[str] = None) -> str:
        try:
            return await self._generate(prompt, request_id)
        except google_exceptions.NotFound as e:
            if not self._switch_to_fallback():
                raise map_google_error(e) from e
        except (google_exceptions.GoogleAPICallError, asyncio.TimeoutError) as e:
            err = map_google_error(e)
            LOG.warning('gemini_call_failed', extra={'request_id': request_id, 'provider_kind': err.provider_kind.value, 'error': err.message})
            raise err from e

        try:
            return await self._generate(prompt, request_id)
        except (google_exceptions.GoogleAPICallError, asyncio.TimeoutError) as e:
            err = map_google_error(e)
            LOG.warning('gemini_call_failed', extra={'request_id': request_id, 'provider_kind': err.provider_kind.value, 'error': err.message})
            raise err from e
