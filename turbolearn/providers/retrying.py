from __future__ import annotations

from typing import Optional

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_random_exponential

from turbolearn.errors import ProviderError
from turbolearn.utils import get_logger

from .base import ProviderClient

LOG = get_logger()


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.retryable


class RetryingProvider(ProviderClient):
    """Bounded retry with jitter around another provider.

    Only rate-limited and unavailable failures are retried. Every re-attempt
    goes through the rate governor first when one is given.
    """

    def __init__(self, inner: ProviderClient, attempts: int, governor=None, wait=None):
        if attempts < 1:
            raise ValueError('attempts must be >= 1')
        self.inner = inner
        self.attempts = attempts
        self.governor = governor
        self.wait = wait or wait_random_exponential(multiplier=1, max=10)

    @property
    def name(self) -> str:
        return self.inner.name

    @property
    def model(self) -> str:
        return self.inner.model

    def _log_retry(self, retry_state):
        exc = retry_state.outcome.exception()
        LOG.warning('provider_retry', extra={
            'attempt': retry_state.attempt_number,
            'provider_kind': getattr(getattr(exc, 'provider_kind', None), 'value', None),
        })

    async def complete(self, prompt: str, request_id: Optional[str] = None) -> str:
        result = ''
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=self.wait,
            retry=retry_if_exception(_is_retryable),
            before_sleep=self._log_retry,
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1 and self.governor is not None:
                    await self.governor.throttle()
                result = await self.inner.complete(prompt, request_id=request_id)
        return result
