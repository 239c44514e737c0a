import pytest
from tenacity import wait_none

import turbolearn.providers.gemini_provider as gemini_mod
from turbolearn.errors import ProviderError, ProviderErrorKind
from turbolearn.providers import RetryingProvider, build_provider
from turbolearn.providers.openai_provider import OpenAICompatibleProvider
from tests.fixtures.mock_provider import CountingGovernor, FakeProvider


def _err(kind):
    return ProviderError(kind, kind.value)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_retryable_errors_are_retried_through_the_governor():
    inner = FakeProvider(_err(ProviderErrorKind.RATE_LIMITED), _err(ProviderErrorKind.UNAVAILABLE), 'ok')
    governor = CountingGovernor()
    provider = RetryingProvider(inner, attempts=3, governor=governor, wait=wait_none())
    assert await provider.complete('p') == 'ok'
    assert inner.calls == 3
    assert governor.throttles == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_non_retryable_error_raised_immediately():
    inner = FakeProvider(_err(ProviderErrorKind.UNAUTHENTICATED), 'ok')
    provider = RetryingProvider(inner, attempts=3, wait=wait_none())
    with pytest.raises(ProviderError) as ei:
        await provider.complete('p')
    assert ei.value.provider_kind is ProviderErrorKind.UNAUTHENTICATED
    assert inner.calls == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_quota_exceeded_is_not_retried():
    inner = FakeProvider(_err(ProviderErrorKind.QUOTA_EXCEEDED))
    provider = RetryingProvider(inner, attempts=4, wait=wait_none())
    with pytest.raises(ProviderError):
        await provider.complete('p')
    assert inner.calls == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_exhausted_attempts_reraise_last_error():
    inner = FakeProvider(_err(ProviderErrorKind.RATE_LIMITED))
    provider = RetryingProvider(inner, attempts=2, wait=wait_none())
    with pytest.raises(ProviderError) as ei:
        await provider.complete('p')
    assert ei.value.provider_kind is ProviderErrorKind.RATE_LIMITED
    assert inner.calls == 2


@pytest.mark.unit
def test_attempts_must_be_positive():
    with pytest.raises(ValueError):
        RetryingProvider(FakeProvider(), attempts=0)


@pytest.mark.unit
def test_delegates_name_and_model():
    provider = RetryingProvider(FakeProvider(), attempts=2)
    assert provider.describe() == 'fake:fake-model'


@pytest.mark.unit
def test_build_provider_unconfigured_returns_none(make_config):
    assert build_provider(make_config(api_key=None)) is None


@pytest.mark.unit
def test_build_provider_openai_compatible(make_config):
    provider = build_provider(make_config(model_id='deepseek-reasoner'))
    assert isinstance(provider, OpenAICompatibleProvider)
    assert provider.describe() == 'openai:deepseek-reasoner'


@pytest.mark.unit
def test_build_provider_wraps_when_retries_enabled(make_config):
    governor = CountingGovernor()
    provider = build_provider(make_config(retry_attempts=3), governor=governor)
    assert isinstance(provider, RetryingProvider)
    assert isinstance(provider.inner, OpenAICompatibleProvider)
    assert provider.attempts == 3
    assert provider.governor is governor


@pytest.mark.unit
def test_build_provider_gemini(make_config, monkeypatch):
    monkeypatch.setattr(gemini_mod.genai, 'configure', lambda **kw: None)
    monkeypatch.setattr(gemini_mod.genai, 'GenerativeModel', lambda name: object())
    provider = build_provider(make_config(provider='gemini', api_key='g-key'))
    assert isinstance(provider, gemini_mod.GeminiProvider)
    assert provider.model == 'gemini-1.5-pro'
    assert provider.fallback_model == 'gemini-1.0-pro'
