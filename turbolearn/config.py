"""Process-wide provider configuration.

Values are read once from the environment (and an optional ``.env`` file)
the first time :func:`get_config` is called and are frozen afterwards.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional, Tuple

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = 'https://api.deepseek.com/v1'
DEFAULT_MODELS = {
    'openai': 'deepseek-chat',
    'gemini': 'gemini-1.5-pro',
}
DEFAULT_FALLBACK_MODELS = {
    'gemini': 'gemini-1.0-pro',
}
# consulted in order when AI_API_KEY is unset
PROVIDER_KEY_FIELDS = {
    'openai': ('deepseek_api_key', 'openrouter_api_key', 'openai_api_key'),
    'gemini': ('gemini_api_key',),
}


def _blank_to_none(v):
    if v is None or not str(v).strip():
        return None
    return str(v).strip()


class ProviderConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        extra='ignore',
        frozen=True,
        populate_by_name=True,
    )

    provider: Literal['openai', 'gemini'] = Field('openai', validation_alias='AI_PROVIDER')
    deepseek_api_key: Optional[str] = Field(None, validation_alias='DEEPSEEK_API_KEY', repr=False)
    openrouter_api_key: Optional[str] = Field(None, validation_alias='OPENROUTER_API_KEY', repr=False)
    openai_api_key: Optional[str] = Field(None, validation_alias='OPENAI_API_KEY', repr=False)
    gemini_api_key: Optional[str] = Field(None, validation_alias='GEMINI_API_KEY', repr=False)
    api_key: Optional[str] = Field(None, validation_alias='AI_API_KEY', validate_default=True, repr=False)
    base_url: str = Field(DEFAULT_BASE_URL, validation_alias='AI_BASE_URL')
    model_id: Optional[str] = Field(None, validation_alias='AI_MODEL', validate_default=True)
    fallback_model: Optional[str] = Field(None, validation_alias='AI_FALLBACK_MODEL', validate_default=True)
    min_request_interval_ms: int = Field(3000, ge=0, validation_alias='MIN_REQUEST_INTERVAL_MS')
    request_timeout_s: float = Field(60.0, gt=0, validation_alias='AI_REQUEST_TIMEOUT')
    max_input_chars: int = Field(6000, gt=0, validation_alias='MAX_INPUT_CHARS')
    max_tokens: int = Field(1000, gt=0, validation_alias='AI_MAX_TOKENS')
    temperature: float = Field(0.7, ge=0, le=2, validation_alias='AI_TEMPERATURE')
    quiz_question_count: int = Field(6, ge=5, le=6, validation_alias='QUIZ_QUESTION_COUNT')
    retry_attempts: int = Field(1, ge=1, validation_alias='PROVIDER_RETRY_ATTEMPTS')

    @field_validator('deepseek_api_key', 'openrouter_api_key', 'openai_api_key', 'gemini_api_key')
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator('api_key')
    @classmethod
    def key_for_provider(cls, v, info: ValidationInfo):
        v = _blank_to_none(v)
        if v is not None:
            return v
        for name in PROVIDER_KEY_FIELDS[info.data.get('provider') or 'openai']:
            if info.data.get(name):
                return info.data[name]
        return None

    @field_validator('model_id')
    @classmethod
    def default_model_for_provider(cls, v, info: ValidationInfo):
        if v and v.strip():
            return v.strip()
        return DEFAULT_MODELS[info.data.get('provider') or 'openai']

    @field_validator('fallback_model')
    @classmethod
    def default_fallback_for_provider(cls, v, info: ValidationInfo):
        v = _blank_to_none(v)
        if v is not None:
            return v
        fallback = DEFAULT_FALLBACK_MODELS.get(info.data.get('provider') or 'openai')
        return fallback if fallback != info.data.get('model_id') else None

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None

    @property
    def min_request_interval_s(self) -> float:
        return self.min_request_interval_ms / 1000.0


@lru_cache(maxsize=1)
def get_config() -> ProviderConfig:
    return ProviderConfig()


def validate_environment(config: Optional[ProviderConfig] = None) -> Tuple[List[str], List[str]]:
    """Check a configuration for deployment problems.

    Returns ``(errors, warnings)``. A missing key is an error here even
    though the service itself still starts without one.
    """
    cfg = config or get_config()
    errors: List[str] = []
    warnings: List[str] = []

    if not cfg.is_configured:
        errors.append(f'{cfg.provider}: Missing AI_API_KEY')
    elif cfg.provider == 'openai' and not cfg.api_key.startswith('sk-'):
        warnings.append('AI_API_KEY does not start with sk-; verify provider')

    if cfg.provider == 'openai' and not cfg.base_url.startswith(('http://', 'https://')):
        errors.append('AI_BASE_URL must be an http(s) URL')

    if cfg.min_request_interval_ms == 0:
        warnings.append('MIN_REQUEST_INTERVAL_MS is 0; outbound calls are not spaced')

    if cfg.provider == 'gemini' and cfg.fallback_model == cfg.model_id:
        warnings.append('AI_FALLBACK_MODEL equals AI_MODEL; fallback has no effect')

    return errors, warnings
