"""Error taxonomy shared by the providers, the facade and the HTTP layer.

Every error carries a stable ``code`` string that the transport renders as
the ``error`` field, plus a free-form diagnostic ``message``.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class GenerationErrorKind(str, Enum):
    INVALID_INPUT = 'invalid_input'
    UNCONFIGURED = 'unconfigured'
    PROVIDER_ERROR = 'provider_error'


class ProviderErrorKind(str, Enum):
    UNAUTHENTICATED = 'unauthenticated'
    RATE_LIMITED = 'rate_limited'
    QUOTA_EXCEEDED = 'quota_exceeded'
    UNAVAILABLE = 'unavailable'
    UNKNOWN = 'unknown'


_PROVIDER_CODES = {
    ProviderErrorKind.UNAUTHENTICATED: 'unauthenticated',
    ProviderErrorKind.RATE_LIMITED: 'rate_limited',
    ProviderErrorKind.QUOTA_EXCEEDED: 'quota_exceeded',
    ProviderErrorKind.UNAVAILABLE: 'provider_unavailable',
    ProviderErrorKind.UNKNOWN: 'provider_error',
}


class GenerationError(Exception):
    kind: GenerationErrorKind = GenerationErrorKind.PROVIDER_ERROR

    def __init__(self, message: str = ''):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return self.kind.value


class InvalidInputError(GenerationError):
    kind = GenerationErrorKind.INVALID_INPUT


class UnconfiguredError(GenerationError):
    kind = GenerationErrorKind.UNCONFIGURED


class ProviderError(GenerationError):
    kind = GenerationErrorKind.PROVIDER_ERROR

    def __init__(self, provider_kind: ProviderErrorKind, message: str = '', status_code: Optional[int] = None):
        super().__init__(message)
        self.provider_kind = provider_kind
        self.status_code = status_code

    @property
    def code(self) -> str:
        return _PROVIDER_CODES[self.provider_kind]

    @property
    def retryable(self) -> bool:
        return self.provider_kind in (ProviderErrorKind.RATE_LIMITED, ProviderErrorKind.UNAVAILABLE)

    def __repr__(self):
        return f'ProviderError({self.provider_kind.value!r}, {self.message!r})'
