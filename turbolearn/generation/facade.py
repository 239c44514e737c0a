"""Single entry point for study-material generation.

Provides:
- StudyMaterialGenerator singleton sequencing prompt -> throttle -> provider -> normalizer
- generate_artifact / generate_summary / generate_flashcards / generate_quiz convenience coroutines

Errors: InvalidInputError and UnconfiguredError are raised before any network
activity; ProviderError propagates unchanged. No retries happen here.
"""
from __future__ import annotations

import time
from typing import Any, Dict, Optional

from turbolearn.config import ProviderConfig, get_config
from turbolearn.errors import ProviderError, UnconfiguredError
from turbolearn.providers import ProviderClient, build_provider
from turbolearn.utils import get_logger, log_generation

from .models import ArtifactKind, GenerationRequest, GenerationResult, SummaryResult
from .normalizer import normalize
from .prompt_builder import build_prompt
from .rate_governor import RateGovernor

LOG = get_logger()


class StudyMaterialGenerator:
    _instance = None

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        provider: Optional[ProviderClient] = None,
        governor: Optional[RateGovernor] = None,
    ):
        self.config = config or get_config()
        self.governor = governor or RateGovernor(self.config.min_request_interval_s)
        self.provider = provider if provider is not None else build_provider(self.config, governor=self.governor)
        if self.provider is None:
            LOG.warning('StudyMaterialGenerator unconfigured', extra={'provider': self.config.provider})
        else:
            LOG.info('StudyMaterialGenerator initialized', extra={'provider': self.provider.describe()})

    @classmethod
    def get_instance(cls) -> 'StudyMaterialGenerator':
        if cls._instance is None:
            cls._instance = StudyMaterialGenerator()
        return cls._instance

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured and self.provider is not None

    async def generate(self, source_text: str, kind, request_id: Optional[str] = None) -> GenerationResult:
        req = GenerationRequest(source_text=source_text, kind=kind)
        if not self.is_configured:
            raise UnconfiguredError('AI API key not configured')

        LOG.info('generation_start', extra={'request_id': request_id, 'kind': req.kind.value, 'text_length': len(source_text)})
        start = time.time()
        prompt = build_prompt(
            req.source_text,
            req.kind,
            max_chars=self.config.max_input_chars,
            quiz_question_count=self.config.quiz_question_count,
        )
        await self.governor.throttle()
        try:
            raw = await self.provider.complete(prompt, request_id=request_id)
        except ProviderError as e:
            LOG.warning('generation_provider_failed', extra={'request_id': request_id, 'kind': req.kind.value, 'provider_kind': e.provider_kind.value})
            raise

        result = normalize(raw, req.kind)
        duration_ms = int((time.time() - start) * 1000)
        item_count = 1 if isinstance(result, SummaryResult) else len(result.items)
        log_generation(request_id or '', req.kind.value, item_count, result.fallback, duration_ms)
        return result


async def generate_artifact(source_text: str, kind, request_id: Optional[str] = None) -> Dict[str, Any]:
    g = StudyMaterialGenerator.get_instance()
    res = await g.generate(source_text, kind, request_id=request_id)
    return res.model_dump(mode='json')


async def generate_summary(source_text: str, request_id: Optional[str] = None) -> Dict[str, Any]:
    return await generate_artifact(source_text, ArtifactKind.SUMMARY, request_id=request_id)


async def generate_flashcards(source_text: str, request_id: Optional[str] = None) -> Dict[str, Any]:
    return await generate_artifact(source_text, ArtifactKind.FLASHCARDS, request_id=request_id)


async def generate_quiz(source_text: str, request_id: Optional[str] = None) -> Dict[str, Any]:
    return await generate_artifact(source_text, ArtifactKind.QUIZ, request_id=request_id)
