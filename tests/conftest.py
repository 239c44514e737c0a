import os
import pytest
from unittest.mock import MagicMock
from pathlib import Path

from dotenv import load_dotenv

# load test env first
env_path = Path(__file__).resolve().parents[1] / '.env.test'
if env_path.exists():
    load_dotenv(env_path)

os.environ.setdefault('TESTING', '1')

PROVIDER_ENV_VARS = (
    'AI_PROVIDER', 'AI_API_KEY', 'DEEPSEEK_API_KEY', 'OPENROUTER_API_KEY', 'OPENAI_API_KEY', 'GEMINI_API_KEY',
    'AI_BASE_URL', 'AI_MODEL', 'AI_FALLBACK_MODEL', 'MIN_REQUEST_INTERVAL_MS', 'AI_REQUEST_TIMEOUT',
    'MAX_INPUT_CHARS', 'AI_MAX_TOKENS', 'AI_TEMPERATURE', 'QUIZ_QUESTION_COUNT', 'PROVIDER_RETRY_ATTEMPTS',
)


@pytest.fixture(autouse=True)
def silence_logger(monkeypatch):
    # Patch any project logger acquisition to avoid noisy logs
    try:
        import turbolearn.utils.logger as logger_mod
        monkeypatch.setattr(logger_mod, 'get_logger', lambda *a, **k: MagicMock())
    except Exception:
        pass
    yield


@pytest.fixture(autouse=True)
def clean_provider_env(monkeypatch):
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    from turbolearn.config import get_config
    from turbolearn.generation import StudyMaterialGenerator
    get_config.cache_clear()
    StudyMaterialGenerator._instance = None
    yield
    get_config.cache_clear()
    StudyMaterialGenerator._instance = None


@pytest.fixture
def make_config():
    from turbolearn.config import ProviderConfig

    def _make(**overrides):
        values = {'api_key': 'sk-test', 'min_request_interval_ms': 0}
        values.update(overrides)
        return ProviderConfig(_env_file=None, **values)

    return _make


@pytest.fixture
def fake_provider():
    from tests.fixtures.mock_provider import FakeProvider
    return FakeProvider


@pytest.fixture
def make_generator(make_config):
    from turbolearn.generation import StudyMaterialGenerator
    from tests.fixtures.mock_provider import CountingGovernor

    def _make(provider, governor=None, **config_overrides):
        return StudyMaterialGenerator(
            config=make_config(**config_overrides),
            provider=provider,
            governor=governor or CountingGovernor(),
        )

    return _make


@pytest.fixture
def sample_text():
    from tests.fixtures.sample_data import PHOTOSYNTHESIS_TEXT
    return PHOTOSYNTHESIS_TEXT
