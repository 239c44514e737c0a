import pytest

from turbolearn.errors import GenerationErrorKind, InvalidInputError, ProviderError, ProviderErrorKind, UnconfiguredError
from turbolearn.generation import (
    ArtifactKind, FALLBACK_QUIZ, FlashcardItem, FlashcardsResult, QuizResult, StudyMaterialGenerator, SummaryResult,
    generate_artifact, generate_flashcards, generate_quiz, generate_summary,
)
from tests.fixtures.mock_provider import (
    CountingGovernor, FakeProvider, MOCK_FLASHCARD_RESPONSE, MOCK_QUIZ_RESPONSE, MOCK_SUMMARY_RESPONSE,
)
from tests.fixtures.sample_data import long_text


@pytest.mark.unit
@pytest.mark.asyncio
async def test_summary_end_to_end(make_generator, sample_text):
    gen = make_generator(FakeProvider(MOCK_SUMMARY_RESPONSE))
    result = await gen.generate(sample_text, ArtifactKind.SUMMARY)
    assert isinstance(result, SummaryResult)
    assert result.text == 'Plants convert light to energy.'
    assert result.fallback is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_flashcards_from_fenced_json(make_generator):
    gen = make_generator(FakeProvider(MOCK_FLASHCARD_RESPONSE))
    result = await gen.generate(long_text(), ArtifactKind.FLASHCARDS)
    assert isinstance(result, FlashcardsResult)
    assert result.items == [FlashcardItem(question='Q1', answer='A1')]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_quiz_garbage_output_gives_fallback(make_generator, sample_text):
    gen = make_generator(FakeProvider('not json'))
    result = await gen.generate(sample_text, ArtifactKind.QUIZ)
    assert isinstance(result, QuizResult)
    assert result.fallback is True
    assert result.items == list(FALLBACK_QUIZ)
    for item in result.items:
        assert len(item.options) == 4
        assert item.answer in item.options


@pytest.mark.unit
@pytest.mark.asyncio
async def test_quiz_end_to_end(make_generator, sample_text):
    gen = make_generator(FakeProvider(MOCK_QUIZ_RESPONSE))
    result = await gen.generate(sample_text, 'quiz')
    assert result.items[0].answer == 'Chemical energy'
    assert result.fallback is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_provider_rate_limit_propagates(make_generator, sample_text):
    gen = make_generator(FakeProvider(ProviderError(ProviderErrorKind.RATE_LIMITED, '429 Too Many Requests')))
    with pytest.raises(ProviderError) as ei:
        await gen.generate(sample_text, ArtifactKind.SUMMARY)
    assert ei.value.kind is GenerationErrorKind.PROVIDER_ERROR
    assert ei.value.provider_kind is ProviderErrorKind.RATE_LIMITED


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize('kind', list(ArtifactKind))
@pytest.mark.parametrize('text', ['', '   ', '\n\t', None])
async def test_blank_input_never_reaches_provider(make_generator, kind, text):
    provider = FakeProvider()
    governor = CountingGovernor()
    gen = make_generator(provider, governor=governor)
    with pytest.raises(InvalidInputError):
        await gen.generate(text, kind)
    assert provider.calls == 0
    assert governor.throttles == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unknown_kind_is_invalid_input(make_generator, sample_text):
    provider = FakeProvider()
    gen = make_generator(provider)
    with pytest.raises(InvalidInputError):
        await gen.generate(sample_text, 'essay')
    assert provider.calls == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unconfigured_raises_before_network(make_generator, sample_text):
    provider = FakeProvider()
    gen = make_generator(provider, api_key=None)
    assert gen.is_configured is False
    with pytest.raises(UnconfiguredError) as ei:
        await gen.generate(sample_text, ArtifactKind.SUMMARY)
    assert ei.value.code == 'unconfigured'
    assert provider.calls == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_blank_input_checked_before_configuration(make_generator):
    gen = make_generator(FakeProvider(), api_key=None)
    with pytest.raises(InvalidInputError):
        await gen.generate('  ', ArtifactKind.SUMMARY)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_governor_throttles_before_each_call(make_generator, sample_text):
    events = []
    gen = make_generator(FakeProvider(MOCK_SUMMARY_RESPONSE, events=events), governor=CountingGovernor(events=events))
    await gen.generate(sample_text, ArtifactKind.SUMMARY)
    await gen.generate(sample_text, ArtifactKind.FLASHCARDS)
    assert events == ['throttle', 'complete', 'throttle', 'complete']


@pytest.mark.unit
@pytest.mark.asyncio
async def test_prompt_uses_configured_truncation(make_generator):
    provider = FakeProvider(MOCK_SUMMARY_RESPONSE)
    gen = make_generator(provider, max_input_chars=100)
    await gen.generate('x' * 500, ArtifactKind.SUMMARY)
    assert 'x' * 100 in provider.prompts[0]
    assert 'x' * 101 not in provider.prompts[0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_quiz_prompt_uses_configured_count(make_generator, sample_text):
    provider = FakeProvider(MOCK_QUIZ_RESPONSE)
    gen = make_generator(provider, quiz_question_count=5)
    await gen.generate(sample_text, ArtifactKind.QUIZ)
    assert 'exactly 5 multiple-choice questions' in provider.prompts[0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_convenience_helpers_use_singleton(make_generator, sample_text):
    StudyMaterialGenerator._instance = make_generator(FakeProvider(MOCK_FLASHCARD_RESPONSE))
    out = await generate_flashcards(sample_text)
    assert out == {'kind': 'flashcards', 'items': [{'question': 'Q1', 'answer': 'A1'}], 'fallback': False}

    StudyMaterialGenerator._instance = make_generator(FakeProvider(MOCK_SUMMARY_RESPONSE))
    out = await generate_summary(sample_text)
    assert out['text'] == 'Plants convert light to energy.'

    StudyMaterialGenerator._instance = make_generator(FakeProvider('[]'))
    out = await generate_quiz(sample_text)
    assert out['fallback'] is True
    assert out['items'][0]['options'] == ['Subject A', 'Subject B', 'Subject C', 'Subject D']

    out = await generate_artifact(sample_text, 'summary')
    assert out['kind'] == 'summary'


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_instance_unconfigured(sample_text):
    gen = StudyMaterialGenerator.get_instance()
    assert gen is StudyMaterialGenerator.get_instance()
    assert gen.provider is None
    with pytest.raises(UnconfiguredError):
        await gen.generate(sample_text, ArtifactKind.SUMMARY)


@pytest.mark.unit
def test_get_instance_reads_environment(monkeypatch):
    monkeypatch.setenv('AI_API_KEY', 'sk-env')
    monkeypatch.setenv('AI_MODEL', 'deepseek-reasoner')
    gen = StudyMaterialGenerator.get_instance()
    assert gen.is_configured
    assert gen.provider.describe() == 'openai:deepseek-reasoner'
    assert gen.governor.min_interval_s == 3.0
