"""Turn raw model output into a well-shaped study artifact.

Normalization never raises. Output is first searched for a JSON array,
then each element is validated on its own. When nothing usable survives,
the named fallback constant for that kind is returned with
``fallback=True``.

Quiz answers that are not among the options are coerced in: letter answers
("B", "c)") select the option at that position, case-insensitive matches
snap to the option text, and anything else replaces the last option.
"""
from __future__ import annotations

import json
import re
from typing import Any, List, Optional

from pydantic import ValidationError

from turbolearn.utils import get_logger

from .models import (
    ArtifactKind,
    FlashcardItem,
    FlashcardsResult,
    GenerationResult,
    QuizItem,
    QuizResult,
    SummaryResult,
)

LOG = get_logger()

QUIZ_OPTION_COUNT = 4

FALLBACK_SUMMARY = 'A summary could not be generated for this text. Please try again.'

FALLBACK_FLASHCARDS = (
    FlashcardItem(
        question='What is the main topic?',
        answer='The text discusses important educational content.',
    ),
    FlashcardItem(
        question='Key concepts covered?',
        answer='Various important concepts are explained in the text.',
    ),
)

FALLBACK_QUIZ = (
    QuizItem(
        question='What is the primary subject of this text?',
        options=['Subject A', 'Subject B', 'Subject C', 'Subject D'],
        answer='Subject A',
    ),
)

_FENCE_RE = re.compile(r'```[a-zA-Z]*')
_OPTION_LABEL_RE = re.compile(r'^\s*(?:\(?[A-Da-d]\)|[A-Da-d][.:])\s+')
_LETTER_ANSWER_RE = re.compile(r'^\(?([A-Da-d])[).:]?$')

_QUESTION_KEYS = ('question', 'q', 'front', 'prompt')
_ANSWER_KEYS = ('answer', 'a', 'back')
_QUIZ_ANSWER_KEYS = ('answer', 'correct', 'correct_answer')


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub('', text or '').strip()


def extract_json_array(text: str) -> Optional[List[Any]]:
    """Return the first JSON array found in ``text``, or None."""
    cleaned = strip_code_fences(text)
    decoder = json.JSONDecoder()
    start = cleaned.find('[')
    while start != -1:
        try:
            value, _ = decoder.raw_decode(cleaned, start)
        except json.JSONDecodeError:
            value = None
        except RecursionError:
            # nesting too deep to decode; skip the whole run of opening brackets
            value = None
            while start + 1 < len(cleaned) and cleaned[start + 1] in '[ \t\r\n':
                start += 1
        if isinstance(value, list):
            return value
        start = cleaned.find('[', start + 1)
    return None


def _first_text(obj: dict, keys) -> str:
    for key in keys:
        v = obj.get(key)
        if isinstance(v, (str, int, float)) and not isinstance(v, bool):
            s = str(v).strip()
            if s:
                return s
    return ''


def _flashcard_from(element: Any) -> Optional[FlashcardItem]:
    if not isinstance(element, dict):
        return None
    question = _first_text(element, _QUESTION_KEYS)
    answer = _first_text(element, _ANSWER_KEYS)
    if not question or not answer:
        return None
    return FlashcardItem(question=question, answer=answer)


def _option_texts(raw: Any) -> List[str]:
    # label-stripped, in the order given; positions still match answer letters
    if not isinstance(raw, list):
        return []
    out: List[str] = []
    for opt in raw:
        if not isinstance(opt, (str, int, float)) or isinstance(opt, bool):
            continue
        text = _OPTION_LABEL_RE.sub('', str(opt)).strip()
        if text:
            out.append(text)
    return out


def _dedupe(texts: List[str]) -> List[str]:
    out: List[str] = []
    seen = set()
    for text in texts:
        if text.lower() not in seen:
            seen.add(text.lower())
            out.append(text)
    return out


def _resolve_letter_answer(options: List[str], answer: str) -> str:
    """Map a letter answer ("B", "c)") to the option at that position."""
    letter = _LETTER_ANSWER_RE.match(answer)
    if not letter or answer in options:
        return answer
    idx = 'abcd'.index(letter.group(1).lower())
    if idx < len(options):
        return options[idx]
    return answer


def repair_quiz_options(options: List[str], answer: str) -> Optional[tuple]:
    """Return ``(options, answer)`` with exactly four options containing the answer.

    Returns None when there are fewer than two usable options.
    """
    if len(options) < 2:
        return None
    answer = _resolve_letter_answer(options, answer)
    opts = list(options[:QUIZ_OPTION_COUNT])
    n = 1
    while len(opts) < QUIZ_OPTION_COUNT:
        placeholder = 'None of the above' if n == 1 else f'Option {n}'
        n += 1
        if placeholder.lower() not in {o.lower() for o in opts}:
            opts.append(placeholder)

    if answer in opts:
        return opts, answer
    for o in opts:
        if o.lower() == answer.lower():
            return opts, o

    # answer not offered; it takes the last slot
    opts[-1] = answer
    return opts, answer


def _quiz_item_from(element: Any) -> Optional[QuizItem]:
    if not isinstance(element, dict):
        return None
    question = _first_text(element, ('question', 'prompt'))
    raw_answer = _first_text(element, _QUIZ_ANSWER_KEYS)
    answer = _OPTION_LABEL_RE.sub('', raw_answer).strip() or raw_answer
    if not question or not answer:
        return None
    texts = _option_texts(element.get('options'))
    # letters refer to positions before duplicates are collapsed
    answer = _resolve_letter_answer(texts, answer)
    repaired = repair_quiz_options(_dedupe(texts), answer)
    if repaired is None:
        return None
    options, answer = repaired
    try:
        return QuizItem(question=question, options=options, answer=answer)
    except ValidationError:
        return None


def normalize_summary(raw_text: Optional[str]) -> SummaryResult:
    text = (raw_text or '').strip()
    if not text:
        LOG.warning('normalizer_fallback', extra={'kind': ArtifactKind.SUMMARY.value, 'reason': 'empty'})
        return SummaryResult(text=FALLBACK_SUMMARY, fallback=True)
    return SummaryResult(text=text)


def normalize_flashcards(raw_text: Optional[str]) -> FlashcardsResult:
    elements = extract_json_array(raw_text or '')
    items = [c for c in (_flashcard_from(e) for e in (elements or [])) if c is not None]
    if not items:
        LOG.warning('normalizer_fallback', extra={'kind': ArtifactKind.FLASHCARDS.value, 'reason': 'unparsable' if elements is None else 'no_valid_items'})
        return FlashcardsResult(items=list(FALLBACK_FLASHCARDS), fallback=True)
    if elements and len(items) < len(elements):
        LOG.info('normalizer_dropped_items', extra={'kind': ArtifactKind.FLASHCARDS.value, 'dropped': len(elements) - len(items)})
    return FlashcardsResult(items=items)


def normalize_quiz(raw_text: Optional[str]) -> QuizResult:
    elements = extract_json_array(raw_text or '')
    items = [q for q in (_quiz_item_from(e) for e in (elements or [])) if q is not None]
    if not items:
        LOG.warning('normalizer_fallback', extra={'kind': ArtifactKind.QUIZ.value, 'reason': 'unparsable' if elements is None else 'no_valid_items'})
        return QuizResult(items=list(FALLBACK_QUIZ), fallback=True)
    if elements and len(items) < len(elements):
        LOG.info('normalizer_dropped_items', extra={'kind': ArtifactKind.QUIZ.value, 'dropped': len(elements) - len(items)})
    return QuizResult(items=items)


_NORMALIZERS = {
    ArtifactKind.SUMMARY: normalize_summary,
    ArtifactKind.FLASHCARDS: normalize_flashcards,
    ArtifactKind.QUIZ: normalize_quiz,
}


def normalize(raw_text: Optional[str], kind: ArtifactKind) -> GenerationResult:
    return _NORMALIZERS[ArtifactKind(kind)](raw_text)
