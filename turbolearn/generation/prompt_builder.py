"""Prompt templates for each artifact kind.

``build_prompt`` is pure: the same text, kind and limits always give the
same prompt.
"""
from __future__ import annotations

from turbolearn.errors import InvalidInputError

from .models import ArtifactKind

DEFAULT_MAX_INPUT_CHARS = 6000
DEFAULT_QUIZ_QUESTION_COUNT = 6
FLASHCARD_MIN_COUNT = 5
FLASHCARD_MAX_COUNT = 10

SUMMARY_TEMPLATE = (
    "Create a comprehensive and well-structured summary of the following text for students. "
    "Make it educational, organized with clear sections, and highlight key concepts. "
    "Return only the summary without any additional text.\n\n"
    "TEXT:\n{text}\n\n"
    "Provide a detailed summary that helps with studying."
)

FLASHCARDS_TEMPLATE = (
    "Create between {min_count} and {max_count} educational flashcards based on the following text. "
    "Each flashcard must have a clear question and a concise answer.\n\n"
    "TEXT:\n{text}\n\n"
    "Return ONLY a valid JSON array, with no markdown and no text before or after it, in this format:\n"
    '[{{"question": "Question?", "answer": "Answer."}}]'
)

QUIZ_TEMPLATE = (
    "Create a quiz with exactly {count} multiple-choice questions based on the following text. "
    "Each question must have exactly 4 options and exactly one correct answer. "
    "The answer must be copied verbatim from one of the options.\n\n"
    "TEXT:\n{text}\n\n"
    "Return ONLY a valid JSON array, with no markdown and no text before or after it, in this format:\n"
    '[{{"question": "Question?", "options": ["Option 1", "Option 2", "Option 3", "Option 4"], "answer": "Option 1"}}]'
)


def truncate_source(source_text: str, max_chars: int = DEFAULT_MAX_INPUT_CHARS) -> str:
    if not source_text or not source_text.strip():
        raise InvalidInputError('Text is required and cannot be empty')
    return source_text.strip()[:max_chars]


def build_prompt(
    source_text: str,
    kind: ArtifactKind,
    max_chars: int = DEFAULT_MAX_INPUT_CHARS,
    quiz_question_count: int = DEFAULT_QUIZ_QUESTION_COUNT,
) -> str:
    kind = ArtifactKind.parse(kind)
    text = truncate_source(source_text, max_chars)
    if kind is ArtifactKind.SUMMARY:
        return SUMMARY_TEMPLATE.format(text=text)
    if kind is ArtifactKind.FLASHCARDS:
        return FLASHCARDS_TEMPLATE.format(text=text, min_count=FLASHCARD_MIN_COUNT, max_count=FLASHCARD_MAX_COUNT)
    return QUIZ_TEMPLATE.format(text=text, count=quiz_question_count)
