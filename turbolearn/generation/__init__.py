"""
Study-material generation: prompt building, throttling, normalization
and the facade that sequences them.
"""
from .models import ArtifactKind, GenerationRequest, FlashcardItem, QuizItem, SummaryResult, FlashcardsResult, QuizResult, GenerationResult
from .prompt_builder import build_prompt, truncate_source
from .rate_governor import RateGovernor
from .normalizer import normalize, extract_json_array, FALLBACK_SUMMARY, FALLBACK_FLASHCARDS, FALLBACK_QUIZ
from .facade import StudyMaterialGenerator, generate_artifact, generate_summary, generate_flashcards, generate_quiz

__all__ = [
	'ArtifactKind', 'GenerationRequest', 'FlashcardItem', 'QuizItem',
	'SummaryResult', 'FlashcardsResult', 'QuizResult', 'GenerationResult',
	'build_prompt', 'truncate_source', 'RateGovernor',
	'normalize', 'extract_json_array', 'FALLBACK_SUMMARY', 'FALLBACK_FLASHCARDS', 'FALLBACK_QUIZ',
	'StudyMaterialGenerator', 'generate_artifact', 'generate_summary', 'generate_flashcards', 'generate_quiz',
]
