from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from turbolearn.errors import InvalidInputError


class ArtifactKind(str, Enum):
    SUMMARY = 'summary'
    FLASHCARDS = 'flashcards'
    QUIZ = 'quiz'

    @classmethod
    def parse(cls, value) -> 'ArtifactKind':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            allowed = '|'.join(k.value for k in cls)
            raise InvalidInputError(f'kind must be one of {allowed}, got {value!r}') from e


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_text: str
    kind: ArtifactKind

    @field_validator('source_text', mode='before')
    @classmethod
    def not_blank(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise InvalidInputError('Text is required and cannot be empty')
        if not isinstance(v, str):
            raise InvalidInputError('Text must be a string')
        return v

    @field_validator('kind', mode='before')
    @classmethod
    def coerce_kind(cls, v):
        return ArtifactKind.parse(v)


class FlashcardItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)

    @field_validator('question', 'answer', mode='before')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class QuizItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=4, max_length=4)
    answer: str = Field(min_length=1)

    @model_validator(mode='after')
    def answer_among_options(self):
        if self.answer not in self.options:
            raise ValueError('answer must be one of options')
        return self


class SummaryResult(BaseModel):
    kind: Literal[ArtifactKind.SUMMARY] = ArtifactKind.SUMMARY
    text: str
    fallback: bool = False

    def payload(self) -> Dict[str, Any]:
        return {'summary': self.text}


class FlashcardsResult(BaseModel):
    kind: Literal[ArtifactKind.FLASHCARDS] = ArtifactKind.FLASHCARDS
    items: List[FlashcardItem]
    fallback: bool = False

    def payload(self) -> Dict[str, Any]:
        return {'flashcards': [i.model_dump() for i in self.items]}


class QuizResult(BaseModel):
    kind: Literal[ArtifactKind.QUIZ] = ArtifactKind.QUIZ
    items: List[QuizItem]
    fallback: bool = False

    def payload(self) -> Dict[str, Any]:
        return {'quiz': [i.model_dump() for i in self.items]}


GenerationResult = Annotated[
    Union[SummaryResult, FlashcardsResult, QuizResult],
    Field(discriminator='kind'),
]
