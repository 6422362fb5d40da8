"""
Typed schema for exam source documents.

One JSON document per exam:

    {
      "version": "1.2", "origin": "...", "name": "...", "description": "...",
      "last_updated": "2024-05-01T00:00:00Z",
      "topics": [
        {"name": "...", "questions": [
          {"text": "...", "options": ["A", "B"], "correct_answer": ["A"]}
        ]}
      ]
    }

Documents are validated into these models before anything reaches the stores.
Unknown keys are ignored; missing or wrong-typed keys fail validation.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from examdeck.core.versioning import parse_timestamp


class QuestionDocument(BaseModel):
    """A question as authored in the source document."""

    model_config = ConfigDict(extra="ignore")

    text: str
    options: list[str]
    correct_answer: list[str]

    @model_validator(mode="after")
    def _answers_are_options(self) -> "QuestionDocument":
        unknown = [a for a in self.correct_answer if a not in self.options]
        if unknown:
            raise ValueError(f"correct_answer not among options: {unknown}")
        return self


class TopicDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    questions: list[QuestionDocument]


class ExamDocument(BaseModel):
    """Top-level exam document."""

    model_config = ConfigDict(extra="ignore")

    version: str
    origin: str
    name: str
    description: str
    last_updated: str
    topics: list[TopicDocument] = Field(min_length=1)

    @field_validator("last_updated")
    @classmethod
    def _iso_timestamp(cls, value: str) -> str:
        try:
            parse_timestamp(value)
        except ValueError as e:
            raise ValueError(f"last_updated is not ISO-8601: {value!r}") from e
        return value

    @property
    def last_updated_at(self) -> datetime:
        return parse_timestamp(self.last_updated)

    @property
    def question_count(self) -> int:
        return sum(len(topic.questions) for topic in self.topics)
