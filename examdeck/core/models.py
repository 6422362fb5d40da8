"""
Domain models shared by the stores and the session manager.

Ids are UUIDs in memory and text in the stores. Timestamps are timezone-aware
datetimes in memory and ISO-8601 text in the stores.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


# =============================================================================
# Catalog
# =============================================================================


@dataclass
class Exam:
    """One versioned question bank, keyed stably by its file name."""

    id: uuid.UUID
    name: str
    version: str
    origin: str
    description: str
    last_updated: datetime
    file_name: str
    question_amount: int = 0


# =============================================================================
# Exam Store
# =============================================================================


@dataclass
class Topic:
    id: uuid.UUID
    name: str


@dataclass
class Question:
    """A single question with its options and the user's staged answer."""

    id: uuid.UUID
    topic_id: uuid.UUID
    index: int
    body: str
    options: list[str]
    correct_answers: list[str]
    marked: bool = False
    offset: float = 0.0  # Layout offset, persisted for presentation continuity
    user_answers: list[str] | None = None

    @property
    def is_answered(self) -> bool:
        return self.user_answers is not None

    def is_correct(self) -> bool:
        """Order-insensitive comparison of submitted and correct answers."""
        if self.user_answers is None:
            return False
        return set(self.user_answers) == set(self.correct_answers)

    def shuffle_options(self, rng: random.Random | None = None) -> None:
        """Shuffle the option order in place (display only, never persisted)."""
        (rng or random).shuffle(self.options)


class AttemptStatus(str, Enum):
    """Lifecycle of one attempt."""

    NO_ATTEMPT = "no_attempt"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


UNSCORED = -1.0


@dataclass
class AttemptHistory:
    """One numbered pass through an exam, pinned to the exam version it started on."""

    id: uuid.UUID
    exam_id: uuid.UUID
    version: str
    attempt_id: int = 1  # Ordinal, monotonic per exam
    mode: str = ""
    score: float = UNSCORED
    finished_question_amount: int = 0

    def status(self, question_amount: int) -> AttemptStatus:
        if self.finished_question_amount >= question_amount:
            return AttemptStatus.COMPLETED
        return AttemptStatus.IN_PROGRESS

    @classmethod
    def fresh(cls, exam: Exam, attempt_id: int = 1) -> "AttemptHistory":
        """Create an empty, unscored attempt against the exam's current version."""
        return cls(
            id=uuid.uuid4(),
            exam_id=exam.id,
            version=exam.version,
            attempt_id=attempt_id,
        )


@dataclass
class QuestionHistory:
    """The durable record of one submitted answer within one attempt."""

    attempt_history_id: uuid.UUID
    question_id: uuid.UUID
    user_answer: list[str]
    is_correct: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)


# =============================================================================
# Session window
# =============================================================================


@dataclass
class QuestionStatus:
    """Navigation entry for one question index."""

    marked: bool
    answered: bool
    id: uuid.UUID
