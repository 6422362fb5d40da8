"""
Core domain types shared by every examdeck layer.
"""

from .errors import (
    CapacityError,
    ExamDeckError,
    LogicError,
    StatementError,
    StoreOpenError,
    ValidationError,
)
from .models import (
    AttemptHistory,
    AttemptStatus,
    Exam,
    Question,
    QuestionHistory,
    QuestionStatus,
    Topic,
)
from .results import Err, Ok, Result

__all__ = [
    "AttemptHistory",
    "AttemptStatus",
    "CapacityError",
    "Err",
    "Exam",
    "ExamDeckError",
    "LogicError",
    "Ok",
    "Question",
    "QuestionHistory",
    "QuestionStatus",
    "Result",
    "StatementError",
    "StoreOpenError",
    "Topic",
    "ValidationError",
]
