"""
Unit tests for domain models and Result values.
"""
import random
import uuid

import pytest

from examdeck.core.errors import LogicError
from examdeck.core.models import AttemptHistory, AttemptStatus, Question
from examdeck.core.results import Err, Ok


def _question(correct, user=None):
    return Question(
        id=uuid.uuid4(),
        topic_id=uuid.uuid4(),
        index=0,
        body="Pick the transport protocols",
        options=["UDP", "TCP", "IP", "ARP"],
        correct_answers=correct,
        user_answers=user,
    )


class TestQuestion:
    def test_unanswered_is_not_correct(self):
        question = _question(["TCP"])
        assert not question.is_answered
        assert question.is_correct() is False

    def test_multi_answer_is_order_insensitive(self):
        assert _question(["UDP", "TCP"], ["TCP", "UDP"]).is_correct()

    def test_partial_answer_is_wrong(self):
        assert not _question(["UDP", "TCP"], ["TCP"]).is_correct()

    def test_shuffle_keeps_options(self):
        question = _question(["TCP"])
        question.shuffle_options(random.Random(7))
        assert sorted(question.options) == ["ARP", "IP", "TCP", "UDP"]


class TestAttemptHistory:
    def test_status(self):
        attempt = AttemptHistory(id=uuid.uuid4(), exam_id=uuid.uuid4(), version="1.0")
        assert attempt.status(3) == AttemptStatus.IN_PROGRESS
        attempt.finished_question_amount = 3
        assert attempt.status(3) == AttemptStatus.COMPLETED

    def test_new_attempt_is_unscored(self):
        attempt = AttemptHistory(id=uuid.uuid4(), exam_id=uuid.uuid4(), version="1.0")
        assert attempt.score == -1
        assert attempt.attempt_id == 1


class TestResult:
    def test_ok(self):
        result = Ok(5)
        assert result
        assert result.unwrap() == 5

    def test_err(self):
        result = Err(LogicError("nope"))
        assert not result
        with pytest.raises(LogicError):
            result.unwrap()
