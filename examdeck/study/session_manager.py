"""
Session manager: the in-memory attempt state machine.

Holds the single active exam context and a derived navigation window
(prev/current/next question plus per-index marked/answered flags) built from
the active ExamStore. The window is a cache: it is rebuilt on exam selection
and new attempts, refreshed on index changes, and patched in place on
answer submit/discard and bookmark toggles. Nothing is persisted here; every
mutation is written to the ExamStore before the call reports success.
"""

from __future__ import annotations

import random
from dataclasses import replace

from loguru import logger

from examdeck.core.errors import LogicError, StatementError, StoreOpenError
from examdeck.core.models import (
    AttemptHistory,
    AttemptStatus,
    Exam,
    Question,
    QuestionHistory,
    QuestionStatus,
    UNSCORED,
)
from examdeck.core.results import Err, Ok, Result
from examdeck.db.catalog_store import CatalogStore
from examdeck.db.exam_store import ExamStore


class SessionManager:
    """
    Navigable, mutable state for one exam attempt at a time.

    Answering is two-phase: ``submit_answer`` stages the answer so a UI can
    give immediate feedback, ``save_answer_to_database`` makes it durable.
    """

    def __init__(self, catalog: CatalogStore, exam_store: ExamStore):
        self.catalog = catalog
        self.exam_store = exam_store

        self.current_exam: Exam | None = None
        self.current_attempt: AttemptHistory | None = None
        self.attempt_finished: bool = False

        self.question_list: dict[int, QuestionStatus] = {}
        self.current_index: int = 0
        self.prev_question: Question | None = None
        self.current_question: Question | None = None
        self.next_question: Question | None = None

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _logic_error(message: str) -> Result:
        logger.warning(message)
        return Err(LogicError(message))

    @staticmethod
    def _statement_error(message: str) -> Result:
        logger.error(message)
        return Err(StatementError(message))

    def _reset(self) -> None:
        self.current_exam = None
        self.current_attempt = None
        self.attempt_finished = False
        self.question_list = {}
        self.current_index = 0
        self.prev_question = self.current_question = self.next_question = None

    @property
    def attempt_status(self) -> AttemptStatus:
        if self.current_attempt is None or self.current_exam is None:
            return AttemptStatus.NO_ATTEMPT
        return self.current_attempt.status(self.current_exam.question_amount)

    def _completed(self) -> bool:
        return (
            self.current_attempt is not None
            and self.current_exam is not None
            and self.current_attempt.finished_question_amount == self.current_exam.question_amount
        )

    # =========================================================================
    # Exam selection & window
    # =========================================================================

    def select_exam(self, exam: Exam) -> Result:
        """
        Make ``exam`` the active exam and resume its latest attempt.

        The current index lands on the highest answered question (0 if none).
        """
        try:
            self.exam_store.activate(exam.file_name)
        except StoreOpenError as e:
            logger.error(f"Cannot select {exam.file_name}: {e}")
            self._reset()
            return Err(e)

        attempt = self.exam_store.get_latest_attempt_history(exam)
        if attempt is None:
            self._reset()
            return self._statement_error(f"Cannot load attempt history for {exam.file_name}")

        self.current_exam = exam
        self.current_attempt = attempt
        self.attempt_finished = self._completed()
        self._rebuild_question_list()
        answered = [index for index, status in self.question_list.items() if status.answered]
        self.current_index = max(answered, default=0)
        self._refresh_window()

        logger.info(
            f"Selected {exam.file_name} v{exam.version}: attempt #{attempt.attempt_id}, "
            f"{attempt.finished_question_amount}/{exam.question_amount} finished"
        )
        return Ok(exam)

    def _rebuild_question_list(self) -> None:
        self.question_list = self.exam_store.get_question_list_map()

    def _load(self, index: int, version: str) -> Question | None:
        status = self.question_list.get(index)
        if status is None:
            return None
        return self.exam_store.get_question_by_id(status.id, version)

    def _refresh_window(self) -> None:
        if self.current_exam is None:
            return
        version = self.current_exam.version
        last = len(self.question_list) - 1

        self.prev_question = self._load(self.current_index - 1, version) if self.current_index > 0 else None
        self.current_question = self._load(self.current_index, version)
        self.next_question = self._load(self.current_index + 1, version) if self.current_index < last else None

        # Never show an answer recorded against another bank version
        if (
            self.current_question is not None
            and self.current_question.user_answers is not None
            and self.current_attempt is not None
            and self.current_attempt.version != version
        ):
            self.current_question.user_answers = None

    # =========================================================================
    # Navigation
    # =========================================================================

    def set_current_question(self, index: int) -> Result:
        if not 0 <= index < len(self.question_list):
            return self._logic_error(
                f"Question index {index} out of range (0..{len(self.question_list) - 1})"
            )
        self.current_index = index
        self._refresh_window()
        return Ok(index)

    def move_next(self) -> Result:
        if self.current_index >= len(self.question_list) - 1:
            return Ok(self.current_index)
        return self.set_current_question(self.current_index + 1)

    def move_previous(self) -> Result:
        if self.current_index <= 0:
            return Ok(self.current_index)
        return self.set_current_question(self.current_index - 1)

    # =========================================================================
    # Answers
    # =========================================================================

    def is_correct(self) -> bool:
        return self.current_question is not None and self.current_question.is_correct()

    def shuffle_options(self, rng: random.Random | None = None) -> None:
        if self.current_question is not None:
            self.current_question.shuffle_options(rng)

    def submit_answer(self, answers: list[str]) -> Result:
        """Stage an answer on the current question (not yet persisted)."""
        if self.current_question is None:
            return self._logic_error("No current question to answer")

        self.current_question.user_answers = list(answers)
        status = self.question_list.get(self.current_index)
        if status is not None:
            status.answered = True
        return Ok(self.current_question.is_correct())

    def save_answer_to_database(self) -> Result:
        """
        Persist the staged answer and advance the attempt.

        Re-saving an already recorded question replaces its answer without
        counting it twice. When the finished count reaches the exam's question
        count, the attempt is completed and scored. A new question is refused
        once the attempt already counts every question.
        """
        question = self.current_question
        attempt = self.current_attempt
        if attempt is None or self.current_exam is None:
            return self._logic_error("Cannot save answer: no active attempt")
        if question is None or question.user_answers is None:
            return self._logic_error("Cannot save answer: no staged answer on the current question")

        already_recorded = self.exam_store.has_question_history(question.id, attempt.id)
        if not already_recorded and attempt.finished_question_amount >= self.current_exam.question_amount:
            question.user_answers = None
            self._set_answered(False)
            return self._logic_error(
                f"Attempt #{attempt.attempt_id} already has every question answered; "
                f"start a new attempt to answer question {question.index}"
            )

        entry = QuestionHistory(
            attempt_history_id=attempt.id,
            question_id=question.id,
            is_correct=question.is_correct(),
            user_answer=list(question.user_answers),
        )
        if not self.exam_store.insert_question_history(entry):
            self._set_answered(already_recorded)
            return self._statement_error(f"Cannot save answer for question {question.id}")

        updated = attempt
        if not already_recorded:
            updated = replace(attempt, finished_question_amount=attempt.finished_question_amount + 1)
        if updated.finished_question_amount == self.current_exam.question_amount:
            updated = replace(updated, score=self._score(updated))

        if not self.exam_store.update_attempt_history(updated):
            if not already_recorded:
                self.exam_store.remove_question_history(question.id, attempt.id)
                self._set_answered(False)
            return self._statement_error(f"Cannot update attempt {attempt.id}")

        self.current_attempt = updated
        self.attempt_finished = self._completed()
        if self.attempt_finished:
            logger.info(
                f"Attempt #{updated.attempt_id} of {self.current_exam.file_name} completed "
                f"(score {updated.score:.2f})"
            )
        return Ok(entry)

    def _score(self, attempt: AttemptHistory) -> float:
        if self.current_exam is None or self.current_exam.question_amount == 0:
            return 0.0
        correct = sum(1 for h in self.exam_store.get_question_histories(attempt.id) if h.is_correct)
        return correct / self.current_exam.question_amount

    def _set_answered(self, answered: bool) -> None:
        status = self.question_list.get(self.current_index)
        if status is not None:
            status.answered = answered

    def discard_answer(self) -> Result:
        """Undo the answer on the current question and step the attempt back."""
        question = self.current_question
        attempt = self.current_attempt
        if attempt is None or question is None:
            return self._logic_error("Cannot discard answer: no active question")

        if not self.exam_store.has_question_history(question.id, attempt.id):
            if question.user_answers is None:
                return self._logic_error(f"Question {question.index} has no answer to discard")
            # Staged only, nothing persisted yet
            question.user_answers = None
            self._set_answered(False)
            return Ok(attempt)

        if attempt.finished_question_amount <= 0:
            return self._logic_error("Cannot discard answer: attempt has no finished questions")

        previous = QuestionHistory(
            attempt_history_id=attempt.id,
            question_id=question.id,
            is_correct=question.is_correct(),
            user_answer=list(question.user_answers or []),
        )
        if not self.exam_store.remove_question_history(question.id, attempt.id):
            return self._statement_error(f"Cannot remove answer for question {question.id}")

        updated = replace(
            attempt,
            finished_question_amount=attempt.finished_question_amount - 1,
            score=UNSCORED,
        )
        if not self.exam_store.update_attempt_history(updated):
            self.exam_store.insert_question_history(previous)
            return self._statement_error(f"Cannot update attempt {attempt.id}")

        question.user_answers = None
        self._set_answered(False)
        self.current_attempt = updated
        self.attempt_finished = False
        return Ok(updated)

    # =========================================================================
    # Bookmarks
    # =========================================================================

    def toggle_marked(self) -> Result:
        question = self.current_question
        if question is None:
            return self._logic_error("No current question to mark")

        question.marked = not question.marked
        if not self.exam_store.set_marked(question):
            question.marked = not question.marked
            return self._statement_error(f"Cannot persist bookmark for question {question.id}")

        status = self.question_list.get(question.index)
        if status is not None:
            status.marked = question.marked
        return Ok(question.marked)

    # =========================================================================
    # Attempts & progress
    # =========================================================================

    def start_new_attempt(self) -> Result:
        """
        Begin a new pass through the active exam.

        Allowed from a completed or an in-progress attempt; earlier attempts are
        kept and only superseded as "latest". The window restarts at index 0.
        """
        if self.current_exam is None or self.current_attempt is None:
            return self._logic_error("Cannot start a new attempt: no exam selected")

        attempt = AttemptHistory.fresh(
            self.current_exam, attempt_id=self.current_attempt.attempt_id + 1
        )
        if not self.exam_store.insert_attempt_history(attempt):
            return self._statement_error("Cannot persist new attempt")

        self.current_attempt = attempt
        self.attempt_finished = False
        self._rebuild_question_list()
        self.current_index = 0
        self._refresh_window()
        logger.info(f"Started attempt #{attempt.attempt_id} of {self.current_exam.file_name}")
        return Ok(attempt)

    def get_progress_percentage(self, exam: Exam) -> float:
        """
        Fraction of ``exam`` finished in its latest persisted attempt, in [0, 1].

        Works for any catalog exam. When ``exam`` is not the active one its store
        is opened for the read and the active store is restored afterwards.
        """
        if exam.question_amount <= 0:
            return 0.0

        active = self.exam_store.active_file_name
        try:
            self.exam_store.activate(exam.file_name)
            attempt = self.exam_store.get_latest_attempt_history(exam)
        except StoreOpenError as e:
            logger.error(f"Cannot read progress for {exam.file_name}: {e}")
            attempt = None
        finally:
            if active is not None and active != exam.file_name:
                self.exam_store.activate(active)
            elif active is None:
                self.exam_store.close()

        if attempt is None:
            return 0.0
        return min(1.0, max(0.0, attempt.finished_question_amount / exam.question_amount))
