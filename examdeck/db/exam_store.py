"""
SQLite per-exam store ({file_name}.db).

Holds topics, questions, attempt history and per-question answer history for
one exam. Exactly one exam store is open at a time: ``activate`` closes the
current connection before opening the next one, and every query implicitly
targets "the" active exam.

Ordered string lists (options, correct answers, submitted answers) are stored
as single text columns through ``examdeck.core.codec``.
"""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

from loguru import logger

from examdeck.core import codec
from examdeck.core.errors import LogicError, StoreOpenError
from examdeck.core.models import (
    AttemptHistory,
    Exam,
    Question,
    QuestionHistory,
    QuestionStatus,
    Topic,
)

# Subquery selecting the attempt with the highest ordinal in this store
_LATEST_ATTEMPT = "(SELECT id FROM attempt_history ORDER BY attempt_id DESC LIMIT 1)"


class ExamStore:
    """
    Owning handle for the currently active exam database.

    Handles:
    - Idempotent seeding of topics and questions
    - Attempt history with version reconciliation
    - Question history (submit / undo answer)
    - The question-list map backing the session window
    """

    def __init__(self, data_dir: Path, extension: str = "db"):
        """
        Args:
            data_dir: Directory holding one store file per exam
            extension: Store file extension
        """
        self.data_dir = Path(data_dir)
        self.extension = extension
        self._conn: sqlite3.Connection | None = None
        self._file_name: str | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def active_file_name(self) -> str | None:
        return self._file_name

    @property
    def is_active(self) -> bool:
        return self._conn is not None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise LogicError("No exam store is active; call activate() first")
        return self._conn

    def path_for(self, file_name: str) -> Path:
        return self.data_dir / f"{file_name}.{self.extension}"

    def activate(self, file_name: str) -> None:
        """
        Make ``file_name`` the active exam store, creating it if absent.

        The previous store is always closed first. If the new store cannot be
        opened, no store is left active.

        Raises:
            StoreOpenError: if the store file cannot be opened or initialized
        """
        if self._file_name == file_name and self._conn is not None:
            return

        self.close()
        path = self.path_for(file_name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(path))
            conn.row_factory = sqlite3.Row
            self._init_schema(conn)
        except (OSError, sqlite3.Error) as e:
            raise StoreOpenError(f"Cannot open exam store {path}: {e}") from e

        self._conn = conn
        self._file_name = file_name
        logger.debug(f"Exam store active: {path}")

    def close(self) -> None:
        """Close the active connection, if any."""
        if self._conn is not None:
            self._conn.close()
            logger.debug(f"Exam store closed: {self._file_name}")
        self._conn = None
        self._file_name = None

    @staticmethod
    def _init_schema(conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS topics (
                id TEXT PRIMARY KEY,
                name TEXT,
                UNIQUE(name)
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS questions (
                id TEXT PRIMARY KEY,
                topic_id TEXT,
                "index" INTEGER,
                body TEXT,
                options TEXT,
                correct_answers TEXT,
                marked BOOLEAN DEFAULT 0,
                "offset" REAL DEFAULT 0,
                FOREIGN KEY (topic_id) REFERENCES topics(id),
                UNIQUE(body, options, "index")
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS attempt_history (
                id TEXT PRIMARY KEY,
                exam_id TEXT,
                version TEXT,
                attempt_id INTEGER,
                mode TEXT,
                score REAL,
                finished_question_amount INTEGER
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS question_history (
                id TEXT PRIMARY KEY,
                attempt_history_id TEXT,
                question_id TEXT,
                is_correct INTEGER,
                user_answer TEXT,
                FOREIGN KEY (attempt_history_id) REFERENCES attempt_history(id),
                FOREIGN KEY (question_id) REFERENCES questions(id),
                UNIQUE(attempt_history_id, question_id)
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_attempt_history_ordinal
            ON attempt_history(attempt_id)
        """)
        conn.commit()

    def _execute(
        self,
        operation: str,
        sql: str,
        params: tuple = (),
        commit: bool = True,
    ) -> sqlite3.Cursor | None:
        """Run one statement; log and return None on failure."""
        try:
            cursor = self.conn.execute(sql, params)
            if commit:
                self.conn.commit()
            return cursor
        except sqlite3.Error as e:
            logger.error(f"{self._file_name}: {operation} failed: {e}")
            return None

    # =========================================================================
    # Topics & Questions
    # =========================================================================

    def insert_topic(self, topic: Topic, commit: bool = True) -> bool:
        """Insert a topic; re-inserting an existing name is a successful no-op."""
        cursor = self._execute(
            "insert topic",
            "INSERT OR IGNORE INTO topics (id, name) VALUES (?, ?)",
            (str(topic.id), topic.name),
            commit=commit,
        )
        return cursor is not None

    def insert_question(self, question: Question, commit: bool = True) -> bool:
        """Insert a question; duplicates of (body, options, index) are ignored."""
        cursor = self._execute(
            "insert question",
            """
            INSERT OR IGNORE INTO questions (
                id, topic_id, "index", body, options, correct_answers, marked, "offset"
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                str(question.id),
                str(question.topic_id),
                question.index,
                question.body,
                codec.encode(question.options),
                codec.encode(question.correct_answers),
                1 if question.marked else 0,
                float(question.offset),
            ),
            commit=commit,
        )
        return cursor is not None

    def _topic_id_for(self, name: str) -> uuid.UUID | None:
        cursor = self._execute(
            "resolve topic", "SELECT id FROM topics WHERE name = ?", (name,), commit=False
        )
        row = cursor.fetchone() if cursor is not None else None
        return uuid.UUID(row["id"]) if row is not None else None

    def seed(self, topics: Iterable[Topic], questions: Iterable[Question]) -> bool:
        """
        Load a decoded question bank into the active store.

        Topics already present (by name) keep their stored id and incoming
        questions are re-pointed at it. Existing identical questions keep their
        id and bookmark. Question rows that are no longer part of the bank are
        retired; answer history rows are kept.

        Returns:
            True if every statement succeeded
        """
        topics = list(topics)
        questions = list(questions)

        retired = self._seed_rows(topics, questions)
        try:
            if retired is None:
                self.conn.rollback()
                return False
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"{self._file_name}: seed commit failed: {e}")
            return False

        logger.info(
            f"{self._file_name}: seeded {len(topics)} topics, {len(questions)} questions"
            + (f", retired {retired}" if retired else "")
        )
        return True

    def _seed_rows(self, topics: list[Topic], questions: list[Question]) -> int | None:
        topic_ids: dict[uuid.UUID, uuid.UUID] = {}
        for topic in topics:
            if not self.insert_topic(topic, commit=False):
                return None
            topic_ids[topic.id] = self._topic_id_for(topic.name) or topic.id

        for question in questions:
            stored = replace(question, topic_id=topic_ids.get(question.topic_id, question.topic_id))
            if not self.insert_question(stored, commit=False):
                return None
            # An identical question may already exist; keep its answer key current
            if self._execute(
                "refresh question",
                """
                UPDATE questions SET topic_id = ?, correct_answers = ?
                WHERE body = ? AND options = ? AND "index" = ?
            """,
                (
                    str(stored.topic_id),
                    codec.encode(stored.correct_answers),
                    stored.body,
                    codec.encode(stored.options),
                    stored.index,
                ),
                commit=False,
            ) is None:
                return None

        return self._retire_questions(questions)

    def _retire_questions(self, current: list[Question]) -> int | None:
        """Delete question rows that are not part of ``current``."""
        keep = {(q.body, codec.encode(q.options), q.index) for q in current}
        cursor = self._execute(
            "scan questions",
            'SELECT id, body, options, "index" FROM questions',
            commit=False,
        )
        if cursor is None:
            return None

        stale = [
            row["id"]
            for row in cursor.fetchall()
            if (row["body"], row["options"], row["index"]) not in keep
        ]
        for question_id in stale:
            if self._execute(
                "retire question", "DELETE FROM questions WHERE id = ?", (question_id,), commit=False
            ) is None:
                return None
        return len(stale)

    def count_questions(self) -> int:
        cursor = self._execute("count questions", "SELECT COUNT(*) AS cnt FROM questions", commit=False)
        return cursor.fetchone()["cnt"] if cursor is not None else 0

    def list_topics(self) -> list[Topic]:
        cursor = self._execute("list topics", "SELECT id, name FROM topics ORDER BY name", commit=False)
        if cursor is None:
            return []
        return [Topic(id=uuid.UUID(row["id"]), name=row["name"]) for row in cursor.fetchall()]

    def set_marked(self, question: Question) -> bool:
        """Persist the bookmark flag of a question (nothing else)."""
        cursor = self._execute(
            "set marked",
            "UPDATE questions SET marked = ? WHERE id = ?",
            (1 if question.marked else 0, str(question.id)),
        )
        return cursor is not None

    # =========================================================================
    # Attempt History
    # =========================================================================

    def insert_attempt_history(self, attempt: AttemptHistory) -> bool:
        """Insert an attempt, replacing any row with the same id."""
        cursor = self._execute(
            "insert attempt history",
            """
            INSERT OR REPLACE INTO attempt_history (
                id, exam_id, version, attempt_id, mode, score, finished_question_amount
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
            (
                str(attempt.id),
                str(attempt.exam_id),
                attempt.version,
                attempt.attempt_id,
                attempt.mode,
                float(attempt.score),
                attempt.finished_question_amount,
            ),
        )
        return cursor is not None

    def update_attempt_history(self, attempt: AttemptHistory) -> bool:
        """Persist score and finished-question count of an attempt.

        Returns:
            True only if a stored attempt row was changed
        """
        cursor = self._execute(
            "update attempt history",
            "UPDATE attempt_history SET score = ?, finished_question_amount = ? WHERE id = ?",
            (float(attempt.score), attempt.finished_question_amount, str(attempt.id)),
        )
        return cursor is not None and cursor.rowcount > 0

    @staticmethod
    def _row_to_attempt(row: sqlite3.Row) -> AttemptHistory:
        return AttemptHistory(
            id=uuid.UUID(row["id"]),
            exam_id=uuid.UUID(row["exam_id"]),
            version=row["version"] or "",
            attempt_id=row["attempt_id"],
            mode=row["mode"] or "",
            score=row["score"] if row["score"] is not None else -1.0,
            finished_question_amount=row["finished_question_amount"] or 0,
        )

    def get_latest_attempt_history(self, exam: Exam) -> AttemptHistory | None:
        """
        Get the attempt to resume or inspect for ``exam``.

        The stored attempt with the highest ordinal is returned when it is
        fully finished (any version) or was taken against the exam's current
        version. Otherwise a fresh empty attempt is created, persisted and
        returned, so an in-progress attempt is never resumed against a bank
        that has changed shape.

        A resumed in-progress attempt has its finished count recomputed from
        the answers to questions still in the bank, so answers to retired
        questions stop counting.

        Returns:
            The attempt, or None if the store could not be read or written
        """
        cursor = self._execute(
            "select latest attempt",
            "SELECT * FROM attempt_history WHERE exam_id = ? ORDER BY attempt_id DESC LIMIT 1",
            (str(exam.id),),
            commit=False,
        )
        if cursor is None:
            return None

        row = cursor.fetchone()
        if row is None:
            return self._fresh_attempt(exam, attempt_id=1)

        attempt = self._row_to_attempt(row)
        if attempt.finished_question_amount == exam.question_amount:
            return attempt
        if attempt.version == exam.version:
            return self._recount_finished(attempt)

        logger.info(
            f"{self._file_name}: attempt #{attempt.attempt_id} was taken on v{attempt.version}, "
            f"exam is now v{exam.version}; starting a fresh attempt"
        )
        return self._fresh_attempt(exam, attempt_id=attempt.attempt_id + 1)

    def _fresh_attempt(self, exam: Exam, attempt_id: int) -> AttemptHistory | None:
        attempt = AttemptHistory.fresh(exam, attempt_id=attempt_id)
        if not self.insert_attempt_history(attempt):
            logger.error(f"{self._file_name}: could not persist fresh attempt {attempt.id}")
            return None
        return attempt

    def _recount_finished(self, attempt: AttemptHistory) -> AttemptHistory | None:
        answered = self.count_answered_questions(attempt.id)
        if answered is None:
            return None
        if answered == attempt.finished_question_amount:
            return attempt

        corrected = replace(attempt, finished_question_amount=answered)
        if not self.update_attempt_history(corrected):
            return None
        logger.info(
            f"{self._file_name}: attempt #{attempt.attempt_id} finished count corrected "
            f"{attempt.finished_question_amount} -> {answered}"
        )
        return corrected

    def list_attempt_histories(self, exam: Exam) -> list[AttemptHistory]:
        """All attempts for ``exam``, highest ordinal first."""
        cursor = self._execute(
            "list attempts",
            "SELECT * FROM attempt_history WHERE exam_id = ? ORDER BY attempt_id DESC",
            (str(exam.id),),
            commit=False,
        )
        if cursor is None:
            return []
        return [self._row_to_attempt(row) for row in cursor.fetchall()]

    def get_finished_question_amount(self, attempt_id: uuid.UUID) -> int:
        """Finished-question count of an attempt (0 if not found)."""
        cursor = self._execute(
            "select finished amount",
            "SELECT finished_question_amount FROM attempt_history WHERE id = ?",
            (str(attempt_id),),
            commit=False,
        )
        row = cursor.fetchone() if cursor is not None else None
        return row["finished_question_amount"] if row is not None else 0

    # =========================================================================
    # Question History
    # =========================================================================

    def insert_question_history(self, entry: QuestionHistory) -> bool:
        """Record an answer; replaces any earlier answer for the same attempt/question."""
        cursor = self._execute(
            "insert question history",
            """
            INSERT OR REPLACE INTO question_history (
                id, attempt_history_id, question_id, is_correct, user_answer
            ) VALUES (?, ?, ?, ?, ?)
        """,
            (
                str(entry.id),
                str(entry.attempt_history_id),
                str(entry.question_id),
                1 if entry.is_correct else 0,
                codec.encode(entry.user_answer),
            ),
        )
        return cursor is not None

    def remove_question_history(self, question_id: uuid.UUID, attempt_id: uuid.UUID) -> bool:
        """Delete the answer recorded for one question within one attempt."""
        cursor = self._execute(
            "remove question history",
            "DELETE FROM question_history WHERE question_id = ? AND attempt_history_id = ?",
            (str(question_id), str(attempt_id)),
        )
        return cursor is not None

    def has_question_history(self, question_id: uuid.UUID, attempt_id: uuid.UUID) -> bool:
        cursor = self._execute(
            "check question history",
            "SELECT 1 FROM question_history WHERE question_id = ? AND attempt_history_id = ?",
            (str(question_id), str(attempt_id)),
            commit=False,
        )
        return cursor is not None and cursor.fetchone() is not None

    def count_answered_questions(self, attempt_id: uuid.UUID) -> int | None:
        """Answers of an attempt that belong to questions still in the bank."""
        cursor = self._execute(
            "count answered questions",
            """
            SELECT COUNT(*) AS cnt
            FROM question_history qh
            JOIN questions q ON q.id = qh.question_id
            WHERE qh.attempt_history_id = ?
        """,
            (str(attempt_id),),
            commit=False,
        )
        return cursor.fetchone()["cnt"] if cursor is not None else None

    def get_question_histories(self, attempt_id: uuid.UUID) -> list[QuestionHistory]:
        cursor = self._execute(
            "list question history",
            "SELECT * FROM question_history WHERE attempt_history_id = ?",
            (str(attempt_id),),
            commit=False,
        )
        if cursor is None:
            return []
        return [
            QuestionHistory(
                id=uuid.UUID(row["id"]),
                attempt_history_id=uuid.UUID(row["attempt_history_id"]),
                question_id=uuid.UUID(row["question_id"]),
                is_correct=bool(row["is_correct"]),
                user_answer=codec.decode(row["user_answer"]),
            )
            for row in cursor.fetchall()
        ]

    # =========================================================================
    # Session window queries
    # =========================================================================

    def get_question_list_map(self) -> dict[int, QuestionStatus]:
        """
        Build the navigation map for the active exam in one query.

        ``marked`` always comes from the questions table; ``answered`` is
        relative to the attempt with the highest ordinal only.
        """
        cursor = self._execute(
            "build question list map",
            f"""
            SELECT q."index" AS idx, q.marked,
                   CASE WHEN qh.id IS NULL THEN 0 ELSE 1 END AS answered,
                   q.id
            FROM questions q
            LEFT JOIN (
                SELECT question_id, id
                FROM question_history
                WHERE attempt_history_id = {_LATEST_ATTEMPT}
            ) qh ON q.id = qh.question_id
            ORDER BY q."index"
        """,
            commit=False,
        )
        if cursor is None:
            return {}

        return {
            row["idx"]: QuestionStatus(
                marked=bool(row["marked"]),
                answered=bool(row["answered"]),
                id=uuid.UUID(row["id"]),
            )
            for row in cursor.fetchall()
        }

    def get_question_by_id(self, question_id: uuid.UUID, version: str) -> Question | None:
        """
        Load a question together with its answer in the latest attempt.

        The answer is only attached when the latest attempt was taken against
        ``version``; answers from an older bank are hidden, never reattached.
        """
        cursor = self._execute(
            "select question",
            f"""
            SELECT q.id, q.topic_id, q."index" AS idx, q.body, q.options,
                   q.correct_answers, q.marked, q."offset" AS layout_offset,
                   qh.user_answer, ah.version AS attempt_version
            FROM questions q
            LEFT JOIN question_history qh
                ON qh.question_id = q.id
                AND qh.attempt_history_id = {_LATEST_ATTEMPT}
            LEFT JOIN attempt_history ah ON ah.id = qh.attempt_history_id
            WHERE q.id = ?
        """,
            (str(question_id),),
            commit=False,
        )
        row = cursor.fetchone() if cursor is not None else None
        if row is None:
            return None

        user_answers = None
        if row["user_answer"] is not None and row["attempt_version"] == version:
            user_answers = codec.decode(row["user_answer"])

        return Question(
            id=uuid.UUID(row["id"]),
            topic_id=uuid.UUID(row["topic_id"]),
            index=row["idx"],
            body=row["body"],
            options=codec.decode(row["options"]),
            correct_answers=codec.decode(row["correct_answers"]),
            marked=bool(row["marked"]),
            offset=row["layout_offset"] or 0.0,
            user_answers=user_answers,
        )
