"""
SQLite catalog store (list.db).

One row per exam identity, keyed for lookup by the source file name. The
catalog connection is long-lived for the process; failing to open it is fatal.
"""

from __future__ import annotations

import sqlite3
import uuid
from enum import Enum
from pathlib import Path

from loguru import logger

from examdeck.core.errors import StoreOpenError
from examdeck.core.models import Exam
from examdeck.core.versioning import format_timestamp, is_newer, parse_timestamp


class UpsertOutcome(str, Enum):
    """What ``CatalogStore.upsert`` did with an incoming exam."""

    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class CatalogStore:
    """
    Registry of known exams with version-aware upsert.

    Handles:
    - Insert of never-seen exams (idempotent on name/version/last_updated)
    - Update only when the incoming bank is strictly newer
    - Listing for catalog views and progress display
    """

    def __init__(self, db_path: Path):
        """
        Open (creating if needed) the catalog store.

        Args:
            db_path: Location of the catalog file

        Raises:
            StoreOpenError: if the file cannot be opened or the schema created
        """
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn: sqlite3.Connection | None = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
            self._init_schema()
        except (OSError, sqlite3.Error) as e:
            raise StoreOpenError(f"Cannot open catalog store at {self.db_path}: {e}") from e

        logger.info(f"CatalogStore initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreOpenError(f"Catalog store {self.db_path} is closed")
        return self._conn

    def _init_schema(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS exams (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                version TEXT,
                origin TEXT,
                description TEXT,
                last_updated TEXT,
                question_amount INTEGER NOT NULL,
                file_name TEXT,
                UNIQUE(name, version, last_updated)
            )
        """)
        self.conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_exams_file_name
            ON exams(file_name)
        """)
        self.conn.commit()

    @staticmethod
    def _row_to_exam(row: sqlite3.Row) -> Exam:
        return Exam(
            id=uuid.UUID(row["id"]),
            name=row["name"],
            version=row["version"] or "",
            origin=row["origin"] or "",
            description=row["description"] or "",
            last_updated=parse_timestamp(row["last_updated"]),
            file_name=row["file_name"] or "",
            question_amount=row["question_amount"],
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def upsert(self, exam: Exam) -> UpsertOutcome:
        """
        Insert or update an exam, looking it up by file name.

        The stored row is only replaced when the incoming version is strictly
        greater, or equal with a strictly more recent ``last_updated``. The
        stored id never changes, so attempt histories stay attached.

        Returns:
            UpsertOutcome describing what happened (FAILED on statement errors)
        """
        try:
            existing = self.get_by_file_name(exam.file_name, raise_errors=True)
            if existing is None:
                return self._insert(exam)

            if not is_newer(exam.version, exam.last_updated, existing.version, existing.last_updated):
                logger.debug(
                    f"Catalog: {exam.file_name} v{exam.version} is not newer than "
                    f"v{existing.version}, skipping"
                )
                return UpsertOutcome.UNCHANGED

            cursor = self.conn.execute(
                """
                UPDATE exams SET
                    name = ?,
                    version = ?,
                    origin = ?,
                    description = ?,
                    last_updated = ?,
                    question_amount = ?
                WHERE file_name = ?
            """,
                (
                    exam.name,
                    exam.version,
                    exam.origin,
                    exam.description,
                    format_timestamp(exam.last_updated),
                    exam.question_amount,
                    exam.file_name,
                ),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Catalog upsert failed for {exam.file_name}: {e}")
            return UpsertOutcome.FAILED

        if cursor.rowcount == 0:
            return UpsertOutcome.UNCHANGED
        logger.info(f"Catalog: updated {exam.file_name} to v{exam.version}")
        return UpsertOutcome.UPDATED

    def _insert(self, exam: Exam) -> UpsertOutcome:
        cursor = self.conn.execute(
            """
            INSERT OR IGNORE INTO exams (
                id, name, version, origin, description,
                last_updated, question_amount, file_name
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                str(exam.id),
                exam.name,
                exam.version,
                exam.origin,
                exam.description,
                format_timestamp(exam.last_updated),
                exam.question_amount,
                exam.file_name,
            ),
        )
        self.conn.commit()

        if cursor.rowcount == 0:
            logger.debug(f"Catalog: {exam.name} v{exam.version} already registered")
            return UpsertOutcome.UNCHANGED
        logger.info(f"Catalog: inserted {exam.file_name} v{exam.version}")
        return UpsertOutcome.INSERTED

    # =========================================================================
    # Reads
    # =========================================================================

    def get_by_file_name(self, file_name: str, raise_errors: bool = False) -> Exam | None:
        """Get the catalog entry for a file name, or None."""
        try:
            row = self.conn.execute(
                "SELECT * FROM exams WHERE file_name = ? LIMIT 1", (file_name,)
            ).fetchone()
        except sqlite3.Error as e:
            if raise_errors:
                raise
            logger.error(f"Catalog lookup failed for {file_name}: {e}")
            return None
        return self._row_to_exam(row) if row is not None else None

    def list(self) -> list[Exam]:
        """All known exams, ordered by name."""
        try:
            rows = self.conn.execute("SELECT * FROM exams ORDER BY name, file_name").fetchall()
        except sqlite3.Error as e:
            logger.error(f"Catalog listing failed: {e}")
            return []
        return [self._row_to_exam(row) for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
