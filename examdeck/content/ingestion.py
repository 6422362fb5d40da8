"""
Exam ingestion pipeline.

Discovers exam JSON documents, validates them against the typed schema,
decodes them into (exam, topics, questions) and reconciles the result with the
catalog and the per-exam store. A bad document is skipped with a reason; it
never rolls back exams that were already ingested.
"""

import uuid
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger
from pydantic import ValidationError as SchemaError

from config import Settings
from examdeck.core.errors import (
    CapacityError,
    ExamDeckError,
    StatementError,
    StoreOpenError,
    ValidationError,
)
from examdeck.core.models import Exam, Question, Topic
from examdeck.db.catalog_store import CatalogStore, UpsertOutcome
from examdeck.db.exam_store import ExamStore

from .schema import ExamDocument


@dataclass
class IngestionReport:
    """Result of an ingestion run."""

    inserted: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return len(self.inserted) + len(self.updated) + len(self.unchanged) + len(self.errors)

    def record(self, file_name: str, outcome: UpsertOutcome) -> None:
        if outcome == UpsertOutcome.INSERTED:
            self.inserted.append(file_name)
        elif outcome == UpsertOutcome.UPDATED:
            self.updated.append(file_name)
        elif outcome == UpsertOutcome.UNCHANGED:
            self.unchanged.append(file_name)
        else:
            self.errors.append(f"{file_name}: catalog write failed")


class IngestionPipeline:
    """
    Load exam documents into the catalog and exam stores.

    Flow per document: load -> validate -> decode -> catalog upsert ->
    (if inserted or updated) seed the exam store.
    """

    def __init__(self, settings: Settings, catalog: CatalogStore, exam_store: ExamStore):
        self.settings = settings
        self.catalog = catalog
        self.exam_store = exam_store

    # =========================================================================
    # Discovery & validation
    # =========================================================================

    def discover(self, directory: Path | str | None = None) -> list[Path]:
        """List candidate documents (``*.json``) minus excluded file names."""
        path = Path(directory) if directory is not None else self.settings.bundle_dir
        if not path.is_dir():
            logger.warning(f"Exam bundle directory not found: {path}")
            return []

        excluded = set(self.settings.excluded_bundles)
        found = [p for p in sorted(path.glob("*.json")) if p.name not in excluded]
        logger.debug(f"Found {len(found)} exam documents in {path}")
        return found

    def load(self, path: Path | str) -> ExamDocument:
        """
        Read and validate one document.

        Raises:
            ValidationError: unreadable file, invalid JSON, or schema mismatch
        """
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ValidationError(f"{path.name}: cannot read document: {e}") from e

        try:
            return ExamDocument.model_validate_json(raw, strict=self.settings.strict_validation)
        except SchemaError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise ValidationError(f"{path.name}: {location}: {first['msg']}") from e

    def decode(self, document: ExamDocument, file_name: str) -> tuple[Exam, list[Topic], list[Question]]:
        """
        Turn a validated document into domain objects.

        Question indexes are 0-based and run across all topics in document order.

        Raises:
            CapacityError: if the document holds more questions than allowed
        """
        limit = self.settings.max_questions_per_exam
        if document.question_count > limit:
            raise CapacityError(
                f"{file_name}: {document.question_count} questions exceeds the limit of {limit}"
            )

        topics: list[Topic] = []
        questions: list[Question] = []
        for topic_doc in document.topics:
            topic = Topic(id=uuid.uuid4(), name=topic_doc.name)
            topics.append(topic)
            for question_doc in topic_doc.questions:
                questions.append(
                    Question(
                        id=uuid.uuid4(),
                        topic_id=topic.id,
                        index=len(questions),
                        body=question_doc.text,
                        options=list(question_doc.options),
                        correct_answers=list(question_doc.correct_answer),
                    )
                )

        exam = Exam(
            id=uuid.uuid4(),
            name=document.name,
            version=document.version,
            origin=document.origin,
            description=document.description,
            last_updated=document.last_updated_at,
            file_name=file_name,
            question_amount=len(questions),
        )
        return exam, topics, questions

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def reconcile(self, exam: Exam, topics: list[Topic], questions: list[Question]) -> UpsertOutcome:
        """
        Register ``exam`` in the catalog and seed its store when it is new or newer.

        An unchanged exam whose store file is missing is re-seeded, so a failed
        earlier run can simply be retried.

        Raises:
            StoreOpenError: if the exam store cannot be opened
            StatementError: if seeding the exam store fails
        """
        missing_store = not self.exam_store.path_for(exam.file_name).exists()
        outcome = self.catalog.upsert(exam)

        needs_seed = outcome in (UpsertOutcome.INSERTED, UpsertOutcome.UPDATED) or (
            outcome == UpsertOutcome.UNCHANGED
            and missing_store
            and self.catalog.get_by_file_name(exam.file_name) is not None
        )
        if not needs_seed:
            return outcome

        self.exam_store.activate(exam.file_name)
        if not self.exam_store.seed(topics, questions):
            raise StatementError(f"{exam.file_name}: seeding topics and questions failed")
        return outcome

    def ingest_file(self, path: Path | str) -> UpsertOutcome:
        """Load, validate, decode and reconcile one document."""
        path = Path(path)
        document = self.load(path)
        exam, topics, questions = self.decode(document, path.stem)
        return self.reconcile(exam, topics, questions)

    def ingest_directory(self, directory: Path | str | None = None) -> IngestionReport:
        """Ingest every discovered document; one failure never stops the rest."""
        report = IngestionReport()
        previous = self.exam_store.active_file_name

        for path in self.discover(directory):
            try:
                outcome = self.ingest_file(path)
            except (ValidationError, CapacityError) as e:
                logger.warning(f"Skipping {path.name}: {e}")
                report.errors.append(str(e))
                continue
            except (StoreOpenError, StatementError) as e:
                logger.error(f"Failed to ingest {path.name}: {e}")
                report.errors.append(str(e))
                continue
            report.record(path.stem, outcome)

        try:
            if previous is not None:
                self.exam_store.activate(previous)
            else:
                self.exam_store.close()
        except ExamDeckError as e:
            logger.error(f"Could not restore exam store {previous}: {e}")

        logger.info(
            f"Ingestion finished: {len(report.inserted)} inserted, {len(report.updated)} updated, "
            f"{len(report.unchanged)} unchanged, {len(report.errors)} errors"
        )
        return report
