"""
Application context: the one object that owns every long-lived component.

Constructed once at startup and passed to whatever needs the stores or the
session; there are no module-level singletons.
"""

from __future__ import annotations

from loguru import logger

from config import Settings, get_settings
from examdeck.content.ingestion import IngestionPipeline, IngestionReport
from examdeck.core.models import Exam
from examdeck.db.catalog_store import CatalogStore
from examdeck.db.exam_store import ExamStore
from examdeck.study.session_manager import SessionManager


class AppContext:
    """
    Owns the catalog store, the single exam store handle, the session manager
    and the ingestion pipeline.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Args:
            settings: Settings to use (defaults to the cached environment settings)

        Raises:
            StoreOpenError: if the catalog store cannot be opened
        """
        self.settings = settings or get_settings()
        self.catalog = CatalogStore(self.settings.catalog_path())
        self.exam_store = ExamStore(self.settings.data_dir, self.settings.store_extension)
        self.session = SessionManager(self.catalog, self.exam_store)
        self.ingestion = IngestionPipeline(self.settings, self.catalog, self.exam_store)
        self.exams: list[Exam] = []

    def startup(self, ingest: bool = True) -> IngestionReport | None:
        """Ingest the bundle directory (optionally) and load the exam list."""
        report = self.ingest() if ingest else None
        self.refresh_exams()
        return report

    def ingest(self, directory=None) -> IngestionReport:
        """
        Ingest documents, then re-select the active exam so the session window
        reflects any bank that changed underneath it.
        """
        report = self.ingestion.ingest_directory(directory)
        current = self.session.current_exam
        if current is not None:
            refreshed = self.catalog.get_by_file_name(current.file_name)
            if refreshed is not None:
                self.session.select_exam(refreshed)
        self.refresh_exams()
        return report

    def refresh_exams(self) -> list[Exam]:
        self.exams = self.catalog.list()
        logger.debug(f"Catalog holds {len(self.exams)} exams")
        return self.exams

    def find_exam(self, file_name: str) -> Exam | None:
        return self.catalog.get_by_file_name(file_name)

    def close(self) -> None:
        self.exam_store.close()
        self.catalog.close()

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
