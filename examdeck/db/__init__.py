"""
Embedded SQLite stores.

- CatalogStore: process-lifetime registry of exams (list.db)
- ExamStore: the single active per-exam store ({file_name}.db)
"""

from .catalog_store import CatalogStore, UpsertOutcome
from .exam_store import ExamStore

__all__ = [
    "CatalogStore",
    "ExamStore",
    "UpsertOutcome",
]
