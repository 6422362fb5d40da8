"""
Exam content ingestion.

- schema: typed models for exam JSON documents
- ingestion: discovery, validation, decoding and reconciliation with the stores
"""

from .ingestion import IngestionPipeline, IngestionReport
from .schema import ExamDocument, QuestionDocument, TopicDocument

__all__ = [
    "ExamDocument",
    "IngestionPipeline",
    "IngestionReport",
    "QuestionDocument",
    "TopicDocument",
]
