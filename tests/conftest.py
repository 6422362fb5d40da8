"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Every fixture works inside ``tmp_path``; no test touches ~/.examdeck.
"""
import json
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings
from examdeck.core.models import Exam, Question, Topic
from examdeck.db.catalog_store import CatalogStore
from examdeck.db.exam_store import ExamStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (real SQLite files)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings(tmp_path):
    """Settings pointing every store and bundle directory into tmp_path."""
    return Settings(
        data_dir=tmp_path / "data",
        bundle_dir=tmp_path / "exams",
        log_level="DEBUG",
    )


@pytest.fixture
def catalog(settings):
    store = CatalogStore(settings.catalog_path())
    yield store
    store.close()


@pytest.fixture
def exam_store(settings):
    store = ExamStore(settings.data_dir, settings.store_extension)
    yield store
    store.close()


@pytest.fixture
def make_exam():
    """Factory for catalog exams."""

    def _make(
        version="1.0",
        last_updated=datetime(2024, 1, 1, tzinfo=timezone.utc),
        file_name="networking",
        question_amount=3,
        name="Networking Basics",
    ):
        return Exam(
            id=uuid.uuid4(),
            name=name,
            version=version,
            origin="unit-test",
            description="Sample exam",
            last_updated=last_updated,
            file_name=file_name,
            question_amount=question_amount,
        )

    return _make


@pytest.fixture
def sample_bank():
    """One topic with three single-answer questions."""
    topic = Topic(id=uuid.uuid4(), name="OSI Model")
    questions = [
        Question(
            id=uuid.uuid4(),
            topic_id=topic.id,
            index=0,
            body="Which layer handles routing?",
            options=["Physical", "Network", "Transport"],
            correct_answers=["Network"],
        ),
        Question(
            id=uuid.uuid4(),
            topic_id=topic.id,
            index=1,
            body="Which layer uses MAC addresses?",
            options=["Data Link", "Session", "Application"],
            correct_answers=["Data Link"],
        ),
        Question(
            id=uuid.uuid4(),
            topic_id=topic.id,
            index=2,
            body="Which protocol is connection-oriented?",
            options=["UDP", "TCP", "ICMP"],
            correct_answers=["TCP"],
        ),
    ]
    return [topic], questions


@pytest.fixture
def exam_document():
    """A valid source document as a dict (see examdeck.content.schema)."""
    return {
        "version": "1.0",
        "origin": "unit-test",
        "name": "Networking Basics",
        "description": "Sample exam",
        "last_updated": "2024-01-01T00:00:00Z",
        "topics": [
            {
                "name": "OSI Model",
                "questions": [
                    {
                        "text": "Which layer handles routing?",
                        "options": ["Physical", "Network", "Transport"],
                        "correct_answer": ["Network"],
                    },
                    {
                        "text": "Which layer uses MAC addresses?",
                        "options": ["Data Link", "Session", "Application"],
                        "correct_answer": ["Data Link"],
                    },
                ],
            },
            {
                "name": "Transport",
                "questions": [
                    {
                        "text": "Which protocols are connectionless?",
                        "options": ["UDP", "TCP", "ICMP"],
                        "correct_answer": ["UDP", "ICMP"],
                    },
                ],
            },
        ],
    }


@pytest.fixture
def write_document(settings):
    """Write a document dict into the bundle directory and return its path."""

    def _write(document, file_name="networking"):
        settings.bundle_dir.mkdir(parents=True, exist_ok=True)
        path = settings.bundle_dir / f"{file_name}.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write
