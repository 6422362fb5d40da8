"""
Unit tests for document validation and decoding.

Run: pytest tests/unit/test_ingestion_schema.py -v
"""
import copy
import json

import pytest

from examdeck.content.ingestion import IngestionPipeline
from examdeck.content.schema import ExamDocument
from examdeck.core.errors import CapacityError, ValidationError


@pytest.fixture
def pipeline(settings, catalog, exam_store):
    return IngestionPipeline(settings, catalog, exam_store)


def _bulk_document(exam_document, count):
    document = copy.deepcopy(exam_document)
    document["topics"] = [
        {
            "name": "Bulk",
            "questions": [
                {"text": f"Question {i}", "options": ["A", "B"], "correct_answer": ["A"]}
                for i in range(count)
            ],
        }
    ]
    return document


# ============================================================================
# Validation
# ============================================================================


class TestLoad:
    def test_valid_document(self, pipeline, exam_document, write_document):
        document = pipeline.load(write_document(exam_document))
        assert isinstance(document, ExamDocument)
        assert document.question_count == 3
        assert document.last_updated_at.tzinfo is not None

    def test_unknown_keys_are_ignored(self, pipeline, exam_document, write_document):
        exam_document["author"] = "someone"
        exam_document["topics"][0]["questions"][0]["explanation"] = "because"
        assert pipeline.load(write_document(exam_document)).name == "Networking Basics"

    @pytest.mark.parametrize("field", ["version", "name", "last_updated", "topics"])
    def test_missing_field_fails(self, pipeline, exam_document, write_document, field):
        del exam_document[field]
        with pytest.raises(ValidationError, match=field):
            pipeline.load(write_document(exam_document))

    def test_wrong_type_fails(self, pipeline, exam_document, write_document):
        exam_document["version"] = 2
        with pytest.raises(ValidationError, match="version"):
            pipeline.load(write_document(exam_document))

    def test_options_must_be_a_list(self, pipeline, exam_document, write_document):
        exam_document["topics"][0]["questions"][0]["options"] = "Physical, Network"
        with pytest.raises(ValidationError):
            pipeline.load(write_document(exam_document))

    def test_empty_topic_list_fails(self, pipeline, exam_document, write_document):
        exam_document["topics"] = []
        with pytest.raises(ValidationError, match="topics"):
            pipeline.load(write_document(exam_document))

    def test_answer_must_be_an_option(self, pipeline, exam_document, write_document):
        exam_document["topics"][0]["questions"][0]["correct_answer"] = ["Session"]
        with pytest.raises(ValidationError, match="correct_answer"):
            pipeline.load(write_document(exam_document))

    def test_timestamp_must_be_iso(self, pipeline, exam_document, write_document):
        exam_document["last_updated"] = "last tuesday"
        with pytest.raises(ValidationError, match="last_updated"):
            pipeline.load(write_document(exam_document))

    def test_invalid_json_fails(self, pipeline, settings):
        settings.bundle_dir.mkdir(parents=True)
        path = settings.bundle_dir / "broken.json"
        path.write_text("{ not json", encoding="utf-8")
        with pytest.raises(ValidationError, match="broken.json"):
            pipeline.load(path)

    def test_missing_file_fails(self, pipeline, tmp_path):
        with pytest.raises(ValidationError):
            pipeline.load(tmp_path / "absent.json")


# ============================================================================
# Decoding
# ============================================================================


class TestDecode:
    def test_indexes_run_across_topics(self, pipeline, exam_document):
        document = ExamDocument.model_validate_json(json.dumps(exam_document))
        exam, topics, questions = pipeline.decode(document, "networking")

        assert [q.index for q in questions] == [0, 1, 2]
        assert [t.name for t in topics] == ["OSI Model", "Transport"]
        assert questions[2].topic_id == topics[1].id
        assert questions[2].correct_answers == ["UDP", "ICMP"]

    def test_exam_fields(self, pipeline, exam_document):
        document = ExamDocument.model_validate_json(json.dumps(exam_document))
        exam, _, _ = pipeline.decode(document, "networking")

        assert exam.file_name == "networking"
        assert exam.version == "1.0"
        assert exam.question_amount == 3
        assert exam.last_updated.year == 2024

    def test_capacity_limit_is_inclusive(self, pipeline, exam_document):
        document = ExamDocument.model_validate_json(json.dumps(_bulk_document(exam_document, 1500)))
        exam, _, questions = pipeline.decode(document, "bulk")
        assert exam.question_amount == len(questions) == 1500

    def test_over_capacity_is_rejected(self, pipeline, exam_document):
        document = ExamDocument.model_validate_json(json.dumps(_bulk_document(exam_document, 1501)))
        with pytest.raises(CapacityError):
            pipeline.decode(document, "bulk")


# ============================================================================
# Discovery
# ============================================================================


class TestDiscover:
    def test_excluded_documents_are_skipped(self, pipeline, exam_document, write_document):
        write_document(exam_document, "networking")
        write_document(exam_document, "template")
        found = pipeline.discover()
        assert [p.name for p in found] == ["networking.json"]

    def test_missing_directory_finds_nothing(self, pipeline, tmp_path):
        assert pipeline.discover(tmp_path / "nowhere") == []
