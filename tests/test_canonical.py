"""Tests for the canonical document serializer, formatter and schema seam.

WHY: The canonical document is the export format and the input of the
subtitle track. Optional fields must be omitted (not nulled) or the schema
rejects the export, and the speaker registry must only signal real changes.

HOW: The sample transcript from conftest is serialized and compared with
SAMPLE_DOCUMENT; single-line transcripts cover each omission rule. The
formatter is checked against the packaged schema via jsonschema.

RULES:
- serialize_transcript(sample_transcript) == sample_document exactly
- Exported JSON must pass the packaged schema
"""

from __future__ import annotations

import json

import pytest

from subtitle_editor.core.schema import compile_schema, default_validator, get_schema
from subtitle_editor.core.transcript import Transcript
from subtitle_editor.errors import FormatError, SchemaError, Violation
from subtitle_editor.formatters import FORMATTERS
from subtitle_editor.formatters.canonical import (
    CanonicalDocumentFormatter,
    SpeakerRegistry,
    document_speakers,
    format_duration,
    parse_duration,
    serialize_transcript,
)


class TestSerializeTranscript:

    def test_matches_sample_document(self, sample_transcript, sample_document):
        assert serialize_transcript(sample_transcript) == sample_document

    def test_bare_line_has_only_text(self, video_reference):
        t = Transcript(video_reference=video_reference)
        t.add_line("Just words")
        assert serialize_transcript(t)["text"] == [{"text": "Just words"}]

    def test_half_timed_line_omits_both_times(self, video_reference):
        t = Transcript(video_reference=video_reference)
        t.add_line("x").set_start("2")
        item = serialize_transcript(t)["text"][0]
        assert "startTime" not in item
        assert "endTime" not in item

    def test_alignment_serialized_as_align(self, video_reference):
        t = Transcript(video_reference=video_reference)
        t.add_line("x").set_alignment("end")
        assert serialize_transcript(t)["text"][0]["webvtt"] == {"align": "end"}

    def test_zero_hint_is_kept(self, video_reference):
        t = Transcript(video_reference=video_reference)
        t.add_line("x").set_line(-3)
        assert serialize_transcript(t)["text"][0]["webvtt"] == {"line": 0}

    def test_translation_passed_through(self, sample_transcript):
        sample_transcript.translation = [{"language": "sv"}]
        assert serialize_transcript(sample_transcript)["translation"] == [{"language": "sv"}]

    def test_translation_absent_when_none(self, sample_transcript):
        assert "translation" not in serialize_transcript(sample_transcript)

    def test_document_speakers(self, sample_document):
        assert document_speakers(sample_document) == ["Alice", "Bob"]


class TestDurations:

    @pytest.mark.parametrize("seconds,text", [
        (0.0, "PT0S"),
        (4.0, "PT4S"),
        (3.5, "PT3.5S"),
        (3605.25, "PT3605.25S"),
    ])
    def test_format(self, seconds, text):
        assert format_duration(seconds) == text

    def test_parse(self):
        assert parse_duration("PT65.5S") == 65.5

    @pytest.mark.parametrize("text", ["", "65.5", "PT-1S", "PT1.S", "P1S"])
    def test_parse_rejects_malformed(self, text):
        with pytest.raises(FormatError):
            parse_duration(text)


class TestSpeakerRegistry:

    def test_signals_only_on_change(self):
        registry = SpeakerRegistry()
        assert registry.update(["Bob", "Alice"]) is True
        assert registry.speakers == ["Alice", "Bob"]
        assert registry.update(["Alice", "Bob", "Alice"]) is False
        assert registry.update(["Alice"]) is True

    def test_empty_first_update_is_no_change(self):
        assert SpeakerRegistry().update([]) is False


class TestCanonicalDocumentFormatter:

    def test_registered(self):
        assert FORMATTERS["canonical_json"] is CanonicalDocumentFormatter

    def test_output(self, sample_transcript, sample_document):
        outputs = CanonicalDocumentFormatter().format(sample_transcript)
        assert len(outputs) == 1
        output = outputs[0]
        assert output.suffix == "-transcript.json"
        assert output.media_type == "application/json"
        assert output.content.endswith("\n")
        assert json.loads(output.content) == sample_document

    def test_non_ascii_kept_readable(self, video_reference):
        t = Transcript(video_reference=video_reference, language="sv")
        t.add_line("Hej på dig")
        content = CanonicalDocumentFormatter().format(t)[0].content
        assert "Hej på dig" in content

    def test_empty_transcript_fails_validation(self, video_reference):
        with pytest.raises(SchemaError) as excinfo:
            CanonicalDocumentFormatter().format(Transcript(video_reference=video_reference))
        assert any(v.path == "/text" for v in excinfo.value.violations)

    def test_custom_validator(self, sample_transcript):
        rejecting = compile_schema({"type": "object", "required": ["missing"]})
        with pytest.raises(SchemaError):
            CanonicalDocumentFormatter(validator=rejecting).format(sample_transcript)


class TestSchemaValidator:
    """The jsonschema-backed validator seam used by import and export."""

    def test_accepts_sample(self, sample_document):
        validator = default_validator()
        assert validator(sample_document) is True
        assert validator.errors == []

    def test_reports_paths(self, sample_document):
        sample_document["text"][0]["startTime"] = "1.0"
        sample_document["text"][2]["webvtt"] = {"align": "left"}
        validator = default_validator()
        assert validator(sample_document) is False
        paths = [v.path for v in validator.errors]
        assert "/text/0/startTime" in paths
        assert "/text/2/webvtt/align" in paths
        assert all(isinstance(v, Violation) for v in validator.errors)

    def test_start_requires_end(self, sample_document):
        del sample_document["text"][0]["endTime"]
        assert default_validator()(sample_document) is False

    def test_rejects_unknown_keys(self, sample_document):
        sample_document["extra"] = True
        assert default_validator()(sample_document) is False

    def test_packaged_schema_is_draft7(self):
        assert get_schema()["$schema"].startswith("http://json-schema.org/draft-07/")
