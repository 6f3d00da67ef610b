"""Tests for the four import formats, format detection and remote fetching.

WHY: Importers are the only way a transcript enters the editor. A lenient
canonical importer would let a broken document reach the serializer; a strict
text importer would refuse real-world files (CRLF, double-encoded entities).

HOW: Each importer gets a class. Async importers are driven with
asyncio.run(). Remote fetching uses an httpx.MockTransport so no network is
touched.

RULES:
- Canonical import round-trips the sample document exactly
- Every rejected input raises a typed error and yields no transcript
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from subtitle_editor.core.line import AnnotatedSpan
from subtitle_editor.core.schema import compile_schema
from subtitle_editor.core.transcript import Transcript
from subtitle_editor.errors import FormatError, SchemaError
from subtitle_editor.formatters.canonical import serialize_transcript
from subtitle_editor.importers import IMPORTERS, detect_format, import_source
from subtitle_editor.importers.auto_transcript import import_auto_transcript
from subtitle_editor.importers.canonical import import_canonical_document
from subtitle_editor.importers.plain_text import import_plain_text
from subtitle_editor.importers.remote import fetch_source, is_remote
from subtitle_editor.importers.timecoded import import_timecoded, parse_range


# ---------------------------------------------------------------------------
# Canonical document
# ---------------------------------------------------------------------------


class TestCanonicalImport:

    def test_round_trip(self, sample_transcript):
        document = serialize_transcript(sample_transcript)
        imported = asyncio.run(import_canonical_document(json.dumps(document)))
        assert serialize_transcript(imported) == document

    @pytest.mark.parametrize("content,start,end,size", [
        ("Sub-millisecond", 0.0000123, 0.0004567, None),
        ("Zero size", 1.0, 2.0, 0),
        ([], 3.0, 4.0, 5),
        ("Inverted range", 9.5, 2.25, None),
        ("Float noise", 0.1 + 0.2, 1 / 3, 100),
    ])
    def test_round_trip_edge_values(self, video_reference, content, start, end, size):
        transcript = Transcript(video_reference=video_reference)
        line = transcript.add_line(content)
        line.set_start(start)
        line.set_end(end)
        line.set_size(size)
        line.set_speaker("Alice")
        document = serialize_transcript(transcript)

        imported = asyncio.run(import_canonical_document(json.dumps(document)))
        copy = imported.line_at(0)
        assert copy.content == content
        assert (copy.start, copy.end) == (start, end)
        assert copy.presentation.size == size
        assert copy.speakers == ["Alice"]
        assert serialize_transcript(imported) == document

    def test_accepts_parsed_dict(self, sample_document):
        transcript = asyncio.run(import_canonical_document(sample_document))
        assert len(transcript) == 3
        assert transcript.video_reference.id == "dQw4w9WgXcQ"

    def test_fields_mapped_through_setters(self, sample_document):
        transcript = asyncio.run(import_canonical_document(sample_document))
        first, second, third = transcript.lines
        assert (first.start, first.end) == (1.0, 3.5)
        assert first.speakers == ["Alice"]
        assert first.presentation.as_dict() == {"position": 10, "line": 20, "alignment": "start"}
        assert second.start is None and second.end is None
        assert third.content == ["Thanks, ", AnnotatedSpan("Alice", "host"), "."]
        assert third.continuation is True

    def test_language_and_translation_carried(self, sample_document):
        sample_document["language"] = "sv"
        sample_document["translation"] = [{"language": "en"}]
        transcript = asyncio.run(import_canonical_document(sample_document))
        assert transcript.language == "sv"
        assert transcript.translation == [{"language": "en"}]

    def test_caller_reference_overrides_about(self, sample_document, video_reference):
        sample_document["about"] = "https://clips.twitch.tv/SomeClip"
        transcript = asyncio.run(
            import_canonical_document(sample_document, video_reference=video_reference)
        )
        assert transcript.video_reference == video_reference

    def test_unsupported_about_url(self, sample_document):
        sample_document["about"] = "https://vimeo.com/1"
        with pytest.raises(FormatError):
            asyncio.run(import_canonical_document(sample_document))

    def test_schema_violation_lists_every_problem(self, sample_document):
        sample_document["text"][0]["startTime"] = "one second"
        del sample_document["language"]
        with pytest.raises(SchemaError) as excinfo:
            asyncio.run(import_canonical_document(sample_document))
        paths = {v.path for v in excinfo.value.violations}
        assert "/text/0/startTime" in paths
        assert "" in paths

    def test_invalid_json(self):
        with pytest.raises(SchemaError) as excinfo:
            asyncio.run(import_canonical_document("{not json"))
        assert len(excinfo.value.violations) == 1
        assert "Invalid JSON" in excinfo.value.violations[0].message

    def test_empty_text_rejected(self, sample_document):
        sample_document["text"] = []
        with pytest.raises(SchemaError):
            asyncio.run(import_canonical_document(sample_document))

    def test_custom_validator(self, sample_document):
        validator = compile_schema({"type": "object", "maxProperties": 1})
        with pytest.raises(SchemaError):
            asyncio.run(import_canonical_document(sample_document, validator=validator))


# ---------------------------------------------------------------------------
# Auto-transcript XML
# ---------------------------------------------------------------------------


AUTO_TRANSCRIPT_XML = (
    '<?xml version="1.0" encoding="utf-8" ?>'
    "<transcript>"
    '<text start="1.0" dur="2.5">Hello there</text>'
    '<text start="4.2">it&amp;#39;s &amp;quot;live&amp;quot;</text>'
    "</transcript>"
)


class TestAutoTranscriptImport:

    def test_start_and_duration(self, video_reference):
        transcript = import_auto_transcript(AUTO_TRANSCRIPT_XML, video_reference)
        first = transcript.line_at(0)
        assert first.content == "Hello there"
        assert (first.start, first.end) == (1.0, 3.5)

    def test_missing_dur_is_zero(self, video_reference):
        second = import_auto_transcript(AUTO_TRANSCRIPT_XML, video_reference).line_at(1)
        assert second.start == second.end == 4.2

    def test_double_encoded_entities(self, video_reference):
        second = import_auto_transcript(AUTO_TRANSCRIPT_XML, video_reference).line_at(1)
        assert second.content == 'it\'s "live"'

    def test_language_passed_through(self, video_reference):
        transcript = import_auto_transcript(AUTO_TRANSCRIPT_XML, video_reference, language="de")
        assert transcript.language == "de"

    @pytest.mark.parametrize("xml", [
        "<transcript><text start='1'>unclosed</transcript>",
        "<captions><text start='1'>x</text></captions>",
        "<transcript><text dur='1'>no start</text></transcript>",
        "<transcript><text start='soon'>x</text></transcript>",
        "<transcript><text start='-1'>x</text></transcript>",
    ])
    def test_rejects(self, video_reference, xml):
        with pytest.raises(FormatError):
            import_auto_transcript(xml, video_reference)


# ---------------------------------------------------------------------------
# Time-coded blocks
# ---------------------------------------------------------------------------


TIMECODED = (
    "0:00:01.000,0:00:04.000\n"
    "First caption\n"
    "\n"
    "0:01:05.500,1:00:05.250\n"
    "  Second caption,  \n"
    "over two lines\n"
)


class TestTimecodedImport:

    def test_parse_range(self):
        assert parse_range("0:00:01.000,0:00:04.000") == (1.0, 4.0)

    def test_blocks(self, video_reference):
        transcript = import_timecoded(TIMECODED, video_reference)
        assert len(transcript) == 2
        first, second = transcript.lines
        assert (first.start, first.end) == (1.0, 4.0)
        assert first.content == "First caption"
        assert (second.start, second.end) == (65.5, 3605.25)
        assert second.content == "Second caption,\nover two lines"

    def test_crlf(self, video_reference):
        transcript = import_timecoded(TIMECODED.replace("\n", "\r\n"), video_reference)
        assert [line.content for line in transcript] == [
            "First caption",
            "Second caption,\nover two lines",
        ]

    def test_bad_block_named(self, video_reference):
        text = TIMECODED + "\nnot a range\ntext\n"
        with pytest.raises(FormatError, match="Block 3"):
            import_timecoded(text, video_reference)

    def test_empty(self, video_reference):
        assert len(import_timecoded("  \n", video_reference)) == 0

    def test_runs_of_blank_lines_separate_blocks(self, video_reference):
        text = (
            "0:00:01.000,0:00:02.000\nOne\n\n\n\n"
            "0:00:03.000,0:00:04.000\nTwo\n \t\n   \n"
            "0:00:05.000,0:00:06.000\nThree\n"
        )
        transcript = import_timecoded(text, video_reference)
        assert [line.content for line in transcript] == ["One", "Two", "Three"]
        assert transcript.line_at(2).start == 5.0


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


class TestPlainTextImport:

    def test_non_blank_lines(self, video_reference):
        transcript = import_plain_text("  one \n\n   \ntwo\r\n", video_reference)
        assert [line.content for line in transcript] == ["one", "two"]
        assert all(not line.has_timing() for line in transcript)


# ---------------------------------------------------------------------------
# Detection and dispatch
# ---------------------------------------------------------------------------


class TestDetectFormat:

    @pytest.mark.parametrize("text,expected", [
        ('  {"language": "en"}', "canonical"),
        ("\ufeff<transcript/>", "auto_transcript"),
        ("\n0:00:01.000,0:00:02.000\nhi", "timecoded"),
        ("Just some words", "plain_text"),
        ("", "plain_text"),
    ])
    def test_detect(self, text, expected):
        assert detect_format(text) == expected

    def test_registry_keys(self):
        assert set(IMPORTERS) == {"canonical", "auto_transcript", "timecoded", "plain_text"}


class TestImportSource:

    def test_auto_detects_timecoded(self, video_reference):
        transcript = asyncio.run(import_source(TIMECODED, video_reference=video_reference))
        assert len(transcript) == 2

    def test_dict_is_canonical(self, sample_document):
        transcript = asyncio.run(import_source(sample_document, source_format="plain_text"))
        assert len(transcript) == 3

    def test_text_formats_need_video_reference(self):
        with pytest.raises(FormatError):
            asyncio.run(import_source("hello", source_format="plain_text"))

    def test_unknown_format(self, video_reference):
        with pytest.raises(FormatError):
            asyncio.run(import_source("x", source_format="srt", video_reference=video_reference))


# ---------------------------------------------------------------------------
# Remote sources
# ---------------------------------------------------------------------------


class TestFetchSource:

    def test_is_remote(self):
        assert is_remote("https://example.com/a.xml")
        assert not is_remote("captions/a.xml")

    def test_returns_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url == "https://example.com/captions.xml"
            return httpx.Response(200, text=AUTO_TRANSCRIPT_XML)

        text = asyncio.run(fetch_source(
            "https://example.com/captions.xml",
            transport=httpx.MockTransport(handler),
        ))
        assert text == AUTO_TRANSCRIPT_XML

    def test_non_2xx_is_format_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        with pytest.raises(FormatError, match="HTTP 404"):
            asyncio.run(fetch_source("https://example.com/missing", transport=transport))

    def test_transport_failure_is_format_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(FormatError):
            asyncio.run(fetch_source("https://example.com/x", transport=httpx.MockTransport(handler)))

    def test_local_path_rejected(self):
        with pytest.raises(FormatError):
            asyncio.run(fetch_source("/tmp/captions.xml"))
