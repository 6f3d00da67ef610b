"""Tests for the WebVTT subtitle track emitter.

WHY: The track is what viewers actually see. Cue timing format (no hours
field), dense indices and the cue settings order are easy to regress.

HOW: Exact-string comparison of emitted tracks for the conftest sample and
for small hand-built documents.
"""

from __future__ import annotations

import pytest

from subtitle_editor.core.transcript import Transcript
from subtitle_editor.formatters import FORMATTERS
from subtitle_editor.formatters.webvtt import (
    WebVTTFormatter,
    cue_settings,
    emit_track,
    format_timestamp,
)


class TestFormatTimestamp:

    @pytest.mark.parametrize("seconds,expected", [
        (0, "00:00.000"),
        (1, "00:01.000"),
        (65.5, "01:05.500"),
        (3605.25, "60:05.250"),
        (59.9996, "01:00.000"),
        (6000.001, "100:00.001"),
    ])
    def test_minutes_unbounded(self, seconds, expected):
        assert format_timestamp(seconds) == expected


class TestCueSettings:

    def test_order(self):
        hints = {"align": "end", "size": 40, "line": 20, "position": 10}
        assert cue_settings(hints) == "position:10% line:20% size:40% align:end"

    def test_zero_size_omitted_zero_position_kept(self):
        assert cue_settings({"position": 0, "size": 0}) == "position:0%"

    def test_none(self):
        assert cue_settings(None) == ""


class TestEmitTrack:

    def test_sample_transcript(self, sample_transcript):
        assert emit_track(sample_transcript) == (
            "WEBVTT\n"
            "\n"
            "0\n"
            "00:01.000 --> 00:03.500 position:10% line:20% align:start\n"
            "Welcome back to the show.\n"
            "\n"
            "1\n"
            "01:05.500 --> 01:08.000\n"
            "Thanks, Alice.\n"
        )

    def test_document_and_transcript_agree(self, sample_transcript, sample_document):
        assert emit_track(sample_document) == emit_track(sample_transcript)

    def test_indices_dense_over_emitted_cues(self, video_reference):
        t = Transcript(video_reference=video_reference)
        for i in range(5):
            line = t.add_line("line {}".format(i))
            if i % 2 == 0:
                line.set_start(i)
                line.set_end(i + 1)
        blocks = emit_track(t).split("\n\n")[1:]
        assert [block.split("\n")[0] for block in blocks] == ["0", "1", "2"]
        assert [block.split("\n")[2].strip() for block in blocks] == ["line 0", "line 2", "line 4"]

    def test_no_timed_lines(self, video_reference):
        t = Transcript(video_reference=video_reference)
        t.add_line("untimed")
        assert emit_track(t) == "WEBVTT\n\n"

    def test_multiline_text_kept(self, video_reference):
        t = Transcript(video_reference=video_reference)
        line = t.add_line("first\nsecond")
        line.set_start(0)
        line.set_end(2)
        assert emit_track(t).endswith("00:00.000 --> 00:02.000\nfirst\nsecond\n")

    def test_blank_lines_and_arrows_cannot_break_cue(self, video_reference):
        t = Transcript(video_reference=video_reference)
        line = t.add_line("first\n\n  \n00:09.000 --> 00:10.000\r\nlast --->")
        line.set_start(0)
        line.set_end(2)
        track = emit_track(t)
        assert track == (
            "WEBVTT\n\n"
            "0\n00:00.000 --> 00:02.000\n"
            "first\n00:09.000 -> 00:10.000\nlast ->\n"
        )
        assert track.count("-->") == 1


class TestWebVTTFormatter:

    def test_registered(self):
        assert FORMATTERS["webvtt"] is WebVTTFormatter

    def test_output(self, sample_transcript):
        outputs = WebVTTFormatter().format(sample_transcript)
        assert len(outputs) == 1
        assert outputs[0].suffix == ".vtt"
        assert outputs[0].media_type == "text/vtt"
        assert outputs[0].content.startswith("WEBVTT\n\n0\n")
