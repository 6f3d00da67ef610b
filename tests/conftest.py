"""Shared test fixtures for the subtitle_editor test suite.

WHY: Most test modules need the same small, fully-populated transcript (timed
and untimed lines, multiple speakers, annotated spans, cue hints) and the same
video URL. Centralizing them keeps expected values consistent across the
serializer, emitter, importer and session tests.

HOW: SAMPLE_DOCUMENT is the canonical form of the sample transcript; the
sample_transcript fixture builds the same transcript through the line
setters, so serialize_transcript(sample_transcript) == SAMPLE_DOCUMENT.

RULES:
- The video is always YOUTUBE_URL (id dQw4w9WgXcQ)
- Line 2 ("Untimed aside") has no timing and must never become a cue
- Fixtures return fresh objects; tests may mutate them freely
"""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from subtitle_editor.core.line import AnnotatedSpan
from subtitle_editor.core.transcript import Transcript, VideoReference, resolve_video_url

YOUTUBE_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
YOUTUBE_CANONICAL_URL = "https://youtu.be/dQw4w9WgXcQ"
TWITCH_CLIP_URL = "https://clips.twitch.tv/FunnyCleverOtterKappa"

SAMPLE_DOCUMENT: Dict[str, Any] = {
    "language": "en",
    "about": YOUTUBE_CANONICAL_URL,
    "text": [
        {
            "text": "Welcome back to the show.",
            "startTime": "PT1S",
            "endTime": "PT3.5S",
            "speaker": ["Alice"],
            "webvtt": {"position": 10, "line": 20, "align": "start"},
        },
        {
            "text": "Untimed aside",
        },
        {
            "text": [
                "Thanks, ",
                {"text": "Alice", "annotation": "host"},
                ".",
            ],
            "startTime": "PT65.5S",
            "endTime": "PT68S",
            "speaker": ["Bob"],
            "followsOnFromPrevious": True,
        },
    ],
}


@pytest.fixture
def video_reference() -> VideoReference:
    return resolve_video_url(YOUTUBE_URL)


@pytest.fixture
def sample_document() -> Dict[str, Any]:
    """Deep copy of SAMPLE_DOCUMENT."""
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def sample_transcript(video_reference) -> Transcript:
    """The transcript SAMPLE_DOCUMENT describes, built through the setters."""
    transcript = Transcript(video_reference=video_reference, language="en")

    first = transcript.add_line("Welcome back to the show.")
    first.set_start("1")
    first.set_end("3.5")
    first.set_speaker("Alice")
    first.set_position(10)
    first.set_line(20)
    first.set_alignment("start")

    transcript.add_line("Untimed aside")

    third = transcript.add_line(["Thanks, ", AnnotatedSpan("Alice", "host"), "."])
    third.set_start(65.5)
    third.set_end(68)
    third.set_speaker("Bob")
    third.set_continuation(True)

    return transcript
