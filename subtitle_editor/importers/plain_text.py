"""Plain text importer: one input line per caption line, text only."""

from __future__ import annotations

import logging

from subtitle_editor.config import DEFAULT_LANGUAGE
from subtitle_editor.core.transcript import Transcript, VideoReference

logger = logging.getLogger(__name__)


def import_plain_text(
    text: str,
    video_reference: VideoReference,
    language: str = DEFAULT_LANGUAGE,
) -> Transcript:
    """Each non-blank line, trimmed, becomes a caption line with no timing."""
    transcript = Transcript(video_reference=video_reference, language=language)
    for raw_line in text.splitlines():
        content = raw_line.strip()
        if content:
            transcript.add_line(content)

    logger.info("Imported %d line(s) from plain text", len(transcript))
    return transcript
