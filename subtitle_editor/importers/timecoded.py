"""Importer for time-coded text blocks.

Input looks like::

    0:00:01.000,0:00:04.000
    First caption

    0:00:04.500,0:00:06.250
    Second caption,
    over two lines

Blocks are separated by blank lines. The first line of a block is the
``h:mm:ss.mmm,h:mm:ss.mmm`` range; the remaining lines, trimmed and joined
with newlines, are the caption text.
"""

from __future__ import annotations

import logging
import re
from typing import Tuple

from subtitle_editor.config import DEFAULT_LANGUAGE
from subtitle_editor.core.transcript import Transcript, VideoReference
from subtitle_editor.errors import FormatError

logger = logging.getLogger(__name__)

_CLOCK = r"(\d+):(\d{1,2}):(\d{1,2}(?:\.\d+)?)"
RANGE_RE = re.compile(r"^\s*" + _CLOCK + r"\s*,\s*" + _CLOCK + r"\s*$")

# One or more blank (or whitespace-only) lines.
_BLOCK_SPLIT_RE = re.compile(r"\n(?:[ \t]*\n)+")


def parse_range(line: str) -> Tuple[float, float]:
    """"h:mm:ss.mmm,h:mm:ss.mmm" → (start, end) in seconds.

    Raises:
        FormatError: If the line is not a time range.
    """
    match = RANGE_RE.match(line)
    if match is None:
        raise FormatError("Not a time range: {!r}".format(line))
    h1, m1, s1, h2, m2, s2 = match.groups()
    start = int(h1) * 3600 + int(m1) * 60 + float(s1)
    end = int(h2) * 3600 + int(m2) * 60 + float(s2)
    return start, end


def import_timecoded(
    text: str,
    video_reference: VideoReference,
    language: str = DEFAULT_LANGUAGE,
) -> Transcript:
    """Import blank-line separated time-coded blocks.

    Raises:
        FormatError: If a block's first line is not a valid time range.
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").strip()
    transcript = Transcript(video_reference=video_reference, language=language)
    if not normalized:
        return transcript

    for number, block in enumerate(_BLOCK_SPLIT_RE.split(normalized), start=1):
        lines = block.strip().split("\n")
        try:
            start, end = parse_range(lines[0])
        except FormatError as exc:
            raise FormatError("Block {}: {}".format(number, exc))

        caption = transcript.add_line("\n".join(part.strip() for part in lines[1:]))
        caption.set_start(start)
        caption.set_end(end)
        caption.warn_if_inverted()

    logger.info("Imported %d line(s) from time-coded blocks", len(transcript))
    return transcript
