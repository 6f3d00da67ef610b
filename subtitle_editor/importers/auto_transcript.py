"""Importer for auto-generated transcript XML (YouTube timedtext).

WHY: Most videos already have machine captions. Starting from them is faster
than transcribing from scratch, even though they carry no speakers or cue
placement.

HOW: Parse with ElementTree, take every ``<text start=".." dur="..">`` child
of the ``<transcript>`` root, and decode its text twice: once by the XML
parser, once more with html.unescape, since the source double-encodes
entities (``&amp;#39;`` for an apostrophe).

RULES:
- start = the start attribute (seconds); end = start + dur (dur defaults to 0)
- No speaker or presentation data is produced
- Malformed XML, another root element, or a bad start/dur raises FormatError
"""

from __future__ import annotations

import html
import logging
import xml.etree.ElementTree as ET

from subtitle_editor.config import DEFAULT_LANGUAGE
from subtitle_editor.core.transcript import Transcript, VideoReference
from subtitle_editor.errors import FormatError

logger = logging.getLogger(__name__)


def _attr_seconds(elem: ET.Element, name: str, index: int, default=None) -> float:
    raw = elem.get(name)
    if raw is None:
        if default is None:
            raise FormatError("Caption {} has no {!r} attribute".format(index, name))
        return default
    try:
        value = float(raw)
    except ValueError:
        raise FormatError("Caption {} has a non-numeric {!r}: {!r}".format(index, name, raw))
    if value < 0:
        raise FormatError("Caption {} has a negative {!r}: {!r}".format(index, name, raw))
    return value


def import_auto_transcript(
    text: str,
    video_reference: VideoReference,
    language: str = DEFAULT_LANGUAGE,
) -> Transcript:
    """Import ``<transcript><text start dur>...</text></transcript>`` XML."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise FormatError("Malformed transcript XML: {}".format(exc))
    if root.tag != "transcript":
        raise FormatError("Expected a <transcript> root element, got <{}>".format(root.tag))

    transcript = Transcript(video_reference=video_reference, language=language)
    for index, elem in enumerate(root.findall("text")):
        start = _attr_seconds(elem, "start", index)
        duration = _attr_seconds(elem, "dur", index, default=0.0)

        line = transcript.add_line(html.unescape("".join(elem.itertext())))
        line.set_start(start)
        line.set_end(start + duration)

    logger.info("Imported %d line(s) from auto-transcript XML", len(transcript))
    return transcript
