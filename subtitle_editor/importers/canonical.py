"""Canonical transcript document importer.

WHY: Users resume work by loading a previously exported canonical document.
Because the file may have been edited by hand or produced by another tool,
it is validated against the canonical schema before any line is built, and a
bad document is rejected as a whole.

HOW: Parse the JSON (or accept an already-parsed dict), run the schema
validator off the event loop with asyncio.to_thread (the one point where an
import suspends), then map each caption item to a CaptionLine through the
line model's setters.

RULES:
- Invalid JSON or a schema failure raises SchemaError; no Transcript is built
- text keeps its shape: a string, or a list of strings and annotated spans
- Missing startTime/endTime stay absent (never default to zero)
- The video reference is the caller's, or else resolved from "about"
- language and translation are carried over unchanged
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Union

from subtitle_editor.core.schema import DocumentValidator, default_validator
from subtitle_editor.core.transcript import Transcript, VideoReference, resolve_video_url
from subtitle_editor.errors import SchemaError, Violation
from subtitle_editor.formatters.canonical import parse_duration

logger = logging.getLogger(__name__)


def parse_document(source: Union[str, bytes, Dict[str, Any]]) -> Any:
    """Decode a canonical document from text, or pass a parsed one through."""
    if isinstance(source, (str, bytes)):
        try:
            return json.loads(source)
        except json.JSONDecodeError as exc:
            raise SchemaError([Violation(path="", message="Invalid JSON: {}".format(exc))])
    return source


def _apply_item(transcript: Transcript, item: Dict[str, Any]) -> None:
    line = transcript.add_line(item["text"])

    if "startTime" in item and "endTime" in item:
        line.set_start(parse_duration(item["startTime"]))
        line.set_end(parse_duration(item["endTime"]))
        line.warn_if_inverted()

    if item.get("speaker"):
        line.set_speaker(item["speaker"])

    line.set_continuation(item.get("followsOnFromPrevious", False))

    hints = item.get("webvtt") or {}
    line.set_position(hints.get("position"))
    line.set_line(hints.get("line"))
    line.set_size(hints.get("size"))
    line.set_alignment(hints.get("align"))


def build_transcript(
    document: Dict[str, Any],
    video_reference: Optional[VideoReference] = None,
) -> Transcript:
    """Map an already-validated canonical document to a Transcript."""
    if video_reference is None:
        video_reference = resolve_video_url(document["about"])

    transcript = Transcript(
        video_reference=video_reference,
        language=document["language"],
        translation=list(document["translation"]) if "translation" in document else None,
    )
    for item in document["text"]:
        _apply_item(transcript, item)
    return transcript


async def import_canonical_document(
    source: Union[str, bytes, Dict[str, Any]],
    video_reference: Optional[VideoReference] = None,
    validator: Optional[DocumentValidator] = None,
) -> Transcript:
    """Validate and import a canonical document.

    Args:
        source: JSON text, or an already-parsed document dict.
        video_reference: Overrides the document's own "about" URL.
        validator: Compiled schema validator; defaults to the packaged schema.

    Returns:
        A new Transcript with one line per caption item, in document order.

    Raises:
        SchemaError: If the document is not valid JSON or fails validation.
        FormatError: If "about" is not a supported video URL and no
            video_reference was given.
    """
    document = parse_document(source)
    validator = validator or default_validator()

    valid = await asyncio.to_thread(validator, document)
    if not valid:
        logger.info("Rejected canonical document with %d violation(s)", len(validator.errors))
        raise SchemaError(validator.errors)

    transcript = build_transcript(document, video_reference)
    logger.info("Imported %d line(s) from canonical document", len(transcript))
    return transcript
