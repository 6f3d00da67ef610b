"""Canonical transcript document serializer.

WHY: The canonical document is the editor's interchange format: it is what
gets exported, what the subtitle track is emitted from, and what the
canonical importer reads back. Keeping it a plain JSON-compatible dict makes
it trivial to validate with jsonschema and to ship over HTTP.

HOW: serialize_transcript() walks the lines in order and builds one caption
item per line, leaving out every optional field that has no value.
SpeakerRegistry tracks the derived speaker set between serializations so
callers only react when it actually changes.

RULES:
- Top level: {"language", "about": <video url>, "text": [...], "translation"?}
- text keeps the content's shape (string, or list of strings/spans)
- startTime/endTime appear only when both are set, as "PT<seconds>S"
- speaker appears only when non-empty; followsOnFromPrevious only when true
- webvtt (position/line/size/align) appears only when a hint is set
- CanonicalDocumentFormatter validates its output and raises SchemaError
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from subtitle_editor.core.line import CaptionLine, content_to_json, format_seconds
from subtitle_editor.core.schema import default_validator
from subtitle_editor.core.transcript import Transcript
from subtitle_editor.errors import FormatError, SchemaError
from subtitle_editor.formatters.base import BaseFormatter, FormatterOutput

_DURATION_RE = re.compile(r"^PT(\d+(?:\.\d+)?)S$")

# Canonical key for each presentation field.
_HINT_KEYS = (
    ("position", "position"),
    ("line", "line"),
    ("size", "size"),
    ("alignment", "align"),
)


def format_duration(seconds: float) -> str:
    """Seconds → ISO-8601-style duration string, e.g. 1.5 → "PT1.5S"."""
    return "PT{}S".format(format_seconds(seconds))


def parse_duration(text: str) -> float:
    """"PT<seconds>S" → float seconds.

    Raises:
        FormatError: If the string is not in that exact form.
    """
    match = _DURATION_RE.match(text or "")
    if match is None:
        raise FormatError("Invalid duration string: {!r}".format(text))
    return float(match.group(1))


def line_to_item(line: CaptionLine) -> Dict[str, Any]:
    """Build the canonical caption item for one line."""
    item: Dict[str, Any] = {"text": content_to_json(line.content)}

    if line.has_timing():
        item["startTime"] = format_duration(line.start)
        item["endTime"] = format_duration(line.end)

    if line.speakers:
        item["speaker"] = list(line.speakers)

    if line.continuation:
        item["followsOnFromPrevious"] = True

    hints = {
        key: getattr(line.presentation, attr)
        for attr, key in _HINT_KEYS
        if getattr(line.presentation, attr) is not None
    }
    if hints:
        item["webvtt"] = hints

    return item


def serialize_transcript(transcript: Transcript) -> Dict[str, Any]:
    """Transcript → canonical document dict (lines in transcript order)."""
    document: Dict[str, Any] = {
        "language": transcript.language,
        "about": transcript.video_reference.url,
        "text": [line_to_item(line) for line in transcript.lines],
    }
    if transcript.translation is not None:
        document["translation"] = list(transcript.translation)
    return document


def document_speakers(document: Dict[str, Any]) -> List[str]:
    """Sorted set of speaker names named anywhere in a canonical document."""
    names = set()
    for item in document.get("text", []):
        names.update(item.get("speaker", []))
    return sorted(names)


class SpeakerRegistry:
    """Derived speaker set, remembered between serializations.

    WHY: The editing surface rebuilds its speaker list (e.g. a datalist of
    suggestions) from this set. Rebuilding on every keystroke would churn,
    so update() reports whether anything changed.

    RULES:
    - Sets are compared by their sorted, comma-joined string form
    - The first update() after construction reports a change only if the
      set is non-empty
    """

    def __init__(self) -> None:
        self._key = ""
        self.speakers: List[str] = []

    def update(self, speakers: Iterable[str]) -> bool:
        names = sorted(set(speakers))
        key = ",".join(names)
        if key == self._key:
            return False
        self._key = key
        self.speakers = names
        return True


class CanonicalDocumentFormatter(BaseFormatter):
    """Formatter that exports the canonical transcript document as JSON.

    RULES:
    - Output suffix is "-transcript.json", media type application/json
    - Output is validated against the canonical schema before returning;
      an empty transcript therefore raises SchemaError
    """

    suffix = "-transcript.json"
    media_type = "application/json"

    def __init__(self, validator: Optional[Any] = None) -> None:
        self._validator = validator

    @property
    def name(self) -> str:
        return "Canonical JSON"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        """Serialize and validate the transcript.

        Raises:
            SchemaError: If the document does not conform to the schema.
        """
        document = serialize_transcript(transcript)

        validator = self._validator or default_validator()
        if not validator(document):
            raise SchemaError(validator.errors)

        content = json.dumps(document, indent=2, ensure_ascii=False)

        return [
            FormatterOutput(
                suffix=self.suffix,
                content=content + "\n",
                media_type=self.media_type,
            )
        ]
