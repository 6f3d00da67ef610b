"""Caption line model: one transcribed line with timing and cue hints.

WHY: Every other component (serializer, emitter, importers, presets) works
with caption lines, and the values arriving from the editing form are raw
strings. Normalizing and validating them in one place keeps the canonical
document and the subtitle track consistent no matter where a value came from.

HOW: CaptionLine is a mutable dataclass whose fields are only changed through
its set_* methods. Each setter parses its raw input with a small pure helper
(parse_seconds, parse_percentage, ...) so the session can validate a whole
settings commit before touching the line.

RULES:
- content is a plain string, or a list of segments (plain strings or
  AnnotatedSpan); annotations never leave the canonical document
- start/end are float seconds or None; an invalid literal raises
  ValidationError, a value with no numeric prefix resolves to None
- speakers are trimmed, non-empty, comma-free, de-duplicated, in
  first-seen order
- position/line/size are clamped to >= 0 and truncated toward zero
- alignment is one of config.ALIGNMENTS or None
- continuation defaults to False
"""

from __future__ import annotations

import logging
import math
import re
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from subtitle_editor.config import ALIGNMENTS
from subtitle_editor.errors import ValidationError

logger = logging.getLogger(__name__)

# Leading numeric prefix, as a browser's parseFloat reads it.
_LEADING_FLOAT_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# A plain non-negative decimal numeral: "12", "1.25". No sign, no exponent.
_NUMERAL_RE = re.compile(r"^\d+(?:\.\d+)?$")

_TRUE_STRINGS = frozenset({"1", "true", "on", "yes"})

PRESENTATION_FIELDS = ("position", "line", "size", "alignment")


@dataclass
class AnnotatedSpan:
    """A sub-span of a caption line carrying a short free-text note.

    Attributes:
        text: The spoken text of the span.
        annotation: Optional note (e.g. a cross-reference). Canonical-only.
    """

    text: str
    annotation: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        out = {"text": self.text}
        if self.annotation:
            out["annotation"] = self.annotation
        return out


Segment = Union[str, AnnotatedSpan]
Content = Union[str, List[Segment]]


def normalize_content(content: Any) -> Content:
    """Coerce raw content into the line model's content shape.

    Accepts a string, or a list whose items are strings, AnnotatedSpan
    instances, or ``{"text": ..., "annotation": ...}`` mappings.

    Raises:
        ValidationError: If the value is neither a string nor a list of
            supported segments.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        segments: List[Segment] = []
        for item in content:
            if isinstance(item, (str, AnnotatedSpan)):
                segments.append(item)
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                segments.append(AnnotatedSpan(
                    text=item["text"],
                    annotation=item.get("annotation") or None,
                ))
            else:
                raise ValidationError(
                    "Unsupported content segment: {!r}".format(item),
                    field="content",
                    value=item,
                )
        return segments
    raise ValidationError(
        "Line content must be a string or a list of segments",
        field="content",
        value=content,
    )


def content_plain_text(content: Content) -> str:
    """Concatenate the plain text of every segment, dropping annotations."""
    if isinstance(content, str):
        return content
    return "".join(
        seg.text if isinstance(seg, AnnotatedSpan) else seg
        for seg in content
    )


def content_to_json(content: Content) -> Union[str, List[Union[str, Dict[str, str]]]]:
    """Render content in canonical-document shape (string or list)."""
    if isinstance(content, str):
        return content
    return [
        seg.to_dict() if isinstance(seg, AnnotatedSpan) else seg
        for seg in content
    ]


# ---------------------------------------------------------------------------
# Raw value parsers
# ---------------------------------------------------------------------------


def _leading_float(text: str) -> Optional[float]:
    match = _LEADING_FLOAT_RE.match(text)
    if match is None:
        return None
    return float(match.group(0))


def is_blank(value: Any) -> bool:
    """True for None, empty/whitespace strings and NaN floats."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float):
        return math.isnan(value)
    return False


def parse_seconds(raw: Any, field_name: str = "start") -> Optional[float]:
    """Parse a start/end time value from the editing form.

    WHY: Time fields are typed by hand. Text with no numeric prefix is treated
    as "not filled in", while a value that looks numeric but is not a plain
    non-negative numeral ("-1", "1.5s") is a user error worth reporting.

    RULES:
    - None, "" and NaN resolve to None
    - A string whose leading prefix is not a number resolves to None
    - Any other string must match ``^\\d+(\\.\\d+)?$`` or ValidationError
    - Negative or infinite numbers raise ValidationError
    """
    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
        if math.isnan(value):
            return None
        if isinstance(raw, bool) or value < 0 or math.isinf(value):
            raise ValidationError(
                "Invalid {} time: {!r}".format(field_name, raw),
                field=field_name,
                value=raw,
            )
        return value

    text = str(raw).strip()
    if not text or _leading_float(text) is None:
        return None
    if not _NUMERAL_RE.match(text):
        raise ValidationError(
            "Invalid {} time: {!r} is not a non-negative number of seconds".format(
                field_name, raw
            ),
            field=field_name,
            value=raw,
        )
    return float(text)


def format_seconds(value: float) -> str:
    """Shortest decimal numeral for a seconds value ("4", "1.5", "0.0000123").

    Never uses exponent notation and never drops a significant digit, so
    float(format_seconds(x)) == x.
    """
    value = float(value)
    if value.is_integer():
        return str(int(value))
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_form_seconds(value: Optional[float]) -> str:
    """A stored time as the settings form shows it ("" when unset)."""
    return "" if value is None else format_seconds(value)


def parse_percentage(raw: Any) -> Optional[int]:
    """Parse a position/line/size hint, clamping to a non-negative integer."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        parsed = _leading_float(str(raw))
        if parsed is None:
            return None
        value = parsed
    if math.isnan(value) or math.isinf(value):
        return None
    return math.trunc(max(0.0, value))


def parse_alignment(raw: Any) -> Optional[str]:
    if is_blank(raw):
        return None
    value = str(raw).strip()
    if value not in ALIGNMENTS:
        raise ValidationError(
            "Invalid alignment {!r}; expected one of {}".format(raw, ", ".join(ALIGNMENTS)),
            field="alignment",
            value=raw,
        )
    return value


def parse_speakers(raw: Any) -> List[str]:
    """Split a comma list into trimmed, non-empty, de-duplicated names.

    A list is split item by item the same way, so a name can never contain
    a comma and the joined form always splits back into the same names.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        parts = [part for item in raw for part in str(item).split(",")]
    else:
        parts = str(raw).strip().split(",")
    names: List[str] = []
    for part in parts:
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return names


def parse_flag(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUE_STRINGS
    return bool(raw)


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


@dataclass
class Presentation:
    """Cue placement hints for one line.

    Attributes:
        position: Horizontal position percentage, or None.
        line: Vertical line percentage, or None.
        size: Cue box width percentage, or None.
        alignment: "start", "middle", "end", or None.
    """

    position: Optional[int] = None
    line: Optional[int] = None
    size: Optional[int] = None
    alignment: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in PRESENTATION_FIELDS)

    def as_dict(self) -> Dict[str, Any]:
        """Only the hints that are set, keyed by field name."""
        return {
            name: getattr(self, name)
            for name in PRESENTATION_FIELDS
            if getattr(self, name) is not None
        }


@dataclass
class CaptionLine:
    """One caption line: content, timing, speakers and cue hints.

    WHY: The unit of transcription. The editing surface creates one per line
    it shows, the importers create one per caption in the source, and the
    serializer/emitter read them back in order.

    RULES:
    - line_id is assigned once at creation and never changes
    - Mutate fields through the set_* methods so values stay normalized
    """

    content: Content = ""
    line_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    start: Optional[float] = None
    end: Optional[float] = None
    speakers: List[str] = field(default_factory=list)
    continuation: bool = False
    presentation: Presentation = field(default_factory=Presentation)

    @property
    def speaker(self) -> str:
        """Canonical comma-joined speaker list ("" when none)."""
        return ",".join(self.speakers)

    def set_content(self, content: Any) -> None:
        self.content = normalize_content(content)

    def set_speaker(self, raw: Any) -> str:
        """Normalize and store the speaker list; return its canonical form.

        ``" Alice ,  , Bob"`` becomes ``["Alice", "Bob"]`` / ``"Alice,Bob"``.
        """
        self.speakers = parse_speakers(raw)
        return self.speaker

    def set_start(self, raw: Any) -> None:
        self.start = parse_seconds(raw, "start")

    def set_end(self, raw: Any) -> None:
        self.end = parse_seconds(raw, "end")

    def set_position(self, raw: Any) -> None:
        self.presentation.position = parse_percentage(raw)

    def set_line(self, raw: Any) -> None:
        self.presentation.line = parse_percentage(raw)

    def set_size(self, raw: Any) -> None:
        self.presentation.size = parse_percentage(raw)

    def set_alignment(self, raw: Any) -> None:
        self.presentation.alignment = parse_alignment(raw)

    def set_continuation(self, flag: Any) -> None:
        self.continuation = parse_flag(flag)

    def has_timing(self) -> bool:
        return self.start is not None and self.end is not None

    def warn_if_inverted(self) -> None:
        """Log (but allow) a line whose start is after its end."""
        if self.has_timing() and self.start > self.end:
            logger.warning(
                "Caption line %s starts after it ends (%.3fs > %.3fs)",
                self.line_id, self.start, self.end,
            )

    def plain_text(self) -> str:
        return content_plain_text(self.content)

    def copy(self) -> CaptionLine:
        """Independent copy sharing no mutable state with this line."""
        content = self.content if isinstance(self.content, str) else [
            AnnotatedSpan(seg.text, seg.annotation) if isinstance(seg, AnnotatedSpan) else seg
            for seg in self.content
        ]
        return CaptionLine(
            content=content,
            line_id=self.line_id,
            start=self.start,
            end=self.end,
            speakers=list(self.speakers),
            continuation=self.continuation,
            presentation=Presentation(**self.presentation.as_dict()),
        )
