"""WebVTT subtitle track emitter.

WHY: Video players consume captions as a WebVTT cue list, not as the
canonical document. The track is regenerated after every edit so the preview
always matches the transcript.

HOW: emit_track() reads the canonical document (serializing a Transcript
first if given one), skips items without full timing, and writes one cue
block per remaining item: index, time range with optional cue settings, text.

RULES:
- Header "WEBVTT", a blank line, then blank-line separated cue blocks
- Only items with both startTime and endTime become cues; others are
  skipped silently and do not consume an index
- Cue indices are zero-based and dense over emitted cues
- Timestamps are MM:SS.mmm with minutes unbounded and no hours field
  (3605.25 → "60:05.250")
- Cue settings, in order: position:N% line:N% size:N% (only when > 0) align:V
- Cue text is the concatenated plain text; annotations never appear
- Cue text never holds a blank line or "-->"
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from subtitle_editor.config import TRACK_HEADER
from subtitle_editor.core.transcript import Transcript
from subtitle_editor.formatters.base import BaseFormatter, FormatterOutput
from subtitle_editor.formatters.canonical import parse_duration, serialize_transcript


def format_timestamp(seconds: float) -> str:
    """Seconds → "MM:SS.mmm" (65.5 → "01:05.500").

    Works from rounded integer milliseconds so 59.9996 becomes "01:00.000"
    rather than "00:60.000".
    """
    total_ms = int(round(max(0.0, seconds) * 1000))
    minutes, rem_ms = divmod(total_ms, 60_000)
    secs, millis = divmod(rem_ms, 1000)
    return "{:02d}:{:02d}.{:03d}".format(minutes, secs, millis)


def cue_settings(hints: Optional[Mapping[str, Any]]) -> str:
    """Render the cue settings suffix from a canonical ``webvtt`` object."""
    if not hints:
        return ""
    parts: List[str] = []
    if hints.get("position") is not None:
        parts.append("position:{}%".format(hints["position"]))
    if hints.get("line") is not None:
        parts.append("line:{}%".format(hints["line"]))
    if hints.get("size"):
        parts.append("size:{}%".format(hints["size"]))
    if hints.get("align"):
        parts.append("align:{}".format(hints["align"]))
    return " ".join(parts)


def item_text(text: Union[str, List[Any]]) -> str:
    """Plain text of a canonical ``text`` value, annotations dropped."""
    if isinstance(text, str):
        return text
    return "".join(
        seg["text"] if isinstance(seg, dict) else seg
        for seg in text
    )


def cue_text(text: str) -> str:
    """Make caption text safe inside one cue block.

    A blank line would end the cue and a "-->" would read as a timing line,
    so blank lines are dropped and arrows are shortened to "->".
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    while "-->" in text:
        text = text.replace("-->", "->")
    return "\n".join(part for part in text.split("\n") if part.strip())


def _cue_block(index: int, item: Dict[str, Any]) -> str:
    timing = "{} --> {}".format(
        format_timestamp(parse_duration(item["startTime"])),
        format_timestamp(parse_duration(item["endTime"])),
    )
    settings = cue_settings(item.get("webvtt"))
    if settings:
        timing = "{} {}".format(timing, settings)
    return "{}\n{}\n{}".format(index, timing, cue_text(item_text(item["text"])))


def emit_track(source: Union[Transcript, Dict[str, Any]]) -> str:
    """Emit the WebVTT track for a canonical document or a Transcript."""
    document = serialize_transcript(source) if isinstance(source, Transcript) else source

    blocks: List[str] = []
    for item in document.get("text", []):
        if "startTime" not in item or "endTime" not in item:
            continue
        blocks.append(_cue_block(len(blocks), item))

    if not blocks:
        return TRACK_HEADER + "\n\n"
    return "{}\n\n{}\n".format(TRACK_HEADER, "\n\n".join(blocks))


class WebVTTFormatter(BaseFormatter):
    """Formatter that exports the subtitle track as a .vtt file."""

    suffix = ".vtt"
    media_type = "text/vtt"

    @property
    def name(self) -> str:
        return "WebVTT"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix=self.suffix,
                content=emit_track(transcript),
                media_type=self.media_type,
            )
        ]
