"""Pydantic request/response models for the editing-session HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and the generated OpenAPI docs the front end is
built against.

HOW: One model per request body and per response shape. Enums cover the
closed sets (source formats). Settings fields accept raw form values
(strings or numbers) because normalization is the line model's job.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- SettingsRequest is applied with exclude_unset, so omitted fields keep
  the line's current value
- Error bodies share ErrorResponse; schema failures add a violation list
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from subtitle_editor.config import DEFAULT_LANGUAGE


class SourceFormat(str, Enum):
    """Import format identifiers; values match importers.IMPORTERS keys."""

    auto = "auto"
    canonical = "canonical"
    auto_transcript = "auto_transcript"
    timecoded = "timecoded"
    plain_text = "plain_text"


class AnnotatedSpanModel(BaseModel):
    text: str = Field(description="Span text.")
    annotation: Optional[str] = Field(default=None, description="Short note on the span.")


LineContent = Union[str, List[Union[str, AnnotatedSpanModel]]]


def content_payload(content: LineContent) -> Any:
    """Convert request content into the plain shape the line model accepts."""
    if isinstance(content, str):
        return content
    return [
        seg.model_dump(exclude_none=True) if isinstance(seg, AnnotatedSpanModel) else seg
        for seg in content
    ]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SessionCreateRequest(BaseModel):
    """Start editing a video from an initial caption source."""

    video_url: str = Field(description="YouTube or Twitch clip URL.")
    source: Union[str, Dict[str, Any]] = Field(
        default="",
        description="Source text, or a parsed canonical document object.",
    )
    source_format: SourceFormat = Field(
        default=SourceFormat.auto,
        description="Format of source; 'auto' detects it.",
    )
    language: str = Field(
        default=DEFAULT_LANGUAGE,
        description="Language tag for sources that carry none.",
    )


class ImportRequest(BaseModel):
    """Replace a session's transcript with a newly imported source."""

    source: Union[str, Dict[str, Any]] = Field(
        description="Source text, or a parsed canonical document object.",
    )
    source_format: SourceFormat = Field(
        default=SourceFormat.auto,
        description="Format of source; 'auto' detects it.",
    )


class LineTokenModel(BaseModel):
    id: Optional[str] = Field(default=None, description="Line id; null for a new line.")
    content: LineContent = Field(description="Line text or annotated segments.")


class SyncLinesRequest(BaseModel):
    """The editing surface's current line list, in display order."""

    lines: List[LineTokenModel] = Field(description="Lines in display order.")


class SettingsRequest(BaseModel):
    """Raw values from a line's settings form."""

    speaker: Optional[str] = Field(default=None, description="Comma-separated speaker names.")
    start: Optional[Union[str, float]] = Field(default=None, description="Start time in seconds.")
    end: Optional[Union[str, float]] = Field(default=None, description="End time in seconds.")
    position: Optional[Union[str, float]] = Field(default=None, description="Position percentage.")
    line: Optional[Union[str, float]] = Field(default=None, description="Line percentage.")
    size: Optional[Union[str, float]] = Field(default=None, description="Size percentage.")
    alignment: Optional[str] = Field(default=None, description="start, middle or end.")
    continuation: Optional[Union[bool, str]] = Field(
        default=None,
        description="True if speech continues from the previous line without a pause.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """Session state after any mutation: ids, speakers, document, track."""

    id: str = Field(description="Session id.")
    video_url: str = Field(description="Canonical URL of the captioned video.")
    language: str = Field(description="Transcript language tag.")
    line_ids: List[str] = Field(description="Line ids in playback order.")
    speakers: List[str] = Field(description="Sorted speaker names.")
    document: Dict[str, Any] = Field(description="Canonical transcript document.")
    track: str = Field(description="WebVTT subtitle track text.")


class LineFormResponse(BaseModel):
    """Values to populate a line's settings form, presets backfilled."""

    line_id: str = Field(description="Selected line id.")
    speaker: str = Field(description="Comma-joined speaker names.")
    start: str = Field(description="Start time in seconds, or empty.")
    end: str = Field(description="End time in seconds, or empty.")
    position: Optional[int] = Field(default=None, description="Position percentage.")
    line: Optional[int] = Field(default=None, description="Line percentage.")
    size: Optional[int] = Field(default=None, description="Size percentage.")
    alignment: Optional[str] = Field(default=None, description="Cue alignment.")
    continuation: bool = Field(description="Continues from the previous line.")


class PresetsResponse(BaseModel):
    presets: Dict[str, Dict[str, Any]] = Field(
        description="Stored presentation hints per speaker (set fields only).",
    )


class FormatInfo(BaseModel):
    key: str = Field(description="Format identifier.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '.vtt').")
    media_type: str = Field(description="MIME type of the output.")


class ViolationModel(BaseModel):
    path: str = Field(description="Location of the offending value.")
    message: str = Field(description="What is wrong with it.")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")
    field: Optional[str] = Field(default=None, description="Rejected form field, if any.")
    violations: Optional[List[ViolationModel]] = Field(
        default=None,
        description="Schema violations, for rejected canonical documents.",
    )


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
