"""Editing session: the context object the editing surface talks to.

WHY: The editing surface (a browser page behind the HTTP API, or a test)
owns rendering, selection and text entry; the core owns the transcript. A
session object per video keeps everything that belongs to one editing run
(transcript, speaker presets, derived speaker set, current selection) in one
place that is thrown away wholesale when the next video is loaded.

HOW: The surface calls explicit methods instead of the core subscribing to
events:
  sync_lines        hand over the current line order and contents
  on_line_selected  get form values (with preset backfill) for one line
  apply_settings    commit a settings form for one line
  rebuild           re-serialize and re-emit (returns document, track)
  load              import a new source, replacing the transcript
                    (import_transcript + replace_transcript)

RULES:
- A settings commit is all-or-nothing: every field is validated on a copy
  of the line before the real line is touched
- Blank presentation fields are backfilled from the speaker presets before
  validation; committed non-blank fields become the new presets
- load() replaces transcript and presets only after a successful import;
  a failed import leaves the session exactly as it was
- on_speakers_changed is called from rebuild() only when the derived speaker
  set differs from the previous rebuild
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from subtitle_editor.config import DEFAULT_LANGUAGE
from subtitle_editor.core.line import CaptionLine, format_form_seconds, normalize_content
from subtitle_editor.core.presets import SpeakerPresetStore
from subtitle_editor.core.transcript import Transcript, VideoReference, resolve_video_url
from subtitle_editor.errors import PreconditionError
from subtitle_editor.formatters.canonical import (
    SpeakerRegistry,
    document_speakers,
    serialize_transcript,
)
from subtitle_editor.formatters.webvtt import emit_track
from subtitle_editor.importers import import_source

logger = logging.getLogger(__name__)

LineToken = Tuple[Optional[str], Any]
RebuildResult = Tuple[Dict[str, Any], str]

# Form key -> CaptionLine setter, in the order a commit applies them.
_FORM_SETTERS = (
    ("speaker", "set_speaker"),
    ("start", "set_start"),
    ("end", "set_end"),
    ("position", "set_position"),
    ("line", "set_line"),
    ("size", "set_size"),
    ("alignment", "set_alignment"),
    ("continuation", "set_continuation"),
)


class EditingSession:
    """All state for one video's editing run.

    Attributes:
        transcript: The active Transcript.
        presets: Speaker presets for this session only.
        speakers: Derived speaker registry, updated on every rebuild.
        selected_line_id: Line last passed to on_line_selected, or None.
        document: Canonical document from the last rebuild.
        track: Subtitle track text from the last rebuild.
    """

    def __init__(
        self,
        video_reference: VideoReference,
        language: str = DEFAULT_LANGUAGE,
        on_speakers_changed: Optional[Callable[[List[str]], None]] = None,
    ) -> None:
        self.transcript = Transcript(video_reference=video_reference, language=language)
        self.presets = SpeakerPresetStore()
        self.speakers = SpeakerRegistry()
        self.selected_line_id: Optional[str] = None
        self.document: Dict[str, Any] = {}
        self.track = ""
        self._on_speakers_changed = on_speakers_changed

    @property
    def video_reference(self) -> VideoReference:
        return self.transcript.video_reference

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(
        self,
        source: Any,
        source_format: str = "auto",
        video_reference: Optional[VideoReference] = None,
    ) -> RebuildResult:
        """Import a source and make it the session's transcript.

        The video reference defaults to the session's own, so a canonical
        document's "about" URL does not move the session to another video.

        Raises:
            FormatError, SchemaError: The import failed; nothing changed.
        """
        transcript = await self.import_transcript(source, source_format, video_reference)
        return self.replace_transcript(transcript)

    async def import_transcript(
        self,
        source: Any,
        source_format: str = "auto",
        video_reference: Optional[VideoReference] = None,
    ) -> Transcript:
        """Import a source for this session's video without touching its state."""
        return await import_source(
            source,
            source_format=source_format,
            video_reference=video_reference or self.video_reference,
            language=self.transcript.language,
        )

    def replace_transcript(self, transcript: Transcript) -> RebuildResult:
        """Swap in an imported transcript, reseed the presets and rebuild."""
        presets = SpeakerPresetStore()
        presets.seed_from(transcript)

        self.transcript = transcript
        self.presets = presets
        self.selected_line_id = None
        logger.info(
            "Loaded %d line(s) for %s (%d speaker preset(s))",
            len(transcript), transcript.video_reference.url, len(presets),
        )
        return self.rebuild()

    # ------------------------------------------------------------------
    # Editing surface entry points
    # ------------------------------------------------------------------

    def sync_lines(self, tokens: Sequence[LineToken]) -> List[str]:
        """Match the transcript to the surface's ordered line list.

        Args:
            tokens: (line_id, content) pairs in display order. A None id
                creates a new line; lines not listed are removed.

        Returns:
            The line ids in their new order.

        Raises:
            PreconditionError: If a token names an unknown line id or the
                same id twice. The transcript is unchanged in that case.
        """
        seen = set()
        for line_id, _content in tokens:
            if line_id is None:
                continue
            if line_id in seen or not self.transcript.has_line(line_id):
                raise PreconditionError("Unknown or repeated line id {!r}".format(line_id))
            seen.add(line_id)
        contents = [normalize_content(content) for _line_id, content in tokens]

        for line_id in self.transcript.line_ids():
            if line_id not in seen:
                self.transcript.remove_line(line_id)
                if self.selected_line_id == line_id:
                    self.selected_line_id = None

        ordered: List[str] = []
        for (line_id, _content), content in zip(tokens, contents):
            if line_id is None:
                line_id = self.transcript.add_line(content).line_id
            else:
                self.transcript.get_line(line_id).set_content(content)
            ordered.append(line_id)
        self.transcript.reorder(ordered)
        return ordered

    def on_line_selected(self, line_id: str) -> Dict[str, Any]:
        """Select a line and return the values to populate its settings form.

        Presentation fields the line does not set are backfilled from the
        presets of its speakers.

        Raises:
            PreconditionError: If the line does not exist.
        """
        line = self.transcript.get_line(line_id)
        self.selected_line_id = line_id
        form = line_form_values(line)
        return self.presets.backfill(form["speaker"], form)

    def apply_settings(self, line_id: str, raw_form_values: Mapping[str, Any]) -> RebuildResult:
        """Commit a settings form to one line, then rebuild.

        The form is laid over the line's current values, so keys absent from
        raw_form_values keep their current value. Presentation fields that
        end up blank are backfilled from the speaker presets. ``align`` is
        accepted as an alias of ``alignment``.

        Raises:
            PreconditionError: If the line does not exist.
            ValidationError: If any field is invalid; the line is unchanged.
        """
        line = self.transcript.get_line(line_id)

        values = line_form_values(line)
        values.update(raw_form_values)
        if "align" in values:
            values["alignment"] = values.pop("align")
        values = self.presets.backfill(values["speaker"], values)

        staged = line.copy()
        for key, setter in _FORM_SETTERS:
            getattr(staged, setter)(values[key])

        _commit(line, staged)
        line.warn_if_inverted()
        self.presets.record(line.speakers, line.presentation.as_dict())
        return self.rebuild()

    def rebuild(self) -> RebuildResult:
        """Re-serialize the transcript and re-emit the subtitle track."""
        self.document = serialize_transcript(self.transcript)
        self.track = emit_track(self.document)

        if self.speakers.update(document_speakers(self.document)):
            logger.debug("Speaker set changed: %s", ", ".join(self.speakers.speakers))
            if self._on_speakers_changed is not None:
                self._on_speakers_changed(list(self.speakers.speakers))

        return self.document, self.track


def _commit(line: CaptionLine, staged: CaptionLine) -> None:
    line.speakers = staged.speakers
    line.start = staged.start
    line.end = staged.end
    line.continuation = staged.continuation
    line.presentation = staged.presentation


def line_form_values(line: CaptionLine) -> Dict[str, Any]:
    """Current field values of a line, in settings-form shape."""
    return {
        "speaker": line.speaker,
        "start": format_form_seconds(line.start),
        "end": format_form_seconds(line.end),
        "position": line.presentation.position,
        "line": line.presentation.line,
        "size": line.presentation.size,
        "alignment": line.presentation.alignment,
        "continuation": line.continuation,
    }


async def start_session(
    video_url: str,
    source: Any,
    source_format: str = "auto",
    language: str = DEFAULT_LANGUAGE,
    on_speakers_changed: Optional[Callable[[List[str]], None]] = None,
) -> EditingSession:
    """Create a session for a video URL and load its first source.

    Raises:
        FormatError: Unsupported video URL or unreadable source.
        SchemaError: The canonical document failed validation.
    """
    video_reference = resolve_video_url(video_url)
    session = EditingSession(
        video_reference,
        language=language,
        on_speakers_changed=on_speakers_changed,
    )
    await session.load(source, source_format=source_format, video_reference=video_reference)
    return session
