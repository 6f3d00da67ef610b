"""Transcript aggregate and video reference resolution.

WHY: The transcript is the one object every importer produces and every
formatter consumes. It owns line order (which is playback order) and the
line_id -> CaptionLine mapping the editing surface addresses lines by.

HOW: Transcript keeps a plain list of CaptionLine objects plus an index dict
keyed by line_id. VideoReference is a small frozen dataclass; the
resolve_video_url() function turns a user-supplied URL into one.

RULES:
- Line order is significant and preserved through every transform
- line_id values are unique within a transcript
- Removing a line is explicit (remove_line); nothing is garbage-triggered
- speakers() is derived on demand, never stored
- Only YouTube (short or watch links) and Twitch clip links are supported
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

from subtitle_editor.config import DEFAULT_LANGUAGE
from subtitle_editor.core.line import CaptionLine, normalize_content
from subtitle_editor.errors import FormatError, PreconditionError

_YOUTUBE_RE = re.compile(
    r"^(?:https?://(?:www\.)?)?(?:youtu\.be/|youtube\.com/watch\?v=)(?P<id>[A-Za-z0-9_-]{11})"
)
_TWITCH_CLIP_RE = re.compile(
    r"^(?:https?://)?clips\.twitch\.tv/(?P<slug>[A-Za-z0-9_-]+)"
)

_CANONICAL_URLS = {
    "youtube": "https://youtu.be/{}",
    "twitch": "https://clips.twitch.tv/{}",
}


@dataclass(frozen=True)
class VideoReference:
    """The video a transcript belongs to.

    Attributes:
        platform: "youtube" or "twitch".
        id: 11-character YouTube video id, or Twitch clip slug.
    """

    platform: str
    id: str

    @property
    def url(self) -> str:
        return _CANONICAL_URLS[self.platform].format(self.id)

    def __str__(self) -> str:
        return self.url


def resolve_video_url(url: str) -> VideoReference:
    """Resolve a user-supplied video URL to a VideoReference.

    WHY: The editor only embeds videos it knows how to caption. Rejecting
    other URLs up front avoids building a transcript for nothing.

    HOW: Match against the YouTube short/watch link pattern first, then the
    Twitch clip pattern.

    Raises:
        FormatError: If the URL matches neither pattern.
    """
    candidate = (url or "").strip()
    match = _YOUTUBE_RE.match(candidate)
    if match:
        return VideoReference(platform="youtube", id=match.group("id"))
    match = _TWITCH_CLIP_RE.match(candidate)
    if match:
        return VideoReference(platform="twitch", id=match.group("slug"))
    raise FormatError("Unsupported video URL: {!r}".format(url))


@dataclass
class Transcript:
    """An ordered collection of caption lines for one video.

    Attributes:
        video_reference: The captioned video.
        language: Language tag of the captions.
        lines: Caption lines in playback order. Use the methods below to
               change membership so the id index stays in sync.
        translation: Opaque placeholder carried through import/export.
    """

    video_reference: VideoReference
    language: str = DEFAULT_LANGUAGE
    lines: List[CaptionLine] = field(default_factory=list)
    translation: Optional[List[Any]] = None
    _index: Dict[str, CaptionLine] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for line in self.lines:
            if line.line_id in self._index:
                raise ValueError("Duplicate line id: {}".format(line.line_id))
            self._index[line.line_id] = line

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[CaptionLine]:
        return iter(self.lines)

    def add_line(
        self,
        content: Any = "",
        line_id: Optional[str] = None,
        index: Optional[int] = None,
    ) -> CaptionLine:
        """Create a line and insert it (appended unless index is given)."""
        if line_id is not None and line_id in self._index:
            raise ValueError("Duplicate line id: {}".format(line_id))
        line = CaptionLine(content=normalize_content(content))
        if line_id is not None:
            line.line_id = line_id
        if index is None:
            self.lines.append(line)
        else:
            self.lines.insert(index, line)
        self._index[line.line_id] = line
        return line

    def remove_line(self, line_id: str) -> CaptionLine:
        line = self.get_line(line_id)
        self.lines.remove(line)
        del self._index[line_id]
        return line

    def line_at(self, index: int) -> CaptionLine:
        return self.lines[index]

    def get_line(self, line_id: str) -> CaptionLine:
        """Look up a line by id.

        Raises:
            PreconditionError: If no line has this id.
        """
        line = self._index.get(line_id)
        if line is None:
            raise PreconditionError("No caption line with id {!r}".format(line_id))
        return line

    def has_line(self, line_id: str) -> bool:
        return line_id in self._index

    def line_ids(self) -> List[str]:
        return [line.line_id for line in self.lines]

    def reorder(self, line_ids: Sequence[str]) -> None:
        """Put lines into the given id order; the ids must be a permutation."""
        if sorted(line_ids) != sorted(self._index):
            raise PreconditionError("Reorder ids do not match the transcript's lines")
        self.lines = [self._index[line_id] for line_id in line_ids]

    def speakers(self) -> List[str]:
        """Sorted set of every speaker named on any line."""
        names = set()
        for line in self.lines:
            names.update(line.speakers)
        return sorted(names)
