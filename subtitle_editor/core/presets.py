"""Per-speaker presentation presets for the editing session.

WHY: Captions for the same speaker usually sit in the same place on screen.
Remembering the last committed position/line/size/alignment per speaker lets
the editing form prefill those hints instead of making the user retype them.

HOW: A dict of speaker name -> dict of stored hint values. record() writes
committed values, backfill() reads them into blank form fields, seed_from()
replays an imported transcript so presets exist from the first selection.

RULES:
- Only non-blank values are ever stored; blank fields keep the old preset
- backfill never overwrites a value that was explicitly provided
- A comma-separated speaker field names several speakers; record() stores
  for each, backfill() consults them in order (first stored value wins)
- seed_from: each hinted line replaces the speaker's preset, so the last
  line mentioning a speaker wins
- The store is owned by one EditingSession and discarded with it
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from subtitle_editor.core.line import PRESENTATION_FIELDS, is_blank, parse_speakers
from subtitle_editor.core.transcript import Transcript


class SpeakerPresetStore:
    """Remembers the last-used presentation hints for each speaker name."""

    def __init__(self) -> None:
        self._presets: Dict[str, Dict[str, Any]] = {}

    def __contains__(self, speaker: str) -> bool:
        return speaker in self._presets

    def __len__(self) -> int:
        return len(self._presets)

    def get(self, speaker: str) -> Dict[str, Any]:
        """A copy of the stored hints for one speaker (empty if none)."""
        return dict(self._presets.get(speaker, {}))

    def clear(self) -> None:
        self._presets.clear()

    def record(self, speaker: Any, settings: Mapping[str, Any]) -> None:
        """Store the non-blank hint values in settings for each named speaker."""
        values = {
            name: settings[name]
            for name in PRESENTATION_FIELDS
            if name in settings and not is_blank(settings[name])
        }
        if not values:
            return
        for name in parse_speakers(speaker):
            self._presets.setdefault(name, {}).update(values)

    def backfill(self, speaker: Any, partial_settings: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a copy of partial_settings with blank hints filled from presets.

        Args:
            speaker: Speaker name or comma-separated list of names.
            partial_settings: Form values; keys not in PRESENTATION_FIELDS
                are passed through untouched.

        Returns:
            A new dict. Hints that were provided are never overwritten.
        """
        filled = dict(partial_settings)
        names = parse_speakers(speaker)
        for field_name in PRESENTATION_FIELDS:
            if not is_blank(filled.get(field_name)):
                continue
            value = self._lookup(names, field_name)
            if value is not None:
                filled[field_name] = value
        return filled

    def _lookup(self, names, field_name: str) -> Optional[Any]:
        for name in names:
            value = self._presets.get(name, {}).get(field_name)
            if value is not None:
                return value
        return None

    def seed_from(self, transcript: Transcript) -> None:
        """Replay the presentation hints of an imported transcript, in order.

        Each hinted line replaces the preset of every speaker it names, so the
        preset left behind comes from the last line mentioning that speaker.
        """
        for line in transcript.lines:
            if not line.speakers or line.presentation.is_empty():
                continue
            hints = line.presentation.as_dict()
            for name in line.speakers:
                self._presets[name] = dict(hints)

    def grouped_view(self) -> Dict[str, Dict[str, Any]]:
        """Stored hints per speaker, sorted by name; empty speakers omitted."""
        return {
            name: dict(values)
            for name, values in sorted(self._presets.items())
            if values
        }
