"""Subtitle Editor: transcript model and caption format codec.

WHY: Captioning an embedded video means keeping one list of timed,
speaker-attributed caption lines consistent across several representations:
the lines being edited, a canonical JSON document for interchange, a WebVTT
track for players, and the caption sources people start from (auto-generated
transcript XML, time-coded text blocks, plain text).

HOW: Three layers: import (importers/), model and session (core/), and
export (formatters/). The CLI and the FastAPI app are thin adapters over an
EditingSession.

RULES:
- Every importer produces a Transcript; every formatter consumes one
- The canonical document is the interchange format and round-trips exactly
- Session state is per video and never persisted
"""

__version__ = "0.1.0"
