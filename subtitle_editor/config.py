"""Configuration constants and .env loading.

WHY: Centralizes every configurable value (default language, schema location,
session limits, server binding) so it is easy to find and override. Plain
module-level constants keep the rest of the package free of os.getenv calls.

HOW: python-dotenv loads the .env file on import. Each constant reads an
environment variable with a sensible default.

RULES:
- DEFAULT_LANGUAGE is the language tag given to a transcript when the
  import source does not carry one
- SCHEMA_PATH points at the packaged canonical document schema unless
  SUBTITLE_EDITOR_SCHEMA_PATH overrides it
- ALIGNMENTS is the closed set of cue alignment values
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Transcript defaults
# ---------------------------------------------------------------------------

DEFAULT_LANGUAGE = os.getenv("SUBTITLE_EDITOR_DEFAULT_LANGUAGE", "en")

ALIGNMENTS: tuple[str, ...] = ("start", "middle", "end")
"""Cue alignment values accepted by the line model and the schema."""

TRACK_HEADER = "WEBVTT"
"""First line of every emitted subtitle track."""

# ---------------------------------------------------------------------------
# Canonical document schema
# ---------------------------------------------------------------------------

_PACKAGED_SCHEMA_PATH = Path(__file__).resolve().parent / "schema.json"

SCHEMA_PATH = Path(os.getenv("SUBTITLE_EDITOR_SCHEMA_PATH", str(_PACKAGED_SCHEMA_PATH)))

# ---------------------------------------------------------------------------
# Import sources
# ---------------------------------------------------------------------------

SUPPORTED_SOURCE_FORMATS: tuple[str, ...] = (
    "canonical",
    "auto_transcript",
    "timecoded",
    "plain_text",
)
"""Import format keys, in auto-detection priority order."""

FETCH_TIMEOUT_S = float(os.getenv("SUBTITLE_EDITOR_FETCH_TIMEOUT", "30"))

# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------

SESSION_TTL_S = int(os.getenv("SUBTITLE_EDITOR_SESSION_TTL", "3600"))
MAX_SESSIONS = int(os.getenv("SUBTITLE_EDITOR_MAX_SESSIONS", "100"))
SERVER_HOST = os.getenv("SUBTITLE_EDITOR_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("SUBTITLE_EDITOR_PORT", "8000"))

LOG_LEVEL = os.getenv("SUBTITLE_EDITOR_LOG_LEVEL", "INFO").upper()
