"""Transcript model, speaker presets, schema validation and editing session.

WHY: The core package holds the data model every importer and formatter
shares, plus the session object the editing surface drives.

HOW: line.py defines the caption line and its field parsers, transcript.py
the ordered aggregate and video references, presets.py the per-speaker
hint memory, schema.py the canonical document validator, session.py the
editing session.

RULES:
- Line fields change only through CaptionLine setters
- Nothing here touches presentation elements; inputs are plain values
- session.py is not imported here, since it depends on the formatters and
  importers which themselves depend on this package
"""
