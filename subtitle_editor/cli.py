"""Command-line interface for the Subtitle Editor converter.

WHY: Outside the browser editor, people need to turn an existing caption
source (auto-transcript XML, time-coded blocks, plain text, or an exported
canonical document) into the canonical document and a WebVTT track, e.g. in
a batch script. The CLI wires importer → Transcript → formatters → files.

HOW: argparse accepts a source (file path or http(s) URL), the video URL,
the source format, and the export formats. The async import runs via
asyncio.run(). Status messages go to stderr; output files are saved to
--output-dir (default: current directory) as {stem}{suffix}.

RULES:
- Positional argument: source file path or http(s) URL
- --video-url is required for every source except a canonical document,
  which carries its own "about" URL
- --format: auto (default) or one of the importer keys
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix on conflict
  (-transcript-2.json); stem defaults to the video id
- Any core error prints "Error: ..." to stderr and exits with status 1
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from subtitle_editor.config import DEFAULT_LANGUAGE, LOG_LEVEL, SUPPORTED_SOURCE_FORMATS
from subtitle_editor.core.transcript import Transcript, resolve_video_url
from subtitle_editor.errors import SchemaError, SubtitleEditorError
from subtitle_editor.formatters import FORMATTERS
from subtitle_editor.formatters.base import FormatterOutput
from subtitle_editor.importers import detect_format, import_source
from subtitle_editor.importers.remote import fetch_source, is_remote


def _status(msg: str) -> None:
    """Print a status message to stderr, so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. dQw4w9WgXcQ-transcript.json)
    - Conflict: insert a counter before the extension, starting at 2
      (e.g. dQw4w9WgXcQ-transcript-2.json)
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx >= 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _parse_format_keys(formats: Optional[str]) -> List[str]:
    """Split --formats and check every key is registered.

    Raises:
        ValueError: On an unknown key.
    """
    if not formats:
        return list(FORMATTERS.keys())
    keys = [f.strip() for f in formats.split(",") if f.strip()]
    for key in keys:
        if key not in FORMATTERS:
            raise ValueError("Unknown format '{}'. Available formats: {}".format(
                key, ", ".join(sorted(FORMATTERS.keys()))
            ))
    return keys


async def _read_source(source: str) -> str:
    if is_remote(source):
        _status("Fetching {}...".format(source))
        return await fetch_source(source)
    path = Path(source)
    if not path.is_file():
        raise FileNotFoundError("File not found: {}".format(path))
    return path.read_text(encoding="utf-8")


async def _load_transcript(args: argparse.Namespace) -> Transcript:
    text = await _read_source(args.source)

    source_format = args.format
    if source_format == "auto":
        source_format = detect_format(text)
        _status("Detected source format: {}".format(source_format))

    video_reference = resolve_video_url(args.video_url) if args.video_url else None
    return await import_source(
        text,
        source_format=source_format,
        video_reference=video_reference,
        language=args.language,
    )


def run(args: argparse.Namespace) -> List[Path]:
    """Import the source and write every selected export format.

    Returns:
        Paths of the files written.

    Raises:
        SubtitleEditorError, OSError, ValueError: Reported by main().
    """
    format_keys = _parse_format_keys(args.formats)

    output_dir = Path(args.output_dir).resolve() if args.output_dir else Path.cwd()
    if not output_dir.is_dir():
        raise FileNotFoundError("Output directory does not exist: {}".format(output_dir))

    transcript = asyncio.run(_load_transcript(args))
    _status("  {} line(s), {} speaker(s), language: {}".format(
        len(transcript),
        len(transcript.speakers()),
        transcript.language,
    ))

    stem = args.stem or transcript.video_reference.id
    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(transcript):
            saved_path = _save_output(output, stem, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    return saved_files


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser (separate from main() so tests can use it)."""
    parser = argparse.ArgumentParser(
        prog="subtitle_editor",
        description="Convert a caption source into a canonical transcript "
                    "document and a WebVTT subtitle track.",
    )

    parser.add_argument(
        "source",
        help="Path or http(s) URL of the caption source.",
    )

    parser.add_argument(
        "--video-url",
        default=None,
        help="YouTube or Twitch clip URL the captions belong to. "
             "Optional for canonical documents.",
    )

    parser.add_argument(
        "--format",
        default="auto",
        choices=("auto",) + SUPPORTED_SOURCE_FORMATS,
        help="Source format (default: %(default)s).",
    )

    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE,
        help="Language tag for sources that carry none (default: %(default)s).",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of export formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: current directory).",
    )

    parser.add_argument(
        "--stem",
        default=None,
        help="Output file name stem (default: the video id).",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m subtitle_editor`` and ``subtitle-editor``."""
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        run(args)
    except SchemaError as e:
        print("Error: {}".format(e), file=sys.stderr)
        for violation in e.violations:
            print("  {}".format(violation), file=sys.stderr)
        sys.exit(1)
    except (SubtitleEditorError, OSError, ValueError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
