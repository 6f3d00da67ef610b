"""FastAPI application exposing editing sessions over HTTP.

WHY: The browser editing surface runs in another process from the core. It
needs an HTTP transport for the adapter calls (sync lines, select a line,
apply settings) and for downloading the canonical document and the WebVTT
track. FastAPI gives request validation and OpenAPI docs for free.

HOW: One EditingSession per created session, kept in a SessionStore. Every
mutating endpoint returns the full SessionResponse (line ids, speakers,
document, track) so the surface can re-render the preview from one reply.
Core errors are mapped to HTTP status codes by exception handlers.

RULES:
- ValidationError → 422 (with the rejected field)
- SchemaError → 422 (with the violation list)
- FormatError → 400
- PreconditionError and unknown session ids → 404
- Store full → 429
- Every call into a stored EditingSession holds that record's lock; an
  import runs outside the lock and only the swap happens under it
- The session store is a module singleton; expired sessions are dropped by
  a periodic task started in the app lifespan
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from subtitle_editor import __version__
from subtitle_editor.config import LOG_LEVEL, SERVER_HOST, SERVER_PORT
from subtitle_editor.core.session import EditingSession, start_session
from subtitle_editor.core.transcript import Transcript
from subtitle_editor.errors import FormatError, PreconditionError, SchemaError, ValidationError
from subtitle_editor.formatters import FORMATTERS
from subtitle_editor.formatters.canonical import CanonicalDocumentFormatter
from subtitle_editor.formatters.webvtt import WebVTTFormatter
from subtitle_editor.server.models import (
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    ImportRequest,
    LineFormResponse,
    PresetsResponse,
    SessionCreateRequest,
    SessionResponse,
    SettingsRequest,
    SyncLinesRequest,
    ViolationModel,
    content_payload,
)
from subtitle_editor.server.sessions import SessionRecord, SessionStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = SessionStore()

CLEANUP_INTERVAL_S = 300


async def _periodic_cleanup() -> None:
    """Drop expired sessions every 5 minutes."""
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_S)
        session_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Subtitle Editor API",
    description=(
        "Editing-session API for video transcripts. Import captions for a "
        "YouTube or Twitch clip, edit line order, timing, speakers and cue "
        "placement, and download the canonical transcript document and the "
        "WebVTT subtitle track."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def _error(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(ValidationError)
async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(422, ErrorResponse(detail=str(exc), field=exc.field))


@app.exception_handler(SchemaError)
async def _schema_error_handler(request: Request, exc: SchemaError) -> JSONResponse:
    violations = [ViolationModel(path=v.path, message=v.message) for v in exc.violations]
    return _error(422, ErrorResponse(detail=str(exc), violations=violations))


@app.exception_handler(FormatError)
async def _format_error_handler(request: Request, exc: FormatError) -> JSONResponse:
    return _error(400, ErrorResponse(detail=str(exc)))


@app.exception_handler(PreconditionError)
async def _precondition_error_handler(request: Request, exc: PreconditionError) -> JSONResponse:
    return _error(404, ErrorResponse(detail=str(exc)))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_record(session_id: str) -> SessionRecord:
    record = session_store.get(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return record


def _session_to_response(record: SessionRecord) -> SessionResponse:
    session = record.session
    return SessionResponse(
        id=record.id,
        video_url=session.video_reference.url,
        language=session.transcript.language,
        line_ids=session.transcript.line_ids(),
        speakers=session.transcript.speakers(),
        document=session.document,
        track=session.track,
    )


def _on_speakers_changed(names: List[str]) -> None:
    logger.debug("Speakers now: %s", ", ".join(names) or "(none)")


# ---------------------------------------------------------------------------
# Endpoints: Sessions
# ---------------------------------------------------------------------------


@app.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    tags=["sessions"],
    summary="Start an editing session",
    description=(
        "Resolve the video URL and import the initial caption source. "
        "An empty source starts an empty transcript."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported video URL or malformed source"},
        422: {"model": ErrorResponse, "description": "Canonical document failed validation"},
        429: {"model": ErrorResponse, "description": "Too many open sessions"},
    },
)
async def create_session(body: SessionCreateRequest) -> SessionResponse:
    session = await start_session(
        body.video_url,
        body.source,
        source_format=body.source_format.value,
        language=body.language,
        on_speakers_changed=_on_speakers_changed,
    )
    try:
        record = session_store.add(session)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    return _session_to_response(record)


@app.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Get session state",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
def get_session(session_id: str) -> SessionResponse:
    record = _get_record(session_id)
    with record.lock:
        return _session_to_response(record)


@app.delete(
    "/sessions/{session_id}",
    status_code=204,
    tags=["sessions"],
    summary="Discard a session",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def delete_session(session_id: str) -> Response:
    if not session_store.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=204)


@app.post(
    "/sessions/{session_id}/import",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Replace the transcript with a new import",
    description=(
        "Import a source for the session's video. On failure the session "
        "keeps its previous transcript and presets."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Malformed source"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        422: {"model": ErrorResponse, "description": "Canonical document failed validation"},
    },
)
async def import_into_session(session_id: str, body: ImportRequest) -> SessionResponse:
    record = _get_record(session_id)
    transcript = await record.session.import_transcript(
        body.source, source_format=body.source_format.value
    )
    # Lock is taken off the event loop.
    return await asyncio.to_thread(_replace_transcript, record, transcript)


def _replace_transcript(record: SessionRecord, transcript: Transcript) -> SessionResponse:
    with record.lock:
        record.session.replace_transcript(transcript)
        return _session_to_response(record)


# ---------------------------------------------------------------------------
# Endpoints: Lines
# ---------------------------------------------------------------------------


@app.put(
    "/sessions/{session_id}/lines",
    response_model=SessionResponse,
    tags=["lines"],
    summary="Sync line order and contents",
    description=(
        "Send every line in display order. Lines without an id are created; "
        "lines missing from the list are removed."
    ),
    responses={404: {"model": ErrorResponse, "description": "Unknown session or line id"}},
)
def sync_lines(session_id: str, body: SyncLinesRequest) -> SessionResponse:
    record = _get_record(session_id)
    session: EditingSession = record.session
    with record.lock:
        session.sync_lines([(token.id, content_payload(token.content)) for token in body.lines])
        session.rebuild()
        return _session_to_response(record)


@app.get(
    "/sessions/{session_id}/lines/{line_id}",
    response_model=LineFormResponse,
    tags=["lines"],
    summary="Select a line",
    description="Form values for the line, with blank hints filled from speaker presets.",
    responses={404: {"model": ErrorResponse, "description": "Unknown session or line id"}},
)
def select_line(session_id: str, line_id: str) -> LineFormResponse:
    record = _get_record(session_id)
    with record.lock:
        form = record.session.on_line_selected(line_id)
    return LineFormResponse(line_id=line_id, **form)


@app.post(
    "/sessions/{session_id}/lines/{line_id}/settings",
    response_model=SessionResponse,
    tags=["lines"],
    summary="Apply a line's settings form",
    description=(
        "Fields left out keep their current value. Either every field is "
        "applied or, on a validation error, none is."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Unknown session or line id"},
        422: {"model": ErrorResponse, "description": "Invalid field value"},
    },
)
def apply_settings(session_id: str, line_id: str, body: SettingsRequest) -> SessionResponse:
    record = _get_record(session_id)
    with record.lock:
        record.session.apply_settings(line_id, body.model_dump(exclude_unset=True))
        return _session_to_response(record)


@app.get(
    "/sessions/{session_id}/presets",
    response_model=PresetsResponse,
    tags=["lines"],
    summary="List speaker presets",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
def get_presets(session_id: str) -> PresetsResponse:
    record = _get_record(session_id)
    with record.lock:
        return PresetsResponse(presets=record.session.presets.grouped_view())


# ---------------------------------------------------------------------------
# Endpoints: Downloads
# ---------------------------------------------------------------------------


@app.get(
    "/sessions/{session_id}/document",
    tags=["downloads"],
    summary="Download the canonical transcript document",
    description="The document is validated against the schema before it is returned.",
    responses={
        200: {"content": {"application/json": {}}, "description": "Canonical JSON document"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        422: {"model": ErrorResponse, "description": "Transcript does not form a valid document"},
    },
)
def download_document(session_id: str) -> Response:
    record = _get_record(session_id)
    session = record.session
    with record.lock:
        output = CanonicalDocumentFormatter().format(session.transcript)[0]
    filename = "{}{}".format(session.video_reference.id, output.suffix)
    return Response(
        content=output.content,
        media_type=output.media_type,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )


@app.get(
    "/sessions/{session_id}/track.vtt",
    tags=["downloads"],
    summary="Download the WebVTT subtitle track",
    responses={
        200: {"content": {"text/vtt": {}}, "description": "WebVTT track"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
def download_track(session_id: str) -> Response:
    record = _get_record(session_id)
    with record.lock:
        output = WebVTTFormatter().format(record.session.transcript)[0]
    return Response(content=output.content, media_type=output.media_type)


# ---------------------------------------------------------------------------
# Endpoints: Formats and health
# ---------------------------------------------------------------------------


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List export formats",
)
async def list_formats() -> List[FormatInfo]:
    result: List[FormatInfo] = []
    for key, formatter_cls in FORMATTERS.items():
        formatter = formatter_cls()
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            suffix=formatter.suffix,
            media_type=formatter.media_type,
        ))
    return result


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api() -> None:
    """Entry point for ``python -m subtitle_editor --serve``."""
    import uvicorn

    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)
