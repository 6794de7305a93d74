"""FastAPI application exposing transcript views over HTTP.

WHY: Chat front-ends that are not written in Python (web clients, bots)
still want the wrap layout engine. The HTTP API lets them create a view,
stream messages into it, nudge the indent, refill ranges and fetch the
rendered result, with automatic OpenAPI documentation.

HOW: A single FastAPI app keeps a ViewStore of TranscriptViews. Message
bodies are validated by pydantic, converted with the JSON loader, and
inserted one at a time (each insert lays out that message). Refills run
through the async rejigger so the event loop keeps serving other
requests between messages.

RULES:
- Error responses use the ErrorResponse schema
- 404: unknown view or message seq
- 409: nudge/refill while wrap layout is inactive
- 400: invalid configuration or message data
- 429: too many views
- The view store is a module-level singleton, cleaned every 5 minutes
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import Response

from chatwrap import __version__
from chatwrap.config import DEFAULT_WINDOW_WIDTH, LayoutConfig
from chatwrap.core.errors import StructuralError, WrapInactiveError
from chatwrap.core.ir import LayoutRecord
from chatwrap.core.view import TranscriptView
from chatwrap.loader import message_from_dict
from chatwrap.render import STYLE_WRAP, render_transcript
from chatwrap.server.models import (
    ErrorResponse,
    HealthResponse,
    LayoutOut,
    MessageIn,
    MessageOut,
    ModeRequest,
    NudgeRequest,
    NudgeResponse,
    RefillRequest,
    RefillResponse,
    RenderResponse,
    ViewConfig,
    ViewCreatedResponse,
    ViewResponse,
)
from chatwrap.server.views import ViewEntry, ViewStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

view_store = ViewStore()


async def _periodic_cleanup() -> None:
    """Drop idle views every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        view_store.cleanup_expired()


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
    title="chatwrap API",
    description=(
        "Hanging-indent layout for chat transcripts. Create a view, insert "
        "messages, nudge the indent, refill ranges and fetch the rendered text."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "View or message not found"}}
_INACTIVE = {409: {"model": ErrorResponse, "description": "Wrap layout is not active"}}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_entry(view_id: str) -> ViewEntry:
    entry = view_store.get_view(view_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="View not found: {}".format(view_id))
    return entry


def _layout_out(view: TranscriptView, seq: int, record: LayoutRecord) -> LayoutOut:
    indent = view.state.indent_width
    return LayoutOut(
        seq=seq,
        overhang=record.overhang,
        line_start_indent=record.line_prefix.resolve(indent),
        continuation_indent=record.wrap_prefix.resolve(indent),
        merged=record.merged,
        indicator=record.indicator,
        covered=record.covered,
    )


def _refill_out(report) -> RefillResponse:
    return RefillResponse(
        processed=report.processed,
        skipped=report.skipped,
        skipped_seqs=report.skipped_seqs,
    )


# ---------------------------------------------------------------------------
# Endpoints: Views
# ---------------------------------------------------------------------------


@app.post(
    "/views",
    response_model=ViewCreatedResponse,
    status_code=201,
    tags=["views"],
    summary="Create a transcript view",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid configuration"},
        429: {"model": ErrorResponse, "description": "Too many views"},
    },
)
async def create_view(config: Optional[ViewConfig] = Body(default=None)) -> ViewCreatedResponse:
    overrides = config.model_dump(mode="json", exclude_none=True) if config else {}
    try:
        layout_config = LayoutConfig.from_env(**overrides)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        entry = view_store.create_view(layout_config)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    return ViewCreatedResponse(id=entry.id, indent_width=entry.view.state.indent_width)


@app.get(
    "/views/{view_id}",
    response_model=ViewResponse,
    tags=["views"],
    summary="Get view status",
    responses=_NOT_FOUND,
)
async def get_view(view_id: str) -> ViewResponse:
    entry = _get_entry(view_id)
    view = entry.view
    return ViewResponse(
        id=view.id,
        active=view.active,
        messages=len(view.transcript),
        indent_width=view.state.indent_width,
        margin_width=view.state.margin_width,
        created_at=entry.created_at,
    )


@app.delete(
    "/views/{view_id}",
    status_code=204,
    tags=["views"],
    summary="Delete a view",
    responses=_NOT_FOUND,
)
async def delete_view(view_id: str) -> Response:
    if not view_store.delete_view(view_id):
        raise HTTPException(status_code=404, detail="View not found: {}".format(view_id))
    return Response(status_code=204)


@app.post(
    "/views/{view_id}/mode",
    response_model=ViewResponse,
    tags=["views"],
    summary="Turn wrap layout on or off",
    responses=_NOT_FOUND,
)
async def set_mode(view_id: str, body: ModeRequest) -> ViewResponse:
    view = _get_entry(view_id).view
    if body.active:
        view.enable(refill=body.refill)
    else:
        view.disable()
    return await get_view(view_id)


# ---------------------------------------------------------------------------
# Endpoints: Messages
# ---------------------------------------------------------------------------


@app.post(
    "/views/{view_id}/messages",
    response_model=MessageOut,
    status_code=201,
    tags=["messages"],
    summary="Insert a message and lay it out",
    responses={**_NOT_FOUND, 400: {"model": ErrorResponse, "description": "Invalid message"}},
)
async def insert_message(view_id: str, body: MessageIn) -> MessageOut:
    view = _get_entry(view_id).view
    try:
        message = message_from_dict(body.model_dump(mode="json", exclude_none=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    view.insert(message)
    record = view.record(message.seq)
    return MessageOut(
        seq=message.seq,
        layout=_layout_out(view, message.seq, record) if record is not None else None,
    )


@app.get(
    "/views/{view_id}/messages/{seq}/layout",
    response_model=LayoutOut,
    tags=["messages"],
    summary="Get the resolved layout of one message",
    responses=_NOT_FOUND,
)
async def get_layout(view_id: str, seq: int) -> LayoutOut:
    view = _get_entry(view_id).view
    record = view.record(seq)
    if record is None:
        raise HTTPException(status_code=404, detail="No layout for message {}".format(seq))
    return _layout_out(view, seq, record)


async def _set_visibility(view_id: str, seq: int, hidden: bool) -> RefillResponse:
    view = _get_entry(view_id).view
    try:
        if hidden:
            view.hide(seq, refill=False)
        else:
            view.reveal(seq, refill=False)
    except StructuralError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    if not view.active:
        return RefillResponse(processed=0, skipped=0)
    return _refill_out(await view.arefill_range(seq, None, repair=True))


@app.post(
    "/views/{view_id}/messages/{seq}/hide",
    response_model=RefillResponse,
    tags=["messages"],
    summary="Hide a message and repair the layout after it",
    responses=_NOT_FOUND,
)
async def hide_message(view_id: str, seq: int) -> RefillResponse:
    return await _set_visibility(view_id, seq, True)


@app.post(
    "/views/{view_id}/messages/{seq}/reveal",
    response_model=RefillResponse,
    tags=["messages"],
    summary="Reveal a hidden message and repair the layout after it",
    responses=_NOT_FOUND,
)
async def reveal_message(view_id: str, seq: int) -> RefillResponse:
    return await _set_visibility(view_id, seq, False)


# ---------------------------------------------------------------------------
# Endpoints: Layout operations
# ---------------------------------------------------------------------------


@app.post(
    "/views/{view_id}/nudge",
    response_model=NudgeResponse,
    tags=["layout"],
    summary="Nudge the indent width",
    responses={**_NOT_FOUND, **_INACTIVE, 400: {"model": ErrorResponse, "description": "Invalid nudge"}},
)
async def nudge(view_id: str, body: NudgeRequest) -> NudgeResponse:
    view = _get_entry(view_id).view
    try:
        result = view.nudge(body.delta)
    except WrapInactiveError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return NudgeResponse(
        delta=result.delta,
        indent_width=result.indent_width,
        margin_width=result.margin_width,
    )


@app.post(
    "/views/{view_id}/refill",
    response_model=RefillResponse,
    tags=["layout"],
    summary="Rejigger a range of messages",
    responses={**_NOT_FOUND, **_INACTIVE},
)
async def refill(view_id: str, body: RefillRequest) -> RefillResponse:
    view = _get_entry(view_id).view
    try:
        report = await view.arefill_range(body.start_seq, body.end_seq, body.repair)
    except WrapInactiveError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except StructuralError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return _refill_out(report)


@app.get(
    "/views/{view_id}/render",
    response_model=RenderResponse,
    tags=["layout"],
    summary="Render the transcript as plain text",
    responses={**_NOT_FOUND, 400: {"model": ErrorResponse, "description": "Invalid style or width"}},
)
async def render(
    view_id: str,
    width: int = Query(default=DEFAULT_WINDOW_WIDTH, description="Window width in columns."),
    style: str = Query(default=STYLE_WRAP, description="Render style: wrap or variable."),
) -> RenderResponse:
    view = _get_entry(view_id).view
    try:
        text = render_transcript(view, width=width, style=style)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return RenderResponse(width=width, text=text)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the chatwrap-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
