"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and OpenAPI documentation. Pydantic enforces
field types at runtime and the Field descriptions show up in /docs.

HOW: Each endpoint has its own request and/or response model. Enums
mirror the closed option sets of LayoutConfig and MessageKind.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Enum values match the constants in chatwrap.config / MessageKind
- ViewConfig fields left as None fall back to environment defaults
- Response models never expose internal objects directly
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class IndicatorMode(str, Enum):
    none = "none"
    pre = "pre"
    post = "post"


class MeasurementUnit(str, Enum):
    pixel = "pixel"
    column = "column"


class Kind(str, Enum):
    normal = "normal"
    action = "action"
    notice = "notice"
    datestamp = "datestamp"
    unknown = "unknown"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ViewConfig(BaseModel):
    """Layout options for a new transcript view."""

    indent_column: Optional[int] = Field(
        default=None, ge=0, description="Indent baseline column (default 27).",
    )
    max_variable_indent: Optional[int] = Field(
        default=None, ge=0, description="Indent cap for the variable render style.",
    )
    merge: Optional[bool] = Field(default=None, description="Merge repeated sender labels.")
    max_lull: Optional[float] = Field(
        default=None, gt=0, description="Seconds between messages still eligible for merging.",
    )
    merge_indicator: Optional[IndicatorMode] = Field(
        default=None, description="Merge indicator mode: none, pre or post.",
    )
    unit: Optional[MeasurementUnit] = Field(
        default=None, description="Measurement unit: pixel or column.",
    )
    stamps_enabled: Optional[bool] = Field(
        default=None, description="Timestamp feature; switched on automatically if off.",
    )
    margin_left: Optional[bool] = Field(
        default=None, description="Timestamps live in a left margin that follows nudges.",
    )


class RunIn(BaseModel):
    text: str = Field(description="Run text.")
    style: Optional[str] = Field(default=None, description="Style/face name.")
    invisible: bool = Field(default=False, description="Hidden text, never measured.")


class MessageIn(BaseModel):
    """A message with its upstream metadata."""

    sender: Optional[str] = Field(default=None, description="Sender identity.")
    text: Optional[str] = Field(default=None, description="Plain message text, label first.")
    runs: Optional[List[RunIn]] = Field(default=None, description="Styled runs instead of text.")
    timestamp: Optional[float] = Field(default=None, description="Monotonic seconds; defaults to now.")
    kind: Kind = Field(default=Kind.normal, description="Message kind.")
    hidden: bool = Field(default=False, description="Filtered (hidden) message.")
    ephemeral: bool = Field(default=False, description="System-injected message.")
    label_end: Optional[int] = Field(default=None, ge=0, description="Explicit label end offset.")
    stamp_field: bool = Field(default=False, description="Last line ends in a timestamp field.")


class NudgeRequest(BaseModel):
    delta: int = Field(description="Columns to add to the indent; 0 resets to the default.")


class ModeRequest(BaseModel):
    active: bool = Field(description="Turn wrap layout on or off for the view.")
    refill: bool = Field(default=True, description="Repair-refill the transcript when turning on.")


class RefillRequest(BaseModel):
    start_seq: Optional[int] = Field(default=None, description="First message seq (default: first).")
    end_seq: Optional[int] = Field(default=None, description="Last message seq (default: last).")
    repair: bool = Field(default=False, description="Also repair stale merges and extent gaps.")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LayoutOut(BaseModel):
    """Layout of one message resolved against the current indent width."""

    seq: int = Field(description="Message sequence id.")
    overhang: Optional[float] = Field(description="Frozen label/indicator width, or null.")
    line_start_indent: float = Field(description="First-line indent in columns.")
    continuation_indent: float = Field(description="Wrapped-line indent in columns.")
    merged: bool = Field(description="Message continues the previous speaker.")
    indicator: Optional[str] = Field(default=None, description="Merge indicator glyph used.")
    covered: int = Field(description="Number of body characters the prefixes cover.")


class MessageOut(BaseModel):
    seq: int = Field(description="Assigned sequence id.")
    layout: Optional[LayoutOut] = Field(default=None, description="Layout, if it succeeded.")


class ViewCreatedResponse(BaseModel):
    id: str = Field(description="View identifier for subsequent requests.")
    indent_width: float = Field(description="Initial indent width.")


class ViewResponse(BaseModel):
    id: str = Field(description="View identifier.")
    active: bool = Field(description="Whether wrap layout is active.")
    messages: int = Field(description="Number of messages in the transcript.")
    indent_width: float = Field(description="Current indent width.")
    margin_width: float = Field(description="Current margin width.")
    created_at: float = Field(description="Creation time (Unix epoch seconds).")


class NudgeResponse(BaseModel):
    delta: float = Field(description="Change applied to the indent width.")
    indent_width: float = Field(description="Resulting indent width.")
    margin_width: float = Field(description="Resulting margin width.")


class RefillResponse(BaseModel):
    processed: int = Field(description="Messages re-laid out.")
    skipped: int = Field(description="Messages skipped due to structural errors.")
    skipped_seqs: List[int] = Field(default_factory=list, description="Seq ids of skipped messages.")


class RenderResponse(BaseModel):
    width: int = Field(description="Window width used.")
    text: str = Field(description="Rendered transcript.")


class ErrorResponse(BaseModel):
    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
