"""Wrap-layout core: transcript model, measurement, merging and relayout.

WHY: The core package holds the incremental layout engine that every
host surface (CLI, HTTP API, embedding applications) drives. It has no
I/O and no process-wide state; everything hangs off a TranscriptView.

HOW: ir.py defines the document model, measure.py measures spans,
continuity.py and indicator.py handle speaker merging, layout.py lays out
one message, state.py holds the shared indent width, rejigger.py relays
ranges, and view.py ties them together for a single transcript.

RULES:
- LayoutRecord prefixes are relative to the live indent width
- Only view.py talks to more than one component at a time
"""

from chatwrap.core.errors import ChatWrapError, StructuralError, WrapInactiveError
from chatwrap.core.ir import LayoutRecord, Message, MessageKind, Run, Transcript
from chatwrap.core.rejigger import RejiggerReport, RejiggerStep
from chatwrap.core.state import NudgeResult
from chatwrap.core.view import TranscriptView

__all__ = [
    "ChatWrapError",
    "LayoutRecord",
    "Message",
    "MessageKind",
    "NudgeResult",
    "RejiggerReport",
    "RejiggerStep",
    "Run",
    "StructuralError",
    "Transcript",
    "TranscriptView",
    "WrapInactiveError",
]
