"""chatwrap: hanging-indent layout for growing chat transcripts.

WHY: Chat clients that wrap long messages under the sender label make
multi-line messages hard to scan. chatwrap gives every message a hanging
indent so bodies align at one shared column, merges repeated sender
labels, and keeps that layout correct while the transcript grows,
messages are hidden or revealed, and the indent is resized.

HOW: Three layers: the layout core (chatwrap.core), a plain-text
renderer (chatwrap.render), and host surfaces (CLI and HTTP API).

RULES:
- Layout state (indent width, continuity, records) lives in a TranscriptView
- Indents are stored relative to the view's indent width
"""

__version__ = "0.1.0"
