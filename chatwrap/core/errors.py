"""Exception types raised by the layout core.

WHY: Callers react differently to a rejected user action, a corrupt
document region, and a plain bad argument. Distinct exception classes let
the CLI and HTTP layers map each to the right message or status code.

RULES:
- WrapInactiveError: user-facing precondition failure, never retried
- StructuralError: a message boundary or extent cannot be located;
  rejigger logs it and skips the message
- Measurement failures are never raised (they collapse to width 0)
"""


class ChatWrapError(Exception):
    """Base class for all chatwrap errors."""


class WrapInactiveError(ChatWrapError):
    """Nudge or refill was requested while wrapping is off for the view."""


class StructuralError(ChatWrapError):
    """A message span is inconsistent with its stored layout metadata."""
