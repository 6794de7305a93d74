"""Speaker-continuity detection for merging consecutive messages.

WHY: Repeating the same sender label on every line of a burst of messages
wastes the hanging-indent column. When a message continues the previous
speaker's message, the layout engine blanks its label instead.

HOW: SpeakerContinuityDetector compares the new message against the
message recorded in the ContinuityTracker. All conditions must hold for a
merge; any missing metadata simply means "not a continuation".

RULES:
- Merging must be enabled and the new message must be a visible "normal"
  message (hidden messages never merge, so they leave no indicator)
- A prior eligible message must exist
- The prior must not be ephemeral and must be "normal" (never "action")
- current.timestamp - prior.timestamp < max_lull
- current.timestamp must not be earlier than prior.timestamp
- Senders compare equal after normalize_sender()
- The detector never moves the marker; the layout engine does
- A rejigger pass passes its own tracker so live inserts keep using the
  view's tracker, which always points at the transcript tail
"""

from __future__ import annotations

import unicodedata
from typing import Optional

from chatwrap.config import LayoutConfig
from chatwrap.core.ir import Message, MessageKind, Transcript
from chatwrap.core.state import ContinuityTracker

# RFC 1459 treats these as the lowercase forms of []\~
_RFC1459_FOLD = str.maketrans("[]\\~", "{}|^")


def normalize_sender(name: str, casemapping: str = "unicode") -> str:
    """Return the comparison key for a sender identity.

    Unicode mapping applies NFKC then casefold. The rfc1459 mapping also
    folds the IRC bracket characters.
    """
    key = unicodedata.normalize("NFKC", name).casefold()
    if casemapping == "rfc1459":
        key = key.translate(_RFC1459_FOLD)
    return key


def senders_equal(a: Optional[str], b: Optional[str], casemapping: str = "unicode") -> bool:
    if not a or not b:
        return False
    return normalize_sender(a, casemapping) == normalize_sender(b, casemapping)


class SpeakerContinuityDetector:
    """Decides whether a message continues the last eligible one."""

    def __init__(self, transcript: Transcript, tracker: ContinuityTracker, config: LayoutConfig) -> None:
        self.transcript = transcript
        self.tracker = tracker
        self.config = config

    def prior(self, tracker: Optional[ContinuityTracker] = None) -> Optional[Message]:
        """The message the tracker points at, if it still exists."""
        tracker = self.tracker if tracker is None else tracker
        tracker.ensure_initialized()
        if tracker.last_seq is None or tracker.last_seq not in self.transcript:
            return None
        return self.transcript.get(tracker.last_seq)

    def is_continuation(self, message: Message, tracker: Optional[ContinuityTracker] = None) -> bool:
        """Decide against the view's tracker, or the given one during a rejigger pass."""
        prior = self.prior(tracker)
        if not self.config.merge or message.kind != MessageKind.NORMAL:
            return False
        if message.hidden:
            return False
        if prior is None or prior.seq == message.seq:
            return False
        if prior.ephemeral or prior.kind != MessageKind.NORMAL:
            return False
        if message.timestamp is None or prior.timestamp is None:
            return False
        if message.timestamp < prior.timestamp:
            return False
        if message.timestamp - prior.timestamp >= self.config.max_lull:
            return False
        return senders_equal(message.sender, prior.sender, self.config.casemapping)
