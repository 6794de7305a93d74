"""Shared test fixtures for the chatwrap test suite.

WHY: Most test modules need the same building blocks: a layout config
that does not depend on the developer's environment, a transcript view
with a controllable clock, and a quick way to build IRC-style messages
("<nick> text") with sender and timestamp metadata attached.

HOW: Pytest fixtures provide a FakeClock, a pinned LayoutConfig, a view
factory, and a message builder. The message builder returns plain
Message objects; tests decide whether to insert() or append() them.

RULES:
- Configs are built explicitly so CHATWRAP_* environment variables never
  leak into test expectations
- Default indent column is 27, unit is column, merge indicator is none
- Timestamps are plain floats in seconds
"""

from typing import Optional

import pytest

from chatwrap.config import LayoutConfig
from chatwrap.core.ir import Message, MessageKind
from chatwrap.core.view import TranscriptView

ONE_DAY = 24 * 60 * 60


class FakeClock:
    """Monotonic clock stand-in that only moves when told to."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_config(**overrides) -> LayoutConfig:
    values = dict(
        indent_column=27,
        max_variable_indent=17,
        merge=True,
        max_lull=ONE_DAY,
        merge_indicator="none",
        unit="column",
        margin_width=0,
    )
    values.update(overrides)
    config = LayoutConfig(**values)
    config.validate()
    return config


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def make_view(clock):
    """Factory for views with a pinned config and the fake clock."""

    def _make(**overrides) -> TranscriptView:
        return TranscriptView(make_config(**overrides), clock=clock)

    return _make


@pytest.fixture
def view(make_view):
    return make_view()


@pytest.fixture
def say():
    """Builder for "<sender> body" messages.

    Action messages are built as "* sender body", datestamps and unknown
    entries use body verbatim.
    """

    def _say(
        sender: Optional[str],
        body: str,
        ts: Optional[float] = None,
        kind: MessageKind = MessageKind.NORMAL,
        **kwargs,
    ) -> Message:
        if kind == MessageKind.ACTION:
            text = "* {} {}".format(sender, body)
        elif kind in (MessageKind.DATESTAMP, MessageKind.UNKNOWN) or sender is None:
            text = body
        else:
            text = "<{}> {}".format(sender, body)
        return Message.from_text(text, sender=sender, timestamp=ts, kind=kind, **kwargs)

    return _say
