"""Tests for plain-text rendering of laid-out transcripts.

WHY: The renderer is where relative prefixes meet the live indent width.
These tests pin the visible result: labels end at the indent column and
wrapped lines start at it.

HOW: Views use a 12-column indent so expected lines stay short. "<alice> "
is 8 columns, so alice's first line is padded by 4 spaces.
"""

from __future__ import annotations

import pytest

from chatwrap.core.ir import Message, MessageKind
from chatwrap.render import STYLE_VARIABLE, render_message, render_transcript, visible_text

LONG = "the quick brown fox jumps over the lazy dog"


def _lines(view, width=40, style="wrap"):
    return render_transcript(view, width=width, style=style).splitlines()


# ---------------------------------------------------------------------------
# TestHangingIndent
# ---------------------------------------------------------------------------


class TestHangingIndent:
    def test_label_ends_at_indent(self, make_view, say):
        view = make_view(indent_column=12)
        view.insert(say("alice", "hi", 0))
        assert _lines(view) == ["    <alice> hi"]

    def test_wrapped_lines_at_indent(self, make_view, say):
        view = make_view(indent_column=12)
        view.insert(say("alice", LONG, 0))
        lines = _lines(view, width=30)
        assert len(lines) > 1
        assert lines[0].startswith("    <alice> the")
        for line in lines[1:]:
            assert line.startswith(" " * 12)
            assert line[12] != " "
            assert len(line) <= 30

    def test_merged_message_body_at_indent(self, make_view, say):
        view = make_view(indent_column=12)
        view.insert(say("alice", "hi", 0))
        view.insert(say("alice", "again", 5))
        assert _lines(view) == ["    <alice> hi", " " * 12 + "again"]

    def test_pre_indicator_rendered(self, make_view, say):
        view = make_view(indent_column=12, merge_indicator="pre")
        view.insert(say("alice", "hi", 0))
        view.insert(say("alice", "again", 5))
        assert _lines(view)[1] == " " * 10 + "· again"

    def test_post_indicator_rendered(self, make_view, say):
        view = make_view(indent_column=12, merge_indicator="post")
        view.insert(say("alice", "hi", 0))
        view.insert(say("alice", "again", 5))
        assert _lines(view) == ["    <alice> hi …", " " * 12 + "again"]

    def test_pre_indicator_over_empty_label(self, make_view):
        view = make_view(indent_column=12, merge_indicator="pre")
        view.insert(Message.from_text("<alice> hi", sender="alice", timestamp=0))
        view.insert(Message.from_text("  more", sender="alice", timestamp=5))
        line = _lines(view)[1]
        assert line.startswith(" " * 10 + "·")
        assert line.endswith("more")

    def test_hidden_continuation_leaves_no_post_glyph(self, make_view, say):
        view = make_view(indent_column=12, merge_indicator="post")
        first = view.insert(say("alice", "hi", 0))
        view.insert(say("alice", "secret", 5, hidden=True))
        view.insert(say("bob", "yo", 10))
        assert first.presentation.trailing is None
        assert _lines(view) == ["    <alice> hi", "      <bob> yo"]

    def test_nudge_changes_output_without_relayout(self, make_view, say):
        view = make_view(indent_column=12)
        view.insert(say("alice", "hi", 0))
        view.nudge(2)
        assert _lines(view) == ["      <alice> hi"]

    def test_hidden_messages_not_rendered(self, make_view, say):
        view = make_view(indent_column=12)
        view.insert(say("alice", "hi", 0))
        view.insert(say("bob", "secret", 1, hidden=True))
        assert _lines(view) == ["    <alice> hi"]

    def test_datestamp_and_unknown(self, make_view, say):
        view = make_view(indent_column=12)
        view.insert(say(None, "-- Day --", 0, kind=MessageKind.DATESTAMP))
        view.insert(say(None, "banner", 1, kind=MessageKind.UNKNOWN))
        assert _lines(view) == [" " * 11 + "-- Day --", " " * 12 + "banner"]

    def test_long_label_never_negative(self, make_view, say):
        view = make_view(indent_column=4)
        view.insert(say("someone", "hi", 0))
        assert _lines(view) == ["<someone> hi"]

    def test_empty_transcript(self, view):
        assert render_transcript(view) == ""


# ---------------------------------------------------------------------------
# TestPartialLayout
# ---------------------------------------------------------------------------


class TestPartialLayout:
    def test_uncovered_tail_flush_left(self, make_view, say):
        view = make_view(indent_column=12)
        m = view.insert(say("alice", "hello world", 0))
        view.record(m.seq).covered = 13
        assert _lines(view) == ["    <alice> hello", "world"]

    def test_message_without_record(self, make_view, say):
        view = make_view(indent_column=12)
        view.disable()
        view.insert(say("alice", "hi", 0))
        assert _lines(view) == ["<alice> hi"]

    def test_render_message_direct(self, say):
        m = say("alice", "hi", 0)
        assert render_message(m, None, 27, 40) == ["<alice> hi"]

    def test_visible_text_split(self, say):
        m = say("alice", "hello world", 0)
        m.presentation.blank_end = 8
        m.presentation.replacement = "· "
        assert visible_text(m, 13) == ("· hello", " world")


# ---------------------------------------------------------------------------
# TestVariableStyle
# ---------------------------------------------------------------------------


class TestVariableStyle:
    def test_first_line_flush_rest_capped(self, make_view, say):
        view = make_view(max_variable_indent=5)
        view.insert(say("alice", LONG, 0))
        lines = _lines(view, width=30, style=STYLE_VARIABLE)
        assert lines[0].startswith("<alice> the")
        assert all(line.startswith(" " * 5) and line[5] != " " for line in lines[1:])

    def test_short_label_under_cap(self, make_view, say):
        view = make_view(max_variable_indent=17)
        view.insert(say("bob", LONG, 0))
        lines = _lines(view, width=25, style=STYLE_VARIABLE)
        assert all(line.startswith(" " * 6) and line[6] != " " for line in lines[1:])

    def test_label_end_past_body_renders_flush(self, make_view, say, caplog):
        view = make_view(indent_column=12)
        view.insert(say("alice", "x", 0, label_end=50))
        with caplog.at_level("WARNING", logger="chatwrap.render"):
            lines = _lines(view, style=STYLE_VARIABLE)
        assert lines == ["<alice> x"]
        assert "without label indent" in caplog.text


# ---------------------------------------------------------------------------
# TestValidation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_unknown_style(self, view):
        with pytest.raises(ValueError, match="Unknown style"):
            render_transcript(view, style="fancy")

    def test_non_positive_width(self, view):
        with pytest.raises(ValueError):
            render_transcript(view, width=0)
