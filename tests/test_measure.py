"""Tests for rendered-width measurement.

WHY: Every overhang comes from WidthMeasurer. If invisible text were
counted, or wide glyphs measured as one cell, labels would no longer end
exactly at the indent column.

HOW: Messages are built from explicit runs so styles, invisible runs and
blanked labels can be controlled per character.

RULES:
- Column unit returns display cells; pixel unit returns char_px multiples
- probe() never leaves its run behind, even when the body raises
"""

from __future__ import annotations

import math

import pytest

from chatwrap.core.ir import Message, Run
from chatwrap.core.measure import GlyphMetrics, WidthMeasurer, char_cells, text_cells


# ---------------------------------------------------------------------------
# TestCellWidths
# ---------------------------------------------------------------------------


class TestCellWidths:
    def test_ascii_is_one_cell(self):
        assert char_cells("a") == 1

    def test_wide_cjk_is_two_cells(self):
        assert text_cells("日本") == 4

    def test_fullwidth_is_two_cells(self):
        assert char_cells("Ａ") == 2

    def test_combining_mark_is_zero(self):
        assert text_cells("e\u0301") == 1

    def test_zero_width_joiner_is_zero(self):
        assert char_cells("\u200d") == 0


# ---------------------------------------------------------------------------
# TestColumnMeasure
# ---------------------------------------------------------------------------


class TestColumnMeasure:
    def test_label_width(self):
        m = Message.from_text("<alice> hello")
        assert WidthMeasurer("column").measure(m, 0, 8) == 8

    def test_invisible_runs_skipped(self):
        m = Message(runs=[Run("<al"), Run("ice", invisible=True), Run("> ")])
        assert WidthMeasurer("column").measure(m) == 5

    def test_blanked_label_skipped(self):
        m = Message.from_text("<alice> hello")
        m.presentation.blank_end = 8
        measurer = WidthMeasurer("column")
        assert measurer.measure(m, 0, 8) == 0
        assert measurer.measure(m) == 5

    def test_empty_span_is_zero(self):
        m = Message.from_text("<alice> hello")
        assert WidthMeasurer("column").measure(m, 4, 4) == 0

    def test_reversed_span_is_zero(self):
        m = Message.from_text("<alice> hello")
        assert WidthMeasurer("column").measure(m, 6, 2) == 0

    def test_wide_nick(self):
        m = Message.from_text("<日本> hi")
        assert WidthMeasurer("column").measure(m, 0, 5) == 7

    def test_span_across_runs(self):
        m = Message(runs=[Run("<bo", "nick"), Run("b> ", "nick"), Run("yo")])
        assert WidthMeasurer("column").measure(m, 1, 7) == 6

    def test_measure_text(self):
        assert WidthMeasurer("column").measure_text("· ") == 2


# ---------------------------------------------------------------------------
# TestPixelMeasure
# ---------------------------------------------------------------------------


class TestPixelMeasure:
    def test_default_metrics_match_columns(self):
        m = Message.from_text("<alice> hello")
        assert WidthMeasurer("pixel").measure(m, 0, 8) == pytest.approx(8.0)

    def test_style_scale_applies(self):
        metrics = GlyphMetrics(char_px=10, style_scale={"bold": 1.5})
        m = Message(runs=[Run("ab", "bold"), Run("c")])
        assert WidthMeasurer("pixel", metrics).measure(m) == pytest.approx(4.0)

    def test_unknown_style_uses_unit_scale(self):
        metrics = GlyphMetrics(char_px=10, style_scale={"bold": 2.0})
        m = Message(runs=[Run("ab", "italic")])
        assert WidthMeasurer("pixel", metrics).measure(m) == pytest.approx(2.0)

    def test_invalid_char_px_rejected(self):
        with pytest.raises(ValueError):
            GlyphMetrics(char_px=0)

    def test_unknown_unit_rejected(self):
        with pytest.raises(ValueError, match="Unknown measurement unit"):
            WidthMeasurer("furlong")


class _BrokenMetrics(GlyphMetrics):
    def __init__(self, value):
        super().__init__()
        self.value = value

    def advance(self, ch, style=None):
        return self.value


class TestInvalidMeasurements:
    def test_negative_width_is_zero(self):
        m = Message.from_text("<alice> hi")
        assert WidthMeasurer("pixel", _BrokenMetrics(-5.0)).measure(m, 0, 8) == 0

    def test_nan_width_is_zero(self):
        m = Message.from_text("<alice> hi")
        result = WidthMeasurer("pixel", _BrokenMetrics(math.nan)).measure(m, 0, 8)
        assert result == 0


# ---------------------------------------------------------------------------
# TestProbe
# ---------------------------------------------------------------------------


class TestProbe:
    def test_probe_span_and_width(self):
        m = Message.from_text("-- Day changed --")
        measurer = WidthMeasurer("column")
        with measurer.probe(m) as (start, end):
            assert (start, end) == (17, 18)
            assert measurer.measure(m, start, end) == 1
        assert m.text == "-- Day changed --"
        assert len(m.runs) == 1

    def test_probe_removed_on_error(self):
        m = Message.from_text("x")
        measurer = WidthMeasurer("column")
        with pytest.raises(RuntimeError):
            with measurer.probe(m):
                raise RuntimeError("boom")
        assert m.text == "x"

    def test_probe_keeps_equal_existing_run(self):
        """An existing run equal to the probe run must survive."""
        m = Message(runs=[Run("x"), Run(" ")])
        measurer = WidthMeasurer("column")
        with measurer.probe(m):
            pass
        assert [r.text for r in m.runs] == ["x", " "]
