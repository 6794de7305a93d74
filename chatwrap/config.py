"""Configuration defaults, .env loading, and the LayoutConfig record.

WHY: Every transcript view needs the same handful of layout options
(indent column, merge settings, measurement unit). Keeping the defaults
as plain module-level values makes them easy to find and override, and
the LayoutConfig dataclass gives each view its own explicit copy so no
layout code reads process-wide state.

HOW: python-dotenv loads the .env file on import. Defaults are read from
the environment with os.getenv. LayoutConfig.from_env() builds a config
from those defaults plus keyword overrides; validate() rejects values the
layout engine cannot work with.

RULES:
- Environment variables use the CHATWRAP_ prefix
- Indicator modes: "none", "pre", "post"
- Measurement units: "pixel", "column"
- Sender casemapping: "unicode" (casefold + NFKC) or "rfc1459"
- max_lull is in seconds (default 24 hours)
- Changing indicator glyphs mid-session is not supported: the measured
  width of the "pre" glyph is cached on first use
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

INDICATOR_NONE = "none"
INDICATOR_PRE = "pre"
INDICATOR_POST = "post"
INDICATOR_MODES = (INDICATOR_NONE, INDICATOR_PRE, INDICATOR_POST)

UNIT_PIXEL = "pixel"
UNIT_COLUMN = "column"
MEASUREMENT_UNITS = (UNIT_PIXEL, UNIT_COLUMN)

CASEMAPPINGS = ("unicode", "rfc1459")

DEFAULT_INDICATOR_GLYPHS: Dict[str, str] = {
    INDICATOR_PRE: "·",   # middle dot
    INDICATOR_POST: "…",  # horizontal ellipsis
}


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() in (
        "1", "true", "yes", "on",
    )


# ---------------------------------------------------------------------------
# Defaults (overridable via environment)
# ---------------------------------------------------------------------------

DEFAULT_INDENT_COLUMN = int(os.getenv("CHATWRAP_INDENT_COLUMN", "27"))
DEFAULT_MAX_VARIABLE_INDENT = int(os.getenv("CHATWRAP_MAX_VARIABLE_INDENT", "17"))
DEFAULT_MERGE = _env_bool("CHATWRAP_MERGE", True)
DEFAULT_MAX_LULL = float(os.getenv("CHATWRAP_MAX_LULL", str(24 * 60 * 60)))
DEFAULT_MERGE_INDICATOR = os.getenv("CHATWRAP_MERGE_INDICATOR", INDICATOR_NONE).lower()
DEFAULT_UNIT = os.getenv("CHATWRAP_UNIT", UNIT_COLUMN).lower()
DEFAULT_MARGIN_WIDTH = int(os.getenv("CHATWRAP_MARGIN_WIDTH", "0"))
DEFAULT_WINDOW_WIDTH = int(os.getenv("CHATWRAP_WINDOW_WIDTH", "80"))


@dataclass
class LayoutConfig:
    """Layout options for one transcript view.

    WHY: The layout engine, nudge and rejigger all depend on the same
    options. Passing one record around keeps views independent of each
    other and of the environment once constructed.

    RULES:
    - indent_column: baseline column bodies align to (default 27)
    - max_variable_indent: cap used by the renderer's "variable" style
    - merge: collapse repeated sender labels (default on)
    - max_lull: seconds between messages still eligible for merging
    - merge_indicator: "none" | "pre" | "post"
    - unit: "pixel" | "column"
    - action_dedent: action messages hang "* nick " instead of just "* "
    - stamps_enabled: timestamp feature active (required by fill-wrap)
    - margin_left: timestamps live in a left margin that follows nudges
    - margin_width: margin columns, 0 means derive from indent_column
    """

    indent_column: int = DEFAULT_INDENT_COLUMN
    max_variable_indent: int = DEFAULT_MAX_VARIABLE_INDENT
    merge: bool = DEFAULT_MERGE
    max_lull: float = DEFAULT_MAX_LULL
    merge_indicator: str = DEFAULT_MERGE_INDICATOR
    unit: str = DEFAULT_UNIT
    action_dedent: bool = True
    casemapping: str = "unicode"
    stamps_enabled: bool = True
    margin_left: bool = False
    margin_width: int = DEFAULT_MARGIN_WIDTH
    indicator_glyphs: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_INDICATOR_GLYPHS)
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> "LayoutConfig":
        """Build a validated config from environment defaults plus overrides.

        Keys whose value is None are ignored so callers can forward
        optional CLI or HTTP fields directly.
        """
        cfg = cls()
        cleaned = {k: v for k, v in overrides.items() if v is not None}
        if cleaned:
            cfg = replace(cfg, **cleaned)
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """Raise ValueError if any option is outside its allowed set."""
        if self.merge_indicator not in INDICATOR_MODES:
            raise ValueError(
                "Unknown merge indicator '{}'. Available: {}".format(
                    self.merge_indicator, ", ".join(INDICATOR_MODES)
                )
            )
        if self.unit not in MEASUREMENT_UNITS:
            raise ValueError(
                "Unknown measurement unit '{}'. Available: {}".format(
                    self.unit, ", ".join(MEASUREMENT_UNITS)
                )
            )
        if self.casemapping not in CASEMAPPINGS:
            raise ValueError(
                "Unknown casemapping '{}'. Available: {}".format(
                    self.casemapping, ", ".join(CASEMAPPINGS)
                )
            )
        if self.indent_column < 0:
            raise ValueError("indent_column must be >= 0, got {}".format(self.indent_column))
        if self.max_variable_indent < 0:
            raise ValueError(
                "max_variable_indent must be >= 0, got {}".format(self.max_variable_indent)
            )
        if self.max_lull <= 0:
            raise ValueError("max_lull must be positive, got {}".format(self.max_lull))
        if self.margin_width < 0:
            raise ValueError("margin_width must be >= 0, got {}".format(self.margin_width))
        for mode in (INDICATOR_PRE, INDICATOR_POST):
            if not self.indicator_glyphs.get(mode):
                raise ValueError("indicator_glyphs is missing a glyph for '{}'".format(mode))

    def glyph(self, mode: str) -> str:
        return self.indicator_glyphs[mode]
