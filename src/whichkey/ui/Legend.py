# whichkey/ui/Legend.py
"""Legend.py
========================
Lays out the overlay's legend from the Selection Engine's entries and turns it
into styled text.

The layout is a list of lines, each line a list of ``Segment`` values (text plus
xterm-256 colours). Two sinks consume it: ``render_ansi`` for the plugin's
standard output, and ``PreviewScreen`` for the curses preview.

Layout:
    <Mode> Mode
    (blank)
    CATEGORY
     key  action label         key  action label ...
    (blank)
    CATEGORY
     ...
    (blank)
    Press  Ctrl+g  to hide

Rows hold as many fixed-width cells as fit the width and never mix two
categories. Entry content and order are taken from the engine unchanged.
"""

import logging
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Sequence

from wcwidth import wcswidth, wcwidth

from whichkey.core.Bindings import InputMode, RankedEntry
from whichkey.core.Labels import BACK_LABEL, SWITCH_MODE_PREFIX
from whichkey.core.SelectionEngine import priority_category
from whichkey.utils.utils import hex_to_xterm

COLUMN_WIDTH = 30
COLUMN_GAP = "  "
TOGGLE_HOTKEY_LABEL = "Ctrl+g"
ELLIPSIS = "…"
BACK_PREFIX = BACK_LABEL[:6]  # "← Back"


@dataclass(frozen=True)
class LegendPalette:
    """xterm-256 colour indices used by the legend."""

    fg: int = 252
    key_fg: int = 252
    key_bg: int = 240
    category: int = 245
    back: int = 114
    switch: int = 180

    @classmethod
    def from_config(cls, colors: dict[str, Any]) -> "LegendPalette":
        """Builds a palette from the ``[colors]`` config section.

        Values may be xterm indices or ``#rrggbb`` strings; anything else keeps the
        default for that slot.
        """
        defaults = cls()
        values: dict[str, int] = {}
        for slot in ("fg", "key_fg", "key_bg", "category", "back", "switch"):
            raw = colors.get(slot)
            if isinstance(raw, int) and 0 <= raw <= 255:
                values[slot] = raw
            elif isinstance(raw, str) and raw.startswith("#"):
                values[slot] = hex_to_xterm(raw)
            else:
                if raw is not None:
                    logging.debug("LegendPalette: ignoring colour %s=%r", slot, raw)
                values[slot] = getattr(defaults, slot)
        return cls(**values)


class Segment(NamedTuple):
    text: str
    fg: Optional[int] = None
    bg: Optional[int] = None
    bold: bool = False


Line = list[Segment]


def display_width(text: str) -> int:
    width = wcswidth(text)
    if width < 0:  # non-printable content; count code points instead
        return len(text)
    return width


def truncate_to_width(text: str, max_width: int) -> str:
    """Clip ``text`` to ``max_width`` cells, marking the cut with an ellipsis."""
    if display_width(text) <= max_width:
        return text
    if max_width <= 0:
        return ""

    result: list[str] = []
    consumed = 0
    for ch in text:
        w = wcwidth(ch)
        if w < 0:
            w = 1
        if consumed + w > max_width - 1:
            break
        result.append(ch)
        consumed += w
    return "".join(result) + ELLIPSIS


def line_text(line: Line) -> str:
    return "".join(segment.text for segment in line)


def _action_colour(action: str, palette: LegendPalette) -> int:
    if action.startswith(BACK_PREFIX):
        return palette.back
    if action.startswith(SWITCH_MODE_PREFIX):
        return palette.switch
    return palette.fg


def _cell(key: str, action: str, palette: LegendPalette) -> Line:
    badge = f" {key} "
    # cell plus gap fills one column
    max_action_len = max(COLUMN_WIDTH - len(COLUMN_GAP) - display_width(badge) - 1, 1)
    shown = truncate_to_width(action, max_action_len)
    padding = " " * max(max_action_len - display_width(shown), 0)
    return [
        Segment(badge, palette.key_fg, palette.key_bg, True),
        Segment(" "),
        Segment(shown + padding, _action_colour(action, palette)),
    ]


def build_legend(
    entries: Sequence[RankedEntry],
    mode: InputMode,
    width: int,
    max_lines: Optional[int] = None,
    palette: Optional[LegendPalette] = None,
) -> list[Line]:
    """Lays out the legend for ``entries``.

    Args:
        entries: Selection Engine output, already ordered and deduplicated.
        mode: Current mode, named in the header line.
        width: Available width in cells; decides how many columns fit.
        max_lines: When set, body lines beyond this count are dropped. Header and
            footer are always present.
        palette: Colours; defaults to ``LegendPalette()``.

    Returns:
        list[Line]: The styled lines, header first and footer last.
    """
    palette = palette or LegendPalette()
    num_columns = max(width // COLUMN_WIDTH, 1)

    header: list[Line] = [
        [Segment(mode.value, palette.fg, None, True), Segment(" Mode")],
        [],
    ]

    body: list[Line] = []
    index = 0
    last_category: Optional[str] = None
    while index < len(entries):
        category = priority_category(entries[index].priority, mode)
        if category is not None and category != last_category:
            if index > 0:
                body.append([])
            body.append([Segment(category, palette.category)])
            last_category = category

        row: Line = []
        for col in range(num_columns):
            if index >= len(entries):
                break
            entry = entries[index]
            item_category = priority_category(entry.priority, mode)
            if col > 0 and item_category is not None and item_category != last_category:
                break
            row.extend(_cell(entry.key, entry.action, palette))
            index += 1
            if col < num_columns - 1 and index < len(entries):
                row.append(Segment(COLUMN_GAP))
        body.append(row)

    if max_lines is not None and len(body) > max_lines:
        logging.debug("Legend: truncating %d body lines to %d", len(body), max_lines)
        body = body[: max(max_lines, 0)]

    footer: list[Line] = [
        [],
        [
            Segment("Press ", palette.fg),
            Segment(f" {TOGGLE_HOTKEY_LABEL} ", palette.key_fg, palette.key_bg, True),
            Segment(" to hide", palette.fg),
        ],
    ]
    return header + body + footer


def _sgr(segment: Segment) -> str:
    codes: list[str] = []
    if segment.bold:
        codes.append("1")
    if segment.fg is not None:
        codes.append(f"38;5;{segment.fg}")
    if segment.bg is not None:
        codes.append(f"48;5;{segment.bg}")
    if not codes:
        return segment.text
    return f"\x1b[{';'.join(codes)}m{segment.text}\x1b[0m"


def render_ansi(lines: Sequence[Line]) -> str:
    """Serialise the layout as 256-colour SGR text, one terminal line per line."""
    return "".join("".join(_sgr(segment) for segment in line) + "\n" for line in lines)


def render_plain(lines: Sequence[Line]) -> str:
    return "".join(line_text(line) + "\n" for line in lines)
