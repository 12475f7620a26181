# tests/ui/test_legend.py
"""Unit tests for the legend layout in `whichkey.ui.Legend`.
=============================================================

Covers:
- The header/footer frame, including the empty-legend case.
- Category headers and blank separators between categories.
- Column packing by width, never mixing two categories on one row.
- Cell truncation, `max_lines` and palette handling.
- ANSI and plain serialisation.
"""

from whichkey.core.Bindings import InputMode, RankedEntry
from whichkey.core.Labels import BACK_LABEL
from whichkey.core.SelectionEngine import select_bindings
from whichkey.ui.Legend import (
    COLUMN_GAP,
    COLUMN_WIDTH,
    ELLIPSIS,
    LegendPalette,
    build_legend,
    display_width,
    line_text,
    render_ansi,
    render_plain,
    truncate_to_width,
)


def _texts(lines):
    return [line_text(line).rstrip() for line in lines]


class TestFrame:
    def test_empty_legend_is_header_and_footer(self) -> None:
        lines = build_legend([], InputMode.PANE, 120)
        assert render_plain(lines) == "Pane Mode\n\n\nPress  Ctrl+g  to hide\n"

    def test_header_names_mode(self) -> None:
        lines = build_legend([], InputMode.RENAME_TAB, 80)
        assert line_text(lines[0]) == "RenameTab Mode"


class TestLayout:
    def test_categories_and_rows(self, pane_table) -> None:
        entries = select_bindings(InputMode.PANE, InputMode.NORMAL, pane_table)
        texts = _texts(build_legend(entries, InputMode.PANE, 120))

        assert texts[0] == "Pane Mode"
        assert texts[2] == "PANE ACTIONS"
        assert texts[3].startswith(" d  New pane Down")
        assert texts[4] == ""
        assert texts[5] == "TOGGLES"
        assert "Fullscreen" in texts[6] and "Toggle frames" in texts[6]
        assert BACK_LABEL not in texts[6]
        assert texts[8] == "SHARED"
        assert "Ctrl+p" in texts[9] and "Quit Zellij" in texts[9]
        assert texts[-1] == "Press  Ctrl+g  to hide"
        assert len(texts) == 12

    def test_row_holds_as_many_cells_as_fit(self, pane_table) -> None:
        entries = select_bindings(InputMode.PANE, InputMode.NORMAL, pane_table)
        row = line_text(build_legend(entries, InputMode.PANE, 120)[3])
        assert all(label in row for label in ("New pane Down", "New pane", "Close pane", "Focus Left"))
        assert display_width(row) <= 120

    def test_rows_never_exceed_width(self, pane_table) -> None:
        """A full row of cells, gaps included, stays inside the pane at any width."""
        entries = select_bindings(InputMode.PANE, InputMode.NORMAL, pane_table)
        for width in (30, 59, 60, 61, 89, 90, 120, 251):
            for line in build_legend(entries, InputMode.PANE, width):
                assert display_width(line_text(line)) <= width

    def test_narrow_width_uses_one_column(self, pane_table) -> None:
        entries = select_bindings(InputMode.PANE, InputMode.NORMAL, pane_table)
        texts = _texts(build_legend(entries, InputMode.PANE, 10))
        # 8 entries, 3 headers, 2 separators between categories
        assert len(texts) == 2 + 8 + 3 + 2 + 2

    def test_entry_order_is_kept(self, pane_table) -> None:
        entries = select_bindings(InputMode.PANE, InputMode.NORMAL, pane_table)
        body = "\n".join(_texts(build_legend(entries, InputMode.PANE, 10)))
        positions = [body.index(f" {entry.key} ") for entry in entries]
        assert positions == sorted(positions)

    def test_uncategorised_entries_stay_under_previous_header(self) -> None:
        entries = [
            RankedEntry(10, "n", "New pane", "PANE ACTIONS"),
            RankedEntry(40, "?", "Odd one", None),
        ]
        texts = _texts(build_legend(entries, InputMode.PANE, 120))
        assert texts.count("PANE ACTIONS") == 1
        assert "Odd one" in texts[3]

    def test_max_lines_truncates_body(self, pane_table) -> None:
        entries = select_bindings(InputMode.PANE, InputMode.NORMAL, pane_table)
        texts = _texts(build_legend(entries, InputMode.PANE, 120, max_lines=2))
        assert texts[2] == "PANE ACTIONS"
        assert texts[4:] == ["", "Press  Ctrl+g  to hide"]

    def test_max_lines_zero_keeps_frame(self, pane_table) -> None:
        entries = select_bindings(InputMode.PANE, InputMode.NORMAL, pane_table)
        texts = _texts(build_legend(entries, InputMode.PANE, 120, max_lines=0))
        assert texts == ["Pane Mode", "", "", "Press  Ctrl+g  to hide"]


class TestCells:
    def test_long_action_is_truncated(self) -> None:
        entries = [RankedEntry(15, "x", "A" * 60, "ACTIONS")]
        cell = line_text(build_legend(entries, InputMode.SCROLL, 120)[3])
        assert ELLIPSIS in cell
        assert display_width(cell) == COLUMN_WIDTH - len(COLUMN_GAP)

    def test_truncate_to_width(self) -> None:
        assert truncate_to_width("hello", 10) == "hello"
        assert truncate_to_width("hello world", 6) == "hello" + ELLIPSIS
        assert truncate_to_width("hello", 0) == ""

    def test_truncate_wide_characters(self) -> None:
        clipped = truncate_to_width("日本語テキスト", 5)
        assert display_width(clipped) <= 5
        assert clipped.endswith(ELLIPSIS)


class TestColours:
    def test_back_and_switch_colours(self) -> None:
        entries = [
            RankedEntry(50, "Esc", BACK_LABEL, "SHARED"),
            RankedEntry(15, "t", "→ Tab mode", "ACTIONS"),
        ]
        ansi = render_ansi(build_legend(entries, InputMode.SESSION, 120))
        assert "\x1b[38;5;114m" + BACK_LABEL in ansi
        assert "\x1b[38;5;180m→ Tab mode" in ansi
        assert "\x1b[1;38;5;252;48;5;240m Esc \x1b[0m" in ansi

    def test_ansi_has_one_line_per_layout_line(self) -> None:
        lines = build_legend([], InputMode.PANE, 80)
        assert render_ansi(lines).count("\n") == len(lines)

    def test_palette_from_config(self) -> None:
        palette = LegendPalette.from_config({"fg": "#ffffff", "back": 300, "switch": 10, "category": "grey"})
        assert palette.fg == 231
        assert palette.back == 114
        assert palette.switch == 10
        assert palette.category == 245
