# whichkey/ui/PreviewScreen.py
"""PreviewScreen.py
========================
Interactive curses preview of the legend, for checking a keymap and palette
without a running multiplexer.

The preview draws exactly what the overlay would draw for the selected mode
(same Selection Engine entries, same layout) and lets the user cycle through
the modes that have bindings.

Keys:
    Tab / Shift+Tab   next / previous mode
    a-z               next mode starting with that letter
    Ctrl+g            hide or show the legend
    q / Esc           quit
"""

import curses
import logging
from typing import Any, Dict, Mapping, Optional

from whichkey.core.Bindings import BindingTable, InputMode
from whichkey.core.Lifecycle import PluginConfig
from whichkey.core.SelectionEngine import select_bindings
from whichkey.ui.Legend import LegendPalette, Line, build_legend, truncate_to_width, display_width
from whichkey.ui.TerminalAppMode import TerminalAppMode

KEY_ESC = 27
KEY_CTRL_G = 7
KEY_TAB = 9

STATUS_HINT = "Tab/Shift+Tab/letter: mode   Ctrl+g: hide   q: quit"


## ================= class PreviewScreen ==============================
class PreviewScreen:
    """Draws the legend for one mode at a time on a curses window.

    Attributes:
        stdscr (curses.window): Target window.
        keymap (Mapping[InputMode, BindingTable]): Binding tables per mode.
        palette (LegendPalette): Legend colours (xterm-256 indices).
        max_lines (int | None): Legend body limit, as in the overlay.
        base_mode (InputMode): Mode treated as the at-rest mode.
        modes (list[InputMode]): Modes offered for preview, base mode excluded.
        index (int): Position of the previewed mode in ``modes``.
        hidden (bool): Whether Ctrl+g has hidden the legend.
    """

    def __init__(
        self,
        stdscr: "curses.window",
        keymap: Mapping[InputMode, BindingTable],
        palette: Optional[LegendPalette] = None,
        max_lines: Optional[int] = None,
        base_mode: InputMode = InputMode.NORMAL,
        start_mode: Optional[InputMode] = None,
    ) -> None:
        self.stdscr = stdscr
        self.keymap = keymap
        self.palette = palette or LegendPalette()
        self.max_lines = max_lines
        self.base_mode = base_mode
        self.modes = [mode for mode in InputMode if mode in keymap and mode != base_mode] or [base_mode]
        self.index = self.modes.index(start_mode) if start_mode in self.modes else 0
        self.hidden = False
        self._pairs: Dict[tuple, int] = {}
        self._use_colour = False

    @property
    def mode(self) -> InputMode:
        return self.modes[self.index]

    # colours: one curses pair per (fg, bg) combination, allocated on demand
    def init_colors(self) -> None:
        try:
            curses.start_color()
            curses.use_default_colors()
        except curses.error as exc:
            logging.warning("PreviewScreen: colour setup failed (%s), using attributes only", exc)
            return
        self._use_colour = curses.COLORS >= 256
        if not self._use_colour:
            logging.info("PreviewScreen: terminal has %d colours, legend drawn monochrome", curses.COLORS)

    def _attr(self, fg: Optional[int], bg: Optional[int], bold: bool) -> int:
        attr = curses.A_BOLD if bold else curses.A_NORMAL
        if not self._use_colour:
            return attr | (curses.A_REVERSE if bg is not None else 0)
        key = (fg if fg is not None else -1, bg if bg is not None else -1)
        pair = self._pairs.get(key)
        if pair is None:
            pair = len(self._pairs) + 1
            if pair >= curses.COLOR_PAIRS:
                return attr
            try:
                curses.init_pair(pair, key[0], key[1])
            except curses.error as exc:
                logging.debug("init_pair(%d, %s) failed: %s", pair, key, exc)
                return attr
            self._pairs[key] = pair
        return attr | curses.color_pair(pair)

    def _draw_line(self, y: int, line: Line, width: int) -> None:
        x = 0
        for segment in line:
            if x >= width:
                break
            text = truncate_to_width(segment.text, width - x)
            try:
                self.stdscr.addstr(y, x, text, self._attr(segment.fg, segment.bg, segment.bold))
            except curses.error:
                # Writing the bottom-right cell raises after the text is drawn.
                pass
            x += display_width(text)

    def draw(self) -> None:
        height, width = self.stdscr.getmaxyx()
        self.stdscr.erase()

        if not self.hidden:
            entries = select_bindings(self.mode, self.base_mode, self.keymap.get(self.mode, {}))
            lines = build_legend(entries, self.mode, width, self.max_lines, self.palette)
            for y, line in enumerate(lines[: max(height - 1, 0)]):
                self._draw_line(y, line, width)

        position = f"[{self.index + 1}/{len(self.modes)}] "
        try:
            self.stdscr.addstr(height - 1, 0, truncate_to_width(position + STATUS_HINT, width - 1), curses.A_DIM)
        except curses.error:
            pass
        self.stdscr.refresh()

    def handle_key(self, key: int) -> bool:
        """Applies one key press; returns False when the preview should exit."""
        if key in (ord("q"), KEY_ESC):
            return False
        if key == KEY_TAB:
            self.index = (self.index + 1) % len(self.modes)
            self.hidden = False
        elif key == curses.KEY_BTAB:
            self.index = (self.index - 1) % len(self.modes)
            self.hidden = False
        elif key == KEY_CTRL_G:
            self.hidden = not self.hidden
        elif key == curses.KEY_RESIZE:
            logging.debug("PreviewScreen: resized to %s", self.stdscr.getmaxyx())
        elif 0 < key < 128 and chr(key).isalpha():
            self._jump_to_letter(chr(key).lower())
        return True

    def _jump_to_letter(self, letter: str) -> None:
        # Repeated presses cycle through modes sharing the letter (Scroll, Search, Session).
        count = len(self.modes)
        for step in range(1, count + 1):
            candidate = (self.index + step) % count
            if self.modes[candidate].value.lower().startswith(letter):
                self.index = candidate
                self.hidden = False
                return
        logging.debug("PreviewScreen: no mode starting with %r", letter)

    def run(self) -> None:
        self.init_colors()
        running = True
        while running:
            self.draw()
            running = self.handle_key(self.stdscr.getch())


def run_preview(
    stdscr: "curses.window",
    config: Dict[str, Any],
    keymap: Mapping[InputMode, BindingTable],
    start_mode: Optional[InputMode] = None,
) -> None:
    """curses.wrapper target for ``main.py --preview``."""
    raw_max_lines = config.get("plugin", {}).get("max_lines")
    plugin_config = PluginConfig.from_mapping({} if raw_max_lines is None else {"max_lines": str(raw_max_lines)})

    app_mode = TerminalAppMode()
    app_mode.enter(stdscr)
    try:
        screen = PreviewScreen(
            stdscr,
            keymap,
            palette=LegendPalette.from_config(config.get("colors", {})),
            max_lines=plugin_config.max_lines,
            start_mode=start_mode,
        )
        screen.run()
    finally:
        app_mode.exit()
