# whichkey/ui/TerminalAppMode.py
from __future__ import annotations

import curses
import logging
from typing import Optional


class TerminalAppMode:
    """
    Put the terminal into a state suitable for the legend preview:

    - Alternate screen buffer (smcup/rmcup) so the shell prompt is restored on exit.
    - cbreak + noecho, keypad(True) so Tab / Shift+Tab arrive as single key codes.
    - Short ESC delay so Esc quits promptly.
    - Hidden cursor.

    Always pair `enter(stdscr)` with `exit()` (try/finally).
    """

    ESC_DELAY_MS = 25

    def __init__(self) -> None:
        self._entered: bool = False
        self._stdscr: Optional[curses.window] = None
        self._cursor_state: Optional[int] = None

    def enter(self, stdscr: curses.window) -> None:
        self._stdscr = stdscr

        try:
            curses.setupterm()
        except curses.error as e:
            logging.debug("setupterm() failed or not required: %r", e)

        self._tputs("smcup")

        curses.cbreak()
        curses.noecho()
        stdscr.keypad(True)

        try:
            curses.set_escdelay(self.ESC_DELAY_MS)
        except curses.error:
            logging.debug("TerminalAppMode: set_escdelay unsupported")

        try:
            self._cursor_state = curses.curs_set(0)
        except curses.error:
            self._cursor_state = None

        stdscr.scrollok(False)
        stdscr.erase()
        stdscr.refresh()

        self._entered = True
        logging.debug("TerminalAppMode: entered (alternate screen, cursor hidden).")

    def exit(self) -> None:
        if not self._entered:
            return

        if self._stdscr is not None:
            try:
                self._stdscr.keypad(False)
            except curses.error:
                pass

        if self._cursor_state is not None:
            try:
                curses.curs_set(self._cursor_state)
            except curses.error:
                pass

        try:
            curses.nocbreak()
            curses.echo()
        except curses.error as e:
            logging.debug("TerminalAppMode: restoring input modes failed: %r", e)

        self._tputs("rmcup")

        self._entered = False
        logging.debug("TerminalAppMode: exited (restored terminal modes).")

    # ── helpers ───────────────────────────────────────────────────────────────

    def _tputs(self, capname: str) -> None:
        try:
            s = curses.tigetstr(capname)
            if s:
                curses.putp(s)
        except curses.error as e:
            # Capability missing on some consoles.
            logging.debug("tputs(%s) skipped: %r", capname, e)
