#!/usr/bin/env python3
# /whichkey/main.py
"""
whichkey Main Entry Point
=========================

Command-line front end for the whichkey legend. It performs:
1) Environment Loading: reads ~/.config/whichkey/.env early (WHICHKEY_KEYTRACE etc.).
2) Path Setup: ensures the whichkey package is importable from a source checkout.
3) Configuration & Logging: loads config and initializes logging ASAP.
4) Dispatch on argv:
     main.py [MODE]       print the legend for MODE (default: Pane) as ANSI text
     main.py --preview    interactive curses preview, cycling through modes
     main.py --session    replay Normal -> Pane -> Normal through a LocalSession
                          and print every overlay frame
"""

from __future__ import annotations

import curses
import locale
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

# --- Step 1: Load Environment Variables from the User's Config Directory ---
dotenv_path = Path.home() / ".config" / "whichkey" / ".env"
if dotenv_path.is_file():
    load_dotenv(dotenv_path=dotenv_path)

# --- Step 2: Set up the Python Path ---
project_root = os.path.join(os.path.dirname(os.path.abspath(__file__)), "src")
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# --- Step 3: Immediate Logging and Configuration Setup ---
try:
    from whichkey.utils.logging_config import setup_logging
    from whichkey.utils.utils import load_config, load_keymap

    config: dict[str, Any] = load_config()
    setup_logging(config)
    logger = logging.getLogger("whichkey")
except Exception as e:
    # Logging is not ready; print to stderr and exit.
    print(f"FATAL: Could not initialize configuration or logging system: {e}", file=sys.stderr)
    import traceback
    traceback.print_exc()
    sys.exit(1)

from whichkey.core.Bindings import ActionSpecError, InputMode, ModeNameError  # noqa: E402
from whichkey.core.Lifecycle import PluginConfig  # noqa: E402
from whichkey.core.SelectionEngine import select_bindings  # noqa: E402
from whichkey.core.Session import LocalSession  # noqa: E402
from whichkey.ui.Legend import LegendPalette, build_legend, render_ansi  # noqa: E402
from whichkey.ui.PreviewScreen import run_preview  # noqa: E402

USAGE = "usage: main.py [MODE] | --preview [MODE] | --session"


def _plugin_configuration() -> dict[str, str]:
    """The ``[plugin]`` config section as the host's string mapping."""
    plugin = config.get("plugin", {})
    mapping: dict[str, str] = {}
    for key in ("auto_show_on_mode_change", "hide_in_base_mode"):
        if key in plugin:
            mapping[key] = "true" if plugin[key] else "false"
    if "max_lines" in plugin:
        mapping["max_lines"] = str(plugin["max_lines"])
    return mapping


def _parse_mode(raw: Optional[str]) -> InputMode:
    if raw is None:
        return InputMode.PANE
    return InputMode.from_name(raw)


def print_legend(mode: InputMode) -> None:
    keymap = load_keymap(config)
    plugin_config = PluginConfig.from_mapping(_plugin_configuration())
    width = shutil.get_terminal_size().columns
    entries = select_bindings(mode, InputMode.NORMAL, keymap.get(mode, {}))
    lines = build_legend(
        entries,
        mode,
        width,
        max_lines=plugin_config.max_lines,
        palette=LegendPalette.from_config(config.get("colors", {})),
    )
    sys.stdout.write(render_ansi(lines))


def replay_session() -> None:
    size = shutil.get_terminal_size()
    session = LocalSession(
        configuration=_plugin_configuration(),
        keybinds=load_keymap(config),
        rows=size.lines,
        cols=size.columns,
        palette=LegendPalette.from_config(config.get("colors", {})),
    ).start()

    for mode in (InputMode.PANE, InputMode.NORMAL):
        session.set_mode(mode)
        print(f"--- {mode.value} (overlay {'open' if session.overlay else 'closed'}) ---")
        sys.stdout.write(session.frame())

    for command in session.commands:
        print(f"[{command.plugin_id}] {command.name}")


def start() -> None:
    args = sys.argv[1:]
    logger.info("whichkey starting up (args=%s)", args)

    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error:
        logger.warning("Could not set system locale. Character rendering may be affected.")

    try:
        if args and args[0] == "--preview":
            start_mode = _parse_mode(args[1]) if len(args) > 1 else None
            curses.wrapper(run_preview, config, load_keymap(config), start_mode)
        elif args and args[0] == "--session":
            replay_session()
        elif args and args[0] in ("-h", "--help"):
            print(USAGE)
        elif len(args) <= 1:
            print_legend(_parse_mode(args[0] if args else None))
        else:
            print(USAGE, file=sys.stderr)
            sys.exit(2)
    except (ActionSpecError, ModeNameError) as e:
        print(f"whichkey: {e}", file=sys.stderr)
        sys.exit(2)
    except Exception:
        logger.critical("Unhandled exception at the top level.", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    start()
