# whichkey/utils/utils.py
"""
whichkey.utils.utils
====================

Configuration helpers for whichkey.

Key functionalities include:
- Embedded defaults: `DEFAULT_CONFIG` mirrors the shipped configuration, including
  the multiplexer's default keymap, so the tool always runs even when no user file
  exists or the file is broken.
- User configuration: `~/.config/whichkey/config.toml` is deep-merged over the
  defaults on load.
- Keymap decoding: `load_keymap` turns the `[keybinds]` section into per-mode
  binding tables, skipping entries that do not parse.
- Small helpers: `deep_merge` and `hex_to_xterm`.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from whichkey.core.Bindings import Action, BindingTable, InputMode, KeyChord

logger = logging.getLogger("whichkey")

CONFIG_DIR_NAME = "whichkey"

ENV_TEMPLATE = """# Environment overrides for whichkey
# Set to 1 to write every key event the plugin sees to keytrace.log
WHICHKEY_KEYTRACE=
"""

# Key and action strings use the multiplexer's own syntax ("Ctrl p", "NewPane Down").
# A value may be one action string or a list of them; only the first is ever shown.
# The "shared" table is added to every mode except Locked, without overriding
# chords the mode binds itself.
DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {
        "file_level": "DEBUG", "console_level": "WARNING",
        "log_to_console": True, "separate_error_log": False,
    },
    "plugin": {
        "auto_show_on_mode_change": True, "hide_in_base_mode": True, "max_lines": 20,
    },
    "colors": {
        "fg": 252, "key_fg": 252, "key_bg": 240, "category": 245, "back": 114, "switch": 180,
    },
    "keybinds": {
        "shared": {
            "Ctrl g": "SwitchToMode Locked", "Ctrl p": "SwitchToMode Pane",
            "Ctrl t": "SwitchToMode Tab", "Ctrl n": "SwitchToMode Resize",
            "Ctrl h": "SwitchToMode Move", "Ctrl s": "SwitchToMode Scroll",
            "Ctrl o": "SwitchToMode Session", "Ctrl q": "Quit",
            "Alt n": "NewPane", "Alt f": "ToggleFloatingPanes",
            "Alt h": "MoveFocusOrTab Left", "Alt l": "MoveFocusOrTab Right",
            "Alt j": "MoveFocus Down", "Alt k": "MoveFocus Up",
            "Alt =": "Resize Increase", "Alt -": "Resize Decrease",
            "Alt [": "PreviousSwapLayout", "Alt ]": "NextSwapLayout",
        },
        "locked": {"Ctrl g": "SwitchToMode Normal"},
        "pane": {
            "Ctrl p": "SwitchToMode Normal", "Esc": "SwitchToMode Normal",
            "Enter": "SwitchToMode Normal",
            "h": "MoveFocus Left", "Left": "MoveFocus Left",
            "l": "MoveFocus Right", "Right": "MoveFocus Right",
            "j": "MoveFocus Down", "Down": "MoveFocus Down",
            "k": "MoveFocus Up", "Up": "MoveFocus Up",
            "p": "SwitchFocus", "n": ["NewPane", "SwitchToMode Normal"],
            "d": ["NewPane Down", "SwitchToMode Normal"],
            "r": ["NewPane Right", "SwitchToMode Normal"],
            "x": ["CloseFocus", "SwitchToMode Normal"],
            "f": ["ToggleFocusFullscreen", "SwitchToMode Normal"],
            "z": ["TogglePaneFrames", "SwitchToMode Normal"],
            "w": ["ToggleFloatingPanes", "SwitchToMode Normal"],
            "e": ["TogglePaneEmbedOrFloating", "SwitchToMode Normal"],
            "c": ["SwitchToMode RenamePane", "PaneNameInput 0"],
        },
        "tab": {
            "Ctrl t": "SwitchToMode Normal", "Esc": "SwitchToMode Normal",
            "Enter": "SwitchToMode Normal",
            "r": ["SwitchToMode RenameTab", "TabNameInput 0"],
            "h": "GoToPreviousTab", "Left": "GoToPreviousTab",
            "k": "GoToPreviousTab", "Up": "GoToPreviousTab",
            "l": "GoToNextTab", "Right": "GoToNextTab",
            "j": "GoToNextTab", "Down": "GoToNextTab",
            "n": ["NewTab", "SwitchToMode Normal"],
            "x": ["CloseTab", "SwitchToMode Normal"],
            "s": ["ToggleActiveSyncTab", "SwitchToMode Normal"],
            "b": ["BreakPane", "SwitchToMode Normal"],
            "]": ["BreakPaneRight", "SwitchToMode Normal"],
            "[": ["BreakPaneLeft", "SwitchToMode Normal"],
            "1": ["GoToTab 1", "SwitchToMode Normal"], "2": ["GoToTab 2", "SwitchToMode Normal"],
            "3": ["GoToTab 3", "SwitchToMode Normal"], "4": ["GoToTab 4", "SwitchToMode Normal"],
            "5": ["GoToTab 5", "SwitchToMode Normal"], "6": ["GoToTab 6", "SwitchToMode Normal"],
            "7": ["GoToTab 7", "SwitchToMode Normal"], "8": ["GoToTab 8", "SwitchToMode Normal"],
            "9": ["GoToTab 9", "SwitchToMode Normal"],
            "Tab": "ToggleTab",
        },
        "resize": {
            "Ctrl n": "SwitchToMode Normal", "Esc": "SwitchToMode Normal",
            "Enter": "SwitchToMode Normal",
            "h": "Resize Increase Left", "Left": "Resize Increase Left",
            "j": "Resize Increase Down", "Down": "Resize Increase Down",
            "k": "Resize Increase Up", "Up": "Resize Increase Up",
            "l": "Resize Increase Right", "Right": "Resize Increase Right",
            "H": "Resize Decrease Left", "J": "Resize Decrease Down",
            "K": "Resize Decrease Up", "L": "Resize Decrease Right",
            "=": "Resize Increase", "+": "Resize Increase", "-": "Resize Decrease",
        },
        "move": {
            "Ctrl h": "SwitchToMode Normal", "Esc": "SwitchToMode Normal",
            "Enter": "SwitchToMode Normal",
            "n": "MovePane", "Tab": "MovePane", "p": "MovePaneBackwards",
            "h": "MovePane Left", "Left": "MovePane Left",
            "j": "MovePane Down", "Down": "MovePane Down",
            "k": "MovePane Up", "Up": "MovePane Up",
            "l": "MovePane Right", "Right": "MovePane Right",
        },
        "scroll": {
            "Ctrl s": "SwitchToMode Normal", "Esc": "SwitchToMode Normal",
            "Enter": "SwitchToMode Normal",
            "e": ["EditScrollback", "SwitchToMode Normal"],
            "s": ["SwitchToMode EnterSearch", "SearchInput 0"],
            "Ctrl c": ["ScrollToBottom", "SwitchToMode Normal"],
            "j": "ScrollDown", "Down": "ScrollDown", "k": "ScrollUp", "Up": "ScrollUp",
            "Ctrl f": "PageScrollDown", "PageDown": "PageScrollDown",
            "Right": "PageScrollDown", "l": "PageScrollDown",
            "Ctrl b": "PageScrollUp", "PageUp": "PageScrollUp",
            "Left": "PageScrollUp", "h": "PageScrollUp",
            "d": "HalfPageScrollDown", "u": "HalfPageScrollUp",
        },
        "session": {
            "Ctrl o": "SwitchToMode Normal", "Esc": "SwitchToMode Normal",
            "Enter": "SwitchToMode Normal",
            "Ctrl s": "SwitchToMode Scroll", "d": "Detach",
            "w": ["LaunchOrFocusPlugin zellij:session-manager", "SwitchToMode Normal"],
        },
        "normal": {},
    },
}


# --- Helper Functions ---

def user_config_dir() -> Path:
    return Path.home() / ".config" / CONFIG_DIR_NAME


def ensure_user_config_exists() -> None:
    """Creates `~/.config/whichkey` and an `.env` template if they are missing."""
    try:
        config_dir = user_config_dir()
        config_dir.mkdir(parents=True, exist_ok=True)

        user_env_path = config_dir / ".env"
        if not user_env_path.exists():
            user_env_path.write_text(ENV_TEMPLATE, encoding="utf-8")
            logger.info(f"Created user .env template at: {user_env_path}")
    except OSError as e:
        logger.error(f"Could not create user configuration directory: {e}")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Loads the embedded defaults and merges the user's TOML file over them.

    Args:
        config_path: Explicit file to merge. Defaults to `~/.config/whichkey/config.toml`,
            which is optional.

    Returns:
        The merged configuration. A missing or unparsable file leaves the defaults
        in place; this function never raises.
    """
    final_config = copy.deepcopy(DEFAULT_CONFIG)
    logger.debug("Loaded embedded default configuration.")

    if config_path is None:
        ensure_user_config_exists()
        config_path = user_config_dir() / "config.toml"

    if config_path.is_file():
        try:
            user_config = toml.load(config_path)
            final_config = deep_merge(final_config, user_config)
            logger.info(f"Successfully loaded and merged user config from {config_path}")
        except (toml.TomlDecodeError, OSError) as e:
            logger.error(f"Could not parse user config '{config_path}': {e}. Using defaults.")

    return final_config


def load_keymap(config: Dict[str, Any]) -> Dict[InputMode, BindingTable]:
    """
    Decodes the `[keybinds]` section into one binding table per input mode.

    Each binding whose key or actions fail to parse is logged and skipped; the
    rest of the keymap is still returned.

    Returns:
        dict[InputMode, BindingTable]: keyed by mode; chords map to their action tuples.
    """

    section = config.get("keybinds", {})
    if not isinstance(section, dict):
        logger.warning("Ignoring malformed [keybinds] section: %r", section)
        return {}

    def decode(table: Any, mode_name: str) -> Dict[KeyChord, tuple[Action, ...]]:
        decoded: Dict[KeyChord, tuple[Action, ...]] = {}
        if not isinstance(table, dict):
            logger.warning("Keybinds for %r are not a table; skipping.", mode_name)
            return decoded
        for key_spec, action_spec in table.items():
            specs = action_spec if isinstance(action_spec, list) else [action_spec]
            try:
                chord = KeyChord.parse(key_spec)
                actions = tuple(Action.parse(str(spec)) for spec in specs)
            except ValueError as e:
                logger.error(
                    "Error parsing keybinding %r -> %r in %s mode: %s. It will be ignored.",
                    key_spec, action_spec, mode_name, e,
                )
                continue
            decoded[chord] = actions
        return decoded

    shared = decode(section.get("shared", {}), "shared")
    keymap: Dict[InputMode, BindingTable] = {}
    for mode_name, table in section.items():
        if mode_name == "shared":
            continue
        try:
            mode = InputMode.from_name(mode_name)
        except ValueError:
            logger.error("Unknown mode %r in [keybinds]; skipping.", mode_name)
            continue
        bindings = decode(table, mode_name)
        if mode is not InputMode.LOCKED:
            for chord, actions in shared.items():
                bindings.setdefault(chord, actions)
        keymap[mode] = bindings

    logger.debug(
        "Loaded keymap: %s", {mode.value: len(table) for mode, table in keymap.items()}
    )
    return keymap


def deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Recursively merges the `override` dictionary into the `base` dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def hex_to_xterm(hex_color: str) -> int:
    """
    Converts a hexadecimal color string to the nearest xterm-256 color index.
    """
    hex_color = hex_color.lstrip("#")
    if len(hex_color) != 6:
        return 255
    try:
        r, g, b = (int(hex_color[i:i+2], 16) for i in (0, 2, 4))
    except ValueError:
        return 255

    if r == g == b:
        if r < 8: return 16
        if r > 248: return 231
        return round(((r - 8) / 247) * 24) + 232

    return int(
        16
        + (36 * round(r / 255 * 5))
        + (6 * round(g / 255 * 5))
        + round(b / 255 * 5)
    )
