# whichkey/core/Bindings.py
"""Bindings.py
==================
Description:
-----------------------
Value types describing the multiplexer's keybinding table as the plugin sees it:
input modes, key chords, actions and the per-mode tables delivered with every
mode update.

All types here are immutable snapshots supplied by the host. The plugin never
constructs a mode locally; it only receives ``ModeInfo`` values and reads them.

Key Features:
- ``InputMode`` enumerates the host's fixed set of modes.
- ``KeyChord`` is a physical key plus a frozen set of modifiers (hashable, so it
  can key a ``BindingTable``).
- ``Action`` is a closed tagged union: an ``ActionKind`` tag with optional
  payload fields. Labelling, relevance and priority are separate total lookups
  over the tag (see ``Labels`` and ``SelectionEngine``).
- ``KeyChord.parse`` / ``Action.parse`` read the host's textual key and action
  syntax (``"Ctrl g"``, ``"NewPane Right"``) used by the built-in keymap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, NamedTuple, Optional, Sequence


class KeySpecError(ValueError):
    """Raised when a textual key specification cannot be decoded."""


class ModeNameError(ValueError):
    """Raised when a mode name matches no known input mode."""


class ActionSpecError(ValueError):
    """Raised when a textual action specification cannot be decoded."""


# ==================== Modes ====================
class InputMode(Enum):
    """The host's input modes. The value is the display name."""

    NORMAL = "Normal"
    LOCKED = "Locked"
    RESIZE = "Resize"
    PANE = "Pane"
    TAB = "Tab"
    SCROLL = "Scroll"
    ENTER_SEARCH = "EnterSearch"
    SEARCH = "Search"
    RENAME_TAB = "RenameTab"
    RENAME_PANE = "RenamePane"
    SESSION = "Session"
    MOVE = "Move"
    PROMPT = "Prompt"
    TMUX = "Tmux"

    @classmethod
    def from_name(cls, name: str) -> "InputMode":
        """Looks a mode up by display name, case-insensitively (``"pane"`` -> PANE)."""
        wanted = name.strip().lower()
        for mode in cls:
            if mode.value.lower() == wanted:
                return mode
        raise ModeNameError(f"Unknown input mode: {name!r}")


class Direction(Enum):
    LEFT = "Left"
    RIGHT = "Right"
    UP = "Up"
    DOWN = "Down"


class ResizeKind(Enum):
    INCREASE = "Increase"
    DECREASE = "Decrease"


# ==================== Keys ====================
class Modifier(Enum):
    CTRL = "Ctrl"
    ALT = "Alt"
    SHIFT = "Shift"
    SUPER = "Super"


class BareKey(Enum):
    """Physical keys. CHAR and F carry a payload on the owning ``KeyChord``."""

    CHAR = "Char"
    F = "F"
    ENTER = "Enter"
    ESC = "Esc"
    TAB = "Tab"
    BACKSPACE = "Backspace"
    DELETE = "Delete"
    INSERT = "Insert"
    HOME = "Home"
    END = "End"
    PAGE_UP = "PageUp"
    PAGE_DOWN = "PageDown"
    UP = "Up"
    DOWN = "Down"
    LEFT = "Left"
    RIGHT = "Right"
    CAPS_LOCK = "CapsLock"
    SCROLL_LOCK = "ScrollLock"
    NUM_LOCK = "NumLock"
    PRINT_SCREEN = "PrintScreen"
    PAUSE = "Pause"
    MENU = "Menu"


# Aliases accepted by KeyChord.parse in addition to the enum values.
_KEY_ALIASES: dict[str, BareKey] = {
    "del": BareKey.DELETE,
    "ins": BareKey.INSERT,
    "pgup": BareKey.PAGE_UP,
    "pgdn": BareKey.PAGE_DOWN,
    "escape": BareKey.ESC,
    "return": BareKey.ENTER,
}


@dataclass(frozen=True)
class KeyChord:
    """A key plus modifier flags, exactly as the host's binding table supplies it.

    Attributes:
        bare_key (BareKey): The physical key.
        char (Optional[str]): The character for ``BareKey.CHAR``.
        number (Optional[int]): The function-key number for ``BareKey.F``.
        modifiers (frozenset[Modifier]): Held modifiers.
    """

    bare_key: BareKey
    char: Optional[str] = None
    number: Optional[int] = None
    modifiers: frozenset[Modifier] = field(default_factory=frozenset)

    @classmethod
    def of_char(cls, char: str, *modifiers: Modifier) -> "KeyChord":
        return cls(BareKey.CHAR, char=char, modifiers=frozenset(modifiers))

    @classmethod
    def of_key(cls, bare_key: BareKey, *modifiers: Modifier) -> "KeyChord":
        return cls(bare_key, modifiers=frozenset(modifiers))

    def has_modifiers(self, *modifiers: Modifier) -> bool:
        """True when every given modifier is held (extra modifiers are allowed)."""
        return all(mod in self.modifiers for mod in modifiers)

    def is_char(self, char: str) -> bool:
        return self.bare_key is BareKey.CHAR and self.char == char

    @classmethod
    def parse(cls, spec: str) -> "KeyChord":
        """Decodes the host's key syntax: space-separated modifiers, then the key.

        Examples: ``"Ctrl g"``, ``"Alt Left"``, ``"F5"``, ``"Enter"``, ``"n"``,
        ``"Space"``.

        Raises:
            KeySpecError: If the string is empty, names an unknown modifier or key,
                or carries an out-of-range function-key number.
        """
        if not isinstance(spec, str) or not spec.strip():
            raise KeySpecError("Key specification cannot be empty.")

        tokens = spec.split()
        key_token = tokens[-1]
        modifiers: set[Modifier] = set()
        for token in tokens[:-1]:
            try:
                modifiers.add(Modifier(token.capitalize()))
            except ValueError as exc:
                raise KeySpecError(f"Unknown modifier {token!r} in {spec!r}") from exc

        if len(key_token) == 1:
            return cls(BareKey.CHAR, char=key_token, modifiers=frozenset(modifiers))

        lowered = key_token.lower()
        if lowered == "space":
            return cls(BareKey.CHAR, char=" ", modifiers=frozenset(modifiers))
        if lowered[0] == "f" and lowered[1:].isdigit():
            number = int(lowered[1:])
            if not 1 <= number <= 12:
                raise KeySpecError(f"Function key out of range in {spec!r}")
            return cls(BareKey.F, number=number, modifiers=frozenset(modifiers))

        bare_key = _KEY_ALIASES.get(lowered)
        if bare_key is None:
            for candidate in BareKey:
                if candidate.value.lower() == lowered and candidate not in (BareKey.CHAR, BareKey.F):
                    bare_key = candidate
                    break
        if bare_key is None:
            raise KeySpecError(f"Unknown key {key_token!r} in {spec!r}")
        return cls(bare_key, modifiers=frozenset(modifiers))


# ==================== Actions ====================
class ActionKind(Enum):
    """Closed set of action variants. Values are the host's variant names."""

    QUIT = "Quit"
    WRITE = "Write"
    WRITE_CHARS = "WriteChars"
    SWITCH_TO_MODE = "SwitchToMode"
    RESIZE = "Resize"
    FOCUS_NEXT_PANE = "FocusNextPane"
    FOCUS_PREVIOUS_PANE = "FocusPreviousPane"
    SWITCH_FOCUS = "SwitchFocus"
    MOVE_FOCUS = "MoveFocus"
    MOVE_FOCUS_OR_TAB = "MoveFocusOrTab"
    MOVE_PANE = "MovePane"
    MOVE_PANE_BACKWARDS = "MovePaneBackwards"
    DUMP_SCREEN = "DumpScreen"
    EDIT_SCROLLBACK = "EditScrollback"
    SCROLL_UP = "ScrollUp"
    SCROLL_DOWN = "ScrollDown"
    SCROLL_TO_BOTTOM = "ScrollToBottom"
    SCROLL_TO_TOP = "ScrollToTop"
    PAGE_SCROLL_UP = "PageScrollUp"
    PAGE_SCROLL_DOWN = "PageScrollDown"
    HALF_PAGE_SCROLL_UP = "HalfPageScrollUp"
    HALF_PAGE_SCROLL_DOWN = "HalfPageScrollDown"
    TOGGLE_FOCUS_FULLSCREEN = "ToggleFocusFullscreen"
    TOGGLE_PANE_FRAMES = "TogglePaneFrames"
    TOGGLE_ACTIVE_SYNC_TAB = "ToggleActiveSyncTab"
    NEW_PANE = "NewPane"
    TOGGLE_PANE_EMBED_OR_FLOATING = "TogglePaneEmbedOrFloating"
    TOGGLE_FLOATING_PANES = "ToggleFloatingPanes"
    CLOSE_FOCUS = "CloseFocus"
    PANE_NAME_INPUT = "PaneNameInput"
    UNDO_RENAME_PANE = "UndoRenamePane"
    NEW_TAB = "NewTab"
    GO_TO_NEXT_TAB = "GoToNextTab"
    GO_TO_PREVIOUS_TAB = "GoToPreviousTab"
    CLOSE_TAB = "CloseTab"
    GO_TO_TAB = "GoToTab"
    TOGGLE_TAB = "ToggleTab"
    TAB_NAME_INPUT = "TabNameInput"
    UNDO_RENAME_TAB = "UndoRenameTab"
    MOVE_TAB = "MoveTab"
    RUN = "Run"
    DETACH = "Detach"
    LAUNCH_OR_FOCUS_PLUGIN = "LaunchOrFocusPlugin"
    SEARCH_INPUT = "SearchInput"
    SEARCH = "Search"
    SEARCH_TOGGLE_OPTION = "SearchToggleOption"
    TOGGLE_MOUSE_MODE = "ToggleMouseMode"
    PREVIOUS_SWAP_LAYOUT = "PreviousSwapLayout"
    NEXT_SWAP_LAYOUT = "NextSwapLayout"
    BREAK_PANE = "BreakPane"
    BREAK_PANE_RIGHT = "BreakPaneRight"
    BREAK_PANE_LEFT = "BreakPaneLeft"
    COPY = "Copy"
    CLEAR = "Clear"
    NO_OP = "NoOp"


# Payload layout per variant for Action.parse. A trailing "?" marks an optional field.
# "data" consumes the remaining tokens as byte values, "text" and "command" / "name"
# consume the remaining tokens as one string.
_PAYLOAD_SCHEMA: dict[ActionKind, tuple[str, ...]] = {
    ActionKind.WRITE: ("data",),
    ActionKind.WRITE_CHARS: ("text",),
    ActionKind.SWITCH_TO_MODE: ("mode",),
    ActionKind.RESIZE: ("resize", "direction?"),
    ActionKind.MOVE_FOCUS: ("direction",),
    ActionKind.MOVE_FOCUS_OR_TAB: ("direction",),
    ActionKind.MOVE_PANE: ("direction?",),
    ActionKind.NEW_PANE: ("direction?",),
    ActionKind.GO_TO_TAB: ("index",),
    ActionKind.PANE_NAME_INPUT: ("data?",),
    ActionKind.TAB_NAME_INPUT: ("data?",),
    ActionKind.MOVE_TAB: ("direction",),
    ActionKind.RUN: ("command",),
    ActionKind.LAUNCH_OR_FOCUS_PLUGIN: ("name",),
    ActionKind.SEARCH_INPUT: ("data?",),
    ActionKind.SEARCH: ("direction",),
    ActionKind.SEARCH_TOGGLE_OPTION: ("name",),
}


@dataclass(frozen=True)
class Action:
    """One action variant with its payload. Unused payload fields stay ``None``."""

    kind: ActionKind
    mode: Optional[InputMode] = None
    direction: Optional[Direction] = None
    resize: Optional[ResizeKind] = None
    index: Optional[int] = None
    data: Optional[bytes] = None
    name: Optional[str] = None
    command: Optional[str] = None

    def debug_form(self) -> str:
        """Variant name followed by its payload, e.g. ``MoveFocusOrTab(Left)``."""
        args: list[str] = []
        if self.mode is not None:
            args.append(self.mode.value)
        if self.resize is not None:
            args.append(self.resize.value)
        if self.direction is not None:
            args.append(self.direction.value)
        if self.index is not None:
            args.append(str(self.index))
        if self.data is not None:
            args.append("[" + ", ".join(str(b) for b in self.data) + "]")
        if self.name is not None:
            args.append(repr(self.name))
        if self.command is not None:
            args.append(repr(self.command))
        if not args:
            return self.kind.value
        return f"{self.kind.value}({', '.join(args)})"

    @classmethod
    def parse(cls, spec: str) -> "Action":
        """Decodes the host's action syntax (``"SwitchToMode Normal"``, ``"Resize Increase Left"``,
        ``"GoToTab 3"``, ``"Write 10"``).

        Raises:
            ActionSpecError: On an unknown variant, a missing required payload or
                leftover tokens.
        """
        if not isinstance(spec, str) or not spec.strip():
            raise ActionSpecError("Action specification cannot be empty.")

        head, *rest = spec.split()
        kind = next((k for k in ActionKind if k.value.lower() == head.lower()), None)
        if kind is None:
            raise ActionSpecError(f"Unknown action {head!r}")

        payload: dict[str, object] = {}
        tokens = list(rest)
        for slot in _PAYLOAD_SCHEMA.get(kind, ()):
            optional = slot.endswith("?")
            slot = slot.rstrip("?")
            if not tokens:
                if optional:
                    continue
                raise ActionSpecError(f"{kind.value} requires a {slot} argument")
            try:
                if slot == "mode":
                    payload["mode"] = InputMode.from_name(tokens.pop(0))
                elif slot == "direction":
                    payload["direction"] = Direction(tokens.pop(0).capitalize())
                elif slot == "resize":
                    payload["resize"] = ResizeKind(tokens.pop(0).capitalize())
                elif slot == "index":
                    payload["index"] = int(tokens.pop(0))
                elif slot == "data":
                    payload["data"] = bytes(int(t) for t in tokens)
                    tokens = []
                elif slot == "text":
                    payload["data"] = " ".join(tokens).encode("utf-8")
                    tokens = []
                else:
                    payload[slot] = " ".join(tokens)
                    tokens = []
            except ValueError as exc:
                raise ActionSpecError(f"Bad {slot} argument in {spec!r}: {exc}") from exc

        if tokens:
            raise ActionSpecError(f"Unexpected arguments {tokens!r} in {spec!r}")
        return cls(kind, **payload)  # type: ignore[arg-type]


# ==================== Tables ====================
BindingTable = Mapping[KeyChord, Sequence[Action]]


@dataclass(frozen=True)
class ModeInfo:
    """Snapshot delivered by the host on every mode change.

    ``base_mode`` is the host's explicit at-rest mode; when it is ``None`` the
    base mode is Normal.
    """

    mode: InputMode = InputMode.NORMAL
    base_mode: Optional[InputMode] = None
    keybinds: Mapping[InputMode, BindingTable] = field(default_factory=dict)

    def base(self) -> InputMode:
        return self.base_mode if self.base_mode is not None else InputMode.NORMAL

    def is_base_mode(self) -> bool:
        return self.mode == self.base()

    def mode_keybinds(self) -> BindingTable:
        table = self.keybinds.get(self.mode)
        if table is None:
            logging.debug("ModeInfo: no keybinds supplied for %s mode", self.mode.value)
            return {}
        return table


@dataclass(frozen=True)
class TabInfo:
    position: int
    active: bool
    display_area_rows: int = 0
    display_area_columns: int = 0


class RankedEntry(NamedTuple):
    """One legend row: ordering priority, key label, action label and category header."""

    priority: int
    key: str
    action: str
    category: Optional[str]
