# whichkey/core/Labels.py
"""Labels.py
==================
Lookup tables turning key chords and actions into the short strings shown in
the legend. The strings are externally visible, so they are fixed here in one
place and covered by contract tests.

Functions:
    format_key(chord) -> str
    format_action(actions, base_mode) -> str
"""

from typing import Sequence

from .Bindings import Action, ActionKind, BareKey, InputMode, KeyChord, Modifier

# Modifier prefixes, in display order.
MODIFIER_PREFIXES: tuple[tuple[Modifier, str], ...] = (
    (Modifier.CTRL, "Ctrl+"),
    (Modifier.ALT, "Alt+"),
    (Modifier.SHIFT, "Shift+"),
)

KEY_SYMBOLS: dict[BareKey, str] = {
    BareKey.ENTER: "Enter",
    BareKey.ESC: "Esc",
    BareKey.TAB: "Tab",
    BareKey.BACKSPACE: "Backspace",
    BareKey.DELETE: "Del",
    BareKey.INSERT: "Ins",
    BareKey.HOME: "Home",
    BareKey.END: "End",
    BareKey.PAGE_UP: "PgUp",
    BareKey.PAGE_DOWN: "PgDn",
    BareKey.UP: "↑",
    BareKey.DOWN: "↓",
    BareKey.LEFT: "←",
    BareKey.RIGHT: "→",
}

# Variants whose label does not depend on the payload.
FIXED_ACTION_LABELS: dict[ActionKind, str] = {
    ActionKind.QUIT: "Quit Zellij",
    ActionKind.CLOSE_FOCUS: "Close pane",
    ActionKind.NEW_TAB: "New tab",
    ActionKind.GO_TO_NEXT_TAB: "Next tab",
    ActionKind.GO_TO_PREVIOUS_TAB: "Prev tab",
    ActionKind.CLOSE_TAB: "Close tab",
    ActionKind.TOGGLE_FLOATING_PANES: "Toggle floating",
    ActionKind.TOGGLE_PANE_FRAMES: "Toggle frames",
    ActionKind.TOGGLE_FOCUS_FULLSCREEN: "Fullscreen",
    ActionKind.PANE_NAME_INPUT: "Rename pane",
    ActionKind.TAB_NAME_INPUT: "Rename tab",
    ActionKind.UNDO_RENAME_PANE: "Undo rename",
    ActionKind.UNDO_RENAME_TAB: "Undo rename",
    ActionKind.RUN: "Run",
}

BACK_LABEL = "← Back to Normal"
SWITCH_MODE_PREFIX = "→"
UNKNOWN_LABEL = "Unknown"


def format_key(chord: KeyChord) -> str:
    """Return the badge text for a chord: ``Ctrl+``/``Alt+``/``Shift+`` prefixes then the key.

    Keys without a symbol (CapsLock, Menu, ...) render as ``?``.
    """
    prefix = "".join(text for mod, text in MODIFIER_PREFIXES if chord.has_modifiers(mod))

    if chord.bare_key is BareKey.CHAR:
        key = chord.char or "?"
    elif chord.bare_key is BareKey.F:
        key = f"F{chord.number}"
    else:
        key = KEY_SYMBOLS.get(chord.bare_key, "?")
    return prefix + key


def format_action(actions: Sequence[Action], base_mode: InputMode) -> str:
    """Return the legend text for a binding, looking only at its first action.

    A switch to ``base_mode`` reads as the "back" label and a write of a single
    newline reads as ``Enter``. Variants with no entry in the table fall back to
    their debug form.
    """
    if not actions:
        return UNKNOWN_LABEL

    action = actions[0]
    kind = action.kind

    fixed = FIXED_ACTION_LABELS.get(kind)
    if fixed is not None:
        return fixed

    if kind is ActionKind.SWITCH_TO_MODE:
        if action.mode == base_mode:
            return BACK_LABEL
        target = action.mode.value if action.mode is not None else "?"
        return f"{SWITCH_MODE_PREFIX} {target} mode"
    if kind is ActionKind.RESIZE:
        return f"Resize {action.resize.value if action.resize else '?'}"
    if kind is ActionKind.MOVE_FOCUS:
        return f"Focus {action.direction.value if action.direction else '?'}"
    if kind is ActionKind.NEW_PANE:
        if action.direction is not None:
            return f"New pane {action.direction.value}"
        return "New pane"
    if kind is ActionKind.GO_TO_TAB:
        return f"Tab {action.index}"
    if kind is ActionKind.WRITE:
        if action.data == b"\n":
            return "Enter"
        return "Write"

    return action.debug_form()
