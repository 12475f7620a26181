# whichkey/core/SelectionEngine.py
"""SelectionEngine Module
========================
This module decides which bindings of the current mode are worth showing, in
what order, and under which category header.

The engine is a pure function of (current mode, base mode, binding table). It
holds no state and performs no I/O apart from DEBUG logging, so the same inputs
always produce the same list.

Pipeline:
---------
1. Relevance filter: keep a binding when its first action is mode-specific
   (per-mode allow-list) or shared (switch to the base mode, quit).
2. Priority: dense low bands for mode-specific actions, 50/51 for the shared
   ones, a sentinel above every real band for anything else.
3. Category: priority bands map onto legend headers.
4. Sort by (priority, key label).
5. Deduplicate by action label, keeping the first entry.

Only the first action of a binding is considered. Bindings that chain several
actions are labelled and ranked by what they do first.
"""

import logging
from typing import Optional, Sequence

from .Bindings import Action, ActionKind, BindingTable, InputMode, RankedEntry
from .Labels import format_action, format_key

PRIORITY_SENTINEL = 100
PRIORITY_EMPTY = 255
PRIORITY_BACK_TO_BASE = 50
PRIORITY_QUIT = 51
PRIORITY_OTHER_MODE_SPECIFIC = 15

# Per-mode allow-lists. ``None`` means every action belongs to the mode.
MODE_SPECIFIC_ACTIONS: dict[InputMode, Optional[frozenset[ActionKind]]] = {
    InputMode.PANE: frozenset(
        {
            ActionKind.NEW_PANE,
            ActionKind.CLOSE_FOCUS,
            ActionKind.MOVE_FOCUS,
            ActionKind.RESIZE,
            ActionKind.TOGGLE_FOCUS_FULLSCREEN,
            ActionKind.TOGGLE_FLOATING_PANES,
            ActionKind.TOGGLE_PANE_FRAMES,
            ActionKind.PANE_NAME_INPUT,
        }
    ),
    InputMode.TAB: frozenset(
        {
            ActionKind.NEW_TAB,
            ActionKind.CLOSE_TAB,
            ActionKind.GO_TO_TAB,
            ActionKind.GO_TO_NEXT_TAB,
            ActionKind.GO_TO_PREVIOUS_TAB,
            ActionKind.TAB_NAME_INPUT,
            ActionKind.UNDO_RENAME_TAB,
        }
    ),
    InputMode.RESIZE: frozenset({ActionKind.RESIZE}),
    InputMode.MOVE: frozenset({ActionKind.MOVE_FOCUS}),
    InputMode.SCROLL: None,
    InputMode.SESSION: None,
}

# Priority bands for mode-specific actions. Kinds missing here rank at
# PRIORITY_OTHER_MODE_SPECIFIC.
MODE_SPECIFIC_PRIORITY: dict[ActionKind, int] = {
    ActionKind.NEW_PANE: 10,
    ActionKind.NEW_TAB: 10,
    ActionKind.CLOSE_FOCUS: 11,
    ActionKind.CLOSE_TAB: 11,
    ActionKind.MOVE_FOCUS: 12,
    ActionKind.RESIZE: 13,
    ActionKind.GO_TO_NEXT_TAB: 20,
    ActionKind.GO_TO_PREVIOUS_TAB: 20,
    ActionKind.GO_TO_TAB: 20,
    ActionKind.TOGGLE_FOCUS_FULLSCREEN: 30,
    ActionKind.TOGGLE_FLOATING_PANES: 30,
    ActionKind.TOGGLE_PANE_FRAMES: 30,
    ActionKind.PANE_NAME_INPUT: 35,
    ActionKind.TAB_NAME_INPUT: 35,
}

MODE_CATEGORY_HEADERS: dict[InputMode, str] = {
    InputMode.PANE: "PANE ACTIONS",
    InputMode.TAB: "TAB ACTIONS",
    InputMode.RESIZE: "RESIZE ACTIONS",
    InputMode.MOVE: "MOVE ACTIONS",
}
DEFAULT_MODE_CATEGORY = "ACTIONS"


def is_mode_specific(action: Action, mode: InputMode) -> bool:
    """True when ``action`` belongs to ``mode``'s allow-list."""
    if mode not in MODE_SPECIFIC_ACTIONS:
        return False
    allowed = MODE_SPECIFIC_ACTIONS[mode]
    return allowed is None or action.kind in allowed


def is_shared(action: Action, base_mode: InputMode) -> bool:
    """True for the actions shown in every mode: back to base, quit."""
    if action.kind is ActionKind.SWITCH_TO_MODE:
        return action.mode == base_mode
    return action.kind is ActionKind.QUIT


def should_show(actions: Sequence[Action], mode: InputMode, base_mode: InputMode) -> bool:
    if not actions:
        return False
    action = actions[0]
    return is_mode_specific(action, mode) or is_shared(action, base_mode)


def action_priority(actions: Sequence[Action], mode: InputMode, base_mode: InputMode) -> int:
    """Return the ordering priority of a binding; lower sorts first.

    Mode-specific actions always outrank the shared ones, even when the action
    would also count as shared (in Scroll mode a switch back to base is a
    mode-specific action).
    """
    if not actions:
        return PRIORITY_EMPTY

    action = actions[0]
    if is_mode_specific(action, mode):
        return MODE_SPECIFIC_PRIORITY.get(action.kind, PRIORITY_OTHER_MODE_SPECIFIC)
    if action.kind is ActionKind.SWITCH_TO_MODE and action.mode == base_mode:
        return PRIORITY_BACK_TO_BASE
    if action.kind is ActionKind.QUIT:
        return PRIORITY_QUIT
    return PRIORITY_SENTINEL


def priority_category(priority: int, mode: InputMode) -> Optional[str]:
    """Map a priority onto its legend header; ``None`` keeps the previous header."""
    if 10 <= priority <= 19:
        return MODE_CATEGORY_HEADERS.get(mode, DEFAULT_MODE_CATEGORY)
    if 20 <= priority <= 29:
        return "NAVIGATION"
    if 30 <= priority <= 39:
        return "TOGGLES"
    if 50 <= priority <= 59:
        return "SHARED"
    return None


def select_bindings(mode: InputMode, base_mode: InputMode, table: BindingTable) -> list[RankedEntry]:
    """Return the ranked, deduplicated legend entries for ``mode``.

    Args:
        mode: The host's current input mode.
        base_mode: The host's at-rest mode (Normal unless overridden).
        table: The binding table of the current mode.

    Returns:
        list[RankedEntry]: Sorted by ``(priority, key)``; no two entries share an
        action label. An empty or fully filtered table gives an empty list.
    """
    logging.debug("SelectionEngine: %d bindings for %s mode", len(table), mode.value)

    entries: list[RankedEntry] = []
    for chord, actions in table.items():
        key_label = format_key(chord)
        action_label = format_action(actions, base_mode)
        priority = action_priority(actions, mode, base_mode)
        shown = should_show(actions, mode, base_mode)
        logging.debug(
            "  %s -> %s (priority=%d, show=%s)", key_label, action_label, priority, shown
        )
        if shown:
            entries.append(
                RankedEntry(priority, key_label, action_label, priority_category(priority, mode))
            )

    entries.sort(key=lambda entry: (entry.priority, entry.key))

    seen_actions: set[str] = set()
    selected: list[RankedEntry] = []
    for entry in entries:
        if entry.action in seen_actions:
            continue
        seen_actions.add(entry.action)
        selected.append(entry)

    logging.debug(
        "SelectionEngine: %d shown after filtering, %d after dedup", len(entries), len(selected)
    )
    return selected
