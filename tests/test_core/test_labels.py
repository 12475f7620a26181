# tests/test_core/test_labels.py
"""Contract tests for the legend strings produced by `whichkey.core.Labels`.

The key badges and action labels are visible to users, so the exact output is
pinned here.
"""

import pytest

from whichkey.core.Bindings import Action, BareKey, InputMode, KeyChord, Modifier
from whichkey.core.Labels import BACK_LABEL, UNKNOWN_LABEL, format_action, format_key


@pytest.mark.parametrize(
    "chord, expected",
    [
        (KeyChord.of_char("g", Modifier.CTRL), "Ctrl+g"),
        (KeyChord.of_char("n", Modifier.ALT), "Alt+n"),
        (KeyChord.of_char("x", Modifier.SHIFT, Modifier.ALT, Modifier.CTRL), "Ctrl+Alt+Shift+x"),
        (KeyChord.of_key(BareKey.ENTER), "Enter"),
        (KeyChord.of_key(BareKey.ESC), "Esc"),
        (KeyChord.of_key(BareKey.DELETE), "Del"),
        (KeyChord.of_key(BareKey.PAGE_DOWN), "PgDn"),
        (KeyChord.of_key(BareKey.LEFT, Modifier.ALT), "Alt+←"),
        (KeyChord(BareKey.F, number=5), "F5"),
        (KeyChord.of_key(BareKey.CAPS_LOCK), "?"),
    ],
)
def test_format_key(chord: KeyChord, expected: str) -> None:
    assert format_key(chord) == expected


def test_super_modifier_has_no_prefix() -> None:
    assert format_key(KeyChord.of_char("a", Modifier.SUPER)) == "a"


@pytest.mark.parametrize(
    "spec, expected",
    [
        ("Quit", "Quit Zellij"),
        ("CloseFocus", "Close pane"),
        ("NewTab", "New tab"),
        ("GoToNextTab", "Next tab"),
        ("GoToPreviousTab", "Prev tab"),
        ("CloseTab", "Close tab"),
        ("ToggleFloatingPanes", "Toggle floating"),
        ("TogglePaneFrames", "Toggle frames"),
        ("ToggleFocusFullscreen", "Fullscreen"),
        ("PaneNameInput 0", "Rename pane"),
        ("TabNameInput 0", "Rename tab"),
        ("UndoRenamePane", "Undo rename"),
        ("Run htop", "Run"),
        ("Resize Increase Left", "Resize Increase"),
        ("MoveFocus Up", "Focus Up"),
        ("NewPane", "New pane"),
        ("NewPane Right", "New pane Right"),
        ("GoToTab 4", "Tab 4"),
        ("Write 10", "Enter"),
        ("Write 27 91", "Write"),
        ("MoveFocusOrTab Left", "MoveFocusOrTab(Left)"),
        ("Detach", "Detach"),
    ],
)
def test_format_action(spec: str, expected: str) -> None:
    assert format_action((Action.parse(spec),), InputMode.NORMAL) == expected


class TestModeSwitchLabels:
    def test_switch_to_base_is_back(self) -> None:
        assert format_action((Action.parse("SwitchToMode Normal"),), InputMode.NORMAL) == BACK_LABEL

    def test_switch_to_other_mode(self) -> None:
        assert format_action((Action.parse("SwitchToMode Tab"),), InputMode.NORMAL) == "→ Tab mode"

    def test_back_label_text_is_fixed_for_other_base_modes(self) -> None:
        """The back label names Normal even when the base mode is Locked."""
        assert format_action((Action.parse("SwitchToMode Locked"),), InputMode.LOCKED) == "← Back to Normal"
        assert format_action((Action.parse("SwitchToMode Normal"),), InputMode.LOCKED) == "→ Normal mode"


def test_only_first_action_is_labelled() -> None:
    actions = (Action.parse("NewPane"), Action.parse("SwitchToMode Normal"))
    assert format_action(actions, InputMode.NORMAL) == "New pane"


def test_empty_sequence() -> None:
    assert format_action((), InputMode.NORMAL) == UNKNOWN_LABEL
