# tests/conftest.py
"""Pytest configuration with shared fixtures for the whichkey tests.

Fixtures build small binding tables in the multiplexer's own key/action syntax,
mode snapshots, and a mocked ``PluginHost`` whose commands can be asserted on.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional
from unittest.mock import MagicMock

import pytest

from whichkey.core.Bindings import Action, BindingTable, InputMode, KeyChord, ModeInfo
from whichkey.core.Host import PluginHost, PluginIds


def make_table(bindings: Mapping[str, object]) -> BindingTable:
    """Builds a binding table from ``{"Ctrl p": "SwitchToMode Normal", "n": ["NewPane", ...]}``."""
    table = {}
    for key_spec, action_spec in bindings.items():
        specs = action_spec if isinstance(action_spec, list) else [action_spec]
        table[KeyChord.parse(key_spec)] = tuple(Action.parse(spec) for spec in specs)
    return table


@pytest.fixture
def table_factory() -> Callable[[Mapping[str, object]], BindingTable]:
    return make_table


@pytest.fixture
def pane_table() -> BindingTable:
    """A trimmed version of the default Pane-mode table, shared bindings included."""
    return make_table(
        {
            "Ctrl p": "SwitchToMode Normal",
            "Esc": "SwitchToMode Normal",
            "Enter": "SwitchToMode Normal",
            "h": "MoveFocus Left",
            "Left": "MoveFocus Left",
            "n": ["NewPane", "SwitchToMode Normal"],
            "d": ["NewPane Down", "SwitchToMode Normal"],
            "x": ["CloseFocus", "SwitchToMode Normal"],
            "f": ["ToggleFocusFullscreen", "SwitchToMode Normal"],
            "z": ["TogglePaneFrames", "SwitchToMode Normal"],
            "c": ["SwitchToMode RenamePane", "PaneNameInput 0"],
            "p": "SwitchFocus",
            "Ctrl t": "SwitchToMode Tab",
            "Ctrl q": "Quit",
        }
    )


@pytest.fixture
def keymap(pane_table: BindingTable) -> dict[InputMode, BindingTable]:
    return {
        InputMode.NORMAL: make_table({"Ctrl p": "SwitchToMode Pane", "Ctrl q": "Quit"}),
        InputMode.PANE: pane_table,
        InputMode.TAB: make_table(
            {
                "Ctrl t": "SwitchToMode Normal",
                "n": ["NewTab", "SwitchToMode Normal"],
                "l": "GoToNextTab",
                "h": "GoToPreviousTab",
            }
        ),
    }


@pytest.fixture
def mode_info_factory(keymap: dict[InputMode, BindingTable]) -> Callable[..., ModeInfo]:
    def factory(mode: InputMode, base_mode: Optional[InputMode] = None) -> ModeInfo:
        return ModeInfo(mode=mode, base_mode=base_mode, keybinds=keymap)

    return factory


@pytest.fixture
def mock_host() -> MagicMock:
    """A ``PluginHost`` double that records every command."""
    host = MagicMock(spec=PluginHost)
    host.get_plugin_ids.return_value = PluginIds(plugin_id=7, zellij_pid=4242)
    return host
