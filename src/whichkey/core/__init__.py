# src/whichkey/core/__init__.py
"""Public facade for whichkey.core: re-export main classes from CamelCase modules.

Keeps the per-concern file names (Bindings.py, SelectionEngine.py, ...),
but provides flat imports for convenience and stability.
"""

# Re-export classes/symbols from CamelCase modules
from .Bindings import Action, ActionKind, InputMode, KeyChord, ModeInfo, RankedEntry, TabInfo  # noqa: F401
from .Host import MessageToPlugin, PluginHost  # noqa: F401
from .Lifecycle import ControllerInstance, OverlayInstance, PluginConfig, WhichKeyPlugin  # noqa: F401
from .SelectionEngine import select_bindings  # noqa: F401
from .Session import LocalSession  # noqa: F401


__all__ = [
    "Action",
    "ActionKind",
    "InputMode",
    "KeyChord",
    "ModeInfo",
    "RankedEntry",
    "TabInfo",
    "MessageToPlugin",
    "PluginHost",
    "PluginConfig",
    "ControllerInstance",
    "OverlayInstance",
    "WhichKeyPlugin",
    "select_bindings",
    "LocalSession",
]
