# whichkey/core/Host.py
"""Host.py
==================
Description:
-----------------------
The boundary between the plugin and the terminal multiplexer hosting it.

The host delivers events (mode changes, tab layout, key presses, permission
results, inter-plugin messages) and accepts a small set of commands. Both sides
are modelled here so the plugin logic can run against any implementation of
``PluginHost``: the in-process ``LocalSession`` harness, a test mock, or a real
host bridge.

Contents:
- Event dataclasses and the ``EventType`` / ``PermissionType`` enums.
- ``FloatingPaneCoordinates`` and ``MessageToPlugin``: the instantiation request
  the controller sends to launch an overlay instance.
- ``PluginHost``: the abstract command surface.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, NamedTuple, Optional, Union

from .Bindings import KeyChord, ModeInfo, TabInfo
from .Labels import format_key

OWN_URL = "zellij:OWN_URL"


class EventType(Enum):
    MODE_UPDATE = "ModeUpdate"
    TAB_UPDATE = "TabUpdate"
    KEY = "Key"
    PERMISSION_REQUEST_RESULT = "PermissionRequestResult"
    CUSTOM_MESSAGE = "CustomMessage"


class PermissionType(Enum):
    READ_APPLICATION_STATE = "ReadApplicationState"
    CHANGE_APPLICATION_STATE = "ChangeApplicationState"
    MESSAGE_AND_LAUNCH_OTHER_PLUGINS = "MessageAndLaunchOtherPlugins"


# ==================== Events ====================
@dataclass(frozen=True)
class ModeUpdate:
    mode_info: ModeInfo
    event_type = EventType.MODE_UPDATE


@dataclass(frozen=True)
class TabUpdate:
    tabs: tuple[TabInfo, ...]
    event_type = EventType.TAB_UPDATE


@dataclass(frozen=True)
class Key:
    chord: KeyChord
    event_type = EventType.KEY


@dataclass(frozen=True)
class PermissionRequestResult:
    granted: bool
    event_type = EventType.PERMISSION_REQUEST_RESULT


@dataclass(frozen=True)
class CustomMessage:
    """A named message piped to this instance by another plugin instance."""

    name: str
    payload: str = ""
    event_type = EventType.CUSTOM_MESSAGE


Event = Union[ModeUpdate, TabUpdate, Key, PermissionRequestResult, CustomMessage]


# ==================== Instantiation message ====================
@dataclass(frozen=True)
class FloatingPaneCoordinates:
    """Floating-pane placement. ``None`` fields leave the choice to the host."""

    x: Optional[int] = None
    y: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    pinned: Optional[bool] = None

    @classmethod
    def from_strings(
        cls,
        x: Optional[str],
        y: Optional[str],
        width: Optional[str],
        height: Optional[str],
        pinned: Optional[bool],
    ) -> "FloatingPaneCoordinates":
        """Builds a placement from stringified integers.

        If any supplied field fails to parse, the whole placement falls back to the
        host's defaults (all ``None``) rather than raising.
        """
        values: dict[str, Optional[int]] = {}
        for name, raw in (("x", x), ("y", y), ("width", width), ("height", height)):
            if raw is None:
                values[name] = None
                continue
            try:
                values[name] = int(str(raw).strip())
            except ValueError:
                logging.warning(
                    "FloatingPaneCoordinates: bad %s value %r, using host defaults", name, raw
                )
                return cls()
        return cls(pinned=pinned, **values)


class PluginIds(NamedTuple):
    plugin_id: int
    zellij_pid: int


@dataclass(frozen=True)
class MessageToPlugin:
    """Inter-plugin message asking the host to launch (or message) a plugin instance.

    Built with the ``with_*`` methods, each of which returns an updated copy.
    """

    message_name: str
    plugin_url: Optional[str] = None
    plugin_config: Mapping[str, str] = field(default_factory=dict)
    floating_pane_coordinates: Optional[FloatingPaneCoordinates] = None
    pane_title: Optional[str] = None

    def with_plugin_url(self, url: str) -> "MessageToPlugin":
        return replace(self, plugin_url=url)

    def with_plugin_config(self, config: Mapping[str, str]) -> "MessageToPlugin":
        return replace(self, plugin_config=dict(config))

    def with_floating_pane_coordinates(self, coordinates: FloatingPaneCoordinates) -> "MessageToPlugin":
        return replace(self, floating_pane_coordinates=coordinates)

    def new_plugin_instance_should_have_pane_title(self, title: str) -> "MessageToPlugin":
        return replace(self, pane_title=title)


# ==================== Command surface ====================
class PluginHost(ABC):
    """Commands a plugin instance may issue to its host.

    Every command is fire-and-forget from the plugin's point of view: results, if
    any, come back later as events.
    """

    @abstractmethod
    def request_permission(self, permissions: Iterable[PermissionType]) -> None: ...

    @abstractmethod
    def subscribe(self, event_types: Iterable[EventType]) -> None: ...

    @abstractmethod
    def set_selectable(self, selectable: bool) -> None: ...

    @abstractmethod
    def close_self(self) -> None: ...

    @abstractmethod
    def pipe_message_to_plugin(self, message: MessageToPlugin) -> None: ...

    @abstractmethod
    def get_plugin_ids(self) -> PluginIds: ...


def describe_event(event: Any) -> str:
    """Short one-line description of an event for logs."""
    if isinstance(event, ModeUpdate):
        return f"ModeUpdate({event.mode_info.mode.value})"
    if isinstance(event, Key):
        return f"Key({format_key(event.chord)})"
    return type(event).__name__
