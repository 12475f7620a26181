# whichkey/core/Session.py
"""Session.py
==================
Description:
-----------------------
``LocalSession`` hosts whichkey plugin instances in-process, standing in for the
terminal multiplexer. It boots a controller, launches an overlay when the
controller asks for one, routes events to whoever subscribed to them and keeps a
log of every command the instances issued.

Events are queued and dispatched one at a time, in order: an instance finishes
handling one event before the next is delivered. Commands that produce events
(a permission request answered by the session, an overlay launch followed by
its first mode update) enqueue those events instead of delivering them inline.

Used by the ``--session`` command-line demo and by the lifecycle tests.
"""

import logging
import os
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Tuple

from .Bindings import BindingTable, InputMode, KeyChord, ModeInfo, TabInfo
from .Host import (
    OWN_URL,
    CustomMessage,
    Event,
    EventType,
    Key,
    MessageToPlugin,
    ModeUpdate,
    PermissionRequestResult,
    PermissionType,
    PluginHost,
    PluginIds,
    TabUpdate,
    describe_event,
)
from .Lifecycle import OVERLAY_CLOSED_MESSAGE_NAME, SPAWN_MESSAGE_NAME, WhichKeyPlugin


@dataclass(frozen=True)
class HostCommand:
    """One command issued by a plugin instance, as recorded by the session."""

    plugin_id: int
    name: str
    argument: Any = None


@dataclass
class _Slot:
    plugin: WhichKeyPlugin
    host: "SessionHost"
    subscriptions: set = field(default_factory=set)
    requested: Tuple[PermissionType, ...] = ()
    selectable: bool = True
    rows: int = 0
    cols: int = 0


class SessionHost(PluginHost):
    """The command surface handed to one hosted instance."""

    def __init__(self, session: "LocalSession", plugin_id: int) -> None:
        self.session = session
        self.plugin_id = plugin_id

    def _record(self, name: str, argument: Any = None) -> None:
        self.session.commands.append(HostCommand(self.plugin_id, name, argument))

    def request_permission(self, permissions: Iterable[PermissionType]) -> None:
        permissions = tuple(permissions)
        self._record("request_permission", permissions)
        self.session._on_permission_request(self.plugin_id, permissions)

    def subscribe(self, event_types: Iterable[EventType]) -> None:
        event_types = tuple(event_types)
        self._record("subscribe", event_types)
        self.session._slots[self.plugin_id].subscriptions.update(event_types)

    def set_selectable(self, selectable: bool) -> None:
        self._record("set_selectable", selectable)
        self.session._slots[self.plugin_id].selectable = selectable

    def close_self(self) -> None:
        self._record("close_self")
        self.session._on_close_self(self.plugin_id)

    def pipe_message_to_plugin(self, message: MessageToPlugin) -> None:
        self._record("pipe_message_to_plugin", message)
        self.session._on_pipe_message(self.plugin_id, message)

    def get_plugin_ids(self) -> PluginIds:
        return PluginIds(self.plugin_id, os.getpid())


class LocalSession:
    """An in-process host for one controller and at most one overlay.

    Args:
        configuration: Boot configuration for the controller instance.
        keybinds: Binding tables per mode, attached to every mode update.
        rows / cols: Display area of the (single, active) tab.
        grant_permissions: Answer every permission request with this outcome.
            ``None`` leaves requests pending until ``grant_permissions()`` is called.
        report_overlay_close: When True, an overlay that closes itself is
            followed by an ``overlay_closed`` message to the controller.
        palette: Legend palette forwarded to every hosted plugin.
    """

    def __init__(
        self,
        configuration: Optional[Mapping[str, str]] = None,
        keybinds: Optional[Mapping[InputMode, BindingTable]] = None,
        rows: int = 24,
        cols: int = 120,
        grant_permissions: Optional[bool] = True,
        report_overlay_close: bool = False,
        palette=None,
    ) -> None:
        self.configuration = dict(configuration or {})
        self.keybinds: Mapping[InputMode, BindingTable] = keybinds or {}
        self.rows = rows
        self.cols = cols
        self.auto_grant = grant_permissions
        self.report_overlay_close = report_overlay_close
        self.palette = palette

        self.commands: List[HostCommand] = []
        self.mode_info = ModeInfo(keybinds=self.keybinds)
        self._slots: Dict[int, _Slot] = {}
        self._queue: Deque[Tuple[int, Event]] = deque()
        self._next_plugin_id = 1
        self.controller_id: Optional[int] = None
        self.overlay_id: Optional[int] = None
        self.closed_overlays = 0

    # ==================== Instance management ====================
    def _launch(self, configuration: Mapping[str, str]) -> int:
        plugin_id = self._next_plugin_id
        self._next_plugin_id += 1
        host = SessionHost(self, plugin_id)
        plugin = WhichKeyPlugin(host, palette=self.palette)
        self._slots[plugin_id] = _Slot(plugin=plugin, host=host)
        plugin.load(configuration)
        return plugin_id

    def start(self) -> "LocalSession":
        """Boots the controller and delivers the initial mode and tab state."""
        if self.controller_id is not None:
            raise RuntimeError("LocalSession already started")
        self.controller_id = self._launch(self.configuration)
        self._enqueue(self.controller_id, ModeUpdate(self.mode_info))
        self._enqueue(self.controller_id, self._tab_update())
        self.run_pending()
        return self

    @property
    def controller(self) -> Optional[WhichKeyPlugin]:
        return self._plugin(self.controller_id)

    @property
    def overlay(self) -> Optional[WhichKeyPlugin]:
        return self._plugin(self.overlay_id)

    def _plugin(self, plugin_id: Optional[int]) -> Optional[WhichKeyPlugin]:
        if plugin_id is None or plugin_id not in self._slots:
            return None
        return self._slots[plugin_id].plugin

    def commands_for(self, plugin_id: Optional[int], name: Optional[str] = None) -> List[HostCommand]:
        return [
            command
            for command in self.commands
            if command.plugin_id == plugin_id and (name is None or command.name == name)
        ]

    # ==================== Command handling ====================
    def _on_permission_request(self, plugin_id: int, permissions: Tuple[PermissionType, ...]) -> None:
        self._slots[plugin_id].requested = permissions
        if self.auto_grant is not None:
            self._enqueue(plugin_id, PermissionRequestResult(self.auto_grant))

    def _on_pipe_message(self, sender_id: int, message: MessageToPlugin) -> None:
        if message.message_name != SPAWN_MESSAGE_NAME or message.plugin_url != OWN_URL:
            logging.debug("LocalSession: message %r from %d has no receiver", message.message_name, sender_id)
            return
        if self.overlay_id is not None:
            logging.warning("LocalSession: overlay %d already running, ignoring launch", self.overlay_id)
            return

        self.overlay_id = self._launch(message.plugin_config)
        slot = self._slots[self.overlay_id]
        coordinates = message.floating_pane_coordinates
        slot.cols = coordinates.width if coordinates and coordinates.width is not None else self.cols
        slot.rows = coordinates.height if coordinates and coordinates.height is not None else self.rows
        logging.info(
            "LocalSession: launched overlay %d (%s, %dx%d)",
            self.overlay_id, message.pane_title, slot.cols, slot.rows,
        )
        self._enqueue(self.overlay_id, ModeUpdate(self.mode_info))

    def _on_close_self(self, plugin_id: int) -> None:
        self._slots.pop(plugin_id, None)
        self._queue = deque(item for item in self._queue if item[0] != plugin_id)
        if plugin_id == self.overlay_id:
            self.overlay_id = None
            self.closed_overlays += 1
            if self.report_overlay_close and self.controller_id is not None:
                self._enqueue(self.controller_id, CustomMessage(OVERLAY_CLOSED_MESSAGE_NAME))
        elif plugin_id == self.controller_id:
            self.controller_id = None

    # ==================== Event delivery ====================
    def _enqueue(self, plugin_id: int, event: Event) -> None:
        self._queue.append((plugin_id, event))

    def run_pending(self) -> Dict[int, bool]:
        """Dispatches queued events in order; returns which instances asked to re-render."""
        render_requests: Dict[int, bool] = {}
        while self._queue:
            plugin_id, event = self._queue.popleft()
            slot = self._slots.get(plugin_id)
            if slot is None:
                continue
            if event.event_type not in slot.subscriptions and not isinstance(event, PermissionRequestResult):
                logging.debug("LocalSession: %d not subscribed to %s", plugin_id, describe_event(event))
                continue
            if slot.plugin.update(event):
                render_requests[plugin_id] = True
        return render_requests

    def deliver(self, event: Event) -> Dict[int, bool]:
        """Queues ``event`` for every live instance, controller first, and runs the queue."""
        if isinstance(event, ModeUpdate):
            self.mode_info = event.mode_info
        for plugin_id in list(self._slots):
            self._enqueue(plugin_id, event)
        return self.run_pending()

    def grant_permissions(self, granted: bool = True, plugin_id: Optional[int] = None) -> Dict[int, bool]:
        """Answers outstanding permission requests (all instances, or just ``plugin_id``)."""
        for target, slot in self._slots.items():
            if plugin_id is not None and target != plugin_id:
                continue
            if slot.requested:
                self._enqueue(target, PermissionRequestResult(granted))
        return self.run_pending()

    def set_mode(self, mode: InputMode, base_mode: Optional[InputMode] = None) -> Dict[int, bool]:
        return self.deliver(ModeUpdate(ModeInfo(mode=mode, base_mode=base_mode, keybinds=self.keybinds)))

    def press(self, chord: KeyChord) -> Dict[int, bool]:
        return self.deliver(Key(chord))

    def resize(self, rows: int, cols: int) -> Dict[int, bool]:
        self.rows = rows
        self.cols = cols
        return self.deliver(self._tab_update())

    def _tab_update(self) -> TabUpdate:
        return TabUpdate((TabInfo(0, True, self.rows, self.cols),))

    # ==================== Rendering ====================
    def frame(self) -> str:
        """The overlay's current drawing, or an empty string when none is open."""
        slot = self._slots.get(self.overlay_id) if self.overlay_id is not None else None
        if slot is None:
            return ""
        return slot.plugin.render(slot.rows, slot.cols)
