# whichkey/core/Lifecycle.py
"""Lifecycle Module
==================
This module coordinates the two cooperating instances of the plugin.

The same plugin is loaded twice, and the boot configuration decides which role
each copy plays:

- **Controller** (``ControllerInstance``): watches mode and tab-layout events,
  decides when the legend should be visible and asks the host to launch an
  overlay instance. It never renders.
- **Overlay** (``OverlayInstance``): watches the same mode stream, renders the
  legend through the Selection Engine and closes itself when the host returns
  to its base mode.

The two instances share no memory. The only coupling is the configuration the
controller hands to the overlay at launch, plus the controller's belief about
whether an overlay exists (``overlay_visible``). That belief is a best-effort
cache: the overlay may already have closed itself when the controller still
thinks it is visible. ``ControllerInstance.on_overlay_closed`` is the hook for
correcting it from an ``overlay_closed`` message.

Every event is handled to completion before the next one; nothing here blocks,
retries or times out.

Classes:
--------
- PluginConfig: boot configuration parsed from the host's string mapping.
- ControllerInstance / OverlayInstance: the two role state machines.
- WhichKeyPlugin: the entry point the host drives (``load``, ``update``, ``render``).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Optional

from .Bindings import KeyChord, Modifier, ModeInfo, RankedEntry
from .Host import (
    OWN_URL,
    CustomMessage,
    Event,
    EventType,
    FloatingPaneCoordinates,
    Key,
    MessageToPlugin,
    ModeUpdate,
    PermissionRequestResult,
    PermissionType,
    PluginHost,
    TabUpdate,
    describe_event,
)
from .Labels import format_key
from .SelectionEngine import select_bindings

if TYPE_CHECKING:
    from whichkey.ui.Legend import LegendPalette

logger = logging.getLogger("whichkey")
KEY_LOGGER = logging.getLogger("whichkey.keyevents")

SPAWN_MESSAGE_NAME = "spawn_overlay"
OVERLAY_CLOSED_MESSAGE_NAME = "overlay_closed"

# Floating-pane placement for the overlay.
LEFT_MARGIN = 2
RIGHT_MARGIN = 2
OVERLAY_HEIGHT = 14
DEFAULT_DISPLAY_COLS = 255
DEFAULT_DISPLAY_ROWS = 70

DEFAULT_MAX_LINES = 20


def is_toggle_hotkey(chord: KeyChord) -> bool:
    """Ctrl+g toggles the legend in the controller and closes it in the overlay."""
    return chord.is_char("g") and chord.has_modifiers(Modifier.CTRL)


class InstanceRole(Enum):
    CONTROLLER = "controller"
    OVERLAY = "overlay"


class Readiness(Enum):
    """Outcome of the permission request. DENIED is terminal: the instance stays inert."""

    AWAITING = "awaiting"
    GRANTED = "granted"
    DENIED = "denied"


class ControllerState(Enum):
    AWAITING_PERMISSION = "awaiting_permission"
    IDLE = "idle"
    ACTIVE = "active"
    UNREADY = "unready"


class OverlayState(Enum):
    AWAITING_PERMISSION = "awaiting_permission"
    VISIBLE = "visible"
    CLOSED = "closed"
    UNREADY = "unready"


def _flag(config: Mapping[str, str], key: str, default: bool) -> bool:
    value = config.get(key)
    if value is None:
        return default
    return value == "true"


@dataclass(frozen=True)
class PluginConfig:
    """Boot configuration, parsed from the host's string-to-string mapping.

    Missing or malformed values fall back to the defaults; parsing never fails.

    Attributes:
        is_overlay (bool): True only when ``is_overlay`` is exactly ``"true"``.
        auto_show (bool): ``auto_show_on_mode_change``; default True.
        hide_in_base_mode (bool): default True.
        max_lines (int): Legend body line limit; default 20.
    """

    is_overlay: bool = False
    auto_show: bool = True
    hide_in_base_mode: bool = True
    max_lines: int = DEFAULT_MAX_LINES

    @classmethod
    def from_mapping(cls, config: Mapping[str, str]) -> "PluginConfig":
        max_lines = DEFAULT_MAX_LINES
        raw_max_lines = config.get("max_lines")
        if raw_max_lines is not None:
            try:
                parsed = int(raw_max_lines)
                if parsed < 0:
                    raise ValueError("negative")
                max_lines = parsed
            except (TypeError, ValueError):
                logger.debug("Ignoring invalid max_lines=%r, using %d", raw_max_lines, max_lines)

        parsed_config = cls(
            is_overlay=_flag(config, "is_overlay", False),
            auto_show=_flag(config, "auto_show_on_mode_change", True),
            hide_in_base_mode=_flag(config, "hide_in_base_mode", True),
            max_lines=max_lines,
        )
        logger.info(
            "Parsed config - is_overlay=%s, auto_show=%s, hide_in_base_mode=%s, max_lines=%d",
            parsed_config.is_overlay,
            parsed_config.auto_show,
            parsed_config.hide_in_base_mode,
            parsed_config.max_lines,
        )
        return parsed_config

    @property
    def role(self) -> InstanceRole:
        return InstanceRole.OVERLAY if self.is_overlay else InstanceRole.CONTROLLER

    def overlay_handoff(self) -> dict[str, str]:
        """Configuration handed to a freshly launched overlay instance."""
        return {
            "is_overlay": "true",
            "max_lines": str(self.max_lines),
            "hide_in_base_mode": "true" if self.hide_in_base_mode else "false",
        }


# ==================== Controller ====================
class ControllerInstance:
    """Controller role: owns visibility decisions and launches the overlay.

    Attributes:
        host (PluginHost): Command surface of the hosting multiplexer.
        config (PluginConfig): This instance's boot configuration.
        mode_info (ModeInfo): Last mode snapshot received.
        readiness (Readiness): Permission outcome.
        overlay_visible (bool): Belief that an overlay instance exists. Only
            ``spawn_overlay`` and ``close_overlay`` (and the reconciliation hook)
            change it.
        display_area_rows / display_area_cols (int): Active tab's display area,
            0 until the first tab update.
    """

    PERMISSIONS = (
        PermissionType.READ_APPLICATION_STATE,
        PermissionType.CHANGE_APPLICATION_STATE,
        PermissionType.MESSAGE_AND_LAUNCH_OTHER_PLUGINS,
    )
    SUBSCRIPTIONS = (
        EventType.MODE_UPDATE,
        EventType.TAB_UPDATE,
        EventType.KEY,
        EventType.PERMISSION_REQUEST_RESULT,
        EventType.CUSTOM_MESSAGE,
    )

    def __init__(self, host: PluginHost, config: PluginConfig) -> None:
        self.host = host
        self.config = config
        self.mode_info = ModeInfo()
        self.readiness = Readiness.AWAITING
        self.overlay_visible = False
        self.display_area_rows = 0
        self.display_area_cols = 0

    def boot(self) -> None:
        self.host.request_permission(self.PERMISSIONS)
        self.host.subscribe(self.SUBSCRIPTIONS)

    @property
    def ready(self) -> bool:
        return self.readiness is Readiness.GRANTED

    @property
    def state(self) -> ControllerState:
        if self.readiness is Readiness.DENIED:
            return ControllerState.UNREADY
        if self.readiness is Readiness.AWAITING:
            return ControllerState.AWAITING_PERMISSION
        if self.mode_info.is_base_mode():
            return ControllerState.IDLE
        return ControllerState.ACTIVE

    def handle(self, event: Event) -> bool:
        """Processes one host event. The controller never asks for a render."""
        if self.readiness is Readiness.DENIED:
            logger.debug("Controller inert (permissions denied); dropping %s", describe_event(event))
            return False

        if isinstance(event, PermissionRequestResult):
            if event.granted:
                logger.info("Controller permissions granted")
                self.readiness = Readiness.GRANTED
            else:
                logger.warning("Controller permissions denied; the overlay will never be shown")
                self.readiness = Readiness.DENIED
        elif isinstance(event, ModeUpdate):
            self._on_mode_update(event.mode_info)
        elif isinstance(event, TabUpdate):
            for tab in event.tabs:
                if tab.active:
                    self.display_area_rows = tab.display_area_rows
                    self.display_area_cols = tab.display_area_columns
                    logger.debug(
                        "Terminal dimensions: %dx%d", self.display_area_cols, self.display_area_rows
                    )
                    break
        elif isinstance(event, Key):
            KEY_LOGGER.debug("controller key %s", format_key(event.chord))
            if self.ready and is_toggle_hotkey(event.chord):
                logger.info("Ctrl+g detected - toggling overlay")
                self.toggle_overlay()
        elif isinstance(event, CustomMessage):
            if event.name == OVERLAY_CLOSED_MESSAGE_NAME:
                self.on_overlay_closed()
        return False

    def _on_mode_update(self, mode_info: ModeInfo) -> None:
        was_base_mode = self.mode_info.is_base_mode()
        self.mode_info = mode_info
        is_base_mode = self.mode_info.is_base_mode()

        if not (self.ready and self.config.auto_show):
            return
        if was_base_mode and not is_base_mode:
            logger.info("Auto-spawning overlay (left base mode for %s)", mode_info.mode.value)
            self.spawn_overlay()
        elif not was_base_mode and is_base_mode and self.config.hide_in_base_mode:
            logger.info("Auto-closing overlay (returned to base mode)")
            self.close_overlay()

    def calculate_coordinates(self) -> FloatingPaneCoordinates:
        """Full-width strip near the bottom of the display area.

        Unknown display dimensions (no tab update yet) fall back to 255x70;
        margins larger than the display saturate at zero.
        """
        terminal_cols = self.display_area_cols if self.display_area_cols > 0 else DEFAULT_DISPLAY_COLS
        terminal_rows = self.display_area_rows if self.display_area_rows > 0 else DEFAULT_DISPLAY_ROWS

        width = max(terminal_cols - (LEFT_MARGIN + RIGHT_MARGIN), 0)
        height = OVERLAY_HEIGHT
        x_position = LEFT_MARGIN
        y_position = max(terminal_rows - height, 0)

        logger.debug(
            "Full-width coords x=%d, y=%d, width=%d (terminal: %dx%d)",
            x_position, y_position, width, terminal_cols, terminal_rows,
        )
        return FloatingPaneCoordinates.from_strings(
            str(x_position), str(y_position), str(width), str(height), True
        )

    def build_spawn_message(self) -> MessageToPlugin:
        return (
            MessageToPlugin(SPAWN_MESSAGE_NAME)
            .with_plugin_url(OWN_URL)
            .with_plugin_config(self.config.overlay_handoff())
            .with_floating_pane_coordinates(self.calculate_coordinates())
            .new_plugin_instance_should_have_pane_title(f"{self.mode_info.mode.value} Mode")
        )

    def spawn_overlay(self) -> None:
        """Launches an overlay unless one is believed to exist. Fire-and-forget."""
        if self.overlay_visible:
            return
        logger.info("Spawning overlay instance")
        self.host.pipe_message_to_plugin(self.build_spawn_message())
        self.overlay_visible = True

    def close_overlay(self) -> None:
        """Marks the overlay closed. The overlay closes itself; nothing is sent."""
        if not self.overlay_visible:
            return
        logger.info("Marking overlay as closed (it closes itself)")
        self.overlay_visible = False

    def toggle_overlay(self) -> None:
        logger.debug("Toggle called, overlay_visible=%s", self.overlay_visible)
        if self.overlay_visible:
            self.close_overlay()
        else:
            self.spawn_overlay()

    def on_overlay_closed(self) -> None:
        """Reconciliation hook: an overlay reported that it has exited."""
        if self.overlay_visible:
            logger.info("Overlay reported closed; clearing visibility belief")
        self.overlay_visible = False


# ==================== Overlay ====================
class OverlayInstance:
    """Overlay role: renders the legend and terminates itself.

    The only state carried between events is the last mode snapshot (plus the
    permission outcome and whether ``close_self`` has been issued).
    """

    PERMISSIONS = (PermissionType.READ_APPLICATION_STATE,)
    SUBSCRIPTIONS = (
        EventType.MODE_UPDATE,
        EventType.KEY,
        EventType.PERMISSION_REQUEST_RESULT,
        EventType.CUSTOM_MESSAGE,
    )

    def __init__(self, host: PluginHost, config: PluginConfig) -> None:
        self.host = host
        self.config = config
        self.mode_info = ModeInfo()
        self.readiness = Readiness.AWAITING
        self.closed = False

    def boot(self) -> None:
        self.host.request_permission(self.PERMISSIONS)
        self.host.subscribe(self.SUBSCRIPTIONS)

    @property
    def state(self) -> OverlayState:
        if self.closed:
            return OverlayState.CLOSED
        if self.readiness is Readiness.DENIED:
            return OverlayState.UNREADY
        if self.readiness is Readiness.AWAITING:
            return OverlayState.AWAITING_PERMISSION
        return OverlayState.VISIBLE

    def close(self, reason: str) -> None:
        logger.info("Overlay closing (%s)", reason)
        self.closed = True
        self.host.close_self()

    def handle(self, event: Event) -> bool:
        """Processes one host event; True asks the host for a re-render."""
        if self.closed or self.readiness is Readiness.DENIED:
            return False

        if isinstance(event, PermissionRequestResult):
            if event.granted:
                self.readiness = Readiness.GRANTED
                self.host.set_selectable(False)
            else:
                logger.warning("Overlay permissions denied; staying inert")
                self.readiness = Readiness.DENIED
            return False

        if isinstance(event, ModeUpdate):
            was_base_mode = self.mode_info.is_base_mode()
            self.mode_info = event.mode_info
            is_base_mode = self.mode_info.is_base_mode()

            # Edge-triggered: only the transition into base mode closes the overlay.
            if self.config.hide_in_base_mode and not was_base_mode and is_base_mode:
                self.close("returned to base mode")
                return False
            return True

        if isinstance(event, Key):
            KEY_LOGGER.debug("overlay key %s", format_key(event.chord))
            if is_toggle_hotkey(event.chord):
                self.close("Ctrl+g")
        return False

    def legend_entries(self) -> list[RankedEntry]:
        return select_bindings(
            self.mode_info.mode, self.mode_info.base(), self.mode_info.mode_keybinds()
        )


# ==================== Entry point ====================
class WhichKeyPlugin:
    """The object the host drives: ``load`` once, then ``update`` and ``render``.

    Each instance owns its role object exclusively; two plugins in one process
    (as in ``LocalSession``) share nothing.
    """

    def __init__(self, host: PluginHost, palette: Optional["LegendPalette"] = None) -> None:
        self.host = host
        self.palette = palette
        self.config: Optional[PluginConfig] = None
        self.plugin_id: Optional[int] = None
        self.instance: Optional[ControllerInstance | OverlayInstance] = None
        self.rows = 0
        self.cols = 0

    @property
    def role(self) -> Optional[InstanceRole]:
        return self.config.role if self.config else None

    def load(self, configuration: Mapping[str, str]) -> None:
        if self.instance is not None:
            raise RuntimeError("WhichKeyPlugin.load() called twice; the role is fixed at boot")
        self.config = PluginConfig.from_mapping(configuration)
        self.plugin_id = self.host.get_plugin_ids().plugin_id
        logger.info("Loading - role=%s, plugin_id=%s", self.config.role.value, self.plugin_id)

        if self.config.is_overlay:
            self.instance = OverlayInstance(self.host, self.config)
        else:
            self.instance = ControllerInstance(self.host, self.config)
        self.instance.boot()

    def update(self, event: Event) -> bool:
        if self.instance is None:
            raise RuntimeError("WhichKeyPlugin.update() before load()")
        logger.debug("%s <- %s", self.config.role.value, describe_event(event))
        return self.instance.handle(event)

    def render(self, rows: int, cols: int) -> str:
        """Returns the text to draw in a rows x cols region; empty for the controller."""
        self.rows = rows
        self.cols = cols
        if not isinstance(self.instance, OverlayInstance):
            return ""
        if self.instance.state in (OverlayState.CLOSED, OverlayState.UNREADY):
            return ""

        from whichkey.ui.Legend import LegendPalette, build_legend, render_ansi

        lines = build_legend(
            self.instance.legend_entries(),
            self.instance.mode_info.mode,
            cols,
            max_lines=self.instance.config.max_lines,
            palette=self.palette or LegendPalette(),
        )
        return render_ansi(lines)
