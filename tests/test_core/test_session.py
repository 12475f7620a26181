# tests/test_core/test_session.py
"""Integration tests: a controller and an overlay running together in `LocalSession`.
====================================================================================

These walk the two cooperating instances through realistic mode sequences and
check the commands each one issued and the frames the overlay drew.
"""

import pytest

from whichkey.core.Bindings import InputMode, KeyChord, ModeInfo, Modifier
from whichkey.core.Host import Key, ModeUpdate
from whichkey.core.Lifecycle import ControllerInstance, OverlayInstance
from whichkey.core.Session import LocalSession

CTRL_G = KeyChord.of_char("g", Modifier.CTRL)


@pytest.fixture
def session(keymap) -> LocalSession:
    return LocalSession(keybinds=keymap, rows=40, cols=120).start()


def test_start_boots_controller_only(session) -> None:
    assert isinstance(session.controller.instance, ControllerInstance)
    assert session.overlay is None
    assert session.controller.instance.ready
    assert session.frame() == ""


def test_start_twice_fails(session) -> None:
    with pytest.raises(RuntimeError):
        session.start()


def test_normal_pane_normal_walk(session) -> None:
    session.set_mode(InputMode.PANE)

    overlay = session.overlay
    assert overlay is not None
    assert isinstance(overlay.instance, OverlayInstance)
    assert session.controller.instance.overlay_visible is True
    frame = session.frame()
    assert "PANE ACTIONS" in frame
    assert "New pane" in frame

    session.set_mode(InputMode.NORMAL)
    assert session.overlay is None
    assert session.closed_overlays == 1
    assert session.controller.instance.overlay_visible is False
    assert session.frame() == ""


def test_overlay_placement_and_handoff(session) -> None:
    session.set_mode(InputMode.TAB)

    (spawn,) = session.commands_for(session.controller_id, "pipe_message_to_plugin")
    message = spawn.argument
    assert message.pane_title == "Tab Mode"
    assert message.floating_pane_coordinates.width == 116
    assert message.floating_pane_coordinates.y == 26

    overlay_commands = [c.name for c in session.commands_for(session.overlay_id)]
    assert overlay_commands == ["request_permission", "subscribe", "set_selectable"]
    assert "TAB ACTIONS" in session.frame()


def test_switching_between_non_base_modes_reuses_overlay(session) -> None:
    session.set_mode(InputMode.PANE)
    first_overlay = session.overlay_id
    render_requests = session.set_mode(InputMode.TAB)

    assert session.overlay_id == first_overlay
    assert render_requests == {first_overlay: True}
    assert "TAB ACTIONS" in session.frame()
    assert len(session.commands_for(session.controller_id, "pipe_message_to_plugin")) == 1


def test_ctrl_g_hides_and_shows(session) -> None:
    session.set_mode(InputMode.PANE)
    session.press(CTRL_G)

    assert session.overlay is None
    assert session.controller.instance.overlay_visible is False

    session.press(CTRL_G)
    assert session.overlay is not None
    assert len(session.commands_for(session.controller_id, "pipe_message_to_plugin")) == 2


def test_resize_changes_next_placement(session) -> None:
    session.resize(30, 80)
    session.set_mode(InputMode.PANE)

    spawn = session.commands_for(session.controller_id, "pipe_message_to_plugin")[0]
    assert spawn.argument.floating_pane_coordinates.width == 76


def test_pending_permissions(keymap) -> None:
    session = LocalSession(keybinds=keymap, grant_permissions=None).start()
    session.set_mode(InputMode.PANE)
    assert session.overlay is None

    session.grant_permissions()
    session.set_mode(InputMode.NORMAL)
    session.set_mode(InputMode.PANE)
    assert session.overlay is not None


def test_denied_permissions_never_spawn(keymap) -> None:
    session = LocalSession(keybinds=keymap, grant_permissions=False).start()
    session.set_mode(InputMode.PANE)
    session.press(CTRL_G)
    assert session.overlay is None
    assert session.commands_for(session.controller_id, "pipe_message_to_plugin") == []


def test_overlay_close_can_be_reported(keymap) -> None:
    """With reporting on, an overlay closed by Ctrl+g reconciles the controller's belief."""
    session = LocalSession(
        configuration={"hide_in_base_mode": "false"}, keybinds=keymap, report_overlay_close=True
    ).start()
    session.set_mode(InputMode.PANE)
    overlay_id = session.overlay_id

    # Only the overlay sees the key, so the controller would otherwise keep its stale belief.
    session._enqueue(overlay_id, Key(CTRL_G))
    session.run_pending()

    assert session.overlay is None
    assert session.controller.instance.overlay_visible is False


def test_custom_keymap_for_unknown_mode_renders_header_only(session) -> None:
    session.set_mode(InputMode.SESSION)
    frame = session.frame()
    assert "Session" in frame
    assert "ACTIONS" not in frame
    assert "to hide" in frame


def test_deliver_fans_event_out_to_every_instance(session, keymap) -> None:
    """A raw event reaches the controller first, then the overlay it launched."""
    session.deliver(ModeUpdate(ModeInfo(mode=InputMode.PANE, keybinds=keymap)))
    assert session.overlay is not None

    render_requests = session.deliver(ModeUpdate(ModeInfo(mode=InputMode.TAB, keybinds=keymap)))
    assert render_requests == {session.overlay_id: True}
    assert "TAB ACTIONS" in session.frame()
