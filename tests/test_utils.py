# tests/test_utils.py
"""Unit tests for configuration helpers in the `whichkey.utils.utils` module."""

from pathlib import Path

from whichkey.core.Bindings import InputMode, KeyChord, Modifier
from whichkey.utils import utils


def test_deep_merge() -> None:
    """Verify that `deep_merge` correctly merges nested dictionaries.

    This test ensures:
    - Existing values are preserved if not overridden.
    - Nested dictionaries are merged recursively.
    - Conflicting keys are overridden by values from the second dictionary.
    """
    base = {"a": 1, "b": {"x": 10, "y": 20}}
    override = {"b": {"y": 99, "z": 100}, "c": 3}
    result = utils.deep_merge(base, override)
    expected = {"a": 1, "b": {"x": 10, "y": 99, "z": 100}, "c": 3}
    assert result == expected


def test_hex_to_xterm_valid_color() -> None:
    """White (`#ffffff`) maps to 231 and black (`000000`) to 16."""
    assert utils.hex_to_xterm("#ffffff") == 231
    assert utils.hex_to_xterm("000000") == 16


def test_hex_to_xterm_invalid_color() -> None:
    """Invalid hex strings fall back to 255."""
    assert utils.hex_to_xterm("#zzz") == 255
    assert utils.hex_to_xterm("12") == 255


class TestLoadConfig:
    def test_defaults_when_file_missing(self, tmp_path: Path) -> None:
        config = utils.load_config(tmp_path / "missing.toml")
        assert config["plugin"]["max_lines"] == 20
        assert "pane" in config["keybinds"]

    def test_user_file_is_merged(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            '[plugin]\nmax_lines = 8\n\n[keybinds.pane]\n"Ctrl x" = "CloseFocus"\n',
            encoding="utf-8",
        )
        config = utils.load_config(path)
        assert config["plugin"]["max_lines"] == 8
        assert config["plugin"]["hide_in_base_mode"] is True
        assert config["keybinds"]["pane"]["Ctrl x"] == "CloseFocus"
        assert "h" in config["keybinds"]["pane"]

    def test_broken_file_keeps_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[plugin\nmax_lines = ", encoding="utf-8")
        assert utils.load_config(path)["plugin"]["max_lines"] == 20

    def test_defaults_are_not_shared(self, tmp_path: Path) -> None:
        config = utils.load_config(tmp_path / "missing.toml")
        config["plugin"]["max_lines"] = 1
        assert utils.DEFAULT_CONFIG["plugin"]["max_lines"] == 20

    def test_ensure_user_config_exists(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(utils.Path, "home", lambda: tmp_path)
        utils.ensure_user_config_exists()
        env_file = tmp_path / ".config" / "whichkey" / ".env"
        assert env_file.is_file()
        assert "WHICHKEY_KEYTRACE" in env_file.read_text(encoding="utf-8")


class TestLoadKeymap:
    def test_default_keymap_modes(self) -> None:
        keymap = utils.load_keymap(utils.DEFAULT_CONFIG)
        assert InputMode.PANE in keymap
        assert InputMode.SESSION in keymap

    def test_shared_bindings_merge_without_override(self) -> None:
        keymap = utils.load_keymap(
            {
                "keybinds": {
                    "shared": {"Ctrl q": "Quit", "Ctrl p": "SwitchToMode Pane"},
                    "pane": {"Ctrl p": "SwitchToMode Normal"},
                    "locked": {"Ctrl g": "SwitchToMode Normal"},
                }
            }
        )
        pane = keymap[InputMode.PANE]
        assert pane[KeyChord.of_char("q", Modifier.CTRL)][0].kind.value == "Quit"
        assert pane[KeyChord.of_char("p", Modifier.CTRL)][0].mode is InputMode.NORMAL
        assert KeyChord.of_char("q", Modifier.CTRL) not in keymap[InputMode.LOCKED]

    def test_bad_entries_are_skipped(self, caplog) -> None:
        keymap = utils.load_keymap(
            {
                "keybinds": {
                    "pane": {"Hyper x": "NewPane", "n": "Teleport", "d": ["NewPane Down", "SwitchToMode Normal"]},
                    "nowhere": {"x": "Quit"},
                    "tab": "not a table",
                }
            }
        )
        assert list(keymap[InputMode.PANE]) == [KeyChord.of_char("d")]
        assert len(keymap[InputMode.PANE][KeyChord.of_char("d")]) == 2
        assert keymap[InputMode.TAB] == {}
        assert "Error parsing keybinding" in caplog.text

    def test_malformed_section(self) -> None:
        assert utils.load_keymap({"keybinds": ["nope"]}) == {}
