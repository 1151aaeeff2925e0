"""Request socket tests.

Runs HyprlandConnection against FakeHyprland, a Unix socket server that
records each request and answers with queued bytes, and checks reply
decoding for all three command kinds.
"""

import json

import pytest

from Hyprland_IPC import commands, responses
from Hyprland_IPC.client import HyprlandConnection
from Hyprland_IPC.protocol import HyprlandTransportError
from Hyprland_IPC.responses import (
    CommandResponse,
    Err,
    Ok,
    ResponseDecodeError,
    ResponseSchemaError,
    decode_response,
    schema_adapter,
)

VERSION = {
    "branch": "main",
    "commit": "12f9a0d0b93f691d4d9923716557154d74777b0a",
    "version": "0.45.2",
    "dirty": False,
    "commit_message": "version: bump to 0.45.2",
    "commit_date": "Mon Nov 18 16:32:01 2024",
    "tag": "v0.45.2",
    "commits": "5499",
    "buildAquamarine": "0.5.0",
    "flags": [],
}

WORKSPACE = {
    "id": 1,
    "name": "1",
    "monitor": "DP-1",
    "monitorID": 0,
    "windows": 2,
    "hasfullscreen": False,
    "lastwindow": "0x5646a4b0c2f0",
    "lastwindowtitle": "zsh",
    "ispersistent": False,
}

CLIENT = {
    "address": "0x5646a4b0c2f0",
    "mapped": True,
    "hidden": False,
    "at": [10, 40],
    "size": [1900, 1030],
    "workspace": {"id": 1, "name": "1"},
    "floating": False,
    "pseudo": False,
    "monitor": 0,
    "class": "kitty",
    "title": "zsh",
    "initialClass": "kitty",
    "initialTitle": "kitty",
    "pid": 4242,
    "xwayland": False,
    "pinned": False,
    "fullscreen": 0,
    "fullscreenClient": 0,
    "grouped": [],
    "tags": [],
    "swallowing": "0x0",
    "focusHistoryID": 0,
}

MONITOR = {
    "id": 0,
    "name": "DP-1",
    "description": "Dell Inc. DELL U2720Q 8LXMZ13",
    "make": "Dell Inc.",
    "model": "DELL U2720Q",
    "serial": "8LXMZ13",
    "width": 3840,
    "height": 2160,
    "physicalWidth": 600,
    "physicalHeight": 340,
    "refreshRate": 59.99700,
    "x": 0,
    "y": 0,
    "activeWorkspace": {"id": 1, "name": "1"},
    "specialWorkspace": {"id": 0, "name": ""},
    "reserved": [0, 30, 0, 0],
    "scale": 1.50,
    "transform": 0,
    "focused": True,
    "dpmsStatus": True,
    "vrr": False,
    "solitary": "0",
    "activelyTearing": False,
    "directScanoutTo": "0",
    "disabled": False,
    "currentFormat": "XRGB8888",
    "mirrorOf": "none",
    "availableModes": ["3840x2160@60.00Hz", "2560x1440@59.95Hz", "1920x1080@60.00Hz"],
}

DEVICES = {
    "mice": [
        {
            "address": "0x5646a48f8b30",
            "name": "logitech-usb-receiver-mouse",
            "defaultSpeed": 0.00000,
        },
    ],
    "keyboards": [
        {
            "address": "0x5646a4c25c60",
            "name": "at-translated-set-2-keyboard",
            "rules": "",
            "model": "",
            "layout": "us,de",
            "variant": "",
            "options": "grp:alt_shift_toggle",
            "active_keymap": "English (US)",
            "capsLock": False,
            "numLock": True,
            "main": True,
        },
    ],
    "tablets": [],
    "touch": [],
    "switches": [
        {"address": "0x5646a4a1c9d0", "name": "Lid Switch"},
    ],
}

BIND = {
    "locked": False,
    "mouse": False,
    "release": False,
    "repeat": True,
    "longPress": False,
    "non_consuming": False,
    "has_description": False,
    "modmask": 64,
    "submap": "",
    "key": "Return",
    "keycode": 0,
    "catch_all": False,
    "description": "",
    "dispatcher": "exec",
    "arg": "kitty",
}

LAYERS = {
    "DP-1": {
        "levels": {
            "0": [
                {
                    "address": "0x5646a4d7e1a0",
                    "x": 0,
                    "y": 0,
                    "w": 3840,
                    "h": 2160,
                    "namespace": "hyprpaper",
                    "pid": 1187,
                },
            ],
            "1": [],
            "2": [
                {
                    "address": "0x5646a4e01f40",
                    "x": 0,
                    "y": 0,
                    "w": 2560,
                    "h": 30,
                    "namespace": "waybar",
                    "pid": 1203,
                },
            ],
            "3": [],
        },
    },
}

INSTANCE = {
    "instance": "12f9a0d0b93f691d4d9923716557154d74777b0a_1731944123_1734870126",
    "time": 1731944123,
    "pid": 1102,
    "wl_socket": "wayland-1",
}

WORKSPACE_RULES = [
    {"workspaceString": "1", "monitor": "DP-1", "default": True},
    {"workspaceString": "special:scratch", "gapsOut": [40, 40, 40, 40], "persistent": True},
]


def as_json(value):
    return json.dumps(value).encode()


@pytest.fixture
def connection(hypr_env):
    return HyprlandConnection.from_environ()


class TestHyprlandConnection:
    def test_from_environ_uses_request_socket(self, hypr_env):
        connection = HyprlandConnection.from_environ(hypr_env)
        assert connection.socket_path.endswith("/.socket.sock")

    def test_sends_json_flag_and_terminator(self, fake_hyprland, connection):
        connection.send(commands.Dispatch("workspace 3"))
        assert fake_hyprland.requests == [b"j/dispatch workspace 3\x00"]

    def test_action_ok(self, fake_hyprland, connection):
        fake_hyprland.reply_with(b"ok")
        response = connection.dispatch("workspace 3")
        assert isinstance(response, CommandResponse)
        assert response.value == Ok()
        assert response.ok is True
        assert response.text == "ok"

    def test_action_error(self, fake_hyprland, connection):
        fake_hyprland.reply_with(b"Invalid dispatcher")
        response = connection.send(commands.Dispatch("nosuchdispatcher"))
        assert response.value == Err("Invalid dispatcher")
        assert response.ok is False
        assert str(response.value) == "Error: Invalid dispatcher"

    def test_keyword(self, fake_hyprland, connection):
        connection.keyword("general:gaps_in", "5")
        assert fake_hyprland.requests == [b"j/keyword general:gaps_in 5\x00"]

    def test_json_reply_is_validated(self, fake_hyprland, connection):
        fake_hyprland.reply_with(as_json([WORKSPACE]))
        response = connection.workspaces()
        (workspace,) = response.value
        assert isinstance(workspace, responses.Workspace)
        assert workspace.monitor == "DP-1"
        assert workspace.monitorID == 0

    def test_client_class_alias(self, fake_hyprland, connection):
        fake_hyprland.reply_with(as_json(CLIENT))
        window = connection.active_window().value
        assert window.window_class == "kitty"
        assert window.at == (10, 40)

    def test_no_active_window(self, fake_hyprland, connection):
        fake_hyprland.reply_with(b"{}")
        response = connection.active_window()
        assert response.value is None
        assert response.ok is True

    def test_text_reply(self, fake_hyprland, connection):
        fake_hyprland.reply_with(b"Hyprland is cool")
        response = connection.send(commands.Splash())
        assert response.value == "Hyprland is cool"

    def test_reply_larger_than_first_read(self, fake_hyprland, connection):
        layouts = [f"layout-{index}" for index in range(500)]
        fake_hyprland.reply_with(as_json(layouts))
        response = connection.send(commands.Layouts())
        assert response.value == layouts

    def test_one_connection_per_command(self, fake_hyprland, connection):
        fake_hyprland.reply_with(b"ok", as_json(VERSION))
        connection.send(commands.Reload())
        connection.send(commands.Version())
        assert fake_hyprland.requests == [b"j/reload\x00", b"j/version\x00"]

    def test_monitors_all(self, fake_hyprland, connection):
        fake_hyprland.reply_with(b"[]")
        assert connection.monitors(all=True).value == []
        assert fake_hyprland.requests == [b"j/monitors all\x00"]

    def test_schema_error_is_raised(self, fake_hyprland, connection):
        fake_hyprland.reply_with(b'{"x": "10", "y": 20}')
        with pytest.raises(ResponseSchemaError) as exc_info:
            connection.send(commands.CursorPos())
        assert exc_info.value.field == "x"

    def test_no_server(self, hypr_env):
        connection = HyprlandConnection.from_environ(hypr_env)
        with pytest.raises(HyprlandTransportError, match="Could not connect"):
            connection.send(commands.Version())


class TestDecodeResponse:
    def test_ok_for_action(self):
        assert decode_response(commands.Reload(), b"ok") == Ok()

    def test_any_other_text_is_error(self):
        assert decode_response(commands.Keyword("a", "b"), b"") == Err("")

    def test_version(self):
        version = decode_response(commands.Version(), as_json(VERSION))
        assert version.tag == "v0.45.2"
        assert version.buildHyprlang is None

    def test_cursor_position(self):
        position = decode_response(commands.CursorPos(), b'{"x": 1280, "y": -20}')
        assert (position.x, position.y) == (1280, -20)

    def test_locked(self):
        assert decode_response(commands.Locked(), b'{"locked": true}').locked is True

    def test_special_workspace_has_negative_id(self):
        special = dict(WORKSPACE, id=-98, name="special:scratch")
        (workspace,) = decode_response(commands.Workspaces(), as_json([special]))
        assert workspace.id == -98

    def test_getoption_is_untyped(self):
        option = {"option": "general:border_size", "int": 2, "set": True}
        assert decode_response(commands.GetOption("general:border_size"), as_json(option)) == option

    def test_monitors(self):
        (monitor,) = decode_response(commands.Monitors(), as_json([MONITOR]))
        assert isinstance(monitor, responses.Monitor)
        assert monitor.reserved == (0, 30, 0, 0)
        assert monitor.refreshRate == pytest.approx(59.997)
        assert monitor.activeWorkspace.name == "1"
        assert monitor.specialWorkspace.id == 0

    def test_devices(self):
        devices = decode_response(commands.Devices(), as_json(DEVICES))
        assert isinstance(devices, responses.DeviceList)
        (keyboard,) = devices.keyboards
        assert keyboard.active_keymap == "English (US)"
        assert keyboard.main is True
        assert devices.mice[0].scrollFactor is None
        assert devices.switches[0].name == "Lid Switch"
        assert devices.tablets == []

    def test_binds(self):
        (bind,) = decode_response(commands.Binds(), as_json([BIND]))
        assert isinstance(bind, responses.Bind)
        assert (bind.modmask, bind.key, bind.dispatcher, bind.arg) == (64, "Return", "exec", "kitty")
        assert bind.longPress is False

    def test_layers(self):
        layers = decode_response(commands.Layers(), as_json(LAYERS))
        levels = layers["DP-1"].levels
        assert sorted(levels) == ["0", "1", "2", "3"]
        (bar,) = levels["2"]
        assert (bar.namespace, bar.w, bar.h) == ("waybar", 2560, 30)

    def test_instances(self):
        (instance,) = decode_response(commands.Instances(), as_json([INSTANCE]))
        assert isinstance(instance, responses.Instance)
        assert instance.wl_socket == "wayland-1"
        assert instance.pid == 1102

    def test_workspace_rules_are_untyped(self):
        rules = decode_response(commands.WorkspaceRules(), as_json(WORKSPACE_RULES))
        assert rules == WORKSPACE_RULES

    def test_active_window(self):
        window = decode_response(commands.ActiveWindow(), as_json(CLIENT))
        assert window.window_class == "kitty"

    def test_no_active_window(self):
        assert decode_response(commands.ActiveWindow(), b"{}") is None

    def test_partial_active_window_is_rejected(self):
        with pytest.raises(ResponseSchemaError):
            decode_response(commands.ActiveWindow(), b'{"address": "0x1"}')

    def test_invalid_json(self):
        with pytest.raises(ResponseDecodeError) as exc_info:
            decode_response(commands.Clients(), b"unknown request")
        assert type(exc_info.value) is ResponseDecodeError
        assert "not valid JSON" in str(exc_info.value)
        assert exc_info.value.raw == "unknown request"

    def test_wrong_type_names_field(self, caplog):
        bad = dict(WORKSPACE, id="1")
        with pytest.raises(ResponseSchemaError) as exc_info:
            decode_response(commands.Workspaces(), as_json([WORKSPACE, bad]))
        assert exc_info.value.field == "1.id"
        assert exc_info.value.command == "workspaces"
        assert "1.id" in caplog.text

    def test_unknown_field_is_rejected(self):
        with pytest.raises(ResponseSchemaError) as exc_info:
            decode_response(commands.CursorPos(), b'{"x": 1, "y": 2, "z": 3}')
        assert exc_info.value.field == "z"

    def test_missing_field_is_rejected(self):
        with pytest.raises(ResponseSchemaError) as exc_info:
            decode_response(commands.CursorPos(), b'{"x": 1}')
        assert exc_info.value.field == "y"

    def test_no_coercion_from_strings(self):
        with pytest.raises(ResponseSchemaError):
            decode_response(commands.Locked(), b'{"locked": "true"}')

    def test_schema_adapter_is_cached(self):
        assert schema_adapter("clients") is schema_adapter("clients")
