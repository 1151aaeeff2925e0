"""Commands understood by the Hyprland request socket.

Each command is a frozen dataclass that renders to the exact text hyprctl
would send, e.g. ``SetCursor("foo", 50)`` renders as ``setcursor foo 50``.
On the wire the rendered text is prefixed with the ``j/`` flag (JSON output)
and terminated with a NUL byte.

Commands come in three kinds:
- ACTION: the reply is ``ok`` or an error message
- JSON:   the reply is a JSON document with a fixed shape
- TEXT:   the reply is plain text (Hyprland does not return valid JSON)

https://wiki.hyprland.org/Configuring/Using-hyprctl/
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import ClassVar, Optional, Union

from .protocol import encode_request

JSON_FLAG = "j/"

KEYBOARD_CURRENT = "current"
KEYBOARD_ALL = "all"
LAYOUT_NEXT = "next"
LAYOUT_PREV = "prev"


class CommandKind(Enum):
    ACTION = "action"
    JSON = "json"
    TEXT = "text"


def format_rgba(color: int) -> str:
    """Format a 32-bit color as hyprctl's rgba(xxxxxxxx) syntax."""
    return f"rgba({color & 0xFFFFFFFF:08x})"


@dataclass(frozen=True)
class Command:
    """Base class of all request socket commands."""

    name: ClassVar[str] = ""
    kind: ClassVar[CommandKind] = CommandKind.ACTION

    def arguments(self) -> list[str]:
        return []

    def render(self) -> str:
        return " ".join([self.name, *self.arguments()])


def _command(name: str, kind: CommandKind = CommandKind.ACTION):
    def decorator(cls: type[Command]) -> type[Command]:
        cls.name = name
        cls.kind = kind
        return cls

    return decorator


def render_command(command: Command) -> str:
    """Render a command into its wire text (without flags or terminator)."""
    return command.render()


def encode_command(command: Command) -> bytes:
    """Build the complete request buffer for a command."""
    return encode_request(JSON_FLAG + command.render())


# ---------------------------------------------------------------------------
# Action commands
# ---------------------------------------------------------------------------

@_command("dispatch")
@dataclass(frozen=True)
class Dispatch(Command):
    """Call a keybind dispatcher with an argument, e.g. ``workspace 3``."""

    argument: str

    def arguments(self) -> list[str]:
        return [self.argument]


@_command("keyword")
@dataclass(frozen=True)
class Keyword(Command):
    """Set a config keyword dynamically."""

    key: str
    value: str

    def arguments(self) -> list[str]:
        return [self.key, self.value]


@_command("reload")
@dataclass(frozen=True)
class Reload(Command):
    """Reload the config."""


@_command("kill")
@dataclass(frozen=True)
class Kill(Command):
    """Enter kill mode: the next clicked window is killed. ESCAPE leaves it."""


@_command("setcursor")
@dataclass(frozen=True)
class SetCursor(Command):
    """Set the cursor theme and size, reloading the cursor manager.

    Applies to everything except GTK.
    """

    theme: str
    size: int

    def arguments(self) -> list[str]:
        return [self.theme, str(self.size)]


class OutputBackend(Enum):
    # A Wayland window; only works when Hyprland itself runs nested
    WAYLAND = "wayland"
    # A headless output, for VNC/RDP/Sunshine servers
    HEADLESS = "headless"
    # Let Hyprland pick
    AUTO = "auto"


@_command("output")
@dataclass(frozen=True)
class CreateOutput(Command):
    """Add a fake output.

    backend may also be a plain string for backends newer than this library.
    Without a name Hyprland picks one (HEADLESS-2, WL-1, ...).
    """

    backend: Union[OutputBackend, str] = OutputBackend.AUTO
    output_name: Optional[str] = None

    def arguments(self) -> list[str]:
        backend = self.backend.value if isinstance(self.backend, OutputBackend) else self.backend
        args = ["create", backend]
        if self.output_name is not None:
            args.append(self.output_name)
        return args


@_command("output")
@dataclass(frozen=True)
class RemoveOutput(Command):
    output_name: str

    def arguments(self) -> list[str]:
        return ["remove", self.output_name]


@_command("switchxkblayout")
@dataclass(frozen=True)
class SwitchXkbLayout(Command):
    """Set the xkb layout index for a keyboard.

    device is ``current`` (the main keyboard), ``all`` or a device name from
    the devices query. layout is ``next``, ``prev`` or a layout index.
    """

    device: str = KEYBOARD_CURRENT
    layout: Union[str, int] = LAYOUT_NEXT

    def arguments(self) -> list[str]:
        return [self.device, str(self.layout)]


@_command("seterror")
@dataclass(frozen=True)
class SetError(Command):
    """Show the hyprctl error bar until the next config reload."""

    color: int
    message: str

    def arguments(self) -> list[str]:
        return [format_rgba(self.color), self.message]


@_command("seterror")
@dataclass(frozen=True)
class DisableError(Command):
    def arguments(self) -> list[str]:
        return ["disable"]


class NotifyIcon(IntEnum):
    NONE = -1
    WARNING = 0
    INFO = 1
    HINT = 2
    ERROR = 3
    CONFUSED = 4
    OK = 5


@_command("notify")
@dataclass(frozen=True)
class Notify(Command):
    """Show a notification through Hyprland's built-in notification system.

    color None means the default color for the icon.
    """

    message: str
    time_ms: int = 5000
    icon: NotifyIcon = NotifyIcon.INFO
    color: Optional[int] = None
    font_size: Optional[int] = None

    def arguments(self) -> list[str]:
        args = [
            str(int(self.icon)),
            str(self.time_ms),
            "0" if self.color is None else format_rgba(self.color),
        ]
        if self.font_size is not None:
            args.append(f"fontsize:{self.font_size}")
        args.append(self.message)
        return args


@_command("dismissnotify")
@dataclass(frozen=True)
class DismissNotify(Command):
    """Dismiss up to amount notifications, or all of them when amount is None."""

    amount: Optional[int] = None

    def arguments(self) -> list[str]:
        return [] if self.amount is None else [str(self.amount)]


# ---------------------------------------------------------------------------
# Info commands
# ---------------------------------------------------------------------------

@_command("version", CommandKind.JSON)
@dataclass(frozen=True)
class Version(Command):
    """Hyprland version along with flags, commit and branch of the build."""


@_command("monitors", CommandKind.JSON)
@dataclass(frozen=True)
class Monitors(Command):
    """Active outputs; with all=True inactive outputs are listed too."""

    all: bool = False

    def arguments(self) -> list[str]:
        return ["all"] if self.all else []


@_command("workspaces", CommandKind.JSON)
@dataclass(frozen=True)
class Workspaces(Command):
    pass


@_command("activeworkspace", CommandKind.JSON)
@dataclass(frozen=True)
class ActiveWorkspace(Command):
    pass


@_command("workspacerules", CommandKind.JSON)
@dataclass(frozen=True)
class WorkspaceRules(Command):
    pass


@_command("clients", CommandKind.JSON)
@dataclass(frozen=True)
class Clients(Command):
    """All windows with their properties."""


@_command("devices", CommandKind.JSON)
@dataclass(frozen=True)
class Devices(Command):
    """Connected keyboards, mice, tablets, touch devices and switches."""


@_command("decorations", CommandKind.TEXT)
@dataclass(frozen=True)
class Decorations(Command):
    """Decorations of the windows matching a regex."""

    window: Optional[str] = None

    def arguments(self) -> list[str]:
        return [] if self.window is None else [self.window]


@_command("binds", CommandKind.JSON)
@dataclass(frozen=True)
class Binds(Command):
    pass


@_command("activewindow", CommandKind.JSON)
@dataclass(frozen=True)
class ActiveWindow(Command):
    pass


@_command("layers", CommandKind.JSON)
@dataclass(frozen=True)
class Layers(Command):
    pass


@_command("splash", CommandKind.TEXT)
@dataclass(frozen=True)
class Splash(Command):
    pass


@_command("getoption", CommandKind.JSON)
@dataclass(frozen=True)
class GetOption(Command):
    """Current value of a config option, e.g. ``general:border_size``."""

    option: str

    def arguments(self) -> list[str]:
        return [self.option]


@_command("cursorpos", CommandKind.JSON)
@dataclass(frozen=True)
class CursorPos(Command):
    """Cursor position in global layout coordinates."""


@_command("animations", CommandKind.TEXT)
@dataclass(frozen=True)
class Animations(Command):
    pass


@_command("instances", CommandKind.JSON)
@dataclass(frozen=True)
class Instances(Command):
    pass


@_command("layouts", CommandKind.JSON)
@dataclass(frozen=True)
class Layouts(Command):
    pass


@_command("configerrors", CommandKind.JSON)
@dataclass(frozen=True)
class ConfigErrors(Command):
    pass


@_command("rollinglog", CommandKind.TEXT)
@dataclass(frozen=True)
class RollingLog(Command):
    pass


@_command("locked", CommandKind.JSON)
@dataclass(frozen=True)
class Locked(Command):
    pass


@_command("descriptions", CommandKind.TEXT)
@dataclass(frozen=True)
class Descriptions(Command):
    pass


@_command("submap", CommandKind.TEXT)
@dataclass(frozen=True)
class Submap(Command):
    pass


@_command("systeminfo", CommandKind.TEXT)
@dataclass(frozen=True)
class SystemInfo(Command):
    pass


@_command("globalshortcuts", CommandKind.JSON)
@dataclass(frozen=True)
class GlobalShortcuts(Command):
    pass
