"""Typed events read from the Hyprland event socket.

Every line on the event socket has the form ``name>>field1,field2,...``.
Each known ``name`` maps to one frozen dataclass whose fields are filled in
wire order according to an explicit table of field kinds (string, integer,
boolean or a small IntEnum). The protocol defines no escaping, so a field
containing a comma is split like any other.

See https://wiki.hyprland.org/IPC/#events-list for the upstream list.
"""

from __future__ import annotations

import logging
import re
import socket
from collections.abc import Iterator
from dataclasses import dataclass, fields
from enum import Enum, IntEnum
from typing import ClassVar, Optional, Union

from .platform import HyprlandPaths
from .protocol import DEFAULT_BUFFER_SIZE, HyprlandTransportError, LineFramer

logger = logging.getLogger("HyprlandIPC")

NAME_DELIMITER = ">>"
FIELD_DELIMITER = ","

_INTEGER_RE = re.compile(r"-?[0-9]+")


# ---------------------------------------------------------------------------
# Diagnostics and errors
# ---------------------------------------------------------------------------

@dataclass
class ParseDiagnostics:
    """What the decoder saw before it succeeded or gave up.

    Only meant for logging; never inspect it to decide control flow.
    """

    line: str = ""
    # Set once the name has been split off the line
    command: Optional[str] = None
    # Set once at least one argument was read
    last_argument: Optional[str] = None
    arguments_read: int = 0

    def reset(self, line: str) -> None:
        self.line = line
        self.command = None
        self.last_argument = None
        self.arguments_read = 0

    def record_argument(self, argument: str) -> None:
        self.last_argument = argument
        self.arguments_read += 1


class EventParseError(Exception):
    """Base class for lines that cannot be decoded into an event.

    Decoding the next line is always possible, so callers are expected to
    log the diagnostics and carry on.
    """

    def __init__(self, message: str, diagnostics: ParseDiagnostics) -> None:
        self.diagnostics = diagnostics
        super().__init__(message)


class MissingCommandNameError(EventParseError):
    """The line does not start with an event name."""

    def __init__(self, diagnostics: ParseDiagnostics) -> None:
        super().__init__(f"No event name in line {diagnostics.line!r}", diagnostics)


class UnknownCommandError(EventParseError):
    """The event name is not one this library knows."""

    def __init__(self, diagnostics: ParseDiagnostics) -> None:
        super().__init__(f"Unknown event {diagnostics.command!r}", diagnostics)


class MissingParamsError(EventParseError):
    """The event expects more parameters than the line provides."""

    def __init__(self, diagnostics: ParseDiagnostics) -> None:
        super().__init__(
            f"Event {diagnostics.command!r} is missing parameters "
            f"(read {diagnostics.arguments_read})",
            diagnostics,
        )


class InvalidIntegerError(EventParseError):
    """The last parameter read is not a base-10 integer."""

    def __init__(self, diagnostics: ParseDiagnostics) -> None:
        super().__init__(
            f"Event {diagnostics.command!r}: {diagnostics.last_argument!r} is not an integer",
            diagnostics,
        )


class InvalidBooleanError(EventParseError):
    """The last parameter read is neither "0" nor "1"."""

    def __init__(self, diagnostics: ParseDiagnostics) -> None:
        super().__init__(
            f"Event {diagnostics.command!r}: {diagnostics.last_argument!r} is not 0 or 1",
            diagnostics,
        )


class InvalidEnumError(EventParseError):
    """The last parameter read is out of range for its enum."""

    def __init__(self, diagnostics: ParseDiagnostics, enum_type: type[IntEnum]) -> None:
        self.enum_type = enum_type
        super().__init__(
            f"Event {diagnostics.command!r}: {diagnostics.last_argument!r} is not a valid "
            f"{enum_type.__name__} (expected 0..{len(enum_type) - 1})",
            diagnostics,
        )


# ---------------------------------------------------------------------------
# Field extraction
# ---------------------------------------------------------------------------

class FieldKind(Enum):
    """How a wire field is converted."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"


FieldSpec = Union[FieldKind, type[IntEnum]]


def iter_fields(text: Optional[str]) -> Iterator[str]:
    """Lazily split text on commas. None yields nothing, "" yields one field."""
    if text is None:
        return
    start = 0
    while True:
        index = text.find(FIELD_DELIMITER, start)
        if index == -1:
            yield text[start:]
            return
        yield text[start:index]
        start = index + len(FIELD_DELIMITER)


class ParamsCursor:
    """Walks the comma-separated fields of one line's parameters.

    Every field handed out is recorded in the diagnostics before it is
    converted, so a conversion failure points at the offending field.
    """

    def __init__(self, params: str, diagnostics: ParseDiagnostics) -> None:
        self._params = params
        # None once every field has been handed out
        self._position: Optional[int] = 0
        self.diagnostics = diagnostics

    def next_field(self) -> Optional[str]:
        """Return the next raw field, or None when exhausted."""
        if self._position is None:
            return None
        start = self._position
        index = self._params.find(FIELD_DELIMITER, start)
        if index == -1:
            self._position = None
            return self._params[start:]
        self._position = index + len(FIELD_DELIMITER)
        return self._params[start:index]

    def remaining(self) -> Optional[str]:
        """Unread part of the parameters, or None when exhausted."""
        if self._position is None:
            return None
        return self._params[self._position:]

    def take_string(self) -> str:
        value = self.next_field()
        if value is None:
            raise MissingParamsError(self.diagnostics)
        self.diagnostics.record_argument(value)
        return value

    def take_int(self) -> int:
        value = self.take_string()
        if not _INTEGER_RE.fullmatch(value):
            raise InvalidIntegerError(self.diagnostics)
        return int(value)

    def take_bool(self) -> bool:
        value = self.take_string()
        if value == "1":
            return True
        if value == "0":
            return False
        raise InvalidBooleanError(self.diagnostics)

    def take_enum(self, enum_type: type[IntEnum]) -> IntEnum:
        ordinal = self.take_int()
        if not 0 <= ordinal < len(enum_type):
            raise InvalidEnumError(self.diagnostics, enum_type)
        return enum_type(ordinal)

    def take(self, spec: FieldSpec):
        if spec is FieldKind.STRING:
            return self.take_string()
        if spec is FieldKind.INTEGER:
            return self.take_int()
        if spec is FieldKind.BOOLEAN:
            return self.take_bool()
        return self.take_enum(spec)


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------

STR = FieldKind.STRING
INT = FieldKind.INTEGER
BOOL = FieldKind.BOOLEAN


class FullscreenState(IntEnum):
    EXIT = 0
    ENTER = 1


class ScreencastOwner(IntEnum):
    MONITOR = 0
    WINDOW = 1


@dataclass(frozen=True)
class Event:
    """Base class of all decoded events."""

    name: ClassVar[str] = ""


# name -> (event class, field kinds in wire order)
EVENT_PARSERS: dict[str, tuple[type[Event], tuple[FieldSpec, ...]]] = {}


def _event(name: str, *specs: FieldSpec):
    """Register an event class under its wire name with its field kinds."""

    def decorator(cls: type[Event]) -> type[Event]:
        if len(fields(cls)) != len(specs):
            raise TypeError(f"{cls.__name__} declares {len(fields(cls))} fields but {len(specs)} kinds")
        cls.name = name
        EVENT_PARSERS[name] = (cls, specs)
        return cls

    return decorator


@_event("workspace", STR)
@dataclass(frozen=True)
class WorkspaceEvent(Event):
    """Emitted on a workspace change requested by the user (not on mouse moves)."""

    workspace_name: str


@_event("workspacev2", INT, STR)
@dataclass(frozen=True)
class WorkspaceV2Event(Event):
    workspace_id: int
    workspace_name: str


@_event("focusedmon", STR, STR)
@dataclass(frozen=True)
class FocusedMonitorEvent(Event):
    """Emitted when the active monitor changes."""

    monitor_name: str
    workspace_name: str


@_event("focusedmonv2", STR, INT)
@dataclass(frozen=True)
class FocusedMonitorV2Event(Event):
    monitor_name: str
    workspace_id: int


@_event("activewindow", STR, STR)
@dataclass(frozen=True)
class ActiveWindowEvent(Event):
    """Emitted when the active window changes."""

    window_class: str
    window_title: str


@_event("activewindowv2", STR)
@dataclass(frozen=True)
class ActiveWindowV2Event(Event):
    window_address: str


@_event("fullscreen", FullscreenState)
@dataclass(frozen=True)
class FullscreenEvent(Event):
    """Emitted when the fullscreen status of a window changes."""

    state: FullscreenState

    @property
    def entered(self) -> bool:
        return self.state is FullscreenState.ENTER


@_event("monitorremoved", STR)
@dataclass(frozen=True)
class MonitorRemovedEvent(Event):
    monitor_name: str


@_event("monitorremovedv2", INT, STR, STR)
@dataclass(frozen=True)
class MonitorRemovedV2Event(Event):
    monitor_id: int
    monitor_name: str
    monitor_description: str


@_event("monitoradded", STR)
@dataclass(frozen=True)
class MonitorAddedEvent(Event):
    monitor_name: str


@_event("monitoraddedv2", INT, STR, STR)
@dataclass(frozen=True)
class MonitorAddedV2Event(Event):
    monitor_id: int
    monitor_name: str
    monitor_description: str


@_event("createworkspace", STR)
@dataclass(frozen=True)
class CreateWorkspaceEvent(Event):
    workspace_name: str


@_event("createworkspacev2", INT, STR)
@dataclass(frozen=True)
class CreateWorkspaceV2Event(Event):
    workspace_id: int
    workspace_name: str


@_event("destroyworkspace", STR)
@dataclass(frozen=True)
class DestroyWorkspaceEvent(Event):
    workspace_name: str


@_event("destroyworkspacev2", INT, STR)
@dataclass(frozen=True)
class DestroyWorkspaceV2Event(Event):
    workspace_id: int
    workspace_name: str


@_event("moveworkspace", STR, STR)
@dataclass(frozen=True)
class MoveWorkspaceEvent(Event):
    """Emitted when a workspace is moved to a different monitor."""

    workspace_name: str
    monitor_name: str


@_event("moveworkspacev2", INT, STR, STR)
@dataclass(frozen=True)
class MoveWorkspaceV2Event(Event):
    workspace_id: int
    workspace_name: str
    monitor_name: str


@_event("renameworkspace", INT, STR)
@dataclass(frozen=True)
class RenameWorkspaceEvent(Event):
    workspace_id: int
    new_name: str


@_event("activespecial", STR, STR)
@dataclass(frozen=True)
class ActiveSpecialEvent(Event):
    """Emitted when the special workspace shown on a monitor changes.

    Closing the special workspace gives an empty workspace_name.
    """

    workspace_name: str
    monitor_name: str


@_event("activespecialv2", INT, STR, STR)
@dataclass(frozen=True)
class ActiveSpecialV2Event(Event):
    workspace_id: int
    workspace_name: str
    monitor_name: str


@_event("activelayout", STR, STR)
@dataclass(frozen=True)
class ActiveLayoutEvent(Event):
    """Emitted on a layout change of the active keyboard."""

    keyboard_name: str
    layout_name: str


@_event("openwindow", STR, STR, STR, STR)
@dataclass(frozen=True)
class OpenWindowEvent(Event):
    window_address: str
    workspace_name: str
    window_class: str
    window_title: str


@_event("closewindow", STR)
@dataclass(frozen=True)
class CloseWindowEvent(Event):
    window_address: str


@_event("movewindow", STR, STR)
@dataclass(frozen=True)
class MoveWindowEvent(Event):
    window_address: str
    workspace_name: str


@_event("movewindowv2", STR, INT, STR)
@dataclass(frozen=True)
class MoveWindowV2Event(Event):
    window_address: str
    workspace_id: int
    workspace_name: str


@_event("openlayer", STR)
@dataclass(frozen=True)
class OpenLayerEvent(Event):
    """Emitted when a layer surface is mapped."""

    namespace: str


@_event("closelayer", STR)
@dataclass(frozen=True)
class CloseLayerEvent(Event):
    """Emitted when a layer surface is unmapped."""

    namespace: str


@_event("submap", STR)
@dataclass(frozen=True)
class SubmapEvent(Event):
    """Emitted when the keybind submap changes. Empty means default."""

    submap_name: str


@_event("changefloatingmode", STR, BOOL)
@dataclass(frozen=True)
class ChangeFloatingModeEvent(Event):
    window_address: str
    floating: bool


@_event("urgent", STR)
@dataclass(frozen=True)
class UrgentEvent(Event):
    window_address: str


@_event("minimized", STR, BOOL)
@dataclass(frozen=True)
class MinimizedEvent(Event):
    window_address: str
    minimized: bool


@_event("screencast", BOOL, ScreencastOwner)
@dataclass(frozen=True)
class ScreencastEvent(Event):
    """Emitted when the screencopy state of a client changes.

    There may be several clients screencasting at once.
    """

    state: bool
    owner: ScreencastOwner


@_event("windowtitle", STR)
@dataclass(frozen=True)
class WindowTitleEvent(Event):
    window_address: str


@_event("windowtitlev2", STR, STR)
@dataclass(frozen=True)
class WindowTitleV2Event(Event):
    window_address: str
    window_title: str


@dataclass(frozen=True)
class ToggleGroupEvent(Event):
    """Emitted when togglegroup is used.

    The wire form is ``state,address1,address2,...``: a state of 0 means the
    group was destroyed and the addresses are the windows that were in it.
    The address list is left unsplit until window_addresses() is iterated.
    """

    name: ClassVar[str] = "togglegroup"

    state: bool
    # Unread tail of the parameters; None when the line had no addresses
    addresses: Optional[str] = None

    def window_addresses(self) -> Iterator[str]:
        return iter_fields(self.addresses)


@_event("moveintogroup", STR)
@dataclass(frozen=True)
class MoveIntoGroupEvent(Event):
    window_address: str


@_event("moveoutofgroup", STR)
@dataclass(frozen=True)
class MoveOutOfGroupEvent(Event):
    window_address: str


@_event("ignoregrouplock", BOOL)
@dataclass(frozen=True)
class IgnoreGroupLockEvent(Event):
    enabled: bool


@_event("lockgroups", BOOL)
@dataclass(frozen=True)
class LockGroupsEvent(Event):
    locked: bool


@_event("configreloaded")
@dataclass(frozen=True)
class ConfigReloadedEvent(Event):
    """Emitted when the config is done reloading."""


@_event("pin", STR, BOOL)
@dataclass(frozen=True)
class PinEvent(Event):
    window_address: str
    pinned: bool


@_event("bell", STR)
@dataclass(frozen=True)
class BellEvent(Event):
    """Emitted when an app requests to ring the system bell. The address may be empty."""

    window_address: str


EVENT_TYPES: dict[str, type[Event]] = {
    **{name: cls for name, (cls, _) in EVENT_PARSERS.items()},
    ToggleGroupEvent.name: ToggleGroupEvent,
}


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def parse_event(line: Union[str, bytes], diagnostics: Optional[ParseDiagnostics] = None) -> Event:
    """Decode one event line (without its trailing newline).

    Args:
        line: The raw line. Bytes are decoded as UTF-8, replacing bad sequences.
        diagnostics: Optional object that records how far decoding got.

    Returns:
        The typed event.

    Raises:
        EventParseError: One of its subclasses, carrying the diagnostics.
    """
    if isinstance(line, (bytes, bytearray, memoryview)):
        line = bytes(line).decode("utf-8", errors="replace")
    diags = diagnostics if diagnostics is not None else ParseDiagnostics()
    diags.reset(line)

    name, _, params = line.partition(NAME_DELIMITER)
    if not name:
        raise MissingCommandNameError(diags)
    diags.command = name
    cursor = ParamsCursor(params, diags)

    # The address list of togglegroup has no fixed arity
    if name == ToggleGroupEvent.name:
        state = cursor.take_bool()
        return ToggleGroupEvent(state, cursor.remaining())

    parser = EVENT_PARSERS.get(name)
    if parser is None:
        raise UnknownCommandError(diags)
    cls, specs = parser
    return cls(*[cursor.take(spec) for spec in specs])


# ---------------------------------------------------------------------------
# Event socket
# ---------------------------------------------------------------------------

class EventSocket:
    """Long-lived connection to the Hyprland event socket.

    There is no reconnection: once EventStreamClosedError is raised the
    caller has to open a new EventSocket.
    """

    def __init__(self, sock: socket.socket, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self.sock = sock
        self.framer = LineFramer(sock, buffer_size)

    @classmethod
    def open(cls, paths: Optional[HyprlandPaths] = None,
             buffer_size: int = DEFAULT_BUFFER_SIZE) -> EventSocket:
        """Connect to the event socket of the current (or given) instance.

        Raises:
            HyprlandConfigError: If the socket path cannot be resolved.
            HyprlandTransportError: If the connection fails.
        """
        if paths is None:
            paths = HyprlandPaths.from_environ()
        path = paths.event_socket
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(path)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to connect to Hyprland event socket: {str(e)}")
            raise HyprlandTransportError(f"Could not connect to {path}: {e}") from e
        logger.info(f"Connected to Hyprland event socket at {path}")
        return cls(sock, buffer_size)

    def read_event(self, diagnostics: Optional[ParseDiagnostics] = None) -> Event:
        """Decode the next event without consuming its line."""
        return parse_event(self.framer.read_line(), diagnostics)

    def consume_event(self, diagnostics: Optional[ParseDiagnostics] = None) -> Event:
        """Consume the next line and decode it.

        The line is consumed even when decoding fails, so the following call
        moves on to the next event.
        """
        return parse_event(self.framer.consume_line(), diagnostics)

    def __iter__(self) -> Iterator[Event]:
        """Yield events until the stream ends, skipping undecodable lines."""
        while True:
            diags = ParseDiagnostics()
            try:
                yield self.consume_event(diags)
            except EventParseError as e:
                logger.warning(
                    f"Skipping event line: {e} "
                    f"(line={diags.line!r}, arguments read={diags.arguments_read})"
                )

    def close(self) -> None:
        try:
            self.sock.close()
        except OSError as e:
            logger.error(f"Error closing Hyprland event socket: {str(e)}")

    def __enter__(self) -> EventSocket:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
