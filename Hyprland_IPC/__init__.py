"""Hyprland IPC client with a Model Context Protocol front-end."""

__version__ = "0.1.0"

# Socket discovery
from .platform import (
    SocketKind,
    HyprlandConfigError,
    RuntimeDirNotFoundError,
    InstanceSignatureNotFoundError,
    SocketPathTooLongError,
    HyprlandPaths,
    get_hyprland_paths,
)

# Wire framing
from .protocol import (
    DEFAULT_BUFFER_SIZE,
    HyprlandTransportError,
    EventStreamClosedError,
    BufferFullError,
    LineFramer,
)

# Event socket
from .events import (
    ParseDiagnostics,
    EventParseError,
    MissingCommandNameError,
    UnknownCommandError,
    MissingParamsError,
    InvalidIntegerError,
    InvalidBooleanError,
    InvalidEnumError,
    Event,
    EVENT_TYPES,
    EventSocket,
    parse_event,
)

# Request socket
from .commands import Command, CommandKind, render_command, encode_command
from .responses import (
    ResponseDecodeError,
    ResponseSchemaError,
    Ok,
    Err,
    CommandResponse,
    decode_response,
)
from .client import HyprlandConnection
