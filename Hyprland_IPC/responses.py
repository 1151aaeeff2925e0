"""Typed replies from the Hyprland request socket.

Action commands reply with ``ok`` or an error message. Info commands reply
with a JSON document whose shape is fixed per command; these shapes are
pydantic models that reject unknown fields and wrong types, so a reply that
does not match points at a Hyprland version this library does not know yet
rather than at a transport problem.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError

from .commands import Command, CommandKind

logger = logging.getLogger("HyprlandIPC")

OK_REPLY = b"ok"


class ResponseDecodeError(Exception):
    """Raised when an info reply cannot be decoded."""

    def __init__(self, command: str, raw: str, reason: str) -> None:
        self.command = command
        self.raw = raw
        super().__init__(f"Reply to {command!r} could not be decoded: {reason}")


class ResponseSchemaError(ResponseDecodeError):
    """Raised when an info reply does not match the expected shape."""

    def __init__(self, command: str, field: str, raw: str, error: ValidationError) -> None:
        self.field = field
        self.validation_error = error
        super().__init__(
            command,
            raw,
            f"unexpected data at field {field!r} ({error.errors()[0]['msg']})",
        )


# ---------------------------------------------------------------------------
# Action results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Ok:
    def __str__(self) -> str:
        return "Ok"


@dataclass(frozen=True)
class Err:
    message: str

    def __str__(self) -> str:
        return f"Error: {self.message}"


ActionResult = Union[Ok, Err]


@dataclass
class CommandResponse:
    """One reply from the request socket.

    Attributes:
        command: The command that was sent.
        raw: The reply bytes as received.
        value: Ok/Err for action commands, a decoded model (or list of them)
            for JSON info commands, plain text for text info commands.
    """

    command: Command
    raw: bytes
    value: Any

    @property
    def text(self) -> str:
        return self.raw.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        return not isinstance(self.value, Err)


# ---------------------------------------------------------------------------
# Info schemas
# ---------------------------------------------------------------------------

class HyprlandModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class Version(HyprlandModel):
    branch: str
    commit: str
    version: Optional[str] = None
    dirty: bool
    commit_message: str
    commit_date: str
    tag: str
    commits: str
    buildAquamarine: Optional[str] = None
    buildHyprlang: Optional[str] = None
    buildHyprutils: Optional[str] = None
    buildHyprcursor: Optional[str] = None
    buildHyprgraphics: Optional[str] = None
    systemAquamarine: Optional[str] = None
    systemHyprlang: Optional[str] = None
    systemHyprutils: Optional[str] = None
    systemHyprcursor: Optional[str] = None
    systemHyprgraphics: Optional[str] = None
    abiHash: Optional[str] = None
    flags: list[str]


class WorkspaceRef(HyprlandModel):
    id: int
    name: str


class Monitor(HyprlandModel):
    id: int
    name: str
    description: str
    make: str
    model: str
    serial: str
    width: int
    height: int
    physicalWidth: Optional[int] = None
    physicalHeight: Optional[int] = None
    refreshRate: float
    x: int
    y: int
    activeWorkspace: WorkspaceRef
    specialWorkspace: WorkspaceRef
    reserved: tuple[int, int, int, int]
    scale: float
    transform: int
    focused: bool
    dpmsStatus: bool
    vrr: bool
    solitary: str
    activelyTearing: bool
    directScanoutTo: Optional[str] = None
    disabled: bool
    currentFormat: str
    mirrorOf: str
    availableModes: list[str]


class Workspace(HyprlandModel):
    id: int
    name: str
    monitor: str
    monitorID: Optional[int]
    windows: int
    hasfullscreen: bool
    lastwindow: str
    lastwindowtitle: str
    ispersistent: Optional[bool] = None


class Client(HyprlandModel):
    address: str
    mapped: bool
    hidden: bool
    at: tuple[int, int]
    size: tuple[int, int]
    workspace: WorkspaceRef
    floating: bool
    pseudo: bool
    monitor: int
    window_class: str = Field(alias="class")
    title: str
    initialClass: str
    initialTitle: str
    pid: int
    xwayland: bool
    pinned: bool
    fullscreen: int
    fullscreenClient: int
    grouped: list[str]
    tags: list[str]
    swallowing: str
    focusHistoryID: int
    inhibitingIdle: Optional[bool] = None
    xdgTag: Optional[str] = None
    xdgDescription: Optional[str] = None
    contentType: Optional[str] = None


class Mouse(HyprlandModel):
    address: str
    name: str
    defaultSpeed: float
    scrollFactor: Optional[float] = None


class Keyboard(HyprlandModel):
    address: str
    name: str
    rules: str
    model: str
    layout: str
    variant: str
    options: str
    active_keymap: str
    capsLock: bool
    numLock: bool
    main: bool


class Switch(HyprlandModel):
    address: str
    name: str


class DeviceList(HyprlandModel):
    mice: list[Mouse]
    keyboards: list[Keyboard]
    tablets: list[dict[str, Any]]
    touch: list[dict[str, Any]]
    switches: list[Switch]


class Bind(HyprlandModel):
    locked: bool
    mouse: bool
    release: bool
    repeat: bool
    longPress: Optional[bool] = None
    non_consuming: bool
    has_description: bool
    modmask: int
    submap: str
    key: str
    keycode: int
    catch_all: bool
    description: str
    dispatcher: str
    arg: str


class LayerSurface(HyprlandModel):
    address: str
    x: int
    y: int
    w: int
    h: int
    namespace: str
    pid: Optional[int] = None


class LayerMonitor(HyprlandModel):
    # level index ("0".."3") -> surfaces on that level
    levels: dict[str, list[LayerSurface]]


class CursorPosition(HyprlandModel):
    x: int
    y: int


class Instance(HyprlandModel):
    instance: str
    time: int
    pid: int
    wl_socket: str


class LockState(HyprlandModel):
    locked: bool


def _empty_object_as_none(value: Any) -> Any:
    return None if value == {} else value


# Hyprland answers activewindow with {} while no window has focus
ActiveWindowReply = Annotated[Optional[Client], BeforeValidator(_empty_object_as_none)]


# command name -> expected shape of its JSON reply
RESPONSE_SCHEMAS: dict[str, Any] = {
    "version": Version,
    "monitors": list[Monitor],
    "workspaces": list[Workspace],
    "activeworkspace": Workspace,
    "workspacerules": list[dict[str, Any]],
    "clients": list[Client],
    "devices": DeviceList,
    "binds": list[Bind],
    "activewindow": ActiveWindowReply,
    "layers": dict[str, LayerMonitor],
    "getoption": dict[str, Any],
    "cursorpos": CursorPosition,
    "instances": list[Instance],
    "layouts": list[str],
    "configerrors": list[str],
    "locked": LockState,
    "globalshortcuts": list[dict[str, Any]],
}


@lru_cache(maxsize=None)
def schema_adapter(command_name: str) -> TypeAdapter:
    """Get the validator for a JSON info command's reply."""
    return TypeAdapter(RESPONSE_SCHEMAS[command_name])


def decode_response(command: Command, raw: bytes) -> Any:
    """Turn reply bytes into the typed value for command.

    Raises:
        ResponseDecodeError: If a JSON info reply is not valid JSON.
        ResponseSchemaError: If a JSON info reply has an unexpected shape.
    """
    if raw == OK_REPLY:
        return Ok()
    text = raw.decode("utf-8", errors="replace")
    if command.kind is CommandKind.ACTION:
        return Err(text)
    if command.kind is CommandKind.TEXT:
        return text

    try:
        return schema_adapter(command.name).validate_json(raw, strict=True)
    except ValidationError as e:
        first = e.errors()[0]
        if first["type"] == "json_invalid":
            raise ResponseDecodeError(command.name, text, f"not valid JSON ({first['msg']})") from e
        field = ".".join(str(part) for part in first["loc"])
        logger.warning(
            f"For command {command.name}: unexpected data at field '{field}' "
            f"({first['msg']}) while parsing:\n{text}"
        )
        raise ResponseSchemaError(command.name, field, text, e) from e
