"""Socket discovery for a running Hyprland instance.

Hyprland exposes two Unix domain sockets per instance, both living under
``$XDG_RUNTIME_DIR/hypr/$HYPRLAND_INSTANCE_SIGNATURE/``:

- ``.socket.sock``  - request socket, one command per connection
- ``.socket2.sock`` - event socket, a continuous stream of notifications

This module only builds the paths; it never touches the filesystem.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

RUNTIME_DIR_VAR = "XDG_RUNTIME_DIR"
INSTANCE_SIGNATURE_VAR = "HYPRLAND_INSTANCE_SIGNATURE"

# Size of sun_path in struct sockaddr_un on Linux
MAX_SOCKET_PATH = 108


class SocketKind(Enum):
    """The sockets a Hyprland instance listens on."""

    REQUEST = ".socket.sock"
    EVENT = ".socket2.sock"


class HyprlandConfigError(Exception):
    """Raised when the Hyprland socket location cannot be resolved."""

    pass


class RuntimeDirNotFoundError(HyprlandConfigError):
    """Raised when XDG_RUNTIME_DIR is not set."""

    def __init__(self) -> None:
        super().__init__(
            f"{RUNTIME_DIR_VAR} is not set. "
            "Hyprland sockets live under the user runtime directory."
        )


class InstanceSignatureNotFoundError(HyprlandConfigError):
    """Raised when HYPRLAND_INSTANCE_SIGNATURE is not set."""

    def __init__(self) -> None:
        super().__init__(
            f"{INSTANCE_SIGNATURE_VAR} is not set. "
            "Make sure this process runs inside a Hyprland session."
        )


class SocketPathTooLongError(HyprlandConfigError):
    """Raised when a socket path does not fit in sockaddr_un."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Socket path {path!r} is {len(path.encode())} bytes long; "
            f"the maximum on Linux is {MAX_SOCKET_PATH}."
        )


class HyprlandPaths:
    """Socket path resolution for one Hyprland instance.

    Attributes:
        runtime_dir: The user runtime directory (usually /run/user/<uid>).
        instance_signature: The instance identifier Hyprland exports.
    """

    def __init__(self, runtime_dir: str, instance_signature: str) -> None:
        if not runtime_dir:
            raise RuntimeDirNotFoundError()
        if not instance_signature:
            raise InstanceSignatureNotFoundError()
        self.runtime_dir = runtime_dir
        self.instance_signature = instance_signature

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> HyprlandPaths:
        """Build paths from the process environment.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            RuntimeDirNotFoundError: If XDG_RUNTIME_DIR is missing or empty.
            InstanceSignatureNotFoundError: If HYPRLAND_INSTANCE_SIGNATURE is
                missing or empty.
        """
        if environ is None:
            environ = os.environ
        runtime_dir = environ.get(RUNTIME_DIR_VAR, "")
        if not runtime_dir:
            raise RuntimeDirNotFoundError()
        signature = environ.get(INSTANCE_SIGNATURE_VAR, "")
        if not signature:
            raise InstanceSignatureNotFoundError()
        return cls(runtime_dir, signature)

    @property
    def instance_dir(self) -> Path:
        """Directory holding this instance's sockets."""
        return Path(self.runtime_dir) / "hypr" / self.instance_signature

    def socket_path(self, kind: SocketKind | str) -> str:
        """Get the path of one of the instance's sockets.

        Args:
            kind: A SocketKind, or a custom socket file name (plugins place
                their own sockets in the instance directory).

        Raises:
            SocketPathTooLongError: If the path exceeds MAX_SOCKET_PATH bytes.
        """
        name = kind.value if isinstance(kind, SocketKind) else kind
        path = str(self.instance_dir / name)
        if len(path.encode()) > MAX_SOCKET_PATH:
            raise SocketPathTooLongError(path)
        return path

    @property
    def request_socket(self) -> str:
        return self.socket_path(SocketKind.REQUEST)

    @property
    def event_socket(self) -> str:
        return self.socket_path(SocketKind.EVENT)

    def __repr__(self) -> str:
        return (
            f"HyprlandPaths(runtime_dir={self.runtime_dir!r}, "
            f"instance_signature={self.instance_signature!r})"
        )


def get_hyprland_paths() -> HyprlandPaths:
    """Get a HyprlandPaths instance for the current session.

    Raises:
        HyprlandConfigError: If either environment value is missing.
    """
    return HyprlandPaths.from_environ()
