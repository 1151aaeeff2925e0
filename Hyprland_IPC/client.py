"""Request socket client for Hyprland.

Every call opens a fresh connection, writes one command, reads the reply
until Hyprland closes the connection, and closes the socket again. There is
no pooling, no retry and no timeout; concurrent callers need no locking
because nothing is shared between calls.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Optional

from . import commands
from .commands import Command, encode_command
from .platform import HyprlandPaths
from .protocol import HyprlandTransportError, recv_until_closed, send_all
from .responses import CommandResponse, decode_response

logger = logging.getLogger("HyprlandIPC")


@dataclass
class HyprlandConnection:
    socket_path: str

    @classmethod
    def from_environ(cls, paths: Optional[HyprlandPaths] = None) -> HyprlandConnection:
        """Create a connection for the current (or given) Hyprland instance.

        Raises:
            HyprlandConfigError: If the socket path cannot be resolved.
        """
        if paths is None:
            paths = HyprlandPaths.from_environ()
        return cls(socket_path=paths.request_socket)

    def connect(self) -> socket.socket:
        """Open a new connection to the request socket."""
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(self.socket_path)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to connect to Hyprland: {str(e)}")
            raise HyprlandTransportError(f"Could not connect to {self.socket_path}: {e}") from e
        return sock

    def send(self, command: Command) -> CommandResponse:
        """Send a command and return its decoded reply.

        Raises:
            HyprlandTransportError: If connecting, writing or reading fails.
            ResponseDecodeError: If a JSON info reply cannot be decoded.
        """
        request = encode_command(command)
        logger.info(f"Sending command: {command.render()}")

        sock = self.connect()
        try:
            send_all(sock, request)
            raw = recv_until_closed(sock)
        finally:
            sock.close()

        logger.info(f"Response received for {command.name}: {len(raw)} bytes")
        return CommandResponse(command=command, raw=raw, value=decode_response(command, raw))

    # Shortcuts for the most common calls

    def dispatch(self, argument: str) -> CommandResponse:
        return self.send(commands.Dispatch(argument))

    def keyword(self, key: str, value: str) -> CommandResponse:
        return self.send(commands.Keyword(key, value))

    def monitors(self, all: bool = False) -> CommandResponse:
        return self.send(commands.Monitors(all=all))

    def workspaces(self) -> CommandResponse:
        return self.send(commands.Workspaces())

    def clients(self) -> CommandResponse:
        return self.send(commands.Clients())

    def active_window(self) -> CommandResponse:
        """The focused window; value is None when nothing has focus."""
        return self.send(commands.ActiveWindow())
