# hyprland_mcp_server.py
from mcp.server.fastmcp import FastMCP, Context
import logging
from contextlib import asynccontextmanager
from dataclasses import fields
from enum import Enum
from functools import wraps
from typing import AsyncIterator, Dict, Any, Callable, Optional

from . import commands
from .client import HyprlandConnection
from .commands import CommandKind
from .events import Event, EventSocket, ToggleGroupEvent
from .platform import HyprlandConfigError
from .protocol import DEFAULT_BUFFER_SIZE, BufferFullError, EventStreamClosedError, HyprlandTransportError
from .responses import CommandResponse, Err, Ok, schema_adapter

# Configure logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("HyprlandMCPServer")


@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    """Manage server startup and shutdown lifecycle.

    Nothing is connected on startup: every tool call opens its own
    short-lived connection to the request socket.
    """
    try:
        logger.info("HyprlandMCP server starting up")
        yield {}
    finally:
        global _hyprland_connection
        _hyprland_connection = None
        logger.info("HyprlandMCP server shut down")

# Create the MCP server with lifespan support
mcp = FastMCP(
    "HyprlandMCP",
    instructions="Hyprland compositor control through the Model Context Protocol",
    lifespan=server_lifespan
)

# Resolved once; holds only the socket path
_hyprland_connection = None


def get_hyprland_connection() -> HyprlandConnection:
    """Get the connection for the Hyprland instance this server runs in."""
    global _hyprland_connection

    if _hyprland_connection is None:
        _hyprland_connection = HyprlandConnection.from_environ()
        logger.info(f"Using Hyprland request socket at {_hyprland_connection.socket_path}")
    return _hyprland_connection


# Info replies that decode to None mean there is nothing to report
EMPTY_REPLY_MESSAGES = {
    "activewindow": "No active window",
}


def format_response(response: CommandResponse) -> str:
    """Default formatting: Ok/Error for actions, JSON for info, raw text otherwise."""
    command = response.command
    if command.kind is CommandKind.JSON and response.value is None:
        return EMPTY_REPLY_MESSAGES.get(command.name, f"No {command.name} data")
    if command.kind is CommandKind.JSON and not isinstance(response.value, (Ok, Err)):
        adapter = schema_adapter(command.name)
        return adapter.dump_json(response.value, indent=2, by_alias=True).decode("utf-8")
    return str(response.value)


def hyprland_command(
    format_result: Optional[Callable[[CommandResponse], str]] = None,
    error_context: Optional[str] = None
):
    """Decorator that wraps an MCP tool with the Hyprland request/response cycle.

    The decorated function builds and returns the Command to send.
    The decorator handles: connection lookup, send, error logging, and
    response formatting. Error replies are never passed to format_result.

    Args:
        format_result: Optional function to format a successful reply.
        error_context: Optional context string for error messages. Defaults to
            the command name.
    """
    def decorator(fn: Callable) -> Callable:
        @wraps(fn)
        def wrapper(*args, **kwargs) -> str:
            ctx_name = error_context or fn.__name__.replace("_", " ")
            try:
                connection = get_hyprland_connection()
                command = fn(*args, **kwargs)
                response = connection.send(command)
                if isinstance(response.value, Err):
                    logger.error(f"Hyprland rejected {command.render()!r}: {response.value.message}")
                    return f"Error {ctx_name}: {response.value.message}"
                if format_result:
                    return format_result(response)
                return format_response(response)
            except Exception as e:
                logger.error(f"Error {ctx_name}: {str(e)}")
                return f"Error {ctx_name}: {str(e)}"
        return wrapper
    return decorator


def _format_message(msg: str) -> Callable[[CommandResponse], str]:
    """Create a formatter that returns a fixed message."""
    return lambda response: msg


def _format_template(template: str) -> Callable[[CommandResponse], str]:
    """Create a formatter using a template with access to the command's fields."""
    def formatter(response: CommandResponse) -> str:
        values = {f.name: getattr(response.command, f.name) for f in fields(response.command)}
        return template.format(**values)
    return formatter


# Action tools

@mcp.tool()
@hyprland_command(format_result=_format_template("Dispatched: {argument}"))
def dispatch(ctx: Context, argument: str) -> str:
    """
    Run a Hyprland dispatcher.

    Parameters:
    - argument: Dispatcher and its arguments, e.g. "workspace 3" or "exec kitty"
    """
    return commands.Dispatch(argument)


@mcp.tool()
@hyprland_command(format_result=_format_template("Set {key} = {value}"))
def set_keyword(ctx: Context, key: str, value: str) -> str:
    """
    Set a config keyword at runtime.

    Parameters:
    - key: Config keyword, e.g. "general:gaps_in"
    - value: New value
    """
    return commands.Keyword(key, value)


@mcp.tool()
@hyprland_command(format_result=_format_message("Reloaded config"))
def reload_config(ctx: Context) -> str:
    """Reload the Hyprland config file."""
    return commands.Reload()


@mcp.tool()
@hyprland_command(format_result=_format_template("Set cursor theme {theme} at size {size}"))
def set_cursor(ctx: Context, theme: str, size: int) -> str:
    """
    Set the cursor theme and size.

    Parameters:
    - theme: Cursor theme name
    - size: Cursor size in pixels
    """
    return commands.SetCursor(theme, size)


def _output_backend(backend: str):
    try:
        return commands.OutputBackend(backend)
    except ValueError:
        return backend


@mcp.tool()
@hyprland_command(format_result=_format_message("Created output"))
def create_output(ctx: Context, backend: str = "auto", name: Optional[str] = None) -> str:
    """
    Create a fake output.

    Parameters:
    - backend: "wayland", "headless", "auto" or another backend name
    - name: Optional output name (default naming is HEADLESS-2, WL-1, ...)
    """
    return commands.CreateOutput(_output_backend(backend), name)


@mcp.tool()
@hyprland_command(format_result=_format_template("Removed output {output_name}"))
def remove_output(ctx: Context, name: str) -> str:
    """
    Remove a fake output.

    Parameters:
    - name: Name of the output to remove
    """
    return commands.RemoveOutput(name)


@mcp.tool()
@hyprland_command(format_result=_format_template("Switched layout of {device} to {layout}"))
def switch_keyboard_layout(ctx: Context, device: str = "current", layout: str = "next") -> str:
    """
    Switch the xkb layout of a keyboard.

    Parameters:
    - device: "current" (main keyboard), "all", or a device name from get_devices
    - layout: "next", "prev", or a layout index
    """
    return commands.SwitchXkbLayout(device, layout)


@mcp.tool()
@hyprland_command(format_result=_format_message("Error bar shown"))
def set_error(ctx: Context, message: str, color: int = 0xFF0000FF) -> str:
    """
    Show a message in the Hyprland error bar until the next config reload.

    Parameters:
    - message: Text to show
    - color: 32-bit RGBA color (default opaque red)
    """
    return commands.SetError(color, message)


@mcp.tool()
@hyprland_command(format_result=_format_message("Error bar cleared"))
def clear_error(ctx: Context) -> str:
    """Hide the Hyprland error bar."""
    return commands.DisableError()


@mcp.tool()
@hyprland_command(format_result=_format_template("Notification sent: {message}"))
def notify(ctx: Context, message: str, time_ms: int = 5000, icon: str = "info",
           color: Optional[int] = None, font_size: Optional[int] = None) -> str:
    """
    Show a Hyprland notification.

    Parameters:
    - message: Notification text
    - time_ms: How long to show it, in milliseconds
    - icon: none, warning, info, hint, error, confused or ok
    - color: Optional 32-bit RGBA color
    - font_size: Optional font size
    """
    return commands.Notify(message, time_ms, commands.NotifyIcon[icon.upper()], color, font_size)


@mcp.tool()
@hyprland_command(format_result=_format_message("Notifications dismissed"))
def dismiss_notifications(ctx: Context, amount: Optional[int] = None) -> str:
    """
    Dismiss notifications.

    Parameters:
    - amount: How many to dismiss (all when omitted)
    """
    return commands.DismissNotify(amount)


# Info tools

@mcp.tool()
@hyprland_command()
def get_version(ctx: Context) -> str:
    """Get the Hyprland version, commit and build flags"""
    return commands.Version()


@mcp.tool()
@hyprland_command()
def get_monitors(ctx: Context, include_inactive: bool = False) -> str:
    """
    List monitors with their properties.

    Parameters:
    - include_inactive: Also list disabled outputs
    """
    return commands.Monitors(all=include_inactive)


@mcp.tool()
@hyprland_command()
def get_workspaces(ctx: Context) -> str:
    """List all workspaces with their properties"""
    return commands.Workspaces()


@mcp.tool()
@hyprland_command()
def get_active_workspace(ctx: Context) -> str:
    """Get the active workspace"""
    return commands.ActiveWorkspace()


@mcp.tool()
@hyprland_command()
def get_clients(ctx: Context) -> str:
    """List all windows with their properties"""
    return commands.Clients()


@mcp.tool()
@hyprland_command()
def get_active_window(ctx: Context) -> str:
    """Get the focused window, or "No active window" when nothing has focus"""
    return commands.ActiveWindow()


@mcp.tool()
@hyprland_command()
def get_devices(ctx: Context) -> str:
    """List connected keyboards, mice, tablets and switches"""
    return commands.Devices()


@mcp.tool()
@hyprland_command()
def get_binds(ctx: Context) -> str:
    """List registered keybinds"""
    return commands.Binds()


@mcp.tool()
@hyprland_command()
def get_layers(ctx: Context) -> str:
    """List layer surfaces per monitor"""
    return commands.Layers()


@mcp.tool()
@hyprland_command()
def get_cursor_position(ctx: Context) -> str:
    """Get the cursor position in global layout coordinates"""
    return commands.CursorPos()


@mcp.tool()
@hyprland_command()
def get_option(ctx: Context, option: str) -> str:
    """
    Get the current value of a config option.

    Parameters:
    - option: Option name, e.g. "general:border_size"
    """
    return commands.GetOption(option)


@mcp.tool()
@hyprland_command()
def get_layouts(ctx: Context) -> str:
    """List available layouts (including plugin layouts)"""
    return commands.Layouts()


@mcp.tool()
@hyprland_command()
def get_config_errors(ctx: Context) -> str:
    """List current config parsing errors"""
    return commands.ConfigErrors()


@mcp.tool()
@hyprland_command()
def get_splash(ctx: Context) -> str:
    """Get the current random splash"""
    return commands.Splash()


@mcp.tool()
@hyprland_command()
def get_submap(ctx: Context) -> str:
    """Get the submap the keybinds are currently in"""
    return commands.Submap()


@mcp.tool()
@hyprland_command(format_result=lambda r: "Session is locked" if r.value.locked else "Session is not locked")
def is_locked(ctx: Context) -> str:
    """Check whether the session is locked"""
    return commands.Locked()


def describe_event(event: Event) -> str:
    """One-line, human readable rendering of an event."""
    parts = []
    for f in fields(event):
        if isinstance(event, ToggleGroupEvent) and f.name == "addresses":
            parts.append(f"windows={list(event.window_addresses())}")
            continue
        value = getattr(event, f.name)
        text = value.name.lower() if isinstance(value, Enum) else repr(value)
        parts.append(f"{f.name}={text}")
    return f"{event.name}: {', '.join(parts)}" if parts else event.name


def listen_events(buffer_size: int = DEFAULT_BUFFER_SIZE) -> int:
    """Print decoded events until Hyprland closes the event socket."""
    try:
        with EventSocket.open(buffer_size=buffer_size) as events:
            for event in events:
                print(describe_event(event), flush=True)
    except EventStreamClosedError:
        print("Hyprland closed the event socket")
        return 0
    except (BufferFullError, HyprlandConfigError, HyprlandTransportError) as e:
        print(f"ERROR: {e}")
        return 1
    return 0


# Main execution
def main():
    """Run the MCP server or listen to events."""
    import argparse

    parser = argparse.ArgumentParser(description="Hyprland MCP Server")
    parser.add_argument("--listen", action="store_true",
                        help="Print Hyprland events instead of running the MCP server")
    parser.add_argument("--buffer-size", type=int, default=DEFAULT_BUFFER_SIZE,
                        help="Event line buffer size in bytes (with --listen)")
    args = parser.parse_args()

    if args.listen:
        return listen_events(args.buffer_size)
    else:
        # Normal server mode
        mcp.run()

if __name__ == "__main__":
    main()
