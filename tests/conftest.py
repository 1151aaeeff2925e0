"""Shared fixtures for Hyprland IPC tests.

Fakes the Hyprland side of both sockets:
- FakeSocket: scripted recv_into chunks and short writes, no kernel socket
- hypr_env: a short runtime directory with XDG_RUNTIME_DIR and
  HYPRLAND_INSTANCE_SIGNATURE pointing at it
- fake_hyprland: a Unix socket server answering on the request socket
"""

import os
import shutil
import socketserver
import tempfile
import threading
from collections import deque

import pytest

from Hyprland_IPC.platform import HyprlandPaths

INSTANCE_SIGNATURE = "abc123_1700000000_42"


# ---------------------------------------------------------------------------
# Scripted socket
# ---------------------------------------------------------------------------

class FakeSocket:
    """Socket stand-in returning pre-recorded chunks, then EOF."""

    def __init__(self, chunks=(), max_write=None):
        self.chunks = deque(chunks)
        self.max_write = max_write
        self.sent = b""
        self.send_calls = 0
        self.recv_calls = 0
        self.closed = False

    def recv_into(self, buffer, nbytes=0):
        self.recv_calls += 1
        if not self.chunks:
            return 0
        chunk = self.chunks.popleft()
        size = min(len(chunk), len(buffer))
        buffer[:size] = chunk[:size]
        if size < len(chunk):
            self.chunks.appendleft(chunk[size:])
        return size

    def send(self, data):
        self.send_calls += 1
        data = bytes(data)
        if self.max_write is not None:
            data = data[:self.max_write]
        self.sent += data
        return len(data)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_socket():
    return FakeSocket


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

@pytest.fixture
def hypr_env(monkeypatch):
    """Runtime dir short enough for sockaddr_un, with the instance dir created."""
    runtime_dir = tempfile.mkdtemp(prefix="hypr", dir="/tmp")
    os.makedirs(os.path.join(runtime_dir, "hypr", INSTANCE_SIGNATURE))
    monkeypatch.setenv("XDG_RUNTIME_DIR", runtime_dir)
    monkeypatch.setenv("HYPRLAND_INSTANCE_SIGNATURE", INSTANCE_SIGNATURE)
    yield HyprlandPaths(runtime_dir, INSTANCE_SIGNATURE)
    shutil.rmtree(runtime_dir, ignore_errors=True)


# ---------------------------------------------------------------------------
# Fake request socket peer
# ---------------------------------------------------------------------------

class _RequestHandler(socketserver.BaseRequestHandler):
    def handle(self):
        fake = self.server.fake
        data = b""
        while not data.endswith(b"\x00"):
            chunk = self.request.recv(4096)
            if not chunk:
                break
            data += chunk
        fake.requests.append(data)
        reply = fake.replies.popleft() if fake.replies else b"ok"
        self.request.sendall(reply)


class FakeHyprland:
    """Answers each request connection with the next queued reply."""

    def __init__(self, path):
        self.path = path
        self.requests = []
        self.replies = deque()
        self._server = socketserver.UnixStreamServer(path, _RequestHandler)
        self._server.fake = self
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    def reply_with(self, *replies):
        self.replies.extend(replies)

    def start(self):
        self._thread.start()

    def stop(self):
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=2)


@pytest.fixture
def fake_hyprland(hypr_env):
    server = FakeHyprland(hypr_env.request_socket)
    server.start()
    yield server
    server.stop()
