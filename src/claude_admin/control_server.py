"""
Control socket for the daemon.

Line-delimited JSON over a Unix stream socket. Every message is an object
tagged by "type":

    {"type": "ping"}                      client -> daemon, answered with pong
    {"type": "pong"}                      daemon -> client
    {"type": "error", "message": "..."}   daemon -> client, on a bad request

A connection carries any number of exchanges; a malformed line fails that
exchange only and the connection keeps reading until the client hangs up.
"""

import json
import os
import socket
import socketserver
import stat
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .exceptions import ControlSocketError, ProtocolError, SocketInUseError
from .logging_config import get_structured_logger
from .settings import DAEMON


log = get_structured_logger("control")

# Longest request line the server will buffer, excluding the newline
MAX_LINE = 64 * 1024


# =============================================================================
# Messages
# =============================================================================


@dataclass(frozen=True)
class Ping:
    type_name = "ping"

    def to_dict(self) -> dict:
        return {"type": self.type_name}


@dataclass(frozen=True)
class Pong:
    type_name = "pong"

    def to_dict(self) -> dict:
        return {"type": self.type_name}


@dataclass(frozen=True)
class ErrorMessage:
    message: str

    type_name = "error"

    def to_dict(self) -> dict:
        return {"type": self.type_name, "message": self.message}


Message = Union[Ping, Pong, ErrorMessage]


def encode_message(message: Message) -> bytes:
    """Serialize a message as one newline-terminated line."""
    return (json.dumps(message.to_dict()) + "\n").encode("utf-8")


def decode_message(line: Union[str, bytes]) -> Message:
    """Parse one line into a message.

    Raises:
        ProtocolError: invalid JSON, not an object, or unknown/missing type
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"message is not valid UTF-8: {e}") from e

    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError(f"message must be a JSON object, got {type(data).__name__}")

    kind = data.get("type")
    if kind == Ping.type_name:
        return Ping()
    if kind == Pong.type_name:
        return Pong()
    if kind == ErrorMessage.type_name:
        message = data.get("message")
        if not isinstance(message, str):
            raise ProtocolError("error message is missing 'message'")
        return ErrorMessage(message)
    if kind is None:
        raise ProtocolError("message is missing 'type'")
    raise ProtocolError(f"unknown message type: {kind!r}")


def respond(message: Message) -> Optional[Message]:
    """The daemon's reply to a message, or None when none is due."""
    if isinstance(message, Ping):
        return Pong()
    return None


# =============================================================================
# Server
# =============================================================================


class ControlRequestHandler(socketserver.StreamRequestHandler):
    """Serve one client connection until it closes."""

    def handle(self) -> None:
        while True:
            try:
                line = self.rfile.readline(MAX_LINE + 1)
                too_long = len(line) > MAX_LINE and not line.endswith(b"\n")
                if too_long:
                    self._discard_rest_of_line()
            except OSError:
                return
            if not line:
                return
            if not line.strip():
                continue

            try:
                if too_long:
                    raise ProtocolError(f"message longer than {MAX_LINE} bytes")
                reply = respond(decode_message(line))
            except ProtocolError as e:
                log.warning("bad control message", error=str(e))
                reply = ErrorMessage(str(e))

            if reply is None:
                continue
            try:
                self.wfile.write(encode_message(reply))
                self.wfile.flush()
            except OSError:
                # Client went away mid-exchange
                return

    def _discard_rest_of_line(self) -> None:
        while True:
            chunk = self.rfile.readline(MAX_LINE + 1)
            if not chunk or chunk.endswith(b"\n"):
                return


class _UnixServer(socketserver.ThreadingUnixStreamServer):
    daemon_threads = True
    allow_reuse_address = False


def socket_answers(path: Path, timeout: float = 0.5) -> bool:
    """Check if something is accepting connections on a socket path."""
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        sock.connect(str(path))
        return True
    except OSError:
        return False
    finally:
        sock.close()


class ControlServer:
    """Owns the control socket file and the thread serving it."""

    def __init__(self, socket_path: Path):
        self.socket_path = Path(socket_path)
        self._server: Optional[_UnixServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def bound(self) -> bool:
        return self._server is not None

    def bind(self, owner_running: bool = False) -> None:
        """Create the listening socket.

        An existing socket file is reclaimed unless its daemon is alive.

        Raises:
            SocketInUseError: the socket belongs to a running daemon
            ControlSocketError: the path is unusable (too long, unwritable)
        """
        path = self.socket_path
        try:
            if path.exists() or path.is_symlink():
                if owner_running or socket_answers(path):
                    raise SocketInUseError(str(path))
                log.warning("removing stale socket", path=str(path))
                path.unlink()
            path.parent.mkdir(parents=True, exist_ok=True)
            server = _UnixServer(str(path), ControlRequestHandler)
        except OSError as e:
            raise ControlSocketError(str(path), str(e)) from e
        self._server = server
        os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)  # 0o600 - owner only
        log.info("control socket listening", path=str(path))

    def start(self) -> None:
        """Serve connections on a background thread."""
        if self._server is None:
            self.bind()
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            kwargs={"poll_interval": 0.5},
            name="control-server",
            daemon=True,
        )
        self._thread.start()

    def close(self) -> None:
        """Stop accepting connections and remove the socket file.

        A server that never bound leaves the path alone: it may belong to
        another daemon.
        """
        if self._server is None:
            return
        if self._thread is not None:
            self._server.shutdown()
            self._thread.join(timeout=5)
            self._thread = None
        self._server.server_close()
        self._server = None
        try:
            self.socket_path.unlink()
            log.info("control socket removed", path=str(self.socket_path))
        except FileNotFoundError:
            pass

    def __enter__(self) -> "ControlServer":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# =============================================================================
# Client
# =============================================================================


def send_message(
    socket_path: Path,
    message: Message,
    timeout: float = DAEMON.socket_timeout,
) -> Message:
    """Send one message and wait for the reply line.

    Raises:
        OSError: the daemon is not reachable or timed out
        ProtocolError: the reply could not be decoded
    """
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout)
        sock.connect(str(socket_path))
        sock.sendall(encode_message(message))
        with sock.makefile("rb") as reader:
            line = reader.readline()
    if not line:
        raise ProtocolError("connection closed before a reply was received")
    return decode_message(line)


def ping(socket_path: Path, timeout: float = DAEMON.socket_timeout) -> bool:
    """True if a daemon answers ping with pong on this socket."""
    try:
        return isinstance(send_message(socket_path, Ping(), timeout), Pong)
    except (OSError, ProtocolError):
        return False
