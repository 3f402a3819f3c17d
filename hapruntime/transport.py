"""
Transport layer for the HAProxy runtime API.

Responsibilities:
    * Build connection factories for Unix-domain and TCP stats sockets.
    * Run one request/response exchange per fresh connection: write the
      command followed by a newline, read until the peer closes, close.
    * Serialise every exchange in the process behind one lock so at most
      one request is in flight at a time.

There is no framing beyond end-of-stream, no retry and no timeout unless
the connection factory is configured with one.
"""

from __future__ import annotations

import logging
import socket
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple, TypeVar

from .events import Effect

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RECV_SIZE = 4096

# one in-flight exchange per process
_TRANSPORT_LOCK = threading.Lock()


class TransportError(RuntimeError):
    """Base class for transport failures."""


class ConnectionFailure(TransportError):
    """Raised when the connection factory cannot produce a connection."""


class TransportFailure(TransportError):
    """Raised when writing to or reading from an open connection fails."""

    def __init__(self, direction: str, cause: BaseException) -> None:
        preposition = "to" if direction == "write" else "from"
        super().__init__(f"failed to {direction} {preposition} socket: {cause}")
        self.direction = direction
        self.cause = cause


class EmptyResponse(TransportError):
    """Raised when a caller requires a response and none was returned."""


class Connection(Protocol):
    def sendall(self, data: bytes) -> None: ...

    def recv(self, bufsize: int) -> bytes: ...

    def close(self) -> None: ...


ConnectionFactory = Callable[[], Connection]


@dataclass
class TransportConfig:
    address: str
    connect_timeout: Optional[float] = None
    read_timeout: Optional[float] = None

    @property
    def is_tcp(self) -> bool:
        return parse_tcp_address(self.address) is not None


def parse_tcp_address(address: str) -> Optional[Tuple[str, int]]:
    """Return ``(host, port)`` for ``host:port``/``ipv4@host:port`` addresses."""
    text = address
    for prefix in ("ipv4@", "ipv6@", "tcp@"):
        if text.startswith(prefix):
            text = text[len(prefix):]
            break
    else:
        if "/" in text:
            return None
    host, sep, port = text.rpartition(":")
    if not sep or not port.isdigit():
        return None
    host = host.strip("[]") or "127.0.0.1"
    return host, int(port)


def connection_factory(config: TransportConfig) -> ConnectionFactory:
    """Return a zero-argument callable producing a fresh socket per call."""
    tcp = parse_tcp_address(config.address)

    def _connect() -> socket.socket:
        try:
            if tcp is not None:
                sock = socket.create_connection(tcp, timeout=config.connect_timeout)
            else:
                path = config.address[len("unix@"):] if config.address.startswith("unix@") else config.address
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                sock.settimeout(config.connect_timeout)
                try:
                    sock.connect(path)
                except OSError:
                    sock.close()
                    raise
        except OSError as exc:
            raise ConnectionFailure(f"connect to {config.address} failed: {exc}") from exc
        sock.settimeout(config.read_timeout)
        return sock

    return _connect


def read_until_eof(conn: Connection) -> str:
    chunks = []
    while True:
        try:
            chunk = conn.recv(_RECV_SIZE)
        except OSError as exc:
            raise TransportFailure("read", exc) from exc
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks).decode("utf-8", errors="replace").strip()


def execute(connect: ConnectionFactory, command: str) -> str:
    """Send *command* over a fresh connection and return the trimmed response."""
    with _TRANSPORT_LOCK:
        try:
            conn = connect()
        except OSError as exc:
            raise ConnectionFailure(f"connect failed: {exc}") from exc
        try:
            logger.debug("-> %s", command)
            try:
                conn.sendall((command + "\n").encode("utf-8"))
            except OSError as exc:
                raise TransportFailure("write", exc) from exc
            response = read_until_eof(conn)
            logger.debug("<- %d bytes", len(response))
            return response
        finally:
            try:
                conn.close()
            except OSError as exc:
                logger.debug("close failed: %s", exc)


def execute_nonempty(connect: ConnectionFactory, command: str) -> str:
    response = execute(connect, command)
    if not response:
        raise EmptyResponse(f"no response to {command!r}")
    return response


def execute_cmd(connect: ConnectionFactory, command: str, decode: Callable[[str], T]) -> Effect:
    """Deferred variant of :func:`execute`; the effect returns ``decode(response)``."""

    def _effect():
        return decode(execute(connect, command))

    return _effect


class CommandExecutor:
    """Single-writer front for a connection factory.

    Requests are queued on a one-worker pool and resolved through futures.
    """

    def __init__(self, connect: ConnectionFactory) -> None:
        self.connect = connect
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="hapruntime-exec")
        self._closed = False

    def execute(self, command: str) -> str:
        return execute(self.connect, command)

    def submit(self, command: str, decode: Optional[Callable[[str], T]] = None) -> "Future":
        if self._closed:
            raise TransportError("executor closed")
        if decode is None:
            return self._pool.submit(execute, self.connect, command)
        return self._pool.submit(execute_cmd(self.connect, command, decode))

    def effect(self, command: str, decode: Callable[[str], T]) -> Effect:
        return execute_cmd(self.connect, command, decode)

    def close(self) -> None:
        self._closed = True
        self._pool.shutdown(wait=True)

    def __enter__(self) -> "CommandExecutor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = [
    "TransportError",
    "ConnectionFailure",
    "TransportFailure",
    "EmptyResponse",
    "TransportConfig",
    "CommandExecutor",
    "connection_factory",
    "parse_tcp_address",
    "execute",
    "execute_nonempty",
    "execute_cmd",
]
