"""
Pytest fixtures shared by the hapruntime tests.
"""
import os
import shutil
import socket
import tempfile
import threading
from typing import Callable, Dict, List, Optional

import pytest

RAW_HELP = """The following commands are valid at this level:
  abort ssl ca-file <cafile>              : abort a transaction for a CA file
  add acl [@<ver>] <acl> <pattern>        : add an acl entry
  add server <bk>/<srv>                   : create a new server
  clear acl [@<ver>] <acl>                : clear the contents of this acl
  clear counters [all]                    : clear max statistics counters (or all counters)
  disable agent                           : disable agent checks
  disable server (DEPRECATED)             : disable a server for maintenance (use 'set server' instead)
  echo <text>                             : print text to the output

  enable server  (DEPRECATED)             : enable a disabled server (use 'set server' instead)
  set profiling <what> {auto|on|off}      : enable/disable resource profiling (tasks,memory)
  set severity-output [none|number|string]: set presence of severity level in feedback information
  set weight <bk>/<srv>  (DEPRECATED)     : change a server's weight (use 'set server' instead)
  show info [desc|json|typed|float]*      : report information about the running process
  show servers state [<backend>]          : dump volatile server information (all or for a single backend)
  wait {-h|<delay_ms>} cond [args...]     : wait the specified delay or condition (-h to see list)
  help [<command>]                        : list matching or all commands
  quit                                    : disconnect"""

# non-empty, non-deprecated lines after the banner
RAW_HELP_COMMANDS = 14

SERVERS_STATE = """1
# be_id be_name srv_id srv_name srv_addr srv_op_state srv_admin_state srv_uweight srv_iweight srv_time_since_last_change srv_check_status srv_check_result srv_check_health srv_check_state srv_agent_state bk_f_forced_id srv_f_forced_id srv_fqdn srv_port srvrecord srv_use_ssl srv_check_port srv_check_addr srv_agent_addr srv_agent_port
4 default 1 haproxy 209.126.35.1 2 0 20 20 9 9 3 4 6 0 0 0 haproxy.com 443 - 1 0 - - 0
4 default 2 apache 151.101.2.132 2 0 80 80 9 9 3 4 6 0 0 0 apache.org 443 - 1 0 - - 0
5 other 1 haproxy 209.126.35.1 2 0 1 1 9 15 3 4 6 0 0 0 haproxy.com 443 - 1 0 - - 0
5 other 2 apache 151.101.2.132 0 0 1 1 7 17 2 0 6 0 0 0 apache.org 443 - 1 0 - - 0
"""


class DummyConnection:
    """In-memory connection returning a canned response then end-of-stream."""

    def __init__(self, output: bytes = b"", *, fail_write: bool = False, fail_read: bool = False) -> None:
        self.output = output
        self.fail_write = fail_write
        self.fail_read = fail_read
        self.written: List[bytes] = []
        self.closed = False
        self._sent = False

    def sendall(self, data: bytes) -> None:
        if self.fail_write:
            raise BrokenPipeError("broken pipe")
        self.written.append(data)

    def recv(self, bufsize: int) -> bytes:
        if self.fail_read:
            raise ConnectionResetError("connection reset")
        if self._sent:
            return b""
        self._sent = True
        return self.output + b"\n"

    def close(self) -> None:
        self.closed = True


class DummyRuntimeServer:
    """Threaded Unix-socket server answering one command per connection."""

    def __init__(self, responses: Optional[Dict[str, str]] = None, default: str = "") -> None:
        self._dir = tempfile.mkdtemp(prefix="hrt")
        self.path = os.path.join(self._dir, "admin.sock")
        self.responses = dict(responses or {})
        self.default = default
        self.received: List[str] = []
        self.hooks: Dict[str, Callable[[], None]] = {}
        self._sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._sock.bind(self.path)
        self._sock.listen(8)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        self._sock.settimeout(0.1)
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            conn.settimeout(None)
            threading.Thread(target=self._handle_client, args=(conn,), daemon=True).start()

    def _handle_client(self, conn: socket.socket) -> None:
        buffer = b""
        with conn:
            while b"\n" not in buffer:
                chunk = conn.recv(4096)
                if not chunk:
                    return
                buffer += chunk
            command = buffer.split(b"\n", 1)[0].decode("utf-8")
            self.received.append(command)
            hook = self.hooks.get(command)
            if hook is not None:
                hook()
            reply = self.responses.get(command, self.default)
            conn.sendall(reply.encode("utf-8") + b"\n")

    def stop(self) -> None:
        self._stop.set()
        self._sock.close()
        self._thread.join(timeout=0.5)
        shutil.rmtree(self._dir, ignore_errors=True)


@pytest.fixture
def raw_help() -> str:
    return RAW_HELP


@pytest.fixture
def servers_state() -> str:
    return SERVERS_STATE


@pytest.fixture
def runtime_server():
    server = DummyRuntimeServer(
        {"help": RAW_HELP, "show servers state": SERVERS_STATE},
        default="Unknown command.",
    )
    try:
        yield server
    finally:
        server.stop()
