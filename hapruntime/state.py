"""Decoder for the ``show servers state`` dump.

The dump starts with a single-field version line, followed by ``#`` comment
lines and one 25-column row per server (see the HAProxy management guide for
the column meanings)::

    1
    # be_id be_name srv_id srv_name srv_addr srv_op_state srv_admin_state ...
    4 default 1 web1 10.0.0.1 2 0 20 20 9 6 3 4 6 0 0 0 web1.example 443 - 1 0 - - 0

Rows are grouped into backends keyed by backend *name*. A later row whose
backend id differs from the first one seen for that name is still appended
to the existing backend; the first id wins.
"""

from __future__ import annotations

import ipaddress
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, NamedTuple, Optional, Union

logger = logging.getLogger(__name__)

SHOW_SERVERS_STATE = "show servers state"
FIELD_COUNT = 25

COLUMNS = (
    "be_id",
    "be_name",
    "srv_id",
    "srv_name",
    "srv_addr",
    "srv_op_state",
    "srv_admin_state",
    "srv_uweight",
    "srv_iweight",
    "srv_time_since_last_change",
    "srv_check_status",
    "srv_check_result",
    "srv_check_health",
    "srv_check_state",
    "srv_agent_state",
    "bk_f_forced_id",
    "srv_f_forced_id",
    "srv_fqdn",
    "srv_port",
    "srvrecord",
    "srv_use_ssl",
    "srv_check_port",
    "srv_check_addr",
    "srv_agent_addr",
    "srv_agent_port",
)

UP = "UP"
DOWN = "DOWN"
MAINT = "MAINT"
DRAIN = "DRAIN"
STOPPED = "STOPPED"
STARTING = "STARTING"
RUNNING = "RUNNING"
STOPPING = "STOPPING"
UNKNOWN = "UNKNOWN"
NEUTRAL = "NEUTRAL"  # valid check without status information
FAILED = "FAILED"
PASSED = "PASSED"
RES_COND_PASS = "RES_COND_PASS"  # server does not want new sessions
ENABLED = "ENABLED"
PAUSED = "PAUSED"
DISABLED = "DISABLED"
AGENT = "AGENT"  # agent check rather than health check

_SERVER_STATES = {"0": STOPPED, "1": STARTING, "2": RUNNING, "3": STOPPING}
_CHECK_STATUSES = {"0": DOWN, "1": UP}
_CHECK_RESULTS = {"0": UNKNOWN, "1": NEUTRAL, "2": FAILED, "3": PASSED, "4": RES_COND_PASS}

# srv_admin_state bits
ADMIN_F_MAINT = 0x01
ADMIN_I_MAINT = 0x02
ADMIN_C_MAINT = 0x04
ADMIN_F_DRAIN = 0x08
ADMIN_I_DRAIN = 0x10
ADMIN_R_MAINT = 0x20
ADMIN_H_MAINT = 0x40
ADMIN_MAINT_MASK = ADMIN_F_MAINT | ADMIN_I_MAINT | ADMIN_C_MAINT | ADMIN_R_MAINT | ADMIN_H_MAINT
ADMIN_DRAIN_MASK = ADMIN_F_DRAIN | ADMIN_I_DRAIN

# srv_check_state / srv_agent_state bits
CHECK_RUNNING = 0x01
CHECK_CONFIGURED = 0x02
CHECK_ENABLED = 0x04
CHECK_PAUSED = 0x08
CHECK_AGENT = 0x10

_INT_RE = re.compile(r"^[+-]?[0-9]+$")

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class MalformedField(ValueError):
    """Raised when a dump field cannot be decoded."""

    def __init__(self, column: str, value: str, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"malformed {column} value {value!r}{detail}")
        self.column = column
        self.value = value


@dataclass
class Server:
    backend_id: int
    id: int
    name: str
    address: Optional[IPAddress]
    state: str
    admin_state: str
    user_weight: int
    effective_weight: int
    last_state_change: datetime
    check_status: str
    check_result: str
    checks_succeeded: int
    check_state: str
    agent_state: str
    backend_forced_id: int
    server_forced_id: int
    fqdn: str
    port: int
    srv_record: str
    use_ssl: bool
    check_port: int
    check_addr: str
    agent_addr: str
    agent_port: int

    @property
    def endpoint(self) -> str:
        return f"{self.fqdn}:{self.port}"


@dataclass
class Backend:
    id: int
    name: str
    servers: List[Server] = field(default_factory=list)


class StateRow(NamedTuple):
    backend_id: int
    backend_name: str
    server: Server


class RowResult(NamedTuple):
    lineno: int
    row: Optional[StateRow]
    error: Optional[MalformedField]

    @property
    def ok(self) -> bool:
        return self.error is None


#
# Field decoders
#
def parse_int(value: str, column: str = "int") -> int:
    if not _INT_RE.match(value):
        raise MalformedField(column, value, "not a base-10 integer")
    return int(value)


def parse_address(value: str, column: str = "srv_addr") -> Optional[IPAddress]:
    if value == "-":
        return None
    try:
        return ipaddress.ip_address(value)
    except ValueError as exc:
        raise MalformedField(column, value, "invalid ip") from exc


def parse_bool(value: str) -> bool:
    return value == "1"


def parse_since(value: str, now: Optional[float] = None, column: str = "srv_time_since_last_change") -> datetime:
    seconds = parse_int(value, column)
    current = int(time.time() if now is None else now)
    return datetime.fromtimestamp(current - seconds, tz=timezone.utc)


def decode_server_state(value: str) -> str:
    return _SERVER_STATES.get(value, value)


def decode_check_status(value: str) -> str:
    return _CHECK_STATUSES.get(value, value)


def decode_check_result(value: str) -> str:
    return _CHECK_RESULTS.get(value, value)


def decode_admin_state(value: str) -> str:
    state = parse_int(value, "srv_admin_state")
    if state & ADMIN_MAINT_MASK:
        return MAINT
    if state & ADMIN_DRAIN_MASK:
        return DRAIN
    return value


def decode_check_info_state(value: str) -> str:
    state = parse_int(value, "srv_check_state")
    both = CHECK_CONFIGURED | CHECK_ENABLED
    if state & both == both:
        return ENABLED
    if state & CHECK_PAUSED:
        return PAUSED
    return DISABLED


def decode_agent_state(value: str) -> str:
    state = parse_int(value, "srv_agent_state")
    both = CHECK_CONFIGURED | CHECK_ENABLED
    if state & both == both:
        return ENABLED
    if state & CHECK_PAUSED:
        return PAUSED
    if state & CHECK_AGENT:
        return AGENT
    return value


#
# Row / dump parsing
#
def parse_row(fields: List[str], now: Optional[float] = None) -> StateRow:
    """Decode one 25-column data row."""
    if len(fields) != FIELD_COUNT:
        raise MalformedField("row", " ".join(fields), f"expected {FIELD_COUNT} fields, got {len(fields)}")
    col = dict(zip(COLUMNS, fields))
    server = Server(
        backend_id=parse_int(col["be_id"], "be_id"),
        id=parse_int(col["srv_id"], "srv_id"),
        name=col["srv_name"],
        address=parse_address(col["srv_addr"]),
        state=decode_server_state(col["srv_op_state"]),
        admin_state=decode_admin_state(col["srv_admin_state"]),
        user_weight=parse_int(col["srv_uweight"], "srv_uweight"),
        effective_weight=parse_int(col["srv_iweight"], "srv_iweight"),
        last_state_change=parse_since(col["srv_time_since_last_change"], now),
        check_status=decode_check_status(col["srv_check_status"]),
        check_result=decode_check_result(col["srv_check_result"]),
        checks_succeeded=parse_int(col["srv_check_health"], "srv_check_health"),
        check_state=decode_check_info_state(col["srv_check_state"]),
        agent_state=decode_agent_state(col["srv_agent_state"]),
        backend_forced_id=parse_int(col["bk_f_forced_id"], "bk_f_forced_id"),
        server_forced_id=parse_int(col["srv_f_forced_id"], "srv_f_forced_id"),
        fqdn=col["srv_fqdn"],
        port=parse_int(col["srv_port"], "srv_port"),
        srv_record=col["srvrecord"],
        use_ssl=parse_bool(col["srv_use_ssl"]),
        check_port=parse_int(col["srv_check_port"], "srv_check_port"),
        check_addr=col["srv_check_addr"],
        agent_addr=col["srv_agent_addr"],
        agent_port=parse_int(col["srv_agent_port"], "srv_agent_port"),
    )
    return StateRow(backend_id=server.backend_id, backend_name=col["be_name"], server=server)


def parse_rows(text: str, now: Optional[float] = None) -> Iterator[RowResult]:
    """Yield one result per data row; decoding errors are returned, not raised."""
    for lineno, raw_line in enumerate(text.split("\n"), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split()
        if len(fields) == 1:
            # dump format version
            continue
        try:
            yield RowResult(lineno, parse_row(fields, now), None)
        except MalformedField as exc:
            yield RowResult(lineno, None, exc)


def parse_backends(text: str, *, now: Optional[float] = None, strict: bool = True) -> List[Backend]:
    """Group dump rows into backends.

    With ``strict`` (the default) the first malformed row aborts the whole
    parse. Otherwise malformed rows are logged and skipped.
    """
    backends: Dict[str, Backend] = {}
    for result in parse_rows(text, now):
        if result.error is not None:
            if strict:
                raise result.error
            logger.warning("skipping state row %d: %s", result.lineno, result.error)
            continue
        row = result.row
        assert row is not None
        backend = backends.get(row.backend_name)
        if backend is None:
            backend = Backend(id=row.backend_id, name=row.backend_name)
            backends[row.backend_name] = backend
        backend.servers.append(row.server)
    return list(backends.values())


__all__ = [
    "Backend",
    "Server",
    "StateRow",
    "RowResult",
    "MalformedField",
    "SHOW_SERVERS_STATE",
    "COLUMNS",
    "parse_int",
    "parse_address",
    "parse_bool",
    "parse_since",
    "decode_server_state",
    "decode_check_status",
    "decode_check_result",
    "decode_admin_state",
    "decode_check_info_state",
    "decode_agent_state",
    "parse_row",
    "parse_rows",
    "parse_backends",
]
