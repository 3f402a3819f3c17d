"""
hapruntime - client toolkit for the HAProxy runtime API socket.

This package is the core shared by the interactive CLI and scripted use.
Each module is implemented in its own file to keep responsibilities clear:

    help.py       → ``help`` listing parser (commands and argument hints)
    state.py      → ``show servers state`` parser (backends, servers, flags)
    transport.py  → connection factories & serialised request/response
    events.py     → event variants and deferred effects
    pages.py      → status / commands / execute page models
    router.py     → active-page state machine and event fan-out
    loop.py       → event loop running effects off the main thread
"""

from .help import Command, MalformedHelpLine, ParsedHelp, parse_help  # noqa: F401
from .state import (  # noqa: F401
    SHOW_SERVERS_STATE,
    Backend,
    MalformedField,
    RowResult,
    Server,
    parse_backends,
    parse_rows,
)
from .transport import (  # noqa: F401
    CommandExecutor,
    ConnectionFailure,
    EmptyResponse,
    TransportConfig,
    TransportError,
    TransportFailure,
    connection_factory,
    execute,
    execute_cmd,
)
from .events import (  # noqa: F401
    Activate,
    BackendsLoaded,
    CommandSelected,
    ErrorEvent,
    ExecuteResponse,
    HelpLoaded,
    KeyPress,
    Page,
    Quit,
    Resize,
    TextInput,
)
from .pages import CommandsPage, ExecutePage, StatusPage  # noqa: F401
from .router import FatalError, PageRouter  # noqa: F401
from .loop import Program  # noqa: F401

__all__ = [
    "Command",
    "ParsedHelp",
    "MalformedHelpLine",
    "parse_help",
    "Backend",
    "Server",
    "RowResult",
    "MalformedField",
    "SHOW_SERVERS_STATE",
    "parse_backends",
    "parse_rows",
    "TransportConfig",
    "TransportError",
    "ConnectionFailure",
    "TransportFailure",
    "EmptyResponse",
    "CommandExecutor",
    "connection_factory",
    "execute",
    "execute_cmd",
    "Page",
    "Activate",
    "BackendsLoaded",
    "CommandSelected",
    "ErrorEvent",
    "ExecuteResponse",
    "HelpLoaded",
    "KeyPress",
    "Quit",
    "Resize",
    "TextInput",
    "StatusPage",
    "CommandsPage",
    "ExecutePage",
    "PageRouter",
    "FatalError",
    "Program",
]

__version__ = "0.1.0"
