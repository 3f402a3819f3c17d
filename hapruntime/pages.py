"""Page models driven by the router.

A page answers two questions: does it want to observe an event
(:meth:`supports`) and what effects does observing it produce
(:meth:`update`). Rendering lives in the CLI package.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .events import (
    Activate,
    BackendsLoaded,
    BaseEvent,
    CommandSelected,
    Effect,
    ExecuteResponse,
    HelpLoaded,
    KeyPress,
    Page,
    Resize,
    TextInput,
    activate,
    backends_loaded,
    emit,
    quit_effect,
)
from .help import Command, ParsedHelp, parse_help
from .state import SHOW_SERVERS_STATE, Backend, parse_backends
from .transport import ConnectionFactory, execute_cmd, execute_nonempty

LOGGER = logging.getLogger(__name__)

HELP_COMMAND = "help"

KEY_ENTER = "enter"
KEY_BACKSPACE = "backspace"
KEY_UP = "up"
KEY_DOWN = "down"


def fetch_help(connect: ConnectionFactory) -> Effect:
    def _effect() -> HelpLoaded:
        return HelpLoaded(parse_help(execute_nonempty(connect, HELP_COMMAND)))

    return _effect


def fetch_backends(connect: ConnectionFactory) -> Effect:
    return execute_cmd(connect, SHOW_SERVERS_STATE, lambda text: backends_loaded(parse_backends(text)))


def execute_command(connect: ConnectionFactory, command_line: str) -> Effect:
    return execute_cmd(connect, command_line, ExecuteResponse)


class BasePage:
    """Common interest policy: layout always, input only while active."""

    page: Page
    data_events: Tuple[type, ...] = ()

    def __init__(self, connect: Optional[ConnectionFactory]) -> None:
        self.connect = connect
        self.width = 0
        self.height = 0

    def init(self) -> List[Effect]:
        return []

    def supports(self, event: BaseEvent, active: bool) -> bool:
        if isinstance(event, self.data_events):
            return True
        if isinstance(event, Resize):
            return True
        if isinstance(event, (KeyPress, TextInput)):
            return active
        return False

    def update(self, event: BaseEvent) -> List[Effect]:
        if isinstance(event, Resize):
            self.resize(event.width, event.height)
            return []
        if isinstance(event, KeyPress):
            return self.on_key(event.key)
        if isinstance(event, TextInput):
            return self.on_text(event.text)
        return self.on_data(event)

    def resize(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            return
        self.width = width
        self.height = height

    def on_key(self, key: str) -> List[Effect]:
        return []

    def on_text(self, text: str) -> List[Effect]:
        return []

    def on_data(self, event: BaseEvent) -> List[Effect]:
        return []


class StatusPage(BasePage):
    """Backend/server table fed by ``show servers state``."""

    page = Page.STATUS
    data_events = (BackendsLoaded,)

    def __init__(self, connect: Optional[ConnectionFactory]) -> None:
        super().__init__(connect)
        self.backends: List[Backend] = []

    def init(self) -> List[Effect]:
        if self.connect is None:
            return []
        return [fetch_backends(self.connect)]

    def on_data(self, event: BaseEvent) -> List[Effect]:
        if isinstance(event, BackendsLoaded):
            self.backends = list(event.backends)
        return []

    def on_key(self, key: str) -> List[Effect]:
        if key == "q":
            return [quit_effect()]
        if key in (KEY_BACKSPACE, "c"):
            return [activate(Page.COMMANDS)]
        if key == "r" and self.connect is not None:
            return [fetch_backends(self.connect)]
        return []

    def rows(self) -> List[Tuple[str, ...]]:
        rows: List[Tuple[str, ...]] = []
        for backend in self.backends:
            rows.append((backend.name,))
            for server in backend.servers:
                rows.append(
                    (
                        "",
                        server.name,
                        str(server.effective_weight),
                        server.state,
                        str(server.address) if server.address is not None else "",
                        server.check_state,
                        server.check_result,
                        server.endpoint,
                        "true" if server.use_ssl else "false",
                    )
                )
        return rows


class CommandsPage(BasePage):
    """Filterable list of commands from the help listing."""

    page = Page.COMMANDS
    data_events = (HelpLoaded,)

    def __init__(self, connect: Optional[ConnectionFactory]) -> None:
        super().__init__(connect)
        self.commands: ParsedHelp = ParsedHelp()
        self.filter_text = ""
        self.cursor = 0

    def init(self) -> List[Effect]:
        if len(self.commands) > 0 or self.connect is None:
            return []
        return [fetch_help(self.connect)]

    def visible(self) -> List[Command]:
        return self.commands.filter(self.filter_text)

    def selected(self) -> Optional[Command]:
        items = self.visible()
        if not items:
            return None
        return items[min(self.cursor, len(items) - 1)]

    def on_data(self, event: BaseEvent) -> List[Effect]:
        if isinstance(event, HelpLoaded):
            self.commands = event.help
            self.cursor = 0
            LOGGER.debug("loaded %d commands", len(self.commands))
        return []

    def on_text(self, text: str) -> List[Effect]:
        self.filter_text = text.strip()
        self.cursor = 0
        exact = self.commands.get(self.filter_text)
        if exact is not None:
            self.cursor = self.visible().index(exact)
        return []

    def on_key(self, key: str) -> List[Effect]:
        if key == "q":
            return [quit_effect()]
        if key == "s":
            return [activate(Page.STATUS)]
        if key == KEY_UP:
            self.cursor = max(0, self.cursor - 1)
        elif key == KEY_DOWN:
            self.cursor = min(max(0, len(self.visible()) - 1), self.cursor + 1)
        elif key == KEY_BACKSPACE:
            self.filter_text = ""
            self.cursor = 0
        elif key == KEY_ENTER:
            command = self.selected()
            if command is not None:
                return [emit(Activate(Page.EXECUTE), CommandSelected(command))]
        return []


class ExecutePage(BasePage):
    """Argument entry and raw response for a single command."""

    page = Page.EXECUTE
    data_events = (ExecuteResponse, CommandSelected)

    def __init__(self, connect: Optional[ConnectionFactory]) -> None:
        super().__init__(connect)
        self.command = Command(name="")
        self.input = ""
        self.response = ""

    def command_line(self) -> str:
        return f"{self.command.name} {self.input}".rstrip()

    def placeholder(self) -> str:
        """Argument hints not yet covered by the typed input."""
        hints = self.command.args.split(" ") if self.command.args else []
        typed = self.input.count(" ")
        return " ".join(hints[min(typed, len(hints)):])

    def on_data(self, event: BaseEvent) -> List[Effect]:
        if isinstance(event, ExecuteResponse):
            self.response = event.text
        elif isinstance(event, CommandSelected):
            self.command = event.command
            self.input = ""
        return []

    def on_text(self, text: str) -> List[Effect]:
        self.input = text
        return []

    def on_key(self, key: str) -> List[Effect]:
        if key == "q":
            return [quit_effect()]
        if key == KEY_BACKSPACE:
            if not self.input:
                return [activate(Page.COMMANDS)]
            self.input = self.input[:-1]
            return []
        if key == KEY_ENTER and self.connect is not None and self.command.name:
            return [execute_command(self.connect, self.command_line())]
        return []


__all__ = [
    "BasePage",
    "StatusPage",
    "CommandsPage",
    "ExecutePage",
    "fetch_help",
    "fetch_backends",
    "execute_command",
]
