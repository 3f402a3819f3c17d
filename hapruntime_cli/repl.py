"""Interactive REPL for haproxy-runtime-cli.

The event loop owns the main thread. A daemon reader thread prompts for
input, turns each line into router events and posts them to the loop.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from hapruntime.events import BaseEvent, ErrorEvent, Quit, is_data_event
from hapruntime.loop import Program
from hapruntime.router import PageRouter

from .completion import RuntimeCompleter
from .keys import line_to_events
from .output import prompt_for, render_page

LOGGER = logging.getLogger("hapruntime_cli.repl")

ReadLine = Callable[[str], str]


class RuntimeREPL:
    """Prompt-toolkit REPL with a plain ``input()`` mode for pipes."""

    def __init__(
        self,
        router: PageRouter,
        *,
        history_path: Optional[str] = None,
        plain: bool = False,
        read_line: Optional[ReadLine] = None,
        echo: Callable[[str], None] = print,
    ) -> None:
        self.router = router
        self.history_path = history_path
        self.plain = plain
        self.echo = echo
        self._read_line = read_line
        self.program = Program(router, on_update=self._on_update)
        self._reader: Optional[threading.Thread] = None
        self._stopped = threading.Event()

    def run(self) -> int:
        self.echo(render_page(self.router.active_page))
        self._reader = threading.Thread(target=self._read_loop, name="hapruntime-input", daemon=True)
        self._reader.start()
        try:
            if self.plain or self._read_line is not None:
                self.program.run()
            else:
                with patch_stdout():
                    self.program.run()
        finally:
            self._stopped.set()
        return 0

    def _make_reader(self) -> ReadLine:
        if self._read_line is not None:
            return self._read_line
        if self.plain:
            return input
        history = FileHistory(self.history_path) if self.history_path else InMemoryHistory()
        session: PromptSession = PromptSession(
            history=history,
            completer=RuntimeCompleter(self.router),
            complete_while_typing=True,
        )

        def _prompt(message: str) -> str:
            # signal handlers can only be installed on the main thread
            return session.prompt(message, in_thread=True)

        return _prompt

    def _read_loop(self) -> None:
        read_line = self._make_reader()
        while not self._stopped.is_set():
            try:
                line = read_line(prompt_for(self.router.active_page))
            except (EOFError, KeyboardInterrupt):
                self.program.post(Quit())
                return
            except Exception as exc:  # pragma: no cover - terminal failures
                LOGGER.exception("input failed")
                self.program.post(ErrorEvent(exc))
                return
            for event in line_to_events(line, self.router.active):
                self.program.post(event)

    def _on_update(self, event: BaseEvent) -> None:
        if isinstance(event, Quit):
            return
        if is_data_event(event) and not self._shown_on_active_page(event):
            return
        self.echo(render_page(self.router.active_page))

    def _shown_on_active_page(self, event: BaseEvent) -> bool:
        return self.router.active_page.supports(event, True)


__all__ = ["RuntimeREPL"]
