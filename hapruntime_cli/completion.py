"""prompt_toolkit completer for the runtime REPL."""

from __future__ import annotations

from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from hapruntime.events import Page
from hapruntime.pages import CommandsPage
from hapruntime.router import PageRouter

from .keys import KEY_PREFIX, PAGE_KEYS


class RuntimeCompleter(Completer):
    """Completes page keys everywhere and command names on the commands page."""

    def __init__(self, router: PageRouter) -> None:
        self.router = router

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        text = document.text_before_cursor.lstrip()
        page = self.router.active
        if text.startswith(KEY_PREFIX):
            yield from self._key_completions(page, text)
            return
        if page != Page.COMMANDS:
            return
        commands = self.router.page(Page.COMMANDS)
        if not isinstance(commands, CommandsPage):
            return
        for command in commands.commands.filter(text):
            yield Completion(
                command.name,
                start_position=-len(text),
                display_meta=command.args or command.help,
            )

    def _key_completions(self, page: Page, text: str) -> Iterable[Completion]:
        for key, label in PAGE_KEYS[page]:
            candidate = f"{KEY_PREFIX}{key}"
            if candidate.startswith(text):
                yield Completion(candidate, start_position=-len(text), display_meta=label)


__all__ = ["RuntimeCompleter"]
