"""Translate REPL input lines into router input events."""

from __future__ import annotations

from typing import Dict, List, Tuple

from hapruntime.events import BaseEvent, KeyPress, Page, TextInput
from hapruntime.pages import KEY_BACKSPACE, KEY_DOWN, KEY_ENTER, KEY_UP

KEY_PREFIX = ":"

KEY_ALIASES: Dict[str, str] = {
    "back": KEY_BACKSPACE,
    "..": KEY_BACKSPACE,
    "bs": KEY_BACKSPACE,
    "k": KEY_UP,
    "j": KEY_DOWN,
}

PAGE_KEYS: Dict[Page, Tuple[Tuple[str, str], ...]] = {
    Page.STATUS: (("r", "reload"), ("c", "command list"), ("q", "quit")),
    Page.COMMANDS: (("s", "status page"), ("up", "previous"), ("down", "next"), ("q", "quit")),
    Page.EXECUTE: (("back", "command list"), ("q", "quit")),
}


def key_hints(page: Page) -> str:
    return "  ".join(f"{KEY_PREFIX}{key} {label}" for key, label in PAGE_KEYS[page])


def line_to_events(line: str, page: Page) -> List[BaseEvent]:
    """Map one input line to the events it stands for on *page*.

    An empty line is ``enter``. ``:name`` is a key press. On the status page
    every line is a key press; elsewhere free text is entered and submitted.
    """
    text = line.strip()
    if not text:
        return [KeyPress(KEY_ENTER)]
    if text.startswith(KEY_PREFIX) and len(text) > 1:
        key = text[len(KEY_PREFIX):].strip()
        key = KEY_ALIASES.get(key, key)
        if page == Page.EXECUTE and key == KEY_BACKSPACE:
            return [TextInput(""), KeyPress(KEY_BACKSPACE)]
        return [KeyPress(key)]
    if page == Page.STATUS:
        return [KeyPress(KEY_ALIASES.get(text, text))]
    return [TextInput(text), KeyPress(KEY_ENTER)]


__all__ = ["KEY_PREFIX", "PAGE_KEYS", "key_hints", "line_to_events"]
