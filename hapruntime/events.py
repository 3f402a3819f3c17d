"""Inbound events consumed by the page router.

Events form a closed set of frozen dataclasses. Long-running work is
expressed as an :data:`Effect`: a zero-argument callable executed off the
event loop whose returned event(s) are posted back into the loop.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Tuple, Union

from .help import Command, ParsedHelp
from .state import Backend


class Page(enum.Enum):
    STATUS = "status"
    COMMANDS = "commands"
    EXECUTE = "execute"


@dataclass(frozen=True)
class BaseEvent:
    pass


# data events: always delivered to the interested page
@dataclass(frozen=True)
class HelpLoaded(BaseEvent):
    help: ParsedHelp = field(default_factory=ParsedHelp)


@dataclass(frozen=True)
class BackendsLoaded(BaseEvent):
    backends: Tuple[Backend, ...] = ()


@dataclass(frozen=True)
class CommandSelected(BaseEvent):
    command: Command = field(default_factory=lambda: Command(name=""))


@dataclass(frozen=True)
class ExecuteResponse(BaseEvent):
    text: str = ""


# input events: delivered to the active page only
@dataclass(frozen=True)
class KeyPress(BaseEvent):
    key: str = ""


@dataclass(frozen=True)
class TextInput(BaseEvent):
    text: str = ""


# layout events: delivered to every page
@dataclass(frozen=True)
class Resize(BaseEvent):
    width: int = 0
    height: int = 0


# control events: handled by the router itself
@dataclass(frozen=True)
class Activate(BaseEvent):
    page: Page = Page.STATUS


@dataclass(frozen=True)
class ErrorEvent(BaseEvent):
    error: BaseException = field(default_factory=lambda: RuntimeError("unknown error"))


@dataclass(frozen=True)
class Quit(BaseEvent):
    pass


Event = Union[
    HelpLoaded,
    BackendsLoaded,
    CommandSelected,
    ExecuteResponse,
    KeyPress,
    TextInput,
    Resize,
    Activate,
    ErrorEvent,
    Quit,
]

DATA_EVENTS = (HelpLoaded, BackendsLoaded, CommandSelected, ExecuteResponse)
INPUT_EVENTS = (KeyPress, TextInput)

EffectResult = Union[None, BaseEvent, Sequence[BaseEvent]]
Effect = Callable[[], EffectResult]


def is_data_event(event: BaseEvent) -> bool:
    return isinstance(event, DATA_EVENTS)


def is_input_event(event: BaseEvent) -> bool:
    return isinstance(event, INPUT_EVENTS)


def emit(*events: BaseEvent) -> Effect:
    """Effect yielding *events* in order without doing any work."""
    fixed = tuple(events)

    def _effect() -> Tuple[BaseEvent, ...]:
        return fixed

    return _effect


def activate(page: Page) -> Effect:
    return emit(Activate(page))


def quit_effect() -> Effect:
    return emit(Quit())


def as_events(result: EffectResult) -> List[BaseEvent]:
    """Normalise an effect's return value into a list of events."""
    if result is None:
        return []
    if isinstance(result, BaseEvent):
        return [result]
    return [event for event in result if event is not None]


def backends_loaded(backends: Sequence[Backend]) -> BackendsLoaded:
    return BackendsLoaded(tuple(backends))


__all__ = [
    "Page",
    "BaseEvent",
    "Event",
    "HelpLoaded",
    "BackendsLoaded",
    "CommandSelected",
    "ExecuteResponse",
    "KeyPress",
    "TextInput",
    "Resize",
    "Activate",
    "ErrorEvent",
    "Quit",
    "Effect",
    "emit",
    "activate",
    "quit_effect",
    "as_events",
    "backends_loaded",
    "is_data_event",
    "is_input_event",
]
