"""Help-listing parser for the HAProxy runtime API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Union

DEPRECATED_MARKER = "DEPRECATED"
_ARGUMENT_OPENERS = ("[", "<", "{")


class MalformedHelpLine(ValueError):
    """Raised when a help line has no ``:`` separator."""

    def __init__(self, line: str) -> None:
        super().__init__(f"help line without ':' separator: {line!r}")
        self.line = line


@dataclass(frozen=True)
class Command:
    name: str
    help: str = ""
    args: str = ""

    @property
    def signature(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name} {self.args}"

    # list item protocol (title / description / filter value)
    @property
    def title(self) -> str:
        return self.name

    @property
    def description(self) -> str:
        return self.help

    @property
    def filter_value(self) -> str:
        return self.name

    def format_help(self, width: int = 40) -> str:
        return f"{self.signature:<{width}}: {self.help}"


class ParsedHelp(Sequence[Command]):
    """Ordered command listing with lookup by name."""

    def __init__(self, commands: Optional[List[Command]] = None) -> None:
        self._commands: List[Command] = list(commands or [])

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __getitem__(self, index):  # type: ignore[override]
        if isinstance(index, slice):
            return ParsedHelp(self._commands[index])
        return self._commands[index]

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Command):
            return item in self._commands
        if isinstance(item, str):
            return self.contains(item)
        return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ParsedHelp):
            return self._commands == other._commands
        if isinstance(other, list):
            return self._commands == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"ParsedHelp({self._commands!r})"

    def contains(self, name: str) -> bool:
        return self.get(name) is not None

    def get(self, name: str) -> Optional[Command]:
        for command in self._commands:
            if command.name == name:
                return command
        return None

    def names(self) -> List[str]:
        return [command.name for command in self._commands]

    def filter(self, prefix: str) -> List[Command]:
        needle = prefix.strip()
        if not needle:
            return list(self._commands)
        return [command for command in self._commands if command.filter_value.startswith(needle)]


def find_arguments_start(command: str) -> int:
    """Return the index where the argument signature begins, or -1.

    Openers found at index 0 are ignored: a signature cannot precede the
    command word.
    """
    candidates = [idx for idx in (command.find(ch) for ch in _ARGUMENT_OPENERS) if idx > 0]
    if not candidates:
        return -1
    return min(candidates)


def parse_help_line(line: str) -> Command:
    if ":" not in line:
        raise MalformedHelpLine(line)
    left, right = line.split(":", 1)
    name = left.strip()
    args = ""
    start = find_arguments_start(name)
    if start > 0:
        args = name[start:].strip()
        name = name[:start].strip()
    return Command(name=name, help=right.strip(), args=args)


def parse_help(raw: Union[str, bytes]) -> ParsedHelp:
    """Decode the response of the ``help`` command.

    The first line is a banner and is discarded. Empty lines and lines
    carrying the ``DEPRECATED`` marker are skipped.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    commands: List[Command] = []
    for line in raw.split("\n")[1:]:
        if not line.strip():
            continue
        if DEPRECATED_MARKER in line:
            continue
        commands.append(parse_help_line(line))
    return ParsedHelp(commands)


__all__ = [
    "Command",
    "ParsedHelp",
    "MalformedHelpLine",
    "find_arguments_start",
    "parse_help",
    "parse_help_line",
]
