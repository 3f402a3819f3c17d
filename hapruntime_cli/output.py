"""Plain-text rendering of page models."""

from __future__ import annotations

from typing import List, Sequence

from hapruntime.help import ParsedHelp
from hapruntime.pages import BasePage, CommandsPage, ExecutePage, StatusPage
from hapruntime.state import Backend

from .keys import key_hints

APP_NAME = "haproxy-runtime-cli"

STATUS_COLUMNS = ("Backend", "Name", "Weight", "State", "IP", "CHECK", "", "FQDN", "SSL")

# rows shown around the cursor on the commands page
LIST_WINDOW = 20


def header() -> str:
    return f"== {APP_NAME} =="


def render_table(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    """Left-aligned table, each column padded to its widest cell."""
    widths = [len(title) for title in columns]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))
    lines = ["  ".join(title.ljust(widths[idx]) for idx, title in enumerate(columns)).rstrip()]
    lines.append("  ".join("-" * width for width in widths))
    for row in rows:
        padded = list(row) + [""] * (len(columns) - len(row))
        lines.append("  ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(padded)).rstrip())
    return lines


def render_status(page: StatusPage) -> str:
    rows = page.rows()
    if not rows:
        return "  (no backends)"
    return "\n".join(render_table(STATUS_COLUMNS, rows))


def render_commands(page: CommandsPage) -> str:
    items = page.visible()
    if not len(page.commands):
        return "  No items."
    lines = [f"  {len(items)} item{'s' if len(items) != 1 else ''}" + (f" matching '{page.filter_text}'" if page.filter_text else "")]
    selected = page.selected()
    start = max(0, page.cursor - LIST_WINDOW // 2)
    for command in items[start:start + LIST_WINDOW]:
        marker = ">" if command is selected else " "
        lines.append(f"{marker} {command.signature}")
        lines.append(f"      {command.help}")
    return "\n".join(lines)


def render_execute(page: ExecutePage) -> str:
    lines = [page.command.help or "(no command selected)"]
    placeholder = page.placeholder()
    lines.append(f"> {page.command_line()}" + (f" {placeholder}" if placeholder else ""))
    if page.response:
        lines.append("-" * 40)
        lines.append(page.response)
    return "\n".join(lines)


def render_page(page: BasePage) -> str:
    if isinstance(page, StatusPage):
        body = render_status(page)
    elif isinstance(page, CommandsPage):
        body = render_commands(page)
    elif isinstance(page, ExecutePage):
        body = render_execute(page)
    else:
        body = ""
    return "\n".join([header(), body, key_hints(page.page)])


def format_help_listing(help: ParsedHelp) -> str:
    return "\n".join(command.format_help() for command in help)


def format_backends(backends: Sequence[Backend]) -> str:
    page = StatusPage(None)
    page.backends = list(backends)
    return render_status(page)


def prompt_for(page: BasePage) -> str:
    if isinstance(page, ExecutePage) and page.command.name:
        return f"{page.command.name} "
    return f"{page.page.value}> "


__all__ = [
    "APP_NAME",
    "header",
    "render_table",
    "render_page",
    "render_status",
    "render_commands",
    "render_execute",
    "format_help_listing",
    "format_backends",
    "prompt_for",
]
