"""Page router: owns the active page and fans events out to pages."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

from .events import Activate, BaseEvent, Effect, ErrorEvent, Page, Quit
from .pages import BasePage, CommandsPage, ExecutePage, StatusPage
from .transport import ConnectionFactory

logger = logging.getLogger(__name__)

ErrorPolicy = Callable[[BaseException], None]


class FatalError(RuntimeError):
    """Raised by the default error policy to stop the event loop."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.error = error


def fail(error: BaseException) -> None:
    """Default policy: every error event is fatal."""
    raise FatalError(error) from error


class PageRouter:
    """Routes inbound events to the pages that declared interest.

    ``Activate`` events switch the active page and are consumed. ``ErrorEvent``
    is handed to ``on_error`` and never reaches a page. Every other event is
    offered to each page with ``active`` set for the current one.
    """

    def __init__(
        self,
        pages: Iterable[BasePage],
        *,
        initial: Page = Page.STATUS,
        on_error: Optional[ErrorPolicy] = None,
    ) -> None:
        self.pages: Dict[Page, BasePage] = {page.page: page for page in pages}
        if initial not in self.pages:
            raise ValueError(f"no page registered for {initial}")
        self.active = initial
        self.on_error: ErrorPolicy = on_error or fail
        self.quit_requested = False

    @classmethod
    def for_socket(cls, connect: Optional[ConnectionFactory], **kwargs) -> "PageRouter":
        return cls([StatusPage(connect), CommandsPage(connect), ExecutePage(connect)], **kwargs)

    @property
    def active_page(self) -> BasePage:
        return self.pages[self.active]

    def page(self, page: Page) -> BasePage:
        return self.pages[page]

    def init(self) -> List[Effect]:
        effects: List[Effect] = []
        for page in self.pages.values():
            effects.extend(page.init())
        return effects

    def dispatch(self, event: BaseEvent) -> List[Effect]:
        if isinstance(event, Activate):
            logger.debug("activate %s", event.page.value)
            self.active = event.page
            return []
        if isinstance(event, ErrorEvent):
            self.on_error(event.error)
            return []
        if isinstance(event, Quit):
            self.quit_requested = True
            return []
        effects: List[Effect] = []
        for kind, page in self.pages.items():
            if page.supports(event, kind == self.active):
                effects.extend(page.update(event))
        return effects


__all__ = ["PageRouter", "FatalError", "ErrorPolicy", "fail"]
