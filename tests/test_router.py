from unittest.mock import MagicMock

import pytest

from hapruntime.events import (
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
from hapruntime.help import Command, ParsedHelp
from hapruntime.pages import CommandsPage, ExecutePage, StatusPage
from hapruntime.router import FatalError, PageRouter
from hapruntime.state import Backend


def _router(**kwargs):
    return PageRouter.for_socket(None, **kwargs)


def _spy_router():
    pages = []
    for kind in Page:
        page = MagicMock()
        page.page = kind
        page.supports.side_effect = lambda event, active: active or not isinstance(event, KeyPress)
        page.update.return_value = []
        pages.append(page)
    return PageRouter(pages), {page.page: page for page in pages}


def test_initial_page_is_status():
    router = _router()
    assert router.active == Page.STATUS
    assert isinstance(router.active_page, StatusPage)


def test_unknown_initial_page_rejected():
    with pytest.raises(ValueError):
        PageRouter([StatusPage(None)], initial=Page.EXECUTE)


def test_activation_switches_page_and_is_not_forwarded():
    router, pages = _spy_router()
    assert router.dispatch(Activate(Page.COMMANDS)) == []
    assert router.active == Page.COMMANDS
    for page in pages.values():
        page.supports.assert_not_called()
        page.update.assert_not_called()


def test_keypress_reaches_only_active_page():
    router, pages = _spy_router()
    router.dispatch(Activate(Page.EXECUTE))
    router.dispatch(KeyPress("x"))
    pages[Page.EXECUTE].update.assert_called_once_with(KeyPress("x"))
    pages[Page.STATUS].update.assert_not_called()
    pages[Page.COMMANDS].update.assert_not_called()
    pages[Page.STATUS].supports.assert_called_once_with(KeyPress("x"), False)


def test_data_event_reaches_backgrounded_page():
    router = _router()
    help = ParsedHelp([Command("foo", "bar")])
    router.dispatch(HelpLoaded(help))
    assert router.active == Page.STATUS
    assert router.page(Page.COMMANDS).commands == help


def test_resize_reaches_every_page():
    router = _router()
    router.dispatch(Resize(120, 40))
    assert all(page.width == 120 and page.height == 40 for page in router.pages.values())


def test_effects_are_collected_from_all_interested_pages():
    router, pages = _spy_router()
    first, second = MagicMock(), MagicMock()
    pages[Page.STATUS].update.return_value = [first]
    pages[Page.EXECUTE].update.return_value = [second]
    effects = router.dispatch(Resize(1, 1))
    assert sorted(map(id, effects)) == sorted([id(first), id(second)])


def test_error_event_is_fatal_by_default():
    router, pages = _spy_router()
    boom = RuntimeError("socket gone")
    with pytest.raises(FatalError) as excinfo:
        router.dispatch(ErrorEvent(boom))
    assert excinfo.value.error is boom
    for page in pages.values():
        page.update.assert_not_called()


def test_error_policy_is_overridable():
    seen = []
    router = _router(on_error=seen.append)
    boom = RuntimeError("socket gone")
    assert router.dispatch(ErrorEvent(boom)) == []
    assert seen == [boom]


def test_quit_is_recorded_not_forwarded():
    router, pages = _spy_router()
    router.dispatch(Quit())
    assert router.quit_requested
    for page in pages.values():
        page.update.assert_not_called()


def test_known_data_events_produce_no_effects():
    router = _router()
    assert router.dispatch(BackendsLoaded((Backend(1, "backend1"),))) == []
    router.dispatch(Activate(Page.COMMANDS))
    assert router.dispatch(HelpLoaded(ParsedHelp([Command("foo", "bar")]))) == []
    router.dispatch(Activate(Page.EXECUTE))
    assert router.dispatch(CommandSelected(Command("foo", "bar"))) == []
    assert router.dispatch(ExecuteResponse("ok")) == []
    assert isinstance(router.page(Page.EXECUTE), ExecutePage)


def test_text_input_goes_to_active_page_only():
    router = _router()
    router.dispatch(HelpLoaded(ParsedHelp([Command("show info", "info"), Command("show stat", "stat")])))
    router.dispatch(TextInput("show stat"))
    commands = router.page(Page.COMMANDS)
    assert isinstance(commands, CommandsPage)
    assert commands.filter_text == ""
    router.dispatch(Activate(Page.COMMANDS))
    router.dispatch(TextInput("show stat"))
    assert commands.selected() == Command("show stat", "stat")


def test_init_collects_page_effects():
    router, pages = _spy_router()
    effect = MagicMock()
    pages[Page.STATUS].init.return_value = [effect]
    pages[Page.COMMANDS].init.return_value = []
    pages[Page.EXECUTE].init.return_value = []
    assert router.init() == [effect]
