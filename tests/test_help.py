import pytest

from hapruntime.help import (
    Command,
    MalformedHelpLine,
    ParsedHelp,
    find_arguments_start,
    parse_help,
    parse_help_line,
)

from conftest import RAW_HELP_COMMANDS


def test_parse_help_counts_non_deprecated_lines(raw_help):
    parsed = parse_help(raw_help)
    assert len(parsed) == RAW_HELP_COMMANDS
    assert all("DEPRECATED" not in command.help for command in parsed)
    assert "disable server" not in parsed
    assert "set weight" not in parsed


def test_parse_help_preserves_source_order(raw_help):
    names = parse_help(raw_help).names()
    assert names[:3] == ["abort ssl ca-file", "add acl", "add server"]
    assert names[-2:] == ["help", "quit"]


def test_parse_help_discards_banner_even_with_separator():
    parsed = parse_help("banner: not a command\nquit : disconnect")
    assert parsed.names() == ["quit"]


def test_parse_help_command_fields(raw_help):
    command = parse_help(raw_help).get("clear acl")
    assert command == Command(
        name="clear acl",
        help="clear the contents of this acl",
        args="[@<ver>] <acl>",
    )


def test_parse_help_without_arguments(raw_help):
    command = parse_help(raw_help).get("quit")
    assert command is not None
    assert command.args == ""
    assert command.help == "disconnect"


def test_parse_help_splits_on_first_colon_only():
    command = parse_help_line("show ssl ca-file [<cafile>[:<index>]]   : display CA files")
    assert command.name == "show ssl ca-file"
    assert command.args == "[<cafile>["
    assert command.help == "<index>]]   : display CA files".strip()


def test_deprecated_marker_anywhere_in_line():
    raw = "banner\nfoo : bar\nbaz : DEPRECATED alias\nDEPRECATED : thing\nqux <a> : ok"
    assert parse_help(raw).names() == ["foo", "qux"]


def test_parse_help_accepts_bytes():
    parsed = parse_help(b"banner\nquit : disconnect")
    assert parsed.get("quit") == Command("quit", "disconnect")


def test_parse_help_missing_separator_is_fatal():
    with pytest.raises(MalformedHelpLine):
        parse_help("banner\nquit : disconnect\nno separator here")


def test_split_arguments_from_command():
    cmd = "clear acl [arg1] [arg2]"
    assert find_arguments_start(cmd) == 10
    assert cmd[:10].strip() == "clear acl"

    cmd = "add ssl ca-file <cafile> <payload>"
    assert find_arguments_start(cmd) == 16
    assert cmd[:16].strip() == "add ssl ca-file"

    cmd = "wait {-h|<delay_ms>} cond [args...]"
    assert find_arguments_start(cmd) == 5
    assert cmd[:5].strip() == "wait"


def test_argument_opener_at_index_zero_is_ignored():
    assert find_arguments_start("<x> foo") == -1
    assert find_arguments_start("[x] foo <bar>") == 8
    command = parse_help_line("<x> foo : odd")
    assert command.name == "<x> foo"
    assert command.args == ""


def test_parsed_help_contains():
    help = ParsedHelp([Command("clear acl", "clear the contents of this acl", "[@<ver>] <acl>")])
    assert help.contains("clear acl")
    assert "clear acl" in help
    assert not help.contains("unknown command")
    assert "unknown command" not in help


def test_parsed_help_get_command_returns_first_match():
    first = Command("clear acl", "first", "[@<ver>] <acl>")
    second = Command("clear acl", "second")
    help = ParsedHelp([first, second])
    assert help.get("clear acl") is first
    assert help.get("unknown") is None


def test_parsed_help_filter_by_prefix(raw_help):
    parsed = parse_help(raw_help)
    assert [c.name for c in parsed.filter("clear")] == ["clear acl", "clear counters"]
    assert len(parsed.filter("")) == len(parsed)


def test_command_display_round_trip(raw_help):
    for command in parse_help(raw_help):
        if ":" in command.signature:
            continue
        assert parse_help_line(command.format_help()) == command


def test_command_list_item_protocol():
    command = Command("show info", "report information", "[desc|json]")
    assert command.title == "show info"
    assert command.description == "report information"
    assert command.filter_value == "show info"
    assert command.signature == "show info [desc|json]"
