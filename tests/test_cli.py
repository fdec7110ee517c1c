import pytest

from chordring.cli import parse_args, split_line


def test_split_line_drops_empty_words():
    assert split_line("  storefile  a.txt b \n") == ["storefile", "a.txt", "b"]


def test_split_line_empty():
    assert split_line("\n") == []
    assert split_line("") == []


def test_split_line_only_spaces_separate():
    assert split_line("a\tb c") == ["a\tb", "c"]


def test_parse_args_defaults():
    opts = parse_args([])
    assert opts.port == "8080"
    assert opts.address == ""
    assert opts.stabilize_ms == 30000
    assert opts.fix_fingers_ms == 10000
    assert opts.check_predecessor_ms == 40000
    assert opts.backup_minutes == 1
    assert opts.successors == 3
    assert opts.debug is False


def test_parse_args_out_of_range_values_fall_back():
    opts = parse_args(
        ["-ts", "70000", "-tff", "0", "-tcp", "-5", "-s", "20000", "-r", "40"]
    )
    assert opts.stabilize_ms == 30000
    assert opts.fix_fingers_ms == 10000
    assert opts.check_predecessor_ms == 40000
    assert opts.backup_minutes == 1
    assert opts.successors == 3


def test_parse_args_keeps_values_in_range():
    opts = parse_args(["-ts", "500", "-r", "32", "-s", "10080", "-p", "9000"])
    assert opts.stabilize_ms == 500
    assert opts.successors == 32
    assert opts.backup_minutes == 10080
    assert opts.port == "9000"


def test_parse_args_join_target_and_flags():
    opts = parse_args(["-ja", "10.0.0.1", "-jp", "9000", "-d", "-a", "10.0.0.2"])
    assert opts.join_address == "10.0.0.1"
    assert opts.join_port == "9000"
    assert opts.address == "10.0.0.2"
    assert opts.debug is True


def test_parse_args_rejects_non_integer():
    with pytest.raises(SystemExit):
        parse_args(["-ts", "soon"])