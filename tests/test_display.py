from unittest.mock import patch

from anet.display import check_privileges, format_bytes, generate_ascii_art


def test_format_bytes_small_values_are_plain():
    assert format_bytes(0) == "0 B"
    assert format_bytes(1023) == "1023 B"


def test_format_bytes_units():
    assert format_bytes(1024) == "1.00 KiB"
    assert format_bytes(5 * 1024 * 1024).endswith(" MiB")
    assert format_bytes(1024 ** 3) == "1.00 GiB"
    assert format_bytes(1024 * 1024 - 1).endswith(" KiB")
    assert format_bytes(50 * 1024 ** 4).endswith(" GiB")


def _line(art, label):
    return next(line for line in art.splitlines() if label in line)


def test_ascii_art_contains_build_details():
    art = generate_ascii_art("CI/CD", "abc1234", "2024-01-01 12:00:00")
    assert "Build Type: CI/CD" in art
    assert "Commit Hash: abc1234" in art
    assert "Build Time:  2024-01-01 12:00:00" in art
    assert art.startswith("\n")


def test_ascii_art_truncates_long_values():
    art = generate_ascii_art("ABCDEFGHIJKLMN", "0123456789abcdef", "2024-01-01 12:00:00.123")
    assert "ABCDEFGHIJ" in art
    assert "ABCDEFGHIJK" not in art
    assert "0123456 " in art
    assert "01234567" not in art
    assert "12:00:00.123" not in art


def test_ascii_art_layout_independent_of_input_length():
    short = generate_ascii_art("Local dev", "abc", "now")
    long = generate_ascii_art("X" * 30, "f" * 40, "Y" * 40)
    assert len(short.splitlines()) == len(long.splitlines())
    for label in ("Build Type:", "Commit Hash:", "Build Time:"):
        assert len(_line(short, label)) == len(_line(long, label))


@patch("anet.display.os.geteuid", return_value=0, create=True)
def test_check_privileges_root(geteuid):
    assert check_privileges() is True


@patch("anet.display.os.geteuid", return_value=1000, create=True)
def test_check_privileges_regular_user(geteuid):
    assert check_privileges() is False