import pytest

from regatta_core import InvalidTimeFormat, auto_format_time, format_delta, format_time, parse_time
from regatta_core.errors import ErrorKind
from regatta_core.timing import parse_time_or_none


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1:15.00", 75_000),
        ("7:01.5", 421_500),
        ("75.10", 75_100),
        ("59.99", 59_990),
        ("1:05", 65_000),
        ("63", 63_000),
        (" 2:03.40 ", 123_400),
    ],
)
def test_parse_time_accepts_typed_formats(text: str, expected: int) -> None:
    assert parse_time(text) == expected


@pytest.mark.parametrize("text", ["2:75.10", "1:60", "", "   ", "abc", "1:2:3.4", "1.234", None])
def test_parse_time_rejects_malformed_text(text) -> None:
    with pytest.raises(InvalidTimeFormat) as excinfo:
        parse_time(text)
    assert excinfo.value.kind == ErrorKind.INVALID_FORMAT


def test_invalid_time_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_time("2:75.10")


def test_parse_time_or_none_treats_placeholder_as_missing() -> None:
    assert parse_time_or_none("-") is None
    assert parse_time_or_none("  ") is None
    assert parse_time_or_none(None) is None
    assert parse_time_or_none("1:00.00") == 60_000


def test_format_time() -> None:
    assert format_time(75_000) == "1:15.00"
    assert format_time(59_990) == "59.99"
    assert format_time(421_500) == "7:01.50"
    assert format_time(0) == "0.00"
    assert format_time(None) == "-"


@pytest.mark.parametrize("ms", [0, 990, 59_990, 60_000, 421_500, 3_599_990])
def test_formatted_time_parses_back(ms: int) -> None:
    assert parse_time(format_time(ms)) == ms


def test_format_delta() -> None:
    assert format_delta(1_000) == "1.00"
    assert format_delta(61_000) == "61.00"
    assert format_delta(125_430) == "125.43"
    assert format_delta(0) == ""
    assert format_delta(None) == ""


def test_auto_format_time() -> None:
    assert auto_format_time("22360") == "02:23.60"
    assert auto_format_time("02:01:20") == "02:01.20"
    assert auto_format_time("1:15.00") == "1:15.00"
    assert auto_format_time("") == ""
    assert auto_format_time(None) is None
