from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum, auto
from pathlib import Path
from typing import Any, Literal

import pytest

from argforge import ConversionError, ConverterRegistry, Locale, convert
from argforge._locale import INVARIANT


class Color(Enum):
    RED = auto()
    DARK_BLUE = auto()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("42", 42),
        ("-7", -7),
        ("0x10", 16),
        ("-0x10", -16),
        ("0o17", 15),
        ("0b101", 5),
        ("30.0", 30),
    ],
)
def test_convert_int(raw, expected):
    assert convert(int, raw) == expected


@pytest.mark.parametrize("raw", ["1.5", "abc", ""])
def test_convert_int_invalid(raw):
    with pytest.raises(ConversionError) as e:
        convert(int, raw)
    assert e.value.raw_value == raw
    assert e.value.target_type is int


@pytest.mark.parametrize("raw", ["yes", "Y", "1", "true", "ON"])
def test_convert_bool_true(raw):
    assert convert(bool, raw) is True


@pytest.mark.parametrize("raw", ["no", "N", "0", "false", "off"])
def test_convert_bool_false(raw):
    assert convert(bool, raw) is False


def test_convert_bool_invalid():
    with pytest.raises(ConversionError) as e:
        convert(bool, "maybe")
    assert "expected one of" in str(e.value)


def test_convert_bool_locale_words():
    dutch = Locale(name="nl_NL", true_strings=("ja",), false_strings=("nee",))
    assert convert(bool, "JA", dutch) is True
    assert convert(bool, "nee", dutch) is False
    with pytest.raises(ConversionError):
        convert(bool, "yes", dutch)


def test_convert_float_locale():
    german = Locale(name="de_DE", decimal_point=",", thousands_sep=".")
    assert convert(float, "3,25", german) == 3.25
    assert convert(float, "1.000,5", german) == 1000.5
    assert convert(int, "1.000", german) == 1000
    assert convert(Decimal, "0,1", german) == Decimal("0.1")


def test_convert_float_locale_ambiguous_point():
    french = Locale(name="fr_FR", decimal_point=",", thousands_sep=" ")
    with pytest.raises(ConversionError):
        convert(float, "3.25", french)


def test_convert_locale_from_conventions():
    locale = Locale.from_conventions({"decimal_point": ",", "thousands_sep": ""}, name="xx")
    assert locale.decimal_point == ","
    assert locale.thousands_sep == ""
    assert INVARIANT.decimal_point == "."


def test_convert_misc_types():
    assert convert(str, "hello") == "hello"
    assert convert(Path, "a/b") == Path("a/b")
    assert convert(bytes, "abc") == b"abc"
    assert convert(complex, "1+2j") == 1 + 2j
    assert convert(date, "1956-01-31") == date(1956, 1, 31)
    assert convert(datetime, "1956-01-31T10:00:00") == datetime(1956, 1, 31, 10)
    assert convert(Any, "raw") == "raw"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("30s", timedelta(seconds=30)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("2d", timedelta(days=2)),
        ("-1w", timedelta(weeks=-1)),
    ],
)
def test_convert_timedelta(raw, expected):
    assert convert(timedelta, raw) == expected


def test_convert_enum():
    assert convert(Color, "red") is Color.RED
    assert convert(Color, "dark-blue") is Color.DARK_BLUE
    assert convert(Color, "DARK_BLUE") is Color.DARK_BLUE
    with pytest.raises(ConversionError) as e:
        convert(Color, "green")
    assert "red, dark-blue" in str(e.value)


def test_convert_literal():
    assert convert(Literal["fast", "slow"], "slow") == "slow"
    assert convert(Literal[1, 2], "2") == 2
    with pytest.raises(ConversionError):
        convert(Literal["fast", "slow"], "medium")


def test_convert_union():
    assert convert(int | str, "5") == 5
    assert convert(int | str, "five") == "five"
    assert convert(int | None, "5") == 5


def test_convert_class_fallback():
    class Name:
        def __init__(self, value: str):
            self.value = value

    assert convert(Name, "x").value == "x"


def test_convert_override_converter():
    def parse_pair(s, locale):
        left, right = s.split(",")
        return int(left), int(right)

    assert convert(tuple, "1,2", converter=parse_pair) == (1, 2)
    with pytest.raises(ConversionError) as e:
        convert(tuple, "1", converter=parse_pair)
    assert isinstance(e.value.cause, ValueError)


def test_convert_registry_register():
    class Celsius(float):
        pass

    registry = ConverterRegistry()

    @registry.register(Celsius)
    def parse_celsius(s, locale):
        return Celsius(float(s.removesuffix("C")))

    assert registry.convert("21C", Celsius) == 21.0
    assert registry.lookup(Celsius) is parse_celsius
    # The default registry is unaffected.
    assert convert(Celsius, "21") == 21.0
    with pytest.raises(ConversionError):
        convert(Celsius, "21C")


def test_convert_registry_subclass_lookup():
    class Port(int):
        pass

    registry = ConverterRegistry()
    assert registry.lookup(Port) is registry.lookup(int)
    assert registry.convert("0x50", Port) == 80


def test_convert_registry_can_convert():
    registry = ConverterRegistry()
    assert registry.can_convert(int)
    assert registry.can_convert(int | None)
    assert registry.can_convert(Literal["a", "b"])
    assert registry.can_convert(Color)
    assert not registry.can_convert(list[int])


def test_convert_error_argument_name():
    registry = ConverterRegistry()
    with pytest.raises(ConversionError) as e:
        registry.convert("x", int, argument_name="count")
    assert str(e.value).startswith('Invalid value for "count": unable to convert "x" into int.')


def test_convert_enum_name_transform():
    assert convert(Color, "dark_blue", name_transform=str.lower) is Color.DARK_BLUE
    with pytest.raises(ConversionError):
        convert(Color, "dark-blue", name_transform=str.lower)
