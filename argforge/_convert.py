import inspect
import re
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import Path
from typing import Any, Literal, get_args, get_origin

from attrs import define, field

from argforge._locale import INVARIANT, Locale
from argforge.annotations import is_class_and_subclass, is_nonetype, is_union, resolve
from argforge.exceptions import ConversionError
from argforge.utils import default_name_transform

Converter = Callable[[str, Locale], Any]
"""Signature of a value converter: raw string and locale in, typed value out.

Converters signal failure by raising :exc:`ValueError`, :exc:`TypeError` or :exc:`ArithmeticError`.
"""

_CONVERSION_EXCEPTIONS = (ValueError, TypeError, ArithmeticError)


def _str(s: str, locale: Locale) -> str:
    return s


def _bool(s: str, locale: Locale) -> bool:
    lowered = s.lower()
    if lowered in locale.false_strings:
        return False
    elif lowered in locale.true_strings:
        return True
    else:
        # argforge is a little bit conservative when coercing strings into boolean.
        raise ValueError(f"expected one of {', '.join(locale.true_strings + locale.false_strings)}")


def _int(s: str, locale: Locale) -> int:
    s = s.strip().lower()
    sign = ""
    if s[:1] in ("+", "-"):
        sign, s = s[0], s[1:]
    if s.startswith("0x"):
        return int(sign + s, 16)
    elif s.startswith("0o"):
        return int(sign + s, 8)
    elif s.startswith("0b"):
        return int(sign + s, 2)

    s = locale.normalize_number(sign + s)
    if "." in s:
        # Casting to a float first allows for things like "30.0"
        # We handle this conditionally because very large integers can lose
        # meaningful precision when cast to a float.
        value = float(s)
        if not value.is_integer():
            raise ValueError(f"{s} is not an integer")
        return int(value)
    return int(s)


def _float(s: str, locale: Locale) -> float:
    return float(locale.normalize_number(s))


def _decimal(s: str, locale: Locale) -> Decimal:
    return Decimal(locale.normalize_number(s))


def _fraction(s: str, locale: Locale) -> Fraction:
    return Fraction(locale.normalize_number(s))


def _complex(s: str, locale: Locale) -> complex:
    return complex(s.replace(" ", ""))


def _bytes(s: str, locale: Locale) -> bytes:
    return bytes(s, encoding="utf8")


def _bytearray(s: str, locale: Locale) -> bytearray:
    return bytearray(_bytes(s, locale))


def _path(s: str, locale: Locale) -> Path:
    return Path(s)


def _date(s: str, locale: Locale) -> date:
    return date.fromisoformat(s)


def _time(s: str, locale: Locale) -> time:
    return time.fromisoformat(s)


def _datetime(s: str, locale: Locale) -> datetime:
    """Parse a datetime string.

    Returns
    -------
    datetime.datetime
    """
    formats = [
        # ISO 8601 formats (unambiguous internationally)
        "%Y-%m-%d",  # 1956-01-31
        "%Y-%m-%dT%H:%M:%S",  # 1956-01-31T10:00:00
        "%Y-%m-%d %H:%M:%S",  # 1956-01-31 10:00:00
        "%Y-%m-%dT%H:%M:%S%z",  # 1956-01-31T10:00:00+0000
        "%Y-%m-%dT%H:%M:%S.%f",  # 1956-01-31T10:00:00.123456
        "%Y-%m-%dT%H:%M:%S.%f%z",  # 1956-01-31T10:00:00.123456+0000
    ]

    for fmt in formats:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue

    raise ValueError(f"unrecognized datetime format: {s}")


def _timedelta(s: str, locale: Locale) -> timedelta:
    """Parse a duration string like ``"1h30m"``."""
    negative = False
    if s.startswith("-"):
        negative = True
        s = s[1:]

    matches = re.findall(r"((\d+\.\d+|\d+)([smhdw]))", s)

    if not matches or "".join(m[0] for m in matches) != s:
        raise ValueError(f"could not parse duration string: {s}")

    units = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}
    seconds = sum(float(value) * units[unit] for _, value, unit in matches)

    if negative:
        seconds = -seconds
    return timedelta(seconds=seconds)


DEFAULT_CONVERTERS: dict[type, Converter] = {
    str: _str,
    bool: _bool,
    int: _int,
    float: _float,
    complex: _complex,
    Decimal: _decimal,
    Fraction: _fraction,
    bytes: _bytes,
    bytearray: _bytearray,
    Path: _path,
    date: _date,
    time: _time,
    datetime: _datetime,
    timedelta: _timedelta,
}


def get_enum_member(type_: type[Enum], s: str, name_transform: Callable[[str], str] = default_name_transform):
    """Match a raw value to an enum's member.

    Applies ``name_transform`` to both the value and the member.
    """
    value_transformed = name_transform(s)
    for name, member in type_.__members__.items():
        if name_transform(name) == value_transformed:
            return member
    choices = ", ".join(name_transform(name) for name in type_.__members__)
    raise ValueError(f"expected one of {choices}")


@define(eq=False)
class ConverterRegistry:
    """Maps target value types to :data:`Converter` functions.

    A fresh registry starts out with argforge's built-in converters;
    register additional ones at setup time, before the first parse.
    """

    _converters: dict[Any, Converter] = field(factory=lambda: dict(DEFAULT_CONVERTERS), alias="converters")

    def register(self, type_: Any, converter: Converter | None = None):
        """Register ``converter`` for ``type_``.

        May be used as a decorator:

        .. code-block:: python

            registry = ConverterRegistry()


            @registry.register(Color)
            def parse_color(s: str, locale: Locale) -> Color: ...
        """
        if converter is None:

            def decorator(func: Converter) -> Converter:
                self._converters[type_] = func
                return func

            return decorator

        self._converters[type_] = converter
        return converter

    def lookup(self, type_: Any) -> Converter | None:
        """Registered converter for ``type_``, walking its MRO for classes."""
        with_exact = self._converters.get(type_)
        if with_exact is not None:
            return with_exact
        if inspect.isclass(type_):
            for base in type_.__mro__[1:]:
                if base is object:
                    break
                if (converter := self._converters.get(base)) is not None and not is_class_and_subclass(type_, Enum):
                    return converter
        return None

    def can_convert(self, type_: Any) -> bool:
        """Whether :meth:`convert` knows how to produce ``type_`` from a string."""
        type_ = resolve(type_)
        if type_ is Any or self.lookup(type_) is not None:
            return True
        if is_union(type_):
            return all(is_nonetype(t) or self.can_convert(t) for t in get_args(type_))
        if get_origin(type_) is Literal:
            return all(self.can_convert(type(x)) for x in get_args(type_))
        # Fall back to the class's own single-string constructor.
        return inspect.isclass(type_) and get_origin(type_) is None

    def convert(
        self,
        raw: str,
        type_: Any,
        locale: Locale = INVARIANT,
        *,
        converter: Converter | None = None,
        argument_name: str | None = None,
        name_transform: Callable[[str], str] = default_name_transform,
    ) -> Any:
        """Convert ``raw`` into ``type_``.

        Parameters
        ----------
        raw: str
            Raw string value.
        type_: Any
            Target type hint.
        locale: Locale
            Culture conventions for the conversion.
        converter: Converter | None
            Per-argument override; takes precedence over the type-based converter.
        argument_name: str | None
            Used only to populate a raised :exc:`ConversionError`.
        name_transform: Callable[[str], str]
            Applied to both the raw value and the member names when matching enum members.

        Raises
        ------
        ConversionError
            The value could not be converted. The converter's exception is chained as ``__cause__``.
        """
        try:
            if converter is not None:
                return converter(raw, locale)
            return self._convert(raw, resolve(type_), locale, name_transform)
        except ConversionError as e:
            if e.argument_name is None:
                e.argument_name = argument_name
            raise
        except _CONVERSION_EXCEPTIONS as e:
            raise ConversionError(argument_name=argument_name, raw_value=raw, target_type=type_) from e

    def _convert(self, raw: str, type_: Any, locale: Locale, name_transform: Callable[[str], str]) -> Any:
        if type_ is Any:
            return raw

        if (converter := self.lookup(type_)) is not None:
            return converter(raw, locale)

        if is_union(type_):
            for inner in get_args(type_):
                if is_nonetype(inner):
                    continue
                try:
                    return self._convert(raw, resolve(inner), locale, name_transform)
                except _CONVERSION_EXCEPTIONS:
                    continue
            raise ValueError("no member of the union accepted the value")

        if get_origin(type_) is Literal:
            for choice in get_args(type_):
                try:
                    if self._convert(raw, type(choice), locale, name_transform) == choice:
                        return choice
                except _CONVERSION_EXCEPTIONS:
                    continue
            raise ValueError(f"expected one of {', '.join(str(x) for x in get_args(type_))}")

        if is_class_and_subclass(type_, Enum):
            return get_enum_member(type_, raw, name_transform)

        if inspect.isclass(type_):
            return type_(raw)

        raise TypeError(f"no converter registered for {type_!r}")


DEFAULT_REGISTRY = ConverterRegistry()


def convert(
    type_: Any,
    raw: str,
    locale: Locale = INVARIANT,
    *,
    converter: Converter | None = None,
    registry: ConverterRegistry | None = None,
    name_transform: Callable[[str], str] = default_name_transform,
) -> Any:
    """Convert a single raw string into ``type_`` using the default converter registry.

    .. code-block:: python

        >>> convert(int, "0x10")
        16
    """
    registry = registry or DEFAULT_REGISTRY
    return registry.convert(raw, type_, locale, converter=converter, name_transform=name_transform)
