"""Explicit value-conversion culture.

A :class:`Locale` is threaded through every conversion call; nothing in argforge reads
or mutates the process-wide :mod:`locale` state while parsing.
"""

from attrs import field

from argforge.utils import frozen, to_tuple_converter


def _lower_tuple(value) -> tuple[str, ...]:
    return tuple(x.lower() for x in to_tuple_converter(value))


@frozen(kw_only=True)
class Locale:
    """Culture-specific conventions used when converting raw strings."""

    name: str = ""
    """Informational name, e.g. ``"de_DE"``."""

    decimal_point: str = "."

    thousands_sep: str = ""
    """Digit-group separator that is stripped from numbers; empty disables grouping."""

    true_strings: tuple[str, ...] = field(
        default=("yes", "y", "1", "true", "t", "on"),
        converter=_lower_tuple,
    )

    false_strings: tuple[str, ...] = field(
        default=("no", "n", "0", "false", "f", "off"),
        converter=_lower_tuple,
    )

    def normalize_number(self, s: str) -> str:
        """Rewrite a localized number into the form Python's numeric constructors accept."""
        s = s.strip()
        if self.thousands_sep:
            s = s.replace(self.thousands_sep, "")
        if self.decimal_point != ".":
            if "." in s:
                # A "." that isn't the locale's decimal point is ambiguous; refuse to guess.
                raise ValueError(f'unexpected "." in number (decimal point is "{self.decimal_point}")')
            s = s.replace(self.decimal_point, ".")
        return s

    @classmethod
    def from_conventions(cls, conventions: dict, name: str = "") -> "Locale":
        """Build a :class:`Locale` from a :func:`locale.localeconv`-style mapping."""
        return cls(
            name=name,
            decimal_point=conventions.get("decimal_point") or ".",
            thousands_sep=conventions.get("thousands_sep") or "",
        )

    @classmethod
    def current(cls) -> "Locale":
        """Snapshot of the process locale's numeric conventions at the time of the call."""
        import locale

        return cls.from_conventions(locale.localeconv(), name=locale.setlocale(locale.LC_NUMERIC))


INVARIANT = Locale(name="invariant")
