from attrs import field

from argforge.utils import frozen


@frozen(kw_only=True)
class Token:
    """Tracks how a user supplied a value to the application."""

    keyword: str | None = None
    """The argument name the value was supplied under (e.g. ``"--tag"``); :obj:`None` for positional values."""

    value: str = ""
    """Raw string value, before conversion."""

    index: int = field(default=0, kw_only=True)
    """Position of the originating element in the input token sequence."""
