from collections.abc import Callable
from typing import Literal

from attrs import evolve, field, validators

from argforge._convert import DEFAULT_REGISTRY, ConverterRegistry
from argforge._locale import INVARIANT, Locale
from argforge.utils import default_name_transform, frozen, to_tuple_converter


def _prefixes_validator(instance, attribute, values):
    if not values:
        raise ValueError(f"{attribute.alias} must contain at least one prefix.")
    for value in values:
        if not value:
            raise ValueError(f"{attribute.alias} must not contain an empty prefix.")


def _separators_validator(instance, attribute, values):
    for value in values:
        if not value:
            raise ValueError(f"{attribute.alias} must not contain an empty separator.")


@frozen(kw_only=True)
class ParseOptions:
    """Configuration of how tokens are matched against an argument specification set.

    Options that affect the *shape* of the specification set (``case_sensitive``,
    ``name_transform``, ``converters``) are part of the specification cache key;
    the remaining options only influence individual parses.
    """

    prefixes: tuple[str, ...] = field(
        default=("--", "-"),
        converter=to_tuple_converter,
        validator=_prefixes_validator,
    )
    """Argument name prefixes, tried in order. The first one is used when rendering usage."""

    case_sensitive: bool = False
    """Match argument names and aliases case-sensitively."""

    locale: Locale = INVARIANT
    """Culture used by every value conversion."""

    duplicate_arguments: Literal["error", "last"] = field(
        default="error",
        validator=validators.in_(("error", "last")),
    )
    """Policy for a single-value argument supplied more than once: raise, or keep the last value."""

    multi_value_separator: str | None = None
    """Split each value of a multi-value argument on this separator; per-argument separators take precedence."""

    name_value_separators: tuple[str, ...] = field(
        default=("=",),
        converter=to_tuple_converter,
        validator=_separators_validator,
    )
    """Separators allowed between a name and an inline value (``--name=value``)."""

    allow_whitespace_value_separator: bool = True
    """Allow the value of a named argument to be the following token (``--name value``)."""

    end_of_options_delimiter: str = "--"
    """All tokens after this delimiter are positional values. Empty string disables."""

    help_flags: tuple[str, ...] = field(default=("help", "h", "?"), converter=to_tuple_converter)
    """Reserved names that request usage help. A declared argument of the same name takes precedence."""

    name_transform: Callable[[str], str] = default_name_transform
    """Derives an argument name from a holder's field name."""

    converters: ConverterRegistry = field(default=DEFAULT_REGISTRY, hash=False)

    def normalize_name(self, name: str) -> str:
        """Key under which ``name`` is looked up, honoring :attr:`case_sensitive`."""
        return name if self.case_sensitive else name.casefold()

    def evolve(self, **kwargs) -> "ParseOptions":
        return evolve(self, **kwargs)


def _width_converter(value):
    if value is None or value < 1:
        return 0
    return value


@frozen(kw_only=True)
class UsageOptions:
    """Configuration of rendered usage text."""

    usage_prefix: str = "Usage:"
    """Leading text of the synopsis line; usually ``"Usage: <program name>"``."""

    max_width: int = field(default=79, converter=_width_converter)
    """Maximum line width. ``0`` (or :obj:`None`) disables wrapping."""

    indent: int = 3
    """Indentation of wrapped synopsis lines."""

    description_indent: int = 8
    """Indentation of argument description lines."""

    include_description: bool = True
    """Write the holder's description above the synopsis."""

    include_aliases: bool = True
    """Append aliases to each argument's description."""

    include_default: bool = True
    """Append the default value to each argument's description."""

    use_whitespace_value_separator: bool = True
    """Show ``--name <value>`` rather than ``--name=<value>`` in the synopsis."""

    value_description_format: str = "<{}>"
    optional_format: str = "[{}]"
    array_suffix: str = "..."
    alias_format: str = "Alias: {}."
    aliases_format: str = "Aliases: {}."
    default_format: str = "Default value: {}."

    command_usage_format: str = "{} <command> [arguments]"
    """Synopsis of the command list; the placeholder receives :attr:`usage_prefix`."""

    available_commands_header: str = "The following commands are available:"

    command_description_indent: int = 8

    def evolve(self, **kwargs) -> "UsageOptions":
        return evolve(self, **kwargs)
