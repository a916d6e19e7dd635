from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from attrs import define, field

from argforge.annotations import get_hint_name
from argforge.token import Token

if TYPE_CHECKING:
    from rich.console import Console


__all__ = [
    "CommandCollisionError",
    "ConversionError",
    "CreateInstanceError",
    "DuplicateArgumentError",
    "ErrorCategory",
    "InvalidDictionaryValueError",
    "MissingCommandError",
    "MissingNamedArgumentValueError",
    "MissingRequiredArgumentError",
    "ParseError",
    "SpecificationError",
    "TooManyArgumentsError",
    "UnknownArgumentError",
    "UnknownCommandError",
]


class SpecificationError(Exception):
    """The argument-holder definition is inconsistent (duplicate names, positional gaps, mistyped defaults, ...)."""

    # This doesn't derive from ParseError since this is a developer error
    # rather than a runtime error.


class CommandCollisionError(Exception):
    """A command with the same name or alias has already been registered to the app."""


class ErrorCategory(Enum):
    """Kind of user-input failure a :class:`ParseError` represents."""

    UNSPECIFIED = "unspecified"
    CONVERSION = "conversion"
    UNKNOWN_ARGUMENT = "unknown-argument"
    UNKNOWN_COMMAND = "unknown-command"
    MISSING_COMMAND = "missing-command"
    MISSING_NAMED_ARGUMENT_VALUE = "missing-named-argument-value"
    DUPLICATE_ARGUMENT = "duplicate-argument"
    TOO_MANY_ARGUMENTS = "too-many-arguments"
    MISSING_REQUIRED_ARGUMENT = "missing-required-argument"
    INVALID_DICTIONARY_VALUE = "invalid-dictionary-value"
    CREATE_INSTANCE = "create-instance"


def _did_you_mean(word: str, candidates: Sequence[str]) -> str:
    import difflib

    close_matches = difflib.get_close_matches(word, candidates, n=1, cutoff=0.6)
    if close_matches:
        return f' Did you mean "{close_matches[0]}"?'
    return ""


@define  # (kw_only=True)
class ParseError(Exception):
    """Root exception for user-input errors.

    As ParseErrors bubble up the argforge call-stack, more information is added to it.
    """

    msg: str | None = None
    """
    If set, override automatic message generation.
    """

    verbose: bool = False
    """
    More verbose error messages; aimed towards developers debugging their command line interface.
    """

    root_input_tokens: list[str] | None = None
    """
    The tokens that were initially fed into the parser.
    """

    command: str | None = None
    """
    Name of the shell command whose arguments were being parsed, if any.
    """

    console: "Console | None" = field(default=None, kw_only=True)
    """:class:`~rich.console.Console` to display runtime errors."""

    error_category: ClassVar[ErrorCategory] = ErrorCategory.UNSPECIFIED

    def _prefix(self) -> str:
        strings = []
        if self.verbose:
            strings.append(type(self).__name__)
            if self.root_input_tokens is not None:
                strings.append(f"Root Input Tokens: {self.root_input_tokens}")
        prefix = "\n".join(strings) + "\n" if strings else ""
        if self.command:
            prefix += f'Command "{self.command}": '
        return prefix

    def _message(self) -> str:
        return ""

    def __str__(self):
        if self.msg is not None:
            return self._prefix() + self.msg
        return self._prefix() + self._message()


@define(kw_only=True)
class UnknownArgumentError(ParseError):
    """A named argument that no specification declares was supplied."""

    argument_name: str
    """Name as supplied, without its prefix."""

    candidates: tuple[str, ...] = ()
    """Every name and alias that would have been accepted."""

    error_category: ClassVar[ErrorCategory] = ErrorCategory.UNKNOWN_ARGUMENT

    def _message(self) -> str:
        return f'Unknown argument name "{self.argument_name}".' + _did_you_mean(self.argument_name, self.candidates)


@define(kw_only=True)
class UnknownCommandError(ParseError):
    """The first token did not name a registered shell command."""

    command_name: str
    """The unrecognized command name."""

    available_commands: tuple[str, ...] = ()

    error_category: ClassVar[ErrorCategory] = ErrorCategory.UNKNOWN_COMMAND

    def _message(self) -> str:
        response = f'Unknown command "{self.command_name}".'
        response += _did_you_mean(self.command_name, self.available_commands)
        if self.available_commands:
            response += f" Available commands: {', '.join(self.available_commands)}."
        return response


@define(kw_only=True)
class MissingCommandError(ParseError):
    """No shell command name was supplied."""

    available_commands: tuple[str, ...] = ()

    error_category: ClassVar[ErrorCategory] = ErrorCategory.MISSING_COMMAND

    def _message(self) -> str:
        response = "No command was specified."
        if self.available_commands:
            response += f" Available commands: {', '.join(self.available_commands)}."
        return response


@define(kw_only=True)
class DuplicateArgumentError(ParseError):
    """A single-value argument was supplied more than once."""

    argument_name: str
    token: Token | None = None
    """The repeated token."""

    error_category: ClassVar[ErrorCategory] = ErrorCategory.DUPLICATE_ARGUMENT

    def _message(self) -> str:
        return f'The argument "{self.argument_name}" was supplied more than once.'


@define(kw_only=True)
class TooManyArgumentsError(ParseError):
    """More positional values were supplied than there are positional arguments."""

    token: Token

    error_category: ClassVar[ErrorCategory] = ErrorCategory.TOO_MANY_ARGUMENTS

    def _message(self) -> str:
        return f'Too many arguments were supplied; unexpected value "{self.token.value}".'


@define(kw_only=True)
class MissingNamedArgumentValueError(ParseError):
    """A named argument that requires a value was the last token, or was followed by another name."""

    argument_name: str

    error_category: ClassVar[ErrorCategory] = ErrorCategory.MISSING_NAMED_ARGUMENT_VALUE

    def _message(self) -> str:
        return f'No value was supplied for the argument "{self.argument_name}".'


@define(kw_only=True)
class MissingRequiredArgumentError(ParseError):
    """One or more required arguments were not supplied.

    Unlike the other parse errors, every missing argument is collected before raising.
    """

    argument_names: tuple[str, ...]

    error_category: ClassVar[ErrorCategory] = ErrorCategory.MISSING_REQUIRED_ARGUMENT

    @property
    def argument_name(self) -> str:
        """The first missing argument."""
        return self.argument_names[0]

    def _message(self) -> str:
        if len(self.argument_names) == 1:
            return f'The required argument "{self.argument_names[0]}" was not supplied.'
        names = ", ".join(f'"{name}"' for name in self.argument_names)
        return f"The required arguments {names} were not supplied."


@define(kw_only=True)
class InvalidDictionaryValueError(ParseError):
    """A dictionary argument's value is not a ``key=value`` pair, or repeats a key."""

    argument_name: str
    raw_value: str
    reason: str = ""

    error_category: ClassVar[ErrorCategory] = ErrorCategory.INVALID_DICTIONARY_VALUE

    def _message(self) -> str:
        message = f'The value "{self.raw_value}" is not valid for the dictionary argument "{self.argument_name}".'
        if self.reason:
            message += f" {self.reason}"
        return message


@define(kw_only=True)
class ConversionError(ParseError):
    """A raw string value could not be converted into the argument's type."""

    argument_name: str | None = None
    raw_value: str = ""
    target_type: Any = None
    token: Token | None = None

    error_category: ClassVar[ErrorCategory] = ErrorCategory.CONVERSION

    @property
    def cause(self) -> BaseException | None:
        """The exception raised by the converter."""
        return self.__cause__

    def _message(self) -> str:
        target_type_name = get_hint_name(self.target_type) if self.target_type is not None else "the expected type"
        if self.argument_name is None:
            message = f'Unable to convert "{self.raw_value}" into {target_type_name}.'
        else:
            message = (
                f'Invalid value for "{self.argument_name}": unable to convert "{self.raw_value}" into {target_type_name}.'
            )
        if self.cause is not None and str(self.cause):
            message += f" {self.cause}"
        return message


@define(kw_only=True)
class CreateInstanceError(ParseError):
    """The argument-holder rejected the parsed values."""

    exception_message: str = ""
    """Message of the exception raised by the holder's constructor."""

    error_category: ClassVar[ErrorCategory] = ErrorCategory.CREATE_INSTANCE

    def _message(self) -> str:
        return f"Invalid arguments: {self.exception_message}" if self.exception_message else "Invalid arguments."
