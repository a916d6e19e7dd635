__version__ = "0.1.0"

__all__ = [
    "App",
    "Argument",
    "ArgforgePanel",
    "Arity",
    "Command",
    "CommandCollisionError",
    "ConversionError",
    "ConverterRegistry",
    "CreateInstanceError",
    "DispatchResult",
    "DuplicateArgumentError",
    "ErrorCategory",
    "HelpRequested",
    "InvalidDictionaryValueError",
    "LineWrappingWriter",
    "Locale",
    "MissingCommandError",
    "MissingNamedArgumentValueError",
    "MissingRequiredArgumentError",
    "Parameter",
    "ParseError",
    "ParseOptions",
    "Parser",
    "ShellCommand",
    "SpecSet",
    "SpecificationError",
    "Token",
    "TooManyArgumentsError",
    "UNSET",
    "UnknownArgumentError",
    "UnknownCommandError",
    "UsageOptions",
    "build_spec_set",
    "convert",
    "default_name_transform",
    "format_usage",
    "usage_text",
]

from argforge._convert import ConverterRegistry, convert
from argforge._locale import Locale
from argforge.argument import Argument, Arity
from argforge.bind import HelpRequested
from argforge.command import App, Command, DispatchResult, ShellCommand
from argforge.core import Parser
from argforge.exceptions import (
    CommandCollisionError,
    ConversionError,
    CreateInstanceError,
    DuplicateArgumentError,
    ErrorCategory,
    InvalidDictionaryValueError,
    MissingCommandError,
    MissingNamedArgumentValueError,
    MissingRequiredArgumentError,
    ParseError,
    SpecificationError,
    TooManyArgumentsError,
    UnknownArgumentError,
    UnknownCommandError,
)
from argforge.help import format_usage, usage_text
from argforge.options import ParseOptions, UsageOptions
from argforge.panel import ArgforgePanel
from argforge.parameter import Parameter
from argforge.spec_set import SpecSet, build_spec_set
from argforge.token import Token
from argforge.utils import UNSET, default_name_transform
from argforge.wrapping import LineWrappingWriter
