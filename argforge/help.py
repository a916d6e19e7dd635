import io
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from argforge.argument import Argument
from argforge.options import ParseOptions, UsageOptions
from argforge.spec_set import SpecSet
from argforge.utils import UNSET
from argforge.wrapping import LineWrappingWriter, TextSink

if TYPE_CHECKING:
    from argforge.command import Command

# Don't indent if the line width is less than this.
MIN_WIDTH_FOR_INDENT = 30

_ARGUMENT_NAME_INDENT = "    "


def _indent_for(writer: LineWrappingWriter, indent: int) -> int:
    if not writer.max_width or writer.max_width < MIN_WIDTH_FOR_INDENT:
        return 0
    return indent


def _prefix(parse_options: ParseOptions) -> str:
    return parse_options.prefixes[0]


def format_argument_syntax(argument: Argument, options: UsageOptions, parse_options: ParseOptions) -> str:
    """Synopsis fragment of one argument, e.g. ``[--tag <str>...]`` or ``[--src] <str>``."""
    text = _prefix(parse_options) + argument.name
    if argument.is_positional:
        # The name of a positional argument is itself optional.
        text = options.optional_format.format(text)

    if not argument.is_switch:
        value = options.value_description_format.format(argument.value_description)
        if parse_options.allow_whitespace_value_separator and options.use_whitespace_value_separator:
            separator = " "
        else:
            separator = parse_options.name_value_separators[0]
        text += separator + value

    if argument.is_multi_value:
        text += options.array_suffix

    if argument.required:
        return text
    return options.optional_format.format(text)


def _format_default_value(value: Any, parse_options: ParseOptions) -> str | None:
    if value is None or value is UNSET:
        return None
    if isinstance(value, Enum):
        return parse_options.name_transform(value.name)
    if isinstance(value, Mapping):
        if not value:
            return None
        return ", ".join(f"{k}={v}" for k, v in value.items())
    if isinstance(value, list | tuple | set | frozenset):
        if not value:
            return None
        return ", ".join(str(x) for x in value)
    return str(value)


def format_argument_description(argument: Argument, options: UsageOptions, parse_options: ParseOptions) -> str:
    """Description text of one argument, with its default value and aliases appended."""
    parts = []
    if argument.help:
        parts.append(argument.help)

    if options.include_default and not (argument.is_switch and argument.default is False):
        default = _format_default_value(argument.default, parse_options)
        if default is not None:
            parts.append(options.default_format.format(default))

    if options.include_aliases and argument.aliases:
        aliases = ", ".join(_prefix(parse_options) + alias for alias in argument.aliases)
        alias_format = options.alias_format if len(argument.aliases) == 1 else options.aliases_format
        parts.append(alias_format.format(aliases))

    return " ".join(parts)


def _write_synopsis(writer: LineWrappingWriter, spec_set: SpecSet, options: UsageOptions, parse_options: ParseOptions):
    writer.reset_indent()
    writer.indent = _indent_for(writer, options.indent)
    writer.write(options.usage_prefix)
    for argument in spec_set.usage_order:
        writer.write(" ")
        writer.write(format_argument_syntax(argument, options, parse_options))
    writer.write_line()
    writer.write_line()


def _write_argument_descriptions(
    writer: LineWrappingWriter,
    spec_set: SpecSet,
    options: UsageOptions,
    parse_options: ParseOptions,
):
    writer.reset_indent()
    writer.indent = _indent_for(writer, options.description_indent)
    for argument in spec_set.usage_order:
        writer.reset_indent()
        value = options.value_description_format.format(argument.value_description)
        if argument.is_switch:
            value = options.optional_format.format(value)
        writer.write_line(f"{_ARGUMENT_NAME_INDENT}{_prefix(parse_options)}{argument.name} {value}")
        if description := format_argument_description(argument, options, parse_options):
            writer.write_line(description)
        writer.write_line()


def format_usage(
    spec_set: SpecSet,
    sink: TextSink,
    options: UsageOptions | None = None,
    parse_options: ParseOptions | None = None,
):
    """Write the usage text of ``spec_set`` to ``sink``.

    The text consists of the holder's description, a synopsis line, and one description
    block per argument, word-wrapped to :attr:`UsageOptions.max_width`.

    Parameters
    ----------
    spec_set: SpecSet
        Arguments to describe.
    sink: TextSink
        Destination. If it already is a :class:`LineWrappingWriter`, it is written to directly.
    options: UsageOptions | None
        Formatting configuration.
    parse_options: ParseOptions | None
        Configuration of the parser the usage is for; provides the prefix and value separator.
    """
    options = options or UsageOptions()
    parse_options = parse_options or ParseOptions()

    if isinstance(sink, LineWrappingWriter):
        _format_usage(sink, spec_set, options, parse_options)
        return

    with LineWrappingWriter(sink, options.max_width) as writer:
        _format_usage(writer, spec_set, options, parse_options)


def _format_usage(writer: LineWrappingWriter, spec_set: SpecSet, options: UsageOptions, parse_options: ParseOptions):
    if options.include_description and spec_set.description:
        writer.write_line(spec_set.description)
        writer.write_line()
    _write_synopsis(writer, spec_set, options, parse_options)
    _write_argument_descriptions(writer, spec_set, options, parse_options)


def usage_text(
    spec_set: SpecSet,
    options: UsageOptions | None = None,
    parse_options: ParseOptions | None = None,
) -> str:
    """Rendered usage text of ``spec_set``."""
    out = io.StringIO()
    format_usage(spec_set, out, options, parse_options)
    return out.getvalue()


def format_command_list(commands: Iterable["Command"], sink: TextSink, options: UsageOptions | None = None):
    """Write the usage of a shell command application: a synopsis and every command with its description."""
    options = options or UsageOptions()
    with LineWrappingWriter(sink, options.max_width) as writer:
        writer.write_line(options.command_usage_format.format(options.usage_prefix))
        writer.write_line()
        writer.write_line(options.available_commands_header)
        writer.write_line()
        writer.indent = _indent_for(writer, options.command_description_indent)
        for command in commands:
            writer.reset_indent()
            writer.write_line(f"{_ARGUMENT_NAME_INDENT}{command.name}")
            if command.help:
                writer.write_line(command.help)
            writer.write_line()
