import io
from dataclasses import dataclass, field
from enum import Enum
from textwrap import dedent
from typing import Annotated

import pytest

from argforge import Argument, ParseOptions, Parser, Parameter, UsageOptions, build_spec_set, format_usage, usage_text
from argforge.help import format_argument_syntax

USAGE = UsageOptions(usage_prefix="Usage: prog")


@dataclass
class CopyArguments:
    """Copies files.

    Parameters
    ----------
    source: str
        File to read.
    name: str
        Target name.
    rest: list[str]
        Extra files.
    verbose: bool
        Print more.
    count: int
        Number of copies.
    """

    source: Annotated[str, Parameter(positional=True)]
    name: str
    rest: Annotated[list[str], Parameter(positional=True)] = field(default_factory=list)
    verbose: Annotated[bool, Parameter(alias="v")] = False
    count: int = 3


@dataclass
class Settings:
    opt: dict[str, int] = field(default_factory=dict)
    output: Annotated[str, Parameter(value_description="path")] = "out"


class Color(Enum):
    RED = 1
    DARK_BLUE = 2


def test_help_usage():
    expected = dedent(
        """\
        Copies files.

        Usage: prog [--source] <str> [[--rest] <str>...] --name <str> [--verbose]
           [--count <int>]

            --source <str>
                File to read.

            --rest <str>
                Extra files.

            --name <str>
                Target name.

            --verbose [<bool>]
                Print more. Alias: --v.

            --count <int>
                Number of copies. Default value: 3.

        """
    )
    assert usage_text(build_spec_set(CopyArguments), USAGE) == expected


def test_help_usage_parser_default_prefix():
    text = Parser(CopyArguments, name="prog").usage_text()
    assert text.splitlines()[2].startswith("Usage: prog [--source] <str>")


def test_help_required_named_argument_not_bracketed():
    synopsis = usage_text(build_spec_set(CopyArguments), USAGE).splitlines()[2]
    assert " --name <str> " in synopsis
    assert "[--name" not in synopsis


def test_help_no_description():
    text = usage_text(build_spec_set(CopyArguments), USAGE.evolve(include_description=False))
    assert text.startswith("Usage: prog")


def test_help_dictionary_and_value_description():
    expected = dedent(
        """\
        Usage: prog [--opt <str=int>...] [--output <path>]

            --opt <str=int>

            --output <path>
                Default value: out.

        """
    )
    assert usage_text(build_spec_set(Settings), USAGE) == expected


def test_help_name_value_separator():
    text = usage_text(build_spec_set(Settings), USAGE.evolve(use_whitespace_value_separator=False))
    assert text.splitlines()[0] == "Usage: prog [--opt=<str=int>...] [--output=<path>]"


def test_help_exclude_default_and_aliases():
    text = usage_text(build_spec_set(CopyArguments), USAGE.evolve(include_default=False, include_aliases=False))
    assert "Default value" not in text
    assert "Alias" not in text


def test_help_multiple_aliases():
    @dataclass
    class Aliased:
        force: Annotated[bool, Parameter(alias=("f", "yes"), help="Do it.")] = False

    assert "        Do it. Aliases: --f, --yes.\n" in usage_text(build_spec_set(Aliased), USAGE)


def test_help_default_formatting():
    @dataclass
    class Defaults:
        color: Color = Color.DARK_BLUE
        tags: tuple[str, ...] = ("a", "b")
        empty: tuple[str, ...] = ()

    text = usage_text(build_spec_set(Defaults), USAGE)
    assert "Default value: dark-blue." in text
    assert "Default value: a, b." in text
    assert text.count("Default value") == 2


def test_help_custom_prefix():
    options = ParseOptions(prefixes=("/",))
    text = usage_text(build_spec_set(Settings, options), USAGE, options)
    assert text.splitlines()[0] == "Usage: prog [/opt <str=int>...] [/output <path>]"


def test_help_narrow_width_disables_indent():
    text = usage_text(build_spec_set(CopyArguments), USAGE.evolve(max_width=25))
    lines = text.splitlines()
    assert all(len(line) <= 25 for line in lines)
    assert not any(line.startswith("        ") for line in lines)


def test_help_no_wrap():
    text = usage_text(build_spec_set(CopyArguments), USAGE.evolve(max_width=0))
    assert text.splitlines()[2].endswith("[--verbose] [--count <int>]")


def test_help_format_usage_sink():
    out = io.StringIO()
    format_usage(build_spec_set(CopyArguments), out, USAGE)
    assert out.getvalue() == usage_text(build_spec_set(CopyArguments), USAGE)


@pytest.mark.parametrize(
    "argument, expected",
    [
        (Argument(name="src", position=0, required=True), "[--src] <str>"),
        (Argument(name="src", position=0), "[[--src] <str>]"),
        (Argument(name="rest", position=0, hint=list[int]), "[[--rest] <int>...]"),
        (Argument(name="force", hint=bool), "[--force]"),
        (Argument(name="count", hint=int, required=True), "--count <int>"),
    ],
)
def test_help_argument_syntax(argument, expected):
    assert format_argument_syntax(argument, UsageOptions(), ParseOptions()) == expected


def test_help_print_usage(console):
    parser = Parser(CopyArguments, name="prog", console=console)
    with console.capture() as capture:
        parser.print_usage()
    assert capture.get() == usage_text(build_spec_set(CopyArguments), USAGE.evolve(max_width=console.width - 1))


def test_help_default_enum_name_transform():
    @dataclass
    class Run:
        color: Color = Color.DARK_BLUE

    options = ParseOptions(name_transform=str.lower)
    text = usage_text(build_spec_set(Run, options), USAGE, options)
    assert "Default value: dark_blue." in text
