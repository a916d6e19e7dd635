from dataclasses import dataclass, field
from textwrap import dedent
from typing import Annotated

import pytest

from argforge import (
    App,
    CommandCollisionError,
    ConversionError,
    DispatchResult,
    HelpRequested,
    MissingCommandError,
    Parameter,
    ParseOptions,
    ShellCommand,
    UnknownArgumentError,
    UnknownCommandError,
)


@dataclass
class Build(ShellCommand):
    """Builds the project.

    Only changed sources are recompiled.

    Parameters
    ----------
    target: str
        What to build.
    jobs: int
        Parallel jobs.
    """

    target: Annotated[str, Parameter(positional=True)] = "all"
    jobs: int = 1

    def run(self):
        self.exit_code = 0 if self.jobs > 0 else 3


@dataclass
class RunTests(ShellCommand):
    """Runs the tests."""

    names: Annotated[list[str], Parameter(positional=True)] = field(default_factory=list)
    fail_fast: bool = False

    def run(self):
        if "broken" in self.names:
            self.exit_code = 1


def greet(name: Annotated[str, Parameter(positional=True)], times: int = 1) -> int:
    """Greets someone."""
    return times


@pytest.fixture
def commands(app):
    app.command(Build)
    app.command(name="test")(RunTests)
    return app


def test_command_registration(commands):
    assert commands.command_names == ("build", "test")
    assert len(commands) == 2
    assert [x.name for x in commands] == ["build", "test"]
    assert "BUILD" in commands
    assert "deploy" not in commands
    assert commands["build"].holder is Build
    with pytest.raises(KeyError):
        commands["deploy"]


def test_command_help_text(commands):
    assert commands["build"].help == "Builds the project."
    assert commands["test"].help == "Runs the tests."

    commands.command(greet, help="Says hello.")
    assert commands["greet"].help == "Says hello."


def test_command_alias(commands):
    commands.command(greet, alias=("hi", "hello"))
    assert commands["hi"] is commands["greet"]
    assert commands.command_names == ("build", "test", "greet")


def test_command_collision(commands):
    with pytest.raises(CommandCollisionError):
        commands.command(greet, name="build")
    with pytest.raises(CommandCollisionError):
        commands.command(greet, name="BUILD")
    with pytest.raises(CommandCollisionError):
        commands.command(greet, alias="Test")
    assert commands.command_names == ("build", "test")


def test_command_collision_case_sensitive(console):
    app = App("prog", options=ParseOptions(case_sensitive=True), console=console)
    app.command(Build)
    app.command(greet, name="Build")
    assert app.command_names == ("build", "Build")
    assert app["Build"].holder is greet


def test_command_dispatch(commands):
    result = commands.dispatch(["build", "core", "--jobs", "4"])
    assert isinstance(result, DispatchResult)
    assert result.command is commands["build"]
    assert result.value == Build(target="core", jobs=4)


def test_command_dispatch_case_insensitive(commands):
    result = commands.dispatch(["BUILD", "--JOBS=2"])
    assert result.value == Build(jobs=2)


def test_command_dispatch_string(commands):
    result = commands.dispatch("test unit integration --fail-fast")
    assert result.value == RunTests(names=["unit", "integration"], fail_fast=True)


def test_command_dispatch_missing_command(commands):
    with pytest.raises(MissingCommandError) as e:
        commands.dispatch([])
    assert str(e.value) == "No command was specified. Available commands: build, test."


def test_command_dispatch_unknown_command(commands):
    with pytest.raises(UnknownCommandError) as e:
        commands.dispatch(["bild"])
    assert e.value.command_name == "bild"
    assert str(e.value) == 'Unknown command "bild". Did you mean "build"? Available commands: build, test.'


def test_command_dispatch_error_tagged_with_command(commands):
    with pytest.raises(ConversionError) as e:
        commands.dispatch(["build", "--jobs", "many"])
    assert e.value.command == "build"
    assert e.value.root_input_tokens == ["build", "--jobs", "many"]
    assert str(e.value).startswith('Command "build": Invalid value for "jobs": unable to convert "many" into int.')


@pytest.mark.parametrize("flag", ["--help", "-h", "-?", "--HELP"])
def test_command_dispatch_global_help(commands, flag):
    assert commands.dispatch([flag]) == HelpRequested()


def test_command_dispatch_command_help(commands):
    result = commands.dispatch(["build", "--help"])
    assert isinstance(result, HelpRequested)
    assert result.command == "build"
    assert result.spec_set is commands["build"].spec_set


def test_command_run_exit_codes(commands):
    assert commands.run(["build"]) == 0
    assert commands.run(["build", "--jobs", "0"]) == 3
    assert commands.run(["test", "unit"]) == 0
    assert commands.run(["test", "broken"]) == 1


def test_command_run_function(commands):
    commands.command(greet)
    assert commands.run(["greet", "bob", "--times", "4"]) == 4
    assert commands.run(["greet", "bob"]) == 1


def test_command_run_non_integer_result(commands):
    @commands.command
    def noop(flag: bool = False) -> bool:
        return True

    assert commands.run(["noop", "--flag"]) == 0


def test_command_list(commands, console):
    expected = dedent(
        """\
        Usage: prog <command> [arguments]

        The following commands are available:

            build
                Builds the project.

            test
                Runs the tests.

        """
    )
    assert commands.usage_text() == expected

    with console.capture() as capture:
        assert commands.run(["--help"]) == 0
    assert capture.get() == expected


def test_command_usage(commands, console):
    expected = dedent(
        """\
        Builds the project.

        Only changed sources are recompiled.

        Usage: prog build [[--target] <str>] [--jobs <int>]

            --target <str>
                What to build. Default value: all.

            --jobs <int>
                Parallel jobs. Default value: 1.

        """
    )
    assert commands.usage_text("build") == expected

    with console.capture() as capture:
        assert commands.run(["build", "-?"]) == 0
    assert capture.get() == expected


def test_command_run_error(commands, console):
    with console.capture() as capture:
        assert commands.run(["build", "--jbos", "2"]) == 1
    actual = capture.get()
    assert 'Command "build": Unknown argument name "jbos".' in actual
    assert "Usage:" not in actual


def test_command_run_help_on_error(commands, console):
    with console.capture() as capture:
        assert commands.run(["build", "--jbos", "2"], help_on_error=True) == 1
    actual = capture.get()
    assert actual.startswith("Builds the project.")
    assert "Usage: prog build" in actual
    assert 'Unknown argument name "jbos".' in actual


def test_command_run_unknown_command_lists_commands(commands, console):
    with console.capture() as capture:
        assert commands.run(["deploy"]) == 1
    actual = capture.get()
    assert actual.startswith("Usage: prog <command> [arguments]\n\nThe following commands are available:\n")
    assert "    build\n" in actual
    assert "    test\n" in actual
    assert 'Unknown command "deploy".' in actual


def test_command_run_missing_command_lists_commands(commands, console):
    with console.capture() as capture:
        assert commands.run([], print_error=False) == 1
    assert capture.get() == commands.usage_text()


def test_command_run_exit_on_error(commands, console):
    with console.capture(), pytest.raises(SystemExit) as e:
        commands.run(["deploy"], exit_on_error=True)
    assert e.value.code == 1


def test_command_run_no_print(commands, console):
    with console.capture() as capture:
        assert commands.run(["build", "--jbos"], print_error=False) == 1
    assert capture.get() == ""


def test_command_shared_options(console):
    app = App("prog", options=ParseOptions(prefixes=("/",)), console=console)
    app.command(Build)
    assert app.dispatch(["build", "/jobs", "5"]).value == Build(jobs=5)
    with pytest.raises(UnknownArgumentError):
        app.dispatch(["build", "/bogus", "5"])
