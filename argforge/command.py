import io
import sys
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Optional, TypeVar

from attrs import define, field

from argforge._console import create_error_console_from_console, warn_no_tokens
from argforge.bind import HelpRequested, is_help_flag, normalize_tokens, parse_tokens
from argforge.core import default_program_name, render_to_console
from argforge.exceptions import CommandCollisionError, MissingCommandError, ParseError, UnknownCommandError
from argforge.help import format_command_list, format_usage
from argforge.options import ParseOptions, UsageOptions
from argforge.panel import ArgforgePanel
from argforge.spec_set import SpecSet, build_spec_set
from argforge.utils import frozen, is_option_like, to_tuple_converter
from argforge.wrapping import TextSink

if TYPE_CHECKING:
    from rich.console import Console

T = TypeVar("T", bound=Callable[..., Any])


class ShellCommand:
    """Base class for shell commands dispatched by an :class:`App`.

    Subclasses are argument-holders (typically dataclasses) that implement :meth:`run`.

    .. code-block:: python

        app = App()


        @app.command
        @dataclass
        class Read(ShellCommand):
            \"\"\"Reads a file.\"\"\"

            path: Annotated[Path, Parameter(positional=True)]

            def run(self):
                print(self.path.read_text())


        sys.exit(app.run())
    """

    exit_code: int = 0
    """Process exit status after :meth:`run`; assign it in :meth:`run` to report failure."""

    def run(self) -> None:
        raise NotImplementedError


@frozen(kw_only=True)
class Command:
    """Registry entry of one shell command."""

    name: str
    holder: Any = field(hash=False)
    aliases: tuple[str, ...] = field(default=(), converter=to_tuple_converter)
    explicit_help: str | None = field(default=None, alias="help")
    options: ParseOptions = field(factory=ParseOptions, hash=False)

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name,) + self.aliases

    @property
    def spec_set(self) -> SpecSet:
        return build_spec_set(self.holder, self.options)

    @property
    def help(self) -> str:
        """Explicit help, or the first paragraph of the holder's description."""
        if self.explicit_help is not None:
            return self.explicit_help
        return self.spec_set.description.split("\n\n", 1)[0]


@frozen
class DispatchResult:
    """Outcome of a successful :meth:`App.dispatch`."""

    command: Command
    value: Any = field(hash=False)
    """The populated argument-holder instance of :attr:`command`."""


@define
class App:
    """Ordered registry of shell commands; the first token selects the command.

    Command names are unique case-insensitively, unless :attr:`ParseOptions.case_sensitive` is set.
    """

    name: str | None = field(default=None)
    """Program name shown in usage. Defaults to the name of the running script."""

    options: ParseOptions = field(factory=ParseOptions, kw_only=True)
    """Parse configuration shared by every command."""

    usage_options: UsageOptions | None = field(default=None, kw_only=True)

    _console: Optional["Console"] = field(default=None, kw_only=True, alias="console")
    _error_console: Optional["Console"] = field(default=None, kw_only=True, alias="error_console")

    print_error: bool = field(default=True, kw_only=True)
    exit_on_error: bool = field(default=False, kw_only=True)
    help_on_error: bool = field(default=False, kw_only=True)
    verbose: bool = field(default=False, kw_only=True)

    _commands: dict[str, Command] = field(init=False, factory=dict)
    _lookup: dict[str, Command] = field(init=False, factory=dict)

    ###########
    # Methods #
    ###########
    def __iter__(self):
        """Iterate over registered commands in registration order."""
        return iter(self._commands.values())

    def __len__(self):
        return len(self._commands)

    def __contains__(self, name: str) -> bool:
        return self.match(name) is not None

    def __getitem__(self, name: str) -> Command:
        command = self.match(name)
        if command is None:
            raise KeyError(name)
        return command

    @property
    def command_names(self) -> tuple[str, ...]:
        return tuple(self._commands)

    @property
    def console(self) -> "Console":
        if self._console is None:
            from rich.console import Console

            self._console = Console()
        return self._console

    @property
    def error_console(self) -> "Console":
        if self._error_console is None:
            self._error_console = create_error_console_from_console(self.console)
        return self._error_console

    def match(self, name: str) -> Command | None:
        return self._lookup.get(self.options.normalize_name(name))

    def command(
        self,
        obj: T | None = None,
        *,
        name: str | None = None,
        alias: None | str | Iterable[str] = None,
        help: str | None = None,
    ) -> Any:
        """Decorator to register an argument-holder as a shell command.

        Parameters
        ----------
        obj: T | None
            Dataclass, attrs class (usually deriving from :class:`ShellCommand`) or function.
        name: str | None
            Command name. Defaults to the holder's name passed through :attr:`ParseOptions.name_transform`.
        alias: None | str | Iterable[str]
            Additional command names.
        help: str | None
            Description in the command list. Defaults to the holder's docstring summary.

        Raises
        ------
        CommandCollisionError
            A command with the same name or alias is already registered.
        """
        if obj is None:  # Called as a decorator factory.
            return lambda obj: self.command(obj, name=name, alias=alias, help=help)

        command = Command(
            name=name or self.options.name_transform(obj.__name__),
            holder=obj,
            aliases=alias,
            help=help,
            options=self.options,
        )
        for command_name in command.names:
            key = self.options.normalize_name(command_name)
            if key in self._lookup:
                raise CommandCollisionError(f'Command "{command_name}" already registered.')

        self._commands[command.name] = command
        for command_name in command.names:
            self._lookup[self.options.normalize_name(command_name)] = command
        return obj

    def resolved_usage_options(self) -> UsageOptions:
        if self.usage_options is not None:
            return self.usage_options
        name = self.name if self.name is not None else default_program_name()
        usage_options = UsageOptions()
        return usage_options.evolve(usage_prefix=f"{usage_options.usage_prefix} {name}".rstrip())

    def command_usage_options(self, command: Command, usage_options: UsageOptions | None = None) -> UsageOptions:
        """Usage options of one command: the usage prefix is extended with the command name."""
        usage_options = usage_options or self.resolved_usage_options()
        return usage_options.evolve(usage_prefix=f"{usage_options.usage_prefix} {command.name}")

    def dispatch(self, tokens: None | str | Iterable[str] = None) -> DispatchResult | HelpRequested:
        """Select a command by the first token and parse the remaining tokens with it.

        Returns
        -------
        DispatchResult | HelpRequested
            :class:`HelpRequested` without a command asks for the command list.

        Raises
        ------
        ParseError
            Errors of the command's parse are tagged with :attr:`ParseError.command`.
        """
        if tokens is None:
            warn_no_tokens("App")
        tokens = normalize_tokens(tokens)
        try:
            return self._dispatch(tokens)
        except ParseError as e:
            e.verbose = self.verbose
            e.root_input_tokens = tokens
            if e.console is None:
                e.console = self.error_console
            raise

    def _dispatch(self, tokens: list[str]) -> DispatchResult | HelpRequested:
        if not tokens:
            raise MissingCommandError(available_commands=self.command_names)

        first = tokens[0]
        prefix = is_option_like(first, self.options.prefixes)
        if prefix is not None and is_help_flag(first[len(prefix) :], self.options):
            return HelpRequested()

        command = self.match(first)
        if command is None:
            raise UnknownCommandError(command_name=first, available_commands=self.command_names)

        spec_set = command.spec_set
        try:
            value = parse_tokens(tokens[1:], spec_set, self.options)
        except ParseError as e:
            e.command = command.name
            raise

        if isinstance(value, HelpRequested):
            return HelpRequested(spec_set=spec_set, command=command.name)
        return DispatchResult(command, value)

    def run(
        self,
        tokens: None | str | Iterable[str] = None,
        *,
        print_error: bool | None = None,
        exit_on_error: bool | None = None,
        help_on_error: bool | None = None,
    ) -> int:
        """Dispatch ``tokens``, run the selected command, and return the process exit status.

        Parameters
        ----------
        print_error: bool | None
            Print a rich-formatted error on parse failure. Defaults to :attr:`App.print_error`.
        exit_on_error: bool | None
            Invoke ``sys.exit(1)`` on parse failure. Defaults to :attr:`App.exit_on_error`.
        help_on_error: bool | None
            Print the relevant usage before the error. Defaults to :attr:`App.help_on_error`.
            An unknown or missing command always prints the command list.

        Returns
        -------
        int
            ``1`` on a parse failure, ``0`` after printing help.
            Otherwise, :attr:`ShellCommand.exit_code`, or the integer returned by a function command.
        """
        if tokens is None:
            warn_no_tokens("App")
            tokens = sys.argv[1:]

        print_error = self.print_error if print_error is None else print_error
        exit_on_error = self.exit_on_error if exit_on_error is None else exit_on_error
        help_on_error = self.help_on_error if help_on_error is None else help_on_error

        try:
            result = self.dispatch(tokens)
        except ParseError as e:
            assert e.console is not None
            if help_on_error or isinstance(e, UnknownCommandError | MissingCommandError):
                # Without a valid command, the command list is the relevant usage.
                self.print_usage(e.command, console=e.console)
            if print_error:
                e.console.print(ArgforgePanel(e))
            if exit_on_error:
                sys.exit(1)
            return 1

        if isinstance(result, HelpRequested):
            self.print_usage(result.command)
            return 0

        value = result.value
        if isinstance(value, ShellCommand):
            value.run()
            return value.exit_code
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return 0

    def format_usage(self, sink: TextSink, command: str | None = None, usage_options: UsageOptions | None = None):
        """Write the command list, or the usage of ``command``, to ``sink``."""
        usage_options = usage_options or self.resolved_usage_options()
        if command is None:
            format_command_list(self, sink, usage_options)
        else:
            entry = self[command]
            format_usage(entry.spec_set, sink, self.command_usage_options(entry, usage_options), self.options)

    def usage_text(self, command: str | None = None, usage_options: UsageOptions | None = None) -> str:
        out = io.StringIO()
        self.format_usage(out, command, usage_options)
        return out.getvalue()

    def print_usage(self, command: str | None = None, *, console: Optional["Console"] = None):
        console = console or self.console
        usage_options = self.resolved_usage_options()
        if self.usage_options is None:
            usage_options = usage_options.evolve(max_width=console.width - 1)
        render_to_console(lambda out: self.format_usage(out, command, usage_options), console)
