import io
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from attrs import define, field

from argforge._console import create_error_console_from_console, warn_no_tokens
from argforge.bind import HelpRequested, normalize_tokens, parse_tokens
from argforge.exceptions import ParseError, SpecificationError
from argforge.help import format_usage
from argforge.options import ParseOptions, UsageOptions
from argforge.panel import ArgforgePanel
from argforge.spec_set import SpecSet, build_spec_set
from argforge.wrapping import TextSink

if TYPE_CHECKING:
    from rich.console import Console


def default_program_name() -> str:
    return Path(sys.argv[0]).name if sys.argv and sys.argv[0] else ""


def render_to_console(render, console: "Console"):
    out = io.StringIO()
    render(out)
    console.print(out.getvalue(), markup=False, highlight=False, soft_wrap=True, end="")


@define
class Parser:
    """Parses command lines into instances of one argument-holder.

    .. code-block:: python

        from dataclasses import dataclass
        from typing import Annotated

        from argforge import Parameter, Parser


        @dataclass
        class Arguments:
            \"\"\"Copies a file.

            Parameters
            ----------
            source: str
                File to read.
            \"\"\"

            source: Annotated[str, Parameter(positional=True)]
            verbose: bool = False


        arguments = Parser(Arguments).parse_args()
    """

    holder: Any
    """Dataclass, attrs class or callable whose fields describe the arguments; or a prebuilt :class:`SpecSet`."""

    options: ParseOptions = field(factory=ParseOptions, kw_only=True)

    usage_options: UsageOptions | None = field(default=None, kw_only=True)
    """Defaults to ``"Usage: <program name>"`` with all other settings at their defaults."""

    name: str | None = field(default=None, kw_only=True)
    """Program name shown in usage. Defaults to the name of the running script."""

    _console: Optional["Console"] = field(default=None, kw_only=True, alias="console")
    _error_console: Optional["Console"] = field(default=None, kw_only=True, alias="error_console")

    verbose: bool = field(default=False, kw_only=True)
    """Developer-oriented, more verbose error messages."""

    def __attrs_post_init__(self):
        if isinstance(self.holder, SpecSet) and self.holder.case_sensitive != self.options.case_sensitive:
            raise SpecificationError(
                f"SpecSet.case_sensitive ({self.holder.case_sensitive}) does not match "
                f"ParseOptions.case_sensitive ({self.options.case_sensitive})."
            )

    @property
    def spec_set(self) -> SpecSet:
        if isinstance(self.holder, SpecSet):
            return self.holder
        return build_spec_set(self.holder, self.options)

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

    def resolved_usage_options(self) -> UsageOptions:
        if self.usage_options is not None:
            return self.usage_options
        name = self.name if self.name is not None else default_program_name()
        usage_options = UsageOptions()
        return usage_options.evolve(usage_prefix=f"{usage_options.usage_prefix} {name}".rstrip())

    def parse(self, tokens: None | str | Iterable[str] = None) -> Any:
        """Parse ``tokens`` into a new holder instance.

        Parameters
        ----------
        tokens: None | str | Iterable[str]
            Command line tokens. A string is split with :func:`shlex.split`.
            Defaults to ``sys.argv[1:]``.

        Returns
        -------
        Any
            The populated holder instance, or :class:`HelpRequested`.

        Raises
        ------
        ParseError
        """
        if tokens is None:
            warn_no_tokens("Parser")
        tokens = normalize_tokens(tokens)
        try:
            return parse_tokens(tokens, self.spec_set, self.options)
        except ParseError as e:
            e.verbose = self.verbose
            e.root_input_tokens = tokens
            if e.console is None:
                e.console = self.error_console
            raise

    def parse_args(
        self,
        tokens: None | str | Iterable[str] = None,
        *,
        print_error: bool = True,
        exit_on_error: bool = True,
        help_on_error: bool = False,
    ) -> Any:
        """Interpret ``tokens`` like a command line application's ``main``.

        On :class:`HelpRequested`, the usage is printed and the process exits with status 0.

        Parameters
        ----------
        print_error: bool
            Print a rich-formatted error on parse failure.
        exit_on_error: bool
            Invoke ``sys.exit(1)`` on parse failure. Otherwise, the error is re-raised.
        help_on_error: bool
            Print the usage before the error on parse failure.

        Returns
        -------
        Any
            The populated holder instance.
        """
        if tokens is None:
            warn_no_tokens("Parser")
            tokens = sys.argv[1:]
        try:
            result = self.parse(tokens)
        except ParseError as e:
            assert e.console is not None
            if help_on_error:
                self.print_usage(console=e.console)
            if print_error:
                e.console.print(ArgforgePanel(e))
            if exit_on_error:
                sys.exit(1)
            raise

        if isinstance(result, HelpRequested):
            self.print_usage()
            sys.exit(0)
        return result

    def format_usage(self, sink: TextSink, usage_options: UsageOptions | None = None):
        """Write the word-wrapped usage text to ``sink``."""
        format_usage(self.spec_set, sink, usage_options or self.resolved_usage_options(), self.options)

    def usage_text(self, usage_options: UsageOptions | None = None) -> str:
        out = io.StringIO()
        self.format_usage(out, usage_options)
        return out.getvalue()

    def print_usage(self, console: Optional["Console"] = None, usage_options: UsageOptions | None = None):
        """Print the usage to ``console``, wrapped to the console's width unless ``usage_options`` says otherwise."""
        console = console or self.console
        if usage_options is None:
            usage_options = self.resolved_usage_options()
            if self.usage_options is None:
                usage_options = usage_options.evolve(max_width=console.width - 1)
        render_to_console(lambda out: self.format_usage(out, usage_options), console)
