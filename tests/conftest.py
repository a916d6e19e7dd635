import pytest
from rich.console import Console

from argforge import App, ParseOptions, Parser


@pytest.fixture
def console():
    return Console(width=70, force_terminal=True, highlight=False, color_system=None, legacy_windows=False)


@pytest.fixture
def app(console):
    return App("prog", console=console, error_console=console)


@pytest.fixture
def parse():
    """Parse ``tokens`` into a new instance of ``holder``; keyword arguments become :class:`ParseOptions`."""

    def inner(holder, tokens, **kwargs):
        return Parser(holder, options=ParseOptions(**kwargs), name="prog").parse(tokens)

    return inner
