import os
import sys
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rich.console import Console


def create_error_console_from_console(console: "Console") -> "Console":
    """Create a stderr :class:`~rich.console.Console` that inherits the settings of ``console``."""
    from rich.console import Console

    return Console(
        stderr=True,
        color_system=console.color_system or "auto",  # type: ignore[arg-type]
        force_terminal=getattr(console, "_force_terminal", None),
        soft_wrap=console.soft_wrap,
        width=console._width,
        highlight=getattr(console, "_highlight", True),
        no_color=console.no_color,
        legacy_windows=console.legacy_windows,
    )


class TestFramework(str, Enum):
    UNKNOWN = ""
    PYTEST = "pytest"


@lru_cache
def detect_test_framework() -> TestFramework:
    """Detects if we are currently being ran in a test framework."""
    # "PYTEST_VERSION" is set as of pytest v8.2.0
    if "pytest" in sys.modules and os.environ.get("PYTEST_VERSION") is not None:
        return TestFramework.PYTEST
    return TestFramework.UNKNOWN


@lru_cache  # Prevent logging of multiple warnings
def warn_no_tokens(caller: str) -> None:
    """Warn about a parser reading :obj:`sys.argv` while running under a unit-test framework."""
    framework = detect_test_framework()
    if framework == TestFramework.UNKNOWN:
        return
    import warnings

    message = (
        f'{caller} invoked without tokens under unit-test framework "{framework.value}"; '
        "reading sys.argv. Did you mean to pass an empty list?"
    )
    warnings.warn(UserWarning(message), stacklevel=3)
