"""Rich panel utilities for terminal output."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rich.panel import Panel


def ArgforgePanel(message: Any, title: str = "Error", style: str = "red") -> "Panel":  # noqa: N802
    """Create a :class:`~rich.panel.Panel` in argforge's error style.

    .. code-block:: text

        ╭─ Error ────────────────────────────────╮
        │ Unknown argument name "verbse".        │
        ╰────────────────────────────────────────╯

    Parameters
    ----------
    message: Any
        The body of the panel is the stringified message.
    title: str
        Title in the top-left corner.
    style: str
        Rich style of the panel border.
    """
    from rich import box
    from rich.panel import Panel
    from rich.text import Text

    return Panel(
        Text(str(message), "default"),
        title=title,
        style=style,
        box=box.ROUNDED,
        expand=True,
        title_align="left",
    )
