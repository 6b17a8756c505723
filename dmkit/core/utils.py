"""
Console helpers for dmkit.

All table-facing output goes through one shared rich console, so the command
loop, the initiative setup and the prompt text render the same way.
"""

from typing import Any

from rich.console import Console
from rich.rule import Rule

_console = Console(markup=True, width=120, force_jupyter=False)


def cprint(*args: Any, **kwargs: Any) -> None:
    """Prints rich renderables or markup to the shared console."""
    _console.print(*args, **kwargs)


def crule(title: str = "", **kwargs: Any) -> None:
    """Prints a horizontal rule with an optional title."""
    _console.print(Rule(title, **kwargs))


def ccapture(content: Any) -> str:
    """
    Renders content to an ANSI string instead of the terminal.

    The prompt uses this to show rich markup through prompt_toolkit.

    Args:
        content (Any): Markup or a rich renderable.

    Returns:
        str: The rendered text with ANSI escape codes.

    """
    with _console.capture() as capture:
        _console.print(content, markup=True, end="")
    return capture.get()


def health_color(current: int, maximum: int) -> str:
    """
    Picks the color for a hit point total.

    Bloodied (a quarter of the maximum or less) is red, half or less is
    yellow, anything above is green. Zero hit points are dim.
    """
    if current <= 0:
        return "dim red"
    if current <= maximum // 4:
        return "red"
    if current <= maximum // 2:
        return "yellow"
    return "green"


def health_bar(current: int, maximum: int, length: int = 10) -> str:
    """
    Builds a hit point bar in rich markup, colored by health_color.

    Args:
        current (int): Current hit points.
        maximum (int): Maximum hit points, 0 gives an empty bar.
        length (int): Number of cells. Defaults to 10.

    Returns:
        str: The bar, e.g. "[green]▮▮▮▮▮▮▮▮[dim white]▯▯[/][/]".

    """
    filled = 0
    if maximum > 0:
        filled = int(max(0, min(current, maximum)) / maximum * length)
    bar = f"[{health_color(current, maximum)}]" + "▮" * filled
    if filled < length:
        bar += "[dim white]" + "▯" * (length - filled) + "[/]"
    return bar + "[/]"
