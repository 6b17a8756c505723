"""
Logging setup for dmkit.

Messages are emitted through catchery's log_* helpers; this module only routes
the standard logging tree to a rich handler on stderr so log lines do not mix
with the combat output on stdout.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def resolve_level(level: int | str) -> int:
    """
    Turns a level name such as "debug" into its number.

    Unknown names resolve to INFO.
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO) -> None:
    """
    Sets up logging with rich colored output on stderr.

    Args:
        level (int | str): A logging level or level name. Defaults to INFO.

    """
    rich_handler = RichHandler(
        console=Console(width=120, stderr=True, force_jupyter=False),
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=resolve_level(level),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[rich_handler],
        force=True,
    )

    # prompt_toolkit is chatty at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)
