"""
Main entry point for dmkit.

Loads the settings and the character sheets, sets up the initiative order
interactively and then runs the combat command loop until the table quits.
"""

import argparse
from pathlib import Path

from catchery import log_debug, log_warning
from prompt_toolkit import PromptSession

from dmkit.character.serialization import load_character_sheets
from dmkit.combat.combat_tracker import CombatTracker
from dmkit.combat.session import CombatSession
from dmkit.core.config import load_settings
from dmkit.core.logging import setup_logging
from dmkit.core.utils import cprint, crule
from dmkit.ui.cli_interface import CombatShell, setup_initiative


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="dmkit", description="Tabletop RPG combat tracker."
    )
    parser.add_argument("--config", type=Path, help="Settings file (JSON).")
    parser.add_argument(
        "--characters", type=Path, help="Character sheets file or directory."
    )
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    setup_logging(settings.log_level)

    crule("dmkit", style="bold green")

    characters_path = args.characters or settings.characters_path
    sheets = {}
    if characters_path.exists():
        sheets = load_character_sheets(characters_path)
    else:
        log_warning(
            "Character sheets not found, only NPCs can join",
            {"path": str(characters_path)},
        )
    log_debug(
        "Loaded character sheets",
        {"count": len(sheets), "path": str(characters_path)},
    )

    tracker = CombatTracker(
        expire_status_effects=settings.expire_status_effects,
        temp_hp_absorbs_damage=settings.temp_hp_absorbs_damage,
    )
    prompt_session: PromptSession = PromptSession()
    try:
        setup_initiative(sheets, prompt_session.prompt, tracker)
    except (KeyboardInterrupt, EOFError):
        cprint("[yellow]Setup aborted.[/]")
        return
    if not tracker.combatants:
        cprint("[yellow]No combatants, nothing to track.[/]")
        return

    session = CombatSession(tracker, sheets, settings)
    CombatShell(session).run()


if __name__ == "__main__":
    main()
