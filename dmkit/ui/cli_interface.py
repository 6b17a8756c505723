"""
User interface module for dmkit.

Renders the roster, combatants and engine events with rich, and drives the
combat command loop with prompt_toolkit. Nothing in here changes combat state
directly: every line typed is handed to the CombatSession.
"""

from collections.abc import Callable

from prompt_toolkit import ANSI, PromptSession
from prompt_toolkit.completion import WordCompleter
from rich.console import Group
from rich.panel import Panel
from rich.table import Table

from dmkit.character.sheet import CharacterSheet
from dmkit.combat.combat_tracker import CombatTracker
from dmkit.combat.combatant import Combatant
from dmkit.combat.commands import (
    COMMAND_HELP,
    COMMAND_WORDS,
    HelpCommand,
    InsertCommand,
    RemoveCommand,
    ShowCommand,
    StatsCommand,
)
from dmkit.combat.events import CombatEvent, EventType
from dmkit.combat.session import CombatSession, CommandResult, roll_initiative
from dmkit.core.constants import AbilityScore
from dmkit.core.error_handling import CombatError, parse_int, parse_non_negative_int
from dmkit.core.utils import ccapture, cprint, crule, health_bar

Prompt = Callable[[str], str]

# Events after which the combatant's panel is shown.
_PANEL_EVENTS = (EventType.TURN_START,)


def render_initiative_order(tracker: CombatTracker) -> Table:
    """
    Builds the initiative table, with a marker on the next combatant to act.

    Args:
        tracker (CombatTracker): The tracker to render.

    Returns:
        Table: The rendered roster.

    """
    table = Table(
        title=f"📋 Initiative Order (Round {tracker.round_number})", pad_edge=False
    )
    table.add_column("", style="bold yellow")
    table.add_column("Init", justify="right", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("AC", justify="right", style="yellow")
    table.add_column("HP")
    table.add_column("Status", style="magenta")
    for index, combatant in enumerate(tracker.combatants):
        marker = ">>>" if index == tracker.current_turn else ""
        name = f"{combatant.combatant_type.emoji} {combatant.name}"
        if combatant.is_skipped():
            name += " [dim](SKIPPED)[/]"
        hp = (
            f"{combatant.current_hp:>3}/{combatant.max_hp} "
            f"{health_bar(combatant.current_hp, combatant.max_hp, length=8)}"
        )
        if combatant.is_unconscious():
            hp += " 💀"
        elif combatant.is_bloodied():
            hp += " 🩸"
        table.add_row(
            marker,
            str(combatant.initiative),
            name,
            str(combatant.ac),
            hp,
            ", ".join(combatant.status_effects),
        )
    return table


def render_combatant(combatant: Combatant) -> Panel:
    """
    Builds a stat panel for a combatant.

    Args:
        combatant (Combatant): The combatant to render.

    Returns:
        Panel: Combat, health and (for sheet characters) ability columns,
            followed by the status effects.

    """
    grid = Table.grid(padding=(0, 3))
    grid.add_column()
    grid.add_column()
    grid.add_column()

    combat = (
        f"[bold]⚔️ Combat[/]\n"
        f"AC: [yellow]{combatant.ac}[/]\n"
        f"Initiative: [cyan]{combatant.initiative}[/]\n"
        f"Type: {combatant.combatant_type.colored_name}"
    )
    health = (
        f"[bold]❤️ Health[/]\n"
        f"HP: {combatant.current_hp}/{combatant.max_hp}\n"
        f"{health_bar(combatant.current_hp, combatant.max_hp)}\n"
        f"Temp HP: {combatant.temp_hp}"
    )
    abilities = ""
    sheet = combatant.character_reference
    if sheet is not None:
        abilities = "[bold]📊 Abilities[/]\n" + "\n".join(
            f"{ability.short_name}: {sheet.get_ability_score(ability):>2} "
            f"({sheet.get_ability_modifier(ability):+d})"
            for ability in AbilityScore
        )
        abilities += (
            f"\nPassive Perception: [cyan]{sheet.calculate_passive_perception()}[/]"
        )
    grid.add_row(combat, health, abilities)

    parts: list = [grid]
    if combatant.status_effects:
        parts.append("")
        parts.append(
            "[bold]🎭 Status Effects[/]\n"
            + "\n".join(
                f"  • {effect.name} {effect.duration_text}"
                for effect in combatant.status_effects.values()
            )
        )
    title = f"{combatant.combatant_type.emoji} {combatant.name}"
    if combatant.is_unconscious():
        title += " [bold red](UNCONSCIOUS)[/]"
    return Panel(Group(*parts), title=title, expand=False)


def render_help() -> Table:
    table = Table(title="Combat Mode Commands", pad_edge=False)
    table.add_column("Command", style="cyan")
    table.add_column("Description")
    for usage, description in COMMAND_HELP:
        table.add_row(usage, description)
    return table


def format_event(event: CombatEvent) -> str:
    """Formats an event as a single line of rich markup."""
    return f"[{event.event_type.color}]{event}[/]"


def print_result(result: CommandResult, tracker: CombatTracker) -> None:
    """
    Prints the outcome of a submitted line.

    Args:
        result (CommandResult): The outcome to print.
        tracker (CombatTracker): The tracker, for roster views.

    """
    for event in result.events:
        cprint(format_event(event))
    if result.error:
        cprint(f"[bold red]❌ {result.error}[/]")
        return
    command = result.command
    if isinstance(command, HelpCommand):
        cprint(render_help())
    elif isinstance(command, (ShowCommand, InsertCommand, RemoveCommand)):
        cprint(render_initiative_order(tracker))
    elif result.combatant is not None and (
        isinstance(command, StatsCommand)
        or any(e.event_type in _PANEL_EVENTS for e in result.events)
    ):
        cprint(render_combatant(result.combatant))


class CombatShell:
    """
    Interactive combat command loop.

    Args:
        session (CombatSession): The session commands are submitted to.
        prompt (Prompt | None): Reads one line given a prompt message.
            Defaults to a prompt_toolkit session with command completion.
    """

    def __init__(self, session: CombatSession, prompt: Prompt | None = None) -> None:
        self.session = session
        self._prompt_session: PromptSession | None = None
        if prompt is None:
            self._prompt_session = PromptSession()
            prompt = self._toolkit_prompt
        self.prompt = prompt

    def _completer(self) -> WordCompleter:
        names = [c.name for c in self.session.tracker.combatants]
        return WordCompleter(COMMAND_WORDS + names, ignore_case=True)

    def _toolkit_prompt(self, message: str) -> str:
        assert self._prompt_session is not None
        return self._prompt_session.prompt(
            ANSI(ccapture(message)), completer=self._completer()
        )

    def prompt_message(self) -> str:
        if self.session.is_awaiting_damage():
            return "[bold red]Damage >[/] "
        return "[bold cyan]Combat >[/] "

    def run(self) -> None:
        """Runs the loop until the session is quit, Ctrl-C or Ctrl-D."""
        tracker = self.session.tracker
        crule("⚔️ Combat Mode ⚔️")
        cprint(render_initiative_order(tracker))
        cprint("[dim]Type 'help' for available commands.[/]")
        print_result(self.session.start(), tracker)
        while self.session.active:
            try:
                text = self.prompt(self.prompt_message())
            except (KeyboardInterrupt, EOFError):
                text = "quit"
            print_result(self.session.submit(text), tracker)


# ==============================================================================
# Initiative setup
# ==============================================================================


def _ask_int(prompt: Prompt, message: str, parser=parse_non_negative_int) -> int:
    while True:
        answer = prompt(message)
        try:
            return parser(answer, message.strip(" :>"))
        except CombatError as e:
            cprint(f"[bold red]❌ {e.message}[/]")


def setup_initiative(
    sheets: dict[str, CharacterSheet],
    prompt: Prompt,
    tracker: CombatTracker | None = None,
) -> CombatTracker:
    """
    Builds the roster interactively.

    Every loaded character is asked for an initiative first: a blank answer
    rolls d20 + DEX, 0 leaves the character out. Then NPCs are added until a
    blank name is entered.

    Args:
        sheets (dict[str, CharacterSheet]): The loaded sheets.
        prompt (Prompt): Reads one line given a prompt message.
        tracker (CombatTracker | None): Tracker to fill. Defaults to a new one.

    Returns:
        CombatTracker: The filled tracker.

    """
    tracker = tracker if tracker is not None else CombatTracker()
    crule("⚔️ Setting up Initiative Tracker ⚔️")

    for sheet in sheets.values():
        while True:
            answer = prompt(
                f"Initiative for {sheet.name} (DEX {sheet.DEX:+d}, "
                "blank to roll, 0 to leave out): "
            ).strip()
            if not answer:
                initiative, roll = roll_initiative(sheet)
                cprint(
                    f"🎲 {sheet.name} rolled {roll.natural} {sheet.DEX:+d} = {initiative}"
                )
                break
            try:
                initiative = parse_int(answer, "Initiative")
                break
            except CombatError as e:
                cprint(f"[bold red]❌ {e.message}[/]")
        if answer and initiative == 0:
            continue
        tracker.add_combatant(Combatant.from_sheet(sheet, initiative))

    while True:
        name = prompt("NPC name (blank to finish): ").strip()
        if not name:
            break
        if tracker.get_combatant(name) is not None:
            cprint(f"[bold red]❌ {name} is already in combat[/]")
            continue
        hp = _ask_int(prompt, f"HP for {name}: ")
        ac = _ask_int(prompt, f"AC for {name}: ")
        initiative = _ask_int(prompt, f"Initiative for {name}: ")
        tracker.add_combatant(Combatant.new_npc(name, hp, ac, initiative))

    for event in tracker.events.drain():
        cprint(format_event(event))
    return tracker
