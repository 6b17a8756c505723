"""
Command parsing module for dmkit.

Free-text combat commands are turned into a closed set of command models by
``parse_command``. The session only ever dispatches on these models, so the
engine itself never looks at raw strings.
"""

import re
from typing import Union

from pydantic import BaseModel, Field

from dmkit.core.constants import AbilityScore
from dmkit.core.dice_parser import DiceParser
from dmkit.core.error_handling import (
    InvalidInputError,
    parse_int,
    parse_non_negative_int,
)

_INT_TOKEN = re.compile(r"^[+-]?\d+$")


class AttackCommand(BaseModel):
    target: str = Field(description="Name of the combatant being attacked.")
    bonus: int = Field(default=0, description="Flat bonus added to the d20.")


class DamageCommand(BaseModel):
    target: str
    amount: str = Field(description="A plain amount or a dice expression.")


class HealCommand(BaseModel):
    target: str
    amount: str = Field(description="A plain amount or a dice expression.")


class NextTurnCommand(BaseModel):
    pass


class PreviousTurnCommand(BaseModel):
    pass


class ShowCommand(BaseModel):
    pass


class StatsCommand(BaseModel):
    target: str | None = Field(
        default=None,
        description="Combatant to show, defaults to the one whose turn it is.",
    )


class StatusAddCommand(BaseModel):
    target: str
    status: str
    duration: int | None = Field(
        default=None,
        description="Duration in rounds, None for a permanent effect.",
    )


class StatusRemoveCommand(BaseModel):
    target: str
    status: str


class StatusListCommand(BaseModel):
    target: str | None = Field(
        default=None,
        description="Combatant to list, None for every combatant.",
    )


class SaveCommand(BaseModel):
    ability: AbilityScore
    target: str = "self"


class InsertCommand(BaseModel):
    """
    Adds a combatant mid-fight.

    With hp and ac the combatant is an ad-hoc NPC, otherwise it is built
    from the loaded character sheet with the same name.
    """

    name: str
    initiative: int | None = Field(
        default=None,
        description="Initiative, rolled as d20 + DEX when left out.",
    )
    hp: int | None = None
    ac: int | None = None

    @property
    def is_npc(self) -> bool:
        return self.hp is not None and self.ac is not None


class RemoveCommand(BaseModel):
    name: str


class RollCommand(BaseModel):
    expression: str


class HelpCommand(BaseModel):
    pass


class QuitCommand(BaseModel):
    pass


class CancelCommand(BaseModel):
    pass


Command = Union[
    AttackCommand,
    DamageCommand,
    HealCommand,
    NextTurnCommand,
    PreviousTurnCommand,
    ShowCommand,
    StatsCommand,
    StatusAddCommand,
    StatusRemoveCommand,
    StatusListCommand,
    SaveCommand,
    InsertCommand,
    RemoveCommand,
    RollCommand,
    HelpCommand,
    QuitCommand,
    CancelCommand,
]

# (usage, description) pairs shown by the help command.
COMMAND_HELP: list[tuple[str, str]] = [
    ("attack <target> [+bonus]", "Roll a d20 attack against the target's AC"),
    ("damage <target> <amount|dice>", "Deal damage directly"),
    ("heal <target> <amount|dice>", "Restore hit points"),
    ("next | continue | n", "Advance to the next combatant"),
    ("back | prev", "Go back to the previous combatant's turn"),
    ("show | list", "Display the initiative order"),
    ("stats [name]", "Show a combatant's stats"),
    ("status add <self|name> <status> [rounds]", "Add a status effect"),
    ("status remove <self|name> <status>", "Remove a status effect"),
    ("status list [self|name]", "List status effects"),
    ("save <ability> [self|name]", "Make a saving throw (e.g. save wis Gandalf)"),
    ("insert <name> [initiative]", "Add a saved character mid-fight"),
    ("insert <name> <hp> <ac> <initiative>", "Add an NPC mid-fight"),
    ("remove <name>", "Remove a combatant from combat"),
    ("roll <dice> | r<dice>", "Roll dice, e.g. roll 2d6+3 or r1d20"),
    ("cancel", "Drop a pending damage roll"),
    ("help | h | ?", "Show this help"),
    ("quit | exit | q", "Exit combat mode"),
]

# Words offered by the command line completer.
COMMAND_WORDS: list[str] = [
    "attack",
    "damage",
    "heal",
    "next",
    "continue",
    "back",
    "prev",
    "show",
    "list",
    "stats",
    "status",
    "add",
    "remove",
    "save",
    "insert",
    "roll",
    "cancel",
    "help",
    "quit",
    "self",
]


def _is_int(token: str) -> bool:
    return bool(_INT_TOKEN.match(token))


def _require_args(args: list[str], count: int, usage: str) -> None:
    if len(args) < count:
        raise InvalidInputError(f"Usage: {usage}")


def _parse_attack(args: list[str]) -> AttackCommand:
    _require_args(args, 1, "attack <target> [+bonus]")
    if len(args) > 1 and _is_int(args[-1]):
        return AttackCommand(
            target=" ".join(args[:-1]), bonus=parse_int(args[-1], "Attack bonus")
        )
    return AttackCommand(target=" ".join(args))


def _parse_amount(verb: str, args: list[str]) -> tuple[str, str]:
    _require_args(args, 2, f"{verb} <target> <amount|dice>")
    return " ".join(args[:-1]), args[-1]


def _parse_status(args: list[str]) -> Command:
    _require_args(args, 1, "status [add|remove|list] [self|name] <status>")
    action, rest = args[0].lower(), args[1:]
    if action == "list":
        return StatusListCommand(target=" ".join(rest) or None)
    if action not in ("add", "remove"):
        raise InvalidInputError(
            f"Invalid action '{args[0]}'. Use 'add', 'remove', or 'list'"
        )
    _require_args(rest, 2, f"status {action} [self|name] <status>")
    target, words = rest[0], rest[1:]
    if action == "remove":
        return StatusRemoveCommand(target=target, status=" ".join(words))
    duration = None
    if len(words) > 1 and _is_int(words[-1]):
        duration = parse_non_negative_int(words[-1], "Duration")
        words = words[:-1]
    return StatusAddCommand(target=target, status=" ".join(words), duration=duration)


def _parse_save(args: list[str]) -> SaveCommand:
    _require_args(args, 1, "save <ability> [self|name]")
    try:
        ability = AbilityScore.from_string(args[0])
    except ValueError as e:
        raise InvalidInputError(str(e)) from None
    return SaveCommand(ability=ability, target=" ".join(args[1:]) or "self")


def _parse_insert(args: list[str]) -> InsertCommand:
    _require_args(args, 1, "insert <name> [initiative] | insert <name> <hp> <ac> <initiative>")
    if len(args) >= 4 and all(_is_int(token) for token in args[-3:]):
        return InsertCommand(
            name=" ".join(args[:-3]),
            hp=parse_non_negative_int(args[-3], "HP"),
            ac=parse_non_negative_int(args[-2], "AC"),
            initiative=parse_non_negative_int(args[-1], "Initiative"),
        )
    if len(args) >= 2 and _is_int(args[-1]):
        return InsertCommand(
            name=" ".join(args[:-1]),
            initiative=parse_non_negative_int(args[-1], "Initiative"),
        )
    return InsertCommand(name=" ".join(args))


def parse_command(text: str) -> Command:
    """
    Parses one line of combat input.

    Args:
        text (str): The raw input line.

    Returns:
        Command: The parsed command.

    Raises:
        InvalidInputError: If the line is empty, the command unknown or its
            arguments malformed.

    """
    tokens = text.split()
    if not tokens:
        raise InvalidInputError("Empty command. Type 'help' for available commands.")
    verb, args = tokens[0].lower(), tokens[1:]

    if verb in ("next", "continue", "n"):
        return NextTurnCommand()
    if verb in ("back", "prev"):
        return PreviousTurnCommand()
    if verb in ("show", "list"):
        return ShowCommand()
    if verb in ("help", "h", "?"):
        return HelpCommand()
    if verb in ("quit", "exit", "q"):
        return QuitCommand()
    if verb == "cancel":
        return CancelCommand()
    if verb == "attack":
        return _parse_attack(args)
    if verb == "damage":
        target, amount = _parse_amount(verb, args)
        return DamageCommand(target=target, amount=amount)
    if verb == "heal":
        target, amount = _parse_amount(verb, args)
        return HealCommand(target=target, amount=amount)
    if verb == "stats":
        return StatsCommand(target=" ".join(args) or None)
    if verb == "status":
        return _parse_status(args)
    if verb == "save":
        return _parse_save(args)
    if verb == "insert":
        return _parse_insert(args)
    if verb == "remove":
        _require_args(args, 1, "remove <name>")
        return RemoveCommand(name=" ".join(args))
    if verb == "roll":
        _require_args(args, 1, "roll <dice>")
        return RollCommand(expression="".join(args))
    # Dice mode shorthand such as "r2d6+3" or "r 1d20".
    if verb.startswith("r") and DiceParser.is_dice_expression("".join(tokens)):
        return RollCommand(expression=DiceParser.normalize("".join(tokens)))
    raise InvalidInputError(
        f"Unknown command '{tokens[0]}'. Type 'help' for available commands."
    )
