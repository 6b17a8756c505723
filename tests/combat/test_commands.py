"""
Tests for the combat command parser.
"""

import pytest

from dmkit.combat.commands import (
    AttackCommand,
    CancelCommand,
    DamageCommand,
    HealCommand,
    HelpCommand,
    InsertCommand,
    NextTurnCommand,
    PreviousTurnCommand,
    QuitCommand,
    RemoveCommand,
    RollCommand,
    SaveCommand,
    ShowCommand,
    StatsCommand,
    StatusAddCommand,
    StatusListCommand,
    StatusRemoveCommand,
    parse_command,
)
from dmkit.core.constants import AbilityScore
from dmkit.core.error_handling import InvalidInputError


@pytest.mark.parametrize(
    "text, command_type",
    [
        ("next", NextTurnCommand),
        ("continue", NextTurnCommand),
        ("N", NextTurnCommand),
        ("back", PreviousTurnCommand),
        ("prev", PreviousTurnCommand),
        ("show", ShowCommand),
        ("list", ShowCommand),
        ("help", HelpCommand),
        ("?", HelpCommand),
        ("quit", QuitCommand),
        ("exit", QuitCommand),
        ("q", QuitCommand),
        ("cancel", CancelCommand),
    ],
)
def test_keyword_commands(text, command_type):
    """Test the commands that take no arguments, with their aliases."""
    assert isinstance(parse_command(text), command_type)


def test_attack():
    """Test parsing an attack with and without a bonus."""
    assert parse_command("attack Goblin") == AttackCommand(target="Goblin")
    assert parse_command("ATTACK goblin +5") == AttackCommand(target="goblin", bonus=5)
    assert parse_command("attack Goblin Boss -1") == AttackCommand(
        target="Goblin Boss", bonus=-1
    )


def test_attack_requires_target():
    """Test the usage error of a bare attack."""
    with pytest.raises(InvalidInputError, match="Usage: attack"):
        parse_command("attack")


def test_damage_and_heal():
    """Test parsing direct damage and healing."""
    assert parse_command("damage Goblin 8") == DamageCommand(target="Goblin", amount="8")
    assert parse_command("heal Aria 2d4+2") == HealCommand(target="Aria", amount="2d4+2")
    with pytest.raises(InvalidInputError):
        parse_command("damage Goblin")


def test_stats():
    """Test the optional stats target."""
    assert parse_command("stats") == StatsCommand()
    assert parse_command("stats Goblin") == StatsCommand(target="Goblin")


def test_status_add_with_and_without_duration():
    """Test that a trailing number is read as the duration."""
    assert parse_command("status add self Blessed") == StatusAddCommand(
        target="self", status="Blessed"
    )
    assert parse_command("status add Goblin Very Poisoned 3") == StatusAddCommand(
        target="Goblin", status="Very Poisoned", duration=3
    )


def test_status_remove_and_list():
    """Test the other status actions."""
    assert parse_command("status remove Goblin Prone") == StatusRemoveCommand(
        target="Goblin", status="Prone"
    )
    assert parse_command("status list") == StatusListCommand()
    assert parse_command("status list self") == StatusListCommand(target="self")


def test_status_errors():
    """Test malformed status commands."""
    with pytest.raises(InvalidInputError, match="Invalid action"):
        parse_command("status frobnicate Goblin Prone")
    with pytest.raises(InvalidInputError, match="Usage"):
        parse_command("status add Goblin")
    with pytest.raises(InvalidInputError, match="negative"):
        parse_command("status add Goblin Prone -2")


def test_save():
    """Test saving throws with short and long ability names."""
    assert parse_command("save wis Gandalf") == SaveCommand(
        ability=AbilityScore.WISDOM, target="Gandalf"
    )
    assert parse_command("save Dexterity") == SaveCommand(
        ability=AbilityScore.DEXTERITY, target="self"
    )
    with pytest.raises(InvalidInputError, match="Invalid ability score"):
        parse_command("save luck")


def test_insert_variants():
    """Test inserting sheet characters and ad-hoc NPCs."""
    assert parse_command("insert Aria") == InsertCommand(name="Aria")
    assert parse_command("insert Aria 14") == InsertCommand(name="Aria", initiative=14)
    npc = parse_command("insert Orc Chief 15 13 12")
    assert npc == InsertCommand(name="Orc Chief", hp=15, ac=13, initiative=12)
    assert npc.is_npc
    with pytest.raises(InvalidInputError):
        parse_command("insert Orc -5 13 12")


def test_remove():
    """Test removing by a possibly multi-word name."""
    assert parse_command("remove Goblin Boss") == RemoveCommand(name="Goblin Boss")


def test_roll_and_dice_mode_shorthand():
    """Test both ways of rolling dice."""
    assert parse_command("roll 2d6 + 3") == RollCommand(expression="2d6+3")
    assert parse_command("r1d20") == RollCommand(expression="1d20")
    assert parse_command("r 4d6") == RollCommand(expression="4d6")


def test_unknown_and_empty_commands():
    """Test inputs that are not commands at all."""
    with pytest.raises(InvalidInputError, match="Unknown command 'dance'"):
        parse_command("dance wildly")
    with pytest.raises(InvalidInputError, match="Empty command"):
        parse_command("   ")
