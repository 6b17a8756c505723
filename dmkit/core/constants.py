"""
Constants and enumerations for dmkit.

Defines the ability scores used by character sheets and saving throws, the
provenance of combatants, and a handful of display constants shared by the
combat engine and the terminal interface.
"""

from enum import Enum

# Natural results that earn a critical annotation on a single d20.
NATURAL_CRITICAL_SUCCESS = 20
NATURAL_CRITICAL_FAILURE = 1

# Defaults used when a character sheet leaves a combat field empty.
DEFAULT_HP = 10
DEFAULT_AC = 10
DEFAULT_ABILITY_SCORE = 10
DEFAULT_PROFICIENCY_BONUS = 2


class NiceEnum(Enum):
    """An enumeration that provides a nicer string representation."""

    def __str__(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        return self.name.lower().capitalize()


class AbilityScore(NiceEnum):
    """The six ability scores of a character sheet."""

    STRENGTH = "STRENGTH"
    DEXTERITY = "DEXTERITY"
    CONSTITUTION = "CONSTITUTION"
    WISDOM = "WISDOM"
    INTELLIGENCE = "INTELLIGENCE"
    CHARISMA = "CHARISMA"

    @property
    def short_name(self) -> str:
        """Returns the three letter abbreviation (e.g. STR)."""
        return self.name[:3]

    @staticmethod
    def from_string(value: str) -> "AbilityScore":
        """
        Resolves an ability from its full or abbreviated name.

        Args:
            value (str): Name such as "wis", "Wisdom" or "WIS".

        Returns:
            AbilityScore: The matching ability.

        Raises:
            ValueError: If the name does not match any ability.

        """
        key = value.strip().upper()
        for ability in AbilityScore:
            if key in (ability.name, ability.short_name):
                return ability
        raise ValueError(
            f"Invalid ability score: {value}. Use str, dex, con, wis, int, or cha"
        )


class CombatantType(NiceEnum):
    """Where a combatant came from."""

    PLAYER = "PLAYER"
    NPC = "NPC"

    @property
    def display_name(self) -> str:
        return "Player" if self is CombatantType.PLAYER else "NPC"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this combatant type."""
        return {
            CombatantType.PLAYER: "🧙",
            CombatantType.NPC: "👹",
        }.get(self, "❔")

    @property
    def color(self) -> str:
        """Returns the color string associated with this combatant type."""
        return {
            CombatantType.PLAYER: "bold blue",
            CombatantType.NPC: "bold red",
        }.get(self, "dim white")

    @property
    def colored_name(self) -> str:
        return self.colorize(self.display_name)

    def colorize(self, message: str) -> str:
        """Applies combatant type color formatting to a message."""
        return f"[{self.color}]{message}[/]"
