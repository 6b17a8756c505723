"""
Character sheet module for dmkit.

A character sheet is the persisted record of a player character. The combat
engine only ever reads it: combatants copy the fields they need when they are
created, and nothing written during combat flows back into the sheet.
"""

from pydantic import BaseModel, ConfigDict, Field

from dmkit.core.constants import (
    DEFAULT_ABILITY_SCORE,
    DEFAULT_PROFICIENCY_BONUS,
    AbilityScore,
)


def get_stat_modifier(score: int) -> int:
    """Calculates the D&D ability score modifier."""
    return (score - 10) // 2


class CharacterSheet(BaseModel):
    """
    Read-only snapshot of a character sheet.

    Every field but the name is optional, since sheets are often filled in
    a little at a time.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(
        min_length=1,
        description="The name of the character.",
    )
    race: str | None = Field(
        default=None,
        description="The race of the character.",
    )
    class_name: str | None = Field(
        default=None,
        alias="class",
        description="The class of the character.",
    )
    level: int | None = Field(
        default=None,
        ge=0,
        description="The character level.",
    )
    description: str | None = Field(
        default=None,
        description="Free text notes about the character.",
    )
    ac: int | None = Field(
        default=None,
        ge=0,
        description="Armor class.",
    )
    hp: int | None = Field(
        default=None,
        ge=0,
        description="Current hit points.",
    )
    max_hp: int | None = Field(
        default=None,
        ge=0,
        description="Maximum hit points.",
    )
    temp_hp: int | None = Field(
        default=None,
        ge=0,
        description="Temporary hit points.",
    )
    speed: int | None = Field(
        default=None,
        ge=0,
        description="Walking speed in feet.",
    )
    strength: int | None = Field(default=None, ge=0)
    dexterity: int | None = Field(default=None, ge=0)
    constitution: int | None = Field(default=None, ge=0)
    wisdom: int | None = Field(default=None, ge=0)
    intelligence: int | None = Field(default=None, ge=0)
    charisma: int | None = Field(default=None, ge=0)
    passive_perception: int | None = Field(
        default=None,
        description="Passive perception, if recorded on the sheet.",
    )
    initiative: int | None = Field(
        default=None,
        description="Initiative bonus written on the sheet.",
    )
    prof_bonus: int | None = Field(
        default=None,
        description="Proficiency bonus.",
    )
    inventory: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Carried items.",
    )
    spells: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Known spells.",
    )

    def get_ability_score(self, ability: AbilityScore) -> int:
        """
        Returns an ability score, treating a missing one as average.

        Args:
            ability (AbilityScore): The ability to look up.

        Returns:
            int: The score, 10 when the sheet leaves it empty.

        """
        score = getattr(self, ability.name.lower())
        return DEFAULT_ABILITY_SCORE if score is None else score

    def get_ability_modifier(self, ability: AbilityScore) -> int:
        """
        Returns the D&D modifier for an ability score.

        Args:
            ability (AbilityScore): The ability to look up.

        Returns:
            int: (score - 10) // 2.

        """
        return get_stat_modifier(self.get_ability_score(ability))

    @property
    def DEX(self) -> int:
        """The dexterity modifier, used to roll initiative."""
        return self.get_ability_modifier(AbilityScore.DEXTERITY)

    def calculate_passive_perception(self) -> int:
        """
        Returns the recorded passive perception, or
        10 + WIS modifier + proficiency bonus (at least 1).
        """
        if self.passive_perception is not None:
            return self.passive_perception
        prof_bonus = (
            DEFAULT_PROFICIENCY_BONUS if self.prof_bonus is None else self.prof_bonus
        )
        return max(1, 10 + self.get_ability_modifier(AbilityScore.WISDOM) + prof_bonus)
