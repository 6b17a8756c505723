"""
Combatant module for dmkit.

A combatant is the combat-facing state of one participant: hit points, armor
class, initiative and status effects. It is built either from a character
sheet snapshot or from ad-hoc NPC stats typed in at the table.
"""

from typing import Any

from pydantic import BaseModel, Field

from dmkit.character.sheet import CharacterSheet
from dmkit.combat.status_effect import StatusEffect
from dmkit.core.constants import DEFAULT_AC, DEFAULT_HP, CombatantType
from dmkit.core.error_handling import require_non_negative_amount


class Combatant(BaseModel):
    """
    Mutable combat state for a single participant.

    Invariant: 0 <= current_hp <= max_hp. Reaching 0 hit points marks the
    combatant as unconscious for display purposes only; it stays in the
    roster until removed.
    """

    name: str = Field(
        min_length=1,
        description="The name of the combatant, unique within a tracker.",
    )
    character_reference: CharacterSheet | None = Field(
        default=None,
        description="Snapshot of the sheet the combatant was built from.",
    )
    current_hp: int = Field(
        ge=0,
        description="Current hit points.",
    )
    max_hp: int = Field(
        ge=0,
        description="Maximum hit points.",
    )
    temp_hp: int = Field(
        default=0,
        ge=0,
        description="Temporary hit points.",
    )
    ac: int = Field(
        description="Armor class, the hit threshold of an attack roll.",
    )
    initiative: int = Field(
        description="Turn order; higher acts first, 0 never acts.",
    )
    is_player: bool = Field(
        default=False,
        description="Whether the combatant comes from a player character sheet.",
    )
    status_effects: dict[str, StatusEffect] = Field(
        default_factory=dict,
        description="Active status effects, keyed by name.",
    )

    def model_post_init(self, _: Any) -> None:
        """Clamps current hit points into [0, max_hp]."""
        self.current_hp = min(self.current_hp, self.max_hp)

    @classmethod
    def from_sheet(cls, sheet: CharacterSheet, initiative: int) -> "Combatant":
        """
        Creates a combatant from a character sheet.

        The sheet is copied, so nothing that happens in combat is written
        back to it.

        Args:
            sheet (CharacterSheet): The character sheet.
            initiative (int): The rolled initiative.

        Returns:
            Combatant: The new player combatant.

        """
        # Only missing fields fall back; a recorded 0 is kept.
        current_hp = DEFAULT_HP if sheet.hp is None else sheet.hp
        return cls(
            name=sheet.name,
            character_reference=sheet.model_copy(deep=True),
            current_hp=current_hp,
            max_hp=current_hp if sheet.max_hp is None else sheet.max_hp,
            temp_hp=0 if sheet.temp_hp is None else sheet.temp_hp,
            ac=DEFAULT_AC if sheet.ac is None else sheet.ac,
            initiative=initiative,
            is_player=True,
        )

    @classmethod
    def new_npc(cls, name: str, hp: int, ac: int, initiative: int) -> "Combatant":
        """Creates an ad-hoc NPC combatant with full hit points."""
        return cls(
            name=name,
            current_hp=hp,
            max_hp=hp,
            temp_hp=0,
            ac=ac,
            initiative=initiative,
            is_player=False,
        )

    # ============================================================================
    # Properties
    # ============================================================================

    @property
    def combatant_type(self) -> CombatantType:
        return CombatantType.PLAYER if self.is_player else CombatantType.NPC

    def is_unconscious(self) -> bool:
        """Check if the combatant has been brought down to 0 hit points."""
        return self.current_hp == 0

    def is_bloodied(self) -> bool:
        """Check if the combatant is still up with a quarter of its max hp or less."""
        return 0 < self.current_hp <= self.max_hp // 4

    def is_skipped(self) -> bool:
        """Check if the combatant sits in the roster without ever acting (initiative 0)."""
        return self.initiative <= 0

    def matches(self, name: str) -> bool:
        """Check if the given name refers to this combatant, ignoring case."""
        return self.name.lower() == name.strip().lower()

    # ============================================================================
    # Hit points
    # ============================================================================

    def take_damage(self, amount: int, absorb_temp: bool = False) -> int:
        """
        Reduces hit points, never below zero.

        Args:
            amount (int): The damage to apply.
            absorb_temp (bool): Spend temporary hit points first. Defaults to False.

        Returns:
            int: The current hit points actually lost.

        Raises:
            InvalidInputError: If the amount is negative.

        """
        require_non_negative_amount(amount, "Damage")
        if absorb_temp and self.temp_hp > 0:
            absorbed = min(self.temp_hp, amount)
            self.temp_hp -= absorbed
            amount -= absorbed
        before = self.current_hp
        self.current_hp = max(0, self.current_hp - amount)
        return before - self.current_hp

    def heal(self, amount: int) -> int:
        """
        Restores hit points, never above max_hp.

        Args:
            amount (int): The healing to apply.

        Returns:
            int: The hit points actually restored.

        Raises:
            InvalidInputError: If the amount is negative.

        """
        require_non_negative_amount(amount, "Healing")
        before = self.current_hp
        self.current_hp = min(self.max_hp, self.current_hp + amount)
        return self.current_hp - before

    # ============================================================================
    # Status effects
    # ============================================================================

    def add_status(self, effect: StatusEffect) -> StatusEffect | None:
        """
        Adds a status effect, replacing any effect with the same name.

        Args:
            effect (StatusEffect): The effect to add.

        Returns:
            StatusEffect | None: The replaced effect, if there was one.

        """
        previous = self.status_effects.pop(effect.name, None)
        self.status_effects[effect.name] = effect
        return previous

    def remove_status(self, name: str) -> bool:
        """
        Removes a status effect by exact name.

        Returns:
            bool: True if an effect was removed.

        """
        return self.status_effects.pop(name, None) is not None

    def tick_status_effects(self) -> list[StatusEffect]:
        """
        Counts every timed effect down by one round.

        Returns:
            list[StatusEffect]: The effects that ran out and were removed.

        """
        expired = [e for e in self.status_effects.values() if e.tick()]
        for effect in expired:
            del self.status_effects[effect.name]
        return expired
