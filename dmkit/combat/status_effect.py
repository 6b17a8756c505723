"""
Status effect module for dmkit.

A status effect is a named condition (Poisoned, Blessed, Prone, ...) pinned to
a combatant, optionally with a number of rounds left.
"""

from typing import Any

from pydantic import BaseModel, Field


class StatusEffect(BaseModel):
    """
    A named, optionally timed condition attached to a combatant.

    A combatant holds at most one effect per name; adding an effect with a
    name that is already present replaces the old one.
    """

    name: str = Field(
        min_length=1,
        description="The name of the effect, unique per combatant.",
    )
    description: str | None = Field(
        default=None,
        description="A brief description of the effect.",
    )
    duration: int | None = Field(
        default=None,
        description="Remaining duration in rounds, None for permanent effects.",
    )

    def model_post_init(self, _: Any) -> None:
        """Validates fields after model initialization."""
        self.name = self.name.strip()
        if not self.name:
            raise ValueError("name must be a non-empty string")
        if self.duration is not None and self.duration < 0:
            raise ValueError("Duration must be a non-negative integer or None.")

    def is_permanent(self) -> bool:
        """Check if the effect is permanent (i.e., has no duration limit)."""
        return self.duration is None

    def tick(self) -> bool:
        """
        Counts the effect down by one round.

        Returns:
            bool: True if the effect has run out, False otherwise. Permanent
                effects never run out.

        """
        if self.duration is None:
            return False
        self.duration = max(0, self.duration - 1)
        return self.duration == 0

    @property
    def duration_text(self) -> str:
        """Human readable duration, e.g. "(3 rounds)" or "(permanent)"."""
        if self.duration is None:
            return "(permanent)"
        unit = "round" if self.duration == 1 else "rounds"
        return f"({self.duration} {unit})"
