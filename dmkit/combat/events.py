"""
Event system module for dmkit.

Everything the combat engine has to tell the table (a new round, a hit, a
combatant going down) is emitted as a CombatEvent into an EventLog. The order
of events is part of the engine's contract; how they are printed is left to
the interface.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(Enum):
    """Enumeration of available event types."""

    COMBATANT_ADDED = "combatant_added"  # A combatant joined the roster
    COMBATANT_REMOVED = "combatant_removed"  # A combatant left the roster

    ROUND_START = "round_start"  # The turn cursor wrapped to the top
    ROUND_REWOUND = "round_rewound"  # Going back crossed a round boundary
    TURN_START = "turn_start"  # A combatant was handed its turn

    ATTACK_ROLL = "attack_roll"  # The d20 of an attack was rolled
    CRITICAL = "critical"  # Natural 1 or 20 on a single d20
    ATTACK_HIT = "attack_hit"  # The attack roll met the target's AC
    ATTACK_MISS = "attack_miss"  # The attack roll fell short
    AWAITING_DAMAGE = "awaiting_damage"  # The next input is damage
    ATTACK_CANCELLED = "attack_cancelled"  # The pending damage was dropped

    DAMAGE_APPLIED = "damage_applied"  # Hit points were lost
    HEALED = "healed"  # Hit points were restored
    UNCONSCIOUS = "unconscious"  # Hit points reached zero

    STATUS_ADDED = "status_added"
    STATUS_REMOVED = "status_removed"
    STATUS_EXPIRED = "status_expired"
    STATUS_LIST = "status_list"

    SAVING_THROW = "saving_throw"
    DICE_ROLLED = "dice_rolled"
    INFO = "info"  # Anything else worth showing

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this event type."""
        return {
            EventType.COMBATANT_ADDED: "✅",
            EventType.COMBATANT_REMOVED: "🗑️",
            EventType.ROUND_START: "🔄",
            EventType.ROUND_REWOUND: "🔄",
            EventType.TURN_START: "🎯",
            EventType.ATTACK_ROLL: "⚔️",
            EventType.CRITICAL: "🎲",
            EventType.ATTACK_HIT: "💥",
            EventType.ATTACK_MISS: "🛡️",
            EventType.AWAITING_DAMAGE: "🎲",
            EventType.ATTACK_CANCELLED: "↩️",
            EventType.DAMAGE_APPLIED: "❤️",
            EventType.HEALED: "💚",
            EventType.UNCONSCIOUS: "💀",
            EventType.STATUS_ADDED: "🎭",
            EventType.STATUS_REMOVED: "🎭",
            EventType.STATUS_EXPIRED: "⌛",
            EventType.STATUS_LIST: "📋",
            EventType.SAVING_THROW: "🎲",
            EventType.DICE_ROLLED: "🎲",
        }.get(self, "•")

    @property
    def color(self) -> str:
        """Returns the color string associated with this event type."""
        return {
            EventType.ROUND_START: "bold cyan",
            EventType.ROUND_REWOUND: "cyan",
            EventType.TURN_START: "bold yellow",
            EventType.CRITICAL: "bold magenta",
            EventType.ATTACK_HIT: "bold green",
            EventType.ATTACK_MISS: "bold red",
            EventType.DAMAGE_APPLIED: "red",
            EventType.HEALED: "green",
            EventType.UNCONSCIOUS: "bold red",
            EventType.STATUS_EXPIRED: "dim white",
        }.get(self, "white")


class CombatEvent(BaseModel):
    """A single notification emitted by the combat engine."""

    event_type: EventType = Field(
        description="The type of event.",
    )
    message: str = Field(
        description="Human readable description of what happened.",
    )
    combatant: str | None = Field(
        default=None,
        description="Name of the combatant the event is about, if any.",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Structured details (rolls, hit points, round number, ...).",
    )

    def __str__(self) -> str:
        return f"{self.event_type.emoji} {self.message}"


class EventLog:
    """
    Collects the events emitted by the engine, in order.
    """

    def __init__(self) -> None:
        self.events: list[CombatEvent] = []

    def emit(
        self,
        event_type: EventType,
        message: str,
        combatant: str | None = None,
        **data: Any,
    ) -> CombatEvent:
        """
        Records a new event.

        Args:
            event_type (EventType): The kind of event.
            message (str): Human readable description.
            combatant (str | None): The combatant the event is about.
            **data: Structured details stored on the event.

        Returns:
            CombatEvent: The recorded event.

        """
        event = CombatEvent(
            event_type=event_type,
            message=message,
            combatant=combatant,
            data=data,
        )
        self.events.append(event)
        return event

    def drain(self) -> list[CombatEvent]:
        """Returns all recorded events and clears the log."""
        events, self.events = self.events, []
        return events

    def types(self) -> list[EventType]:
        """Returns the types of the recorded events, in order."""
        return [event.event_type for event in self.events]

    def messages(self) -> list[str]:
        """Returns the messages of the recorded events, in order."""
        return [event.message for event in self.events]

    def __len__(self) -> int:
        return len(self.events)
