"""
Combat tracker module for dmkit.

The tracker owns the initiative-ordered roster, the turn cursor and the round
counter. It never prints: everything worth telling the table is emitted into
its EventLog.
"""

from catchery import log_debug

from dmkit.combat.combatant import Combatant
from dmkit.combat.events import EventLog, EventType
from dmkit.combat.status_effect import StatusEffect
from dmkit.core.error_handling import (
    InvalidStateError,
    NotFoundError,
    require_non_negative_amount,
)

# Target keyword resolving to the combatant whose turn it is.
SELF_TARGET = "self"


class CombatTracker:
    """
    Ordered roster of combatants with a turn cursor and a round counter.

    Attributes:
        combatants (list[Combatant]): The roster, sorted by initiative descending.
        current_turn (int): Index of the next combatant to be handed its turn.
        round_number (int): The current round, starting at 1.
        active (Combatant | None): The combatant last handed its turn.
        events (EventLog): Where notifications are emitted.
    """

    def __init__(
        self,
        events: EventLog | None = None,
        expire_status_effects: bool = False,
        temp_hp_absorbs_damage: bool = False,
    ) -> None:
        self.combatants: list[Combatant] = []
        self.current_turn: int = 0
        self.round_number: int = 1
        self.active: Combatant | None = None
        self.events: EventLog = events if events is not None else EventLog()
        self.expire_status_effects = expire_status_effects
        self.temp_hp_absorbs_damage = temp_hp_absorbs_damage

    def __len__(self) -> int:
        return len(self.combatants)

    # ============================================================================
    # Roster management
    # ============================================================================

    def add_combatant(self, combatant: Combatant) -> None:
        """
        Adds a combatant and re-sorts the roster by initiative.

        The sort is stable, so combatants with equal initiative keep their
        insertion order. The turn cursor goes back to the top of the order.

        Args:
            combatant (Combatant): The combatant to add.

        """
        self.combatants.append(combatant)
        self.combatants.sort(key=lambda c: c.initiative, reverse=True)
        self.current_turn = 0
        log_debug(
            f"Added {combatant.name} to the roster",
            {"initiative": combatant.initiative, "size": len(self.combatants)},
        )
        self.events.emit(
            EventType.COMBATANT_ADDED,
            f"Added {combatant.name} with initiative {combatant.initiative}",
            combatant.name,
            initiative=combatant.initiative,
        )

    def remove_combatant(self, name: str) -> bool:
        """
        Removes the first combatant matching the name, ignoring case.

        The cursor is only touched when it falls past the end of the roster,
        in which case it goes back to 0.

        Args:
            name (str): The name of the combatant to remove.

        Returns:
            bool: True if a combatant was removed.

        """
        for index, combatant in enumerate(self.combatants):
            if combatant.matches(name):
                break
        else:
            return False
        del self.combatants[index]
        if self.current_turn >= len(self.combatants):
            self.current_turn = 0
        if self.active is combatant:
            self.active = None
        log_debug(
            f"Removed {combatant.name} from the roster",
            {"index": index, "current_turn": self.current_turn},
        )
        self.events.emit(
            EventType.COMBATANT_REMOVED,
            f"Removed {combatant.name} from combat",
            combatant.name,
        )
        return True

    def get_combatant(self, name: str) -> Combatant | None:
        """
        Finds a combatant by name, ignoring case.

        The returned object is the one held by the roster, so changes made to
        it are changes to the combat.
        """
        for combatant in self.combatants:
            if combatant.matches(name):
                return combatant
        return None

    def require_combatant(self, name: str) -> Combatant:
        """
        Resolves a target name, including the "self" keyword.

        Args:
            name (str): A combatant name, or "self" for the active combatant.

        Returns:
            Combatant: The matching combatant.

        Raises:
            InvalidStateError: If "self" is used before anyone had a turn.
            NotFoundError: If no combatant has that name.

        """
        if name.strip().lower() == SELF_TARGET:
            if self.active is None:
                raise InvalidStateError("No combatant has the turn yet")
            return self.active
        combatant = self.get_combatant(name)
        if combatant is None:
            raise NotFoundError(f"Combatant '{name}' not found in combat")
        return combatant

    # ============================================================================
    # Turn advancement
    # ============================================================================

    def next_turn(self) -> Combatant | None:
        """
        Hands the turn to the next acting combatant.

        Combatants with initiative 0 stay in the roster but are passed over.
        Every time the cursor wraps back to the top a new round starts, also
        when the wrap happens while passing over a skipped combatant.

        Returns:
            Combatant | None: The combatant whose turn it now is, or None if
                the roster is empty or nobody in it acts.

        """
        count = len(self.combatants)
        for _ in range(count):
            combatant = self.combatants[self.current_turn]
            self.current_turn = (self.current_turn + 1) % count
            if self.current_turn == 0:
                self._start_round(self.round_number + 1)
            if not combatant.is_skipped():
                self.active = combatant
                log_debug(
                    f"Turn of {combatant.name}",
                    {"round": self.round_number, "current_turn": self.current_turn},
                )
                return combatant
        return None

    def previous_turn(self) -> Combatant | None:
        """
        Moves the turn cursor back by one slot.

        Going back past the top of the order rewinds the round counter, which
        never drops below 1. Skipped combatants are not jumped over.

        Returns:
            Combatant | None: The combatant now under the cursor, or None if
                the roster is empty.

        """
        if not self.combatants:
            return None
        if self.current_turn == 0:
            self.current_turn = len(self.combatants) - 1
            if self.round_number > 1:
                self.round_number -= 1
                self.events.emit(
                    EventType.ROUND_REWOUND,
                    f"Going back to Round {self.round_number}",
                    round=self.round_number,
                )
        else:
            self.current_turn -= 1
        self.active = self.combatants[self.current_turn]
        return self.active

    def _start_round(self, round_number: int) -> None:
        self.round_number = round_number
        log_debug("New round", {"round": round_number})
        self.events.emit(
            EventType.ROUND_START,
            f"Round {round_number} begins!",
            round=round_number,
        )
        if not self.expire_status_effects:
            return
        for combatant in self.combatants:
            for effect in combatant.tick_status_effects():
                self.events.emit(
                    EventType.STATUS_EXPIRED,
                    f"{effect.name} on {combatant.name} has worn off",
                    combatant.name,
                    status=effect.name,
                )

    # ============================================================================
    # Hit points
    # ============================================================================

    def apply_damage(self, name: str, amount: int) -> Combatant:
        """
        Deals damage to a combatant, whatever the turn order.

        Args:
            name (str): The target, or "self".
            amount (int): Non-negative amount of damage.

        Returns:
            Combatant: The damaged combatant.

        Raises:
            NotFoundError: If the target does not exist.
            InvalidInputError: If the amount is negative.

        """
        require_non_negative_amount(amount, "Damage")
        target = self.require_combatant(name)
        before = target.current_hp
        target.take_damage(amount, absorb_temp=self.temp_hp_absorbs_damage)
        message = (
            f"{target.name} takes {amount} damage! "
            f"HP: {before} → {target.current_hp}/{target.max_hp}"
        )
        if target.is_bloodied():
            message += " 🩸 Bloodied"
        self.events.emit(
            EventType.DAMAGE_APPLIED,
            message,
            target.name,
            amount=amount,
            hp_before=before,
            hp=target.current_hp,
            bloodied=target.is_bloodied(),
        )
        if target.is_unconscious():
            self.events.emit(
                EventType.UNCONSCIOUS,
                f"{target.name} is unconscious/dead!",
                target.name,
            )
        return target

    def apply_heal(self, name: str, amount: int) -> Combatant:
        """
        Heals a combatant, never above its maximum hit points.

        Raises:
            NotFoundError: If the target does not exist.
            InvalidInputError: If the amount is negative.

        """
        require_non_negative_amount(amount, "Healing")
        target = self.require_combatant(name)
        before = target.current_hp
        target.heal(amount)
        self.events.emit(
            EventType.HEALED,
            f"{target.name} heals {amount} HP! "
            f"HP: {before} → {target.current_hp}/{target.max_hp}",
            target.name,
            amount=amount,
            hp_before=before,
            hp=target.current_hp,
        )
        return target

    # ============================================================================
    # Status effects
    # ============================================================================

    def add_status(self, name: str, effect: StatusEffect) -> Combatant:
        """
        Attaches a status effect, replacing one with the same name.

        Raises:
            NotFoundError: If the target does not exist.

        """
        target = self.require_combatant(name)
        target.add_status(effect)
        self.events.emit(
            EventType.STATUS_ADDED,
            f"Added {effect.name} {effect.duration_text} to {target.name}",
            target.name,
            status=effect.name,
            duration=effect.duration,
        )
        return target

    def remove_status(self, name: str, status_name: str) -> bool:
        """
        Removes a status effect by exact name.

        Args:
            name (str): The target, or "self".
            status_name (str): The effect to remove.

        Returns:
            bool: True if the effect was present and got removed.

        Raises:
            NotFoundError: If the target does not exist.

        """
        target = self.require_combatant(name)
        removed = target.remove_status(status_name)
        if removed:
            self.events.emit(
                EventType.STATUS_REMOVED,
                f"Removed {status_name} from {target.name}",
                target.name,
                status=status_name,
            )
        return removed
