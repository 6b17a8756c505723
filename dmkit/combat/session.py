"""
Combat session module for dmkit.

The session is the explicit context object a command loop talks to. It owns
the tracker, the loaded character sheets, the command history and the state
of the attack protocol:

    IDLE --attack hits--> AWAITING_DAMAGE --damage / cancel--> IDLE

While a hit is waiting for its damage, every input is read as the damage
amount (a plain number or a dice expression) until it is resolved, cancelled
or the session is quit.
"""

import re
from collections import deque
from collections.abc import Callable
from enum import Enum
from typing import Any

from catchery import log_debug
from pydantic import BaseModel, Field

from dmkit.character.serialization import find_sheet
from dmkit.character.sheet import CharacterSheet
from dmkit.combat.combat_tracker import CombatTracker
from dmkit.combat.combatant import Combatant
from dmkit.combat.commands import (
    AttackCommand,
    CancelCommand,
    Command,
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
from dmkit.combat.events import CombatEvent, EventLog, EventType
from dmkit.combat.status_effect import StatusEffect
from dmkit.core.config import Settings
from dmkit.core.dice_parser import DiceRoll, roll_dice
from dmkit.core.error_handling import (
    CombatError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
_PLAIN_AMOUNT = re.compile(r"^\d+$")

# Inputs accepted while a hit is waiting for its damage.
CANCEL_WORDS = ("cancel", "back")
QUIT_WORDS = ("quit", "exit", "q")


class SessionState(Enum):
    """States of the attack protocol."""

    IDLE = "idle"
    AWAITING_DAMAGE = "awaiting_damage"


class PendingAttack(BaseModel):
    """A hit whose damage has not been entered yet."""

    target_name: str = Field(description="Name of the combatant that was hit.")
    natural: int = Field(description="The d20 as rolled.")
    total: int = Field(description="The d20 plus the attack bonus.")
    critical: str | None = Field(
        default=None,
        description="Critical annotation of the d20, if any.",
    )


class CommandResult(BaseModel):
    """Outcome of one submitted line."""

    command: Any | None = Field(
        default=None,
        description="The parsed command, None for damage input.",
    )
    events: list[CombatEvent] = Field(
        default_factory=list,
        description="Events emitted while handling the input, in order.",
    )
    error: str | None = Field(
        default=None,
        description="Message of the rejected input, None on success.",
    )
    combatant: Combatant | None = Field(
        default=None,
        description="The combatant the command was about, for display.",
    )

    @property
    def ok(self) -> bool:
        return self.error is None


def roll_initiative(sheet: CharacterSheet) -> tuple[int, DiceRoll]:
    """
    Rolls initiative for a character sheet as d20 + DEX modifier.

    Returns:
        tuple[int, DiceRoll]: The initiative and the d20 roll it came from.

    """
    roll = roll_dice("1d20")
    return roll.natural + sheet.DEX, roll


class CombatSession:
    """
    Dispatches combat commands against a tracker.

    Attributes:
        tracker (CombatTracker): The roster being played.
        sheets (dict[str, CharacterSheet]): Sheets available to `insert`.
        settings (Settings): Session settings.
        state (SessionState): Current attack protocol state.
        pending_attack (PendingAttack | None): Set while awaiting damage.
        history (deque[str]): The most recent submitted lines.
        active (bool): False once the session has been quit.
    """

    def __init__(
        self,
        tracker: CombatTracker,
        sheets: dict[str, CharacterSheet] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.tracker = tracker
        self.sheets: dict[str, CharacterSheet] = sheets or {}
        self.state = SessionState.IDLE
        self.pending_attack: PendingAttack | None = None
        self.history: deque[str] = deque(maxlen=self.settings.history_size)
        self.active = True
        self._handlers: dict[type, Callable[[Any], Combatant | None]] = {
            AttackCommand: self._attack,
            DamageCommand: self._damage,
            HealCommand: self._heal,
            NextTurnCommand: self._next_turn,
            PreviousTurnCommand: self._previous_turn,
            ShowCommand: self._show,
            StatsCommand: self._stats,
            StatusAddCommand: self._status_add,
            StatusRemoveCommand: self._status_remove,
            StatusListCommand: self._status_list,
            SaveCommand: self._save,
            InsertCommand: self._insert,
            RemoveCommand: self._remove,
            RollCommand: self._roll,
            HelpCommand: self._show,
            QuitCommand: self._quit,
            CancelCommand: self._cancel,
        }

    @property
    def events(self) -> EventLog:
        return self.tracker.events

    def is_awaiting_damage(self) -> bool:
        return self.state is SessionState.AWAITING_DAMAGE

    # ============================================================================
    # Entry points
    # ============================================================================

    def start(self) -> CommandResult:
        """Hands the first turn out, as if "next" had been typed."""
        return self._run(NextTurnCommand(), lambda: self.execute(NextTurnCommand()))

    def submit(self, text: str) -> CommandResult:
        """
        Handles one line of input.

        Errors never escape: a rejected line is reported in the result and
        leaves the roster and the turn cursor as they were.

        Args:
            text (str): The raw input line.

        Returns:
            CommandResult: The emitted events, or the error message.

        """
        text = text.strip()
        if text:
            self.history.append(text)

        if self.is_awaiting_damage():
            word = text.lower()
            if word in CANCEL_WORDS:
                command: Command = CancelCommand()
            elif word in QUIT_WORDS:
                command = QuitCommand()
            else:
                return self._run(None, lambda: self.resolve_damage(text))
            return self._run(command, lambda: self.execute(command))

        try:
            command = parse_command(text)
        except CombatError as e:
            log_debug("Rejected command", {"input": text, "error": e.message})
            return CommandResult(events=self.events.drain(), error=e.message)
        return self._run(command, lambda: self.execute(command))

    def execute(self, command: Command) -> Combatant | None:
        """
        Executes a parsed command.

        Args:
            command (Command): The command to run.

        Returns:
            Combatant | None: The combatant the command was about, if any.

        Raises:
            InvalidStateError: If a hit is waiting for damage and the command
                is neither a cancel nor a quit.
            CombatError: Whatever the command handler raises.

        """
        if self.is_awaiting_damage() and not isinstance(
            command, (CancelCommand, QuitCommand)
        ):
            raise InvalidStateError(
                "Enter the damage for the pending attack first, or 'cancel'"
            )
        return self._handlers[type(command)](command)

    def _run(
        self, command: Command | None, action: Callable[[], Combatant | None]
    ) -> CommandResult:
        try:
            combatant = action()
        except CombatError as e:
            log_debug(
                "Rejected command",
                {"command": type(command).__name__, "error": e.message},
            )
            return CommandResult(
                command=command, events=self.events.drain(), error=e.message
            )
        return CommandResult(
            command=command, events=self.events.drain(), combatant=combatant
        )

    # ============================================================================
    # Attack protocol
    # ============================================================================

    def _attack(self, command: AttackCommand) -> Combatant:
        target = self.tracker.require_combatant(command.target)
        roll = roll_dice("1d20")
        natural = roll.natural
        total = natural + command.bonus
        bonus_text = f" {command.bonus:+d}" if command.bonus else ""
        self.events.emit(
            EventType.ATTACK_ROLL,
            f"Attack Roll: {total} (d20: {natural}{bonus_text}) vs AC {target.ac}",
            target.name,
            natural=natural,
            total=total,
            ac=target.ac,
        )
        if roll.critical:
            self.events.emit(EventType.CRITICAL, roll.critical, target.name)

        if total < target.ac:
            self.events.emit(
                EventType.ATTACK_MISS,
                "MISS! The attack fails to connect.",
                target.name,
            )
            return target

        self.pending_attack = PendingAttack(
            target_name=target.name,
            natural=natural,
            total=total,
            critical=roll.critical,
        )
        self.state = SessionState.AWAITING_DAMAGE
        self.events.emit(
            EventType.ATTACK_HIT, "HIT! The attack connects!", target.name
        )
        self.events.emit(
            EventType.AWAITING_DAMAGE,
            f"Enter damage for {target.name} (amount or dice, 'cancel' to drop):",
            target.name,
        )
        return target

    def resolve_damage(self, text: str) -> Combatant:
        """
        Applies the damage of the pending attack.

        Args:
            text (str): A non-negative amount or a dice expression.

        Returns:
            Combatant: The damaged combatant.

        Raises:
            InvalidStateError: If no attack is pending, or the input is
                neither an amount nor a dice expression (the attack stays
                pending).
            NotFoundError: If the target left the roster (the attack is dropped).

        """
        pending = self.pending_attack
        if pending is None:
            raise InvalidStateError("No attack is waiting for damage")
        if self.tracker.get_combatant(pending.target_name) is None:
            self._clear_pending()
            raise NotFoundError(
                f"Target '{pending.target_name}' is no longer in combat"
            )
        try:
            amount = self._resolve_amount(text)
        except InvalidInputError:
            raise InvalidStateError(
                f"Invalid damage amount '{text}'. "
                "Enter a number or a dice expression, or 'cancel'"
            ) from None
        target = self.tracker.apply_damage(pending.target_name, amount)
        self._clear_pending()
        return target

    def _cancel(self, command: CancelCommand) -> None:
        if self.pending_attack is None:
            raise InvalidStateError("No pending attack to cancel")
        self.events.emit(
            EventType.ATTACK_CANCELLED,
            f"Damage against {self.pending_attack.target_name} cancelled",
            self.pending_attack.target_name,
        )
        self._clear_pending()

    def _clear_pending(self) -> None:
        self.pending_attack = None
        self.state = SessionState.IDLE

    def _resolve_amount(self, text: str) -> int:
        """
        Reads a plain non-negative amount, falling back to a dice expression.

        Raises:
            InvalidInputError: If the text is neither.

        """
        text = text.strip()
        if _PLAIN_AMOUNT.match(text):
            return int(text)
        roll = roll_dice(text)
        self.events.emit(
            EventType.DICE_ROLLED,
            f"Rolled {roll.describe()}",
            rolls=roll.rolls,
            total=roll.total,
        )
        return roll.total

    # ============================================================================
    # Hit points
    # ============================================================================

    def _damage(self, command: DamageCommand) -> Combatant:
        target = self.tracker.require_combatant(command.target)
        amount = self._resolve_amount(command.amount)
        return self.tracker.apply_damage(target.name, amount)

    def _heal(self, command: HealCommand) -> Combatant:
        target = self.tracker.require_combatant(command.target)
        amount = self._resolve_amount(command.amount)
        return self.tracker.apply_heal(target.name, amount)

    # ============================================================================
    # Turn order
    # ============================================================================

    def _next_turn(self, command: NextTurnCommand) -> Combatant | None:
        combatant = self.tracker.next_turn()
        if combatant is None:
            self.events.emit(EventType.INFO, "No combatants available for turns")
            return None
        self.events.emit(
            EventType.TURN_START,
            f"It's {combatant.name}'s turn!",
            combatant.name,
            round=self.tracker.round_number,
        )
        return combatant

    def _previous_turn(self, command: PreviousTurnCommand) -> Combatant | None:
        combatant = self.tracker.previous_turn()
        if combatant is None:
            self.events.emit(EventType.INFO, "Cannot go back further")
            return None
        self.events.emit(
            EventType.TURN_START,
            f"Going back to {combatant.name}'s turn!",
            combatant.name,
            round=self.tracker.round_number,
        )
        return combatant

    def _show(self, command: ShowCommand | HelpCommand) -> None:
        # Rendering only, left to the interface.
        return None

    def _stats(self, command: StatsCommand) -> Combatant:
        return self.tracker.require_combatant(command.target or "self")

    def _insert(self, command: InsertCommand) -> Combatant:
        if self.tracker.get_combatant(command.name) is not None:
            raise InvalidInputError(f"{command.name} is already in combat")
        if command.is_npc:
            combatant = Combatant.new_npc(
                command.name, command.hp, command.ac, command.initiative or 0
            )
        else:
            sheet = find_sheet(self.sheets, command.name)
            if sheet is None:
                raise NotFoundError(
                    f"No saved character named '{command.name}'. "
                    "Use: insert <name> <hp> <ac> <initiative>"
                )
            initiative = command.initiative
            if initiative is None:
                initiative, roll = roll_initiative(sheet)
                self.events.emit(
                    EventType.DICE_ROLLED,
                    f"Rolled initiative for {sheet.name}: "
                    f"d20 ({roll.natural}) {sheet.DEX:+d} = {initiative}",
                    sheet.name,
                    natural=roll.natural,
                    total=initiative,
                )
            combatant = Combatant.from_sheet(sheet, initiative)
        self.tracker.add_combatant(combatant)
        return combatant

    def _remove(self, command: RemoveCommand) -> None:
        if not self.tracker.remove_combatant(command.name):
            raise NotFoundError(f"Could not find {command.name} in combat")

    # ============================================================================
    # Status effects and saving throws
    # ============================================================================

    def _split_status_target(self, target: str, status: str) -> tuple[str, str]:
        """
        Widens a one-word target with leading status words while the longer
        name is in the roster, so "Goblin Boss Prone" targets "Goblin Boss".
        """
        words = status.split()
        for size in range(len(words) - 1, 0, -1):
            candidate = " ".join([target, *words[:size]])
            if self.tracker.get_combatant(candidate) is not None:
                return candidate, " ".join(words[size:])
        return target, status

    def _status_add(self, command: StatusAddCommand) -> Combatant:
        target, status = self._split_status_target(command.target, command.status)
        effect = StatusEffect(name=status, duration=command.duration)
        return self.tracker.add_status(target, effect)

    def _status_remove(self, command: StatusRemoveCommand) -> Combatant:
        name, status = self._split_status_target(command.target, command.status)
        target = self.tracker.require_combatant(name)
        if not self.tracker.remove_status(target.name, status):
            raise NotFoundError(f"Status '{status}' not found on {target.name}")
        return target

    def _status_list(self, command: StatusListCommand) -> Combatant | None:
        if command.target is None:
            affected = [c for c in self.tracker.combatants if c.status_effects]
            if not affected:
                self.events.emit(EventType.STATUS_LIST, "No active status effects")
                return None
            self.events.emit(EventType.STATUS_LIST, "Status Effects Summary:")
            for combatant in affected:
                self.events.emit(
                    EventType.STATUS_LIST,
                    f"  {combatant.name}: {', '.join(combatant.status_effects)}",
                    combatant.name,
                )
            return None

        target = self.tracker.require_combatant(command.target)
        if not target.status_effects:
            self.events.emit(
                EventType.STATUS_LIST,
                f"{target.name} has no status effects",
                target.name,
            )
            return target
        self.events.emit(
            EventType.STATUS_LIST, f"Status effects for {target.name}:", target.name
        )
        for effect in target.status_effects.values():
            self.events.emit(
                EventType.STATUS_LIST,
                f"  • {effect.name} {effect.duration_text}",
                target.name,
                status=effect.name,
                duration=effect.duration,
            )
        return target

    def _save(self, command: SaveCommand) -> Combatant:
        target = self.tracker.require_combatant(command.target)
        modifier = 0
        if target.character_reference is not None:
            modifier = target.character_reference.get_ability_modifier(command.ability)
        roll = roll_dice("1d20")
        total = roll.natural + modifier
        self.events.emit(
            EventType.SAVING_THROW,
            f"{target.name} makes a {command.ability.display_name} saving throw: "
            f"{total} (d20: {roll.natural}, modifier: {modifier:+d})",
            target.name,
            ability=command.ability.short_name,
            natural=roll.natural,
            modifier=modifier,
            total=total,
        )
        if roll.critical:
            self.events.emit(EventType.CRITICAL, roll.critical, target.name)
        return target

    # ============================================================================
    # Misc
    # ============================================================================

    def _roll(self, command: RollCommand) -> None:
        roll = roll_dice(command.expression)
        self.events.emit(
            EventType.DICE_ROLLED,
            f"Rolled {roll.describe()}",
            rolls=roll.rolls,
            total=roll.total,
        )
        if roll.critical:
            self.events.emit(EventType.CRITICAL, roll.critical)

    def _quit(self, command: QuitCommand) -> None:
        self._clear_pending()
        self.active = False
        self.events.emit(EventType.INFO, "Exiting combat mode...")
