"""
Combat system module for dmkit.

This module holds the combat turn engine: combatants and their status
effects, the initiative tracker, the event log, the command parser and the
session that runs the attack protocol.
"""

from .combat_tracker import CombatTracker
from .combatant import Combatant
from .commands import Command, parse_command
from .events import CombatEvent, EventLog, EventType
from .session import CombatSession, CommandResult, PendingAttack, SessionState
from .status_effect import StatusEffect

__all__ = [
    # Import from combat_tracker.py
    "CombatTracker",
    # Import from combatant.py
    "Combatant",
    # Import from commands.py
    "Command",
    "parse_command",
    # Import from events.py
    "CombatEvent",
    "EventLog",
    "EventType",
    # Import from session.py
    "CombatSession",
    "CommandResult",
    "PendingAttack",
    "SessionState",
    # Import from status_effect.py
    "StatusEffect",
]
