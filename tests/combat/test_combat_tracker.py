"""
Tests for the combat tracker: roster ordering, turn advancement, hit points
and status effects.
"""

import pytest

from dmkit.combat.combat_tracker import CombatTracker
from dmkit.combat.combatant import Combatant
from dmkit.combat.events import EventType
from dmkit.combat.status_effect import StatusEffect
from dmkit.core.error_handling import InvalidInputError, InvalidStateError, NotFoundError


def npc(name: str, initiative: int, hp: int = 10, ac: int = 10) -> Combatant:
    return Combatant.new_npc(name, hp=hp, ac=ac, initiative=initiative)


@pytest.fixture
def tracker():
    return CombatTracker()


@pytest.fixture
def fighter_and_goblin(tracker):
    tracker.add_combatant(npc("Fighter", 15, hp=30, ac=16))
    tracker.add_combatant(npc("Goblin", 10, hp=7, ac=13))
    tracker.events.drain()
    return tracker


def names(tracker: CombatTracker) -> list[str]:
    return [c.name for c in tracker.combatants]


# ============================================================================
# Roster management
# ============================================================================


def test_add_sorts_by_initiative_descending(tracker):
    """Test that the roster is kept in initiative order."""
    tracker.add_combatant(npc("Slow", 3))
    tracker.add_combatant(npc("Fast", 20))
    tracker.add_combatant(npc("Middle", 12))
    assert names(tracker) == ["Fast", "Middle", "Slow"]


def test_add_is_stable_for_ties(tracker):
    """Test that equal initiatives keep their insertion order."""
    tracker.add_combatant(npc("A", 10))
    tracker.add_combatant(npc("B", 15))
    tracker.add_combatant(npc("C", 10))
    tracker.add_combatant(npc("D", 10))
    assert names(tracker) == ["B", "A", "C", "D"]


def test_add_resets_cursor(fighter_and_goblin):
    """Test that adding a combatant sends the cursor back to the top."""
    tracker = fighter_and_goblin
    tracker.next_turn()
    assert tracker.current_turn == 1
    tracker.add_combatant(npc("Orc", 1))
    assert tracker.current_turn == 0


def test_add_emits_event(tracker):
    """Test the roster change notification."""
    tracker.add_combatant(npc("Orc", 5))
    assert tracker.events.types() == [EventType.COMBATANT_ADDED]


def test_get_combatant_ignores_case(fighter_and_goblin):
    """Test the case-insensitive lookup returning the live object."""
    goblin = fighter_and_goblin.get_combatant("goblin")
    assert goblin is fighter_and_goblin.combatants[1]
    assert fighter_and_goblin.get_combatant("Dragon") is None


def test_remove_ignores_case(fighter_and_goblin):
    """Test removal by case-insensitive name."""
    assert fighter_and_goblin.remove_combatant("GOBLIN")
    assert names(fighter_and_goblin) == ["Fighter"]
    assert fighter_and_goblin.events.types() == [EventType.COMBATANT_REMOVED]


def test_remove_nonexistent_changes_nothing(fighter_and_goblin):
    """Removing an unknown name leaves roster and cursor alone."""
    tracker = fighter_and_goblin
    tracker.next_turn()
    before = (names(tracker), tracker.current_turn, tracker.round_number)
    assert tracker.remove_combatant("NonExistent") is False
    assert (names(tracker), tracker.current_turn, tracker.round_number) == before
    assert len(tracker.events) == 0


def test_remove_removes_only_one_match(tracker):
    """Test that at most one entry is removed."""
    tracker.add_combatant(npc("Twin", 10))
    tracker.add_combatant(npc("twin", 5))
    assert tracker.remove_combatant("TWIN")
    assert names(tracker) == ["twin"]


def test_remove_resets_cursor_only_when_out_of_range(tracker):
    """Test that the cursor is not shifted to follow the removed entry."""
    for name, initiative in (("A", 20), ("B", 15), ("C", 10)):
        tracker.add_combatant(npc(name, initiative))
    tracker.next_turn()
    tracker.next_turn()
    assert tracker.current_turn == 2
    # The cursor does not follow the removed entry, so B acts again.
    tracker.remove_combatant("A")
    assert tracker.current_turn == 0
    assert tracker.next_turn().name == "B"


def test_remove_keeps_cursor_in_range(tracker):
    """Test that the cursor stays put while it is still valid."""
    for name, initiative in (("A", 20), ("B", 15), ("C", 10)):
        tracker.add_combatant(npc(name, initiative))
    tracker.next_turn()
    assert tracker.current_turn == 1
    tracker.remove_combatant("C")
    assert tracker.current_turn == 1
    assert tracker.next_turn().name == "B"


def test_remove_last_combatant(tracker):
    """Test emptying the roster."""
    tracker.add_combatant(npc("Solo", 10))
    tracker.next_turn()
    assert tracker.remove_combatant("Solo")
    assert tracker.combatants == []
    assert tracker.current_turn == 0
    assert tracker.active is None
    assert tracker.next_turn() is None


# ============================================================================
# Turn advancement
# ============================================================================


def test_fighter_goblin_turn_order(fighter_and_goblin):
    """Two acting combatants alternate, and the wrap starts round 2."""
    tracker = fighter_and_goblin
    assert tracker.next_turn().name == "Fighter"
    assert tracker.round_number == 1
    assert tracker.next_turn().name == "Goblin"
    third = tracker.next_turn()
    assert third.name == "Fighter"
    assert tracker.round_number == 2


def test_next_turn_returns_live_combatant(fighter_and_goblin):
    """Test that the returned combatant is the one in the roster."""
    combatant = fighter_and_goblin.next_turn()
    assert combatant is fighter_and_goblin.combatants[0]
    assert fighter_and_goblin.active is combatant


def test_next_turn_on_empty_roster(tracker):
    """Test that an empty roster has no next turn and no round change."""
    assert tracker.next_turn() is None
    assert tracker.round_number == 1
    assert len(tracker.events) == 0


def test_zero_initiative_is_never_returned(tracker):
    """An inactive combatant is passed over and the round still counts once."""
    tracker.add_combatant(npc("Inactive", 0))
    tracker.add_combatant(npc("Active", 10))
    tracker.events.drain()
    assert tracker.next_turn().name == "Active"
    assert tracker.next_turn().name == "Active"
    assert tracker.round_number == 2
    assert tracker.events.types().count(EventType.ROUND_START) == 1


def test_skipped_combatants_never_returned_over_many_turns(tracker):
    """Test that every acting combatant gets one turn per cycle."""
    for name, initiative in (("A", 18), ("Statue", 0), ("B", 12), ("C", 5), ("Wall", 0)):
        tracker.add_combatant(npc(name, initiative))
    returned = [tracker.next_turn().name for _ in range(9)]
    assert returned == ["A", "B", "C"] * 3
    assert tracker.round_number == 3


def test_round_increments_once_per_wrap(tracker):
    """Test that passing over several skip-sentinels counts one round."""
    tracker.add_combatant(npc("Hero", 10))
    for name in ("S1", "S2", "S3"):
        tracker.add_combatant(npc(name, 0))
    for expected_round in range(1, 6):
        assert tracker.next_turn().name == "Hero"
        assert tracker.round_number == expected_round


def test_all_skipped_has_no_next_turn(tracker):
    """Test a roster made only of skip-sentinels."""
    tracker.add_combatant(npc("Statue", 0))
    tracker.add_combatant(npc("Wall", 0))
    assert tracker.next_turn() is None
    assert tracker.round_number == 2
    assert tracker.current_turn == 0


def test_single_combatant_repeats_every_round(tracker):
    """A roster of one acting combatant starts a new round on every turn."""
    tracker.add_combatant(npc("Solo", 10))
    for expected_round in (2, 3, 4):
        assert tracker.next_turn().name == "Solo"
        assert tracker.round_number == expected_round


def test_round_start_event(fighter_and_goblin):
    """Test the round-start notification."""
    tracker = fighter_and_goblin
    tracker.next_turn()
    tracker.next_turn()
    events = tracker.events.drain()
    assert [e.event_type for e in events] == [EventType.ROUND_START]
    assert events[0].message == "Round 2 begins!"
    assert events[0].data["round"] == 2


def test_previous_turn(fighter_and_goblin):
    """Test moving the cursor back within a round."""
    tracker = fighter_and_goblin
    tracker.next_turn()
    assert tracker.previous_turn().name == "Fighter"
    assert tracker.current_turn == 0
    assert tracker.round_number == 1
    assert tracker.next_turn().name == "Fighter"


def test_previous_turn_rewinds_round(fighter_and_goblin):
    """Test going back across a round boundary."""
    tracker = fighter_and_goblin
    tracker.next_turn()
    tracker.next_turn()
    assert tracker.round_number == 2
    tracker.events.drain()
    assert tracker.previous_turn().name == "Goblin"
    assert tracker.round_number == 1
    assert tracker.events.types() == [EventType.ROUND_REWOUND]


def test_previous_turn_never_goes_below_round_one(fighter_and_goblin):
    """Test that the first round cannot be rewound."""
    tracker = fighter_and_goblin
    assert tracker.previous_turn().name == "Goblin"
    assert tracker.round_number == 1
    assert len(tracker.events) == 0


def test_previous_turn_on_empty_roster(tracker):
    """Test going back with nobody in the roster."""
    assert tracker.previous_turn() is None


# ============================================================================
# Hit points
# ============================================================================


def test_apply_damage_to_zero_emits_unconscious(fighter_and_goblin):
    """Test damage events and the unconscious notification."""
    goblin = fighter_and_goblin.apply_damage("goblin", 8)
    assert goblin.current_hp == 0
    assert fighter_and_goblin.events.types() == [
        EventType.DAMAGE_APPLIED,
        EventType.UNCONSCIOUS,
    ]
    assert goblin in fighter_and_goblin.combatants


def test_apply_damage_partial(fighter_and_goblin):
    """Test damage that leaves the target standing."""
    fighter = fighter_and_goblin.apply_damage("Fighter", 12)
    assert fighter.current_hp == 18
    assert fighter_and_goblin.events.types() == [EventType.DAMAGE_APPLIED]
    assert fighter_and_goblin.events.events[0].data["bloodied"] is False


def test_apply_damage_flags_bloodied(fighter_and_goblin):
    """Test the bloodied marker at a quarter of the maximum hit points."""
    fighter_and_goblin.apply_damage("Fighter", 23)
    event = fighter_and_goblin.events.drain()[0]
    assert event.message == "Fighter takes 23 damage! HP: 30 → 7/30 🩸 Bloodied"
    assert event.data["bloodied"] is True
    fighter_and_goblin.apply_damage("Fighter", 7)
    down = fighter_and_goblin.events.drain()
    assert down[0].data["bloodied"] is False
    assert down[1].event_type == EventType.UNCONSCIOUS


def test_apply_damage_unknown_target(fighter_and_goblin):
    """Test damage against a name that is not in the roster."""
    with pytest.raises(NotFoundError):
        fighter_and_goblin.apply_damage("Dragon", 5)


def test_apply_negative_damage(fighter_and_goblin):
    """Test that negative amounts are rejected before any change."""
    with pytest.raises(InvalidInputError):
        fighter_and_goblin.apply_damage("Goblin", -2)
    assert fighter_and_goblin.get_combatant("Goblin").current_hp == 7
    assert len(fighter_and_goblin.events) == 0


def test_apply_heal(fighter_and_goblin):
    """Test healing clamps at max_hp and emits an event."""
    fighter_and_goblin.apply_damage("Goblin", 5)
    goblin = fighter_and_goblin.apply_heal("Goblin", 100)
    assert goblin.current_hp == 7
    assert fighter_and_goblin.events.types()[-1] == EventType.HEALED


def test_temp_hp_option():
    """Test that the tracker passes the temp hp option through."""
    tracker = CombatTracker(temp_hp_absorbs_damage=True)
    combatant = npc("Orc", 10, hp=15)
    combatant.temp_hp = 5
    tracker.add_combatant(combatant)
    tracker.apply_damage("Orc", 8)
    assert combatant.temp_hp == 0
    assert combatant.current_hp == 12


def test_damage_ignores_turn_order(fighter_and_goblin):
    """Any combatant can be damaged whatever the turn."""
    tracker = fighter_and_goblin
    tracker.next_turn()
    tracker.apply_damage("Fighter", 1)
    assert tracker.current_turn == 1


# ============================================================================
# Targets and status effects
# ============================================================================


def test_self_resolves_to_active(fighter_and_goblin):
    """Test the "self" target keyword."""
    tracker = fighter_and_goblin
    with pytest.raises(InvalidStateError):
        tracker.require_combatant("self")
    tracker.next_turn()
    assert tracker.require_combatant("SELF").name == "Fighter"


def test_add_status_replaces(fighter_and_goblin):
    """Test that a status with an existing name is replaced."""
    tracker = fighter_and_goblin
    tracker.add_status("Goblin", StatusEffect(name="Poisoned", duration=3))
    goblin = tracker.add_status("Goblin", StatusEffect(name="Poisoned", duration=1))
    assert len(goblin.status_effects) == 1
    assert goblin.status_effects["Poisoned"].duration == 1
    assert tracker.events.types() == [EventType.STATUS_ADDED, EventType.STATUS_ADDED]


def test_remove_status(fighter_and_goblin):
    """Test removing a status and reporting whether it was there."""
    tracker = fighter_and_goblin
    tracker.add_status("Goblin", StatusEffect(name="Prone"))
    assert tracker.remove_status("goblin", "Prone") is True
    assert tracker.remove_status("goblin", "Prone") is False
    assert tracker.events.types() == [EventType.STATUS_ADDED, EventType.STATUS_REMOVED]
    with pytest.raises(NotFoundError):
        tracker.remove_status("Dragon", "Prone")


def test_durations_untouched_by_default(fighter_and_goblin):
    """Without expiry, durations are never counted down."""
    tracker = fighter_and_goblin
    tracker.add_status("Goblin", StatusEffect(name="Blessed", duration=1))
    for _ in range(6):
        tracker.next_turn()
    assert tracker.get_combatant("Goblin").status_effects["Blessed"].duration == 1


def test_durations_expire_at_round_start():
    """With expiry enabled, timed effects run out at the start of a round."""
    tracker = CombatTracker(expire_status_effects=True)
    tracker.add_combatant(npc("Fighter", 15))
    tracker.add_combatant(npc("Goblin", 10))
    tracker.add_status("Goblin", StatusEffect(name="Blessed", duration=1))
    tracker.add_status("Goblin", StatusEffect(name="Cursed"))
    tracker.events.drain()

    tracker.next_turn()
    tracker.next_turn()
    assert tracker.events.types() == [EventType.ROUND_START, EventType.STATUS_EXPIRED]
    assert list(tracker.get_combatant("Goblin").status_effects) == ["Cursed"]
