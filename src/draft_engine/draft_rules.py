"""Eligibility rules, turn validation and the draft error taxonomy."""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from src.draft_engine.config import LOBBY_PHASE, LAST_DRAFT_PHASE
from src.draft_engine.turn_schedule import Action, Side, is_draft_phase, turn_for

# Sub-reasons carried by ChampionIneligible
ALREADY_TAKEN = "already_taken"
GLOBALLY_BANNED = "globally_banned"
FEARLESS_EXCLUDED = "fearless_excluded"


class DraftError(Exception):
    """Base class for all draft engine errors."""


class ValidationError(DraftError):
    """Raised when an operation violates draft rules.

    Validation errors are raised before any mutation, so the state the
    caller saw is still the current state.
    """


class OutOfTurn(ValidationError):
    """Caller's side (or target phase) is not the one scheduled to act."""


class InvalidSelection(ValidationError):
    """Empty pick, malformed id or a champion outside the pool."""


class ChampionIneligible(ValidationError):
    """Champion fails the eligibility rules."""

    def __init__(self, champion_id: str, reason: str):
        self.champion_id = champion_id
        self.reason = reason
        super().__init__(f"{champion_id} is not eligible ({reason})")


class StaleAdvance(ValidationError):
    """The phase already moved past the caller's target phase.

    The caller lost a race and must refetch the current phase before
    retrying.
    """

    def __init__(self, expected_phase: Optional[int], current_phase: int):
        self.expected_phase = expected_phase
        self.current_phase = current_phase
        if expected_phase is None:
            message = f"No ban/pick phase is open (current: {current_phase})"
        else:
            message = f"Phase {expected_phase} already resolved (current: {current_phase})"
        super().__init__(message)


class NotAuthorized(ValidationError):
    """Host-only or side-only action attempted by the wrong participant."""


class InvalidMatchPhase(ValidationError):
    """Operation is not valid in the match's current phase."""


class LobbyError(ValidationError):
    """Seat assignment or readiness problem in the lobby."""


class NoEligibleChampionsRemaining(DraftError):
    """A forced random pick found nothing to choose from.

    Signals a configuration bug (e.g. an undersized champion pool). The match
    cannot proceed.
    """


# ── Eligibility (pure) ───────────────────────────────────────────────


def taken_champions(slots: Sequence[Optional[str]]) -> set:
    """Champions already banned or picked in a set's slot array."""
    return {c for c in slots[1:] if c}


def fearless_used(
    champion_id: str,
    fearless_history: Mapping[int, Iterable[str]],
    set_number: int,
) -> List[int]:
    """Set numbers strictly before *set_number* in which *champion_id* was picked."""
    return sorted(
        int(n)
        for n, picks in fearless_history.items()
        if int(n) < set_number and champion_id in picks
    )


def ineligibility_reason(
    champion_id: str,
    slots: Sequence[Optional[str]],
    global_bans: Iterable[str],
    fearless_history: Mapping[int, Iterable[str]],
    set_number: int,
    draft_type: str,
) -> Optional[str]:
    """Why *champion_id* cannot be selected right now, or None if it can.

    Checks, in order: already banned/picked this set, global ban list, and
    hard-fearless exclusion of champions picked in any earlier set.
    """
    if champion_id in taken_champions(slots):
        return ALREADY_TAKEN
    if champion_id in set(global_bans):
        return GLOBALLY_BANNED
    if draft_type == "hardFearless" and fearless_used(
        champion_id, fearless_history, set_number
    ):
        return FEARLESS_EXCLUDED
    return None


def is_eligible(champion_id: str, state) -> bool:
    """Whether *champion_id* may be selected in the given DraftState."""
    return (
        ineligibility_reason(
            champion_id,
            state.slots,
            state.global_bans,
            state.fearless_history,
            state.set_number,
            state.draft_type,
        )
        is None
    )


def eligible_champions(state) -> List[str]:
    """Every champion in the state's pool that is currently eligible, in pool order."""
    return [c for c in state.champion_pool if is_eligible(c, state)]


# ── Advance validation ───────────────────────────────────────────────


class DraftRules:
    """Validates ban/pick transitions against a DraftState."""

    def __init__(self, draft_state):
        self.draft_state = draft_state

    def validate_advance(
        self,
        side: Side,
        selection: Optional[str],
        expected_phase: Optional[int] = None,
    ) -> Tuple[bool, Optional[ValidationError]]:
        """
        Validate an advance of the current phase.

        Returns:
            (is_valid, error) - (True, None) if valid
        """
        state = self.draft_state
        phase = state.phase

        # Check 1: Is a ban/pick phase open at all?
        if not is_draft_phase(phase):
            if phase == LOBBY_PHASE:
                return False, InvalidMatchPhase("Draft has not started")
            return False, StaleAdvance(expected_phase, phase)

        # Check 2: Is the caller targeting the current phase?
        if expected_phase is not None:
            if expected_phase < phase:
                return False, StaleAdvance(expected_phase, phase)
            if expected_phase > phase:
                return False, OutOfTurn(
                    f"Phase {expected_phase} has not opened yet (current: {phase})"
                )

        # Check 3: Is it this side's turn?
        turn = turn_for(phase)
        if side is not turn.side:
            return False, OutOfTurn(
                f"Not {side.value}'s turn to {turn.action.value} "
                f"(phase {phase}: {turn.side.value})"
            )

        # Check 4: Is the selection well formed?
        if selection is not None and not isinstance(selection, str):
            return False, InvalidSelection(f"Malformed champion id: {selection!r}")
        if not selection:
            if turn.action is Action.PICK:
                return False, InvalidSelection(f"Phase {phase} requires a pick")
            return True, None  # skipped ban

        if state.champion_pool and selection not in state.champion_pool:
            return False, InvalidSelection(f"Unknown champion: {selection}")

        # Check 5: Eligibility
        reason = ineligibility_reason(
            selection,
            state.slots,
            state.global_bans,
            state.fearless_history,
            state.set_number,
            state.draft_type,
        )
        if reason is not None:
            return False, ChampionIneligible(selection, reason)

        return True, None

    def is_set_complete(self) -> bool:
        """Check if all 20 phases of the set are resolved."""
        return self.draft_state.phase > LAST_DRAFT_PHASE


def fearless_snapshot(history: Mapping[int, Iterable[str]]) -> Dict[int, List[str]]:
    """Detached copy of a fearless history mapping."""
    return {int(n): list(picks) for n, picks in history.items()}
