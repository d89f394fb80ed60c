"""Fixed tournament ban/pick order - single source of truth for whose turn it is."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from src.draft_engine.config import FIRST_DRAFT_PHASE, LAST_DRAFT_PHASE


class Action(str, Enum):
    """Kind of draft action required at a phase."""

    BAN = "ban"
    PICK = "pick"


class Side(str, Enum):
    """In-game side a team occupies for one set."""

    BLUE = "blue"
    RED = "red"

    def opposite(self) -> "Side":
        return Side.RED if self is Side.BLUE else Side.BLUE


@dataclass(frozen=True)
class Turn:
    """Action and acting side for one phase."""

    phase: int
    action: Action
    side: Side


# Pick phases map onto roster seats; bans have no seat.
_PICK_SEATS: Dict[int, Tuple[Side, int]] = {
    7: (Side.BLUE, 1),
    8: (Side.RED, 1),
    9: (Side.RED, 2),
    10: (Side.BLUE, 2),
    11: (Side.BLUE, 3),
    12: (Side.RED, 3),
    17: (Side.RED, 4),
    18: (Side.BLUE, 4),
    19: (Side.BLUE, 5),
    20: (Side.RED, 5),
}


def is_draft_phase(phase: int) -> bool:
    """Whether *phase* is one of the 20 ban/pick slots."""
    return FIRST_DRAFT_PHASE <= phase <= LAST_DRAFT_PHASE


def turn_for(phase: int) -> Turn:
    """Map a phase number to the required action and acting side.

    Ban round 1 (1-6) alternates starting with blue, pick round 1 (7-12) is
    the B-R-R-B-B-R snake, ban round 2 (13-16) alternates starting with red
    and pick round 2 (17-20) is R-B-B-R.

    Raises:
        ValueError: If *phase* is outside 1..20.
    """
    if not is_draft_phase(phase):
        raise ValueError(
            f"Phase {phase} is not a ban/pick phase "
            f"({FIRST_DRAFT_PHASE}-{LAST_DRAFT_PHASE})"
        )

    if phase <= 6:
        side = Side.BLUE if phase % 2 == 1 else Side.RED
        return Turn(phase, Action.BAN, side)

    if 13 <= phase <= 16:
        side = Side.RED if phase % 2 == 1 else Side.BLUE
        return Turn(phase, Action.BAN, side)

    side, _ = _PICK_SEATS[phase]
    return Turn(phase, Action.PICK, side)


SCHEDULE: Tuple[Turn, ...] = tuple(
    turn_for(p) for p in range(FIRST_DRAFT_PHASE, LAST_DRAFT_PHASE + 1)
)


def phase_label(phase: int) -> str:
    """Human readable round name shown above the draft board."""
    if 1 <= phase <= 6:
        return "BAN PHASE 1"
    if 7 <= phase <= 12:
        return "PICK PHASE 1"
    if 13 <= phase <= 16:
        return "BAN PHASE 2"
    if 17 <= phase <= 20:
        return "PICK PHASE 2"
    return "DRAFT PHASE"


def pick_slot_label(phase: int) -> str:
    """Roster seat filled by a pick phase, e.g. phase 9 -> "red2"."""
    if phase not in _PICK_SEATS:
        raise ValueError(f"Phase {phase} is not a pick phase")
    side, seat = _PICK_SEATS[phase]
    return f"{side.value}{seat}"


def acting_seat(phase: int, player_type: str) -> int:
    """Seat number expected to act at *phase*.

    In 5v5 each pick belongs to the player in the matching roster seat and
    bans go to seat 1 (the captain). Every other player type has one seat.
    """
    turn = turn_for(phase)
    if player_type != "5v5" or turn.action is Action.BAN:
        return 1
    return _PICK_SEATS[phase][1]


def phases_for(action: Action, side: Side) -> List[int]:
    """All phases at which *side* performs *action*, in draft order."""
    return [t.phase for t in SCHEDULE if t.action is action and t.side is side]
