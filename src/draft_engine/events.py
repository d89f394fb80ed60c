"""Broadcast events emitted by the draft controller.

Every event carries the full slot array, side mapping and score so an
observer that joins late can rebuild its view from any single event.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple

DRAFT_STARTED = "draft-started"
SELECTION_PREVIEWED = "selection-previewed"
PHASE_ADVANCED = "phase-advanced"
SET_COMPLETED = "set-completed"
SIDE_CHOICE_OPENED = "side-choice-opened"
NEXT_SET_STARTED = "next-set-started"
MATCH_FINISHED = "match-finished"
MATCH_HALTED = "match-halted"

EVENT_KINDS = {
    DRAFT_STARTED,
    SELECTION_PREVIEWED,
    PHASE_ADVANCED,
    SET_COMPLETED,
    SIDE_CHOICE_OPENED,
    NEXT_SET_STARTED,
    MATCH_FINISHED,
    MATCH_HALTED,
}


@dataclass(frozen=True)
class DraftEvent:
    """One broadcast notification.

    ``phase`` is the phase the event is about (the resolved phase for
    phase-advanced, the previewed phase for selection-previewed) and
    ``next_phase`` is the match phase once the event has been applied.
    """

    kind: str
    match_id: str
    set_number: int
    phase: int
    next_phase: int
    team1_side: str
    slots: Tuple[Optional[str], ...]
    scores: Dict[str, int] = field(default_factory=dict)
    side: Optional[str] = None
    champion_id: Optional[str] = None
    winner: Optional[str] = None
    losing_side: Optional[str] = None
    forced: bool = False
    timestamp: str = ""

    @classmethod
    def create(cls, kind: str, match_state, phase: Optional[int] = None, **fields):
        """Build an event from the current match state."""
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown event kind: {kind}")
        next_phase = match_state.phase
        return cls(
            kind=kind,
            match_id=match_state.match_id,
            set_number=match_state.set_number,
            phase=next_phase if phase is None else phase,
            next_phase=next_phase,
            team1_side=match_state.draft.side_mapping.team1_side.value,
            slots=tuple(match_state.draft.slots),
            scores={team.value: n for team, n in match_state.scores.items()},
            timestamp=datetime.now().isoformat(),
            **fields,
        )

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind,
            "match_id": self.match_id,
            "set_number": self.set_number,
            "phase": self.phase,
            "next_phase": self.next_phase,
            "side": self.side,
            "champion_id": self.champion_id,
            "team1_side": self.team1_side,
            "slots": list(self.slots),
            "scores": dict(self.scores),
            "winner": self.winner,
            "losing_side": self.losing_side,
            "forced": self.forced,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "DraftEvent":
        return cls(
            kind=data["kind"],
            match_id=data["match_id"],
            set_number=data["set_number"],
            phase=data["phase"],
            next_phase=data["next_phase"],
            team1_side=data["team1_side"],
            slots=tuple(data["slots"]),
            scores=dict(data.get("scores", {})),
            side=data.get("side"),
            champion_id=data.get("champion_id"),
            winner=data.get("winner"),
            losing_side=data.get("losing_side"),
            forced=data.get("forced", False),
            timestamp=data.get("timestamp", ""),
        )
