"""Draft state data models - single source of truth for all match information."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
import uuid

from src.draft_engine.config import (
    FEARLESS_DRAFT_TYPES,
    FIRST_DRAFT_PHASE,
    LOBBY_PHASE,
    MATCH_FINISHED_PHASE,
    MATCH_FORMATS,
    RESULT_PHASE,
    SEATS_PER_TEAM,
    SIDE_CHOICE_PHASE,
    SLOT_COUNT,
)
from src.draft_engine.draft_rules import (
    DraftRules,
    InvalidMatchPhase,
    fearless_snapshot,
    taken_champions,
)
from src.draft_engine.turn_schedule import Action, Side, Turn, turn_for


class Team(str, Enum):
    """Persistent participant identity across the whole match."""

    TEAM1 = "team1"
    TEAM2 = "team2"

    def other(self) -> "Team":
        return Team.TEAM2 if self is Team.TEAM1 else Team.TEAM1


@dataclass(frozen=True)
class SideMapping:
    """Which side each team occupies for one set."""

    team1_side: Side = Side.BLUE

    def side_of(self, team: Team) -> Side:
        return self.team1_side if team is Team.TEAM1 else self.team1_side.opposite()

    def team_on(self, side: Side) -> Team:
        return Team.TEAM1 if side is self.team1_side else Team.TEAM2

    def swapped(self) -> "SideMapping":
        return SideMapping(team1_side=self.team1_side.opposite())

    def to_dict(self) -> Dict[str, str]:
        return {
            "team1": self.side_of(Team.TEAM1).value,
            "team2": self.side_of(Team.TEAM2).value,
        }


@dataclass
class Selection:
    """Represents a single resolved ban/pick slot."""

    set_number: int
    phase: int
    action: str
    side: str
    team: str
    champion_id: Optional[str]
    timestamp: str
    forced: bool = False

    @classmethod
    def create(
        cls,
        set_number: int,
        turn: Turn,
        team: Team,
        champion_id: Optional[str],
        forced: bool = False,
    ):
        return cls(
            set_number=set_number,
            phase=turn.phase,
            action=turn.action.value,
            side=turn.side.value,
            team=team.value,
            champion_id=champion_id,
            timestamp=datetime.now().isoformat(),
            forced=forced,
        )


@dataclass
class DraftState:
    """Ban/pick state of one set.

    ``slots`` has 21 entries; slot *i* holds the champion resolved at phase
    *i* (None for an unresolved slot or a skipped ban). Slot 0 is unused.
    """

    set_number: int
    side_mapping: SideMapping
    draft_type: str
    global_bans: List[str] = field(default_factory=list)
    fearless_history: Dict[int, List[str]] = field(default_factory=dict)
    champion_pool: List[str] = field(default_factory=list)
    phase: int = LOBBY_PHASE
    slots: List[Optional[str]] = field(default_factory=lambda: [None] * SLOT_COUNT)
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def create_new(
        cls,
        set_number: int,
        side_mapping: SideMapping,
        draft_type: str,
        global_bans: List[str],
        fearless_history: Dict[int, List[str]],
        champion_pool: List[str],
    ) -> "DraftState":
        """Factory method for a set's draft, carrying forward fearless history."""
        if set_number < 1:
            raise ValueError(f"set_number must be >= 1 (got {set_number})")
        return cls(
            set_number=set_number,
            side_mapping=side_mapping,
            draft_type=draft_type,
            global_bans=list(global_bans),
            fearless_history=fearless_snapshot(fearless_history),
            champion_pool=list(champion_pool),
        )

    def start(self):
        """Lobby -> phase 1."""
        if self.phase != LOBBY_PHASE:
            raise InvalidMatchPhase(
                f"Set {self.set_number} already started (phase {self.phase})"
            )
        self.phase = FIRST_DRAFT_PHASE
        self.started_at = datetime.now().isoformat()

    @property
    def is_complete(self) -> bool:
        return self.phase >= RESULT_PHASE

    def current_turn(self) -> Turn:
        """Turn for the current phase (ValueError outside 1..20)."""
        return turn_for(self.phase)

    def acting_team(self) -> Team:
        """Team that must act at the current phase."""
        return self.side_mapping.team_on(self.current_turn().side)

    def taken(self) -> set:
        return taken_champions(self.slots)

    def advance(
        self,
        side: Side,
        selection: Optional[str] = None,
        expected_phase: Optional[int] = None,
        forced: bool = False,
    ) -> Selection:
        """Resolve the current phase and move to the next one.

        All-or-nothing: validation failures raise before anything changes.

        Raises:
            ValidationError: If the advance breaks any draft rule.
        """
        is_valid, error = DraftRules(self).validate_advance(
            side, selection, expected_phase
        )
        if not is_valid:
            raise error

        turn = self.current_turn()
        champion_id = selection or None
        record = Selection.create(
            set_number=self.set_number,
            turn=turn,
            team=self.side_mapping.team_on(turn.side),
            champion_id=champion_id,
            forced=forced,
        )

        self.slots[self.phase] = champion_id
        self.phase += 1
        if self.is_complete and not self.completed_at:
            self.completed_at = datetime.now().isoformat()

        return record

    def _slots_for(self, action: Action, side: Side) -> List[str]:
        found = []
        for phase in range(1, min(self.phase, RESULT_PHASE)):
            turn = turn_for(phase)
            champion = self.slots[phase]
            if turn.action is action and turn.side is side and champion:
                found.append(champion)
        return found

    def bans_for(self, side: Side) -> List[str]:
        """Champions banned by *side* so far (skipped bans omitted)."""
        return self._slots_for(Action.BAN, side)

    def picks_for(self, side: Side) -> List[str]:
        """Champions picked by *side* so far, in pick order."""
        return self._slots_for(Action.PICK, side)

    def picks(self) -> List[str]:
        """All picks of the set, both sides, in phase order."""
        return [
            self.slots[p]
            for p in range(1, min(self.phase, RESULT_PHASE))
            if turn_for(p).action is Action.PICK and self.slots[p]
        ]


@dataclass
class MatchSettings:
    """Match configuration fixed at creation time."""

    version: str
    draft_type: str  # "tournament", "hardFearless", "softFearless"
    player_type: str  # "single", "1v1", "5v5"
    match_format: str  # "bo1", "bo3", "bo5"
    time_limit: bool = True
    phase_time_seconds: int = 30
    global_bans: List[str] = field(default_factory=list)
    team1_name: str = "Team 1"
    team2_name: str = "Team 2"

    @property
    def is_fearless(self) -> bool:
        return self.draft_type in FEARLESS_DRAFT_TYPES

    @property
    def max_sets(self) -> int:
        return MATCH_FORMATS[self.match_format]["max_sets"]

    @property
    def wins_needed(self) -> int:
        return MATCH_FORMATS[self.match_format]["wins_needed"]

    def required_seats(self) -> List[tuple]:
        """(team, seat) pairs that must be filled before the draft starts."""
        if self.player_type == "single":
            return [(Team.TEAM1, 1)]
        seats = SEATS_PER_TEAM[self.player_type]
        return [(team, s) for team in Team for s in range(1, seats + 1)]

    def team_name(self, team: Team) -> str:
        return self.team1_name if team is Team.TEAM1 else self.team2_name


@dataclass
class Participant:
    """A connected client: a player in a seat or a spectator."""

    client_id: str
    nickname: str
    team: Optional[Team] = None
    seat: int = 1
    is_ready: bool = False
    is_host: bool = False

    @property
    def is_spectator(self) -> bool:
        return self.team is None

    @property
    def position(self) -> str:
        """Seat label such as "team1-1", or "spectator"."""
        if self.team is None:
            return "spectator"
        return f"{self.team.value}-{self.seat}"


@dataclass
class ClientSession:
    """Identity of the client issuing an engine call."""

    client_id: str
    nickname: str = ""


@dataclass
class SetResult:
    """A completed set as it appears in match history."""

    set_number: int
    side_mapping: SideMapping
    slots: List[Optional[str]]
    winner: Team
    completed_at: str

    @property
    def loser(self) -> Team:
        return self.winner.other()

    def picks(self) -> List[str]:
        return [
            self.slots[p]
            for p in range(1, RESULT_PHASE)
            if turn_for(p).action is Action.PICK and self.slots[p]
        ]


@dataclass
class MatchState:
    """Complete match state - single source of truth."""

    match_id: str
    settings: MatchSettings
    created_at: str
    draft: DraftState
    champion_data: Dict[str, Dict] = field(default_factory=dict)
    participants: List[Participant] = field(default_factory=list)
    results: List[SetResult] = field(default_factory=list)
    scores: Dict[Team, int] = field(
        default_factory=lambda: {Team.TEAM1: 0, Team.TEAM2: 0}
    )
    fearless_history: Dict[int, List[str]] = field(default_factory=dict)
    tentative: Dict[Side, str] = field(default_factory=dict)
    side_choice_open: bool = False
    is_finished: bool = False
    halted: bool = False
    last_updated_at: Optional[str] = None

    @classmethod
    def create_new(
        cls,
        settings: MatchSettings,
        champion_data: Dict[str, Dict],
        side_mapping: Optional[SideMapping] = None,
    ) -> "MatchState":
        """Factory method to create a new match waiting in the lobby."""
        unknown = [c for c in settings.global_bans if c not in champion_data]
        if champion_data and unknown:
            raise ValueError(f"Global bans not in champion pool: {unknown}")

        draft = DraftState.create_new(
            set_number=1,
            side_mapping=side_mapping or SideMapping(),
            draft_type=settings.draft_type,
            global_bans=settings.global_bans,
            fearless_history={},
            champion_pool=list(champion_data.keys()),
        )
        now = datetime.now().isoformat()
        return cls(
            match_id=str(uuid.uuid4()),
            settings=settings,
            created_at=now,
            draft=draft,
            champion_data=champion_data,
            last_updated_at=now,
        )

    @property
    def phase(self) -> int:
        """Match-level phase: the set's phase, or the side-choice/finished sentinel."""
        if self.is_finished:
            return MATCH_FINISHED_PHASE
        if self.side_choice_open:
            return SIDE_CHOICE_PHASE
        return self.draft.phase

    @property
    def set_number(self) -> int:
        return self.draft.set_number

    @property
    def losing_side(self) -> Optional[Side]:
        """Side of the team that lost the last set, while side choice is open."""
        if not self.side_choice_open or not self.results:
            return None
        last = self.results[-1]
        return last.side_mapping.side_of(last.loser)

    def get_participant(self, client_id: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.client_id == client_id:
                return participant
        return None

    def seat_holder(self, team: Team, seat: int) -> Optional[Participant]:
        for participant in self.participants:
            if participant.team is team and participant.seat == seat:
                return participant
        return None

    def get_champion_info(self, champion_id: str) -> Dict:
        return self.champion_data.get(champion_id, {})

    def score_for(self, team: Team) -> int:
        return self.scores.get(team, 0)

    def touch(self):
        self.last_updated_at = datetime.now().isoformat()

    def snapshot(self) -> Dict:
        """Detached view with enough data for a client to resynchronize."""
        return {
            "match_id": self.match_id,
            "set_number": self.set_number,
            "phase": self.phase,
            "slots": list(self.draft.slots),
            "side_mapping": self.draft.side_mapping.to_dict(),
            "team1_side": self.draft.side_mapping.team1_side.value,
            "scores": {team.value: n for team, n in self.scores.items()},
            "tentative": {side.value: c for side, c in self.tentative.items()},
            "losing_side": self.losing_side.value if self.losing_side else None,
            "global_bans": list(self.settings.global_bans),
            "fearless_history": fearless_snapshot(self.fearless_history),
            "draft_type": self.settings.draft_type,
            "halted": self.halted,
            "last_updated_at": self.last_updated_at,
        }
