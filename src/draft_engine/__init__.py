from src.draft_engine.draft_controller import DraftController
from src.draft_engine.draft_initializer import MatchInitializer
from src.draft_engine.draft_rules import (
    ChampionIneligible,
    DraftError,
    DraftRules,
    InvalidMatchPhase,
    InvalidSelection,
    LobbyError,
    NoEligibleChampionsRemaining,
    NotAuthorized,
    OutOfTurn,
    StaleAdvance,
    ValidationError,
    eligible_champions,
    is_eligible,
)
from src.draft_engine.draft_state import (
    ClientSession,
    DraftState,
    MatchSettings,
    MatchState,
    Participant,
    Selection,
    SetResult,
    SideMapping,
    Team,
)
from src.draft_engine.events import DraftEvent
from src.draft_engine.match_progression import MatchProgression, is_match_finished
from src.draft_engine.match_report import MatchReport
from src.draft_engine.reconciler import ClientDraftView, SelectionReconciler
from src.draft_engine.state_persistence import StatePersistence
from src.draft_engine.timeout_policy import TimeoutPolicy
from src.draft_engine.turn_schedule import Action, Side, Turn, turn_for

__all__ = [
    "Action",
    "ChampionIneligible",
    "ClientDraftView",
    "ClientSession",
    "DraftController",
    "DraftError",
    "DraftEvent",
    "DraftRules",
    "DraftState",
    "InvalidMatchPhase",
    "InvalidSelection",
    "LobbyError",
    "MatchInitializer",
    "MatchProgression",
    "MatchReport",
    "MatchSettings",
    "MatchState",
    "NoEligibleChampionsRemaining",
    "NotAuthorized",
    "OutOfTurn",
    "Participant",
    "Selection",
    "SelectionReconciler",
    "SetResult",
    "Side",
    "SideMapping",
    "StaleAdvance",
    "StatePersistence",
    "Team",
    "TimeoutPolicy",
    "Turn",
    "ValidationError",
    "eligible_champions",
    "is_eligible",
    "is_match_finished",
    "turn_for",
]
