"""Client-side selection reconciliation.

A client keeps a frozen ClientDraftView and folds every incoming event into
it with ``reduce_event``. Ordering is decided by the (set, phase) numbers
embedded in each event, never by arrival order.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from src.draft_engine.config import LOBBY_PHASE, SLOT_COUNT
from src.draft_engine.draft_rules import StaleAdvance, ValidationError
from src.draft_engine.draft_state import SideMapping, Team
from src.draft_engine.events import PHASE_ADVANCED, SELECTION_PREVIEWED, DraftEvent
from src.draft_engine.turn_schedule import Side

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientDraftView:
    """Last known authoritative state plus this client's transient UI state."""

    set_number: int = 1
    phase: int = LOBBY_PHASE
    slots: Tuple[Optional[str], ...] = (None,) * SLOT_COUNT
    team1_side: str = Side.BLUE.value
    scores: Tuple[Tuple[str, int], ...] = ()
    tentative: Optional[str] = None
    peer_tentative: Optional[str] = None
    confirm_pending: bool = False
    needs_resync: bool = False
    last_error: Optional[str] = None

    @property
    def position(self) -> Tuple[int, int]:
        return (self.set_number, self.phase)

    def side_of(self, team: Team) -> Side:
        return SideMapping(Side(self.team1_side)).side_of(team)

    @property
    def can_confirm(self) -> bool:
        return not self.confirm_pending and not self.needs_resync


def _clear_transient(view: ClientDraftView) -> ClientDraftView:
    return replace(
        view,
        tentative=None,
        peer_tentative=None,
        confirm_pending=False,
        last_error=None,
    )


def _adopt(view: ClientDraftView, event: DraftEvent) -> ClientDraftView:
    """Take the authoritative fields of *event* and reset everything transient."""
    adopted = replace(
        view,
        set_number=event.set_number,
        phase=event.next_phase,
        slots=tuple(event.slots),
        team1_side=event.team1_side,
        scores=tuple(sorted(event.scores.items())),
        needs_resync=False,
    )
    return _clear_transient(adopted)


def reduce_event(
    view: ClientDraftView, event: DraftEvent, own_team: Optional[Team] = None
) -> ClientDraftView:
    """Apply one broadcast event to *view* and return the new view."""
    if event.kind == SELECTION_PREVIEWED:
        if (event.set_number, event.phase) != view.position:
            return view
        if own_team is not None and event.side == view.side_of(own_team).value:
            return view
        return replace(view, peer_tentative=event.champion_id)

    if event.kind == PHASE_ADVANCED:
        # Any confirmation clears our own tentative pick, even a late one.
        view = replace(view, tentative=None, confirm_pending=False)

    if (event.set_number, event.next_phase) <= view.position:
        return view
    return _adopt(view, event)


def select_tentative(view: ClientDraftView, champion_id: str) -> ClientDraftView:
    if view.needs_resync:
        return view
    return replace(view, tentative=champion_id, last_error=None)


def begin_confirm(view: ClientDraftView) -> ClientDraftView:
    return replace(view, confirm_pending=True, last_error=None)


def apply_rejection(view: ClientDraftView, error: ValidationError) -> ClientDraftView:
    """Record a rejected confirm.

    The tentative pick survives so the user can retry at once, except after a
    stale advance, where the client must resync first.
    """
    if isinstance(error, StaleAdvance):
        return replace(
            view, confirm_pending=False, needs_resync=True, last_error=str(error)
        )
    return replace(view, confirm_pending=False, last_error=str(error))


def resync(view: ClientDraftView, snapshot: Dict) -> ClientDraftView:
    """Replace the view's authoritative fields with a fresh server snapshot."""
    fresh = replace(
        view,
        set_number=snapshot["set_number"],
        phase=snapshot["phase"],
        slots=tuple(snapshot["slots"]),
        team1_side=snapshot["team1_side"],
        scores=tuple(sorted(snapshot.get("scores", {}).items())),
        needs_resync=False,
    )
    return _clear_transient(fresh)


class SelectionReconciler:
    """Holds one client's current view and folds events into it."""

    def __init__(self, own_team: Optional[Team] = None, view: Optional[ClientDraftView] = None):
        self.own_team = own_team
        self.view = view or ClientDraftView()

    def select(self, champion_id: str) -> ClientDraftView:
        self.view = select_tentative(self.view, champion_id)
        return self.view

    def begin_confirm(self) -> ClientDraftView:
        self.view = begin_confirm(self.view)
        return self.view

    def apply(self, event: DraftEvent) -> ClientDraftView:
        before = self.view.position
        self.view = reduce_event(self.view, event, self.own_team)
        if self.view.position != before:
            logger.debug(
                "View moved from set %d phase %d to set %d phase %d (%s)",
                before[0], before[1], self.view.set_number, self.view.phase, event.kind,
            )
        return self.view

    def reject(self, error: ValidationError) -> ClientDraftView:
        self.view = apply_rejection(self.view, error)
        return self.view

    def resync(self, snapshot: Dict) -> ClientDraftView:
        self.view = resync(self.view, snapshot)
        return self.view
