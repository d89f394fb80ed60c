"""Draft controller - the single authoritative owner of one match.

Every mutating call takes the per-match lock, so advances, side choices and
set progression are linearizable. Reads go through ``snapshot()``.
"""

import logging
import random
import threading
from typing import Callable, Dict, List, Optional

from src.draft_engine.config import LOBBY_PHASE, SEATS_PER_TEAM
from src.draft_engine.draft_rules import (
    ChampionIneligible,
    InvalidMatchPhase,
    InvalidSelection,
    LobbyError,
    NoEligibleChampionsRemaining,
    NotAuthorized,
    OutOfTurn,
    ValidationError,
    eligible_champions,
    ineligibility_reason,
)
from src.draft_engine.draft_state import (
    ClientSession,
    MatchState,
    Participant,
    Selection,
    SetResult,
    Team,
)
from src.draft_engine.events import (
    DRAFT_STARTED,
    MATCH_FINISHED,
    MATCH_HALTED,
    NEXT_SET_STARTED,
    PHASE_ADVANCED,
    SELECTION_PREVIEWED,
    SET_COMPLETED,
    SIDE_CHOICE_OPENED,
    DraftEvent,
)
from src.draft_engine.match_progression import MatchProgression
from src.draft_engine.timeout_policy import TimeoutPolicy, forced_selection
from src.draft_engine.turn_schedule import Side, acting_seat, is_draft_phase, turn_for

logger = logging.getLogger(__name__)

Listener = Callable[[DraftEvent], None]


def _coerce_side(side) -> Side:
    try:
        return Side(side)
    except ValueError:
        raise InvalidSelection(f"Unknown side: {side!r}") from None


class DraftController:
    """Main controller for match orchestration.

    Coordinates the lobby, DraftState (ban/pick transitions), MatchProgression
    (set results and side choice) and TimeoutPolicy (forced actions), and
    broadcasts a DraftEvent after every successful mutation.
    """

    def __init__(
        self,
        match_state: MatchState,
        timeout_policy: Optional[TimeoutPolicy] = None,
        rng: Optional[random.Random] = None,
    ):
        self.match_state = match_state
        self.progression = MatchProgression(match_state)
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._rng = rng or random.Random()

        settings = match_state.settings
        if timeout_policy is None and settings.time_limit:
            timeout_policy = TimeoutPolicy(
                seconds=settings.phase_time_seconds,
                on_expire=self.force_timeout,
                rng=self._rng,
            )
        self.timeout_policy = timeout_policy

    # ── Broadcast ────────────────────────────────────────────────────

    def subscribe(self, listener: Listener):
        """Register a callable invoked with every emitted DraftEvent."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        self._listeners.remove(listener)

    def _emit(self, kind: str, phase: Optional[int] = None, **fields) -> DraftEvent:
        event = DraftEvent.create(kind, self.match_state, phase=phase, **fields)
        for listener in list(self._listeners):
            listener(event)
        return event

    # ── Lobby ────────────────────────────────────────────────────────

    def join(
        self, session: ClientSession, team: Optional[Team] = None, seat: int = 1
    ) -> Participant:
        """Add a client to the lobby, in a seat or as a spectator.

        The first client to join becomes host.
        """
        with self._lock:
            match = self.match_state
            if match.get_participant(session.client_id) is not None:
                raise LobbyError(f"Client {session.client_id} already joined")
            if team is not None and not self._in_lobby():
                raise InvalidMatchPhase("Seats can only be taken in the lobby")

            participant = Participant(
                client_id=session.client_id,
                nickname=session.nickname,
                is_host=not any(p.is_host for p in match.participants),
            )
            match.participants.append(participant)
            if team is not None:
                try:
                    self._assign_seat(participant, team, seat)
                except LobbyError:
                    match.participants.remove(participant)
                    raise

            match.touch()
            logger.info(
                "%s joined match %s as %s%s",
                session.nickname or session.client_id,
                match.match_id,
                participant.position,
                " (host)" if participant.is_host else "",
            )
            return participant

    def change_seat(
        self, session: ClientSession, team: Optional[Team], seat: int = 1
    ) -> Participant:
        """Move a participant to another seat (or to spectators with team=None)."""
        with self._lock:
            participant = self._require_participant(session)
            if not self._in_lobby():
                raise InvalidMatchPhase("Seats can only change in the lobby")
            if team is None:
                participant.team = None
                participant.seat = 1
                participant.is_ready = False
            else:
                self._assign_seat(participant, team, seat)
            self.match_state.touch()
            return participant

    def set_ready(self, session: ClientSession, ready: bool = True) -> Participant:
        with self._lock:
            participant = self._require_participant(session)
            if participant.is_spectator:
                raise LobbyError("Spectators cannot mark ready")
            participant.is_ready = ready
            self.match_state.touch()
            return participant

    def leave(self, session: ClientSession):
        """Remove a client; host passes to the next remaining participant."""
        with self._lock:
            match = self.match_state
            participant = self._require_participant(session)
            match.participants.remove(participant)
            if participant.is_host and match.participants:
                match.participants[0].is_host = True
            match.touch()
            logger.info("%s left match %s", participant.nickname, match.match_id)

    def _assign_seat(self, participant: Participant, team: Team, seat: int):
        team = Team(team)
        seats = SEATS_PER_TEAM[self.match_state.settings.player_type]
        if not 1 <= seat <= seats:
            raise LobbyError(f"Seat must be between 1 and {seats} (got {seat})")
        holder = self.match_state.seat_holder(team, seat)
        if holder is not None and holder is not participant:
            raise LobbyError(f"Seat {team.value}-{seat} is taken by {holder.nickname}")
        participant.team = team
        participant.seat = seat
        participant.is_ready = False

    def _in_lobby(self) -> bool:
        return self.match_state.phase == LOBBY_PHASE and self.match_state.set_number == 1

    def _require_participant(self, session: ClientSession) -> Participant:
        participant = self.match_state.get_participant(session.client_id)
        if participant is None:
            raise NotAuthorized(f"Client {session.client_id} is not in this match")
        return participant

    def _require_host(self, session: ClientSession) -> Participant:
        participant = self._require_participant(session)
        if not participant.is_host:
            raise NotAuthorized(f"{participant.nickname} is not the host")
        return participant

    # ── Draft ────────────────────────────────────────────────────────

    def start_draft(self, session: ClientSession) -> DraftEvent:
        """Lobby -> phase 1 of set 1. Host only; every seat filled and ready."""
        with self._lock:
            match = self.match_state
            self._require_host(session)
            if match.phase != LOBBY_PHASE:
                raise InvalidMatchPhase(
                    f"Draft already started (phase {match.phase})"
                )

            for team, seat in match.settings.required_seats():
                holder = match.seat_holder(team, seat)
                if holder is None:
                    raise LobbyError(f"Seat {team.value}-{seat} is empty")
                if not holder.is_ready:
                    raise LobbyError(f"{holder.nickname} is not ready")

            match.draft.start()
            match.touch()
            logger.info(
                "Draft started for match %s (%s, %s, %s)",
                match.match_id,
                match.settings.draft_type,
                match.settings.player_type,
                match.settings.match_format,
            )
            self._arm_timer()
            return self._emit(DRAFT_STARTED)

    def controls_side(self, participant: Participant, side: Side) -> bool:
        """Whether *participant* may act for *side* in the current set."""
        if participant.is_spectator:
            return False
        if self.match_state.settings.player_type == "single":
            return self._is_single_controller(participant)
        return self.match_state.draft.side_mapping.side_of(participant.team) is side

    @staticmethod
    def _is_single_controller(participant: Participant) -> bool:
        # One seat drives both sides; the host keeps control if seats shift.
        return participant.is_host or (
            participant.team is Team.TEAM1 and participant.seat == 1
        )

    def _authorize_turn(self, session: ClientSession, side: Side) -> Participant:
        participant = self._require_participant(session)
        if not self.controls_side(participant, side):
            raise NotAuthorized(
                f"{participant.nickname} does not control the {side.value} side"
            )
        phase = self.match_state.draft.phase
        if is_draft_phase(phase):
            seat = acting_seat(phase, self.match_state.settings.player_type)
            if participant.seat != seat and self.match_state.settings.player_type == "5v5":
                raise OutOfTurn(
                    f"Phase {phase} belongs to seat {seat}, not seat {participant.seat}"
                )
        return participant

    def select_champion(
        self, session: ClientSession, side: Side, champion_id: str
    ) -> DraftEvent:
        """Record a tentative (unconfirmed) choice and broadcast it as a preview."""
        with self._lock:
            match = self.match_state
            side = _coerce_side(side)
            self._ensure_running()
            self._authorize_turn(session, side)
            draft = match.draft

            if not is_draft_phase(draft.phase) or match.phase != draft.phase:
                raise OutOfTurn(f"No ban/pick phase is open (phase {match.phase})")
            turn = turn_for(draft.phase)
            if side is not turn.side:
                raise OutOfTurn(
                    f"Not {side.value}'s turn (phase {draft.phase}: {turn.side.value})"
                )
            if not champion_id or not isinstance(champion_id, str):
                raise InvalidSelection(f"Malformed champion id: {champion_id!r}")
            if draft.champion_pool and champion_id not in draft.champion_pool:
                raise InvalidSelection(f"Unknown champion: {champion_id}")
            reason = ineligibility_reason(
                champion_id,
                draft.slots,
                draft.global_bans,
                draft.fearless_history,
                draft.set_number,
                draft.draft_type,
            )
            if reason is not None:
                raise ChampionIneligible(champion_id, reason)

            match.tentative[side] = champion_id
            return self._emit(
                SELECTION_PREVIEWED,
                phase=draft.phase,
                side=side.value,
                champion_id=champion_id,
            )

    def confirm_selection(
        self,
        session: ClientSession,
        side: Side,
        champion_id: Optional[str] = None,
        expected_phase: Optional[int] = None,
    ) -> Selection:
        """Advance the current phase with *champion_id* (None skips a ban).

        Raises:
            ValidationError: Categorized rejection; nothing is mutated.
        """
        with self._lock:
            side = _coerce_side(side)
            try:
                self._ensure_running()
                self._authorize_turn(session, side)
                return self._advance(side, champion_id, expected_phase)
            except ValidationError as e:
                logger.warning(
                    "Rejected selection from %s (%s): %s",
                    session.client_id,
                    type(e).__name__,
                    e,
                )
                raise

    def force_timeout(self, set_number: int, phase: int) -> Optional[Selection]:
        """Forced action for an expired phase.

        Does nothing when the set/phase has already moved on, so a timer that
        lost the race never double-advances.

        Raises:
            NoEligibleChampionsRemaining: Fatal; the match is halted.
        """
        with self._lock:
            match = self.match_state
            if (
                match.halted
                or not is_draft_phase(phase)
                or match.phase != phase
                or match.set_number != set_number
            ):
                logger.debug(
                    "Ignoring expired timer for set %d phase %d (now set %d phase %d)",
                    set_number, phase, match.set_number, match.phase,
                )
                return None

            draft = match.draft
            turn = turn_for(phase)
            try:
                if self.timeout_policy is not None:
                    selection = self.timeout_policy.choose(draft)
                else:
                    selection = forced_selection(draft, self._rng)
            except NoEligibleChampionsRemaining:
                match.halted = True
                match.touch()
                if self.timeout_policy is not None:
                    self.timeout_policy.cancel()
                logger.error(
                    "Match %s halted: no eligible champions for forced pick at phase %d",
                    match.match_id,
                    phase,
                )
                self._emit(MATCH_HALTED, phase=phase, side=turn.side.value)
                raise

            logger.info(
                "Phase %d timed out; forcing %s for %s: %s",
                phase,
                turn.action.value,
                turn.side.value,
                selection or "(skip)",
            )
            return self._advance(turn.side, selection, expected_phase=phase, forced=True)

    def _ensure_running(self):
        if self.match_state.halted:
            raise InvalidMatchPhase("Match is halted and cannot proceed")
        if self.match_state.side_choice_open or self.match_state.is_finished:
            raise InvalidMatchPhase(
                f"No ban/pick phase is open (phase {self.match_state.phase})"
            )

    def _advance(
        self,
        side: Side,
        champion_id: Optional[str],
        expected_phase: Optional[int],
        forced: bool = False,
    ) -> Selection:
        match = self.match_state
        draft = match.draft
        record = draft.advance(side, champion_id, expected_phase, forced=forced)

        match.tentative.clear()
        match.touch()
        logger.info(
            "Set %d phase %d: %s (%s) %s %s",
            record.set_number,
            record.phase,
            record.side,
            match.settings.team_name(Team(record.team)),
            record.action,
            record.champion_id or "(skip)",
        )

        if draft.is_complete:
            if self.timeout_policy is not None:
                self.timeout_policy.cancel()
            logger.info("Set %d draft complete", draft.set_number)
        else:
            self._arm_timer()

        self._emit(
            PHASE_ADVANCED,
            phase=record.phase,
            side=record.side,
            champion_id=record.champion_id,
            forced=forced,
        )
        if draft.is_complete:
            self._emit(SET_COMPLETED)
        return record

    def _arm_timer(self):
        if self.timeout_policy is not None:
            self.timeout_policy.arm(self.match_state.set_number, self.match_state.draft.phase)

    def resume(self) -> bool:
        """Re-arm the phase timer for a match reloaded in the middle of a draft.

        Returns True when a deadline was armed.
        """
        with self._lock:
            match = self.match_state
            if self.timeout_policy is None or match.halted or not is_draft_phase(match.phase):
                return False
            self._arm_timer()
            logger.info(
                "Resumed match %s at set %d phase %d",
                match.match_id,
                match.set_number,
                match.phase,
            )
            return True

    # ── Match progression ────────────────────────────────────────────

    def confirm_set_result(self, session: ClientSession, winning_team: Team) -> SetResult:
        """Host records the set winner; opens side choice or finishes the match."""
        with self._lock:
            self._require_host(session)
            result = self.progression.record_result(winning_team)
            if self.match_state.is_finished:
                self._emit(MATCH_FINISHED, winner=result.winner.value)
            else:
                self._emit(
                    SIDE_CHOICE_OPENED,
                    winner=result.winner.value,
                    losing_side=self.match_state.losing_side.value,
                )
            return result

    def choose_side(self, session: ClientSession, choice: str) -> DraftEvent:
        """Losing side's controller (or the host) keeps or swaps sides."""
        with self._lock:
            match = self.match_state
            participant = self._require_participant(session)
            if not match.side_choice_open:
                raise InvalidMatchPhase(
                    f"Side choice is not open (current phase: {match.phase})"
                )
            if participant.is_spectator:
                raise NotAuthorized(f"{participant.nickname} is a spectator")
            loser = match.results[-1].loser
            if match.settings.player_type == "single":
                allowed = self._is_single_controller(participant)
            else:
                allowed = participant.is_host or participant.team is loser
            if not allowed:
                raise NotAuthorized(
                    f"Only {match.settings.team_name(loser)} or the host may choose sides"
                )

            self.progression.choose_side(choice)
            self._arm_timer()
            return self._emit(NEXT_SET_STARTED)

    # ── Read helpers ─────────────────────────────────────────────────

    @property
    def is_finished(self) -> bool:
        return self.match_state.is_finished

    def snapshot(self) -> Dict:
        with self._lock:
            return self.match_state.snapshot()

    def get_available_champions(self, position: Optional[str] = None) -> List[Dict]:
        """Champion info dicts still eligible this phase, optionally by lane."""
        with self._lock:
            champions = []
            for cid in eligible_champions(self.match_state.draft):
                info = self.match_state.get_champion_info(cid)
                if position is None or position in info.get("positions", []):
                    champions.append(info)
            return champions
