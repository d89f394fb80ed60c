"""Tests for the draft controller - lobby, ban/pick flow, timeouts and progression."""

import threading

import pytest

from src.draft_engine.draft_controller import DraftController
from src.draft_engine.draft_rules import (
    ChampionIneligible,
    InvalidMatchPhase,
    InvalidSelection,
    LobbyError,
    NoEligibleChampionsRemaining,
    NotAuthorized,
    OutOfTurn,
    StaleAdvance,
    eligible_champions,
)
from src.draft_engine.draft_state import ClientSession, MatchSettings, MatchState, Team
from src.draft_engine.events import (
    DRAFT_STARTED,
    MATCH_FINISHED,
    MATCH_HALTED,
    NEXT_SET_STARTED,
    PHASE_ADVANCED,
    SELECTION_PREVIEWED,
    SET_COMPLETED,
    SIDE_CHOICE_OPENED,
)
from src.draft_engine.timeout_policy import TimeoutPolicy
from src.draft_engine.turn_schedule import Side

HOST = ClientSession("c1", "host")
GUEST = ClientSession("c2", "guest")
WATCHER = ClientSession("c3", "watcher")


# ── Helpers ──────────────────────────────────────────────────────────


class FakeTimer:
    def __init__(self, interval, function, args=()):
        self.function = function
        self.args = args
        self.daemon = False
        self.cancelled = False

    def start(self):
        pass

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args)


def _make_match(champion_data, **overrides):
    defaults = {
        "version": "14.10.1",
        "draft_type": "tournament",
        "player_type": "1v1",
        "match_format": "bo3",
        "time_limit": False,
    }
    defaults.update(overrides)
    return MatchState.create_new(MatchSettings(**defaults), champion_data)


def _make_controller(champion_data, start=True, **overrides):
    """Controller for a 1v1 match: HOST on team1, GUEST on team2, both ready."""
    match = _make_match(champion_data, **overrides)
    ctrl = DraftController(match)
    ctrl.join(HOST, Team.TEAM1)
    ctrl.join(GUEST, Team.TEAM2)
    ctrl.set_ready(HOST)
    ctrl.set_ready(GUEST)
    if start:
        ctrl.start_draft(HOST)
    return ctrl, match


def _with_fake_timer(ctrl):
    ctrl.timeout_policy = TimeoutPolicy(
        30, on_expire=ctrl.force_timeout, rng=ctrl._rng, timer_factory=FakeTimer
    )
    return ctrl.timeout_policy


def _session_for(match, side):
    return HOST if match.draft.side_mapping.side_of(Team.TEAM1) is side else GUEST


def _play_set(ctrl, match):
    """Resolve every phase of the current set with the first eligible champion."""
    while not match.draft.is_complete:
        side = match.draft.current_turn().side
        champion = eligible_champions(match.draft)[0]
        ctrl.confirm_selection(_session_for(match, side), side, champion)


def _collect_events(ctrl):
    events = []
    ctrl.subscribe(events.append)
    return events


# ── Lobby ────────────────────────────────────────────────────────────


class TestLobby:
    def test_first_joiner_is_host(self, champion_data):
        ctrl = DraftController(_make_match(champion_data))
        host = ctrl.join(HOST, Team.TEAM1)
        guest = ctrl.join(GUEST, Team.TEAM2)
        assert host.is_host
        assert not guest.is_host

    def test_join_as_spectator(self, champion_data):
        ctrl = DraftController(_make_match(champion_data))
        watcher = ctrl.join(WATCHER)
        assert watcher.is_spectator

    def test_duplicate_join(self, champion_data):
        ctrl = DraftController(_make_match(champion_data))
        ctrl.join(HOST, Team.TEAM1)
        with pytest.raises(LobbyError, match="already joined"):
            ctrl.join(HOST, Team.TEAM2)

    def test_taken_seat_rolls_back_join(self, champion_data):
        match = _make_match(champion_data)
        ctrl = DraftController(match)
        ctrl.join(HOST, Team.TEAM1)
        with pytest.raises(LobbyError, match="taken"):
            ctrl.join(GUEST, Team.TEAM1)
        assert match.get_participant(GUEST.client_id) is None

    def test_seat_out_of_range(self, champion_data):
        ctrl = DraftController(_make_match(champion_data))
        with pytest.raises(LobbyError, match="Seat must be"):
            ctrl.join(HOST, Team.TEAM1, seat=2)

    def test_5v5_seats(self, champion_data):
        ctrl = DraftController(_make_match(champion_data, player_type="5v5"))
        p = ctrl.join(HOST, Team.TEAM2, seat=5)
        assert p.position == "team2-5"

    def test_spectator_cannot_ready(self, champion_data):
        ctrl = DraftController(_make_match(champion_data))
        ctrl.join(WATCHER)
        with pytest.raises(LobbyError):
            ctrl.set_ready(WATCHER)

    def test_change_seat_resets_ready(self, champion_data):
        ctrl, _ = _make_controller(champion_data, start=False)
        ctrl.change_seat(GUEST, None)
        p = ctrl.match_state.get_participant(GUEST.client_id)
        assert p.is_spectator
        assert not p.is_ready

    def test_change_seat_after_start(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        with pytest.raises(InvalidMatchPhase):
            ctrl.change_seat(GUEST, Team.TEAM1)

    def test_join_seat_after_start(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        late = ClientSession("c9", "late")
        with pytest.raises(InvalidMatchPhase, match="lobby"):
            ctrl.join(late, Team.TEAM2, seat=1)
        assert match.get_participant(late.client_id) is None

    def test_join_as_spectator_after_start(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        assert ctrl.join(WATCHER).is_spectator

    def test_leave_passes_host(self, champion_data):
        ctrl, match = _make_controller(champion_data, start=False)
        ctrl.leave(HOST)
        assert match.get_participant(GUEST.client_id).is_host

    def test_unknown_client(self, champion_data):
        ctrl = DraftController(_make_match(champion_data))
        with pytest.raises(NotAuthorized):
            ctrl.set_ready(WATCHER)


# ── Start draft ──────────────────────────────────────────────────────


class TestStartDraft:
    def test_host_starts(self, champion_data):
        ctrl, match = _make_controller(champion_data, start=False)
        events = _collect_events(ctrl)
        ctrl.start_draft(HOST)
        assert match.phase == 1
        assert events[-1].kind == DRAFT_STARTED
        assert events[-1].next_phase == 1

    def test_non_host_rejected(self, champion_data):
        ctrl, _ = _make_controller(champion_data, start=False)
        with pytest.raises(NotAuthorized):
            ctrl.start_draft(GUEST)

    def test_empty_seat(self, champion_data):
        ctrl = DraftController(_make_match(champion_data))
        ctrl.join(HOST, Team.TEAM1)
        ctrl.set_ready(HOST)
        with pytest.raises(LobbyError, match="team2-1 is empty"):
            ctrl.start_draft(HOST)

    def test_not_ready(self, champion_data):
        ctrl, _ = _make_controller(champion_data, start=False)
        ctrl.set_ready(GUEST, False)
        with pytest.raises(LobbyError, match="not ready"):
            ctrl.start_draft(HOST)

    def test_single_needs_one_seat(self, champion_data):
        ctrl = DraftController(_make_match(champion_data, player_type="single"))
        ctrl.join(HOST, Team.TEAM1)
        ctrl.set_ready(HOST)
        ctrl.start_draft(HOST)
        assert ctrl.match_state.phase == 1

    def test_twice(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        with pytest.raises(InvalidMatchPhase):
            ctrl.start_draft(HOST)

    def test_arms_timer(self, champion_data):
        ctrl, _ = _make_controller(champion_data, start=False)
        policy = _with_fake_timer(ctrl)
        ctrl.start_draft(HOST)
        assert policy.armed_for == (1, 1)


# ── Tentative selection ──────────────────────────────────────────────


class TestSelectChampion:
    def test_preview_broadcast(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        events = _collect_events(ctrl)
        ctrl.select_champion(HOST, Side.BLUE, "Ahri")
        assert match.tentative == {Side.BLUE: "Ahri"}
        assert match.phase == 1
        assert events[-1].kind == SELECTION_PREVIEWED
        assert events[-1].champion_id == "Ahri"
        assert events[-1].side == "blue"

    def test_other_side_not_authorized(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        with pytest.raises(NotAuthorized):
            ctrl.select_champion(GUEST, Side.BLUE, "Ahri")

    def test_spectator_not_authorized(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        ctrl.join(WATCHER)
        with pytest.raises(NotAuthorized):
            ctrl.select_champion(WATCHER, Side.BLUE, "Ahri")

    def test_not_your_turn(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        with pytest.raises(OutOfTurn):
            ctrl.select_champion(GUEST, Side.RED, "Ahri")

    def test_ineligible(self, champion_data):
        ctrl, _ = _make_controller(champion_data, global_bans=["Ahri"])
        with pytest.raises(ChampionIneligible):
            ctrl.select_champion(HOST, Side.BLUE, "Ahri")

    def test_bad_side_value(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        with pytest.raises(InvalidSelection):
            ctrl.select_champion(HOST, "green", "Ahri")


# ── Confirm selection ────────────────────────────────────────────────


class TestConfirmSelection:
    def test_advances_and_broadcasts(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        events = _collect_events(ctrl)
        ctrl.select_champion(HOST, Side.BLUE, "Ahri")
        record = ctrl.confirm_selection(HOST, Side.BLUE, "Ahri", expected_phase=1)
        assert record.phase == 1
        assert match.draft.slots[1] == "Ahri"
        assert match.phase == 2
        assert match.tentative == {}
        event = events[-1]
        assert event.kind == PHASE_ADVANCED
        assert event.phase == 1
        assert event.next_phase == 2
        assert event.slots[1] == "Ahri"

    def test_accepts_side_string(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        ctrl.confirm_selection(HOST, "blue", None)
        assert match.phase == 2

    def test_skip_ban(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        ctrl.confirm_selection(HOST, Side.BLUE, None)
        assert match.draft.slots[1] is None
        assert match.phase == 2

    def test_phase_12_confirm_for_13_is_out_of_turn(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        match.draft.phase = 12
        with pytest.raises(OutOfTurn):
            ctrl.confirm_selection(GUEST, Side.RED, "Zed", expected_phase=13)
        assert match.phase == 12
        assert match.draft.slots[12] is None

    def test_second_confirm_same_phase_is_stale(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        ctrl.confirm_selection(HOST, Side.BLUE, "Ahri", expected_phase=1)
        with pytest.raises(StaleAdvance):
            ctrl.confirm_selection(HOST, Side.BLUE, "Zed", expected_phase=1)
        assert match.draft.slots[1] == "Ahri"
        assert match.phase == 2

    def test_concurrent_confirms_only_one_wins(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        barrier = threading.Barrier(2)
        outcomes = []

        def confirm(champion):
            barrier.wait()
            try:
                ctrl.confirm_selection(HOST, Side.BLUE, champion, expected_phase=1)
                outcomes.append("ok")
            except StaleAdvance:
                outcomes.append("stale")

        threads = [threading.Thread(target=confirm, args=(c,)) for c in ("Ahri", "Zed")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["ok", "stale"]
        assert match.phase == 2
        assert match.draft.slots[1] in ("Ahri", "Zed")

    def test_rejection_keeps_state(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        ctrl.select_champion(HOST, Side.BLUE, "Ahri")
        with pytest.raises(InvalidSelection):
            ctrl.confirm_selection(HOST, Side.BLUE, "Nobody")
        assert match.phase == 1
        assert match.tentative == {Side.BLUE: "Ahri"}

    def test_single_mode_controls_both_sides(self, champion_data):
        ctrl = DraftController(_make_match(champion_data, player_type="single"))
        ctrl.join(HOST, Team.TEAM1)
        ctrl.set_ready(HOST)
        ctrl.start_draft(HOST)
        ctrl.confirm_selection(HOST, Side.BLUE, "Ahri")
        ctrl.confirm_selection(HOST, Side.RED, "Zed")
        assert ctrl.match_state.phase == 3

    def test_single_mode_rejects_other_seats(self, champion_data):
        ctrl = DraftController(_make_match(champion_data, player_type="single"))
        ctrl.join(HOST, Team.TEAM1)
        ctrl.join(GUEST, Team.TEAM2)
        ctrl.set_ready(HOST)
        ctrl.start_draft(HOST)
        with pytest.raises(NotAuthorized):
            ctrl.confirm_selection(GUEST, Side.BLUE, "Ahri")
        assert ctrl.match_state.phase == 1

    def test_5v5_pick_belongs_to_seat(self, champion_data):
        match = _make_match(champion_data, player_type="5v5")
        ctrl = DraftController(match)
        sessions = {}
        for team in Team:
            for seat in range(1, 6):
                session = ClientSession(f"{team.value}-{seat}", f"{team.value} p{seat}")
                ctrl.join(session, team, seat)
                ctrl.set_ready(session)
                sessions[(team, seat)] = session
        ctrl.start_draft(sessions[(Team.TEAM1, 1)])
        match.draft.phase = 9  # red2

        with pytest.raises(OutOfTurn, match="seat 2"):
            ctrl.confirm_selection(sessions[(Team.TEAM2, 1)], Side.RED, "Zed")
        ctrl.confirm_selection(sessions[(Team.TEAM2, 2)], Side.RED, "Zed")
        assert match.phase == 10

    def test_confirm_during_side_choice(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        _play_set(ctrl, match)
        ctrl.confirm_set_result(HOST, Team.TEAM1)
        with pytest.raises(InvalidMatchPhase):
            ctrl.confirm_selection(HOST, Side.BLUE, "Ahri")

    def test_confirm_before_start(self, champion_data):
        ctrl, _ = _make_controller(champion_data, start=False)
        with pytest.raises(InvalidMatchPhase):
            ctrl.confirm_selection(HOST, Side.BLUE, "Ahri")

    def test_full_set(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        events = _collect_events(ctrl)
        _play_set(ctrl, match)
        assert match.phase == 21
        assert len([e for e in events if e.kind == PHASE_ADVANCED]) == 20
        assert events[-1].kind == SET_COMPLETED
        assert events[-1].next_phase == 21


# ── Timeouts ─────────────────────────────────────────────────────────


class TestForceTimeout:
    def test_ban_timeout_skips(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        events = _collect_events(ctrl)
        record = ctrl.force_timeout(1, 1)
        assert record.forced
        assert match.draft.slots[1] is None
        assert match.phase == 2
        assert events[-1].forced

    def test_pick_timeout_at_phase_9(self, champion_data):
        ctrl, match = _make_controller(champion_data, global_bans=["Ahri", "Zed"])
        match.draft.phase = 9
        record = ctrl.force_timeout(1, 9)
        expected = set(champion_data) - {"Ahri", "Zed"}
        assert record.champion_id in expected
        assert match.draft.slots[9] == record.champion_id
        assert match.phase == 10

    def test_stale_phase_is_noop(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        ctrl.confirm_selection(HOST, Side.BLUE, "Ahri")
        assert ctrl.force_timeout(1, 1) is None
        assert match.phase == 2
        assert match.draft.slots[1] == "Ahri"

    def test_stale_set_is_noop(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        assert ctrl.force_timeout(2, 1) is None
        assert match.phase == 1

    def test_timer_losing_race_has_no_effect(self, champion_data):
        ctrl, match = _make_controller(champion_data, start=False)
        policy = _with_fake_timer(ctrl)
        ctrl.start_draft(HOST)
        timer = policy._timer
        ctrl.confirm_selection(HOST, Side.BLUE, "Ahri")
        assert timer.cancelled
        timer.fire()
        assert match.phase == 2
        assert match.draft.slots[1] == "Ahri"
        assert policy.armed_for == (1, 2)

    def test_timer_fire_advances(self, champion_data):
        ctrl, match = _make_controller(champion_data, start=False)
        policy = _with_fake_timer(ctrl)
        ctrl.start_draft(HOST)
        policy._timer.fire()
        assert match.phase == 2
        assert policy.armed_for == (1, 2)

    def test_timer_cancelled_at_set_end(self, champion_data):
        ctrl, match = _make_controller(champion_data, start=False)
        policy = _with_fake_timer(ctrl)
        ctrl.start_draft(HOST)
        _play_set(ctrl, match)
        assert policy.armed_for is None

    def test_no_eligible_halts_match(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        events = _collect_events(ctrl)
        match.draft.phase = 7
        match.draft.global_bans = list(champion_data)
        with pytest.raises(NoEligibleChampionsRemaining):
            ctrl.force_timeout(1, 7)
        assert match.halted
        assert match.phase == 7
        assert events[-1].kind == MATCH_HALTED
        with pytest.raises(InvalidMatchPhase, match="halted"):
            ctrl.confirm_selection(HOST, Side.BLUE, "Ahri")
        assert ctrl.force_timeout(1, 7) is None

    def test_halted_match_rejects_preview(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        match.draft.phase = 7
        match.draft.global_bans = list(champion_data)
        with pytest.raises(NoEligibleChampionsRemaining):
            ctrl.force_timeout(1, 7)
        match.draft.global_bans = []
        events = _collect_events(ctrl)
        with pytest.raises(InvalidMatchPhase, match="halted"):
            ctrl.select_champion(HOST, Side.BLUE, "Ahri")
        assert match.tentative == {}
        assert events == []


class TestResume:
    def test_rearms_open_phase(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        ctrl.confirm_selection(HOST, Side.BLUE, "Ahri")
        resumed = DraftController(match)
        policy = _with_fake_timer(resumed)
        assert resumed.resume()
        assert policy.armed_for == (1, 2)
        policy._timer.fire()
        assert match.phase == 3

    def test_lobby_not_armed(self, champion_data):
        ctrl, _ = _make_controller(champion_data, start=False)
        policy = _with_fake_timer(ctrl)
        assert not ctrl.resume()
        assert policy.armed_for is None

    def test_halted_not_armed(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        match.halted = True
        policy = _with_fake_timer(ctrl)
        assert not ctrl.resume()
        assert policy.armed_for is None

    def test_without_time_limit(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        assert ctrl.timeout_policy is None
        assert not ctrl.resume()


# ── Match progression ────────────────────────────────────────────────


class TestProgression:
    def test_non_host_cannot_confirm_result(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        _play_set(ctrl, match)
        with pytest.raises(NotAuthorized):
            ctrl.confirm_set_result(GUEST, Team.TEAM2)

    def test_result_opens_side_choice(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        events = _collect_events(ctrl)
        _play_set(ctrl, match)
        ctrl.confirm_set_result(HOST, Team.TEAM1)
        event = events[-1]
        assert event.kind == SIDE_CHOICE_OPENED
        assert event.winner == "team1"
        assert event.losing_side == "red"
        assert event.next_phase == 22

    def test_winner_cannot_choose(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        _play_set(ctrl, match)
        ctrl.confirm_set_result(HOST, Team.TEAM2)
        with pytest.raises(NotAuthorized):
            ctrl.choose_side(GUEST, "swap")

    def test_loser_chooses_swap(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        events = _collect_events(ctrl)
        _play_set(ctrl, match)
        ctrl.confirm_set_result(HOST, Team.TEAM1)
        ctrl.choose_side(GUEST, "swap")
        assert match.set_number == 2
        assert match.phase == 1
        assert match.draft.side_mapping.side_of(Team.TEAM2) is Side.BLUE
        assert events[-1].kind == NEXT_SET_STARTED
        assert events[-1].team1_side == "red"

    def test_swapped_sides_change_control(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        _play_set(ctrl, match)
        ctrl.confirm_set_result(HOST, Team.TEAM1)
        ctrl.choose_side(GUEST, "swap")
        with pytest.raises(NotAuthorized):
            ctrl.confirm_selection(HOST, Side.BLUE, "Ahri")
        ctrl.confirm_selection(GUEST, Side.BLUE, "Ahri")
        assert match.phase == 2

    def test_spectator_cannot_choose(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        ctrl.join(WATCHER)
        _play_set(ctrl, match)
        ctrl.confirm_set_result(HOST, Team.TEAM1)
        with pytest.raises(NotAuthorized, match="spectator"):
            ctrl.choose_side(WATCHER, "swap")
        assert match.side_choice_open

    def test_single_mode_side_choice(self, champion_data):
        match = _make_match(champion_data, player_type="single")
        ctrl = DraftController(match)
        ctrl.join(HOST, Team.TEAM1)
        ctrl.join(WATCHER)
        ctrl.set_ready(HOST)
        ctrl.start_draft(HOST)
        while not match.draft.is_complete:
            side = match.draft.current_turn().side
            ctrl.confirm_selection(HOST, side, eligible_champions(match.draft)[0])
        ctrl.confirm_set_result(HOST, Team.TEAM2)
        with pytest.raises(NotAuthorized):
            ctrl.choose_side(WATCHER, "swap")
        ctrl.choose_side(HOST, "swap")
        assert match.set_number == 2

    def test_choose_side_when_closed(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        with pytest.raises(InvalidMatchPhase):
            ctrl.choose_side(HOST, "keep")

    def test_bo1_finishes(self, champion_data):
        ctrl, match = _make_controller(champion_data, match_format="bo1")
        events = _collect_events(ctrl)
        _play_set(ctrl, match)
        ctrl.confirm_set_result(HOST, Team.TEAM2)
        assert ctrl.is_finished
        assert events[-1].kind == MATCH_FINISHED
        assert events[-1].winner == "team2"
        assert events[-1].next_phase == 23


# ── Read helpers ─────────────────────────────────────────────────────


class TestReadHelpers:
    def test_available_champions_excludes_taken(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        ctrl.confirm_selection(HOST, Side.BLUE, "Ahri")
        ids = [c["id"] for c in ctrl.get_available_champions()]
        assert "Ahri" not in ids
        assert len(ids) == len(champion_data) - 1

    def test_available_champions_by_position(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        mids = [c["id"] for c in ctrl.get_available_champions("mid")]
        assert "Ahri" in mids
        assert "Thresh" not in mids

    def test_snapshot(self, champion_data):
        ctrl, match = _make_controller(champion_data)
        snap = ctrl.snapshot()
        assert snap["match_id"] == match.match_id
        assert snap["phase"] == 1

    def test_unsubscribe(self, champion_data):
        ctrl, _ = _make_controller(champion_data)
        events = []
        ctrl.subscribe(events.append)
        ctrl.unsubscribe(events.append)
        ctrl.confirm_selection(HOST, Side.BLUE, None)
        assert events == []
