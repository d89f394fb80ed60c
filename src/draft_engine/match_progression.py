"""Set-to-set match flow: scoring, completion, side choice and fearless carryover."""

import logging
from datetime import datetime
from typing import Dict

from src.draft_engine.config import MATCH_FORMATS, RESULT_PHASE, SIDE_CHOICES
from src.draft_engine.draft_rules import InvalidMatchPhase, InvalidSelection
from src.draft_engine.draft_state import DraftState, MatchState, SetResult, SideMapping, Team

logger = logging.getLogger(__name__)


def is_match_finished(match_format: str, scores: Dict[Team, int], set_number: int) -> bool:
    """Whether a match is over after *set_number* sets with the given scores.

    bo1 always ends after one set; bo3 ends at 2 wins or after set 3; bo5
    ends at 3 wins or after set 5.
    """
    if match_format not in MATCH_FORMATS:
        raise ValueError(f"Unknown match format: {match_format}")
    fmt = MATCH_FORMATS[match_format]
    if max(scores.values(), default=0) >= fmt["wins_needed"]:
        return True
    return set_number >= fmt["max_sets"]


class MatchProgression:
    """Drives a match from one set's result to the next set's draft."""

    def __init__(self, match_state: MatchState):
        self.match_state = match_state

    def record_result(self, winner: Team) -> SetResult:
        """Score the finished set and either open side choice or finish the match.

        Raises:
            InvalidMatchPhase: If the current set is not at Result (21).
            InvalidSelection: If *winner* is not a team.
        """
        match = self.match_state
        if match.phase != RESULT_PHASE:
            raise InvalidMatchPhase(
                f"Set result can only be confirmed at phase {RESULT_PHASE} "
                f"(current: {match.phase})"
            )
        try:
            winner = Team(winner)
        except ValueError:
            raise InvalidSelection(f"Unknown team: {winner!r}") from None

        draft = match.draft
        result = SetResult(
            set_number=draft.set_number,
            side_mapping=draft.side_mapping,
            slots=list(draft.slots),
            winner=winner,
            completed_at=datetime.now().isoformat(),
        )
        match.results.append(result)
        match.scores[winner] = match.score_for(winner) + 1
        if match.settings.is_fearless:
            match.fearless_history[draft.set_number] = result.picks()

        if is_match_finished(
            match.settings.match_format, match.scores, draft.set_number
        ):
            match.is_finished = True
            logger.info(
                "Match %s finished after set %d: %s %d - %d %s",
                match.match_id,
                draft.set_number,
                match.settings.team1_name,
                match.score_for(Team.TEAM1),
                match.score_for(Team.TEAM2),
                match.settings.team2_name,
            )
        else:
            match.side_choice_open = True
            logger.info(
                "Set %d won by %s; %s side chooses next side",
                draft.set_number,
                match.settings.team_name(winner),
                match.losing_side.value,
            )

        match.touch()
        return result

    def choose_side(self, choice: str) -> DraftState:
        """Apply the losing side's keep/swap choice and start the next set.

        Raises:
            InvalidMatchPhase: If side choice is not open.
            InvalidSelection: If *choice* is not "keep" or "swap".
        """
        match = self.match_state
        if not match.side_choice_open:
            raise InvalidMatchPhase(
                f"Side choice is not open (current phase: {match.phase})"
            )
        if choice not in SIDE_CHOICES:
            raise InvalidSelection(
                f"Invalid side choice '{choice}'. Must be one of: {sorted(SIDE_CHOICES)}"
            )

        mapping = match.results[-1].side_mapping
        if choice == "swap":
            mapping = mapping.swapped()

        draft = self.next_draft(mapping)
        draft.start()
        match.draft = draft
        match.side_choice_open = False
        match.tentative.clear()
        match.touch()

        logger.info(
            "Set %d started: %s on %s (choice: %s)",
            draft.set_number,
            match.settings.team1_name,
            mapping.team1_side.value,
            choice,
        )
        return draft

    def next_draft(self, side_mapping: SideMapping) -> DraftState:
        """Fresh DraftState for the following set with fearless history carried over."""
        match = self.match_state
        return DraftState.create_new(
            set_number=match.set_number + 1,
            side_mapping=side_mapping,
            draft_type=match.settings.draft_type,
            global_bans=match.settings.global_bans,
            fearless_history=match.fearless_history,
            champion_pool=list(match.champion_data.keys()),
        )
