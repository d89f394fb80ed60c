"""Set summaries and tabular match results for the result views."""

import logging
from typing import Dict, List, Optional

import pandas as pd

from src.draft_engine.config import RESULT_PHASE
from src.draft_engine.draft_state import MatchState, SideMapping, Team
from src.draft_engine.turn_schedule import Action, Side, pick_slot_label, turn_for

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "set_number",
    "phase",
    "action",
    "side",
    "team",
    "team_name",
    "seat",
    "champion_id",
    "champion_name",
    "won",
]


def summarize_slots(slots: List[Optional[str]]) -> Dict:
    """Split a 21-slot array into per-side bans and seat-labelled picks.

    Skipped bans are left out of the ban lists.
    """
    summary = {
        "blue_bans": [],
        "red_bans": [],
        "blue_picks": {},
        "red_picks": {},
    }
    for phase in range(1, min(len(slots), RESULT_PHASE)):
        champion = slots[phase]
        if not champion:
            continue
        turn = turn_for(phase)
        if turn.action is Action.BAN:
            summary[f"{turn.side.value}_bans"].append(champion)
        else:
            summary[f"{turn.side.value}_picks"][pick_slot_label(phase)] = champion
    return summary


class MatchReport:
    """Read-only reporting over a MatchState."""

    def __init__(self, match_state: MatchState):
        self.match_state = match_state

    def set_summary(self, set_number: Optional[int] = None) -> Dict:
        """Bans/picks of one set with team names resolved through its side mapping.

        Defaults to the set currently being drafted.
        """
        match = self.match_state
        if set_number is None or set_number == match.set_number:
            slots = match.draft.slots
            mapping = match.draft.side_mapping
            winner = None
            for result in match.results:
                if result.set_number == match.set_number:
                    winner = result.winner
        else:
            result = self._result_for(set_number)
            slots, mapping, winner = result.slots, result.side_mapping, result.winner

        summary = summarize_slots(slots)
        summary["set_number"] = set_number or match.set_number
        summary["blue_team"] = match.settings.team_name(mapping.team_on(Side.BLUE))
        summary["red_team"] = match.settings.team_name(mapping.team_on(Side.RED))
        summary["winner"] = winner.value if winner else None
        return summary

    def _result_for(self, set_number: int):
        for result in self.match_state.results:
            if result.set_number == set_number:
                return result
        raise KeyError(f"Set {set_number} has no recorded result")

    def results_frame(self) -> pd.DataFrame:
        """One row per resolved slot across every completed set."""
        match = self.match_state
        rows = []
        for result in match.results:
            rows.extend(self._slot_rows(result.set_number, result.slots, result.side_mapping, result.winner))

        df = pd.DataFrame(rows, columns=RESULT_COLUMNS)
        logger.debug("Built results frame: %d rows over %d sets", len(df), len(match.results))
        return df

    def _slot_rows(
        self,
        set_number: int,
        slots: List[Optional[str]],
        mapping: SideMapping,
        winner: Team,
    ) -> List[Dict]:
        rows = []
        for phase in range(1, RESULT_PHASE):
            champion = slots[phase]
            if not champion:
                continue
            turn = turn_for(phase)
            team = mapping.team_on(turn.side)
            info = self.match_state.get_champion_info(champion)
            rows.append(
                {
                    "set_number": set_number,
                    "phase": phase,
                    "action": turn.action.value,
                    "side": turn.side.value,
                    "team": team.value,
                    "team_name": self.match_state.settings.team_name(team),
                    "seat": pick_slot_label(phase) if turn.action is Action.PICK else None,
                    "champion_id": champion,
                    "champion_name": info.get("name", champion),
                    "won": team is winner,
                }
            )
        return rows

    def champion_usage(self) -> pd.DataFrame:
        """Pick/ban counts and pick win rate per champion, most used first."""
        df = self.results_frame()
        if df.empty:
            return pd.DataFrame(columns=["champion_id", "picks", "bans", "wins", "win_rate"])

        picks = df[df["action"] == Action.PICK.value]
        bans = df[df["action"] == Action.BAN.value]

        usage = pd.DataFrame(
            {
                "picks": picks.groupby("champion_id").size(),
                "bans": bans.groupby("champion_id").size(),
                "wins": picks[picks["won"]].groupby("champion_id").size(),
            }
        ).fillna(0).astype(int)
        usage.index.name = "champion_id"

        usage["win_rate"] = (
            usage["wins"] / usage["picks"].where(usage["picks"] > 0)
        ).round(3)
        usage = usage.reset_index()
        return usage.sort_values(
            ["picks", "bans", "champion_id"], ascending=[False, False, True]
        ).reset_index(drop=True)

    def final_summary(self) -> Dict:
        """Summary for the final results view.

        Returns dict with "error" key if the match is not finished.
        """
        match = self.match_state
        if not match.is_finished:
            return {"error": "Match not finished"}

        winner = max(Team, key=match.score_for)
        return {
            "match_id": match.match_id,
            "match_format": match.settings.match_format,
            "draft_type": match.settings.draft_type,
            "team1": {
                "name": match.settings.team1_name,
                "score": match.score_for(Team.TEAM1),
            },
            "team2": {
                "name": match.settings.team2_name,
                "score": match.score_for(Team.TEAM2),
            },
            "winner": winner.value,
            "sets": [self.set_summary(r.set_number) for r in match.results],
        }
