"""State persistence - save and load match state to/from JSON files."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from src.draft_engine.config import MATCHES_DIR
from src.draft_engine.draft_state import (
    DraftState,
    MatchSettings,
    MatchState,
    Participant,
    SetResult,
    SideMapping,
    Team,
)
from src.draft_engine.turn_schedule import Side

logger = logging.getLogger(__name__)


class StatePersistence:
    """Handles saving and loading match state to/from JSON files."""

    def __init__(self, storage_dir: Optional[Path] = None):
        self.storage_dir = storage_dir or MATCHES_DIR
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def save_match(self, match_state: MatchState) -> Path:
        """Save match state to JSON file.

        Returns:
            Path to the saved file.
        """
        filename = f"match_{match_state.match_id}.json"
        filepath = self.storage_dir / filename

        state_dict = self._match_state_to_dict(match_state)

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(state_dict, f, indent=2)

        self._update_active_link(filepath)

        logger.info(
            "Saved match %s (set %d, phase %d) to %s",
            match_state.match_id,
            match_state.set_number,
            match_state.phase,
            filepath,
        )

        return filepath

    def load_match(self, match_id: str) -> Optional[MatchState]:
        """Load match state from JSON file.

        Returns:
            MatchState if found, None otherwise.
        """
        filepath = self.storage_dir / f"match_{match_id}.json"

        if not filepath.exists():
            logger.warning("Match file not found: %s", filepath)
            return None

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                state_dict = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt match file %s: %s", filepath, e)
            return None

        logger.info("Loaded match %s from %s", match_id, filepath)
        return self._dict_to_match_state(state_dict)

    def load_active_match(self) -> Optional[MatchState]:
        """Load the most recently saved match, if any."""
        active_link = self.storage_dir / "active_match.json"

        if not active_link.is_symlink():
            return None

        actual_file = active_link.resolve()
        if not actual_file.exists():
            logger.warning(
                "Active match symlink points to missing file: %s", actual_file
            )
            return None

        with open(actual_file, "r", encoding="utf-8") as f:
            state_dict = json.load(f)

        logger.info("Loaded active match from %s", actual_file)
        return self._dict_to_match_state(state_dict)

    def list_saved_matches(self) -> List[Dict]:
        """List all saved matches with metadata, most recent first."""
        matches = []

        for filepath in self.storage_dir.glob("match_*.json"):
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    data = json.load(f)

                matches.append(
                    {
                        "match_id": data["match_id"],
                        "created_at": data["created_at"],
                        "match_format": data["settings"]["match_format"],
                        "draft_type": data["settings"]["draft_type"],
                        "set_number": data["draft"]["set_number"],
                        "is_finished": data.get("is_finished", False),
                        "scores": data.get("scores", {}),
                    }
                )
            except (json.JSONDecodeError, OSError, KeyError) as e:
                logger.warning("Skipping corrupt match file %s: %s", filepath, e)
                continue

        return sorted(matches, key=lambda x: x["created_at"], reverse=True)

    def delete_match(self, match_id: str) -> bool:
        """Delete a saved match file. Returns False if not found."""
        filepath = self.storage_dir / f"match_{match_id}.json"

        if not filepath.exists():
            return False

        active_link = self.storage_dir / "active_match.json"
        if active_link.is_symlink() and active_link.resolve() == filepath.resolve():
            active_link.unlink()

        filepath.unlink()
        logger.info("Deleted match %s", match_id)
        return True

    def _match_state_to_dict(self, state: MatchState) -> Dict:
        """Convert MatchState to JSON-serializable dict."""
        settings = state.settings
        draft = state.draft
        return {
            "match_id": state.match_id,
            "created_at": state.created_at,
            "settings": {
                "version": settings.version,
                "draft_type": settings.draft_type,
                "player_type": settings.player_type,
                "match_format": settings.match_format,
                "time_limit": settings.time_limit,
                "phase_time_seconds": settings.phase_time_seconds,
                "global_bans": settings.global_bans,
                "team1_name": settings.team1_name,
                "team2_name": settings.team2_name,
            },
            "draft": {
                "set_number": draft.set_number,
                "team1_side": draft.side_mapping.team1_side.value,
                "phase": draft.phase,
                "slots": draft.slots,
                "started_at": draft.started_at,
                "completed_at": draft.completed_at,
            },
            "participants": [
                {
                    "client_id": p.client_id,
                    "nickname": p.nickname,
                    "team": p.team.value if p.team else None,
                    "seat": p.seat,
                    "is_ready": p.is_ready,
                    "is_host": p.is_host,
                }
                for p in state.participants
            ],
            "results": [
                {
                    "set_number": r.set_number,
                    "team1_side": r.side_mapping.team1_side.value,
                    "slots": r.slots,
                    "winner": r.winner.value,
                    "completed_at": r.completed_at,
                }
                for r in state.results
            ],
            "scores": {team.value: n for team, n in state.scores.items()},
            "fearless_history": {
                str(n): picks for n, picks in state.fearless_history.items()
            },
            "side_choice_open": state.side_choice_open,
            "is_finished": state.is_finished,
            "halted": state.halted,
            "last_updated_at": state.last_updated_at,
            "champion_data": state.champion_data,
        }

    def _dict_to_match_state(self, data: Dict) -> MatchState:
        """Reconstruct MatchState from dict."""
        s = data["settings"]
        settings = MatchSettings(
            version=s["version"],
            draft_type=s["draft_type"],
            player_type=s["player_type"],
            match_format=s["match_format"],
            time_limit=s.get("time_limit", True),
            phase_time_seconds=s.get("phase_time_seconds", 30),
            global_bans=s.get("global_bans", []),
            team1_name=s.get("team1_name", "Team 1"),
            team2_name=s.get("team2_name", "Team 2"),
        )

        fearless_history = {
            int(n): picks for n, picks in data.get("fearless_history", {}).items()
        }
        champion_data = data.get("champion_data", {})

        d = data["draft"]
        draft = DraftState(
            set_number=d["set_number"],
            side_mapping=SideMapping(Side(d["team1_side"])),
            draft_type=settings.draft_type,
            global_bans=list(settings.global_bans),
            fearless_history={
                n: list(p) for n, p in fearless_history.items() if n < d["set_number"]
            },
            champion_pool=list(champion_data.keys()),
            phase=d["phase"],
            slots=d["slots"],
            started_at=d.get("started_at"),
            completed_at=d.get("completed_at"),
        )

        participants = [
            Participant(
                client_id=pd["client_id"],
                nickname=pd["nickname"],
                team=Team(pd["team"]) if pd.get("team") else None,
                seat=pd.get("seat", 1),
                is_ready=pd.get("is_ready", False),
                is_host=pd.get("is_host", False),
            )
            for pd in data.get("participants", [])
        ]

        results = [
            SetResult(
                set_number=rd["set_number"],
                side_mapping=SideMapping(Side(rd["team1_side"])),
                slots=rd["slots"],
                winner=Team(rd["winner"]),
                completed_at=rd["completed_at"],
            )
            for rd in data.get("results", [])
        ]

        return MatchState(
            match_id=data["match_id"],
            settings=settings,
            created_at=data["created_at"],
            draft=draft,
            champion_data=champion_data,
            participants=participants,
            results=results,
            scores={Team(t): n for t, n in data.get("scores", {}).items()},
            fearless_history=fearless_history,
            side_choice_open=data.get("side_choice_open", False),
            is_finished=data.get("is_finished", False),
            halted=data.get("halted", False),
            last_updated_at=data.get("last_updated_at"),
        )

    def _update_active_link(self, filepath: Path):
        """Update symlink to the most recently saved match."""
        active_link = self.storage_dir / "active_match.json"

        if active_link.exists() or active_link.is_symlink():
            active_link.unlink()

        active_link.symlink_to(filepath.name)
