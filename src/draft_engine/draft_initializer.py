"""Match initialization - creates new matches from champion catalog data."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from src.draft_engine.config import (
    DEFAULT_DRAFT_TYPE,
    DEFAULT_MATCH_FORMAT,
    DEFAULT_PATCH_VERSION,
    DEFAULT_PHASE_TIME_SECONDS,
    DEFAULT_PLAYER_TYPE,
    DEFAULT_TEAM_NAMES,
    DRAFT_TYPES,
    MATCH_FORMATS,
    PROCESSED_DATA_DIR,
    SEATS_PER_TEAM,
)
from src.draft_engine.draft_state import MatchSettings, MatchState, SideMapping

logger = logging.getLogger(__name__)

# A set needs ten picks; fewer champions can never finish a draft.
MIN_POOL_SIZE = 10


class MatchInitializer:
    """Handles creation of new match instances."""

    def __init__(self, processed_data_dir: Optional[Path] = None):
        self.processed_data_dir = processed_data_dir or PROCESSED_DATA_DIR

    def create_match(
        self,
        version: str = DEFAULT_PATCH_VERSION,
        draft_type: str = DEFAULT_DRAFT_TYPE,
        player_type: str = DEFAULT_PLAYER_TYPE,
        match_format: str = DEFAULT_MATCH_FORMAT,
        time_limit: bool = True,
        phase_time_seconds: int = DEFAULT_PHASE_TIME_SECONDS,
        global_bans: Optional[List[str]] = None,
        team_names: Optional[List[str]] = None,
        champion_data: Optional[Dict[str, Dict]] = None,
    ) -> MatchState:
        """
        Create a new match waiting in the lobby.

        Args:
            version: Patch version whose champion catalog to load
            draft_type: "tournament", "hardFearless" or "softFearless"
            player_type: "single", "1v1" or "5v5"
            match_format: "bo1", "bo3" or "bo5"
            time_limit: Whether phases have a deadline
            phase_time_seconds: Deadline per ban/pick phase
            global_bans: Champions banned for the whole match
            team_names: [team1, team2]
            champion_data: Catalog to use instead of the processed file

        Returns:
            MatchState ready for participants to join
        """
        global_bans = list(global_bans or [])
        team_names = list(team_names or DEFAULT_TEAM_NAMES)

        self._validate_inputs(
            draft_type, player_type, match_format, phase_time_seconds, team_names
        )

        if champion_data is None:
            champion_data = self._load_champion_data(version)
        self._validate_pool(champion_data, global_bans)

        settings = MatchSettings(
            version=version,
            draft_type=draft_type,
            player_type=player_type,
            match_format=match_format,
            time_limit=time_limit,
            phase_time_seconds=phase_time_seconds,
            global_bans=global_bans,
            team1_name=team_names[0],
            team2_name=team_names[1],
        )

        match_state = MatchState.create_new(
            settings=settings,
            champion_data=champion_data,
            side_mapping=SideMapping(),
        )

        logger.info(
            "Created match %s: %s %s %s, %d champions, %d global bans",
            match_state.match_id,
            match_format,
            draft_type,
            player_type,
            len(champion_data),
            len(global_bans),
        )

        return match_state

    def _validate_inputs(
        self,
        draft_type: str,
        player_type: str,
        match_format: str,
        phase_time_seconds: int,
        team_names: List[str],
    ):
        """Validate match configuration inputs."""
        if draft_type not in DRAFT_TYPES:
            raise ValueError(
                f"Invalid draft type '{draft_type}'. "
                f"Must be one of: {sorted(DRAFT_TYPES)}"
            )

        if player_type not in SEATS_PER_TEAM:
            raise ValueError(
                f"Invalid player type '{player_type}'. "
                f"Must be one of: {sorted(SEATS_PER_TEAM)}"
            )

        if match_format not in MATCH_FORMATS:
            raise ValueError(
                f"Invalid match format '{match_format}'. "
                f"Must be one of: {sorted(MATCH_FORMATS)}"
            )

        if phase_time_seconds <= 0:
            raise ValueError(
                f"Phase time must be positive (got {phase_time_seconds})"
            )

        if len(team_names) != 2 or not all(n.strip() for n in team_names):
            raise ValueError("Exactly two non-empty team names are required")

    def _validate_pool(self, champion_data: Dict[str, Dict], global_bans: List[str]):
        unknown = [c for c in global_bans if c not in champion_data]
        if unknown:
            raise ValueError(f"Global bans not in champion pool: {unknown}")

        usable = len(champion_data) - len(set(global_bans))
        if usable < MIN_POOL_SIZE:
            raise ValueError(
                f"Champion pool too small: {usable} usable champions, "
                f"need at least {MIN_POOL_SIZE}"
            )

    def _load_champion_data(self, version: str) -> Dict[str, Dict]:
        """Load the processed champion catalog for a patch."""
        version_file = self.processed_data_dir / f"champions_{version}.json"

        if not version_file.exists():
            raise FileNotFoundError(
                f"No champion data found for patch {version}. "
                "Run data pipeline first: "
                "python -m src.champion_data.run_update"
            )

        with open(version_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        try:
            champion_data = {
                champion["id"]: champion for champion in data["champions"]
            }
        except KeyError as e:
            raise ValueError(
                f"Malformed champion data file for {version}: missing key {e}. "
                "Re-run data pipeline to regenerate."
            ) from e

        logger.info("Loaded %d champions for patch %s", len(champion_data), version)
        return champion_data
