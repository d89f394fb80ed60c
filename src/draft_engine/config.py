from pathlib import Path

# Base project directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Data directories
PROCESSED_DATA_DIR = PROJECT_ROOT / "data" / "processed"
MATCHES_DIR = PROJECT_ROOT / "data" / "matches"

# Phase numbering for a single set. 1-20 are ban/pick slots, the rest are
# sentinels for the surrounding match flow.
LOBBY_PHASE = 0
FIRST_DRAFT_PHASE = 1
LAST_DRAFT_PHASE = 20
RESULT_PHASE = 21
SIDE_CHOICE_PHASE = 22
MATCH_FINISHED_PHASE = 23

# Slot 0 is unused so slot index == phase number
SLOT_COUNT = 21

# Draft modes
DRAFT_TYPES = {"tournament", "hardFearless", "softFearless"}
FEARLESS_DRAFT_TYPES = {"hardFearless", "softFearless"}

# Seats per team for each player type ("single" = one client drives both sides)
SEATS_PER_TEAM = {
    "single": 1,
    "1v1": 1,
    "5v5": 5,
}

# Maximum number of sets and wins needed per match format
MATCH_FORMATS = {
    "bo1": {"max_sets": 1, "wins_needed": 1},
    "bo3": {"max_sets": 3, "wins_needed": 2},
    "bo5": {"max_sets": 5, "wins_needed": 3},
}

SIDE_CHOICES = {"keep", "swap"}

# Default match settings
DEFAULT_PATCH_VERSION = "14.10.1"
DEFAULT_DRAFT_TYPE = "tournament"
DEFAULT_PLAYER_TYPE = "1v1"
DEFAULT_MATCH_FORMAT = "bo1"
DEFAULT_TIME_LIMIT = True
DEFAULT_PHASE_TIME_SECONDS = 30
DEFAULT_TEAM_NAMES = ("Team 1", "Team 2")
