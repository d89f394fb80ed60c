from pathlib import Path

# Base project directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
PROCESSED_DATA_DIR = DATA_DIR / "processed"

# Data Dragon champion catalog file name inside data/raw/{version}/
CHAMPION_FILE = "champion.json"

# Image URL template for collaborators rendering the board
IMAGE_URL_TEMPLATE = (
    "https://ddragon.leagueoflegends.com/cdn/{version}/img/champion/{image}"
)

# Lane positions, in display order
POSITIONS = ["top", "jungle", "mid", "adc", "support"]

# Columns kept from the Data Dragon records
CHAMPION_COLUMNS = ["id", "key", "name", "title", "image", "tags"]
