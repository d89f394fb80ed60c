"""Shared fixtures for the draft engine and champion pipeline test suite."""

import json

import pytest

from src.champion_data.cleaning import ChampionDataCleaner
from src.champion_data.positions import get_champion_positions

# Enough champions for a full set (10 picks + 10 bans) with room to spare.
CHAMPION_IDS = [
    "Aatrox", "Ahri", "Akali", "Alistar", "Ashe", "Azir", "Bard", "Braum",
    "Caitlyn", "Darius", "Ezreal", "Fiora", "Garen", "Graves", "Jinx",
    "LeeSin", "Leona", "Lux", "Nautilus", "Orianna", "Renekton", "Sejuani",
    "Thresh", "Varus", "Vi", "Viego", "Xayah", "Yasuo", "Yone", "Zed",
]


# ------------------------------------------------------------------
# Lightweight factories – cheap to construct, no I/O
# ------------------------------------------------------------------

@pytest.fixture
def champion_data():
    """Processed-catalog style champion dicts keyed by id."""
    return {
        cid: {
            "id": cid,
            "name": cid,
            "title": "",
            "image": f"{cid}.png",
            "tags": [],
            "positions": get_champion_positions(cid),
        }
        for cid in CHAMPION_IDS
    }


@pytest.fixture(scope="module")
def cleaner():
    return ChampionDataCleaner()


# ------------------------------------------------------------------
# Raw Data Dragon catalog written to a temp directory
# ------------------------------------------------------------------

@pytest.fixture
def raw_records():
    """Data Dragon ``data`` map for the shared champion ids."""
    return {
        cid: {
            "id": cid,
            "key": str(100 + i),
            "name": cid,
            "title": f"the {cid}",
            "image": {"full": f"{cid}.png", "sprite": "champion0.png"},
            "tags": ["Fighter"],
        }
        for i, cid in enumerate(CHAMPION_IDS)
    }


@pytest.fixture
def raw_catalog_dir(tmp_path, raw_records):
    """Directory holding a minimal Data Dragon ``champion.json`` for 14.10.1."""
    directory = tmp_path / "raw" / "14.10.1"
    directory.mkdir(parents=True)
    payload = {"type": "champion", "version": "14.10.1", "data": raw_records}
    with open(directory / "champion.json", "w", encoding="utf-8") as f:
        json.dump(payload, f)
    return directory
