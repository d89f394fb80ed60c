"""Ingestion of Data Dragon champion catalogs.

A Data Dragon ``champion.json`` looks like::

    {"type": "champion", "version": "14.10.1",
     "data": {"Aatrox": {"id": "Aatrox", "key": "266", "name": "Aatrox",
                         "image": {"full": "Aatrox.png", ...},
                         "tags": ["Fighter", "Tank"], ...}, ...}}
"""

import json
import logging
from pathlib import Path

import pandas as pd

from src.champion_data.config import CHAMPION_COLUMNS, CHAMPION_FILE

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """Raised when a champion catalog cannot be read."""


class ChampionDataIngester:
    """Reads a Data Dragon champion catalog into a DataFrame.

    Returned DataFrame has one row per champion with columns
    id, key, name, title, image, tags (image flattened to the file name).
    """

    def __init__(self, data_dir: Path, version: str):
        self.data_dir = Path(data_dir)
        self.version = version

    def _resolve_path(self) -> Path:
        """Build the catalog file path, raising if missing."""
        filepath = self.data_dir / CHAMPION_FILE
        if not filepath.exists():
            raise FileNotFoundError(f"Expected file not found: {filepath}")
        return filepath

    def read_champions(self) -> pd.DataFrame:
        """Read the champion catalog.

        Raises:
            IngestionError: If the file is not valid JSON or has no "data" map.
        """
        filepath = self._resolve_path()
        logger.info("Reading champion catalog: %s", filepath)

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                raw = json.load(f)
            records = list(raw["data"].values())
        except (json.JSONDecodeError, KeyError, AttributeError) as e:
            raise IngestionError(f"Failed to read {filepath}: {e}") from e

        file_version = raw.get("version")
        if file_version and file_version != self.version:
            logger.warning(
                "Catalog version %s does not match requested %s",
                file_version,
                self.version,
            )

        df = pd.DataFrame.from_records(records)
        for col in CHAMPION_COLUMNS:
            if col not in df.columns:
                df[col] = None
        df = df[CHAMPION_COLUMNS].copy()

        df["image"] = df["image"].apply(
            lambda img: img.get("full") if isinstance(img, dict) else img
        )
        df["tags"] = df["tags"].apply(lambda t: list(t) if isinstance(t, list) else [])

        logger.info("Loaded %d champions", len(df))
        return df
