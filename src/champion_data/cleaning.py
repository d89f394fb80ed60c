"""Cleaning and enrichment of raw champion catalog DataFrames."""

import logging

import pandas as pd

from src.champion_data.positions import get_champion_positions

logger = logging.getLogger(__name__)


class ChampionDataCleaner:
    """Normalizes ids and names and attaches lane positions."""

    def clean(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        - Strips whitespace from string columns
        - Drops rows with no id and duplicate ids (first wins)
        - Parses the numeric key
        - Fills missing names with the id
        - Adds a ``positions`` list column
        - Sorts by display name
        """
        df = df.copy()

        for col in ("id", "name", "title", "image"):
            df[col] = df[col].apply(lambda v: v.strip() if isinstance(v, str) else v)

        missing = df["id"].isna() | (df["id"] == "")
        if missing.any():
            logger.warning("Dropping %d champions with no id", int(missing.sum()))
            df = df[~missing].copy()

        dupes = df["id"].duplicated()
        if dupes.any():
            logger.warning(
                "Dropping duplicate champion ids: %s",
                df.loc[dupes, "id"].tolist(),
            )
            df = df[~dupes].copy()

        df["key"] = pd.to_numeric(df["key"], errors="coerce").astype("Int64")
        df["name"] = df["name"].fillna(df["id"])
        df["positions"] = df["id"].apply(get_champion_positions)

        unmapped = df.loc[df["positions"].apply(len) == 0, "id"].tolist()
        if unmapped:
            logger.info("%d champions have no mapped position", len(unmapped))

        return df.sort_values("name", kind="stable").reset_index(drop=True)
