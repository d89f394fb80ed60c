"""Build the processed champion catalog for one patch.

Usage:
    python -m src.champion_data.run_update [version] [data_dir]

Examples:
    python -m src.champion_data.run_update 14.10.1
    python -m src.champion_data.run_update 14.10.1 /path/to/ddragon/14.10.1
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from src.champion_data.cleaning import ChampionDataCleaner
from src.champion_data.config import IMAGE_URL_TEMPLATE, PROCESSED_DATA_DIR, RAW_DATA_DIR
from src.champion_data.ingestion import ChampionDataIngester
from src.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _champion_to_dict(row: pd.Series, version: str) -> dict:
    """Convert a single champion row to the output JSON structure."""
    key = row["key"]
    return {
        "id": row["id"],
        "key": None if pd.isna(key) else int(key),
        "name": row["name"],
        "title": row["title"] if isinstance(row["title"], str) else "",
        "image": row["image"],
        "image_url": IMAGE_URL_TEMPLATE.format(version=version, image=row["image"])
        if isinstance(row["image"], str)
        else None,
        "tags": list(row["tags"]),
        "positions": list(row["positions"]),
    }


def run_pipeline(
    version: str,
    data_dir: Path | None = None,
    output_dir: Path | None = None,
) -> Path:
    """Run the champion catalog pipeline.

    Args:
        version: Patch version, e.g. "14.10.1".
        data_dir: Directory containing the Data Dragon ``champion.json``.
            Defaults to ``data/raw/{version}``.
        output_dir: Directory for JSON output.
            Defaults to ``data/processed/``.

    Returns:
        Path to the generated JSON file.

    Raises:
        FileNotFoundError: If the data directory doesn't exist.
    """
    if data_dir is None:
        data_dir = RAW_DATA_DIR / version
    if output_dir is None:
        output_dir = PROCESSED_DATA_DIR

    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    logger.info("Starting champion pipeline for patch %s (data: %s)", version, data_dir)

    # 1. Ingest
    logger.info("Step 1/3: Ingesting champion catalog...")
    raw = ChampionDataIngester(data_dir, version).read_champions()

    # 2. Clean
    logger.info("Step 2/3: Cleaning and attaching positions...")
    champions_df = ChampionDataCleaner().clean(raw)

    # 3. Output JSON
    logger.info("Step 3/3: Generating JSON output...")
    champions = [_champion_to_dict(row, version) for _, row in champions_df.iterrows()]

    output_data = {
        "metadata": {
            "version": "1.0",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "source": "Data Dragon",
            "patch": version,
            "total_champions": len(champions),
        },
        "champions": champions,
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / f"champions_{version}.json"

    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(output_data, f, indent=2, ensure_ascii=False)

    latest_link = output_dir / "champions_latest.json"
    if latest_link.exists() or latest_link.is_symlink():
        latest_link.unlink()
    latest_link.symlink_to(output_file.name)

    pos_counts = (
        champions_df["positions"]
        .apply(lambda p: p or ["unmapped"])
        .explode()
        .value_counts()
        .sort_index()
    )

    logger.info("Pipeline complete! Output: %s", output_file)
    logger.info("  Total champions: %d", len(champions))
    logger.info(
        "  By position: %s",
        ", ".join(f"{pos}={n}" for pos, n in pos_counts.items()),
    )

    return output_file


if __name__ == "__main__":
    setup_logging()

    if len(sys.argv) < 2:
        print("Usage: python -m src.champion_data.run_update <version> [data_dir]")
        sys.exit(2)

    version = sys.argv[1]
    data_dir = Path(sys.argv[2]) if len(sys.argv) > 2 else None

    try:
        output = run_pipeline(version, data_dir)
        print(f"Pipeline complete: {output}")
    except Exception:
        logger.exception("Pipeline failed")
        sys.exit(1)
