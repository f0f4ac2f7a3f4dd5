"""Runtime settings loaded from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Load .env from the project root regardless of working directory
_env_path = PROJECT_ROOT / ".env"
load_dotenv(_env_path)


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    output_dir: Path
    polygons_file: str
    points_file: str
    crime_file: str
    prebuilt_file: str
    crime_category: str
    region_field: str
    crime_region_column: str
    crime_category_column: str
    crime_count_column: str
    numeric_fields: tuple[str, ...]
    key_aliases: dict[str, str]
    color_field: str
    size_field: str
    log_level: str

    @property
    def polygons_path(self) -> Path:
        return self.data_dir / self.polygons_file

    @property
    def points_path(self) -> Path:
        return self.data_dir / self.points_file

    @property
    def crime_path(self) -> Path:
        return self.data_dir / self.crime_file

    @property
    def prebuilt_path(self) -> Path:
        return self.data_dir / self.prebuilt_file


def parse_list(raw: str) -> tuple[str, ...]:
    """Split a comma-separated value, dropping blanks."""
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def parse_aliases(raw: str) -> dict[str, str]:
    """Parse ``old=new`` pairs separated by commas."""
    aliases = {}
    for item in parse_list(raw):
        if "=" not in item:
            raise ValueError(f"Invalid key alias {item!r}, expected old=new")
        old, new = item.split("=", 1)
        aliases[old.strip()] = new.strip()
    return aliases


def get_settings() -> Settings:
    data_dir = Path(os.getenv("CRIMEMAP_DATA_DIR", str(PROJECT_ROOT / "data")))
    output_dir = Path(os.getenv("CRIMEMAP_OUTPUT_DIR", str(PROJECT_ROOT / "output")))
    return Settings(
        data_dir=data_dir,
        output_dir=output_dir,
        polygons_file=os.getenv("CRIMEMAP_POLYGONS", "london_sport.shp"),
        points_file=os.getenv("CRIMEMAP_POINTS", "lnd-stns.shp"),
        crime_file=os.getenv("CRIMEMAP_CRIME_TABLE", "mps-recordedcrime-borough.csv"),
        prebuilt_file=os.getenv("CRIMEMAP_PREBUILT", "lnd_wgs.parquet"),
        crime_category=os.getenv("CRIMEMAP_CRIME_CATEGORY", "Theft & Handling"),
        region_field=os.getenv("CRIMEMAP_REGION_FIELD", "name"),
        crime_region_column=os.getenv("CRIMEMAP_CRIME_REGION_COLUMN", "Borough"),
        crime_category_column=os.getenv("CRIMEMAP_CRIME_CATEGORY_COLUMN", "CrimeType"),
        crime_count_column=os.getenv("CRIMEMAP_CRIME_COUNT_COLUMN", "CrimeCount"),
        numeric_fields=parse_list(os.getenv("CRIMEMAP_NUMERIC_FIELDS", "Pop_2001")),
        key_aliases=parse_aliases(os.getenv("CRIMEMAP_KEY_ALIASES", "NULL=City of London")),
        color_field=os.getenv("CRIMEMAP_COLOR_FIELD", "CrimeCount"),
        size_field=os.getenv("CRIMEMAP_SIZE_FIELD", "Pop_2001"),
        log_level=os.getenv("CRIMEMAP_LOG_LEVEL", "INFO"),
    )
