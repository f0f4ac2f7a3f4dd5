"""Main pipeline orchestration: load → normalize → join → clip → render."""

import logging
import os
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

# Ensure project root is on the Python path
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import geopandas as gpd

from crimemap.config import Settings, get_settings
from crimemap.ingestion.loaders import load_points, load_polygons, load_prebuilt, load_table
from crimemap.quality.checks import run_all_checks
from crimemap.rendering.interactive import render_interactive, save_interactive
from crimemap.rendering.static import render_scatter, render_static, save_static
from crimemap.spatial.filter import filter_within, reproject
from crimemap.spatial.quadrants import classify_quadrant
from crimemap.transformation.join import (
    aggregate,
    category_equals,
    join_attributes,
    rename_keys,
    unmatched_keys,
)
from crimemap.transformation.normalize import normalize_field

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    regions: gpd.GeoDataFrame
    stations: gpd.GeoDataFrame
    crime_totals: dict
    outputs: dict[str, Path] = field(default_factory=dict)


def build_regions(settings: Settings, category: str | None = None) -> tuple[gpd.GeoDataFrame, dict]:
    """Load, normalize and join crime totals onto the region polygons."""
    polygons = load_polygons(settings.polygons_path)
    crimes = load_table(
        settings.crime_path,
        required_columns=(
            settings.crime_region_column,
            settings.crime_category_column,
            settings.crime_count_column,
        ),
    )

    for name in settings.numeric_fields:
        if name in polygons.columns:
            polygons = normalize_field(polygons, name, float)
        else:
            logger.warning("Numeric field %s not found in polygons", name)
    crimes = normalize_field(crimes, settings.crime_count_column, int)

    run_all_checks(
        polygons,
        crimes,
        settings.region_field,
        (settings.crime_region_column, settings.crime_category_column, settings.crime_count_column),
    )

    totals = aggregate(
        crimes,
        category_equals(settings.crime_category_column, category or settings.crime_category),
        settings.crime_region_column,
        settings.crime_count_column,
    )
    totals = rename_keys(totals, settings.key_aliases)

    no_crime, no_region = unmatched_keys(polygons, totals, settings.region_field)
    if no_crime:
        logger.warning("Regions without crime records: %s", no_crime)
    if no_region:
        logger.warning("Crime records without a matching region: %s", no_region)

    regions = join_attributes(polygons, totals, settings.region_field, settings.crime_count_column)
    regions = classify_quadrant(regions)
    return regions, totals


def build_stations(settings: Settings, regions: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Load the station points, move them into the regions' CRS and clip them."""
    stations = load_points(settings.points_path)
    stations = reproject(stations, regions.crs)
    return filter_within(stations, regions)


def write_outputs(figures: list, output_dir: Path) -> dict[str, Path]:
    """Save ``(key, filename, saver, figure)`` entries and move them into ``output_dir`` together.

    Files are staged next to ``output_dir`` first, so a failing save leaves
    no partial set of maps behind.
    """
    output_dir = Path(output_dir)
    output_dir.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(dir=output_dir.parent, prefix=".crimemap-") as staging:
        staged = {key: saver(fig, Path(staging) / filename) for key, filename, saver, fig in figures}
        output_dir.mkdir(parents=True, exist_ok=True)
        outputs = {}
        for key, path in staged.items():
            target = output_dir / path.name
            os.replace(path, target)
            outputs[key] = target
    logger.info("Wrote %d outputs to %s", len(outputs), output_dir)
    return outputs


def run(settings: Settings | None = None) -> PipelineResult:
    """Execute the full pipeline."""
    settings = settings or get_settings()
    logger.info("=== Starting crime map pipeline ===")

    # Step 1-3: Load, normalize, join
    logger.info("--- Step 1: Regions and crime totals ---")
    regions, totals = build_regions(settings)

    # Step 4: Spatial filter
    logger.info("--- Step 2: Station clip ---")
    stations = build_stations(settings, regions)

    # Step 5: Render (all figures are built before anything is written)
    logger.info("--- Step 3: Rendering ---")
    figures = [
        ("static", "crime_map.png", save_static,
         render_static(regions, settings.color_field, settings.size_field, points=stations)),
        ("scatter", "scatter.png", save_static,
         render_scatter(regions, settings.size_field, settings.color_field)),
        ("interactive", "crime_map.html", save_interactive,
         render_interactive(regions, settings.color_field, label_field=settings.region_field, points=stations)),
    ]
    if settings.prebuilt_path.exists():
        prebuilt = load_prebuilt(settings.prebuilt_path)
        color = settings.color_field if settings.color_field in prebuilt.columns else None
        figures.append(
            ("prebuilt", "prebuilt_map.html", save_interactive,
             render_interactive(prebuilt, color, label_field=settings.region_field))
        )
    else:
        logger.info("No pre-built dataset at %s, skipping", settings.prebuilt_path)

    result = PipelineResult(regions=regions, stations=stations, crime_totals=totals)
    result.outputs = write_outputs(figures, settings.output_dir)

    logger.info("=== Pipeline complete ===")
    return result


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        run(settings)
    except Exception:
        logger.exception("Pipeline failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
