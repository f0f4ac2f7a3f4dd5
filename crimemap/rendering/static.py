"""Static map and chart images rendered with matplotlib."""

import logging
from pathlib import Path

import geopandas as gpd
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from crimemap.geometry.provider import DEFAULT_PROVIDER

logger = logging.getLogger(__name__)

MAX_SYMBOL_SIZE = 400.0


def _symbol_sizes(values: pd.Series) -> np.ndarray:
    """Scale values to marker areas; missing or non-positive values get no symbol."""
    numeric = pd.to_numeric(values, errors="coerce").astype("float64").to_numpy()
    sizes = np.zeros(len(numeric))
    valid = np.isfinite(numeric) & (numeric > 0)
    if valid.any():
        sizes[valid] = numeric[valid] / numeric[valid].max() * MAX_SYMBOL_SIZE
    return sizes


def render_static(
    dataset: gpd.GeoDataFrame,
    color_field: str,
    size_field: str,
    points: gpd.GeoDataFrame | None = None,
    title: str | None = None,
):
    """Choropleth of ``color_field`` with centroid symbols sized by ``size_field``.

    Regions with no ``color_field`` value are drawn light grey.
    """
    for field in (color_field, size_field):
        if field not in dataset.columns:
            raise KeyError(field)

    frame = dataset.copy()
    frame[color_field] = pd.to_numeric(frame[color_field], errors="coerce").astype("float64")

    fig, ax = plt.subplots(figsize=(9, 9))
    if frame[color_field].notna().any():
        frame.plot(
            ax=ax,
            column=color_field,
            cmap="OrRd",
            legend=True,
            edgecolor="white",
            linewidth=0.5,
            missing_kwds={"color": "lightgrey", "label": "No data"},
        )
    else:
        logger.warning("No values in %s, drawing regions without fill", color_field)
        frame.plot(ax=ax, color="lightgrey", edgecolor="white", linewidth=0.5)

    coords = DEFAULT_PROVIDER.centroids(frame.geometry)
    ax.scatter(
        coords[:, 0],
        coords[:, 1],
        s=_symbol_sizes(frame[size_field]),
        facecolors="none",
        edgecolors="#2b2b2b",
        linewidths=0.8,
        label=size_field,
    )

    if points is not None and not points.empty:
        points.plot(ax=ax, color="#1f4e79", markersize=6, label="stations")

    ax.set_title(title or f"{color_field} by region (symbols: {size_field})")
    ax.set_axis_off()
    fig.tight_layout()
    logger.info("Rendered static map of %d regions", len(frame))
    return fig


def render_scatter(dataset: pd.DataFrame, x_field: str, y_field: str, color_field: str | None = None):
    """Scatter plot of two attribute fields, optionally coloured by a third."""
    fig, ax = plt.subplots(figsize=(7, 5))
    x = pd.to_numeric(dataset[x_field], errors="coerce").astype("float64")
    y = pd.to_numeric(dataset[y_field], errors="coerce").astype("float64")
    if color_field is None:
        ax.scatter(x, y, color="#b30000")
    else:
        colors = pd.to_numeric(dataset[color_field], errors="coerce").astype("float64")
        sc = ax.scatter(x, y, c=colors, cmap="OrRd", edgecolors="#2b2b2b")
        fig.colorbar(sc, ax=ax, label=color_field)
    ax.set_xlabel(x_field)
    ax.set_ylabel(y_field)
    fig.tight_layout()
    return fig


def save_static(fig, path: Path, dpi: int = 200) -> Path:
    """Write a figure to disk and release it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi)
    plt.close(fig)
    logger.info("Saved static map to %s", path)
    return path
