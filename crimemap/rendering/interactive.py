"""Interactive tiled map built with Plotly."""

import logging
from pathlib import Path

import geopandas as gpd
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from crimemap.errors import ProjectionError

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"
TILE_STYLE = "carto-positron"


def _to_wgs84(dataset: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    if dataset.crs is None:
        raise ProjectionError("Cannot place a dataset without a CRS on a tiled map")
    return dataset.to_crs(WGS84)


def _map_view(frame: gpd.GeoDataFrame) -> tuple[dict, float]:
    if frame.empty:
        return {"lat": 0.0, "lon": 0.0}, 1.0
    minx, miny, maxx, maxy = frame.total_bounds
    center = {"lat": float(miny + maxy) / 2, "lon": float(minx + maxx) / 2}
    span = max(float(maxx - minx), float(maxy - miny), 1e-6)
    zoom = 9.0 if span < 1 else 6.0 if span < 5 else 4.0
    return center, zoom


def render_interactive(
    dataset: gpd.GeoDataFrame,
    color_field: str | None = None,
    label_field: str | None = None,
    points: gpd.GeoDataFrame | None = None,
) -> go.Figure:
    """Build a Plotly choropleth of ``dataset`` on carto-positron tiles.

    Regions without a ``color_field`` value are drawn grey. When ``color_field``
    is omitted every region gets the same fill.
    """
    wgs = _to_wgs84(dataset)
    center, zoom = _map_view(wgs)
    frame = wgs.reset_index(drop=True)
    geojson = frame.geometry.__geo_interface__
    frame = pd.DataFrame(frame.drop(columns=frame.geometry.name))
    frame["feature_id"] = frame.index.astype(str)
    label_field = label_field if label_field in frame.columns else None
    hover_name = label_field or "feature_id"

    if color_field is not None:
        if color_field not in frame.columns:
            raise KeyError(color_field)
        frame[color_field] = pd.to_numeric(frame[color_field], errors="coerce").astype("float64")
        frame["has_data"] = frame[color_field].notna()
    else:
        frame["has_data"] = False

    has_data = frame[frame["has_data"]].copy()
    no_data = frame[~frame["has_data"]].copy()

    fig = go.Figure()
    if not has_data.empty:
        fig = px.choropleth_map(
            has_data,
            geojson=geojson,
            locations="feature_id",
            color=color_field,
            color_continuous_scale="OrRd",
            hover_name=hover_name,
            hover_data={"feature_id": False, color_field: ":.0f"},
            map_style=TILE_STYLE,
            center=center,
            zoom=zoom,
            opacity=0.7,
        )

    if not no_data.empty:
        no_data["fill"] = "no data"
        fig_gray = px.choropleth_map(
            no_data,
            geojson=geojson,
            locations="feature_id",
            color="fill",
            color_discrete_sequence=["#d3d3d3"],
            hover_name=hover_name,
            hover_data={"feature_id": False, "fill": False},
            map_style=TILE_STYLE,
            center=center,
            zoom=zoom,
            opacity=0.5,
        )
        for trace in fig_gray.data:
            trace.hovertemplate = "<b>%{hovertext}</b><br>No data available<extra></extra>"
            trace.showlegend = False
            fig.add_trace(trace)

    if points is not None and not points.empty:
        stations = _to_wgs84(points)
        stations = stations[stations.geometry.notna() & ~stations.geometry.is_empty]
        fig.add_trace(
            go.Scattermap(
                lon=stations.geometry.x,
                lat=stations.geometry.y,
                mode="markers",
                marker={"size": 6, "color": "#1f4e79"},
                name="stations",
                hoverinfo="skip",
            )
        )

    fig.update_layout(
        map={"style": TILE_STYLE, "center": center, "zoom": zoom},
        margin={"r": 0, "t": 0, "l": 0, "b": 0},
        height=600,
    )
    logger.info("Rendered interactive map of %d regions (%d without data)", len(frame), len(no_data))
    return fig


def save_interactive(fig: go.Figure, path: Path) -> Path:
    """Write a standalone HTML map."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(str(path))
    logger.info("Saved interactive map to %s", path)
    return path
