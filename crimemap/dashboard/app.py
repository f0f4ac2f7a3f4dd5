"""Streamlit dashboard with an interactive crime map of London boroughs."""

import sys
from pathlib import Path

# Ensure project root is on the Python path
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pandas as pd
import plotly.express as px
import streamlit as st

from crimemap.config import get_settings
from crimemap.errors import CrimeMapError
from crimemap.ingestion.loaders import load_table
from crimemap.pipeline.run_pipeline import build_regions, build_stations
from crimemap.rendering.interactive import render_interactive

st.set_page_config(
    page_title="London Crime Map",
    page_icon=":world_map:",
    layout="wide",
)

SETTINGS = get_settings()


@st.cache_data(ttl=600)
def load_categories() -> list[str]:
    """Distinct crime categories in the crime table."""
    crimes = load_table(
        SETTINGS.crime_path,
        required_columns=(
            SETTINGS.crime_region_column,
            SETTINGS.crime_category_column,
            SETTINGS.crime_count_column,
        ),
    )
    return sorted(crimes[SETTINGS.crime_category_column].dropna().astype(str).unique())


@st.cache_data(ttl=600)
def load_regions(category: str):
    """Regions joined with the totals for one crime category."""
    regions, _ = build_regions(SETTINGS, category=category)
    return regions


@st.cache_data(ttl=600)
def load_stations(category: str):
    return build_stations(SETTINGS, load_regions(category))


def main() -> None:
    st.title("London Crime Map")
    st.markdown("Recorded crime per borough, with stations clipped to the borough extent.")

    with st.spinner("Loading crime categories..."):
        try:
            categories = load_categories()
        except CrimeMapError as e:
            st.error(f"Failed to load crime data: {e}")
            st.info(f"Make sure the input files are present in {SETTINGS.data_dir}.")
            return

    if not categories:
        st.warning("No crime records found.")
        return

    # --- Sidebar filters ---
    st.sidebar.header("Filters")
    default = categories.index(SETTINGS.crime_category) if SETTINGS.crime_category in categories else 0
    selected_crime = st.sidebar.selectbox("Crime Type", categories, index=default, key="crime_filter")

    metric_options = {"Recorded crimes": SETTINGS.crime_count_column}
    for name in SETTINGS.numeric_fields:
        metric_options[name] = name
    selected_metric_label = st.sidebar.radio("Map Metric", list(metric_options.keys()), key="metric_filter")
    selected_metric = metric_options[selected_metric_label]
    show_stations = st.sidebar.checkbox("Show stations", value=True)

    with st.spinner("Joining crime totals to boroughs..."):
        try:
            regions = load_regions(selected_crime)
            stations = load_stations(selected_crime) if show_stations else None
        except CrimeMapError as e:
            st.error(f"Pipeline failed: {e}")
            return

    if selected_metric not in regions.columns:
        st.warning(f"{selected_metric} is not present in the region data.")
        return

    # --- Summary cards ---
    with_data = regions[regions[SETTINGS.crime_count_column].notna()]
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Recorded Crimes", f"{with_data[SETTINGS.crime_count_column].sum():,.0f}")
    with col2:
        if not with_data.empty:
            top = with_data.loc[with_data[SETTINGS.crime_count_column].idxmax()]
            st.metric("Highest Borough", str(top[SETTINGS.region_field]))
        else:
            st.metric("Highest Borough", "N/A")
    with col3:
        st.metric("Boroughs with data", f"{len(with_data)} / {len(regions)}")

    st.subheader(f"{selected_metric_label} - {selected_crime}")
    fig_map = render_interactive(
        regions, selected_metric, label_field=SETTINGS.region_field, points=stations
    )
    st.plotly_chart(fig_map, use_container_width=True)

    st.subheader("Crimes by quadrant")
    by_quadrant = (
        pd.DataFrame(with_data.drop(columns=with_data.geometry.name))
        .groupby("quadrant")
        .agg(total_crimes=(SETTINGS.crime_count_column, "sum"))
        .reset_index()
    )
    fig_bar = px.bar(by_quadrant, x="quadrant", y="total_crimes", color="total_crimes", color_continuous_scale="OrRd")
    fig_bar.update_layout(showlegend=False)
    st.plotly_chart(fig_bar, use_container_width=True)

    with st.expander("View Raw Data"):
        st.dataframe(
            pd.DataFrame(regions.drop(columns=regions.geometry.name)).sort_values(
                SETTINGS.crime_count_column, ascending=False
            ),
            use_container_width=True,
        )


if __name__ == "__main__":
    main()
