#!/usr/bin/env python3
"""
Watch session visualization using folium maps.
"""

from typing import List, Optional, Sequence, Tuple
import logging
import math
import folium
from folium.template import Template

from .config import WatcherConfig
from .metrics import SessionMetrics
from .route import Route
from .watcher import DeviationResult

logger = logging.getLogger(__name__)

ROUTE_COLOR = "#2E86AB"
ON_ROUTE_COLOR = "#3B9B5A"
OFF_ROUTE_COLOR = "#D23C4C"


class DeviationLegend(folium.MacroElement):
    """Custom legend for deviation visualization with dynamic counts."""

    def __init__(self, metrics: SessionMetrics, threshold_m: float):
        super().__init__()
        self.on_route_count = metrics.samples - metrics.off_route_samples
        self.off_route_count = metrics.off_route_samples
        self.alert_count = metrics.alerts
        self.threshold_m = threshold_m

        self._template = Template(
            """
        {% macro html(this, kwargs) %}
        <div id="deviation-legend" style="
            position: fixed;
            bottom: 50px;
            left: 50px;
            width: 230px;
            min-height: 90px;
            background-color: white;
            border: 2px solid grey;
            z-index: 9999;
            font-size: 13px;
            padding: 12px;
            font-family: Arial, sans-serif;
            border-radius: 5px;
            box-shadow: 0 2px 5px rgba(0,0,0,0.2);
            box-sizing: border-box;
        ">
            <b>Legend</b> (threshold {{ this.threshold_m }} m)<br>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: #2E86AB; font-size: 18px;">&mdash;</span>
                Planned Route
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: #3B9B5A; font-size: 18px;">&#9679;</span>
                On Route ({{ this.on_route_count }})
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: #D23C4C; font-size: 18px;">&#9679;</span>
                Off Route ({{ this.off_route_count }})
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: orange; font-size: 18px;">&#9888;</span>
                Alerts ({{ this.alert_count }})
            </div>
        </div>
        {% endmacro %}
        """
        )


def sample_to_html(result: DeviationResult) -> str:
    """
    Format a sample's measurement into HTML for popup display.

    Args:
        result: The DeviationResult to format

    Returns:
        HTML-formatted string
    """
    sample = result.sample
    html_parts = []

    if sample.sample_id is not None:
        html_parts.append(f"<b>Sample {sample.sample_id}</b><br>")
    if math.isfinite(result.distance_m):
        html_parts.append(f"<b>Distance:</b> {result.distance_m:.1f} m<br>")
    else:
        html_parts.append("<b>Distance:</b> not measured<br>")
    html_parts.append(f"<b>State:</b> {result.state}")

    extras = [
        ("time", sample.time),
        ("altitude", sample.altitude),
        ("altitude_accuracy", sample.altitude_accuracy),
        ("speed", sample.speed),
        ("accuracy", sample.accuracy),
        ("bearing", sample.bearing),
    ]
    for key, value in extras:
        if value is not None:
            html_parts.append(f"<br>&nbsp;&nbsp;<i>{key}:</i> {value}")

    return "".join(html_parts)


def _map_bounds(
    route: Route, results: Sequence[DeviationResult], padding: float
) -> Tuple[float, float, float, float]:
    """Bounding box of route and samples as (south, west, north, east)."""
    points = list(route) + [result.sample.point for result in results]
    if not points:
        raise ValueError("Cannot create map for empty route without samples")
    return Route(points).get_bbox(padding)


def create_deviation_map(
    route: Route,
    results: List[DeviationResult],
    output_filename: str,
    config: WatcherConfig,
    metrics: SessionMetrics,
    threshold_m: Optional[float] = None,
) -> None:
    """
    Create an interactive map showing the planned route, samples and alerts, save as HTML.

    Args:
        route: Planned route
        results: DeviationResult for every processed sample
        output_filename: Path where HTML map file should be saved
        config: WatcherConfig containing settings like map padding
        metrics: SessionMetrics for the legend
        threshold_m: Threshold shown in the legend (default: config.threshold_m)

    Raises:
        ValueError: If there is neither a route nor any sample to draw
    """
    south, west, north, east = _map_bounds(route, results, config.map_padding)

    center_lat = (south + north) / 2
    center_lon = (west + east) / 2

    logger.debug(f"Creating map centered at ({center_lat:.4f}, {center_lon:.4f})")

    deviation_map = folium.Map(
        location=[center_lat, center_lon],
        tiles=None,
    )

    folium.TileLayer(
        tiles="CartoDB positron",
        attr=(
            "&copy; <a href='https://www.openstreetmap.org/copyright'>OpenStreetMap</a> "
            "contributors &copy; <a href='https://carto.com/attributions'>CARTO</a>"
        ),
        name="Standard",
        control=True,
        show=True,
    ).add_to(deviation_map)

    folium.TileLayer(
        tiles="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attr=(
            "Tiles &copy; Esri &mdash; Source: Esri, i-cubed, USDA, USGS, AEX, GeoEye, "
            "Getmapping, Aerogrid, IGN, IGP, UPR-EGP, and the GIS User Community"
        ),
        name="Satellite",
        control=True,
        show=False,
    ).add_to(deviation_map)

    folium.LayerControl().add_to(deviation_map)

    if len(route) >= 2:
        folium.PolyLine(
            [[pos.latitude, pos.longitude] for pos in route],
            color=ROUTE_COLOR,
            weight=4,
            opacity=0.7,
            popup="Planned Route",
            z_index=1,
        ).add_to(deviation_map)

    if len(route) >= 1:
        folium.Marker(
            [route[0].latitude, route[0].longitude],
            popup="Start",
            icon=folium.Icon(color="green", icon="play"),
        ).add_to(deviation_map)

        folium.Marker(
            [route[-1].latitude, route[-1].longitude],
            popup="End",
            icon=folium.Icon(color="red", icon="stop"),
        ).add_to(deviation_map)

    for result in results:
        location = [result.sample.latitude, result.sample.longitude]
        color = OFF_ROUTE_COLOR if result.exceeds else ON_ROUTE_COLOR
        folium.CircleMarker(
            location,
            radius=3,
            color=color,
            fill=True,
            fill_opacity=0.8,
            popup=folium.Popup(sample_to_html(result), max_width=300),
        ).add_to(deviation_map)

        if result.event is not None:
            folium.Marker(
                location,
                popup=folium.Popup(
                    f"<b>Off route alert</b><br>{sample_to_html(result)}",
                    max_width=300,
                ),
                icon=folium.Icon(color="orange", icon="warning-sign"),
            ).add_to(deviation_map)

    legend = DeviationLegend(
        metrics, threshold_m if threshold_m is not None else config.threshold_m
    )
    deviation_map.add_child(legend)

    deviation_map.fit_bounds([[south, west], [north, east]])

    deviation_map.save(output_filename)

    logger.debug(
        f"Map saved to {output_filename} with {metrics.samples} samples "
        f"and {metrics.alerts} alerts"
    )
