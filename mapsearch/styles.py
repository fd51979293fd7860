"""Presentation helpers handed to the renderer: markers, highlight, dashboard links."""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote, urlencode

from .entities import Facility

SELECTED_FEATURE_STYLE = {"color": "#023610", "weight": 3, "fillOpacity": 0}
DASHBOARD_TAB = "9-overall"


def marker_color(facility: Facility) -> str:
    """Schools get blue markers, everything else red."""
    kind = (facility.facility_type or "").strip().lower()
    return "blue" if kind == "school" else "red"


def selected_feature_style() -> dict:
    return dict(SELECTED_FEATURE_STYLE)


def dashboard_url(facility: Facility, base_url: str) -> Optional[str]:
    """Link to the campus dashboard for ``facility``; None without a campus."""
    if not facility.campus:
        return None
    query = urlencode(
        {"campus_name": facility.campus, "tab": DASHBOARD_TAB}, quote_via=quote
    )
    sep = "&" if "?" in base_url else "?"
    return f"{base_url}{sep}{query}"


def marker_payload(facility: Facility, *, dashboard_base: Optional[str] = None) -> dict:
    """Everything the renderer needs to draw one facility marker."""
    return {
        "id": facility.id,
        "position": [facility.latitude, facility.longitude],
        "color": marker_color(facility),
        "popup": {
            "name": facility.name,
            "campus": facility.campus,
            "type": facility.facility_type,
        },
        "href": dashboard_url(facility, dashboard_base) if dashboard_base else None,
    }
