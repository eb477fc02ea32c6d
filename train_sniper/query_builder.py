from __future__ import annotations

from typing import Optional

from .models import AdvancedSearchRequest, Criteria, SearchRequest

# Fallback route when no override is configured.
DEFAULT_DEPARTURE_LOCATION_ID = 830000219
DEFAULT_ARRIVAL_LOCATION_ID = 830011145


def build_search_request(
    date: str,
    departure_location_id: Optional[int] = None,
    arrival_location_id: Optional[int] = None,
) -> SearchRequest:
    """Return the search request for one travel *date*.

    *date* is sent upstream exactly as configured. Unset (``None`` or ``0``)
    location ids fall back to the default route.
    """
    return SearchRequest(
        departure_location_id=departure_location_id
        or DEFAULT_DEPARTURE_LOCATION_ID,
        arrival_location_id=arrival_location_id or DEFAULT_ARRIVAL_LOCATION_ID,
        departure_time=date,
        adults=1,
        children=0,
        criteria=Criteria(
            frecce_only=False,
            regional_only=False,
            intercity_only=False,
            tourism_only=False,
            no_changes=True,
            order="DEPARTURE_DATE",
            offset=0,
            limit=100,
        ),
        advanced_search_request=AdvancedSearchRequest(
            best_fare=False, bike_filter=False
        ),
    )


__all__ = [
    "DEFAULT_ARRIVAL_LOCATION_ID",
    "DEFAULT_DEPARTURE_LOCATION_ID",
    "build_search_request",
]
