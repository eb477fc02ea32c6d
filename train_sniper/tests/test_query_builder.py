import pytest
from pydantic import ValidationError

from train_sniper.query_builder import (
    DEFAULT_ARRIVAL_LOCATION_ID,
    DEFAULT_DEPARTURE_LOCATION_ID,
    build_search_request,
)


def test_defaults_route_when_unset():
    req = build_search_request("2024-06-01T00:00:00")
    assert req.departure_location_id == DEFAULT_DEPARTURE_LOCATION_ID
    assert req.arrival_location_id == DEFAULT_ARRIVAL_LOCATION_ID
    assert req.departure_time == "2024-06-01T00:00:00"
    assert req.adults == 1
    assert req.children == 0


def test_zero_location_falls_back_to_default():
    req = build_search_request("2024-06-01", 0, 0)
    assert req.departure_location_id == DEFAULT_DEPARTURE_LOCATION_ID
    assert req.arrival_location_id == DEFAULT_ARRIVAL_LOCATION_ID


def test_overrides_and_payload_keys():
    req = build_search_request("2024-06-01", 830001700, 830008409)
    payload = req.to_payload()
    assert payload == {
        "departureLocationId": 830001700,
        "arrivalLocationId": 830008409,
        "departureTime": "2024-06-01",
        "adults": 1,
        "children": 0,
        "criteria": {
            "frecceOnly": False,
            "regionalOnly": False,
            "intercityOnly": False,
            "tourismOnly": False,
            "noChanges": True,
            "order": "DEPARTURE_DATE",
            "offset": 0,
            "limit": 100,
        },
        "advancedSearchRequest": {"bestFare": False, "bikeFilter": False},
    }


def test_request_is_immutable():
    req = build_search_request("2024-06-01")
    with pytest.raises(ValidationError):
        req.departure_time = "2024-06-02"
