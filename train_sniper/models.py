"""Data models for the Trenitalia ticket-solutions API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ────────────────────────────────────────────────────────────────
# Request
# ────────────────────────────────────────────────────────────────


class Criteria(CamelModel):
    model_config = ConfigDict(frozen=True)

    frecce_only: bool = False
    regional_only: bool = False
    intercity_only: bool = False
    tourism_only: bool = False
    no_changes: bool = True
    order: str = "DEPARTURE_DATE"
    offset: int = 0
    limit: int = 100


class AdvancedSearchRequest(CamelModel):
    model_config = ConfigDict(frozen=True)

    best_fare: bool = False
    bike_filter: bool = False


class SearchRequest(CamelModel):
    """One search for one date; immutable once built."""

    model_config = ConfigDict(frozen=True)

    departure_location_id: int
    arrival_location_id: int
    departure_time: str
    adults: int = 1
    children: int = 0
    criteria: Criteria = Field(default_factory=Criteria)
    advanced_search_request: AdvancedSearchRequest = Field(
        default_factory=AdvancedSearchRequest
    )

    def to_payload(self) -> Dict[str, Any]:
        """JSON body expected by the upstream endpoint."""
        return self.model_dump(by_alias=True)


# ────────────────────────────────────────────────────────────────
# Response
# ────────────────────────────────────────────────────────────────


class Price(CamelModel):
    currency: Optional[str] = None
    amount: Optional[float] = None
    original_amount: Optional[float] = None
    indicative: Optional[bool] = None


class TrainSegment(CamelModel):
    """A single train inside a journey."""

    name: str
    train_category: Optional[str] = None
    denomination: Optional[str] = None
    description: Optional[str] = None
    acronym: Optional[str] = None
    logo_id: Optional[str] = None
    urban: bool = False


class TrainJourney(CamelModel):
    id: str
    origin: str
    destination: str
    departure_time: str
    arrival_time: str
    duration: Optional[str] = None
    status: Optional[str] = None
    trains: List[TrainSegment] = Field(default_factory=list)
    price: Optional[Price] = None


class Offer(CamelModel):
    offer_id: Optional[int] = None
    service_id: Optional[int] = None
    service_name: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Price] = None
    available_amount: Optional[int] = None
    status: Optional[str] = None
    offer_keys: List[str] = Field(default_factory=list)


class Service(CamelModel):
    id: Optional[int] = None
    name: Optional[str] = None
    short_name: Optional[str] = None
    group_name: Optional[str] = None
    description: Optional[str] = None
    description_standard: Optional[str] = None
    offers: List[Offer] = Field(default_factory=list)
    min_price: Optional[Price] = None
    best_offer_id: Optional[Union[str, int]] = None
    extended_name: Optional[str] = None
    description_key: Optional[str] = None


class GridSummary(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[str] = None
    highlighted_message: Optional[str] = None
    urban: bool = False
    vehicle_info: Optional[str] = None
    departure_location_name: Optional[str] = None
    arrival_location_name: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    train_info: Optional[TrainSegment] = None
    bdo_origin: Optional[str] = None
    show_infomobility_link: bool = False


class Grid(CamelModel):
    """Fare grid shown on the booking site; carried through, never inspected."""

    id: Optional[Union[str, int]] = None
    summaries: List[GridSummary] = Field(default_factory=list)
    selected_offer_id: Optional[Union[str, int]] = None
    selected_service_id: Optional[Union[str, int]] = None
    services: List[Service] = Field(default_factory=list)
    info_messages: List[str] = Field(default_factory=list)
    can_show_seat_map: bool = False
    collapsed_visualization: bool = False
    regional: bool = False


class VehicleEmission(CamelModel):
    type: Optional[str] = None
    kg_emissions: Optional[float] = None


class CO2Emission(CamelModel):
    summary_title: Optional[str] = None
    summary_description: Optional[str] = None
    vehicle_details: List[VehicleEmission] = Field(default_factory=list)


class TicketSolution(CamelModel):
    solution: TrainJourney
    grids: List[Grid] = Field(default_factory=list)
    messages: List[str] = Field(default_factory=list)
    co2_emission: Optional[CO2Emission] = Field(None, alias="co2Emission")
    next_day_solution: bool = False


class TrainApiResponse(CamelModel):
    search_id: Optional[str] = None
    cart_id: Optional[str] = None
    highlighted_messages: List[Any] = Field(default_factory=list)
    solutions: List[TicketSolution] = Field(default_factory=list)
    minimum_prices: List[Any] = Field(default_factory=list)


__all__ = [
    "AdvancedSearchRequest",
    "CO2Emission",
    "Criteria",
    "Grid",
    "GridSummary",
    "Offer",
    "Price",
    "SearchRequest",
    "Service",
    "TicketSolution",
    "TrainApiResponse",
    "TrainJourney",
    "TrainSegment",
    "VehicleEmission",
]
