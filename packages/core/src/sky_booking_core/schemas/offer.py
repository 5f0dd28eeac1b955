"""Cached flight offer DTOs, shaped like the provider's flight-offer payload."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import Field

from .base import CamelModel


class SegmentEndpoint(CamelModel):
    """Departure or arrival point of a segment."""

    iata_code: str = Field(pattern=r"^[A-Z]{3}$", description="IATA airport code")
    terminal: str | None = None
    at: datetime


class FlightSegment(CamelModel):
    """One leg of a journey."""

    id: str
    departure: SegmentEndpoint
    arrival: SegmentEndpoint
    carrier_code: str = Field(min_length=2, max_length=3)
    number: str
    duration: str | None = None
    number_of_stops: int = Field(default=0, ge=0)

    @property
    def flight_number(self) -> str:
        return f"{self.carrier_code}{self.number}"


class Itinerary(CamelModel):
    """Ordered collection of segments for one direction of travel."""

    duration: str | None = None
    segments: list[FlightSegment] = Field(min_length=1)


class OfferFee(CamelModel):
    amount: str
    type: str


class OfferPrice(CamelModel):
    """Provider price object. Amounts are decimal strings, as sent by the provider."""

    currency: str = Field(pattern=r"^[A-Z]{3}$")
    total: str
    base: str | None = None
    fees: list[OfferFee] = Field(default_factory=list)
    grand_total: str


class TravelerPricing(CamelModel):
    """Per-traveller price the offer was computed for."""

    traveler_id: str
    traveler_type: str = "ADULT"
    price: OfferPrice | None = None


class FlightOffer(CamelModel):
    """A priced itinerary snapshot as returned by search and cached for booking."""

    id: str
    source: str = "GDS"
    one_way: bool = False
    last_ticketing_date: str | None = None
    number_of_bookable_seats: int = Field(default=9, ge=1)
    itineraries: list[Itinerary] = Field(min_length=1, max_length=2)
    price: OfferPrice
    validating_airline_codes: list[str] = Field(default_factory=list)
    traveler_pricings: list[TravelerPricing] = Field(default_factory=list)

    @property
    def first_segment(self) -> FlightSegment:
        return self.itineraries[0].segments[0]

    @property
    def last_outbound_segment(self) -> FlightSegment:
        return self.itineraries[0].segments[-1]

    @property
    def origin(self) -> str:
        return self.first_segment.departure.iata_code

    @property
    def destination(self) -> str:
        return self.last_outbound_segment.arrival.iata_code

    @property
    def departure_at(self) -> datetime:
        return self.first_segment.departure.at

    @property
    def return_at(self) -> datetime | None:
        """Departure of the inbound itinerary for round trips."""
        if len(self.itineraries) < 2:
            return None
        return self.itineraries[1].segments[0].departure.at
