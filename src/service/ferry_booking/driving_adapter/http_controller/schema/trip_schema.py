from decimal import Decimal

from pydantic import BaseModel

from src.service.ferry_booking.app.dto.manifest_dto import TripManifest
from src.service.ferry_booking.domain.value_object.segment_offer import SegmentOffer


class SegmentOfferResponse(BaseModel):
    origin_index: int
    destination_index: int
    origin_name: str
    destination_name: str
    fare: Decimal
    available_seats: int

    @classmethod
    def from_offer(cls, offer: SegmentOffer) -> 'SegmentOfferResponse':
        return cls(
            origin_index=offer.origin_index,
            destination_index=offer.destination_index,
            origin_name=offer.origin_name,
            destination_name=offer.destination_name,
            fare=offer.fare,
            available_seats=offer.available_seats,
        )


class StopManifestResponse(BaseModel):
    sequence_index: int
    stop_id: str
    name: str
    boarding: int
    alighting: int
    onboard_after: int


class TripManifestResponse(BaseModel):
    trip_id: str
    route_id: str
    vessel_capacity: int
    include_held: bool
    stops: list[StopManifestResponse]
    booked: list[int]

    @classmethod
    def from_manifest(cls, manifest: TripManifest) -> 'TripManifestResponse':
        return cls(
            trip_id=manifest.trip_id,
            route_id=manifest.route_id,
            vessel_capacity=manifest.vessel_capacity,
            include_held=manifest.include_held,
            stops=[
                StopManifestResponse(
                    sequence_index=stop.sequence_index,
                    stop_id=stop.stop_id,
                    name=stop.name,
                    boarding=stop.boarding,
                    alighting=stop.alighting,
                    onboard_after=stop.onboard_after,
                )
                for stop in manifest.stops
            ],
            booked=manifest.booked,
        )
