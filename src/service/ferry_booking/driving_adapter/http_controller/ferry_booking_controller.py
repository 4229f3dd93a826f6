"""
Ferry Booking HTTP endpoints

Endpoints are plain ``def``: the engine is synchronous and lock based, so
FastAPI runs each request on its worker thread pool.
"""

from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, status

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ferry_booking.app.command.reservation_manager import ReservationManager
from src.service.ferry_booking.app.dto.hold_dto import HoldRequest
from src.service.ferry_booking.app.query.get_reservation_use_case import GetReservationUseCase
from src.service.ferry_booking.app.query.get_trip_manifest_use_case import (
    GetTripManifestUseCase,
)
from src.service.ferry_booking.app.query.list_segments_use_case import ListSegmentsUseCase
from src.service.ferry_booking.driving_adapter.http_controller.schema.reservation_schema import (
    ExpireSweepResponse,
    HoldCreateRequest,
    ReservationResponse,
)
from src.service.ferry_booking.driving_adapter.http_controller.schema.trip_schema import (
    SegmentOfferResponse,
    TripManifestResponse,
)


# === API Routers ===

trip_router = APIRouter()
reservation_router = APIRouter()


@trip_router.get('/{trip_id}/segments', response_model=list[SegmentOfferResponse])
@Logger.io
@inject
def list_segments(
    trip_id: str,
    min_seats: Optional[int] = Query(default=None, ge=1),
    use_case: ListSegmentsUseCase = Depends(Provide[Container.list_segments_use_case]),
) -> list[SegmentOfferResponse]:
    offers = use_case.execute(trip_id=trip_id, min_seats=min_seats)
    return [SegmentOfferResponse.from_offer(offer) for offer in offers]


@trip_router.post(
    '/{trip_id}/holds', response_model=ReservationResponse, status_code=status.HTTP_201_CREATED
)
@Logger.io
@inject
def create_hold(
    trip_id: str,
    request: HoldCreateRequest,
    reservation_manager: ReservationManager = Depends(Provide[Container.reservation_manager]),
) -> ReservationResponse:
    reservation = reservation_manager.hold(
        HoldRequest(
            trip_id=trip_id,
            origin_index=request.origin_index,
            destination_index=request.destination_index,
            seat_count=request.seat_count,
            hold_ttl_seconds=request.hold_ttl_seconds,
            idempotency_key=request.idempotency_key,
        )
    )
    return ReservationResponse.from_entity(reservation)


@trip_router.get('/{trip_id}/manifest', response_model=TripManifestResponse)
@Logger.io
@inject
def get_trip_manifest(
    trip_id: str,
    include_held: bool = False,
    use_case: GetTripManifestUseCase = Depends(Provide[Container.get_trip_manifest_use_case]),
) -> TripManifestResponse:
    manifest = use_case.execute(trip_id=trip_id, include_held=include_held)
    return TripManifestResponse.from_manifest(manifest)


@trip_router.post('/{trip_id}/expire_sweep', response_model=ExpireSweepResponse)
@Logger.io
@inject
def expire_sweep(
    trip_id: str,
    reservation_manager: ReservationManager = Depends(Provide[Container.reservation_manager]),
) -> ExpireSweepResponse:
    expired = reservation_manager.expire_sweep(trip_id=trip_id)
    return ExpireSweepResponse(trip_id=trip_id, expired=expired)


@reservation_router.get('/{reservation_id}', response_model=ReservationResponse)
@Logger.io
@inject
def get_reservation(
    reservation_id: str,
    use_case: GetReservationUseCase = Depends(Provide[Container.get_reservation_use_case]),
) -> ReservationResponse:
    return ReservationResponse.from_entity(use_case.execute(reservation_id=reservation_id))


@reservation_router.post('/{reservation_id}/confirm', response_model=ReservationResponse)
@Logger.io
@inject
def confirm_reservation(
    reservation_id: str,
    reservation_manager: ReservationManager = Depends(Provide[Container.reservation_manager]),
) -> ReservationResponse:
    """Called by the payment side once payment succeeded"""
    reservation = reservation_manager.confirm(reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)


@reservation_router.post('/{reservation_id}/release', response_model=ReservationResponse)
@Logger.io
@inject
def release_reservation(
    reservation_id: str,
    reservation_manager: ReservationManager = Depends(Provide[Container.reservation_manager]),
) -> ReservationResponse:
    """Called on checkout abandonment or payment failure"""
    reservation = reservation_manager.release(reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)


@reservation_router.post('/{reservation_id}/cancel', response_model=ReservationResponse)
@Logger.io
@inject
def cancel_confirmed_reservation(
    reservation_id: str,
    reservation_manager: ReservationManager = Depends(Provide[Container.reservation_manager]),
) -> ReservationResponse:
    """Post-confirmation cancellation; refunds are handled by the payment side"""
    reservation = reservation_manager.cancel_confirmed(reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)
