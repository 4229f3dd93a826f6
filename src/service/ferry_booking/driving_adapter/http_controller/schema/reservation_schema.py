from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.service.ferry_booking.domain.entity.reservation_entity import Reservation


class HoldCreateRequest(BaseModel):
    origin_index: int
    destination_index: int
    seat_count: int
    hold_ttl_seconds: Optional[int] = None
    idempotency_key: Optional[str] = Field(default=None, max_length=128)

    model_config = ConfigDict(
        json_schema_extra={
            'examples': [
                {
                    'origin_index': 0,
                    'destination_index': 2,
                    'seat_count': 4,
                    'idempotency_key': 'checkout-7f3a',
                }
            ]
        }
    )


class ReservationResponse(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'id': '01234567-89ab-7def-0123-456789abcdef',
                'trip_id': 'T1',
                'origin_index': 0,
                'destination_index': 2,
                'seat_count': 4,
                'state': 'held',
                'hold_expiry': '2025-01-10T10:40:00Z',
                'fare_amount': '50.00',
                'created_at': '2025-01-10T10:30:00Z',
                'updated_at': '2025-01-10T10:30:00Z',
            }
        }
    )

    id: str
    trip_id: str
    origin_index: int
    destination_index: int
    seat_count: int
    state: str
    hold_expiry: Optional[datetime] = None
    fare_amount: Decimal
    idempotency_key: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, reservation: Reservation) -> 'ReservationResponse':
        return cls(
            id=reservation.id,
            trip_id=reservation.trip_id,
            origin_index=reservation.origin_index,
            destination_index=reservation.destination_index,
            seat_count=reservation.seat_count,
            state=reservation.state.value,
            hold_expiry=reservation.hold_expiry,
            fare_amount=reservation.fare_amount,
            idempotency_key=reservation.idempotency_key,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )


class ExpireSweepResponse(BaseModel):
    trip_id: str
    expired: int
