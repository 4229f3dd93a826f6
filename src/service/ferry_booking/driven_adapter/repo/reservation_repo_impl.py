from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.platform.database.db_setting import as_utc
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.ferry_booking.app.interface.i_reservation_repo import IReservationRepo
from src.service.ferry_booking.domain.entity.reservation_entity import Reservation
from src.service.ferry_booking.domain.enum.reservation_state import ReservationState
from src.service.ferry_booking.driven_adapter.model.reservation_model import ReservationModel


_ACTIVE_STATES = (ReservationState.HELD.value, ReservationState.CONFIRMED.value)


class ReservationRepoImpl(IReservationRepo):
    def __init__(self, session_factory: Callable[..., AbstractContextManager[Session]]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_reservation: ReservationModel) -> Reservation:
        return Reservation(
            id=db_reservation.id,
            trip_id=db_reservation.trip_id,
            origin_index=db_reservation.origin_index,
            destination_index=db_reservation.destination_index,
            seat_count=db_reservation.seat_count,
            state=ReservationState(db_reservation.state),
            hold_expiry=as_utc(db_reservation.hold_expiry),
            created_at=as_utc(db_reservation.created_at),  # type: ignore[arg-type]
            updated_at=as_utc(db_reservation.updated_at),  # type: ignore[arg-type]
            fare_amount=Decimal(db_reservation.fare_amount),
            idempotency_key=db_reservation.idempotency_key,
        )

    @Logger.io
    def add(self, *, reservation: Reservation) -> Reservation:
        try:
            with self.session_factory() as session:
                session.add(
                    ReservationModel(
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
                )
        except IntegrityError as e:
            raise ConflictError(
                f'Reservation {reservation.id} conflicts with an existing reservation'
            ) from e
        return reservation

    def get_by_id(self, *, reservation_id: str) -> Reservation | None:
        with self.session_factory() as session:
            db_reservation = session.get(ReservationModel, reservation_id)
            return self._to_entity(db_reservation) if db_reservation else None

    def get_by_idempotency_key(self, *, trip_id: str, idempotency_key: str) -> Reservation | None:
        with self.session_factory() as session:
            db_reservation = session.scalars(
                select(ReservationModel).where(
                    ReservationModel.trip_id == trip_id,
                    ReservationModel.idempotency_key == idempotency_key,
                )
            ).first()
            return self._to_entity(db_reservation) if db_reservation else None

    @Logger.io
    def update_if_state(
        self, *, reservation: Reservation, expected_state: ReservationState
    ) -> bool:
        with self.session_factory() as session:
            result = session.execute(
                update(ReservationModel)
                .where(
                    ReservationModel.id == reservation.id,
                    ReservationModel.state == expected_state.value,
                )
                .values(
                    state=reservation.state.value,
                    hold_expiry=reservation.hold_expiry,
                    updated_at=reservation.updated_at,
                )
            )
            return result.rowcount == 1  # type: ignore[attr-defined]

    def list_active_by_trip(self, *, trip_id: str) -> list[Reservation]:
        with self.session_factory() as session:
            rows = session.scalars(
                select(ReservationModel)
                .where(
                    ReservationModel.trip_id == trip_id,
                    ReservationModel.state.in_(_ACTIVE_STATES),
                )
                .order_by(ReservationModel.created_at, ReservationModel.id)
            ).all()
            return [self._to_entity(row) for row in rows]

    def list_expired_holds(self, *, trip_id: str, now: datetime) -> list[Reservation]:
        with self.session_factory() as session:
            rows = session.scalars(
                select(ReservationModel)
                .where(
                    ReservationModel.trip_id == trip_id,
                    ReservationModel.state == ReservationState.HELD.value,
                    ReservationModel.hold_expiry < now,
                )
                .order_by(ReservationModel.hold_expiry)
            ).all()
            return [self._to_entity(row) for row in rows]

    def list_trip_ids_with_holds(self) -> list[str]:
        with self.session_factory() as session:
            return list(
                session.scalars(
                    select(ReservationModel.trip_id)
                    .where(ReservationModel.state == ReservationState.HELD.value)
                    .distinct()
                    .order_by(ReservationModel.trip_id)
                ).all()
            )

    def exists_for_trip(self, *, trip_id: str) -> bool:
        with self.session_factory() as session:
            return bool(
                session.scalar(select(exists().where(ReservationModel.trip_id == trip_id)))
            )
