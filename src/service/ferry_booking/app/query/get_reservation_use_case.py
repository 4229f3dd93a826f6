from src.platform.logging.loguru_io import Logger
from src.service.ferry_booking.app.interface.i_reservation_repo import IReservationRepo
from src.service.ferry_booking.domain.booking_errors import ReservationNotFound
from src.service.ferry_booking.domain.entity.reservation_entity import Reservation


class GetReservationUseCase:
    def __init__(self, *, reservation_repo: IReservationRepo) -> None:
        self.reservation_repo = reservation_repo

    @Logger.io
    def execute(self, *, reservation_id: str) -> Reservation:
        reservation = self.reservation_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation
