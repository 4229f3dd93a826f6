from abc import ABC, abstractmethod

from src.service.ferry_booking.domain.entity.trip_entity import TripInstance


class ITripRepo(ABC):
    @abstractmethod
    def add(self, *, trip: TripInstance) -> TripInstance:
        pass

    @abstractmethod
    def get_by_id(self, *, trip_id: str) -> TripInstance | None:
        pass

    @abstractmethod
    def update(self, *, trip: TripInstance) -> TripInstance:
        pass
