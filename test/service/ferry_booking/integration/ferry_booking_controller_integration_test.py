"""
HTTP API tests

The container's repositories and use cases are overridden with the
in-memory fixtures so every test starts from the capacity-10 A-B-C-D trip.
"""

from collections.abc import AsyncIterator, Iterator
from contextlib import ExitStack, asynccontextmanager

from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

from src.platform.app_factory import create_app
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.service.ferry_booking.app.command.reservation_manager import ReservationManager
from src.service.ferry_booking.driven_adapter.repo.reservation_repo_memory_impl import (
    InMemoryReservationRepoImpl,
)
from src.service.ferry_booking.driven_adapter.repo.route_catalog_repo_impl import (
    RouteCatalogRepoImpl,
)
from src.service.ferry_booking.driven_adapter.repo.trip_repo_memory_impl import (
    InMemoryTripRepoImpl,
)
from src.service.ferry_booking.driven_adapter.state.trip_ledger_store import TripLedgerStore


@asynccontextmanager
async def _test_lifespan(app: FastAPI) -> AsyncIterator[None]:
    container.wire(modules=WIRE_MODULES)
    yield
    container.unwire()


@pytest.fixture
def client(
    manager: ReservationManager,
    reservation_repo: InMemoryReservationRepoImpl,
    trip_repo: InMemoryTripRepoImpl,
    route_catalog_repo: RouteCatalogRepoImpl,
    ledger_store: TripLedgerStore,
) -> Iterator[TestClient]:
    container.reset_singletons()
    with ExitStack() as overrides:
        overrides.enter_context(container.reservation_repo.override(reservation_repo))
        overrides.enter_context(container.trip_repo.override(trip_repo))
        overrides.enter_context(container.route_catalog_repo.override(route_catalog_repo))
        overrides.enter_context(container.ledger_store.override(ledger_store))
        overrides.enter_context(container.trip_locks.override(manager.trip_locks))
        overrides.enter_context(container.reservation_manager.override(manager))

        app = create_app(lifespan=_test_lifespan, title_suffix=' (Test)')
        with TestClient(app) as test_client:
            yield test_client
    container.reset_singletons()


def _hold(client: TestClient, origin: int, destination: int, seat_count: int, **extra) -> dict:
    response = client.post(
        '/api/trips/T1/holds',
        json={
            'origin_index': origin,
            'destination_index': destination,
            'seat_count': seat_count,
            **extra,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestSegmentsEndpoint:
    def test_lists_every_pair_with_fare_and_availability(self, client: TestClient) -> None:
        response = client.get('/api/trips/T1/segments')

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 6
        assert body[0]['origin_name'] == 'A'
        assert body[0]['destination_name'] == 'B'
        assert body[0]['fare'] == '12.50'
        assert {offer['available_seats'] for offer in body} == {10}

    def test_min_seats_filter(self, client: TestClient) -> None:
        _hold(client, 1, 2, 8)

        response = client.get('/api/trips/T1/segments', params={'min_seats': 3})

        assert [(o['origin_index'], o['destination_index']) for o in response.json()] == [
            (0, 1),
            (2, 3),
        ]

    def test_min_seats_must_be_positive(self, client: TestClient) -> None:
        assert client.get('/api/trips/T1/segments', params={'min_seats': 0}).status_code == 400

    def test_unknown_trip_is_404(self, client: TestClient) -> None:
        response = client.get('/api/trips/nope/segments')

        assert response.status_code == 404
        assert response.json()['error'] == 'TripNotFound'


class TestHoldEndpoint:
    def test_hold_returns_the_reservation(self, client: TestClient) -> None:
        body = _hold(client, 0, 2, 4)

        assert body['state'] == 'held'
        assert body['fare_amount'] == '100.00'
        assert body['hold_expiry'] is not None

    def test_insufficient_capacity_is_409_with_counts(self, client: TestClient) -> None:
        _hold(client, 0, 2, 4)

        response = client.post(
            '/api/trips/T1/holds',
            json={'origin_index': 1, 'destination_index': 3, 'seat_count': 7},
        )

        assert response.status_code == 409
        assert response.json()['error'] == 'InsufficientCapacity'
        assert response.json()['requested'] == 7
        assert response.json()['available'] == 6

    def test_invalid_range_is_400(self, client: TestClient) -> None:
        response = client.post(
            '/api/trips/T1/holds',
            json={'origin_index': 2, 'destination_index': 1, 'seat_count': 1},
        )

        assert response.status_code == 400
        assert response.json()['error'] == 'InvalidRange'

    def test_missing_field_is_400(self, client: TestClient) -> None:
        response = client.post(
            '/api/trips/T1/holds', json={'origin_index': 0, 'destination_index': 1}
        )

        assert response.status_code == 400

    def test_idempotent_retry_returns_the_same_reservation(self, client: TestClient) -> None:
        first = _hold(client, 0, 1, 2, idempotency_key='checkout-1')
        second = _hold(client, 0, 1, 2, idempotency_key='checkout-1')

        assert second['id'] == first['id']


class TestReservationLifecycle:
    def test_hold_confirm_cancel(self, client: TestClient) -> None:
        reservation_id = _hold(client, 0, 2, 4)['id']

        confirmed = client.post(f'/api/reservations/{reservation_id}/confirm')
        assert confirmed.status_code == 200
        assert confirmed.json()['state'] == 'confirmed'

        assert client.post(f'/api/reservations/{reservation_id}/release').status_code == 409

        cancelled = client.post(f'/api/reservations/{reservation_id}/cancel')
        assert cancelled.json()['state'] == 'released'
        assert client.get(f'/api/reservations/{reservation_id}').json()['state'] == 'released'

    def test_release_twice(self, client: TestClient) -> None:
        reservation_id = _hold(client, 0, 2, 4)['id']

        assert client.post(f'/api/reservations/{reservation_id}/release').status_code == 200
        again = client.post(f'/api/reservations/{reservation_id}/release')

        assert again.status_code == 200
        assert again.json()['state'] == 'released'

    def test_confirm_released_is_409(self, client: TestClient) -> None:
        reservation_id = _hold(client, 0, 2, 4)['id']
        client.post(f'/api/reservations/{reservation_id}/release')

        response = client.post(f'/api/reservations/{reservation_id}/confirm')

        assert response.status_code == 409
        assert response.json()['error'] == 'ReservationNotHeld'

    def test_unknown_reservation_is_404(self, client: TestClient) -> None:
        assert client.get('/api/reservations/missing').status_code == 404


class TestManifestAndSweepEndpoints:
    def test_manifest_counts_confirmed_unless_holds_are_included(
        self, client: TestClient
    ) -> None:
        reservation_id = _hold(client, 0, 2, 4)['id']
        client.post(f'/api/reservations/{reservation_id}/confirm')
        _hold(client, 1, 3, 6)

        confirmed_only = client.get('/api/trips/T1/manifest').json()
        with_holds = client.get('/api/trips/T1/manifest', params={'include_held': True}).json()

        assert [stop['boarding'] for stop in confirmed_only['stops']] == [4, 0, 0, 0]
        assert [stop['boarding'] for stop in with_holds['stops']] == [4, 6, 0, 0]
        assert with_holds['booked'] == [4, 10, 6]

    def test_expire_sweep_before_expiry(self, client: TestClient) -> None:
        _hold(client, 0, 2, 4)

        response = client.post('/api/trips/T1/expire_sweep')

        assert response.status_code == 200
        assert response.json() == {'trip_id': 'T1', 'expired': 0}


class TestPlatformEndpoints:
    def test_health(self, client: TestClient) -> None:
        assert client.get('/health').json()['status'] == 'healthy'

    def test_metrics_exposes_booking_counters(self, client: TestClient) -> None:
        _hold(client, 0, 1, 1)

        response = client.get('/metrics')

        assert response.status_code == 200
        assert 'ferry_hold_requests_total' in response.text
