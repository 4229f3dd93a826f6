from prometheus_client import Counter, Gauge, Histogram


class BookingMetrics:
    """
    Ferry Booking Engine Core Metrics Collector

    Tracks hold outcomes, reservation transitions, expiry sweeps
    and per-leg seat utilisation for each trip
    """

    def __init__(self):
        # ========== Reservation Business Metrics ==========
        self.hold_requests = Counter(
            'ferry_hold_requests_total',
            'Total hold requests',
            ['trip_id', 'result'],  # result: held/insufficient_capacity/rejected/replayed
        )

        self.hold_duration = Histogram(
            'ferry_hold_duration_seconds',
            'Hold processing time',
            ['trip_id'],
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
        )

        self.reservation_transitions = Counter(
            'ferry_reservation_transitions_total',
            'Reservation state transitions',
            ['trip_id', 'from_state', 'to_state'],
        )

        self.seats_held = Counter(
            'ferry_seats_held_total',
            'Seats placed on hold',
            ['trip_id'],
        )

        # ========== Expiry Sweep Metrics ==========
        self.expired_holds = Counter(
            'ferry_expired_holds_total',
            'Holds reclaimed by the expiry sweep',
            ['trip_id'],
        )

        self.sweep_failures = Counter(
            'ferry_expire_sweep_failures_total',
            'Reservations skipped by the sweep because of an error',
            ['trip_id', 'error_type'],
        )

        self.sweep_duration = Histogram(
            'ferry_expire_sweep_duration_seconds',
            'Expiry sweep duration across all trips',
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
        )

        # ========== Ledger Metrics ==========
        self.ledger_operation_duration = Histogram(
            'ferry_ledger_operation_duration_seconds',
            'Leg ledger operation duration',
            ['operation', 'backend'],  # operation: reserve/release/rebuild
            buckets=[0.00001, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05],
        )

        self.leg_utilisation = Gauge(
            'ferry_leg_utilisation_ratio',
            'Booked seats over vessel capacity per leg',
            ['trip_id', 'leg'],
        )

    # ========== Helper Methods ==========

    def record_hold(self, *, trip_id: str, result: str, seat_count: int, duration: float):
        self.hold_requests.labels(trip_id=trip_id, result=result).inc()
        self.hold_duration.labels(trip_id=trip_id).observe(duration)
        if result == 'held':
            self.seats_held.labels(trip_id=trip_id).inc(seat_count)

    def record_transition(self, *, trip_id: str, from_state: str, to_state: str):
        self.reservation_transitions.labels(
            trip_id=trip_id, from_state=from_state, to_state=to_state
        ).inc()

    def record_expired(self, *, trip_id: str, count: int):
        if count:
            self.expired_holds.labels(trip_id=trip_id).inc(count)

    def record_sweep_failure(self, *, trip_id: str, error_type: str):
        self.sweep_failures.labels(trip_id=trip_id, error_type=error_type).inc()

    def record_ledger_operation(self, *, operation: str, backend: str, duration: float):
        self.ledger_operation_duration.labels(operation=operation, backend=backend).observe(
            duration
        )

    def update_leg_utilisation(self, *, trip_id: str, booked: list[int], capacity: int):
        for leg, count in enumerate(booked):
            self.leg_utilisation.labels(trip_id=trip_id, leg=str(leg)).set(count / capacity)


# Global metrics instance
metrics = BookingMetrics()
