"""Trip manifest DTOs: per-stop boarding counts for the crew"""

import attrs


@attrs.define(frozen=True)
class StopManifest:
    sequence_index: int
    stop_id: str
    name: str
    boarding: int
    alighting: int
    onboard_after: int  # Seats occupied on the leg leaving this stop


@attrs.define(frozen=True)
class TripManifest:
    trip_id: str
    route_id: str
    vessel_capacity: int
    include_held: bool
    stops: list[StopManifest]
    booked: list[int]  # Live ledger counts (HELD + CONFIRMED) per leg
