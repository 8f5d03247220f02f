"""Per-driver aggregation over the filtered trips."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

from analytics.records import (
    UNKNOWN_VEHICLE,
    UNSPECIFIED,
    OrderedSet,
    Row,
    driver_name,
    net_load_tons,
    vehicle_id,
)
from utils.common import safe_ratio


@dataclass(frozen=True)
class DriverRow:
    driver: str
    trips: int
    tons: float
    avg_tons_per_trip: float
    vehicles: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def aggregate_drivers(trips: Iterable[Row]) -> list[DriverRow]:
    """Group trips by driver, first-seen order.

    Blank drivers are grouped under ``UNSPECIFIED``; a blank vehicle id is
    listed as ``UNKNOWN_VEHICLE`` but the trip still counts.
    """
    groups: dict[str, list] = {}
    for trip in trips:
        name = driver_name(trip) or UNSPECIFIED
        g = groups.setdefault(name, [0, 0.0, OrderedSet()])
        g[0] += 1
        g[1] += net_load_tons(trip)
        g[2].add(vehicle_id(trip) or UNKNOWN_VEHICLE)

    return [
        DriverRow(
            driver=name,
            trips=count,
            tons=tons,
            avg_tons_per_trip=safe_ratio(tons, count),
            vehicles=used.joined(),
        )
        for name, (count, tons, used) in groups.items()
    ]
