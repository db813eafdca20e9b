# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Bus records shared by the sheet, registry and ground-truth models
"""
from dataclasses import dataclass
from typing import Any, Iterable, NamedTuple, Optional


class SheetPosition(NamedTuple):
    """Left column of a 3-column bus block; ``y`` counts data rows below the header"""
    x: int
    y: int


@dataclass(eq=False)
class BusRecord:
    """
    One bus as seen by a model.

    ``stale`` is None until the record has been compared once, False when its
    fields changed on the last pull and True once those values were considered.
    ``info`` holds the side payload (sheet position, or the id-assignment hook of
    a ground-truth record still waiting for a backend id).
    """
    id: Optional[str]
    name: Optional[str]
    boarding_area: Optional[str]
    stale: Optional[bool] = None
    info: Any = None


def normalize_boarding_area(value: Optional[str]) -> Optional[str]:
    """Blank boarding areas mean "unassigned" everywhere"""
    if value is None:
        return None
    value = value.strip()
    return value or None


def find_by_id(buses: Iterable[BusRecord], bus_id: Optional[str]) -> Optional[BusRecord]:
    if bus_id is None:
        return None
    return next((bus for bus in buses if bus.id == bus_id), None)


def find_counterpart(bus: BusRecord, candidates: Iterable[BusRecord]) -> Optional[BusRecord]:
    """
    Match by id; a record still waiting for its id matches another id-less
    record with the same name.
    """
    if bus.id is not None:
        return find_by_id(candidates, bus.id)
    return next(
        (other for other in candidates if other.id is None and other.name == bus.name),
        None
    )
