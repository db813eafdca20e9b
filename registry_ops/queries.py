# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Registry GraphQL operations and response shape validation
"""
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from utils.timezone import parse_iso_datetime


class RegistryError(Exception):
    """Base error for registry API calls"""


class RegistryResponseError(RegistryError):
    """The registry answered with errors or with an unexpected shape"""


@dataclass
class RemoteBus:
    id: str
    name: Optional[str]
    boarding_area: Optional[str]
    invalidate_time: Optional[datetime]
    available: bool


@dataclass
class RegistrySnapshot:
    time_zone: Optional[str]
    buses: List[RemoteBus]


@dataclass(frozen=True)
class Operation:
    name: str
    text: str
    validate: Callable[[Any], Any]


def _shape_error(payload: Any) -> RegistryResponseError:
    return RegistryResponseError(
        "The query result does not match the expected shape.\n" + json.dumps(payload, default=str)
    )


def _field(obj: Any, key: str, payload: Any) -> Any:
    if not isinstance(obj, dict) or key not in obj:
        raise _shape_error(payload)
    return obj[key]


def _optional_str(value: Any, payload: Any) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise _shape_error(payload)
    return value


def _str_list(value: Any, payload: Any) -> List[str]:
    if not isinstance(value, list) or any(not isinstance(item, str) for item in value):
        raise _shape_error(payload)
    return value


def _validate_mutation_id(root_key: str) -> Callable[[Any], str]:
    def validate(payload: Any) -> str:
        bus_id = _field(_field(payload, root_key, payload), 'id', payload)
        if not isinstance(bus_id, str):
            raise _shape_error(payload)
        return bus_id
    return validate


def _validate_get_school(payload: Any) -> RegistrySnapshot:
    school = _field(payload, 'school', payload)
    time_zone = _optional_str(_field(school, 'timeZone', payload), payload)
    buses = _field(school, 'buses', payload)
    if not isinstance(buses, list):
        raise _shape_error(payload)

    remote_buses = []
    for entry in buses:
        bus_id = _field(entry, 'id', payload)
        available = _field(entry, 'available', payload)
        if not isinstance(bus_id, str) or not isinstance(available, bool):
            raise _shape_error(payload)

        invalidate_time = _optional_str(_field(entry, 'invalidateTime', payload), payload)
        try:
            parsed_invalidate_time = parse_iso_datetime(invalidate_time)
        except ValueError:
            raise _shape_error(payload)

        remote_buses.append(RemoteBus(
            id=bus_id,
            name=_optional_str(_field(entry, 'name', payload), payload),
            boarding_area=_optional_str(_field(entry, 'boardingArea', payload), payload),
            invalidate_time=parsed_invalidate_time,
            available=available,
        ))

    return RegistrySnapshot(time_zone=time_zone, buses=remote_buses)


def _validate_get_bus(payload: Any) -> Dict[str, Any]:
    bus = _field(payload, 'bus', payload)
    available = _field(bus, 'available', payload)
    if not isinstance(available, bool):
        raise _shape_error(payload)

    return {
        'name': _optional_str(_field(bus, 'name', payload), payload),
        'available': available,
        'otherNames': _str_list(_field(bus, 'otherNames', payload), payload),
        'phone': _str_list(_field(bus, 'phone', payload), payload),
        'company': _optional_str(_field(bus, 'company', payload), payload),
    }


GET_SCHOOL = Operation('getSchool', """
query GetSchool($schoolID: ID!) {
    school(id: $schoolID) {
        timeZone
        buses {
            id
            name
            boardingArea
            invalidateTime
            available
        }
    }
}
""", _validate_get_school)

GET_BUS = Operation('getBus', """
query GetBus($busID: ID!) {
    bus(id: $busID) {
        name
        available
        otherNames
        phone
        company
    }
}
""", _validate_get_bus)

CREATE_BUS = Operation('createBus', """
mutation CreateBus($schoolID: ID!, $name: String) {
    createBus(schoolID: $schoolID, bus: {name: $name, otherNames: [], phone: [], available: true}) {
        id
    }
}
""", _validate_mutation_id('createBus'))

UPDATE_BUS = Operation('updateBus', """
mutation UpdateBus($busID: ID!, $bus: BusInput!) {
    updateBus(busID: $busID, bus: $bus) {
        id
    }
}
""", _validate_mutation_id('updateBus'))

UPDATE_BUS_STATUS = Operation('updateBusStatus', """
mutation UpdateBusStatus($busID: ID!, $boardingArea: String, $invalidateTime: DateTime!) {
    updateBusStatus(busID: $busID, status: {boardingArea: $boardingArea, invalidateTime: $invalidateTime}) {
        id
    }
}
""", _validate_mutation_id('updateBusStatus'))
