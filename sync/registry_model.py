# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Registry Model - mirror of the backend bus registry with a pool of
deactivated (soft-deleted) buses that can be brought back
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set

import config
from registry_ops.queries import RegistrySnapshot, RemoteBus
from sync.differences import (
    ApplyResult,
    BoardingAreaUpdate,
    Create,
    Delete,
    Difference,
    NameUpdate,
    describe,
)
from sync.records import BusRecord, normalize_boarding_area
from utils.timezone import end_of_local_day, get_utc_time, start_of_local_day

logger = logging.getLogger(__name__)

# Boarding area text that means "not known"
UNKNOWN_BOARDING_AREA = '?'


def is_unset_boarding_area(boarding_area: Optional[str]) -> bool:
    return not boarding_area or not boarding_area.strip() or boarding_area.strip() == UNKNOWN_BOARDING_AREA


def invalidate_time_for(boarding_area: Optional[str], time_zone: Optional[str],
                        now: Optional[datetime] = None) -> datetime:
    """
    Assignments expire at the next local midnight; an unset or "?" boarding
    area expires immediately (start of the current day).
    """
    if is_unset_boarding_area(boarding_area):
        return start_of_local_day(time_zone, now)
    return end_of_local_day(time_zone, now)


def current_boarding_area(remote: RemoteBus, now: datetime) -> Optional[str]:
    """Boarding area as of ``now``; expired assignments read as unset"""
    if remote.invalidate_time is not None and remote.invalidate_time <= now:
        return None
    return normalize_boarding_area(remote.boarding_area)


class RegistryModel:
    """Active registry buses plus the deactivated pool, keyed by id"""

    def __init__(self, buses: Optional[List[BusRecord]] = None):
        self.buses: List[BusRecord] = buses or []
        self.deactivated: Dict[str, BusRecord] = {}
        self.time_zone: Optional[str] = None

    @property
    def removed_ids(self) -> Set[str]:
        return set(self.deactivated)

    def refresh(self, snapshot: RegistrySnapshot, now: Optional[datetime] = None):
        """Replace the model's view with a freshly pulled registry snapshot"""
        now = now or get_utc_time()
        self.time_zone = snapshot.time_zone

        existing = {bus.id: bus for bus in self.buses}
        active: List[BusRecord] = []
        deactivated: Dict[str, BusRecord] = {}

        for remote in snapshot.buses:
            boarding_area = current_boarding_area(remote, now)
            record = existing.pop(remote.id, None)

            if not remote.available:
                if record is None:
                    record = BusRecord(remote.id, remote.name, boarding_area)
                else:
                    record.name = remote.name
                    record.boarding_area = boarding_area
                deactivated[remote.id] = record
                continue

            if record is not None:
                if record.name != remote.name or record.boarding_area != boarding_area:
                    record.stale = False
                record.name = remote.name
                record.boarding_area = boarding_area
                active.append(record)
            elif remote.name:
                active.append(BusRecord(remote.id, remote.name, boarding_area))
            else:
                logger.warning(f"⚠️ Ignoring unnamed registry bus {remote.id}")

        self.buses = active
        self.deactivated = deactivated
        logger.info(f"🚌 Registry model: {len(active)} active, {len(deactivated)} deactivated")

    def claim_deactivated(self, create: Create) -> Optional[BusRecord]:
        """
        Take a pool entry that can stand in for a new bus: same id, then same
        name, then same (non-empty) boarding area.
        """
        candidates = list(self.deactivated.values())
        match = None
        if create.id is not None:
            match = self.deactivated.get(create.id)
        if match is None and create.name:
            match = next((bus for bus in candidates if bus.name == create.name), None)
        if match is None and not is_unset_boarding_area(create.boarding_area):
            match = next((bus for bus in candidates if bus.boarding_area == create.boarding_area), None)

        if match is not None:
            del self.deactivated[match.id]
        return match

    def apply_changes(self, differences: List[Difference], registry_client,
                      max_workers: int = config.APPLY_WORKERS,
                      now: Optional[datetime] = None) -> ApplyResult:
        """
        Build one independent task per difference, then run them concurrently.
        One failing task never stops the others.
        """
        result = ApplyResult()
        if not differences:
            return result

        tasks = [(difference, self._build_task(difference, registry_client, now)) for difference in differences]

        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            futures = {executor.submit(task): difference for difference, task in tasks}
            for future in as_completed(futures):
                difference = futures[future]
                try:
                    future.result()
                    result.applied += 1
                except Exception as e:
                    logger.error(f"❌ Registry change failed ({describe(difference)}): {type(e).__name__}: {e}")
                    result.errors.append((difference, e))

        logger.info(f"📋 Registry apply: {result.applied} applied, {len(result.errors)} failed")
        return result

    def _build_task(self, difference: Difference, client, now: Optional[datetime]) -> Callable[[], None]:
        time_zone = self.time_zone

        if isinstance(difference, NameUpdate):
            def rename():
                bus = client.get_bus(difference.id)
                bus['name'] = difference.name
                client.update_bus(difference.id, bus)
            return rename

        if isinstance(difference, BoardingAreaUpdate):
            def move():
                client.update_bus_status(
                    difference.id,
                    difference.boarding_area,
                    invalidate_time_for(difference.boarding_area, time_zone, now)
                )
            return move

        if isinstance(difference, Create):
            pooled = self.claim_deactivated(difference)

            def create():
                if pooled is not None:
                    logger.info(f"♻️ Reactivating registry bus {pooled.id} for '{difference.name}'")
                    bus = client.get_bus(pooled.id)
                    bus['available'] = True
                    if difference.name:
                        bus['name'] = difference.name
                    client.update_bus(pooled.id, bus)
                    bus_id = pooled.id
                else:
                    bus_id = client.create_bus(difference.name)

                if difference.on_id_assigned is not None:
                    difference.on_id_assigned(bus_id)

                if not is_unset_boarding_area(difference.boarding_area):
                    client.update_bus_status(
                        bus_id,
                        difference.boarding_area,
                        invalidate_time_for(difference.boarding_area, time_zone, now)
                    )
            return create

        if isinstance(difference, Delete):
            def delete():
                bus = client.get_bus(difference.id)
                bus['available'] = False
                client.update_bus(difference.id, bus)
                client.update_bus_status(difference.id, None, invalidate_time_for(None, time_zone, now))
            return delete

        raise TypeError(f"Unknown difference type: {type(difference).__name__}")
