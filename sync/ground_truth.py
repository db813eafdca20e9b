# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Ground Truth Model - the authoritative bus collection between the sheet and
the registry.

Incoming diffs pull edits from a source into ground truth (the source wins for
records it changed since the last pass). Outgoing diffs push ground truth to a
side (ground truth wins; anything the side has that ground truth lacks is
deleted there).
"""
import logging
from typing import List, Optional, Set, Tuple

from sync.differences import (
    BoardingAreaUpdate,
    Create,
    Delete,
    Difference,
    IdAssignmentHook,
    NameUpdate,
    describe,
    summarize,
)
from sync.records import BusRecord, find_by_id, find_counterpart

logger = logging.getLogger(__name__)


def _field_updates(bus_id: str, source: BusRecord, target: BusRecord) -> List[Difference]:
    """Updates that turn ``target``'s fields into ``source``'s"""
    changes: List[Difference] = []
    if source.name != target.name:
        changes.append(NameUpdate(bus_id, source.name))
    if source.boarding_area != target.boarding_area:
        changes.append(BoardingAreaUpdate(bus_id, source.boarding_area))
    return changes


def _set_id(record: BusRecord, label: str) -> IdAssignmentHook:
    def assign(bus_id: str):
        record.id = bus_id
    return IdAssignmentHook(assign, label=label)


def _pending_source(bus: BusRecord) -> Optional[BusRecord]:
    """Source record a ground-truth bus still waiting for its id was pulled from"""
    if bus.id is None and isinstance(bus.info, IdAssignmentHook) and not bus.info.fired:
        return bus.info.source
    return None


def _linked_counterpart(bus: BusRecord, candidates: List[BusRecord]) -> Optional[BusRecord]:
    """Like find_counterpart, but a pending bus follows its source record through renames"""
    source = _pending_source(bus)
    if source is not None:
        linked = next((candidate for candidate in candidates if candidate is source), None)
        if linked is not None:
            return linked
    return find_counterpart(bus, candidates)


class GroundTruthModel:
    """Merged view of every bus, persisted across sync cycles"""

    def __init__(self, buses: Optional[List[BusRecord]] = None):
        self.buses: List[BusRecord] = buses or []

    def diff_incoming(self, other) -> List[Difference]:
        """
        Differences that bring ``other``'s recent edits into ground truth.

        ``other`` is a sheet or registry model: anything with ``buses`` and
        ``removed_ids``. Matched records are marked stale afterwards so the
        same values are not pulled twice.
        """
        differences: List[Difference] = []
        removed_ids: Set[str] = set(getattr(other, 'removed_ids', ()) or ())
        considered: List[BusRecord] = []

        for bus in self.buses:
            if bus.id is not None and bus.id in removed_ids:
                differences.append(Delete(bus.id))
                continue

            match = _linked_counterpart(bus, other.buses)
            if match is None:
                continue

            considered.append(match)
            if match.stale is True:
                continue
            if bus.id is not None:
                differences.extend(_field_updates(bus.id, match, bus))
            else:
                # Still waiting for a backend id, so no difference can address it
                bus.name = match.name
                bus.boarding_area = match.boarding_area

        for candidate in other.buses:
            if any(candidate is seen for seen in considered):
                continue
            if self._ground_truth_for(candidate) is not None:
                continue
            if not candidate.name:
                continue

            hook = None
            if candidate.id is None:
                hook = _set_id(candidate, candidate.name)
            differences.append(Create(candidate.name, candidate.boarding_area, candidate.id, hook, source=candidate))
            considered.append(candidate)

        for record in considered:
            record.stale = True

        return differences

    def diff_outgoing(self, other) -> List[Difference]:
        """Differences that make ``other`` match ground truth"""
        differences: List[Difference] = []
        matched: List[BusRecord] = []

        for bus in self.buses:
            match = _linked_counterpart(bus, other.buses)
            if match is None:
                differences.append(Create(
                    bus.name,
                    bus.boarding_area,
                    bus.id,
                    IdAssignmentHook(self._id_assigner(bus), label=bus.name or '')
                ))
                continue

            matched.append(match)
            if match.id is None:
                # Both sides are waiting on the same backend create
                continue
            differences.extend(_field_updates(match.id, bus, match))

        for candidate in other.buses:
            if any(candidate is seen for seen in matched):
                continue
            if candidate.id is None:
                logger.debug(f"Skipping delete of '{candidate.name}': it has no id yet")
                continue
            differences.append(Delete(candidate.id, target=candidate))

        return differences

    def _ground_truth_for(self, candidate: BusRecord) -> Optional[BusRecord]:
        """Ground-truth bus already tracking ``candidate``, including pending ones linked to it"""
        linked = next((bus for bus in self.buses if _pending_source(bus) is candidate), None)
        if linked is not None:
            return linked
        return find_counterpart(candidate, self.buses)

    def merge(self, registry_model=None, sheet_model=None) -> List[Difference]:
        """Pull edits from each enabled source; registry edits take priority"""
        registry_diffs = self.diff_incoming(registry_model) if registry_model is not None else []
        sheet_diffs = self.diff_incoming(sheet_model) if sheet_model is not None else []

        merged = self.deduplicate(registry_diffs, sheet_diffs)
        for difference in merged:
            self.apply_change(difference)

        if merged:
            logger.info(f"🔀 Merged {len(merged)} incoming changes into ground truth: {summarize(merged)}")
        return merged

    @staticmethod
    def deduplicate(registry: List[Difference], sheet: List[Difference]) -> List[Difference]:
        """Every registry difference, plus the sheet differences it does not cover"""
        updated: Set[Tuple[type, str]] = set()
        addressed_ids: Set[str] = set()
        deleted_ids: Set[str] = set()
        created_names: Set[str] = set()
        created_ids: Set[str] = set()

        for difference in registry:
            if isinstance(difference, (NameUpdate, BoardingAreaUpdate)):
                updated.add((type(difference), difference.id))
                addressed_ids.add(difference.id)
            elif isinstance(difference, Delete):
                deleted_ids.add(difference.id)
                addressed_ids.add(difference.id)
            elif isinstance(difference, Create):
                if difference.name:
                    created_names.add(difference.name)
                if difference.id is not None:
                    created_ids.add(difference.id)
                    addressed_ids.add(difference.id)

        kept = list(registry)
        for difference in sheet:
            if isinstance(difference, (NameUpdate, BoardingAreaUpdate)):
                duplicate = (type(difference), difference.id) in updated or difference.id in deleted_ids
            elif isinstance(difference, Create):
                duplicate = difference.name in created_names or (
                    difference.id is not None and difference.id in created_ids
                )
            elif isinstance(difference, Delete):
                duplicate = difference.id in addressed_ids
            else:
                duplicate = False

            if duplicate:
                logger.debug(f"Dropping sheet change already covered by the registry: {describe(difference)}")
            else:
                kept.append(difference)

        return kept

    def apply_change(self, change: Difference):
        if isinstance(change, Create):
            self._apply_create(change)
            return

        bus = find_by_id(self.buses, change.id)
        if bus is None:
            logger.warning(f"⚠️ Ground truth has no bus for {describe(change)}; ignoring")
            return

        if isinstance(change, NameUpdate):
            bus.name = change.name
        elif isinstance(change, BoardingAreaUpdate):
            bus.boarding_area = change.boarding_area
        elif isinstance(change, Delete):
            self.buses.remove(bus)
        else:
            raise TypeError(f"Unknown difference type: {type(change).__name__}")

    def _apply_create(self, change: Create):
        existing = find_by_id(self.buses, change.id)
        if existing is not None:
            logger.warning(f"⚠️ Ground truth already has bus {change.id}; overlaying instead of creating")
            existing.name = change.name
            existing.boarding_area = change.boarding_area
            return

        record = BusRecord(change.id, change.name, change.boarding_area)
        if change.id is None:
            record.info = IdAssignmentHook(self._pending_id_handler(record, change.on_id_assigned),
                                           label=change.name or '', source=change.source)
        self.buses.append(record)

    @staticmethod
    def _pending_id_handler(record: BusRecord, chained: Optional[IdAssignmentHook]):
        def on_assigned(bus_id: str):
            record.id = bus_id
            record.info = None
            if chained is not None and not chained.fired:
                chained(bus_id)
        return on_assigned

    def _id_assigner(self, bus: BusRecord):
        def assign(bus_id: str):
            self._assign_id(bus, bus_id)
        return assign

    @staticmethod
    def _assign_id(bus: BusRecord, new_id: str):
        hook = bus.info
        if isinstance(hook, IdAssignmentHook) and not hook.fired:
            hook(new_id)
        else:
            bus.id = new_id
