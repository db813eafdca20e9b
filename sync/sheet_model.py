# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Spreadsheet Model - buses tracked by grid position, free-cell allocation and
translation of differences into cell writes
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

import config
from sheet_ops.ranges import CellWrite
from sync.differences import (
    ApplyResult,
    BoardingAreaUpdate,
    Create,
    Delete,
    Difference,
    NameUpdate,
    describe,
)
from sync.position import BLOCK_WIDTH, Grid, SheetBus, iter_blocks
from sync.records import SheetPosition, find_by_id, normalize_boarding_area

logger = logging.getLogger(__name__)

# Row 0 of the sheet is a header and never holds buses
HEADER_ROWS = 1


@dataclass
class FreeAreas:
    """
    Reusable blocks for new buses. ``free_spaces[y]`` lists the free x offsets
    of data row ``y``, consumed left to right.
    """
    width: int
    free_spaces: List[List[int]] = field(default_factory=list)
    num_left: int = 0

    def grow(self):
        """Append one synthetic row below everything allocated so far"""
        row = list(range(0, self.width, BLOCK_WIDTH))
        self.free_spaces.append(row)
        self.num_left += len(row)
        logger.info(f"➕ Growing free area by one row ({len(row)} blocks) at data row {len(self.free_spaces) - 1}")

    def take(self) -> SheetPosition:
        if self.num_left == 0:
            self.grow()

        for y, row in enumerate(self.free_spaces):
            if row:
                x = row.pop(0)
                self.num_left -= 1
                return SheetPosition(x, y)

        raise RuntimeError("Free area bookkeeping out of sync: num_left > 0 but no free blocks")


class SheetModel:
    """Buses as laid out in the spreadsheet grid"""

    def __init__(self, buses: Optional[List[SheetBus]] = None,
                 default_width: int = config.SHEET_DEFAULT_WIDTH):
        self.buses: List[SheetBus] = buses or []
        self.default_width = default_width
        # Ids whose rows were cleared during the last refresh
        self.removed_ids: Set[str] = set()

    def refresh(self, grid: Grid, registry_model=None):
        """Re-resolve tracked buses against a freshly pulled grid (header row included)"""
        rows = grid[HEADER_ROWS:]
        used_positions: Set[SheetPosition] = set()

        for bus in self.buses:
            bus.resolve(rows, used_positions)

        added = 0
        for position, block in iter_blocks(rows):
            name = block[0].strip()
            if name and position not in used_positions:
                self.buses.append(SheetBus(None, name, normalize_boarding_area(block[1]), info=position))
                used_positions.add(position)
                added += 1

        self.removed_ids = {bus.id for bus in self.buses if not bus.name and bus.id is not None}
        self.buses = [bus for bus in self.buses if bus.name]

        if registry_model is not None:
            self._backfill_ids(registry_model)

        self._warn_duplicate_names()
        logger.info(
            f"📄 Sheet model: {len(self.buses)} buses ({added} new, {len(self.removed_ids)} cleared)"
        )

    def _backfill_ids(self, registry_model):
        for bus in self.buses:
            if bus.id is not None:
                continue
            match = next((other for other in registry_model.buses if other.name == bus.name), None)
            if match:
                logger.debug(f"🔗 Sheet bus '{bus.name}' adopts registry id {match.id}")
                bus.id = match.id

    def _warn_duplicate_names(self):
        counts = Counter(bus.name for bus in self.buses)
        for name, count in counts.items():
            if count > 1:
                logger.warning(f"⚠️ Bus name '{name}' appears {count} times in the sheet; first match wins")

    def allocate_free_areas(self) -> FreeAreas:
        """Free blocks inside the footprint currently occupied by tracked buses"""
        if not self.buses:
            return FreeAreas(width=self.default_width)

        occupied = {bus.position for bus in self.buses}
        width = max(position.x for position in occupied) + BLOCK_WIDTH
        height = max(position.y for position in occupied) + 1

        free_spaces = [
            [x for x in range(0, width, BLOCK_WIDTH) if SheetPosition(x, y) not in occupied]
            for y in range(height)
        ]
        return FreeAreas(width, free_spaces, sum(len(row) for row in free_spaces))

    def _tracked_bus(self, difference: Difference) -> Optional[SheetBus]:
        """Row a difference addresses; a delete aimed at one of several rows sharing an id hits that row"""
        target = getattr(difference, 'target', None)
        if target is not None and any(bus is target for bus in self.buses):
            return target
        return find_by_id(self.buses, difference.id)

    def translate_to_write(self, difference: Difference, free_areas: FreeAreas) -> Optional[CellWrite]:
        """Cell write for one difference, or None when it cannot be placed"""
        if isinstance(difference, Create):
            position = free_areas.take()
            return CellWrite(
                position.x,
                position.y + HEADER_ROWS,
                [difference.name or '', difference.boarding_area or '']
            )

        bus = self._tracked_bus(difference)
        if bus is None:
            logger.warning(f"⚠️ No tracked sheet row for {describe(difference)}; skipping")
            return None

        x, y = bus.position.x, bus.position.y + HEADER_ROWS

        if isinstance(difference, NameUpdate):
            if not difference.name:
                logger.warning(f"⚠️ Refusing to blank the name of sheet bus {difference.id}")
                return None
            return CellWrite(x, y, [difference.name])
        if isinstance(difference, BoardingAreaUpdate):
            return CellWrite(x + 1, y, [difference.boarding_area or ''])
        if isinstance(difference, Delete):
            return CellWrite(x, y, [''])

        raise TypeError(f"Unknown difference type: {type(difference).__name__}")

    def apply_changes(self, differences: List[Difference], sheet_client) -> ApplyResult:
        """Translate differences in order and write them as one batch"""
        result = ApplyResult()
        if not differences:
            return result

        free_areas = self.allocate_free_areas()
        planned: List[Tuple[Difference, CellWrite]] = []
        for difference in differences:
            write = self.translate_to_write(difference, free_areas)
            if write is None:
                result.skipped += 1
            else:
                planned.append((difference, write))

        if not planned:
            return result

        logger.info(f"✏️ Writing {len(planned)} cell updates to the sheet")
        sheet_client.write_cells([write for _, write in planned])

        for difference, write in planned:
            self._record_write(difference, write)
        result.applied = len(planned)
        return result

    def _record_write(self, difference: Difference, write: CellWrite):
        """Mirror a successful write in the tracked buses"""
        if isinstance(difference, Create):
            self.buses.append(SheetBus(
                difference.id,
                difference.name,
                normalize_boarding_area(difference.boarding_area),
                stale=True,
                info=SheetPosition(write.x, write.y - HEADER_ROWS)
            ))
            return

        bus = self._tracked_bus(difference)
        if bus is None:
            return
        if isinstance(difference, NameUpdate):
            bus.name = difference.name
            bus.stale = True
        elif isinstance(difference, BoardingAreaUpdate):
            bus.boarding_area = normalize_boarding_area(difference.boarding_area)
            bus.stale = True
        elif isinstance(difference, Delete):
            self.buses.remove(bus)
