# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Position Model - resolves where a tracked bus currently sits in the grid
"""
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Set, Tuple

from sync.records import BusRecord, SheetPosition, normalize_boarding_area

logger = logging.getLogger(__name__)

# name | boarding area | spare
BLOCK_WIDTH = 3

Grid = Sequence[Sequence[str]]


def read_block(rows: Grid, x: int, y: int) -> List[str]:
    """Cells of the block at (x, y), padded with empty strings past the grid edge"""
    row = rows[y] if 0 <= y < len(rows) else []
    cells = ['' if cell is None else str(cell) for cell in row[x:x + BLOCK_WIDTH]]
    return cells + [''] * (BLOCK_WIDTH - len(cells))


def iter_blocks(rows: Grid) -> Iterator[Tuple[SheetPosition, List[str]]]:
    """Every block in row-major, then column-major order"""
    for y, row in enumerate(rows):
        for x in range(0, len(row), BLOCK_WIDTH):
            yield SheetPosition(x, y), read_block(rows, x, y)


def find_block(rows: Grid, predicate: Callable[[List[str], SheetPosition], bool]) -> Optional[SheetPosition]:
    for position, block in iter_blocks(rows):
        if predicate(block, position):
            return position
    return None


@dataclass(eq=False)
class SheetBus(BusRecord):
    """A bus tracked at a block of the spreadsheet; ``info`` is its SheetPosition"""

    @property
    def position(self) -> SheetPosition:
        return self.info

    def resolve(self, rows: Grid, used_positions: Set[SheetPosition]) -> None:
        """
        Re-locate this bus in a fresh grid and pick up its current values.

        The remembered block wins if it still carries the bus's name. Otherwise
        the first unclaimed block with that name is taken. With no match the bus
        stays put and adopts whatever the old block now holds.
        """
        block = read_block(rows, self.info.x, self.info.y)

        if block[0].strip() != self.name:
            new_position = find_block(
                rows,
                lambda data, pos: data[0].strip() == self.name and pos not in used_positions
            )
            if new_position:
                logger.debug(f"📍 '{self.name}' moved {tuple(self.info)} -> {tuple(new_position)}")
                self.info = new_position
                block = read_block(rows, new_position.x, new_position.y)

        name = block[0].strip()
        boarding_area = normalize_boarding_area(block[1])
        if name != self.name or boarding_area != self.boarding_area:
            self.stale = False

        self.name = name
        self.boarding_area = boarding_area
        used_positions.add(self.info)
