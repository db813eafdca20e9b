"""
Position resolution tests - where a tracked bus sits after the grid changes
"""

import pytest

from sync.position import SheetBus, iter_blocks, read_block
from sync.records import SheetPosition


def tracked(name, x, y, boarding_area=None):
    return SheetBus(None, name, boarding_area, info=SheetPosition(x, y))


class TestReadBlock:
    """Reading 3-cell blocks from ragged grids"""

    @pytest.mark.unit
    def test_missing_row_reads_empty(self):
        assert read_block([['Bus 1', 'A1', '']], 0, 5) == ['', '', '']

    @pytest.mark.unit
    def test_short_row_is_padded(self):
        assert read_block([['Bus 1', 'A1', '', 'Bus 2']], 3, 0) == ['Bus 2', '', '']

    @pytest.mark.unit
    def test_blocks_are_row_major(self):
        rows = [['a', '', '', 'b', '', ''], ['c']]
        positions = [position for position, _ in iter_blocks(rows)]
        assert positions == [SheetPosition(0, 0), SheetPosition(3, 0), SheetPosition(0, 1)]


class TestResolve:
    """Re-resolving a remembered position"""

    @pytest.mark.unit
    def test_resolution_is_idempotent(self):
        rows = [['Bus 2', 'B1', '', 'Bus 1', 'A3', '']]
        bus = tracked('Bus 1', 0, 0)

        bus.resolve(rows, set())
        first = bus.position
        bus.resolve(rows, set())

        assert bus.position == first == SheetPosition(3, 0)
        assert bus.boarding_area == 'A3'

    @pytest.mark.unit
    def test_stays_in_place_when_name_matches(self):
        rows = [['Bus 1', ' A3 ', '']]
        bus = tracked('Bus 1', 0, 0, boarding_area='A3')
        bus.stale = True

        used = set()
        bus.resolve(rows, used)

        assert bus.position == SheetPosition(0, 0)
        assert bus.stale is True
        assert used == {SheetPosition(0, 0)}

    @pytest.mark.unit
    def test_relocates_to_first_unclaimed_match(self):
        rows = [['Bus 1', 'A1', '', 'Bus 1', 'A2', '']]
        bus = tracked('Bus 1', 0, 1)

        bus.resolve(rows, {SheetPosition(0, 0)})

        assert bus.position == SheetPosition(3, 0)
        assert bus.boarding_area == 'A2'
        assert bus.stale is False

    @pytest.mark.unit
    def test_no_match_keeps_position_and_drifts(self):
        rows = [['Bus 9', 'C1', '']]
        bus = tracked('Bus 1', 0, 0, boarding_area='A1')

        bus.resolve(rows, set())

        assert bus.position == SheetPosition(0, 0)
        assert bus.name == 'Bus 9'
        assert bus.boarding_area == 'C1'
        assert bus.stale is False

    @pytest.mark.unit
    def test_missing_row_clears_values(self):
        bus = tracked('Bus 1', 0, 3, boarding_area='A1')

        bus.resolve([['Bus 2', '', '']], set())

        assert bus.name == ''
        assert bus.boarding_area is None
