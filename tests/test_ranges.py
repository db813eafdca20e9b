"""
A1 range conversion tests
"""

import pytest

from sheet_ops.ranges import CellWrite, column_letters, xy_to_range


class TestColumnLetters:
    """Bijective base-26 column names"""

    @pytest.mark.unit
    @pytest.mark.parametrize('index,letters', [
        (0, 'A'), (2, 'C'), (25, 'Z'), (26, 'AA'), (27, 'AB'), (51, 'AZ'), (52, 'BA'), (701, 'ZZ'), (702, 'AAA'),
    ])
    def test_letters(self, index, letters):
        assert column_letters(index) == letters

    @pytest.mark.unit
    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            column_letters(-1)

    @pytest.mark.unit
    def test_xy_to_range(self):
        assert xy_to_range(0, 0) == 'A1'
        assert xy_to_range(3, 4) == 'D5'
        assert xy_to_range(27, 9) == 'AB10'


class TestCellWrite:
    """Value ranges sent to batchUpdate"""

    @pytest.mark.unit
    def test_value_range(self):
        write = CellWrite(3, 2, ['Bus 2', 'B1'])
        assert write.as_value_range('Locations') == {
            'range': 'Locations!D3:E3',
            'majorDimension': 'ROWS',
            'values': [['Bus 2', 'B1']]
        }

    @pytest.mark.unit
    def test_single_cell(self):
        assert CellWrite(0, 1, ['']).a1_range() == 'A2:A2'
