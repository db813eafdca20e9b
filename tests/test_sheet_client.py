"""
Sheet client tests - Sheets values API calls (service mocked)
"""

from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError

from sheet_ops.client import SheetClient, SheetError
from sheet_ops.ranges import CellWrite


def make_client(values_api):
    service = MagicMock()
    service.spreadsheets.return_value.values.return_value = values_api
    return SheetClient('sheet-123', sheet_name='Locations', read_range='A:ZZ', service=service)


class TestGetGrid:
    """Reading the tab"""

    @pytest.mark.unit
    def test_cells_converted_to_strings(self):
        values_api = MagicMock()
        values_api.get.return_value.execute.return_value = {
            'values': [['Name', 'Boarding Area'], ['Bus 1', 12.0, '', 'Bus 2', None, True]]
        }

        grid = make_client(values_api).get_grid()

        assert grid == [['Name', 'Boarding Area'], ['Bus 1', '12', '', 'Bus 2', '', 'TRUE']]
        values_api.get.assert_called_once_with(
            spreadsheetId='sheet-123',
            range='Locations!A:ZZ',
            majorDimension='ROWS',
            valueRenderOption='UNFORMATTED_VALUE'
        )

    @pytest.mark.unit
    def test_empty_sheet(self):
        values_api = MagicMock()
        values_api.get.return_value.execute.return_value = {}
        assert make_client(values_api).get_grid() == []

    @pytest.mark.unit
    def test_malformed_payload(self):
        values_api = MagicMock()
        values_api.get.return_value.execute.return_value = {'values': ['not a row']}
        with pytest.raises(SheetError):
            make_client(values_api).get_grid()

    @pytest.mark.unit
    def test_http_error_wrapped(self):
        values_api = MagicMock()
        values_api.get.return_value.execute.side_effect = HttpError(MagicMock(status=403), b'forbidden')
        with pytest.raises(SheetError):
            make_client(values_api).get_grid()


class TestWriteCells:
    """Batch writes"""

    @pytest.mark.unit
    def test_single_batch_update(self):
        values_api = MagicMock()
        values_api.batchUpdate.return_value.execute.return_value = {'totalUpdatedCells': 3}

        make_client(values_api).write_cells([CellWrite(0, 1, ['Bus 1', 'A3']), CellWrite(4, 2, [''])])

        values_api.batchUpdate.assert_called_once_with(spreadsheetId='sheet-123', body={
            'valueInputOption': 'RAW',
            'data': [
                {'range': 'Locations!A2:B2', 'majorDimension': 'ROWS', 'values': [['Bus 1', 'A3']]},
                {'range': 'Locations!E3:E3', 'majorDimension': 'ROWS', 'values': [['']]},
            ]
        })

    @pytest.mark.unit
    def test_nothing_to_write(self):
        values_api = MagicMock()
        assert make_client(values_api).write_cells([]) is None
        values_api.batchUpdate.assert_not_called()
