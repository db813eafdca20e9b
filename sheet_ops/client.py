# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Sheet Client - reads the bus grid from Google Sheets and writes cell batches back
"""
import logging
from typing import Any, List, Optional

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

import config
from auth.sheets_auth import load_sheets_credentials
from sheet_ops.ranges import CellWrite

logger = logging.getLogger(__name__)


class SheetError(Exception):
    """Sheets API failure or malformed values payload"""


def _cell_to_str(cell: Any) -> str:
    if cell is None:
        return ''
    if isinstance(cell, bool):
        return 'TRUE' if cell else 'FALSE'
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell)


class SheetClient:
    """Values API access for one spreadsheet tab"""

    def __init__(self, spreadsheet_id: str, sheet_name: str = config.SHEET_NAME,
                 read_range: str = config.SHEET_READ_RANGE, credentials=None, service=None):
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.read_range = read_range
        self._credentials = credentials
        self._service = service

    @classmethod
    def from_config(cls) -> 'SheetClient':
        return cls(config.SPREADSHEET_ID)

    def _values(self):
        if self._service is None:
            credentials = self._credentials or load_sheets_credentials()
            self._service = build('sheets', 'v4', credentials=credentials, cache_discovery=False)
        return self._service.spreadsheets().values()

    def get_grid(self) -> List[List[str]]:
        """All rows of the tab as strings; row 0 is the header"""
        logger.info("Requesting sheet data...")
        try:
            response = self._values().get(
                spreadsheetId=self.spreadsheet_id,
                range=f"{self.sheet_name}!{self.read_range}",
                majorDimension='ROWS',
                valueRenderOption='UNFORMATTED_VALUE'
            ).execute(num_retries=0)
        except HttpError as e:
            raise SheetError(f"Failed to read sheet: {e}") from e

        values = response.get('values', [])
        if not isinstance(values, list) or any(not isinstance(row, list) for row in values):
            raise SheetError(f"Unexpected values payload: {str(response)[:200]}")

        logger.info(f"📄 Sheet data obtained ({len(values)} rows)")
        return [[_cell_to_str(cell) for cell in row] for row in values]

    def write_cells(self, writes: List[CellWrite]) -> Optional[dict]:
        """Send every write in one batchUpdate call"""
        if not writes:
            return None

        body = {
            'valueInputOption': 'RAW',
            'data': [write.as_value_range(self.sheet_name) for write in writes]
        }
        try:
            response = self._values().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body=body
            ).execute(num_retries=0)
        except HttpError as e:
            raise SheetError(f"Failed to write {len(writes)} ranges: {e}") from e

        logger.info(f"✅ Sheet batch update wrote {response.get('totalUpdatedCells', 0)} cells")
        return response
