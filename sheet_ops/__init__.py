# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Spreadsheet access
"""
from sheet_ops.client import SheetClient, SheetError
from sheet_ops.ranges import CellWrite, column_letters, xy_to_range
