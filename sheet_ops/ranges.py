# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
A1 notation helpers for sheet writes
"""
from dataclasses import dataclass, field
from typing import List


def column_letters(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA"""
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")

    letters = ''
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord('A') + remainder) + letters
    return letters


def xy_to_range(x: int, y: int) -> str:
    """Zero-based sheet coordinate to an A1 cell reference"""
    return f"{column_letters(x)}{y + 1}"


@dataclass
class CellWrite:
    """
    Values written left-to-right into one row, starting at sheet column ``x``
    and absolute sheet row ``y`` (row 0 is the header).
    """
    x: int
    y: int
    values: List[str] = field(default_factory=list)

    def a1_range(self) -> str:
        end_x = self.x + max(len(self.values), 1) - 1
        return f"{xy_to_range(self.x, self.y)}:{xy_to_range(end_x, self.y)}"

    def as_value_range(self, sheet_name: str) -> dict:
        return {
            'range': f"{sheet_name}!{self.a1_range()}",
            'majorDimension': 'ROWS',
            'values': [list(self.values)]
        }
