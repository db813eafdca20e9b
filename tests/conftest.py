"""
Shared fixtures - in-memory stand-ins for the registry API and the sheet
"""

import copy
import itertools
import os
import sys
from threading import Lock

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from registry_ops.queries import RegistryError, RegistrySnapshot, RemoteBus


class FakeRegistryClient:
    """Registry with the same surface as RegistryClient, backed by a dict"""

    def __init__(self, time_zone='America/Chicago'):
        self.time_zone = time_zone
        self.buses = {}
        self.calls = []
        self.fail_on = set()
        self._ids = itertools.count(100)
        self._lock = Lock()

    def add_bus(self, bus_id, name, boarding_area=None, invalidate_time=None, available=True):
        self.buses[bus_id] = {
            'name': name,
            'available': available,
            'otherNames': [],
            'phone': [],
            'company': None,
            'boardingArea': boarding_area,
            'invalidateTime': invalidate_time,
        }

    def _record(self, method, bus_id, *args):
        with self._lock:
            self.calls.append((method, bus_id) + args)
            if (method, bus_id) in self.fail_on:
                raise RegistryError(f"{method} failed for {bus_id}")

    def calls_to(self, method):
        return [call for call in self.calls if call[0] == method]

    def get_school(self):
        return RegistrySnapshot(self.time_zone, [
            RemoteBus(bus_id, bus['name'], bus['boardingArea'], bus['invalidateTime'], bus['available'])
            for bus_id, bus in self.buses.items()
        ])

    def get_bus(self, bus_id):
        self._record('get_bus', bus_id)
        bus = self.buses[bus_id]
        return {key: copy.deepcopy(bus[key]) for key in ('name', 'available', 'otherNames', 'phone', 'company')}

    def create_bus(self, name):
        self._record('create_bus', name)
        with self._lock:
            bus_id = str(next(self._ids))
            self.add_bus(bus_id, name)
        return bus_id

    def update_bus(self, bus_id, bus):
        self._record('update_bus', bus_id, dict(bus))
        self.buses[bus_id].update(bus)
        return bus_id

    def update_bus_status(self, bus_id, boarding_area, invalidate_time):
        self._record('update_bus_status', bus_id, boarding_area, invalidate_time)
        self.buses[bus_id]['boardingArea'] = boarding_area
        self.buses[bus_id]['invalidateTime'] = invalidate_time
        return bus_id


class FakeSheetClient:
    """Sheet tab held as a list of rows; row 0 is the header"""

    def __init__(self, rows=None):
        self.grid = [['Name', 'Boarding Area', '']] + [list(row) for row in (rows or [])]
        self.batches = []
        self.fail_writes = False

    def get_grid(self):
        return copy.deepcopy(self.grid)

    def write_cells(self, writes):
        if self.fail_writes:
            raise RuntimeError("sheet write failed")
        self.batches.append(list(writes))
        for write in writes:
            while len(self.grid) <= write.y:
                self.grid.append([])
            row = self.grid[write.y]
            for offset, value in enumerate(write.values):
                column = write.x + offset
                while len(row) <= column:
                    row.append('')
                row[column] = value
        return {'totalUpdatedCells': sum(len(write.values) for write in writes)}

    def data_rows(self):
        return self.grid[1:]


@pytest.fixture
def registry_client():
    return FakeRegistryClient()


@pytest.fixture
def sheet_client():
    return FakeSheetClient()
