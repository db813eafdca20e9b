# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Bus reconciliation: sheet, registry and ground-truth models plus the cycle driver
"""
from sync.differences import (
    ApplyResult,
    BoardingAreaUpdate,
    Create,
    Delete,
    Difference,
    IdAlreadyAssignedError,
    IdAssignmentHook,
    NameUpdate,
)
from sync.records import BusRecord, SheetPosition
from sync.position import SheetBus
from sync.sheet_model import FreeAreas, SheetModel
from sync.registry_model import RegistryModel, invalidate_time_for
from sync.ground_truth import GroundTruthModel
from sync.history import SyncHistory
from sync.engine import ApplyError, SyncCycleError, SyncEngine
from sync.scheduler import SyncScheduler
