# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Sync Engine - one reconciliation cycle between the bus sheet and the registry
"""
import logging
import traceback
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple

import config
from sync.differences import ApplyResult, Difference, describe, summarize
from sync.ground_truth import GroundTruthModel
from sync.history import SyncHistory
from sync.registry_model import RegistryModel
from sync.sheet_model import SheetModel
from utils.logger import StructuredLogger
from utils.timezone import get_utc_time

logger = logging.getLogger(__name__)


class ApplyError(Exception):
    """Some differences of one apply stage failed"""

    def __init__(self, side: str, errors: List[Tuple[Difference, Exception]]):
        self.side = side
        self.errors = errors
        super().__init__(f"{len(errors)} {side} change(s) failed")


class SyncCycleError(Exception):
    """A cycle finished with failed stages; the next cycle starts from the last committed state"""

    def __init__(self, failures: List[ApplyError]):
        self.failures = failures
        super().__init__("; ".join(str(failure) for failure in failures))


class SyncEngine:
    """Core engine for bus location synchronization"""

    def __init__(self, registry_client, sheet_client,
                 sync_sheet_to_registry: bool = config.SYNC_SHEET_TO_REGISTRY,
                 sync_registry_to_sheet: bool = config.SYNC_REGISTRY_TO_SHEET,
                 dry_run: bool = config.DRY_RUN_MODE,
                 apply_workers: int = config.APPLY_WORKERS):
        self.registry_client = registry_client
        self.sheet_client = sheet_client
        self.sync_sheet_to_registry = sync_sheet_to_registry
        self.sync_registry_to_sheet = sync_registry_to_sheet
        self.dry_run = dry_run
        self.apply_workers = apply_workers

        # Models persist across cycles
        self.registry_model = RegistryModel()
        self.sheet_model = SheetModel()
        self.ground_truth = GroundTruthModel()

        # Sync state
        self.sync_lock = Lock()
        self.sync_in_progress = False
        self.last_sync_time = None
        self.last_sync_result = {"success": False, "message": "Not synced yet"}

        self.structured_logger = StructuredLogger(__name__)
        self.history = SyncHistory()

    @classmethod
    def from_config(cls) -> 'SyncEngine':
        from auth.registry_auth import RegistryAuth
        from registry_ops.client import RegistryClient
        from sheet_ops.client import SheetClient

        auth = RegistryAuth.from_config()
        return cls(RegistryClient(auth, config.SCHOOL_ID), SheetClient.from_config())

    def run_cycle(self) -> Dict:
        """Run one full cycle; never raises, the outcome is in the returned dict"""
        with self.sync_lock:
            if self.sync_in_progress:
                logger.warning("⚠️ Sync already in progress; skipping this trigger")
                return {"success": False, "error": "Sync already in progress"}
            self.sync_in_progress = True

        start_time = get_utc_time()
        result = {
            'success': False,
            'dry_run': self.dry_run,
            'merged': {},
            'planned': {'renamed': 0, 'moved': 0, 'created': 0, 'deleted': 0},
            'applied': 0,
            'failed_operations': 0,
            'errors': []
        }

        logger.info("🚀 Starting bus location sync")
        self.structured_logger.log_sync_event('sync_started', {
            'timestamp': start_time.isoformat(),
            'dry_run': self.dry_run
        })

        try:
            self._do_cycle(result)
            result['success'] = True
            result['message'] = self._summary_message(result)

        except SyncCycleError as e:
            result['message'] = f'Sync finished with failures: {e}'
            result['error'] = str(e)
            for failure in e.failures:
                self.structured_logger.log_sync_event('apply_failed', {
                    'side': failure.side,
                    'failed': len(failure.errors)
                })

        except Exception as e:
            result['message'] = f'Sync failed: {type(e).__name__}: {e}'
            result['error'] = str(e)
            result['errors'].append(f"{type(e).__name__}: {e}")
            result['traceback'] = traceback.format_exc()

        finally:
            duration = (get_utc_time() - start_time).total_seconds()
            result['duration'] = duration
            with self.sync_lock:
                self.sync_in_progress = False
                self.last_sync_time = get_utc_time()
                self.last_sync_result = result

        self.history.add_entry(result)

        if result['success']:
            self.structured_logger.log_sync_event('sync_completed', {
                'duration_seconds': duration,
                'merged': result['merged'],
                'planned': result['planned'],
                'applied': result['applied'],
                'dry_run': self.dry_run
            })
            logger.info(f"🎉 Sync completed in {duration:.2f} seconds: {result['message']}")
        else:
            self.structured_logger.log_sync_event('sync_failed', {
                'error': result.get('error'),
                'duration_seconds': duration
            })
            logger.error(f"💥 Sync failed after {duration:.2f} seconds: {result['message']}")

        return result

    def _do_cycle(self, result: Dict):
        snapshot = self.registry_client.get_school()
        self.registry_model.refresh(snapshot)

        grid = self.sheet_client.get_grid()
        self.sheet_model.refresh(grid, self.registry_model)

        merged = self.ground_truth.merge(
            self.registry_model,
            self.sheet_model if self.sync_sheet_to_registry else None
        )
        result['merged'] = summarize(merged)

        failures: List[ApplyError] = []

        # Registry first, so ids it assigns reach ground truth before the sheet diff
        if self.sync_sheet_to_registry:
            plan = self.ground_truth.diff_outgoing(self.registry_model)
            failure = self._apply_plan('registry', plan, result, lambda differences: self.registry_model.apply_changes(
                differences, self.registry_client, max_workers=self.apply_workers
            ))
            if failure:
                failures.append(failure)

        if self.sync_registry_to_sheet:
            plan = self.ground_truth.diff_outgoing(self.sheet_model)
            failure = self._apply_plan('sheet', plan, result, self._apply_to_sheet)
            if failure:
                failures.append(failure)

        if failures:
            raise SyncCycleError(failures)

    def _apply_to_sheet(self, differences: List[Difference]) -> ApplyResult:
        try:
            return self.sheet_model.apply_changes(differences, self.sheet_client)
        except Exception as e:
            # The whole batch is one write, so every difference shares the failure
            return ApplyResult(errors=[(difference, e) for difference in differences])

    def _apply_plan(self, side: str, plan: List[Difference], result: Dict,
                    apply: Callable[[List[Difference]], ApplyResult]) -> Optional[ApplyError]:
        counts = summarize(plan)
        for key, count in counts.items():
            result['planned'][key] += count

        if not plan:
            logger.info(f"✅ {side.capitalize()} already matches ground truth")
            return None

        logger.info(
            f"📋 {side.upper()} PLAN: {counts['created']} to create, {counts['renamed']} to rename, "
            f"{counts['moved']} to move, {counts['deleted']} to delete"
        )
        for difference in plan:
            logger.debug(f"  - {describe(difference)}")

        if self.dry_run:
            logger.info(f"🧪 DRY RUN MODE - {side} left unchanged")
            return None

        outcome = apply(plan)
        result['applied'] += outcome.applied
        result['failed_operations'] += len(outcome.errors)
        result['errors'].extend(f"{side}: {message}" for message in outcome.as_dict()['errors'])

        if outcome.errors:
            return ApplyError(side, outcome.errors)
        return None

    def _summary_message(self, result: Dict) -> str:
        planned = result['planned']
        prefix = 'DRY RUN: Would create' if self.dry_run else 'Created'
        return (
            f"{prefix} {planned['created']}, rename {planned['renamed']}, "
            f"move {planned['moved']}, delete {planned['deleted']}"
        )

    def get_status(self) -> Dict:
        """Get current sync status"""
        with self.sync_lock:
            return {
                'last_sync_time': self.last_sync_time.isoformat() if self.last_sync_time else None,
                'last_sync_result': self.last_sync_result,
                'sync_in_progress': self.sync_in_progress,
                'dry_run': self.dry_run,
                'directions': {
                    'sheet_to_registry': self.sync_sheet_to_registry,
                    'registry_to_sheet': self.sync_registry_to_sheet
                },
                'buses': {
                    'ground_truth': len(self.ground_truth.buses),
                    'registry_active': len(self.registry_model.buses),
                    'registry_deactivated': len(self.registry_model.deactivated),
                    'sheet': len(self.sheet_model.buses)
                },
                'registry_time_zone': self.registry_model.time_zone,
                'total_syncs': len(self.history.history),
                'current_time': get_utc_time().isoformat()
            }
