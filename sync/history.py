# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Sync History - Track sync cycle outcomes for status reporting
"""
from datetime import timedelta
from typing import Dict, List
from collections import defaultdict
import statistics
from utils.timezone import get_utc_time


class SyncHistory:
    """Bounded list of recent cycle results and their statistics"""

    def __init__(self, max_entries: int = 100):
        self.history: List[Dict] = []
        self.max_entries = max_entries

    def add_entry(self, sync_result: Dict):
        """Add a sync result to history"""
        planned = sync_result.get('planned', {})
        entry = {
            'timestamp': get_utc_time(),
            'duration': sync_result.get('duration', 0),
            'success': sync_result.get('success', False),
            'operations': {
                'created': planned.get('created', 0),
                'renamed': planned.get('renamed', 0),
                'moved': planned.get('moved', 0),
                'deleted': planned.get('deleted', 0),
                'failed': sync_result.get('failed_operations', 0)
            },
            'dry_run': sync_result.get('dry_run', False),
            'error': sync_result.get('error', None)
        }

        self.history.append(entry)

        # Trim history if it exceeds max entries
        if len(self.history) > self.max_entries:
            self.history.pop(0)

    def get_statistics(self, hours: int = 24) -> Dict:
        """Calculate statistics for the given time period"""
        cutoff_time = get_utc_time() - timedelta(hours=hours)
        recent_entries = [
            entry for entry in self.history
            if entry['timestamp'] > cutoff_time
        ]

        if not recent_entries:
            return {
                'period_hours': hours,
                'total_syncs': 0,
                'successful_syncs': 0,
                'failed_syncs': 0,
                'success_rate': 0,
                'average_duration': 0,
                'total_operations': {},
                'last_sync': None,
                'last_successful_sync': None
            }

        successful_syncs = [e for e in recent_entries if e['success']]
        failed_syncs = [e for e in recent_entries if not e['success']]

        durations = [e['duration'] for e in recent_entries if e['duration'] > 0]
        avg_duration = statistics.mean(durations) if durations else 0

        # Dry runs only plan, so they do not count towards operations
        total_operations = defaultdict(int)
        for entry in recent_entries:
            if entry['dry_run']:
                continue
            for op_type, count in entry['operations'].items():
                total_operations[op_type] += count

        last_sync = recent_entries[-1]
        last_successful = next((e for e in reversed(recent_entries) if e['success']), None)

        return {
            'period_hours': hours,
            'total_syncs': len(recent_entries),
            'successful_syncs': len(successful_syncs),
            'failed_syncs': len(failed_syncs),
            'success_rate': len(successful_syncs) / len(recent_entries) * 100,
            'average_duration': avg_duration,
            'max_duration': max(durations) if durations else 0,
            'total_operations': dict(total_operations),
            'last_sync': last_sync['timestamp'].isoformat(),
            'last_successful_sync': last_successful['timestamp'].isoformat() if last_successful else None,
            'dry_run_count': sum(1 for e in recent_entries if e['dry_run'])
        }

    def get_recent_failures(self, limit: int = 10) -> List[Dict]:
        """Get recent failed syncs"""
        failures = [
            {
                'timestamp': entry['timestamp'].isoformat(),
                'error': entry.get('error') or 'Unknown error',
                'duration': entry.get('duration', 0)
            }
            for entry in reversed(self.history)
            if not entry['success']
        ]
        return failures[:limit]
