# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Background Scheduler - fixed-delay sync loop
"""
import logging
import threading
import time
import schedule
from threading import Lock

import config

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Runs sync cycles in a background thread, waiting a fixed delay after each one"""

    def __init__(self, sync_engine, interval_seconds: int = config.SYNC_INTERVAL_SEC):
        self.sync_engine = sync_engine
        self.interval_seconds = interval_seconds
        self.scheduler = schedule.Scheduler()
        self.scheduler_lock = Lock()
        self.scheduler_running = False
        self.scheduler_thread = None

    def start(self):
        """Start the scheduler"""
        with self.scheduler_lock:
            if self.scheduler_thread is None or not self.scheduler_thread.is_alive():
                logger.info(f"Starting scheduler thread (every {self.interval_seconds}s)...")
                self.scheduler_running = True
                self.scheduler_thread = threading.Thread(target=self._run_scheduler, daemon=True)
                self.scheduler_thread.start()
            else:
                logger.info("Scheduler already running")

    def stop(self):
        """Stop the scheduler"""
        with self.scheduler_lock:
            self.scheduler_running = False
        logger.info("Stopping scheduler...")

    def is_running(self):
        """Check if scheduler is running"""
        with self.scheduler_lock:
            return bool(self.scheduler_running and self.scheduler_thread and self.scheduler_thread.is_alive())

    def run_forever(self):
        """Run the loop in the calling thread (used by the CLI)"""
        with self.scheduler_lock:
            self.scheduler_running = True
        self._run_scheduler()

    def _run_scheduler(self):
        """Run the scheduler loop"""
        self.scheduler.clear()
        # schedule measures the interval from the end of the previous run
        self.scheduler.every(self.interval_seconds).seconds.do(self._scheduled_sync)

        logger.info(f"Scheduler started - sync every {self.interval_seconds} seconds after completion")
        self._scheduled_sync()

        while True:
            with self.scheduler_lock:
                if not self.scheduler_running:
                    break

            self.scheduler.run_pending()
            time.sleep(1)

        self.scheduler.clear()
        logger.info("Scheduler stopped")

    def _scheduled_sync(self):
        """Function called by scheduler; the engine reports the outcome"""
        try:
            result = self.sync_engine.run_cycle()
        except Exception as e:
            # Keep the loop alive; the next cycle retries from the committed state
            logger.error(f"❌ Scheduled sync crashed: {type(e).__name__}: {e}")
            return

        logger.debug(f"Scheduled sync finished (success={result.get('success')})")
