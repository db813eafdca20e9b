# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

#!/usr/bin/env python3
"""
Bus Location Sync - status and manual trigger service
"""
import os
import logging
import threading
from flask import Flask, jsonify

import config
from utils.logger import SERVICE_NAME, configure_logging
from utils.timezone import get_utc_time

# Configure logging
configure_logging(config.LOG_LEVEL, config.STRUCTURED_LOGGING)
logger = logging.getLogger(__name__)

# Initialize Flask
app = Flask(__name__)

# Global components
sync_engine = None
scheduler = None

# Global flag to track if components have been initialized
_components_initialized = False
_init_lock = threading.Lock()


def initialize_components():
    """Initialize sync components safely"""
    global sync_engine, scheduler

    if sync_engine is None:
        try:
            from sync import SyncEngine
            sync_engine = SyncEngine.from_config()
            logger.info("✅ Sync engine initialized")
        except Exception as e:
            logger.error(f"Failed to initialize sync engine: {e}")
            return False

    if scheduler is None:
        from sync import SyncScheduler
        scheduler = SyncScheduler(sync_engine)
        logger.info("✅ Scheduler initialized")

    return True


def ensure_components_initialized(start_scheduler: bool = True):
    """Initialize components on first request to avoid startup delays"""
    global _components_initialized
    with _init_lock:
        if not _components_initialized:
            _components_initialized = initialize_components()
            if _components_initialized:
                logger.info("✅ Components initialized on first request")
        if _components_initialized and start_scheduler and not scheduler.is_running():
            scheduler.start()
    return _components_initialized


@app.route('/health')
def health_check():
    """Lightweight health check"""
    return jsonify({
        "status": "healthy",
        "timestamp": get_utc_time().isoformat(),
        "service": SERVICE_NAME
    }), 200


@app.route('/status')
def get_status():
    """Get current system status"""
    if not ensure_components_initialized():
        return jsonify({"error": "Sync engine not initialized"}), 500

    status = sync_engine.get_status()
    status['scheduler_running'] = scheduler.is_running()
    status['sync_interval_seconds'] = scheduler.interval_seconds
    return jsonify(status)


@app.route('/sync', methods=['POST'])
def trigger_sync():
    """Trigger sync in background, return immediately"""
    if not ensure_components_initialized(start_scheduler=False):
        return jsonify({"error": "Sync engine not initialized"}), 500

    if sync_engine.sync_in_progress:
        return jsonify({
            "status": "already_running",
            "message": "Sync is already in progress"
        }), 409

    sync_thread = threading.Thread(target=_run_sync_background, daemon=True)
    sync_thread.start()

    return jsonify({
        "status": "started",
        "message": "Sync started in background",
        "dry_run": sync_engine.dry_run,
        "check_progress": "/status"
    }), 202  # 202 Accepted


def _run_sync_background():
    """Run sync in background thread"""
    logger.info("🔄 Background sync started")
    sync_engine.run_cycle()


@app.route('/history')
def get_history():
    """Get sync history"""
    if not sync_engine:
        return jsonify({"error": "Sync engine not initialized"}), 500

    stats = sync_engine.history.get_statistics()
    stats['recent_failures'] = sync_engine.history.get_recent_failures(limit=5)
    return jsonify(stats)


if __name__ == '__main__':
    port = int(os.environ.get('PORT', config.PORT))
    ensure_components_initialized()
    logger.info(f"Starting bus location sync service on port {port}")
    app.run(host='0.0.0.0', port=port)
