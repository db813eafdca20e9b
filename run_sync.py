# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

#!/usr/bin/env python3
"""
Command-line entry point: run one sync cycle, or keep syncing on a fixed delay
"""
import argparse
import logging
import sys

import config
from utils.logger import configure_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Synchronize bus locations between the sheet and the registry")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--once', action='store_true', help="run a single cycle and exit (default)")
    mode.add_argument('--cron', action='store_true', help="run cycles forever with a fixed delay between them")
    parser.add_argument('--dry-run', action='store_true', help="plan changes without writing them")
    parser.add_argument('--interval', type=int, default=config.SYNC_INTERVAL_SEC,
                        help="seconds to wait after each cycle in --cron mode")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(config.LOG_LEVEL, config.STRUCTURED_LOGGING)

    from sync import SyncEngine, SyncScheduler

    engine = SyncEngine.from_config()
    if args.dry_run:
        engine.dry_run = True

    if args.cron:
        logger.info(f"⏰ Starting sync loop (delay {args.interval}s)")
        try:
            SyncScheduler(engine, interval_seconds=args.interval).run_forever()
        except KeyboardInterrupt:
            logger.info("Interrupted, exiting")
        return 0

    result = engine.run_cycle()
    return 0 if result.get('success') else 1


if __name__ == '__main__':
    sys.exit(main())
