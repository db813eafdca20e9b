# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Shared utilities: retry, structured logging and time zone helpers
"""
from utils.logger import StructuredLogger, JsonFormatter, configure_logging
from utils.retry import retry_with_backoff, backoff_delay
from utils.timezone import (
    get_utc_time,
    start_of_local_day,
    end_of_local_day,
    parse_iso_datetime,
    to_iso_utc,
)
