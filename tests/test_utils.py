"""
Utility tests - time zone helpers, retry decorator and structured logging
"""

import json
import logging
from datetime import datetime

import pytest
import pytz

from utils.logger import JsonFormatter, StructuredLogger
from utils.retry import backoff_delay, retry_with_backoff
from utils.timezone import (
    end_of_local_day,
    parse_iso_datetime,
    start_of_local_day,
    to_iso_utc,
)


class TestTimezone:
    """Local-day boundaries and registry timestamp format"""

    @pytest.mark.unit
    def test_day_boundaries_in_school_zone(self):
        now = pytz.UTC.localize(datetime(2025, 1, 10, 3, 30))  # 21:30 CST on the 9th
        assert start_of_local_day('America/Chicago', now) == pytz.UTC.localize(datetime(2025, 1, 9, 6, 0))
        assert end_of_local_day('America/Chicago', now) == pytz.UTC.localize(datetime(2025, 1, 10, 6, 0))

    @pytest.mark.unit
    def test_end_of_day_across_dst_change(self):
        now = pytz.UTC.localize(datetime(2025, 3, 8, 18, 0))  # noon CST, DST starts overnight
        assert end_of_local_day('America/Chicago', now) == pytz.UTC.localize(datetime(2025, 3, 9, 6, 0))
        later = pytz.UTC.localize(datetime(2025, 3, 9, 18, 0))
        assert end_of_local_day('America/Chicago', later) == pytz.UTC.localize(datetime(2025, 3, 10, 5, 0))

    @pytest.mark.unit
    def test_unknown_zone_falls_back_to_utc(self):
        now = pytz.UTC.localize(datetime(2025, 1, 10, 3, 30))
        assert start_of_local_day('Mars/Olympus', now) == pytz.UTC.localize(datetime(2025, 1, 10))

    @pytest.mark.unit
    def test_iso_round_trip_format(self):
        dt = pytz.UTC.localize(datetime(2025, 1, 10, 6, 0, 0, 123456))
        assert to_iso_utc(dt) == '2025-01-10T06:00:00.123Z'
        assert parse_iso_datetime('2025-01-10T06:00:00.000Z') == pytz.UTC.localize(datetime(2025, 1, 10, 6))
        assert parse_iso_datetime(None) is None


class TestRetry:
    """retry_with_backoff decorator"""

    @pytest.mark.unit
    def test_backoff_is_capped(self):
        assert [backoff_delay(n, 1.0, 5.0) for n in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    @pytest.mark.unit
    def test_retries_only_listed_errors(self):
        sleeps = []
        calls = []

        @retry_with_backoff(max_retries=3, base_delay=0.5, retry_on=(ConnectionError,), sleep=sleeps.append)
        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise ConnectionError('once')
            raise KeyError('not retried')

        with pytest.raises(KeyError):
            flaky()
        assert len(calls) == 2
        assert sleeps == [0.5]

    @pytest.mark.unit
    def test_reraises_after_max_retries(self):
        sleeps = []

        @retry_with_backoff(max_retries=2, base_delay=1.0, sleep=sleeps.append)
        def always_fails():
            raise ValueError('nope')

        with pytest.raises(ValueError):
            always_fails()
        assert sleeps == [1.0, 2.0]


class TestStructuredLogger:
    """JSON sync events"""

    @pytest.mark.unit
    def test_failed_events_log_as_errors(self, caplog):
        logger = StructuredLogger('tests.structured')
        with caplog.at_level(logging.INFO, logger='tests.structured'):
            logger.log_sync_event('sync_failed', {'error': 'boom'})
            logger.log_sync_event('sync_completed', {'applied': 2})

        failed, completed = caplog.records
        assert failed.levelno == logging.ERROR
        assert json.loads(failed.getMessage())['error'] == 'boom'
        assert completed.levelno == logging.INFO
        assert json.loads(completed.getMessage())['event_type'] == 'sync_completed'

    @pytest.mark.unit
    def test_json_formatter_wraps_plain_messages(self):
        record = logging.LogRecord('bus', logging.WARNING, __file__, 1, 'plain text', None, None)
        payload = json.loads(JsonFormatter().format(record))
        assert payload['level'] == 'WARNING'
        assert payload['message'] == 'plain text'
