# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Registry Client - GraphQL reads and writes against the bus registry API
"""
import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

import requests

import config
from registry_ops.queries import (
    CREATE_BUS,
    GET_BUS,
    GET_SCHOOL,
    UPDATE_BUS,
    UPDATE_BUS_STATUS,
    Operation,
    RegistryError,
    RegistryResponseError,
    RegistrySnapshot,
)
from utils.logger import StructuredLogger
from utils.timezone import to_iso_utc

logger = logging.getLogger(__name__)


class RegistryClient:
    """Talks to the registry's GraphQL endpoint for one school"""

    def __init__(self, auth, school_id: str, api_url: str = config.REGISTRY_API_URL,
                 timeout: float = config.REQUEST_TIMEOUT):
        self.auth = auth
        self.school_id = school_id
        self.api_url = api_url
        self.timeout = timeout
        self.structured_logger = StructuredLogger(__name__)

    def query(self, operation: Operation, variables: Optional[Dict[str, Any]] = None) -> Any:
        """Run one operation and return its validated result"""
        body = {'query': operation.text, 'variables': variables or {}}
        started = time.monotonic()

        response = requests.post(self.api_url, headers=self.auth.get_headers(), json=body, timeout=self.timeout)

        if response.status_code == 401 and self.auth.has_credentials:
            # Token rejected early; fetch a new one and try once more
            self.auth.invalidate()
            response = requests.post(self.api_url, headers=self.auth.get_headers(), json=body, timeout=self.timeout)

        duration_ms = (time.monotonic() - started) * 1000
        self.structured_logger.log_api_call('POST', operation.name, response.status_code, duration_ms)

        if response.status_code != 200:
            raise RegistryError(f"{operation.name} failed: {response.status_code} - {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError:
            raise RegistryResponseError(f"{operation.name} returned a non-JSON body")

        if not isinstance(payload, dict):
            raise RegistryResponseError(f"{operation.name} returned an unexpected body")

        errors = payload.get('errors')
        if errors:
            first = errors[0]
            message = first.get('message') if isinstance(first, dict) else str(first)
            raise RegistryResponseError(f"{operation.name}: {message}")

        return operation.validate(payload.get('data'))

    def get_school(self) -> RegistrySnapshot:
        snapshot = self.query(GET_SCHOOL, {'schoolID': self.school_id})
        logger.info(f"🚌 Fetched {len(snapshot.buses)} registry buses (time zone: {snapshot.time_zone or 'UTC'})")
        return snapshot

    def get_bus(self, bus_id: str) -> Dict[str, Any]:
        return self.query(GET_BUS, {'busID': bus_id})

    def create_bus(self, name: Optional[str]) -> str:
        bus_id = self.query(CREATE_BUS, {'schoolID': self.school_id, 'name': name})
        logger.info(f"✅ Created registry bus '{name}' ({bus_id})")
        return bus_id

    def update_bus(self, bus_id: str, bus: Dict[str, Any]) -> str:
        result = self.query(UPDATE_BUS, {'busID': bus_id, 'bus': bus})
        logger.info(f"✅ Updated registry bus {bus_id}")
        return result

    def update_bus_status(self, bus_id: str, boarding_area: Optional[str], invalidate_time: datetime) -> str:
        result = self.query(UPDATE_BUS_STATUS, {
            'busID': bus_id,
            'boardingArea': boarding_area,
            'invalidateTime': to_iso_utc(invalidate_time),
        })
        logger.info(f"✅ Set boarding area of {bus_id} to {boarding_area!r} until {to_iso_utc(invalidate_time)}")
        return result
