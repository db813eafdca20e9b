# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Registry OAuth - client-credentials tokens for the bus registry API
"""
import logging
import time
from datetime import datetime, timedelta
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple

import requests

import config
from utils.retry import retry_with_backoff
from utils.timezone import get_utc_time

logger = logging.getLogger(__name__)

# Refresh a little before the server-side expiry
EXPIRY_MARGIN = timedelta(seconds=10)


class RegistryAuthError(Exception):
    """Token endpoint refused or returned something unusable"""


class RegistryAuth:
    """Holds the registry bearer token and refreshes it on demand"""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        token_url: str = config.REGISTRY_TOKEN_URL,
        scopes: Optional[List[str]] = None,
        timeout: float = config.REQUEST_TIMEOUT,
        max_retries: int = config.MAX_RETRIES,
        base_delay: float = config.BASE_DELAY,
        max_delay: float = config.MAX_DELAY,
        cooldown_seconds: float = config.TOKEN_COOLDOWN_SECONDS,
        cooldown_rounds: int = config.TOKEN_COOLDOWN_ROUNDS,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.scopes = scopes or config.REGISTRY_SCOPES
        self.timeout = timeout
        self.cooldown_seconds = cooldown_seconds
        self.cooldown_rounds = cooldown_rounds
        self._sleep = sleep

        self._token: Optional[str] = None
        self._expires_at: Optional[datetime] = None
        self._lock = Lock()

        self._request_token = retry_with_backoff(
            max_retries=max_retries,
            base_delay=base_delay,
            max_delay=max_delay,
            retry_on=(requests.exceptions.RequestException, RegistryAuthError),
            sleep=sleep
        )(self._post_token_request)

        if self.has_credentials:
            logger.info("Registry auth initialized (client credentials)")
        else:
            logger.info("Registry auth initialized (anonymous - read-only access)")

    @classmethod
    def from_config(cls) -> 'RegistryAuth':
        return cls(
            client_id=config.REGISTRY_CLIENT_ID or None,
            client_secret=config.REGISTRY_CLIENT_SECRET or None,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def is_authenticated(self) -> bool:
        """True when requests will carry a token that has not expired"""
        with self._lock:
            return bool(self._token) and not self._is_expired()

    def get_headers(self) -> Dict[str, str]:
        """Headers for a registry API call, acquiring a token first if needed"""
        headers = {'Content-Type': 'application/json'}
        if self.has_credentials:
            headers['Authorization'] = f'Bearer {self.ensure_valid_token()}'
        return headers

    def ensure_valid_token(self) -> str:
        with self._lock:
            if not self._token or self._is_expired():
                logger.info("Registry token expired or missing, refreshing...")
                self._token, self._expires_at = self._acquire_token()
                logger.info(f"Registry token refreshed. Expires: {self._expires_at.isoformat()}")
            return self._token

    def invalidate(self):
        """Forget the current token (e.g. after a 401)"""
        with self._lock:
            self._token = None
            self._expires_at = None

    def _is_expired(self) -> bool:
        if not self._expires_at:
            return True
        return get_utc_time() >= self._expires_at - EXPIRY_MARGIN

    def _acquire_token(self) -> Tuple[str, datetime]:
        """Backoff retries, then cooldown waits, before giving up"""
        rounds = 0
        while True:
            try:
                return self._request_token()
            except (requests.exceptions.RequestException, RegistryAuthError) as e:
                rounds += 1
                if rounds > self.cooldown_rounds:
                    raise RegistryAuthError(
                        f"Could not obtain registry token after {rounds} rounds: {e}"
                    ) from e

                logger.warning(
                    f"⏳ Token acquisition failed ({type(e).__name__}: {e}). "
                    f"Waiting {self.cooldown_seconds:.0f}s before round {rounds + 1}..."
                )
                self._sleep(self.cooldown_seconds)

    def _post_token_request(self) -> Tuple[str, datetime]:
        if not self.has_credentials:
            raise RegistryAuthError("Registry credentials missing")

        logger.info("Requesting registry token from credentials...")
        response = requests.post(
            self.token_url,
            data={
                'client_id': self.client_id,
                'client_secret': self.client_secret,
                'grant_type': 'client_credentials',
                'scope': ' '.join(self.scopes)
            },
            timeout=self.timeout
        )

        try:
            payload = response.json()
        except ValueError:
            raise RegistryAuthError(f"Token endpoint returned non-JSON body ({response.status_code})")

        if response.status_code != 200 or payload.get('error') or not payload.get('access_token'):
            raise RegistryAuthError(
                f"Token request failed: {response.status_code} - {payload.get('error', 'no access_token')}"
            )

        expires_in = payload.get('expires_in', 3600)
        return payload['access_token'], get_utc_time() + timedelta(seconds=expires_in)
