"""
Registry auth tests - client-credentials token, retries and cooldown (requests mocked)
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
import requests

from auth.registry_auth import RegistryAuth, RegistryAuthError
from utils.timezone import get_utc_time


def token_response(status_code=200, payload=None):
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = payload if payload is not None else {'access_token': 'tok', 'expires_in': 3600}
    return mock


def make_auth(sleeps, **kwargs):
    kwargs.setdefault('max_retries', 2)
    kwargs.setdefault('base_delay', 1.0)
    kwargs.setdefault('max_delay', 8.0)
    kwargs.setdefault('cooldown_seconds', 60)
    kwargs.setdefault('cooldown_rounds', 1)
    return RegistryAuth(
        client_id='id', client_secret='secret', token_url='https://registry.test/token',
        sleep=sleeps.append, **kwargs
    )


class TestTokens:
    """Token acquisition and caching"""

    @pytest.mark.unit
    @patch('auth.registry_auth.requests.post')
    def test_token_requested_once_and_cached(self, mock_post):
        mock_post.return_value = token_response()
        auth = make_auth([])

        assert auth.get_headers()['Authorization'] == 'Bearer tok'
        assert auth.get_headers()['Authorization'] == 'Bearer tok'
        assert mock_post.call_count == 1
        assert auth.is_authenticated()

        _, kwargs = mock_post.call_args
        assert kwargs['data']['grant_type'] == 'client_credentials'
        assert kwargs['data']['scope'] == 'read bus.create bus.update bus.updateStatus'

    @pytest.mark.unit
    @patch('auth.registry_auth.requests.post')
    def test_token_refreshed_near_expiry(self, mock_post):
        mock_post.return_value = token_response(payload={'access_token': 'tok', 'expires_in': 5})
        auth = make_auth([])

        auth.ensure_valid_token()
        auth.ensure_valid_token()

        # 5s lifetime is inside the 10s refresh margin
        assert mock_post.call_count == 2

    @pytest.mark.unit
    @patch('auth.registry_auth.requests.post')
    def test_invalidate_forces_new_token(self, mock_post):
        mock_post.return_value = token_response()
        auth = make_auth([])
        auth.ensure_valid_token()

        auth.invalidate()

        assert not auth.is_authenticated()
        auth.ensure_valid_token()
        assert mock_post.call_count == 2

    @pytest.mark.unit
    def test_anonymous_mode_sends_no_authorization(self):
        auth = RegistryAuth(client_id=None, client_secret=None)
        assert auth.get_headers() == {'Content-Type': 'application/json'}
        assert not auth.has_credentials


class TestRetries:
    """Backoff and cooldown on the token path"""

    @pytest.mark.unit
    @patch('auth.registry_auth.requests.post')
    def test_transient_failures_back_off(self, mock_post):
        mock_post.side_effect = [
            requests.exceptions.ConnectionError('down'),
            token_response(status_code=503, payload={'error': 'unavailable'}),
            token_response(),
        ]
        sleeps = []
        auth = make_auth(sleeps)

        assert auth.ensure_valid_token() == 'tok'
        assert sleeps == [1.0, 2.0]

    @pytest.mark.unit
    @patch('auth.registry_auth.requests.post')
    def test_cooldown_round_then_success(self, mock_post):
        failure = requests.exceptions.Timeout('slow')
        mock_post.side_effect = [failure, failure, failure, token_response()]
        sleeps = []
        auth = make_auth(sleeps)

        assert auth.ensure_valid_token() == 'tok'
        assert sleeps == [1.0, 2.0, 60]

    @pytest.mark.unit
    @patch('auth.registry_auth.requests.post')
    def test_gives_up_after_cooldown_rounds(self, mock_post):
        mock_post.return_value = token_response(status_code=401, payload={'error': 'invalid_client'})
        sleeps = []
        auth = make_auth(sleeps)

        with pytest.raises(RegistryAuthError, match='invalid_client'):
            auth.ensure_valid_token()

        assert mock_post.call_count == 6
        assert sleeps == [1.0, 2.0, 60, 1.0, 2.0]

    @pytest.mark.unit
    @patch('auth.registry_auth.requests.post')
    def test_expiry_is_tracked(self, mock_post):
        mock_post.return_value = token_response(payload={'access_token': 'tok', 'expires_in': 120})
        auth = make_auth([])

        before = get_utc_time()
        auth.ensure_valid_token()

        assert before + timedelta(seconds=119) <= auth._expires_at <= get_utc_time() + timedelta(seconds=120)
