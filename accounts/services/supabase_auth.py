"""
Supabase Auth client for the hosted identity provider.

Only the calls the sign-up / sign-in flow needs. Passwords and tokens are
handled by the provider; this app only keeps the resulting user id.

Every request goes through studyboard.store.call_with_retry with the
configured timeout.
"""
import logging
import os
from typing import Dict, Optional

import requests
from django.conf import settings
from dotenv import load_dotenv

from studyboard.errors import INVALID_FIELD, UpstreamError, ValidationError
from studyboard.store import call_with_retry

load_dotenv()

logger = logging.getLogger(__name__)


class SupabaseAuthClient:
    """Client for the Supabase Auth (GoTrue) REST API."""

    AUTH_PATH = "/auth/v1"

    def __init__(self, url: Optional[str] = None, anon_key: Optional[str] = None):
        self.url = (url or getattr(settings, 'SUPABASE_URL', '') or os.getenv('SUPABASE_URL') or '').rstrip('/')
        self.anon_key = anon_key or getattr(settings, 'SUPABASE_ANON_KEY', '') or os.getenv('SUPABASE_ANON_KEY')

        if not self.url or not self.anon_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_ANON_KEY must be set in environment variables"
            )

        self.timeout = getattr(settings, 'STORE_TIMEOUT_SECONDS', 10)

    def _headers(self, access_token: Optional[str] = None) -> Dict:
        return {
            'apikey': self.anon_key,
            'Authorization': f"Bearer {access_token or self.anon_key}",
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        }

    def _make_request(
        self,
        endpoint: str,
        method: str = 'GET',
        json: Optional[Dict] = None,
        params: Optional[Dict] = None,
        access_token: Optional[str] = None,
    ) -> Dict:
        """
        Make a request to the auth API.

        Args:
            endpoint: Path below /auth/v1 (e.g., '/user')
            method: HTTP method (default: GET)
            json: Request body
            params: Query parameters
            access_token: User access token; the anon key is used when omitted

        Returns:
            Response JSON data (empty dict for empty bodies)

        Raises:
            ValidationError: the provider rejected the request (4xx)
            UpstreamError: the provider failed (5xx) or was unreachable
        """
        url = f"{self.url}{self.AUTH_PATH}{endpoint}"

        response = call_with_retry(
            requests.request,
            method,
            url,
            headers=self._headers(access_token),
            json=json,
            params=params,
            timeout=self.timeout,
        )

        if response.status_code >= 500:
            logger.error(f"Auth API {method} {endpoint} returned {response.status_code}")
            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                raise UpstreamError(f"Identity provider error: {response.status_code}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.info(f"Auth API {method} {endpoint} rejected: {response.status_code} {message}")
            raise ValidationError(INVALID_FIELD, message, field='credentials')

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_message(response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"Request rejected ({response.status_code})"
        return (
            body.get('error_description')
            or body.get('msg')
            or body.get('message')
            or body.get('error')
            or f"Request rejected ({response.status_code})"
        )

    @staticmethod
    def _extract_user(data: Dict) -> Dict:
        # /signup returns the user itself when confirmation is pending, otherwise a session with 'user'
        return data.get('user') or data

    def sign_up(self, email: str, password: str, student_id: str) -> Dict:
        """
        Create an auth account, storing the attendance number in user metadata.

        Returns:
            The provider's user record (id, email, user_metadata)
        """
        data = self._make_request(
            '/signup',
            method='POST',
            json={'email': email, 'password': password, 'data': {'student_id': student_id}},
        )
        return self._extract_user(data)

    def sign_in_with_password(self, email: str, password: str) -> Dict:
        """
        Exchange email and password for a session.

        Returns:
            Dictionary with 'access_token', 'refresh_token' and 'user'
        """
        return self._make_request(
            '/token',
            method='POST',
            params={'grant_type': 'password'},
            json={'email': email, 'password': password},
        )

    def get_user(self, access_token: str) -> Dict:
        """Return the user record behind an access token."""
        return self._make_request('/user', access_token=access_token)

    def sign_out(self, access_token: str) -> None:
        self._make_request('/logout', method='POST', access_token=access_token)
