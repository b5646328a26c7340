"""
Postmark HTTP Client

Minimal client for Postmark's /email and /email/withTemplate endpoints.
"""

from typing import Dict, Any, Optional
import requests

from courier.config import POSTMARK_API_URL, DEFAULT_HTTP_TIMEOUT


class PostmarkError(Exception):
    """Postmark rejected the request."""

    def __init__(self, http_status: int, api_error_code: int = 0, message: str = ''):
        self.http_status = http_status
        self.api_error_code = api_error_code
        self.message = message
        super().__init__(f'Postmark returned status {http_status} (code {api_error_code}): {message}')


class PostmarkClient:
    """Server-token authenticated Postmark client."""

    def __init__(
        self,
        server_token: str,
        base_uri: str = POSTMARK_API_URL,
        timeout: int = DEFAULT_HTTP_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        self.server_token = server_token
        self.base_uri = base_uri.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def send_email(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._post('/email', payload)

    def send_email_with_template(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._post('/email/withTemplate', payload)

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            'X-Postmark-Server-Token': self.server_token,
            'Accept': 'application/json',
            'Content-Type': 'application/json'
        }

        response = self.session.post(
            f'{self.base_uri}{path}',
            json=payload,
            headers=headers,
            timeout=self.timeout
        )

        try:
            response_data = response.json() if response.text else {}
        except ValueError:
            response_data = {'Message': response.text}

        # Postmark reports API failures with a non-zero ErrorCode
        if response.status_code >= 400 or response_data.get('ErrorCode'):
            raise PostmarkError(
                response.status_code,
                response_data.get('ErrorCode', 0),
                response_data.get('Message', 'Unknown error')
            )

        return response_data
