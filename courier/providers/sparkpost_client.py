"""
SparkPost HTTP Client

Minimal client for the SparkPost transmissions and templates APIs.
"""

from typing import Dict, Any, Optional
import requests

from courier.config import SPARKPOST_API_URL, DEFAULT_HTTP_TIMEOUT


class SparkPostError(Exception):
    """SparkPost rejected the request or could not be reached."""

    def __init__(self, status_code: int, body: Any = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f'SparkPost returned status {status_code}: {body}')


class SparkPostClient:
    """API key authenticated SparkPost client."""

    def __init__(
        self,
        api_key: str,
        base_uri: str = SPARKPOST_API_URL,
        timeout: int = DEFAULT_HTTP_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        self.api_key = api_key
        self.base_uri = base_uri.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def post_transmission(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST /transmissions, returning the decoded response body."""
        return self.request('POST', 'transmissions', json=payload)

    def get_template(self, template_id: str) -> Dict[str, Any]:
        """GET /templates/{id}, returning the decoded response body."""
        return self.request('GET', f'templates/{template_id}')

    def request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        headers = {
            'Authorization': self.api_key,
            'Accept': 'application/json',
            'Content-Type': 'application/json'
        }

        try:
            response = self.session.request(
                method,
                f'{self.base_uri}/{path}',
                headers=headers,
                timeout=self.timeout,
                **kwargs
            )
        except requests.RequestException as e:
            raise SparkPostError(0, str(e)) from e

        try:
            response_data = response.json() if response.text else {}
        except ValueError:
            response_data = {'errors': [{'message': response.text}]}

        if response.status_code >= 400:
            raise SparkPostError(response.status_code, response_data)

        return response_data
