"""Low-level HTTP client for the Kratos admin API.

Handles request dispatch, error-shaped bodies and the reachability check.
"""
from __future__ import annotations
import os
from typing import Optional, Dict, Any

import requests

from .exceptions import KratosAPIError

REQUEST_TIMEOUT = 5
DEFAULT_KRATOS_URL = "http://127.0.0.1:4434"


class KratosClient:
    """HTTP client for the identity service admin API.

    The admin port is not authenticated; it is only reachable from the
    manager host.

    Usage:
        client = KratosClient("http://127.0.0.1:4434")
        identities = client.json_body(client.get("/identities"))
    """

    def __init__(self, base_url: Optional[str] = None):
        """Initialize the client.

        Args:
            base_url: Kratos admin base URL (defaults to KRATOS_URL env var)
        """
        self.base_url = (base_url or os.environ.get("KRATOS_URL", DEFAULT_KRATOS_URL)).rstrip("/")

    def is_reachable(self) -> bool:
        """Return True when the service answers anything at its root URL."""
        try:
            requests.get(f"{self.base_url}/", timeout=REQUEST_TIMEOUT)
        except requests.RequestException:
            return False
        return True

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request.

        Args:
            path: API endpoint path (e.g., "/identities")
            params: Query parameters
            **kwargs: Additional arguments for requests.get

        Returns:
            Response object

        Raises:
            KratosAPIError: On HTTP error or communication failure
        """
        url = f"{self.base_url}{path}"
        try:
            resp = requests.get(url, params=params, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as exc:
            raise self._communication_error(url, exc) from exc
        self._handle_error(resp, url)
        return resp

    def post(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request.

        Args:
            path: API endpoint path
            json: JSON payload
            **kwargs: Additional arguments for requests.post

        Returns:
            Response object

        Raises:
            KratosAPIError: On HTTP error or communication failure
        """
        url = f"{self.base_url}{path}"
        try:
            resp = requests.post(url, json=json, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as exc:
            raise self._communication_error(url, exc) from exc
        self._handle_error(resp, url)
        return resp

    def put(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute PUT request.

        Raises:
            KratosAPIError: On HTTP error or communication failure
        """
        url = f"{self.base_url}{path}"
        try:
            resp = requests.put(url, json=json, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as exc:
            raise self._communication_error(url, exc) from exc
        self._handle_error(resp, url)
        return resp

    def delete(self, path: str, **kwargs) -> requests.Response:
        """Execute DELETE request.

        Raises:
            KratosAPIError: On HTTP error or communication failure
        """
        url = f"{self.base_url}{path}"
        try:
            resp = requests.delete(url, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as exc:
            raise self._communication_error(url, exc) from exc
        self._handle_error(resp, url)
        return resp

    def json_body(self, resp: requests.Response) -> Any:
        """Decode a successful response body.

        Raises:
            KratosAPIError: If the body is not JSON (e.g. a proxy error page)
        """
        try:
            return resp.json()
        except ValueError as exc:
            raise KratosAPIError(resp.status_code, "Malformed response from identity service", resp.url) from exc

    @staticmethod
    def _communication_error(url: str, exc: Exception) -> KratosAPIError:
        return KratosAPIError(0, f"Unable to communicate with {url}: {exc}", url)

    def _handle_error(self, resp: requests.Response, url: str) -> None:
        """Centralized error handling for HTTP responses.

        Kratos reports failures as ``{"error": {"code": ..., "message": ...}}``;
        the code and message from that body take precedence over the
        HTTP status line.

        Raises:
            KratosAPIError: If the status or body indicates an error
        """
        body = _json_or_none(resp)
        error = body.get("error") if isinstance(body, dict) else None
        if resp.status_code < 400 and not error:
            return
        if isinstance(error, dict):
            code = error.get("code") or resp.status_code
            message = error.get("message") or error.get("reason") or resp.text
        else:
            code = resp.status_code
            message = resp.text
        if not str(code).isdigit():
            code = resp.status_code
        raise KratosAPIError(int(code), message, url)


def _json_or_none(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return None
