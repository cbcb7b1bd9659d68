"""Shared HTTP plumbing for Web API adapters.

Translates transport failures and HTTP status codes into the error
taxonomy so individual adapters only deal with payload shapes. No retry
happens here; the engine's retry executor owns that decision.
"""
from __future__ import annotations
import logging
from typing import Any, Dict

import requests

from ..errors import AuthError, NotFoundError, QuotaError, TransferError, TransientError
from .base import PlatformAdapter

logger = logging.getLogger(__name__)

_QUOTA_MARKERS = ("quotaexceeded", "quota exceeded", "ratelimitexceeded", "dailylimitexceeded")


def error_for_response(response: requests.Response, operation: str) -> TransferError:
    """Map a failed response onto the error taxonomy."""
    status = response.status_code
    body = (response.text or "")[:300]
    message = f"{operation} failed with HTTP {status}: {body}".rstrip(": ")
    if status == 429:
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            message += f" (Retry-After {retry_after}s)"
        return QuotaError(message)
    if status == 403 and any(marker in body.lower() for marker in _QUOTA_MARKERS):
        return QuotaError(message)
    if status in (401, 403):
        return AuthError(message)
    if status == 404:
        return NotFoundError(message)
    if status in (408,) or status >= 500:
        return TransientError(message)
    return TransferError(message)


class HttpAdapter(PlatformAdapter):
    """PlatformAdapter base for bearer-token JSON Web APIs."""

    default_api_base = ""

    def __init__(self, credential, config: Dict[str, Any] | None = None, session: requests.Session | None = None):
        super().__init__(credential, config)
        self.api_base = (self.config.get("api_base") or self.default_api_base).rstrip("/")
        self.timeout = float(self.config.get("timeout_seconds", 30))
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        """Build authorization headers for API requests."""
        return {"Authorization": f"Bearer {self.credential.access_token}"}

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Any = None,
        operation: str | None = None,
    ) -> Dict[str, Any]:
        """Execute one request and return the decoded JSON body ({} when empty).

        Raises:
            AuthError, QuotaError, NotFoundError, TransientError, TransferError
        """
        self.ensure_credential()
        operation = operation or f"{method} {path}"
        url = path if path.startswith("http") else self.api_base + path
        try:
            r = self._session.request(
                method, url, headers=self._headers(), params=params, json=json, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise TransientError(f"{operation}: {e}") from e
        except requests.RequestException as e:
            raise TransferError(f"{operation}: {e}") from e
        if r.status_code >= 400:
            err = error_for_response(r, operation)
            logger.debug(f"{self.platform.value} {operation} -> {err.kind}")
            raise err
        if not r.content:
            return {}
        try:
            return r.json()
        except ValueError:
            return {}

    def _get(self, path: str, params: Dict[str, Any] | None = None, operation: str | None = None) -> Dict[str, Any]:
        return self._request("GET", path, params=params, operation=operation)

    def _post(self, path: str, json: Any, params: Dict[str, Any] | None = None, operation: str | None = None) -> Dict[str, Any]:
        return self._request("POST", path, params=params, json=json, operation=operation)


def format_duration_ms(duration_ms: int | None) -> str | None:
    """Render milliseconds as m:ss, the form scraped from web players."""
    if not duration_ms:
        return None
    total = int(duration_ms) // 1000
    return f"{total // 60}:{total % 60:02d}"


__all__ = ["HttpAdapter", "error_for_response", "format_duration_ms"]
