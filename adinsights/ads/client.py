from __future__ import annotations

import asyncio
import logging
import re
import threading
import time
from typing import Any, Awaitable, Callable, Dict, List

import requests

from adinsights.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
API_BASE = "https://googleads.googleapis.com"
TOKEN_EXPIRY_MARGIN_SECONDS = 60

QueryExecutor = Callable[[str, str], Awaitable[List[Dict[str, Any]]]]


class UpstreamQueryError(RuntimeError):
    """The ads API rejected or failed a query."""

    def __init__(self, message: str, details: List[Any] | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []
        self.status_code = status_code


def clean_customer_id(customer_id: str) -> str:
    return re.sub(r"[-\s]", "", str(customer_id))


def _error_from_response(response: requests.Response) -> UpstreamQueryError:
    try:
        payload = response.json()
    except ValueError:
        return UpstreamQueryError(response.text or f"HTTP {response.status_code}", status_code=response.status_code)

    # searchStream wraps errors in a one-element list
    if isinstance(payload, list) and payload:
        payload = payload[0]
    error = payload.get("error", {}) if isinstance(payload, dict) else {}
    if not isinstance(error, dict):
        # OAuth-style bodies carry a bare error code
        error = {"message": str(error)}
    details: List[Any] = []
    for detail in error.get("details") or []:
        if isinstance(detail, dict):
            details.extend(detail.get("errors", []))
    message = error.get("message") or f"HTTP {response.status_code}"
    return UpstreamQueryError(message, details=details, status_code=response.status_code)


class GoogleAdsClient:
    """Minimal Google Ads REST client: one ``searchStream`` call per query, no retries."""

    def __init__(self, config: Settings | None = None, session: requests.Session | None = None) -> None:
        self.config = config or default_settings
        self.session = session or requests.Session()
        self._access_token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()

    def is_configured(self) -> bool:
        c = self.config
        return bool(
            c.google_ads_client_id
            and c.google_ads_client_secret
            and c.google_ads_developer_token
            and c.google_ads_refresh_token
        )

    def _get_access_token(self) -> str:
        with self._token_lock:
            if self._access_token and time.monotonic() < self._token_expires_at:
                return self._access_token

            try:
                response = self.session.post(
                    TOKEN_URL,
                    data={
                        "grant_type": "refresh_token",
                        "client_id": self.config.google_ads_client_id,
                        "client_secret": self.config.google_ads_client_secret,
                        "refresh_token": self.config.google_ads_refresh_token,
                    },
                    timeout=20,
                )
            except requests.RequestException as exc:
                raise UpstreamQueryError(f"Token exchange failed: {exc}") from exc
            if response.status_code != 200:
                raise UpstreamQueryError(f"Token exchange failed: {response.text}", status_code=response.status_code)

            try:
                payload = response.json()
                access_token = payload["access_token"]
                expires_in = int(payload.get("expires_in", 3600))
            except (ValueError, TypeError, KeyError, AttributeError) as exc:
                raise UpstreamQueryError("Token exchange returned no access token", status_code=response.status_code) from exc
            self._access_token = access_token
            self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
            return self._access_token

    def _headers(self, customer_id: str) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._get_access_token()}",
            "developer-token": self.config.google_ads_developer_token,
            "Content-Type": "application/json",
        }
        manager_id = clean_customer_id(self.config.google_ads_login_customer_id)
        if manager_id and manager_id != customer_id:
            headers["login-customer-id"] = manager_id
        return headers

    def search(self, query: str, customer_id: str) -> List[Dict[str, Any]]:
        if not self.is_configured():
            raise UpstreamQueryError("Google Ads credentials are not configured")

        cid = clean_customer_id(customer_id)
        url = f"{API_BASE}/{self.config.google_ads_api_version}/customers/{cid}/googleAds:searchStream"
        try:
            response = self.session.post(
                url,
                headers=self._headers(cid),
                json={"query": query},
                timeout=self.config.google_ads_timeout,
            )
        except requests.RequestException as exc:
            logger.error("Query transport failure for customer %s: %s", cid, exc)
            raise UpstreamQueryError(f"Google Ads request failed: {exc}") from exc

        if response.status_code != 200:
            error = _error_from_response(response)
            logger.error("Query failed for customer %s: %s", cid, error.message)
            raise error

        try:
            batches = response.json()
        except ValueError as exc:
            raise UpstreamQueryError("Failed to parse Google Ads response") from exc

        rows: List[Dict[str, Any]] = []
        # searchStream returns a JSON array of result batches
        for batch in batches:
            rows.extend(batch.get("results", []))
        logger.info("Query for customer %s returned %d rows", cid, len(rows))
        return rows

    async def execute(self, query: str, customer_id: str) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self.search, query, customer_id)
