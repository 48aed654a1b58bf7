"""
pb_client.py — PocketBase REST API client.

Single transport for every catalog read and write.  Unlike a best-effort
client, failures are not swallowed here: a read or write that still fails
after retrying raises PocketBaseError so the caller decides what to trust.
"""

import logging
import time
from typing import Any

import requests

log = logging.getLogger("catalog")


class PocketBaseError(Exception):
    """Raised when a PocketBase request fails after retries."""


class PocketBaseClient:
    """Lightweight PocketBase REST API client for the catalog."""

    def __init__(self, base_url: str, max_retries: int = 3, backoff: float = 1.0,
                 timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.api = f"{self.base_url}/api"
        self.max_retries = max_retries
        self.backoff = backoff
        self.timeout = timeout
        self._session = requests.Session()

    def _url(self, collection: str, record_id: str = "") -> str:
        url = f"{self.api}/collections/{collection}/records"
        if record_id:
            url += f"/{record_id}"
        return url

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def list_records(self, collection: str, filter_str: str = "") -> list[dict]:
        """Fetch every record of a collection, following pagination."""
        items: list[dict] = []
        page = 1
        while True:
            params: dict = {"perPage": 200, "page": page}
            if filter_str:
                params["filter"] = filter_str
            data = self._request("GET", self._url(collection), params=params)
            items.extend(data.get("items", []))
            if page >= data.get("totalPages", 1):
                break
            page += 1
        return items

    def create_record(self, collection: str, data: dict) -> dict:
        """Create a record and return it as stored (including its new id)."""
        record = self._request("POST", self._url(collection), json=data)
        if not isinstance(record, dict) or not record.get("id"):
            raise PocketBaseError(f"POST {collection}: response has no record id")
        return record

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def health_check(self) -> bool:
        """Check if PocketBase is reachable."""
        try:
            resp = self._session.get(f"{self.api}/health", timeout=5)
            return resp.status_code == 200
        except requests.exceptions.RequestException:
            return False

    @staticmethod
    def escape(value: str) -> str:
        """Escape a string for PocketBase filter syntax."""
        return value.replace("\\", "\\\\").replace('"', '\\"')

    def _request(self, method: str, url: str, **kwargs) -> Any:
        """Make an API request with retry + exponential back-off on 429/503.

        Transport errors are retried for reads, and for writes only when the
        connection could not be made.
        """
        path = url[len(self.api):]

        for attempt in range(self.max_retries + 1):
            try:
                resp = self._session.request(method, url, timeout=self.timeout, **kwargs)

                # Rate-limited or server overload, back off and retry
                if resp.status_code in (429, 503) and attempt < self.max_retries:
                    wait = self.backoff * (2 ** attempt)
                    log.warning(f"  PB: {resp.status_code} on {method} {path}, "
                                f"retrying in {wait:.0f}s (attempt {attempt + 1}/{self.max_retries})")
                    time.sleep(wait)
                    continue

                if resp.status_code == 204:
                    return {}

                resp.raise_for_status()
                return resp.json()

            except requests.exceptions.HTTPError as e:
                # Only 429/503 are retried
                raise PocketBaseError(f"{method} {path} failed: {e}") from e
            except ValueError as e:
                raise PocketBaseError(f"{method} {path} returned invalid JSON: {e}") from e
            except requests.exceptions.RequestException as e:
                # A POST may already have been stored unless the connection never opened
                resend = method == "GET" or isinstance(e, requests.exceptions.ConnectionError)
                if resend and attempt < self.max_retries:
                    wait = self.backoff * (2 ** attempt)
                    log.warning(f"  PB: request error on {method} {path}: {e}, "
                                f"retrying in {wait:.0f}s")
                    time.sleep(wait)
                    continue
                if not resend:
                    raise PocketBaseError(f"{method} {path} failed: {e}") from e
                raise PocketBaseError(
                    f"{method} {path} failed after {self.max_retries} retries: {e}"
                ) from e

        raise PocketBaseError(f"{method} {path} failed after {self.max_retries} retries")
