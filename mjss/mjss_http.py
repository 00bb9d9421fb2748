import time
from typing import Optional, Dict, Any
from urllib.parse import quote

import httpx

from mjss.mjss_datatypes import StoreError
from mjss.mjss_store import Store


def http_request(method: str, url: str, *, config: Optional[Dict] = None, data: Optional[str] = None,
                 transport: Optional[httpx.BaseTransport] = None) -> httpx.Response:
    """
    Core HTTP helper.

    Returns the response for any status code; retries only on transport
    errors (connection refused, timeouts), with exponential backoff.
    Config keys: timeout (5.0), retries (2), backoff (0.2), headers.
    """
    cfg = dict(config or {})
    timeout = float(cfg.pop('timeout', 5.0))
    retries = int(cfg.pop('retries', 2))
    backoff = float(cfg.pop('backoff', 0.2))
    headers = dict(cfg.pop('headers', {}))

    body = data.encode('utf-8') if data is not None else None
    if body is not None:
        headers.setdefault("Content-Type", "text/plain; charset=utf-8")

    with httpx.Client(timeout=timeout, follow_redirects=True, transport=transport) as client:
        last_exc = None
        for attempt in range(retries + 1):
            try:
                return client.request(method.upper(), url, headers=headers, content=body)
            except httpx.TransportError as e:
                last_exc = e
                if attempt < retries:
                    time.sleep(backoff * (2 ** attempt))
                    continue
        raise StoreError(f"HTTP {method.upper()} {url} failed: {last_exc}") from last_exc


class HttpStore(Store):
    """Persists each key at `<base_url>/<key>` with GET and PUT."""

    def __init__(self, base_url: str, config: Optional[Dict[str, Any]] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.config = dict(config or {})
        self.transport = transport

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{quote(key, safe='')}"

    def get(self, key: str) -> Optional[str]:
        url = self.url_for(key)
        resp = http_request('GET', url, config=self.config, transport=self.transport)
        if resp.status_code == 404:
            return None
        if not 200 <= resp.status_code < 300:
            preview = (resp.text or "")[:200]
            raise StoreError(f"HTTP {resp.status_code} for {url}: {preview}")
        return resp.text

    def set(self, key: str, value: str) -> None:
        url = self.url_for(key)
        resp = http_request('PUT', url, config=self.config, data=str(value), transport=self.transport)
        if not 200 <= resp.status_code < 300:
            preview = (resp.text or "")[:200]
            raise StoreError(f"HTTP {resp.status_code} for {url}: {preview}")


__all__ = ["HttpStore", "http_request"]
