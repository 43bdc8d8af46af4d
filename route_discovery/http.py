"""HTTP client with retry/backoff and request metrics."""
from __future__ import annotations

import json
import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)
REQUEST_KINDS = ("route_search", "nearby", "snap")


@dataclass
class RequestMetrics:
    network_route_search: int = 0
    network_nearby: int = 0
    network_snap: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def inc_network(self, kind: str) -> None:
        if kind not in REQUEST_KINDS:
            raise ValueError(f"Unknown request kind: {kind}")
        attr = f"network_{kind}"
        with self._lock:
            setattr(self, attr, getattr(self, attr) + 1)

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return {
                "network_route_search": self.network_route_search,
                "network_nearby": self.network_nearby,
                "network_snap": self.network_snap,
            }


class HttpClient:
    def __init__(
        self,
        api_key: str,
        timeout: int = 20,
        retry_max: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.retry_max = retry_max
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.session = requests.Session()

    def post_json(self, url: str, body: Dict[str, Any], field_mask: str) -> Dict[str, Any]:
        """POST a Places-style JSON body; auth and field mask travel as headers."""
        headers = {
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": field_mask,
            "Content-Type": "application/json",
        }
        payload = json.dumps(body)
        return self._send(
            url,
            lambda: self.session.post(url, data=payload, headers=headers, timeout=self.timeout),
        )

    def get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        query = dict(params)
        query["key"] = self.api_key
        return self._send(
            url,
            lambda: self.session.get(url, params=query, timeout=self.timeout),
        )

    def _send(self, url: str, do_request) -> Dict[str, Any]:
        for attempt in range(1, self.retry_max + 1):
            try:
                resp = do_request()
            except requests.RequestException:
                if attempt >= self.retry_max:
                    raise
                logger.warning("Request to %s failed (attempt %s)", url, attempt)
                self._sleep_backoff(attempt)
                continue

            status = resp.status_code
            if status == 200:
                try:
                    return resp.json()
                except ValueError:
                    logger.error("Non-JSON response from %s", url)
                    raise

            if status in RETRYABLE_STATUSES:
                logger.warning("HTTP %s from %s (attempt %s)", status, url, attempt)
                if attempt >= self.retry_max:
                    resp.raise_for_status()
                if not self._sleep_retry_after(resp):
                    self._sleep_backoff(attempt)
                continue

            # Non-retryable
            logger.error("HTTP %s from %s", status, url)
            resp.raise_for_status()

        raise RuntimeError("Unexpected HTTP retry loop exit")

    def _sleep_backoff(self, attempt: int) -> None:
        base = min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)
        jitter = random.uniform(0, self.backoff_base)
        time.sleep(base + jitter)

    def _sleep_retry_after(self, resp: requests.Response) -> bool:
        retry_after = resp.headers.get("Retry-After")
        if not retry_after:
            return False
        try:
            delay = float(retry_after)
        except ValueError:
            return False
        delay = max(0.0, min(delay, self.backoff_max))
        time.sleep(delay)
        return True
