from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from requests.exceptions import ConnectionError, ReadTimeout, RequestException

from springs_trip.exceptions import MalformedResponseError, ProviderError, ProviderTimeout

log = logging.getLogger(__name__)


@dataclass
class HTTPClient:
    user_agent: str
    timeout_s: int = 10
    tries: int = 2
    backoff_s: float = 0.5
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.s = requests.Session()
        self.s.headers.update(
            {
                "User-Agent": self.user_agent,
                "Accept": "application/json, text/plain;q=0.9, */*;q=0.8",
            }
        )
        self.s.headers.update(self.headers)

    def _send(self, method: str, url: str, timeout_s: Optional[int], **kwargs: Any) -> requests.Response:
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        last_err: Optional[Exception] = None
        for attempt in range(self.tries):
            try:
                r = self.s.request(method, url, timeout=timeout, **kwargs)
                r.raise_for_status()
                return r
            except (ReadTimeout, ConnectionError) as e:
                last_err = e
                log.debug("%s %s failed (attempt %d/%d): %s", method, url, attempt + 1, self.tries, e)
                if attempt + 1 < self.tries:
                    time.sleep(self.backoff_s * (2**attempt))
            except RequestException as e:
                # HTTP status errors are not retried
                raise ProviderError(f"{method} {url} failed: {e}") from e

        if isinstance(last_err, ReadTimeout):
            raise ProviderTimeout(f"{method} {url} timed out") from last_err
        raise ProviderError(f"{method} {url} failed: {last_err}") from last_err

    @staticmethod
    def _json(r: requests.Response) -> Any:
        try:
            return r.json()
        except ValueError as e:
            raise MalformedResponseError(f"Non-JSON response from {r.url}") from e

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None,
                 headers: Optional[Dict[str, str]] = None, timeout_s: Optional[int] = None) -> Any:
        return self._json(self._send("GET", url, timeout_s, params=params, headers=headers))

    def post_json(self, url: str, payload: Dict[str, Any],
                  headers: Optional[Dict[str, str]] = None, timeout_s: Optional[int] = None) -> Any:
        return self._json(self._send("POST", url, timeout_s, json=payload, headers=headers))

    def post_form(self, url: str, data: Dict[str, str],
                  headers: Optional[Dict[str, str]] = None, timeout_s: Optional[int] = None) -> Any:
        return self._json(self._send("POST", url, timeout_s, data=data, headers=headers))
