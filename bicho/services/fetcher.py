"""HTTP document fetcher with rotating client identity and optional proxies.

The fetcher never raises for network problems: every call returns a
``FetchResult`` that either carries the page text or the kind of failure. It
does not retry; failover across URLs is the caller's job.
"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_5) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/16.5 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
)

BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


class FetchErrorKind(str, Enum):
    TRANSPORT = "transport"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class FetchResult:
    url: str
    success: bool
    text: str = ""
    error_kind: FetchErrorKind | None = None
    message: str = ""
    status_code: int | None = None

    @classmethod
    def ok(cls, url: str, text: str, status_code: int | None = 200) -> "FetchResult":
        return cls(url=url, success=True, text=text, status_code=status_code)

    @classmethod
    def failed(
        cls,
        url: str,
        kind: FetchErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> "FetchResult":
        return cls(url=url, success=False, error_kind=kind, message=message, status_code=status_code)


class Fetcher(Protocol):
    def fetch(self, url: str, timeout: float) -> FetchResult: ...


class ProxyRotator:
    """Round-robin over configured egress proxies."""

    def __init__(self, proxies: Sequence[str] = (), enabled: bool = False) -> None:
        self._proxies = tuple(p for p in proxies if p)
        self._enabled = bool(enabled) and bool(self._proxies)
        self._index = 0
        self._lock = threading.Lock()
        logger.info("Loaded %s proxies (rotation %s)", len(self._proxies), "on" if self._enabled else "off")

    @property
    def enabled(self) -> bool:
        return self._enabled

    def next_proxy(self) -> str | None:
        if not self._enabled:
            return None
        with self._lock:
            proxy = self._proxies[self._index]
            self._index = (self._index + 1) % len(self._proxies)
            return proxy


def build_http_session(pool_size: int = 10) -> requests.Session:
    """Session without transport-level retries (one attempt per URL)."""

    retry = Retry(total=0, connect=0, read=0, status=0, redirect=5, raise_on_status=False)
    adapter = HTTPAdapter(max_retries=retry, pool_connections=pool_size, pool_maxsize=pool_size)

    session = requests.Session()
    session.headers.update(BASE_HEADERS)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class HttpFetcher:
    """``requests`` based implementation of the fetch contract."""

    def __init__(
        self,
        rotator: ProxyRotator | None = None,
        user_agents: Sequence[str] = USER_AGENTS,
        rng: random.Random | None = None,
    ) -> None:
        self._rotator = rotator or ProxyRotator()
        self._user_agents = tuple(user_agents) or USER_AGENTS
        self._rng = rng or random.Random()
        self._local = threading.local()

    def _session(self) -> requests.Session:
        # requests.Session is not shared across worker threads
        session = getattr(self._local, "session", None)
        if session is None:
            session = build_http_session()
            self._local.session = session
        return session

    def fetch(self, url: str, timeout: float) -> FetchResult:
        proxy = self._rotator.next_proxy()
        proxies = {"http": proxy, "https": proxy} if proxy else None
        headers = {"User-Agent": self._rng.choice(self._user_agents)}

        try:
            resp = self._session().get(url, timeout=timeout, headers=headers, proxies=proxies)
        except requests.Timeout as exc:
            logger.warning("Timeout after %ss fetching %s", timeout, url)
            return FetchResult.failed(url, FetchErrorKind.TIMEOUT, f"timeout after {timeout}s: {exc}")
        except requests.RequestException as exc:
            logger.warning("Transport error fetching %s: %s", url, exc)
            return FetchResult.failed(url, FetchErrorKind.TRANSPORT, str(exc))

        if resp.status_code >= 400:
            logger.warning("HTTP %s fetching %s", resp.status_code, url)
            return FetchResult.failed(
                url,
                FetchErrorKind.TRANSPORT,
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        # Brazilian sites often omit the charset; requests then assumes latin-1.
        if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
            resp.encoding = resp.apparent_encoding or "utf-8"

        return FetchResult.ok(url, resp.text, status_code=resp.status_code)
