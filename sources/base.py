#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base class for catalog adapters.
All sources (MusicBrainz, iTunes, Discogs, AudioDB, Wikimedia, Mixcloud)
inherit from this.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests


logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "VinylShelf/1.0.0 ( local )"


@dataclass
class CatalogHit:
    """Result from a catalog search"""
    source: str
    source_id: str
    title: str = ""
    artist: str = ""
    year: Optional[str] = None
    cover_url: Optional[str] = None
    confidence: float = 0.0
    raw_data: Dict[str, Any] = field(default_factory=dict)


class DataSource(ABC):
    """
    Abstract base class for catalog sources.

    Sources answer one narrow question each (an identifier, an image URL,
    a list of hits). They never raise on network trouble: a failed request
    is logged and reported as "no result".
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        rate_limit: float = 1.0,
        timeout: float = 15.0
    ):
        """
        Initialize data source with rate limiting.

        Args:
            user_agent: User agent string sent with every request
            rate_limit: Minimum seconds between requests
            timeout: Per-request timeout in seconds
        """
        self.rate_limit = rate_limit
        self.timeout = timeout
        self._last_request: float = 0
        self._rate_lock = threading.Lock()
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json"
        })

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name identifier"""
        pass

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """
        Rate-limited GET returning decoded JSON.

        Returns:
            Parsed body, or None on any request/decoding failure
        """
        self._rate_limit_wait()
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            self.log(f"Request error: {e}")
            return None

    def _rate_limit_wait(self) -> None:
        """
        Wait if necessary to respect rate limits.

        Calls arrive from worker threads; the lock spaces them one
        interval apart instead of letting them all wake together.
        """
        with self._rate_lock:
            if self._last_request > 0:
                elapsed = time.time() - self._last_request
                if elapsed < self.rate_limit:
                    time.sleep(self.rate_limit - elapsed)
            self._last_request = time.time()

    def _extract_year(self, date_str: Optional[str]) -> Optional[str]:
        """Extract year from date string"""
        if date_str and len(date_str) >= 4 and date_str[:4].isdigit():
            return date_str[:4]
        return None

    def log(self, message: str) -> None:
        """Log a message"""
        logger.warning("[%s] %s", self.name, message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rate_limit={self.rate_limit})"


def check_reachable(url: str, timeout: float = 10.0) -> bool:
    """
    Confirm a candidate image URL resolves without downloading it.

    Args:
        url: Candidate URL

    Returns:
        True if a HEAD request (following redirects) succeeds
    """
    try:
        response = requests.head(url, timeout=timeout, allow_redirects=True)
        return response.ok
    except requests.RequestException as e:
        logger.debug("HEAD %s failed: %s", url, e)
        return False
