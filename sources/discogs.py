#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Discogs adapter.
Last-resort album cover source - community catalog, strong on rare and
vinyl releases.

The public search page is parsed with BeautifulSoup; no token is needed. When a
personal access token is configured the database search API is used
instead, which is more stable than the page markup.

Rate Limits:
- Authenticated: 60 requests per minute
- Unauthenticated: 25 requests per minute
"""

import os
from typing import Optional

import requests
from bs4 import BeautifulSoup

from .base import DataSource, DEFAULT_USER_AGENT


# Release thumbnails on the search page are served from the image CDN
IMAGE_HOST = "https://i.discogs.com/"


class DiscogsSource(DataSource):
    """
    Discogs community catalog source.

    Third priority album cover provider.
    """

    SEARCH_PAGE_URL = "https://www.discogs.com/search/"
    API_URL = "https://api.discogs.com"

    def __init__(
        self,
        token: Optional[str] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        rate_limit: float = 2.4
    ):
        """
        Initialize Discogs source.

        Args:
            token: Discogs personal access token (or DISCOGS_TOKEN env var)
            user_agent: User agent string
            rate_limit: Seconds between requests (2.4 = 25 req/min)
        """
        super().__init__(user_agent=user_agent, rate_limit=rate_limit)
        self.token = token or os.environ.get("DISCOGS_TOKEN")
        if self.token:
            self.session.headers["Authorization"] = f"Discogs token={self.token}"

    @property
    def name(self) -> str:
        return "discogs"

    def scrape_cover(self, artist: str, title: str) -> Optional[str]:
        """
        First release image on the search results page.

        Args:
            artist: Artist name
            title: Album title

        Returns:
            Image URL or None
        """
        if self.token:
            return self._search_cover_with_api(artist, title)

        self._rate_limit_wait()
        try:
            response = self.session.get(
                self.SEARCH_PAGE_URL,
                params={"q": f"{artist} {title}", "type": "release"},
                headers={"Accept": "text/html"},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            self.log(f"Search page error: {e}")
            return None

        return extract_image(response.text)

    def _search_cover_with_api(self, artist: str, title: str) -> Optional[str]:
        """Search using the database API"""
        data = self._get_json(f"{self.API_URL}/database/search", params={
            "artist": artist,
            "release_title": title,
            "type": "release",
            "per_page": 5
        })
        if not data:
            return None

        for result in data.get("results", []):
            cover = result.get("cover_image") or result.get("thumb")
            if cover and "spacer.gif" not in cover:
                return cover
        return None


def extract_image(page: str) -> Optional[str]:
    """First usable release image on a search results page"""
    soup = BeautifulSoup(page, "html.parser")
    for img in soup.find_all("img"):
        # Lazy-loaded thumbnails keep the real URL in data-src
        for attr in ("src", "data-src"):
            url = (img.get(attr) or "").strip()
            if not url.startswith(IMAGE_HOST):
                continue
            if "spacer" in url or "default-release" in url:
                continue
            return url
    return None
