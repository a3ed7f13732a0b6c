#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
iTunes Search API adapter.
Free, no authentication required.

API Documentation:
https://developer.apple.com/library/archive/documentation/AudioVideo/Conceptual/iTuneSearchAPI/

Rate Limits: ~20 requests per minute recommended
"""

import re
from difflib import SequenceMatcher
from typing import List, Optional

from .base import DataSource, CatalogHit, DEFAULT_USER_AGENT


class iTunesSource(DataSource):
    """
    iTunes Search API data source.

    Commercial catalog used as the second album cover provider.
    No authentication required.
    """

    BASE_URL = "https://itunes.apple.com"

    def __init__(
        self,
        country: str = "us",
        user_agent: str = DEFAULT_USER_AGENT,
        rate_limit: float = 0.05
    ):
        """
        Initialize iTunes source.

        Args:
            country: Two-letter country code for regional content
            rate_limit: Seconds between requests (default 0.05 = 20/sec)
        """
        super().__init__(user_agent=user_agent, rate_limit=rate_limit)
        self.country = country

    @property
    def name(self) -> str:
        return "itunes"

    def search_album(self, title: str, artist: str) -> List[CatalogHit]:
        """
        Search for albums by title and artist.

        Args:
            title: Album title to search for
            artist: Artist name

        Returns:
            List of matching albums in iTunes relevance order
        """
        data = self._get_json(f"{self.BASE_URL}/search", params={
            "term": f"{artist} {title}",
            "entity": "album",
            "country": self.country,
            "limit": 10
        })
        if not data:
            return []

        results = []
        for item in data.get("results", []):
            results.append(CatalogHit(
                source="itunes",
                source_id=str(item.get("collectionId")),
                title=item.get("collectionName", ""),
                artist=item.get("artistName", ""),
                year=self._extract_year(item.get("releaseDate")),
                cover_url=self._get_large_artwork(item.get("artworkUrl100")),
                raw_data=item
            ))
        return results

    def find_cover(self, artist: str, title: str) -> Optional[str]:
        """
        Artwork of the hit whose artist and title best match the query.

        Returns:
            Large artwork URL, or None when nothing carries artwork
        """
        best: Optional[CatalogHit] = None
        for hit in self.search_album(title, artist):
            if not hit.cover_url:
                continue
            hit.confidence = (
                _similarity(title, hit.title) * 0.6 +
                _similarity(artist, hit.artist) * 0.4
            )
            if best is None or hit.confidence > best.confidence:
                best = hit
        return best.cover_url if best else None

    def _get_large_artwork(self, url: Optional[str], size: int = 600) -> Optional[str]:
        """
        Convert thumbnail URL to larger artwork.

        iTunes returns 100x100 by default, but supports up to 3000x3000.
        """
        if url:
            return url.replace("100x100bb", f"{size}x{size}bb")
        return None


def _normalize(value: str) -> str:
    value = value.lower()
    value = re.sub(r'\s*[\(\[][^\)\]]*[\)\]]', '', value)
    value = re.sub(r'[^\w\s]', '', value)
    return ' '.join(value.split())


def _similarity(local: str, remote: str) -> float:
    """Name similarity score (0-1)"""
    if not local or not remote:
        return 0.0
    local_norm = _normalize(local)
    remote_norm = _normalize(remote)
    if local_norm == remote_norm:
        return 1.0
    return SequenceMatcher(None, local_norm, remote_norm).ratio()
