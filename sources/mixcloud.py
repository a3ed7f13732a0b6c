#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mixcloud adapter.
DJ mixes resolved by URL (oEmbed) or found by free-text search.
No authentication required.

API Documentation:
https://www.mixcloud.com/developers/
"""

from dataclasses import dataclass
from typing import List, Optional

from .base import DataSource, DEFAULT_USER_AGENT


@dataclass
class MixInfo:
    """A mix as reported by the service"""
    title: str
    artist: str
    cover_url: Optional[str]
    source_url: str


class MixcloudSource(DataSource):
    """Mix catalog"""

    OEMBED_URL = "https://www.mixcloud.com/oembed/"
    API_URL = "https://api.mixcloud.com"

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, rate_limit: float = 0.5):
        super().__init__(user_agent=user_agent, rate_limit=rate_limit)

    @property
    def name(self) -> str:
        return "mixcloud"

    def resolve(self, url: str) -> Optional[MixInfo]:
        """
        Resolve a mix page URL through oEmbed.

        Returns:
            MixInfo, or None if the URL is not a known mix
        """
        data = self._get_json(self.OEMBED_URL, params={"url": url, "format": "json"})
        if not data or not data.get("title"):
            return None

        return MixInfo(
            title=data["title"],
            artist=data.get("author_name") or "",
            cover_url=data.get("image") or data.get("thumbnail_url"),
            source_url=url
        )

    def search(self, text: str, limit: int = 4) -> List[MixInfo]:
        """Search cloudcasts by free text"""
        data = self._get_json(f"{self.API_URL}/search/", params={
            "q": text,
            "type": "cloudcast",
            "limit": limit
        })
        if not data:
            return []

        results = []
        for cast in data.get("data", [])[:limit]:
            if not cast.get("url"):
                continue
            pictures = cast.get("pictures") or {}
            results.append(MixInfo(
                title=cast.get("name", ""),
                artist=(cast.get("user") or {}).get("name", ""),
                cover_url=pictures.get("extra_large") or pictures.get("large"),
                source_url=cast["url"]
            ))
        return results
