#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MusicBrainz API adapter.
Free, no authentication required, but needs user agent.

API Documentation:
https://musicbrainz.org/doc/MusicBrainz_API

Rate Limits: 1 request per second per IP
"""

from dataclasses import dataclass
from typing import List, Optional

from .base import DataSource, CatalogHit, DEFAULT_USER_AGENT


@dataclass
class ArtistHit:
    """Artist entry from a MusicBrainz artist search"""
    mbid: str
    name: str
    disambiguation: str = ""
    country: str = ""


class MusicBrainzSource(DataSource):
    """
    MusicBrainz API data source.

    Catalog search, release-group identifiers for Cover Art Archive
    lookups, and artist URL relations (Wikidata).
    """

    BASE_URL = "https://musicbrainz.org/ws/2"
    COVER_ART_URL = "https://coverartarchive.org"

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, rate_limit: float = 1.0):
        """
        Initialize MusicBrainz source.

        Args:
            user_agent: User agent string (required by API)
            rate_limit: Seconds between requests (1.0 required by API)
        """
        super().__init__(user_agent=user_agent, rate_limit=rate_limit)

    @property
    def name(self) -> str:
        return "musicbrainz"

    def search_release_groups(self, query: str, limit: int = 4) -> List[CatalogHit]:
        """
        Search release groups with a Lucene query.

        Args:
            query: Free text or a fielded query
            limit: Maximum number of hits

        Returns:
            Matching release groups, best first
        """
        data = self._get_json(
            f"{self.BASE_URL}/release-group/",
            params={"query": query, "fmt": "json", "limit": limit}
        )
        if not data:
            return []

        results = []
        for rg in data.get("release-groups", []):
            artist_credit = rg.get("artist-credit") or []
            results.append(CatalogHit(
                source="musicbrainz",
                source_id=rg.get("id", ""),
                title=rg.get("title", ""),
                artist=artist_credit[0].get("name", "") if artist_credit else "",
                year=self._extract_year(rg.get("first-release-date")),
                confidence=rg.get("score", 0) / 100.0,
                raw_data=rg
            ))
        return results

    def search_artists(self, name: str, limit: int = 4) -> List[ArtistHit]:
        """Search artists by name"""
        data = self._get_json(
            f"{self.BASE_URL}/artist/",
            params={"query": name, "fmt": "json", "limit": limit}
        )
        if not data:
            return []

        return [
            ArtistHit(
                mbid=artist.get("id", ""),
                name=artist.get("name", ""),
                disambiguation=artist.get("disambiguation") or "",
                country=artist.get("country") or ""
            )
            for artist in data.get("artists", [])
            if artist.get("id")
        ]

    def find_release_group(self, artist: str, title: str) -> Optional[CatalogHit]:
        """Best release group for an artist/title pair, or None"""
        query = f'releasegroup:"{_quote(title)}" AND artist:"{_quote(artist)}"'
        hits = self.search_release_groups(query, limit=1)
        return hits[0] if hits else None

    def lookup_release_group(self, artist: str, title: str) -> Optional[str]:
        """Release-group MBID for an artist/title pair, or None"""
        hit = self.find_release_group(artist, title)
        return hit.source_id if hit and hit.source_id else None

    def find_artist_id(self, name: str) -> Optional[str]:
        """
        Resolve an artist MBID from a name.

        Prefers an exact case-insensitive name match among the top hits,
        otherwise takes the first hit.
        """
        hits = self.search_artists(name, limit=3)
        if not hits:
            return None
        wanted = name.strip().lower()
        for hit in hits:
            if hit.name.lower() == wanted:
                return hit.mbid
        return hits[0].mbid

    def wikidata_id(self, artist_mbid: str) -> Optional[str]:
        """
        Follow an artist's URL relations to its Wikidata entity.

        Returns:
            Entity id such as "Q1299", or None
        """
        data = self._get_json(
            f"{self.BASE_URL}/artist/{artist_mbid}",
            params={"inc": "url-rels", "fmt": "json"}
        )
        if not data:
            return None

        for relation in data.get("relations", []):
            if relation.get("type") != "wikidata":
                continue
            resource = (relation.get("url") or {}).get("resource") or ""
            entity = resource.rstrip("/").split("/")[-1]
            if entity:
                return entity
        return None

    def cover_art_url(self, release_group_id: str, size: int = 500) -> str:
        """Cover Art Archive front image for a release group"""
        return f"{self.COVER_ART_URL}/release-group/{release_group_id}/front-{size}"

    def find_cover(self, artist: str, title: str) -> Optional[str]:
        """
        Candidate cover URL keyed by the looked-up release group.

        The URL is not verified here; callers check reachability.
        """
        release_group_id = self.lookup_release_group(artist, title)
        if not release_group_id:
            return None
        return self.cover_art_url(release_group_id)


def _quote(value: str) -> str:
    """Escape a value for use inside a quoted Lucene term"""
    return value.replace("\\", "\\\\").replace('"', '\\"')
