#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TheAudioDB adapter.
Artist press photos. The public test key "2" needs no signup.

API Documentation:
https://www.theaudiodb.com/free_music_api
"""

from typing import Optional

from .base import DataSource, DEFAULT_USER_AGENT


class AudioDBSource(DataSource):
    """Artist photo catalog, first choice for artist images"""

    BASE_URL = "https://www.theaudiodb.com/api/v1/json"

    def __init__(self, api_key: str = "2", user_agent: str = DEFAULT_USER_AGENT, rate_limit: float = 0.5):
        super().__init__(user_agent=user_agent, rate_limit=rate_limit)
        self.api_key = api_key

    @property
    def name(self) -> str:
        return "audiodb"

    def find_artist_photo(self, name: str) -> Optional[str]:
        """
        Press photo for an artist name.

        Prefers the thumb, then fanart, then the wide thumb of the first hit.
        """
        data = self._get_json(f"{self.BASE_URL}/{self.api_key}/search.php", params={"s": name})
        if not data:
            return None

        artists = data.get("artists") or []
        if not artists:
            return None

        artist = artists[0]
        return (
            artist.get("strArtistThumb") or
            artist.get("strArtistFanart") or
            artist.get("strArtistWideThumb") or
            None
        )
