#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Wikidata / Wikimedia Commons adapter.

Artist images are referenced from Wikidata by the P18 ("image") claim,
which holds a Commons file name. Commons serves files from a
content-addressed path derived from the MD5 of the normalized name:

    /wikipedia/commons/thumb/<h[0]>/<h[0:2]>/<name>/<width>px-<name>
"""

import hashlib
import logging
from typing import Optional
from urllib.parse import quote

from .base import DataSource, DEFAULT_USER_AGENT


logger = logging.getLogger(__name__)


class WikimediaSource(DataSource):
    """Structured-data cross reference and linked media repository"""

    ENTITY_URL = "https://www.wikidata.org/wiki/Special:EntityData"
    COMMONS_URL = "https://upload.wikimedia.org/wikipedia/commons/thumb"

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, rate_limit: float = 0.2, width: int = 500):
        super().__init__(user_agent=user_agent, rate_limit=rate_limit)
        self.width = width

    @property
    def name(self) -> str:
        return "wikimedia"

    def image_file(self, entity_id: str) -> Optional[str]:
        """
        Commons file name from an entity's P18 claim.

        Args:
            entity_id: Wikidata id, e.g. "Q1299"
        """
        data = self._get_json(f"{self.ENTITY_URL}/{entity_id}.json")
        if not data:
            return None

        entity = (data.get("entities") or {}).get(entity_id) or {}
        claims = (entity.get("claims") or {}).get("P18") or []
        if not claims:
            return None

        value = ((claims[0].get("mainsnak") or {}).get("datavalue") or {}).get("value")
        return value if isinstance(value, str) and value else None

    def thumb_url(self, file_name: str) -> str:
        """Commons thumbnail URL for a file name"""
        return commons_thumb_url(file_name, self.width)


def normalize_file_name(file_name: str) -> str:
    """Commons stores names with underscores instead of spaces"""
    return file_name.strip().replace(" ", "_")


def commons_hash(file_name: str) -> str:
    """
    Hex digest used to build the Commons path for a normalized file name.

    Falls back to a 32-bit rolling string hash when MD5 is refused by the
    interpreter (FIPS builds). The fallback is deterministic and path-safe,
    but does not match the real Commons path.
    """
    data = file_name.encode("utf-8")
    try:
        return hashlib.md5(data).hexdigest()
    except ValueError:
        logger.warning("MD5 unavailable, using fallback hash for %r", file_name)

    value = 0
    for char in file_name:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return format(abs(value), "x").zfill(2)


def commons_thumb_url(file_name: str, width: int = 500) -> str:
    """Content-addressed Commons thumbnail URL"""
    normalized = normalize_file_name(file_name)
    digest = commons_hash(normalized)
    encoded = quote(normalized, safe="")
    return f"{WikimediaSource.COMMONS_URL}/{digest[0]}/{digest[:2]}/{encoded}/{width}px-{encoded}"
