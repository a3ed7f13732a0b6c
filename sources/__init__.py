# Catalog Source Adapters
# Adapters for MusicBrainz, iTunes, Discogs, TheAudioDB, Wikimedia, Mixcloud

from .base import DataSource, CatalogHit, check_reachable
from .musicbrainz import MusicBrainzSource, ArtistHit
from .itunes import iTunesSource
from .discogs import DiscogsSource
from .audiodb import AudioDBSource
from .wikimedia import WikimediaSource, commons_thumb_url
from .mixcloud import MixcloudSource, MixInfo

__all__ = [
    'DataSource',
    'CatalogHit',
    'ArtistHit',
    'MixInfo',
    'check_reachable',
    'commons_thumb_url',
    'MusicBrainzSource',     # Album priority 1 (Cover Art Archive), artist ids
    'iTunesSource',          # Album priority 2 - commercial catalog
    'DiscogsSource',         # Album priority 3 - community catalog
    'AudioDBSource',         # Artist priority 1 - press photos
    'WikimediaSource',       # Artist priority 2 - Wikidata -> Commons
    'MixcloudSource'         # Mixes
]
