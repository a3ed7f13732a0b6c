# Vinyl Shelf
# Collection state engine: ordering, artwork, drag reorder, rack

from .config import ConfigManager
from .models import CollectionItem, ItemKind, SearchResult
from .ordering import order
from .store import ItemStore, RowStore
from .state import JsonRowStore
from .artwork import ArtworkPipeline, Provider, ResolutionStatus, build_providers
from .reorder import ReorderSession, DragState
from .rack import RackController, RackPhase
from .clock import Clock, ManualClock
from .errors import ShelfError, ReorderError, DuplicateItemError
from .library import Shelf, ImportSummary, parse_entry

__all__ = [
    'ConfigManager',
    'CollectionItem',
    'ItemKind',
    'SearchResult',
    'order',
    'ItemStore',
    'RowStore',
    'JsonRowStore',
    'ArtworkPipeline',
    'Provider',
    'ResolutionStatus',
    'build_providers',
    'ReorderSession',
    'DragState',
    'RackController',
    'RackPhase',
    'Clock',
    'ManualClock',
    'ShelfError',
    'ReorderError',
    'DuplicateItemError',
    'Shelf',
    'ImportSummary',
    'parse_entry'
]
