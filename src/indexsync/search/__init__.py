"""Search read path — query translation and engine error mapping."""

from indexsync.search.errors import map_search_exception
from indexsync.search.translator import QueryTranslator

__all__ = ["QueryTranslator", "map_search_exception"]
