"""MedGenius Storage Layer - Database, stores and caches."""

from medgenius.storage.activities import ActivityStore
from medgenius.storage.cache import CacheEntry, SessionCache, TTLCache
from medgenius.storage.database import Database, close_database, get_database
from medgenius.storage.users import UsersStore

__all__ = [
    "ActivityStore",
    "CacheEntry",
    "Database",
    "SessionCache",
    "TTLCache",
    "UsersStore",
    "close_database",
    "get_database",
]
