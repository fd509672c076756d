"""Device-local storage for cached rosters and the attendance sync queue."""
from .local import LocalStore, get_store, set_store

__all__ = ["LocalStore", "get_store", "set_store"]
