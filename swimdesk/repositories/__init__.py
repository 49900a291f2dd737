"""
Repository layer for SwimDesk.

Two interchangeable backends implement the contracts in ``contracts``:
``SqlDataStore`` over SQLAlchemy and ``LocalDataStore`` over a JSON file.
"""

from .contracts import DataStore
from .factory import DataStoreProvider, RepositoryFactory
from .local_store import LocalDataStore
from .sql_store import SqlDataStore

__all__ = [
    "DataStore",
    "DataStoreProvider",
    "LocalDataStore",
    "RepositoryFactory",
    "SqlDataStore",
]
