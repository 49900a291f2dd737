# swimdesk/repositories/factory.py
"""
Repository Factory for SwimDesk

Centralizes creation of repositories and DataStores so the backend can be
swapped from configuration without touching services.
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import sessionmaker

from .contracts import DataStore
from .local_store import LocalDataStore
from .sql_store import SqlDataStore

logger = logging.getLogger(__name__)


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_sql_store(session_factory: sessionmaker) -> SqlDataStore:
        """Open a store on a fresh session. The caller must close it."""
        return SqlDataStore(session_factory())

    @staticmethod
    def create_local_store(path: Optional[Path]) -> LocalDataStore:
        logger.info("Using local store at %s", path if path is not None else "<memory>")
        return LocalDataStore(path)


class DataStoreProvider:
    """
    Hands out DataStores for the configured backend.

    SQL stores are per-request (one session each); the local store is a
    single shared instance.
    """

    def __init__(
        self,
        backend: str,
        session_factory: Optional[sessionmaker] = None,
        local_store: Optional[LocalDataStore] = None,
    ):
        if backend == "sql" and session_factory is None:
            raise ValueError("The sql backend needs a session factory")
        if backend == "local" and local_store is None:
            raise ValueError("The local backend needs a store instance")
        self.backend = backend
        self.session_factory = session_factory
        self.local_store = local_store

    def open(self) -> DataStore:
        if self.backend == "sql":
            return RepositoryFactory.create_sql_store(self.session_factory)
        return self.local_store

    def release(self, store: DataStore) -> None:
        if store is not self.local_store:
            store.close()
