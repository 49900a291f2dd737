# swimdesk/init_db.py
"""
Create the SwimDesk tables and optionally install the demo data.

Usage:
    python -m swimdesk.init_db [--seed]
"""

import argparse
import logging
from typing import Optional, Sequence

from .auth import get_password_hash
from .core.config import Settings
from .core.constants import (
    DEMO_AVAILABILITY,
    DEMO_PACKAGE,
    DEMO_PASSWORD,
    DEMO_PURCHASE,
    DEMO_USERS,
)
from .database import build_engine, build_session_factory, create_tables
from .repositories.contracts import DataStore
from .repositories.factory import RepositoryFactory
from .schemas.availability import Availability
from .schemas.catalog import Package
from .schemas.purchase import Purchase
from .schemas.user import User

logger = logging.getLogger(__name__)


def seed_demo_data(store: DataStore) -> int:
    """
    Install the demo accounts, availability, package and purchase.

    Records that already exist are left alone, so seeding twice is harmless.
    Returns the number of records created.
    """
    created = 0
    with store.transaction():
        for raw_user in DEMO_USERS:
            if store.users.get_by_id(raw_user["id"]) is not None:
                continue
            user = store.users.create(User(**raw_user))
            store.users.set_password_hash(user.id, get_password_hash(DEMO_PASSWORD))
            created += 1

        for raw_window in DEMO_AVAILABILITY:
            if store.availability.get_by_id(raw_window["id"]) is None:
                store.availability.create(Availability(**raw_window))
                created += 1

        if store.packages.get_by_id(DEMO_PACKAGE["id"]) is None:
            store.packages.create(Package(**DEMO_PACKAGE))
            created += 1

        if store.purchases.get_by_id(DEMO_PURCHASE["id"]) is None:
            purchase = store.purchases.create(Purchase(**DEMO_PURCHASE))
            store.users.increment_credits(purchase.user_id, purchase.credits)
            created += 1

    logger.info(f"Demo data seeded: {created} records created")
    return created


def init_db(settings: Settings, seed: bool = False) -> None:
    if settings.storage_backend == "local":
        store: DataStore = RepositoryFactory.create_local_store(settings.local_store_path)
        if seed:
            seed_demo_data(store)
        return

    engine = build_engine(settings.database_url)
    try:
        create_tables(engine)
        logger.info("Database tables created")
        if seed:
            store = RepositoryFactory.create_sql_store(build_session_factory(engine))
            try:
                seed_demo_data(store)
            finally:
                store.close()
    finally:
        engine.dispose()


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Create the SwimDesk tables")
    parser.add_argument("--seed", action="store_true", help="Install the demo accounts and data")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    init_db(Settings(), seed=args.seed)


if __name__ == "__main__":
    main()
