import logging
import os
import sys
from dataclasses import dataclass

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.user_dao import UserDAO
from database.credential_dao import CredentialDAO
from database.category_dao import CategoryDAO
from database.subcategory_dao import SubcategoryDAO
from database.transaction_dao import TransactionDAO

from services.identity_service import IdentityService
from services.category_service import CategoryService
from services.transaction_service import TransactionService
from services.report_service import ReportService

from utils.app_config import (
    get_balance_scope,
    get_db_folder,
    get_hash_scheme,
    get_query_timeout,
    load_config,
)
from utils.constants import APP_NAME
from utils.security import get_hasher

logger = logging.getLogger(APP_NAME)


@dataclass
class Services:
    """What front ends get: one handle per store, all sharing one database."""
    db: DatabaseManager
    identity: IdentityService
    categories: CategoryService
    transactions: TransactionService
    reports: ReportService

    def close(self):
        self.db.close()

    def __enter__(self) -> "Services":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def configure_logging(level: int = logging.INFO):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def build_services(db: DatabaseManager, config: dict | None = None) -> Services:
    """Wire DAOs and services over an initialized database."""
    config = load_config() if config is None else config

    # ── DAOs ─────────────────────────────────────────────────────────────────
    user_dao = UserDAO(db)
    credential_dao = CredentialDAO(db)
    category_dao = CategoryDAO(db)
    subcategory_dao = SubcategoryDAO(db)
    tx_dao = TransactionDAO(db, balance_scope=get_balance_scope(config))

    # ── Services ─────────────────────────────────────────────────────────────
    hasher = get_hasher(get_hash_scheme(config))
    identity_svc = IdentityService(db, user_dao, credential_dao, hasher=hasher)
    category_svc = CategoryService(category_dao, subcategory_dao)
    tx_svc = TransactionService(tx_dao, category_svc)
    report_svc = ReportService(tx_dao)

    return Services(
        db=db,
        identity=identity_svc,
        categories=category_svc,
        transactions=tx_svc,
        reports=report_svc,
    )


def open_app(config: dict | None = None) -> Services:
    """Startup: read pre-DB config, open the database, build services."""
    config = load_config() if config is None else config
    db = DatabaseManager.open_default(
        db_folder=get_db_folder(config),
        query_timeout=get_query_timeout(config),
    )
    return build_services(db, config)


def main():
    configure_logging()
    with open_app() as app:
        logger.info(
            "%s database ready at %s (hash scheme %s, %s balances)",
            APP_NAME,
            app.db.db_path,
            app.identity.hash_scheme,
            app.transactions.balance_scope,
        )


if __name__ == "__main__":
    main()
