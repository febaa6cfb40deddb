import pytest

from database.db_manager import DatabaseManager
from database.user_dao import UserDAO
from database.credential_dao import CredentialDAO
from database.category_dao import CategoryDAO
from database.subcategory_dao import SubcategoryDAO
from database.transaction_dao import TransactionDAO
from models.user import Position
from services.identity_service import IdentityService
from services.category_service import CategoryService
from services.transaction_service import TransactionService
from services.report_service import ReportService
from utils.security import BcryptHasher, LegacyMd5Hasher


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "test.db"), query_timeout=2.0)
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def user_dao(db):
    return UserDAO(db)


@pytest.fixture
def credential_dao(db):
    return CredentialDAO(db)


@pytest.fixture
def category_dao(db):
    return CategoryDAO(db)


@pytest.fixture
def subcategory_dao(db):
    return SubcategoryDAO(db)


@pytest.fixture
def tx_dao(db):
    return TransactionDAO(db)


@pytest.fixture
def identity(db, user_dao, credential_dao):
    # Minimum bcrypt cost keeps the suite fast.
    return IdentityService(db, user_dao, credential_dao, hasher=BcryptHasher(rounds=4))


@pytest.fixture
def legacy_identity(db, user_dao, credential_dao):
    return IdentityService(db, user_dao, credential_dao, hasher=LegacyMd5Hasher())


@pytest.fixture
def categories(category_dao, subcategory_dao):
    return CategoryService(category_dao, subcategory_dao)


@pytest.fixture
def transactions(tx_dao, categories):
    return TransactionService(tx_dao, categories)


@pytest.fixture
def reports(tx_dao):
    return ReportService(tx_dao)


@pytest.fixture
def jane(user_dao):
    return user_dao.create("Jane", "Doe", Position.USER)


@pytest.fixture
def john(user_dao):
    return user_dao.create("John", "Roe", Position.DEVELOPER)


@pytest.fixture
def groceries(categories, jane):
    return categories.create_category("Groceries", jane.id)
