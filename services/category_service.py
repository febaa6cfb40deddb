import logging

from database.category_dao import CategoryDAO
from database.subcategory_dao import SubcategoryDAO
from models.category import Category, DEPOSIT_CATEGORY
from models.subcategory import Subcategory
from utils.constants import DEPOSIT_CATEGORY_ID, DEPOSIT_CATEGORY_NAME
from utils.exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)


class CategoryService:
    """Categories and subcategories, scoped to the user who owns them.

    The DAOs store whatever they are given; duplicate names are rejected here.
    """

    def __init__(self, category_dao: CategoryDAO, subcategory_dao: SubcategoryDAO):
        self._dao = category_dao
        self._sub_dao = subcategory_dao

    # ── Categories ───────────────────────────────────────────────────────────

    def list_categories(self, user_id: int, include_deposit: bool = False) -> dict[int, str]:
        """Own plus global categories. Deposit is only included on request."""
        names = self._dao.get_names(user_id)
        if include_deposit:
            return {DEPOSIT_CATEGORY_ID: DEPOSIT_CATEGORY_NAME, **names}
        return names

    def get_category(self, user_id: int, category_id: int) -> Category | None:
        if category_id == DEPOSIT_CATEGORY_ID:
            return DEPOSIT_CATEGORY
        return self._dao.get_visible(user_id, category_id)

    def get_category_name(self, user_id: int, category_id: int) -> str:
        category = self.get_category(user_id, category_id)
        return category.name if category else ""

    def create_category(self, name: str, user_id: int) -> Category:
        name = name.strip()
        if not name:
            raise ValidationError("Category name cannot be empty.")
        existing = self.list_categories(user_id, include_deposit=True).values()
        if name.lower() in (n.lower() for n in existing):
            raise ValidationError(f"A category named '{name}' already exists.")
        try:
            category = self._dao.create(name, user_id)
        except PersistenceError:
            logger.error("Category '%s' could not be added for user %d", name, user_id)
            raise
        logger.info("Added category %d '%s' for user %d", category.id, name, user_id)
        return category

    # ── Subcategories ────────────────────────────────────────────────────────

    def list_subcategories(self, user_id: int, category_id: int) -> dict[int, str]:
        return self._sub_dao.get_names(user_id, category_id)

    def get_subcategory_name(self, category_id: int, subcategory_id: int) -> str:
        return self._sub_dao.get_name(category_id, subcategory_id)

    def get_subcategory(self, user_id: int, category_id: int, subcategory_id: int) -> Subcategory | None:
        """The subcategory, if it belongs to user_id and sits under category_id."""
        sub = self._sub_dao.get_by_id(subcategory_id)
        if sub is None or sub.user_id != user_id or sub.category_id != category_id:
            return None
        return sub

    def create_subcategory(self, name: str, user_id: int, category_id: int) -> Subcategory:
        name = name.strip()
        if not name:
            raise ValidationError("Subcategory name cannot be empty.")
        if category_id == DEPOSIT_CATEGORY_ID or self._dao.get_visible(user_id, category_id) is None:
            raise ValidationError(f"Category {category_id} is not available.")
        existing = self.list_subcategories(user_id, category_id).values()
        if name.lower() in (n.lower() for n in existing):
            raise ValidationError(f"A subcategory named '{name}' already exists.")
        try:
            sub = self._sub_dao.create(name, user_id, category_id)
        except PersistenceError:
            logger.error("Subcategory '%s' could not be added for user %d", name, user_id)
            raise
        logger.info("Added subcategory %d '%s' under category %d", sub.id, name, category_id)
        return sub
