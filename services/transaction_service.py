import logging
from datetime import date as date_type
from decimal import Decimal

from database.transaction_dao import TransactionDAO
from models.transaction import Transaction
from services.category_service import CategoryService
from utils.constants import DEPOSIT_CATEGORY_ID, NO_SUBCATEGORY_ID
from utils.currency import to_money
from utils.date_helpers import normalize_date
from utils.exceptions import NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


class TransactionService:
    def __init__(self, tx_dao: TransactionDAO, category_service: CategoryService):
        self._dao = tx_dao
        self._categories = category_service

    @property
    def balance_scope(self) -> str:
        return self._dao.balance_scope

    def get_for_user(self, user_id: int) -> list[Transaction]:
        """The user's ledger in creation order, each row with its running balance."""
        return self._dao.get_by_user(user_id)

    def get_for_category(self, user_id: int, category_id: int) -> list[Transaction]:
        """Like get_for_user, filtered after balances are computed."""
        return self._dao.get_by_user_and_category(user_id, category_id)

    def get_by_id(self, tx_id: int) -> Transaction | None:
        return self._dao.get_by_id(tx_id)

    def get_balance(self, user_id: int) -> Decimal:
        return self._dao.get_balance(user_id)

    def create(
        self,
        amount,
        description: str,
        date: date_type | str,
        category_id: int,
        subcategory_id: int,
        user_id: int,
        is_deposit: bool,
    ) -> Transaction:
        """Record a transaction from a magnitude; the sign follows is_deposit.

        Deposits always land in the Deposit category with no subcategory.
        """
        magnitude = self._validate_amount(amount)
        date_str = normalize_date(date)
        if date_str is None:
            raise ValidationError("Invalid date format. Use MM/DD/YYYY.")
        description = (description or "").strip()

        if is_deposit:
            signed = magnitude
            category_id = DEPOSIT_CATEGORY_ID
            subcategory_id = NO_SUBCATEGORY_ID
        else:
            signed = -magnitude
            subcategory_id = subcategory_id or NO_SUBCATEGORY_ID
            self._validate_references(user_id, category_id, subcategory_id)

        try:
            tx = self._dao.create(
                amount=signed,
                description=description,
                date=date_str,
                category_id=category_id,
                subcategory_id=subcategory_id,
                user_id=user_id,
                is_deposit=is_deposit,
            )
        except PersistenceError:
            logger.error("Transaction for user %d could not be added", user_id)
            raise
        logger.debug("Added transaction %d (%s) for user %d", tx.id, tx.amount, user_id)
        return tx

    def delete(self, tx_id: int, owner_id: int | None = None) -> bool:
        """Delete by id; returns False if no such row existed.

        With owner_id, a transaction belonging to anyone else is reported as
        not found and left in place.
        """
        if owner_id is not None:
            tx = self._dao.get_by_id(tx_id)
            if tx is None or tx.user_id != owner_id:
                raise NotFoundError(f"Transaction {tx_id} not found.")
        deleted = self._dao.delete(tx_id)
        if deleted:
            logger.info("Deleted transaction %d", tx_id)
        return deleted

    # ── Helpers ──────────────────────────────────────────────────────────────

    @staticmethod
    def _validate_amount(amount) -> Decimal:
        try:
            magnitude = abs(to_money(amount))
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if magnitude == 0:
            raise ValidationError("Amount must be non-zero.")
        return magnitude

    def _validate_references(self, user_id: int, category_id: int, subcategory_id: int):
        if category_id == DEPOSIT_CATEGORY_ID:
            raise ValidationError("Withdrawals need a category other than Deposit.")
        if self._categories.get_category(user_id, category_id) is None:
            raise ValidationError(f"Category {category_id} is not available.")
        if subcategory_id != NO_SUBCATEGORY_ID and self._categories.get_subcategory(
            user_id, category_id, subcategory_id
        ) is None:
            raise ValidationError(
                f"Subcategory {subcategory_id} does not belong to category {category_id}."
            )
