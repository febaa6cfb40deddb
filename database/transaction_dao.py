from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction
from utils.constants import (
    DEFAULT_BALANCE_SCOPE,
    DEPOSIT_CATEGORY_ID,
    DEPOSIT_CATEGORY_NAME,
    NO_SUBCATEGORY_ID,
)
from utils.currency import to_money

_BALANCE_COLUMNS = {
    "user": "userBalance",
    "global": "balance",
}


class TransactionDAO:
    """Reads go through TransactionsView so every row carries its running balance.

    balance_scope 'user' sums a user's own transactions; 'global' sums every
    transaction in the table, as earlier releases did.
    """

    def __init__(self, db: DatabaseManager, balance_scope: str = DEFAULT_BALANCE_SCOPE):
        if balance_scope not in _BALANCE_COLUMNS:
            raise ValueError(f"Invalid balance scope: {balance_scope}")
        self._db = db
        self.balance_scope = balance_scope

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["transactionID"],
            amount=to_money(row["amount"]),
            description=row["description"] or "",
            date=row["transactionDate"],
            category_id=row["categoryID"],
            subcategory_id=row["subcategoryID"] or NO_SUBCATEGORY_ID,
            user_id=row["userID"],
            is_deposit=bool(row["isDeposit"]),
            balance=to_money(row["balance"] or 0),
            category_name=row["categoryName"],
            subcategory_name=row["subcategoryName"],
        )

    def _select(self) -> str:
        return f"""
            SELECT t.transactionID, t.amount, t.description, t.transactionDate,
                   t.categoryID, t.subcategoryID, t.userID, t.isDeposit,
                   t.{_BALANCE_COLUMNS[self.balance_scope]} AS balance,
                   CASE WHEN t.categoryID = {DEPOSIT_CATEGORY_ID}
                        THEN '{DEPOSIT_CATEGORY_NAME}'
                        ELSE COALESCE(c.categoryName, '') END AS categoryName,
                   COALESCE(s.subcategoryName, '') AS subcategoryName
            FROM TransactionsView t
            LEFT JOIN Category c ON t.categoryID = c.categoryID
            LEFT JOIN Subcategory s ON t.subcategoryID = s.subcategoryID
        """

    def get_by_user(self, user_id: int) -> list[Transaction]:
        with self._db.connection() as conn:
            rows = conn.execute(
                self._select() + " WHERE t.userID = ? ORDER BY t.transactionID ASC",
                (user_id,),
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_user_and_category(self, user_id: int, category_id: int) -> list[Transaction]:
        with self._db.connection() as conn:
            rows = conn.execute(
                self._select()
                + " WHERE t.userID = ? AND t.categoryID = ? ORDER BY t.transactionID ASC",
                (user_id, category_id),
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        with self._db.connection() as conn:
            row = conn.execute(
                self._select() + " WHERE t.transactionID = ?", (tx_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def get_balance(self, user_id: int) -> Decimal:
        """Running balance after the user's latest transaction."""
        with self._db.connection() as conn:
            row = conn.execute(
                self._select()
                + " WHERE t.userID = ? ORDER BY t.transactionID DESC LIMIT 1",
                (user_id,),
            ).fetchone()
        return to_money(row["balance"]) if row else to_money(0)

    def get_totals(self, user_id: int) -> dict:
        with self._db.connection() as conn:
            row = conn.execute(
                """SELECT
                    SUM(CASE WHEN isDeposit THEN amount ELSE 0 END)      AS income,
                    SUM(CASE WHEN isDeposit THEN 0 ELSE -amount END)     AS expense
                   FROM Transactions
                   WHERE userID = ?""",
                (user_id,),
            ).fetchone()
        return {
            "income": to_money(row["income"] or 0),
            "expense": to_money(row["expense"] or 0),
        }

    def get_expense_by_category(self, user_id: int) -> list[dict]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """SELECT COALESCE(c.categoryName, 'Uncategorized') AS category,
                          -SUM(t.amount) AS total
                   FROM Transactions t
                   LEFT JOIN Category c ON t.categoryID = c.categoryID
                   WHERE t.userID = ? AND NOT t.isDeposit
                   GROUP BY t.categoryID
                   ORDER BY total DESC""",
                (user_id,),
            ).fetchall()
        return [{"category": r["category"], "total": to_money(r["total"])} for r in rows]

    def create(
        self,
        amount: Decimal,
        description: str,
        date: str,
        category_id: int,
        subcategory_id: int,
        user_id: int,
        is_deposit: bool,
    ) -> Transaction:
        """Insert a row whose sign and category were already normalized.

        The insert and the read of its running balance share one transaction.
        """
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """INSERT INTO Transactions
                   (amount, description, transactionDate, categoryID,
                    subcategoryID, userID, isDeposit)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    amount, description, date, category_id,
                    subcategory_id or None, user_id, 1 if is_deposit else 0,
                ),
            )
            return self.get_by_id(cursor.lastrowid)

    def delete(self, tx_id: int) -> bool:
        """Returns False when no row had that id."""
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM Transactions WHERE transactionID = ?", (tx_id,)
            )
        return cursor.rowcount > 0
