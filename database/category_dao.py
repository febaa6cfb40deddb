from typing import Optional
from database.db_manager import DatabaseManager
from models.category import Category
from utils.constants import GLOBAL_OWNER_ID


class CategoryDAO:
    """Category rows visible to a user are their own plus the global ones.

    The reserved Deposit category (id 0) is never a row here. Reads always
    hit the table, so rows written by other connections show up at once.
    """

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Category:
        return Category(
            id=row["categoryID"],
            name=row["categoryName"],
            user_id=row["userID"],
        )

    def get_names(self, user_id: int) -> dict[int, str]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """SELECT categoryID, categoryName FROM Category
                   WHERE userID = ? OR userID = ?
                   ORDER BY categoryID""",
                (user_id, GLOBAL_OWNER_ID),
            ).fetchall()
        return {r["categoryID"]: r["categoryName"] for r in rows}

    def get_visible(self, user_id: int, category_id: int) -> Optional[Category]:
        with self._db.connection() as conn:
            row = conn.execute(
                """SELECT * FROM Category
                   WHERE categoryID = ? AND (userID = ? OR userID = ?)""",
                (category_id, user_id, GLOBAL_OWNER_ID),
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, name: str, user_id: int) -> Category:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO Category(categoryName, userID) VALUES (?, ?)",
                (name, user_id),
            )
            return Category(id=cursor.lastrowid, name=name, user_id=user_id)
