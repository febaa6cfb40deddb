from typing import Optional
from database.db_manager import DatabaseManager
from models.subcategory import Subcategory


class SubcategoryDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Subcategory:
        return Subcategory(
            id=row["subcategoryID"],
            name=row["subcategoryName"],
            category_id=row["categoryID"],
            user_id=row["userID"],
        )

    def get_names(self, user_id: int, category_id: int) -> dict[int, str]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """SELECT subcategoryID, subcategoryName FROM Subcategory
                   WHERE userID = ? AND categoryID = ?
                   ORDER BY subcategoryID""",
                (user_id, category_id),
            ).fetchall()
        return {r["subcategoryID"]: r["subcategoryName"] for r in rows}

    def get_name(self, category_id: int, subcategory_id: int) -> str:
        """Empty string when no such subcategory exists under category_id."""
        with self._db.connection() as conn:
            row = conn.execute(
                """SELECT subcategoryName FROM Subcategory
                   WHERE categoryID = ? AND subcategoryID = ?""",
                (category_id, subcategory_id),
            ).fetchone()
        return row["subcategoryName"] if row else ""

    def get_by_id(self, subcategory_id: int) -> Optional[Subcategory]:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM Subcategory WHERE subcategoryID = ?", (subcategory_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, name: str, user_id: int, category_id: int) -> Subcategory:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO Subcategory(subcategoryName, userID, categoryID) VALUES (?, ?, ?)",
                (name, user_id, category_id),
            )
            return Subcategory(
                id=cursor.lastrowid, name=name, category_id=category_id, user_id=user_id
            )
