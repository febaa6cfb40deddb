from typing import Optional
from database.db_manager import DatabaseManager
from models.user import Position, User
from utils.exceptions import PersistenceError


class UserDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> User:
        return User(
            id=row["userID"],
            first_name=row["firstname"],
            last_name=row["lastname"],
            position=Position(row["position"]),
        )

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM User WHERE userID = ?", (user_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, first_name: str, last_name: str, position: Position) -> User:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO User(firstname, lastname, position) VALUES (?, ?, ?)",
                (first_name, last_name, int(position)),
            )
            return User(
                id=cursor.lastrowid,
                first_name=first_name,
                last_name=last_name,
                position=Position(position),
            )

    def update_name(self, user_id: int, first_name: str, last_name: str) -> User:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE User SET firstname = ?, lastname = ? WHERE userID = ?",
                (first_name, last_name, user_id),
            )
            if cursor.rowcount == 0:
                raise PersistenceError(f"User {user_id} was not updated.")
        return self.get_by_id(user_id)
