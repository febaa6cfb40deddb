from typing import Optional
from database.db_manager import DatabaseManager
from models.credential import AccessLevel, Credential
from utils.exceptions import PersistenceError


class CredentialDAO:
    """SQL for the UserLogin table. Password values are already hashed."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Credential:
        return Credential(
            id=row["loginID"],
            username=row["username"],
            password_hash=row["password"],
            access_level=AccessLevel(row["accessLevel"]),
            email=row["email"],
            user_id=row["userID"],
        )

    def _get_one(self, column: str, value) -> Optional[Credential]:
        with self._db.connection() as conn:
            row = conn.execute(
                f"SELECT * FROM UserLogin WHERE {column} = ?", (value,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_username(self, username: str) -> Optional[Credential]:
        return self._get_one("username", username)

    def get_by_email(self, email: str) -> Optional[Credential]:
        return self._get_one("email", email)

    def get_by_user_id(self, user_id: int) -> Optional[Credential]:
        return self._get_one("userID", user_id)

    def create(
        self,
        username: str,
        password_hash: str,
        access_level: AccessLevel,
        email: str,
        user_id: int,
    ) -> Credential:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """INSERT INTO UserLogin(username, password, accessLevel, email, userID)
                   VALUES (?, ?, ?, ?, ?)""",
                (username, password_hash, int(access_level), email, user_id),
            )
            return Credential(
                id=cursor.lastrowid,
                username=username,
                password_hash=password_hash,
                access_level=AccessLevel(access_level),
                email=email,
                user_id=user_id,
            )

    def update_password(self, username: str, password_hash: str):
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE UserLogin SET password = ? WHERE username = ?",
                (password_hash, username),
            )
            if cursor.rowcount == 0:
                raise PersistenceError(f"No login named '{username}' to update.")
