import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Iterator

from utils.constants import DB_FILE, DEFAULT_QUERY_TIMEOUT, SCHEMA_VERSION
from utils.exceptions import DatabaseTimeoutError, PersistenceError

logger = logging.getLogger(__name__)

# DECIMAL(10,2) columns have NUMERIC affinity; bind Decimals as text so
# SQLite converts them without a float round-trip.
sqlite3.register_adapter(Decimal, str)

# Opcodes between deadline checks.
_PROGRESS_STEPS = 1000


class DatabaseManager:
    """Owns the single SQLite connection shared by every DAO.

    All statements run under one re-entrant lock. ``connection()`` is for
    reads and single statements; ``transaction()`` wraps several statements
    in BEGIN IMMEDIATE / COMMIT and rolls back on any error. Both are bounded
    by ``query_timeout`` seconds.
    """

    def __init__(self, db_path: str | None = None, query_timeout: float = DEFAULT_QUERY_TIMEOUT):
        self.db_path = db_path or DB_FILE
        self.query_timeout = query_timeout
        self.foreign_keys_enforced = True
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._deadline: float | None = None
        self._timed_out = False
        self._tx_depth = 0

    def __enter__(self) -> "DatabaseManager":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                conn = sqlite3.connect(
                    self.db_path,
                    timeout=self.query_timeout,
                    check_same_thread=False,
                    isolation_level=None,
                )
            except sqlite3.Error as exc:
                raise PersistenceError(f"Cannot open database {self.db_path}") from exc
            conn.row_factory = sqlite3.Row
            # Stays off across reconnects once a legacy file has been detected.
            conn.execute(
                "PRAGMA foreign_keys = ON" if self.foreign_keys_enforced
                else "PRAGMA foreign_keys = OFF"
            )
            if self.db_path != ":memory:":
                conn.execute("PRAGMA journal_mode = WAL")
            conn.set_progress_handler(self._check_deadline, _PROGRESS_STEPS)
            self._conn = conn
            logger.debug("Opened database %s", self.db_path)
        return self._conn

    def _check_deadline(self) -> int:
        # Non-zero aborts the running statement with OperationalError.
        if self._deadline is not None and time.monotonic() > self._deadline:
            self._timed_out = True
            return 1
        return 0

    @contextmanager
    def _locked(self) -> Iterator[sqlite3.Connection]:
        if not self._lock.acquire(timeout=self.query_timeout):
            raise DatabaseTimeoutError(
                f"Timed out after {self.query_timeout}s waiting for the database"
            )
        outermost = self._deadline is None
        if outermost:
            self._deadline = time.monotonic() + self.query_timeout
            self._timed_out = False
        try:
            yield self.get_connection()
        except sqlite3.OperationalError as exc:
            if self._timed_out:
                raise DatabaseTimeoutError(
                    f"Query exceeded {self.query_timeout}s"
                ) from exc
            raise PersistenceError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc
        finally:
            if outermost:
                self._deadline = None
            self._lock.release()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        with self._locked() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block atomically. Nested blocks join the outer transaction."""
        with self._locked() as conn:
            if self._tx_depth:
                self._tx_depth += 1
                try:
                    yield conn
                finally:
                    self._tx_depth -= 1
                return
            conn.execute("BEGIN IMMEDIATE")
            self._tx_depth = 1
            try:
                yield conn
                conn.commit()
            except BaseException:
                # Stop the deadline check so the rollback itself can't be interrupted.
                self._deadline = None
                if conn.in_transaction:
                    conn.rollback()
                raise
            finally:
                self._tx_depth = 0

    def initialize(self):
        """Create schema and run migrations. Safe to call on every startup."""
        with self.transaction() as conn:
            self._create_schema(conn)
            self._migrate_schema(conn)
        self._check_foreign_keys()
        logger.info("Database ready at %s (schema v%s)", self.db_path, SCHEMA_VERSION)

    def _create_schema(self, conn: sqlite3.Connection):
        # executescript would COMMIT the open transaction, so run statements one by one.
        statements = [
            """CREATE TABLE IF NOT EXISTS User (
                userID    INTEGER PRIMARY KEY AUTOINCREMENT,
                firstname TEXT    NOT NULL,
                lastname  TEXT    NOT NULL,
                position  INTEGER NOT NULL CHECK (position IN (0, 1, 2))
            )""",
            """CREATE TABLE IF NOT EXISTS UserLogin (
                loginID     INTEGER PRIMARY KEY AUTOINCREMENT,
                username    TEXT    NOT NULL UNIQUE,
                password    TEXT    NOT NULL,
                accessLevel INTEGER NOT NULL CHECK (accessLevel IN (0, 1, 2)),
                email       TEXT    NOT NULL UNIQUE,
                userID      INTEGER NOT NULL UNIQUE REFERENCES User(userID)
            )""",
            # userID 0 marks a global category, so it is not a foreign key.
            """CREATE TABLE IF NOT EXISTS Category (
                categoryID   INTEGER PRIMARY KEY AUTOINCREMENT,
                categoryName TEXT    NOT NULL,
                userID       INTEGER NOT NULL
            )""",
            """CREATE TABLE IF NOT EXISTS Subcategory (
                subcategoryID   INTEGER PRIMARY KEY AUTOINCREMENT,
                subcategoryName TEXT    NOT NULL,
                categoryID      INTEGER NOT NULL REFERENCES Category(categoryID),
                userID          INTEGER NOT NULL REFERENCES User(userID)
            )""",
            # categoryID 0 is the Deposit sentinel, so it is not a foreign key.
            """CREATE TABLE IF NOT EXISTS Transactions (
                transactionID   INTEGER PRIMARY KEY AUTOINCREMENT,
                amount          DECIMAL(10,2) NOT NULL,
                description     TEXT,
                transactionDate TEXT    NOT NULL,
                categoryID      INTEGER NOT NULL,
                subcategoryID   INTEGER REFERENCES Subcategory(subcategoryID),
                userID          INTEGER NOT NULL REFERENCES User(userID),
                isDeposit       BOOLEAN NOT NULL
            )""",
            "CREATE INDEX IF NOT EXISTS idx_category_user ON Category(userID)",
            "CREATE INDEX IF NOT EXISTS idx_subcategory_parent ON Subcategory(categoryID, userID)",
            "CREATE INDEX IF NOT EXISTS idx_transactions_user ON Transactions(userID)",
            """CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )""",
        ]
        for sql in statements:
            conn.execute(sql)
        self._create_balance_view(conn)

    @staticmethod
    def _create_balance_view(conn: sqlite3.Connection):
        conn.execute("""
            CREATE VIEW IF NOT EXISTS TransactionsView AS
            SELECT t.*,
                   SUM(t.amount) OVER (ORDER BY t.transactionID) AS balance,
                   SUM(t.amount) OVER (
                       PARTITION BY t.userID ORDER BY t.transactionID
                   ) AS userBalance
            FROM Transactions AS t
        """)

    def _migrate_schema(self, conn: sqlite3.Connection):
        """Idempotent upgrades for databases created by older releases."""
        view_cols = {row[1] for row in conn.execute("PRAGMA table_info(TransactionsView)").fetchall()}
        if "userBalance" not in view_cols:
            logger.warning("Rebuilding TransactionsView with per-user balances")
            conn.execute("DROP VIEW IF EXISTS TransactionsView")
            self._create_balance_view(conn)

        # Older releases stored 0 for "no subcategory".
        cursor = conn.execute(
            "UPDATE Transactions SET subcategoryID = NULL WHERE subcategoryID = 0"
        )
        if cursor.rowcount:
            logger.info("Normalized %d transactions without subcategory", cursor.rowcount)

        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES ('schema_version', ?)",
            (str(SCHEMA_VERSION),),
        )

    def _check_foreign_keys(self):
        """Disable FK enforcement on files whose declared keys the sentinel ids violate."""
        with self.connection() as conn:
            legacy = False
            for table, column in (("Transactions", "categoryID"), ("Category", "userID")):
                for fk in conn.execute(f"PRAGMA foreign_key_list({table})").fetchall():
                    if fk["from"] == column:
                        legacy = True
            if legacy:
                conn.execute("PRAGMA foreign_keys = OFF")
                self.foreign_keys_enforced = False
                logger.warning(
                    "%s uses the legacy schema; foreign key enforcement disabled",
                    self.db_path,
                )

    def get_setting(self, key: str, default: str = "") -> str:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT value FROM app_settings WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    @staticmethod
    def open_default(
        db_folder: str | None = None, query_timeout: float = DEFAULT_QUERY_TIMEOUT
    ) -> "DatabaseManager":
        """Startup factory: opens openbudget.db in db_folder, or the home directory."""
        folder = Path(db_folder) if db_folder else Path.home()
        folder.mkdir(parents=True, exist_ok=True)
        db = DatabaseManager(os.path.join(folder, DB_FILE), query_timeout=query_timeout)
        db.initialize()
        return db

    def close(self):
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                logger.debug("Closed database %s", self.db_path)
