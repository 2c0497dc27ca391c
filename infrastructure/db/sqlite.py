import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Iterator, List, Optional, Tuple
from uuid import uuid4

from core.entities.transaction import Transaction, TransactionStatistics
from core.entities.user import User
from core.errors import DuplicateEmailError
from core.repositories.transaction_repository import (
    BulkInsertResult,
    InsertFailure,
    TransactionRepository,
)
from core.repositories.user_repository import UserRepository
from core.services.dates import as_utc, utc_now
from core.services.transaction_query import PageRequest, TransactionFilter

logger = logging.getLogger(__name__)


class Database:
    """Single sqlite connection shared by the whole process.

    Opened once at startup and closed at shutdown; every statement runs
    under the lock because FastAPI calls sync handlers from a thread pool.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = RLock()

    def connect(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                if self.db_path != ":memory:" and not self.db_path.startswith("file:"):
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(
                    self.db_path,
                    check_same_thread=False,
                    uri=self.db_path.startswith("file:"),
                )
                self._conn.row_factory = sqlite3.Row
                logger.info("database_connected path=%s", self.db_path)
            return self._conn

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            conn = self.connect()
            cur = conn.cursor()
            try:
                yield cur
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cur.close()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("database_closed path=%s", self.db_path)


def init_db(db: Database) -> None:
    with db.cursor() as cur:
        cur.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        );
        """)

        cur.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id TEXT PRIMARY KEY,
            user_id INTEGER NOT NULL,
            date TEXT NOT NULL,
            description TEXT NOT NULL CHECK (length(description) BETWEEN 1 AND 200),
            category TEXT NOT NULL,
            type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
            amount REAL NOT NULL CHECK (amount > 0),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );
        """)

        cur.execute("CREATE INDEX IF NOT EXISTS ix_transactions_user_date ON transactions (user_id, date DESC)")
        cur.execute("CREATE INDEX IF NOT EXISTS ix_transactions_user_type ON transactions (user_id, type)")
        cur.execute("CREATE INDEX IF NOT EXISTS ix_transactions_user_category ON transactions (user_id, category)")


# ISO с микросекундами и смещением UTC - фиксированная ширина, поэтому
# сравнение строк совпадает с хронологическим порядком
def _to_db(value: datetime) -> str:
    return as_utc(value).isoformat(timespec="microseconds")


def _from_db(value: str) -> datetime:
    return datetime.fromisoformat(value)


class SQLiteUserRepository(UserRepository):
    def __init__(self, db: Database):
        self.db = db

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            created_at=row["created_at"],
        )

    def create_user(self, name: str, email: str, password_hash: str) -> User:
        created_at = utc_now().isoformat()
        try:
            with self.db.cursor() as cur:
                cur.execute(
                    "INSERT INTO users (name, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                    (name, email, password_hash, created_at),
                )
                user_id = cur.lastrowid
        except sqlite3.IntegrityError:
            # email UNIQUE: кто-то успел зарегистрироваться параллельно
            raise DuplicateEmailError(email)
        return User(id=user_id, name=name, email=email, password_hash=password_hash, created_at=created_at)

    def get_by_email(self, email: str) -> Optional[User]:
        with self.db.cursor() as cur:
            cur.execute("SELECT * FROM users WHERE email = ?", (email,))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self.db.cursor() as cur:
            cur.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None


class SQLiteTransactionRepository(TransactionRepository):
    _sort_columns = {"date": "date", "created_at": "created_at"}
    _editable_columns = ("date", "description", "category", "type", "amount")

    def __init__(self, db: Database):
        self.db = db

    def _row_to_tx(self, row: sqlite3.Row) -> Transaction:
        return Transaction(
            id=row["id"],
            user_id=row["user_id"],
            date=_from_db(row["date"]),
            description=row["description"],
            category=row["category"],
            type=row["type"],
            amount=float(row["amount"]),
            created_at=_from_db(row["created_at"]),
            updated_at=_from_db(row["updated_at"]),
        )

    def _where(self, filters: TransactionFilter) -> Tuple[str, List[Any]]:
        clauses = ["user_id = ?"]
        params: List[Any] = [int(filters.user_id)]
        if filters.type:
            clauses.append("type = ?")
            params.append(filters.type)
        if filters.category:
            clauses.append("category = ?")
            params.append(filters.category)
        if filters.date_range is not None:
            clauses.append("date >= ? AND date <= ?")
            params.extend([_to_db(filters.date_range.start), _to_db(filters.date_range.end)])
        return " AND ".join(clauses), params

    def _order_by(self, page: PageRequest) -> str:
        parts = []
        for name, direction in page.sort:
            column = self._sort_columns[name]
            parts.append(f"{column} {'DESC' if direction.lower() == 'desc' else 'ASC'}")
        return ", ".join(parts)

    def find(self, filters: TransactionFilter, page: PageRequest) -> List[Transaction]:
        where, params = self._where(filters)
        with self.db.cursor() as cur:
            cur.execute(
                f"SELECT * FROM transactions WHERE {where} ORDER BY {self._order_by(page)} LIMIT ? OFFSET ?",
                (*params, int(page.limit), int(page.offset)),
            )
            rows = cur.fetchall()
        return [self._row_to_tx(r) for r in rows]

    def count(self, filters: TransactionFilter) -> int:
        where, params = self._where(filters)
        with self.db.cursor() as cur:
            cur.execute(f"SELECT COUNT(*) FROM transactions WHERE {where}", params)
            return int(cur.fetchone()[0])

    def get_owned(self, transaction_id: str, user_id: int) -> Optional[Transaction]:
        with self.db.cursor() as cur:
            cur.execute(
                "SELECT * FROM transactions WHERE id = ? AND user_id = ?",
                (transaction_id, int(user_id)),
            )
            row = cur.fetchone()
        return self._row_to_tx(row) if row else None

    def _insert_row(self, cur: sqlite3.Cursor, tx: Transaction) -> Transaction:
        now = utc_now()
        stored = Transaction(
            id=uuid4().hex,
            user_id=int(tx.user_id),
            date=as_utc(tx.date),
            description=tx.description,
            category=tx.category,
            type=tx.type,
            amount=float(tx.amount),
            created_at=now,
            updated_at=now,
        )
        cur.execute(
            "INSERT INTO transactions (id, user_id, date, description, category, type, amount, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (stored.id, stored.user_id, _to_db(stored.date), stored.description, stored.category,
             stored.type, stored.amount, _to_db(now), _to_db(now)),
        )
        return stored

    def insert(self, transaction: Transaction) -> Transaction:
        with self.db.cursor() as cur:
            return self._insert_row(cur, transaction)

    def insert_many(self, transactions: List[Transaction]) -> BulkInsertResult:
        result = BulkInsertResult()
        for index, tx in enumerate(transactions):
            try:
                with self.db.cursor() as cur:
                    result.inserted.append(self._insert_row(cur, tx))
            except sqlite3.Error as e:
                logger.warning("bulk_insert_row_failed index=%s error=%s", index, e)
                result.failures.append(InsertFailure(index=index, messages=[str(e)]))
        return result

    def update(self, transaction_id: str, user_id: int, changes: Dict[str, Any]) -> Optional[Transaction]:
        columns = [c for c in self._editable_columns if c in changes]
        values = [_to_db(changes[c]) if c == "date" else changes[c] for c in columns]
        assignments = [f"{c} = ?" for c in columns] + ["updated_at = ?"]
        with self.db.cursor() as cur:
            cur.execute(
                f"UPDATE transactions SET {', '.join(assignments)} WHERE id = ? AND user_id = ?",
                (*values, _to_db(utc_now()), transaction_id, int(user_id)),
            )
            if cur.rowcount == 0:
                return None
            cur.execute("SELECT * FROM transactions WHERE id = ?", (transaction_id,))
            row = cur.fetchone()
        return self._row_to_tx(row)

    def delete_owned(self, transaction_id: str, user_id: int) -> bool:
        with self.db.cursor() as cur:
            cur.execute(
                "DELETE FROM transactions WHERE id = ? AND user_id = ?",
                (transaction_id, int(user_id)),
            )
            return cur.rowcount > 0

    def totals_by_type(self, filters: TransactionFilter) -> TransactionStatistics:
        where, params = self._where(filters)
        with self.db.cursor() as cur:
            cur.execute(
                f"SELECT type, SUM(amount) AS total, COUNT(*) AS cnt FROM transactions WHERE {where} GROUP BY type",
                params,
            )
            rows = cur.fetchall()

        stats = TransactionStatistics()
        for row in rows:
            if row["type"] == "income":
                stats.total_income = row["total"]
                stats.income_count = row["cnt"]
            elif row["type"] == "expense":
                stats.total_expense = row["total"]
                stats.expense_count = row["cnt"]
        return stats
