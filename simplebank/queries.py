"""Typed queries over the accounts, entries and transfers tables."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Protocol, Sequence

from simplebank.models import Account, Entry, Transfer

_SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL,
    balance INTEGER NOT NULL,
    currency TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    account_id INTEGER NOT NULL REFERENCES accounts (id),
    amount INTEGER NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS transfers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    from_account_id INTEGER NOT NULL REFERENCES accounts (id),
    to_account_id INTEGER NOT NULL REFERENCES accounts (id),
    amount INTEGER NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS accounts_owner_idx ON accounts (owner);
CREATE INDEX IF NOT EXISTS entries_account_id_idx ON entries (account_id);
CREATE INDEX IF NOT EXISTS transfers_from_idx ON transfers (from_account_id);
CREATE INDEX IF NOT EXISTS transfers_to_idx ON transfers (to_account_id);
CREATE INDEX IF NOT EXISTS transfers_from_to_idx
    ON transfers (from_account_id, to_account_id);
"""

_ACCOUNT_COLUMNS = "id, owner, balance, currency, created_at"
_ENTRY_COLUMNS = "id, account_id, amount, created_at"
_TRANSFER_COLUMNS = "id, from_account_id, to_account_id, amount, created_at"


class NoRowsError(LookupError):
    """Raised when a query that must return one row finds none."""

    def __init__(self, message: str = "sql: no rows in result set") -> None:
        super().__init__(message)


class _Executor(Protocol):
    def execute(self, sql: str, parameters: Any = ..., /) -> sqlite3.Cursor: ...


def create_schema(connection: sqlite3.Connection) -> None:
    """Create the bank tables and indexes on the connection if missing."""
    connection.execute("PRAGMA foreign_keys = ON")
    connection.executescript(_SCHEMA)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _account(row: Sequence[Any]) -> Account:
    id_, owner, balance, currency, created_at = row
    return Account(id_, owner, balance, currency, datetime.fromisoformat(created_at))


def _entry(row: Sequence[Any]) -> Entry:
    id_, account_id, amount, created_at = row
    return Entry(id_, account_id, amount, datetime.fromisoformat(created_at))


def _transfer(row: Sequence[Any]) -> Transfer:
    id_, from_id, to_id, amount, created_at = row
    return Transfer(id_, from_id, to_id, amount, datetime.fromisoformat(created_at))


class Queries:
    """Runs the bank's queries on a connection or an open transaction.

    Statements are not committed here; the caller owns transaction control.
    """

    def __init__(self, db: _Executor) -> None:
        self._db = db

    def with_tx(self, tx: _Executor) -> Queries:
        """Return queries that run on the given transaction."""
        return Queries(tx)

    def _one(self, sql: str, params: Sequence[Any]) -> Sequence[Any]:
        row = self._db.execute(sql, tuple(params)).fetchone()
        if row is None:
            raise NoRowsError()
        return row

    def _change(self, sql: str, params: Sequence[Any]) -> None:
        if self._db.execute(sql, tuple(params)).rowcount == 0:
            raise NoRowsError()

    # Accounts

    def create_account(self, owner: str, balance: int, currency: str) -> Account:
        cursor = self._db.execute(
            "INSERT INTO accounts (owner, balance, currency, created_at) "
            "VALUES (?, ?, ?, ?)",
            (owner, balance, currency, _now()),
        )
        return self.get_account(cursor.lastrowid)

    def get_account(self, account_id: int) -> Account:
        return _account(
            self._one(
                f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = ? LIMIT 1",
                (account_id,),
            )
        )

    def get_account_for_update(self, account_id: int) -> Account:
        """Fetch an account after taking the write lock that guards its row."""
        self._change(
            "UPDATE accounts SET balance = balance WHERE id = ?", (account_id,)
        )
        return self.get_account(account_id)

    def list_accounts(self, limit: int, offset: int) -> list[Account]:
        rows = self._db.execute(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts ORDER BY id LIMIT ? OFFSET ?",
            (limit, offset),
        ).fetchall()
        return [_account(row) for row in rows]

    def update_account(self, account_id: int, balance: int) -> Account:
        self._change(
            "UPDATE accounts SET balance = ? WHERE id = ?", (balance, account_id)
        )
        return self.get_account(account_id)

    def add_account_balance(self, account_id: int, amount: int) -> Account:
        self._change(
            "UPDATE accounts SET balance = balance + ? WHERE id = ?",
            (amount, account_id),
        )
        return self.get_account(account_id)

    def delete_account(self, account_id: int) -> None:
        self._db.execute("DELETE FROM accounts WHERE id = ?", (account_id,))

    # Entries

    def create_entry(self, account_id: int, amount: int) -> Entry:
        cursor = self._db.execute(
            "INSERT INTO entries (account_id, amount, created_at) VALUES (?, ?, ?)",
            (account_id, amount, _now()),
        )
        return self.get_entry(cursor.lastrowid)

    def get_entry(self, entry_id: int) -> Entry:
        return _entry(
            self._one(
                f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE id = ? LIMIT 1",
                (entry_id,),
            )
        )

    def list_entries(self, account_id: int, limit: int, offset: int) -> list[Entry]:
        rows = self._db.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE account_id = ? "
            "ORDER BY id LIMIT ? OFFSET ?",
            (account_id, limit, offset),
        ).fetchall()
        return [_entry(row) for row in rows]

    def update_entry(self, entry_id: int, amount: int) -> Entry:
        self._change("UPDATE entries SET amount = ? WHERE id = ?", (amount, entry_id))
        return self.get_entry(entry_id)

    def delete_entry(self, entry_id: int) -> None:
        self._db.execute("DELETE FROM entries WHERE id = ?", (entry_id,))

    # Transfers

    def create_transfer(
        self, from_account_id: int, to_account_id: int, amount: int
    ) -> Transfer:
        cursor = self._db.execute(
            "INSERT INTO transfers (from_account_id, to_account_id, amount, created_at) "
            "VALUES (?, ?, ?, ?)",
            (from_account_id, to_account_id, amount, _now()),
        )
        return self.get_transfer(cursor.lastrowid)

    def get_transfer(self, transfer_id: int) -> Transfer:
        return _transfer(
            self._one(
                f"SELECT {_TRANSFER_COLUMNS} FROM transfers WHERE id = ? LIMIT 1",
                (transfer_id,),
            )
        )

    def list_transfers(
        self, from_account_id: int, to_account_id: int, limit: int, offset: int
    ) -> list[Transfer]:
        rows = self._db.execute(
            f"SELECT {_TRANSFER_COLUMNS} FROM transfers "
            "WHERE from_account_id = ? OR to_account_id = ? "
            "ORDER BY id LIMIT ? OFFSET ?",
            (from_account_id, to_account_id, limit, offset),
        ).fetchall()
        return [_transfer(row) for row in rows]

    def update_transfer(self, transfer_id: int, amount: int) -> Transfer:
        self._change(
            "UPDATE transfers SET amount = ? WHERE id = ?", (amount, transfer_id)
        )
        return self.get_transfer(transfer_id)

    def delete_transfer(self, transfer_id: int) -> None:
        self._db.execute("DELETE FROM transfers WHERE id = ?", (transfer_id,))