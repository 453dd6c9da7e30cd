"""Store: queries plus transactions that move money between accounts."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from simplebank.models import Account, Entry, Transfer
from simplebank.queries import Queries

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferTxResult:
    """Everything a transfer transaction created or changed."""

    transfer: Transfer
    from_account: Account
    to_account: Account
    from_entry: Entry
    to_entry: Entry


class _LockedExecutor:
    """Runs statements on a connection while holding the store's lock."""

    def __init__(self, connection: sqlite3.Connection, lock: threading.Lock) -> None:
        self._connection = connection
        self._lock = lock

    def execute(self, sql: str, parameters: Any = (), /) -> sqlite3.Cursor:
        with self._lock:
            return self._connection.execute(sql, parameters)


class Store(Queries):
    """Runs single queries and whole transactions on one database connection.

    The connection is switched to autocommit mode, so statements run outside
    :meth:`transaction` take effect at once. Transactions are serialised, which
    makes the store safe to share between threads when the connection was
    opened with ``check_same_thread=False``.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        connection.isolation_level = None
        self._connection = connection
        self._lock = threading.Lock()
        super().__init__(_LockedExecutor(connection, self._lock))

    @contextmanager
    def transaction(self) -> Iterator[Queries]:
        """Open a transaction and yield queries bound to it.

        The transaction commits when the block ends normally and rolls back
        when it raises; the exception is then raised again.
        """
        with self._lock:
            self._connection.execute("BEGIN IMMEDIATE")
            try:
                yield Queries(self._connection)
            except BaseException as err:
                try:
                    self._connection.execute("ROLLBACK")
                except sqlite3.Error as rb_err:
                    raise RuntimeError(f"tx err: {err}, rb err: {rb_err}") from err
                raise
            self._connection.execute("COMMIT")

    def transfer_tx(
        self, from_account_id: int, to_account_id: int, amount: int
    ) -> TransferTxResult:
        """Move amount from one account to another in a single transaction.

        Records the transfer, one entry for each account and updates both
        balances. Balances are always updated in order of account id so that
        opposite transfers cannot deadlock.
        """
        with self.transaction() as q:
            _log.debug("create transfer")
            transfer = q.create_transfer(from_account_id, to_account_id, amount)
            from_entry = q.create_entry(from_account_id, -amount)
            to_entry = q.create_entry(to_account_id, amount)

            if from_account_id < to_account_id:
                from_account, to_account = _add_money(
                    q, from_account_id, -amount, to_account_id, amount
                )
            else:
                to_account, from_account = _add_money(
                    q, to_account_id, amount, from_account_id, -amount
                )

        return TransferTxResult(
            transfer=transfer,
            from_account=from_account,
            to_account=to_account,
            from_entry=from_entry,
            to_entry=to_entry,
        )


def _add_money(
    q: Queries, account_id1: int, amount1: int, account_id2: int, amount2: int
) -> tuple[Account, Account]:
    account1 = q.add_account_balance(account_id1, amount1)
    account2 = q.add_account_balance(account_id2, amount2)
    return account1, account2