import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from simplebank.queries import NoRowsError, create_schema
from simplebank.random import random_currency, random_money, random_owner
from simplebank.store import Store, TransferTxResult


@pytest.fixture
def store():
    connection = sqlite3.connect(":memory:", check_same_thread=False)
    create_schema(connection)
    yield Store(connection)
    connection.close()


def create_random_account(store):
    owner, balance, currency = random_owner(), random_money(), random_currency()
    account = store.create_account(owner, balance, currency)
    assert account.owner == owner
    assert account.balance == balance
    assert account.currency == currency
    assert account.id > 0
    return account


def test_transfer_tx(store):
    account1 = create_random_account(store)
    account2 = create_random_account(store)
    n = 5
    amount = 10

    with ThreadPoolExecutor(max_workers=n) as pool:
        futures = [
            pool.submit(store.transfer_tx, account1.id, account2.id, amount)
            for _ in range(n)
        ]
        results = [future.result() for future in futures]

    existed = set()
    for result in results:
        assert isinstance(result, TransferTxResult)
        transfer = result.transfer
        assert transfer.from_account_id == account1.id
        assert transfer.to_account_id == account2.id
        assert transfer.amount == amount
        assert transfer.id > 0
        assert isinstance(transfer.created_at, datetime)
        assert store.get_transfer(transfer.id) == transfer

        from_entry = result.from_entry
        assert from_entry.account_id == account1.id
        assert from_entry.amount == -amount
        assert from_entry.id > 0
        assert store.get_entry(from_entry.id) == from_entry

        to_entry = result.to_entry
        assert to_entry.account_id == account2.id
        assert to_entry.amount == amount
        assert to_entry.id > 0
        assert store.get_entry(to_entry.id) == to_entry

        from_account = result.from_account
        assert from_account.id == account1.id
        to_account = result.to_account
        assert to_account.id == account2.id

        diff1 = account1.balance - from_account.balance
        diff2 = to_account.balance - account2.balance
        assert diff1 == diff2
        assert diff1 > 0
        assert diff1 % amount == 0
        k = diff1 // amount
        assert 1 <= k <= n
        assert k not in existed
        existed.add(k)

    updated1 = store.get_account(account1.id)
    updated2 = store.get_account(account2.id)
    assert updated1.balance == account1.balance - n * amount
    assert updated2.balance == account2.balance + n * amount


def test_transfer_tx_deadlock(store):
    account1 = create_random_account(store)
    account2 = create_random_account(store)
    n = 10
    amount = 10

    pairs = [
        (account2.id, account1.id) if i % 2 == 1 else (account1.id, account2.id)
        for i in range(n)
    ]
    with ThreadPoolExecutor(max_workers=n) as pool:
        futures = [
            pool.submit(store.transfer_tx, from_id, to_id, amount)
            for from_id, to_id in pairs
        ]
        results = [future.result() for future in futures]

    assert len(results) == n
    assert store.get_account(account1.id).balance == account1.balance
    assert store.get_account(account2.id).balance == account2.balance


def test_transfer_tx_reversed_order_assigns_accounts(store):
    low = create_random_account(store)
    high = create_random_account(store)
    result = store.transfer_tx(high.id, low.id, 7)
    assert result.from_account.id == high.id
    assert result.to_account.id == low.id
    assert result.from_account.balance == high.balance - 7
    assert result.to_account.balance == low.balance + 7


def test_transfer_to_missing_account_rolls_back(store):
    account = create_random_account(store)
    with pytest.raises(sqlite3.IntegrityError):
        store.transfer_tx(account.id, account.id + 1000, 10)
    assert store.list_transfers(account.id, account.id, 10, 0) == []
    assert store.list_entries(account.id, 10, 0) == []
    assert store.get_account(account.id).balance == account.balance


def test_transaction_rolls_back_on_error(store):
    account = create_random_account(store)
    with pytest.raises(ValueError, match="boom"):
        with store.transaction() as q:
            q.update_account(account.id, account.balance + 500)
            raise ValueError("boom")
    assert store.get_account(account.id).balance == account.balance


def test_transaction_commits(store):
    account = create_random_account(store)
    with store.transaction() as q:
        q.update_account(account.id, 12345)
    assert store.get_account(account.id).balance == 12345


def test_store_queries_outside_transaction(store):
    account = create_random_account(store)
    store.delete_account(account.id)
    with pytest.raises(NoRowsError, match="sql: no rows in result set"):
        store.get_account(account.id)


def test_transfer_is_visible_to_other_connections(tmp_path):
    path = tmp_path / "bank.db"
    connection = sqlite3.connect(path, check_same_thread=False)
    create_schema(connection)
    store = Store(connection)
    account1 = create_random_account(store)
    account2 = create_random_account(store)
    store.transfer_tx(account1.id, account2.id, 25)

    other = sqlite3.connect(path)
    try:
        balances = dict(other.execute("SELECT id, balance FROM accounts").fetchall())
        count = other.execute("SELECT COUNT(*) FROM transfers").fetchone()[0]
    finally:
        other.close()
        connection.close()
    assert balances[account1.id] == account1.balance - 25
    assert balances[account2.id] == account2.balance + 25
    assert count == 1