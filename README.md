# simplebank

A small banking ledger kept in an SQLite database. It stores three kinds of
record:

- **accounts**: an owner, a balance and a currency;
- **entries**: one change to one account's balance (positive or negative);
- **transfers**: money moved from one account to another.

A transfer between two accounts is written in one database transaction. It
creates the transfer record and one entry for each side, then updates both
balances. Balances are always updated in ascending account-id order.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Usage

### Setting up a database

```python
import sqlite3

from simplebank.queries import Queries, create_schema

connection = sqlite3.connect("bank.db")
create_schema(connection)
queries = Queries(connection)
```

`create_schema` turns on foreign-key checks for the connection and creates the
`accounts`, `entries` and `transfers` tables and their indexes if they are
missing.

`Queries` runs statements on whatever it was given and never commits; with a
plain `sqlite3` connection, call `connection.commit()` yourself, or use
`Store` (below), which puts the connection in autocommit mode.

### Accounts, entries and transfers

```python
alice = queries.create_account(owner="alice", balance=100, currency="USD")
bob = queries.create_account(owner="bob", balance=50, currency="USD")

queries.get_account(alice.id)
queries.list_accounts(limit=5, offset=0)
queries.update_account(alice.id, balance=120)
queries.add_account_balance(alice.id, amount=-20)

entry = queries.create_entry(account_id=alice.id, amount=-10)
queries.list_entries(account_id=alice.id, limit=10, offset=0)
queries.update_entry(entry.id, amount=-15)

transfer = queries.create_transfer(alice.id, bob.id, amount=10)
queries.list_transfers(alice.id, alice.id, limit=10, offset=0)
queries.update_transfer(transfer.id, amount=12)
```

Lists are ordered by id. `list_transfers` returns transfers whose
`from_account_id` matches the first id or whose `to_account_id` matches the
second.

Each record gets a creation time in UTC, returned as a timezone-aware
`datetime`.

Fetching, updating or adding to a record that does not exist raises
`NoRowsError` (a `LookupError`, with the message
`sql: no rows in result set`). Deleting a record that does not exist does
nothing.

```python
from simplebank.queries import NoRowsError

carol = queries.create_account(owner="carol", balance=0, currency="EUR")
queries.delete_account(carol.id)
try:
    queries.get_account(carol.id)
except NoRowsError:
    print("no such account")
```

An account that entries or transfers refer to cannot be deleted while
foreign-key checks are on; SQLite raises `sqlite3.IntegrityError`.

`Account`, `Entry` and `Transfer` in `simplebank.models` are the frozen
dataclasses these methods return.

### Transferring money

`Store` offers everything `Queries` does, plus transactions:

```python
from simplebank.store import Store

store = Store(connection)
result = store.transfer_tx(from_account_id=alice.id, to_account_id=bob.id, amount=10)

result.transfer       # the Transfer record
result.from_entry     # entry of -10 on alice's account
result.to_entry       # entry of +10 on bob's account
result.from_account   # alice's account after the transfer
result.to_account     # bob's account after the transfer
```

To run your own group of queries atomically, use `Store.transaction()`. It
yields a `Queries` bound to the transaction, commits when the block ends
normally and rolls back if it raises, raising the exception again:

```python
with store.transaction() as tx:
    tx.add_account_balance(alice.id, amount=-5)
    tx.create_entry(account_id=alice.id, amount=-5)
```

A `Store` runs one transaction at a time. To share it between threads, open
the connection with `sqlite3.connect(..., check_same_thread=False)`.

### Random test data

`simplebank.random` makes sample values for fixtures: `random_int(minimum, maximum)`
(both ends included), `random_string(n)` (lower-case letters),
`random_owner()` (six letters), `random_money()` (0 to 1000) and
`random_currency()` (one of USD, EUR, CAD).

## What it does not do

This is a library only. It has no command-line program and no network
service; data lives in an SQLite database that you open and pass in. It does
not check currencies, signs of amounts or whether a balance goes below zero.