"""Random values for accounts, used to seed test data."""

from __future__ import annotations

import random
import string

CURRENCIES: tuple[str, ...] = ("USD", "EUR", "CAD")
OWNER_NAME_LENGTH = 6
MAX_MONEY = 1000


def random_int(minimum: int, maximum: int) -> int:
    """Return a random integer between minimum and maximum, both included."""
    return random.randint(minimum, maximum)


def random_string(n: int) -> str:
    """Return a string of n random lower-case ASCII letters."""
    return "".join(random.choices(string.ascii_lowercase, k=n))


def random_owner() -> str:
    """Return a random owner name."""
    return random_string(OWNER_NAME_LENGTH)


def random_money() -> int:
    """Return a random amount of money between 0 and 1000."""
    return random_int(0, MAX_MONEY)


def random_currency() -> str:
    """Return one of the supported currency codes at random."""
    return random.choice(CURRENCIES)