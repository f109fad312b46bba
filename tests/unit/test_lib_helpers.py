"""
Unit tests for the small shared helpers: rounding, ownership checks, keyed locks,
UTC normalization and pagination bounds.
"""
import threading
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from src.lib.clock import as_utc
from src.lib.exceptions import ForbiddenException, ValidationException
from src.lib.locks import KeyedLock
from src.lib.numbers import quantize2, safe_average, safe_percentage
from src.lib.pagination import resolve_page
from src.lib.permissions import is_party, require_party


# Rounding

@pytest.mark.unit
def test_safe_average_rounds_half_up():
    assert safe_average(14, 3) == 4.67
    assert safe_average(9, 2) == 4.5
    assert safe_average(Decimal("0.125") * 8, 8) == 0.13


@pytest.mark.unit
def test_safe_average_with_no_values():
    assert safe_average(0, 0) == 0.0


@pytest.mark.unit
def test_safe_percentage():
    assert safe_percentage(1, 3) == 33.33
    assert safe_percentage(2, 3) == 66.67
    assert safe_percentage(5, 0) == 0.0


@pytest.mark.unit
def test_quantize2():
    assert quantize2(Decimal("2.675")) == Decimal("2.68")


# Ownership

@pytest.mark.unit
def test_is_party():
    customer, owner = uuid4(), uuid4()

    assert is_party(customer, customer, owner)
    assert is_party(owner, customer, owner)
    assert not is_party(uuid4(), customer, owner)
    assert not is_party(None, customer, owner)
    assert not is_party(customer, None)


@pytest.mark.unit
def test_require_party_raises_forbidden():
    with pytest.raises(ForbiddenException) as exc_info:
        require_party(uuid4(), uuid4(), message="Only the business owner can respond to reviews")

    assert exc_info.value.message == "Only the business owner can respond to reviews"


# Keyed lock

@pytest.mark.unit
def test_keyed_lock_serializes_same_key():
    locks = KeyedLock()
    inside = []
    overlaps = []

    def worker():
        with locks.hold("business-1"):
            if inside:
                overlaps.append(True)
            inside.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlaps == []
    assert locks.active_keys() == 0


@pytest.mark.unit
def test_keyed_lock_does_not_block_other_keys():
    locks = KeyedLock()

    with locks.hold("a"):
        acquired = threading.Event()

        def other():
            with locks.hold("b"):
                acquired.set()

        t = threading.Thread(target=other)
        t.start()
        assert acquired.wait(timeout=1)
        t.join()
        assert locks.active_keys() == 1


# Clock

@pytest.mark.unit
def test_as_utc():
    naive = datetime(2026, 1, 15, 23, 30)
    lagos = datetime(2026, 1, 16, 0, 30, tzinfo=timezone(timedelta(hours=1)))

    assert as_utc(naive) == datetime(2026, 1, 15, 23, 30, tzinfo=timezone.utc)
    assert as_utc(lagos).hour == 23
    assert as_utc(None) is None


# Pagination

@pytest.mark.unit
def test_resolve_page_defaults():
    assert resolve_page(None, None) == (1, 20)


@pytest.mark.unit
@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101)])
def test_resolve_page_rejects_out_of_bounds(page, limit):
    with pytest.raises(ValidationException):
        resolve_page(page, limit)
