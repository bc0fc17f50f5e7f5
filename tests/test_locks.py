"""
Tests for per-document locks.
"""
import threading

import pytest

from ledgerpost.services.locks import DocumentLocks


def test_hold_releases_entry():
    locks = DocumentLocks()

    with locks.hold("invoice", "inv-1"):
        assert locks.active_count() == 1

    assert locks.active_count() == 0


def test_entry_released_when_body_raises():
    locks = DocumentLocks()

    with pytest.raises(RuntimeError):
        with locks.hold("invoice", "inv-1"):
            raise RuntimeError("boom")

    assert locks.active_count() == 0
    with locks.hold("invoice", "inv-1"):
        pass


def test_kinds_do_not_share_locks():
    locks = DocumentLocks()

    with locks.hold("invoice", "doc-1"):
        with locks.hold("bill", "doc-1"):
            assert locks.active_count() == 2


def test_waiter_blocks_until_release():
    locks = DocumentLocks()
    order = []
    entered = threading.Event()
    release = threading.Event()

    def first():
        with locks.hold("invoice", "inv-1"):
            entered.set()
            release.wait(timeout=5)
            order.append("first")

    def second():
        with locks.hold("invoice", "inv-1"):
            order.append("second")

    t1 = threading.Thread(target=first)
    t1.start()
    assert entered.wait(timeout=5)
    t2 = threading.Thread(target=second)
    t2.start()
    t2.join(timeout=0.05)
    assert order == []
    release.set()
    t1.join(timeout=5)
    t2.join(timeout=5)

    assert order == ["first", "second"]
    assert locks.active_count() == 0


def test_hold_many_deduplicates_and_releases():
    locks = DocumentLocks()

    with locks.hold_many("invoice", ["inv-2", "inv-1", "inv-2"]):
        assert locks.active_count() == 2

    assert locks.active_count() == 0


def test_hold_many_overlapping_sets_do_not_deadlock():
    locks = DocumentLocks()
    done = []

    def pay(ids):
        for _ in range(50):
            with locks.hold_many("invoice", ids):
                pass
        done.append(ids)

    threads = [
        threading.Thread(target=pay, args=(["inv-1", "inv-2"],)),
        threading.Thread(target=pay, args=(["inv-2", "inv-1"],)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(done) == 2
    assert locks.active_count() == 0
