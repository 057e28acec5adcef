"""Tests for SlotPool growth, transaction-boundary resets, and CallState resets."""

import threading

import pytest

from txn_fetch.models import Method
from txn_fetch.pool import DEFAULT_INITIAL_SLOTS, SlotPool
from txn_fetch.state import CallState


def _dirty(state: CallState) -> None:
    """Fill every field of a record with non-default values."""
    state.method = Method.POST
    state.custom_method = "PURGE"
    state.url = "http://example/x"
    state.post_body = "a=1"
    state.timeout_ms = 500
    state.connect_timeout_ms = 100
    state.verify_peer = True
    state.verify_host = True
    state.ca_file = "/etc/ca.pem"
    state.ca_path = "/etc/certs"
    state.proxy = "http://proxy:3128"
    state.request_headers.add("X-A: 1")
    state.response_headers.feed(b"X-B: 2")
    state.body.extend(b"payload")
    state.status = 503
    state.error = "boom"


def _assert_cleared(state: CallState) -> None:
    assert state.method is Method.UNSET
    assert state.custom_method is None
    assert state.url is None
    assert state.post_body is None
    assert state.timeout_ms == -1
    assert state.connect_timeout_ms == -1
    assert state.verify_peer is False
    assert state.verify_host is False
    assert state.ca_file is None
    assert state.ca_path is None
    assert state.proxy is None
    assert len(state.request_headers) == 0
    assert len(state.response_headers) == 0
    assert state.body == bytearray()
    assert state.status == 0
    assert state.error is None


class TestCallStateResets:
    def test_clear_resets_everything(self) -> None:
        state = CallState()
        _dirty(state)
        body = state.body
        state.clear()
        _assert_cleared(state)
        assert state.xid is None
        # Reset in place, no new buffer
        assert state.body is body

    def test_clear_fetch_state_keeps_configuration(self) -> None:
        state = CallState()
        _dirty(state)
        state.clear_fetch_state()
        assert state.method is Method.UNSET
        assert len(state.response_headers) == 0
        assert state.body == bytearray()
        # Configuration survives until a transaction-boundary reset
        assert state.timeout_ms == 500
        assert state.verify_peer is True
        assert state.proxy == "http://proxy:3128"
        assert state.request_headers.lines() == ("X-A: 1",)

    def test_body_text_replaces_invalid_utf8(self) -> None:
        state = CallState()
        state.body.extend(b"ok\xff")
        assert state.body_text() == "ok\ufffd"


class TestSlotPoolAcquire:
    def test_default_capacity(self) -> None:
        assert SlotPool().capacity == DEFAULT_INITIAL_SLOTS == 256

    def test_acquire_stores_xid(self) -> None:
        pool = SlotPool(initial_slots=4)
        state = pool.acquire(1, 100)
        assert state is not None
        assert state.xid == 100

    def test_same_transaction_keeps_data(self) -> None:
        pool = SlotPool(initial_slots=4)
        state = pool.acquire(2, 100)
        state.status = 200
        assert pool.acquire(2, 100).status == 200

    def test_new_transaction_resets_record(self) -> None:
        pool = SlotPool(initial_slots=4)
        state = pool.acquire(3, 100)
        _dirty(state)
        again = pool.acquire(3, 101)
        assert again is state
        _assert_cleared(again)
        assert again.xid == 101

    def test_slots_are_independent(self) -> None:
        pool = SlotPool(initial_slots=4)
        a = pool.acquire(0, 1)
        b = pool.acquire(1, 1)
        assert a is not b
        a.status = 200
        assert b.status == 0

    def test_negative_slot_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            SlotPool().acquire(-1, 1)

    def test_invalid_initial_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            SlotPool(initial_slots=0)

    def test_reset_clears_but_keeps_owner(self) -> None:
        pool = SlotPool(initial_slots=4)
        state = pool.acquire(0, 7)
        _dirty(state)
        pool.reset(0, 7)
        _assert_cleared(state)
        assert state.xid == 7


class TestSlotPoolGrowth:
    def test_grows_by_doubling(self) -> None:
        pool = SlotPool(initial_slots=4)
        pool.acquire(4, 1)
        assert pool.capacity == 8

    def test_grows_repeatedly_until_slot_fits(self) -> None:
        pool = SlotPool(initial_slots=4)
        pool.acquire(40, 1)
        assert pool.capacity == 64

    def test_existing_records_survive_growth(self) -> None:
        pool = SlotPool(initial_slots=2)
        state = pool.acquire(1, 9)
        state.status = 204
        pool.acquire(100, 1)
        assert pool.acquire(1, 9) is state
        assert state.status == 204

    def test_new_slots_start_cleared(self) -> None:
        pool = SlotPool(initial_slots=2)
        state = pool.acquire(5, 1)
        _assert_cleared(state)

    def test_concurrent_acquire_one_record_per_slot(self) -> None:
        """Many threads growing the pool at once still get one record per slot."""
        pool = SlotPool(initial_slots=1)
        slots = list(range(200))
        results: dict[int, CallState] = {}
        results_lock = threading.Lock()
        barrier = threading.Barrier(len(slots))

        def worker(slot: int) -> None:
            barrier.wait()
            state = pool.acquire(slot, slot * 10)
            with results_lock:
                results[slot] = state

        threads = [threading.Thread(target=worker, args=(s,)) for s in slots]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert pool.capacity == 256
        assert len({id(state) for state in results.values()}) == len(slots)
        for slot, state in results.items():
            assert state.xid == slot * 10
            assert pool.acquire(slot, slot * 10) is state
