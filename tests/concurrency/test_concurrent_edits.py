"""
Concurrent load-modify-save against the same upload.

Both workers are held at a Barrier after loading, so each one saves against
the same version.  Exactly one save wins; the other raises
ConcurrentModificationError and its edit is not applied.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from uuid import uuid4

import pytest

from finance_statements.domain.types import ImportStatus
from finance_statements.exceptions import ConcurrentModificationError, InvalidTransitionError
from finance_statements.services.import_coordinator import ImportCoordinator, retry_on_conflict

pytestmark = pytest.mark.concurrency


class BarrierStore:
    """Delegating store whose first ``parties`` loads wait for each other."""

    def __init__(self, inner, parties: int):
        self._inner = inner
        self._barrier = threading.Barrier(parties, timeout=10)
        self._remaining = parties
        self._lock = threading.Lock()

    def get_by_id(self, upload_id, user_id):
        upload = self._inner.get_by_id(upload_id, user_id)
        with self._lock:
            gated = self._remaining > 0
            self._remaining -= 1
        if gated:
            self._barrier.wait()
        return upload

    def get_by_id_with_transactions(self, upload_id):
        return self._inner.get_by_id_with_transactions(upload_id)

    def get_by_user_id(self, user_id):
        return self._inner.get_by_user_id(user_id)

    def save(self, upload):
        self._inner.save(upload)


def _run_both(first, second) -> list[BaseException | None]:
    outcomes: list[BaseException | None] = []
    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(first), pool.submit(second)]
        for future in futures:
            outcomes.append(future.exception(timeout=30))
    return outcomes


def test_concurrent_category_edits(store, publisher, upload_in_review, user_id):
    racing = ImportCoordinator(BarrierStore(store, parties=2), publisher)
    txn_id = upload_in_review.transactions[0].transaction_id
    category_a, category_b = uuid4(), uuid4()

    outcomes = _run_both(
        lambda: racing.set_confirmed_category(
            upload_in_review.upload_id, user_id, txn_id, category_a,
        ),
        lambda: racing.set_confirmed_category(
            upload_in_review.upload_id, user_id, txn_id, category_b,
        ),
    )

    errors = [o for o in outcomes if o is not None]
    assert len(errors) == 1
    assert isinstance(errors[0], ConcurrentModificationError)

    winner = category_a if outcomes[0] is None else category_b
    stored = store.get_by_id(upload_in_review.upload_id, user_id)
    assert stored.get_transaction(txn_id).confirmed_category_id == winner
    assert stored.version == upload_in_review.version + 1


def test_confirm_races_cancel(store, publisher, upload_in_review, user_id):
    racing = ImportCoordinator(BarrierStore(store, parties=2), publisher)

    outcomes = _run_both(
        lambda: racing.confirm(upload_in_review.upload_id, user_id),
        lambda: racing.cancel(upload_in_review.upload_id, user_id),
    )

    errors = [o for o in outcomes if o is not None]
    assert len(errors) == 1
    assert isinstance(errors[0], ConcurrentModificationError)

    stored = store.get_by_id(upload_in_review.upload_id, user_id)
    if outcomes[0] is None:
        assert stored.status == ImportStatus.CONFIRMED
        assert len(publisher.events) == 1
    else:
        assert stored.status == ImportStatus.CANCELLED
        assert publisher.events == []


def test_loser_retry_sees_new_state(store, publisher, upload_in_review, user_id):
    """A retried confirm reloads and is judged on the winner's state."""
    racing = ImportCoordinator(BarrierStore(store, parties=2), publisher)

    outcomes = _run_both(
        lambda: retry_on_conflict(
            lambda: racing.confirm(upload_in_review.upload_id, user_id), attempts=2,
        ),
        lambda: racing.cancel(upload_in_review.upload_id, user_id),
    )

    stored = store.get_by_id(upload_in_review.upload_id, user_id)
    if outcomes[1] is None:
        assert stored.status == ImportStatus.CANCELLED
        assert isinstance(outcomes[0], InvalidTransitionError)
        assert publisher.events == []
    else:
        assert isinstance(outcomes[1], ConcurrentModificationError)
        assert stored.status == ImportStatus.CONFIRMED
        assert len(publisher.events) == 1
