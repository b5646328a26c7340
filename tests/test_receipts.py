"""Tests for the identity-keyed receipt store."""

import threading

import pytest

from courier.exceptions import ReceiptException
from courier.receipts import ReceiptStore


def test_returns_saved_receipt(email_factory):
    store = ReceiptStore()
    email = email_factory()

    store.save_receipt(email, '1234')

    assert store.receipt_for(email) == '1234'


def test_latest_receipt_wins(email_factory):
    store = ReceiptStore()
    email = email_factory()

    store.save_receipt(email, 'first')
    store.save_receipt(email, 'second')

    assert store.receipt_for(email) == 'second'


def test_structurally_identical_emails_are_independent(email_factory):
    store = ReceiptStore()
    delivered = email_factory()
    twin = email_factory()

    store.save_receipt(delivered, '1234')

    with pytest.raises(ReceiptException):
        store.receipt_for(twin)


def test_missing_receipt_raises(email_factory):
    with pytest.raises(ReceiptException, match='Unable to find receipt'):
        ReceiptStore().receipt_for(email_factory())


def test_concurrent_saves(email_factory):
    store = ReceiptStore()
    emails = [email_factory() for _ in range(50)]

    threads = [
        threading.Thread(target=store.save_receipt, args=(email, f'receipt-{index}'))
        for index, email in enumerate(emails)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) == 50
    assert store.receipt_for(emails[17]) == 'receipt-17'
