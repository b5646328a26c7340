"""
Receipt Store

Keeps the provider-issued message ID of the latest successful delivery for
each Email instance. Keys are the email objects themselves, which hash by
identity, so structurally identical emails get independent receipts.
"""

import threading
import weakref

from courier.exceptions import ReceiptException
from courier.models import Email


class ReceiptStore:
    """Thread-safe identity-keyed map from Email to receipt."""

    def __init__(self):
        self._receipts: 'weakref.WeakKeyDictionary[Email, str]' = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()

    def save_receipt(self, email: Email, receipt: str) -> None:
        with self._lock:
            self._receipts[email] = receipt

    def receipt_for(self, email: Email) -> str:
        with self._lock:
            receipt = self._receipts.get(email)

        if not receipt:
            raise ReceiptException()

        return receipt

    def __len__(self) -> int:
        with self._lock:
            return len(self._receipts)
