"""
Abstract inbox store interface.

The inbox is an append/update-only audit log of inbound and outbound
messages. The relay depends only on this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from inbox.types import MessageRecord, StoreReadResponse, StoreWriteResponse


class InboxStore(ABC):
    """
    Abstract inbox boundary.

    Key properties:
    - Operations return response objects, never raise
    - Rows are never deleted
    - An inbound message_id is unique (conflict on a second insert)
    """

    @abstractmethod
    def find_by_message_id(self, message_id: str) -> StoreReadResponse:
        """Look up any row carrying this provider message id."""
        raise NotImplementedError

    @abstractmethod
    def latest_inbound(self, phone: str) -> StoreReadResponse:
        """Most recent inbound row for a phone, by received_at descending."""
        raise NotImplementedError

    @abstractmethod
    def insert(self, record: MessageRecord) -> StoreWriteResponse:
        """
        Append a row.

        Returns:
            StoreWriteResponse whose record carries the store-assigned id.
            status="conflict" when an inbound message_id already exists.
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, record_id: Any, changes: Dict[str, Any]) -> StoreWriteResponse:
        """Apply column changes to an existing row."""
        raise NotImplementedError
