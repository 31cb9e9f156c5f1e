from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


class StoreError(Exception):
    """Raised when the underlying storage fails."""


class NotFoundError(StoreError):
    """Raised when a lookup by username or message id matches nothing."""


class ConflictError(StoreError):
    """Raised when a user with the same id or username already exists."""


@dataclass
class Message:
    """A message as seen by callers of the store.

    ``sender`` is the sender's user id when saving and the sender's username
    when reading back. ``payload`` is left empty by ``list_messages``.
    """

    sender: str
    recipient: str = ""
    payload: str = ""
    sent_at: Optional[datetime] = None
    id: Optional[int] = None


class MessageStore(ABC):
    """Storage for users and the messages they exchange."""

    @abstractmethod
    def bootstrap(self) -> None:
        """Create the schema. Must run once, against an empty database."""

    @abstractmethod
    def find_recipient(self, username: str) -> str:
        """Return the user id registered under ``username``."""

    @abstractmethod
    def list_messages(self, user_id: str) -> List[Message]:
        """Return the inbox of ``user_id`` in arrival order, without payloads."""

    @abstractmethod
    def get_message(self, message_id: int) -> Message:
        """Return a single message, payload included."""

    @abstractmethod
    def save_messages(self, *messages: Message) -> None:
        """Insert all ``messages`` at once.

        Recipient and timestamp come from each record; a record without
        ``sent_at`` is stamped with the insertion time.
        """

    def save_message(self, user_id: str, message: Message) -> None:
        """Deliver ``message`` to ``user_id``, stamped with the current time."""
        self.save_messages(
            Message(sender=message.sender, recipient=user_id, payload=message.payload)
        )

    @abstractmethod
    def register_user(self, user_id: str, username: str) -> None:
        """Add a user; raises ConflictError when the id or username is taken."""
