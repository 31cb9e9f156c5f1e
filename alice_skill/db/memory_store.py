import threading
from datetime import datetime, timezone
from typing import Dict, List

from .store import ConflictError, Message, MessageStore, NotFoundError, StoreError


class MemoryStore(MessageStore):
    """Process-local MessageStore. Nothing survives a restart."""

    def __init__(self):
        self._lock = threading.Lock()
        self._bootstrapped = False
        self._users: Dict[str, str] = {}  # id -> username
        self._messages: List[Message] = []

    def bootstrap(self) -> None:
        with self._lock:
            if self._bootstrapped:
                raise StoreError("schema already exists")
            self._bootstrapped = True

    def _require_schema(self) -> None:
        if not self._bootstrapped:
            raise StoreError("schema does not exist, run bootstrap first")

    def find_recipient(self, username: str) -> str:
        with self._lock:
            self._require_schema()
            for user_id, name in self._users.items():
                if name == username:
                    return user_id
        raise NotFoundError(f"user {username!r} not found")

    def list_messages(self, user_id: str) -> List[Message]:
        with self._lock:
            self._require_schema()
            # inner join semantics: unknown senders are skipped
            return [
                Message(id=m.id, sender=self._users[m.sender], recipient=user_id, sent_at=m.sent_at)
                for m in self._messages
                if m.recipient == user_id and m.sender in self._users
            ]

    def get_message(self, message_id: int) -> Message:
        with self._lock:
            self._require_schema()
            for m in self._messages:
                if m.id == message_id and m.sender in self._users:
                    return Message(
                        id=m.id,
                        sender=self._users[m.sender],
                        recipient=m.recipient,
                        payload=m.payload,
                        sent_at=m.sent_at,
                    )
        raise NotFoundError(f"message {message_id} not found")

    def save_messages(self, *messages: Message) -> None:
        now = datetime.now(timezone.utc)
        with self._lock:
            self._require_schema()
            for m in messages:
                self._messages.append(
                    Message(
                        id=len(self._messages) + 1,
                        sender=m.sender,
                        recipient=m.recipient,
                        payload=m.payload,
                        sent_at=m.sent_at or now,
                    )
                )

    def register_user(self, user_id: str, username: str) -> None:
        with self._lock:
            self._require_schema()
            if user_id in self._users or username in self._users.values():
                raise ConflictError(f"user {username!r} already exists")
            self._users[user_id] = username
