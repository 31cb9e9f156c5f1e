import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .database import Base
from .store import ConflictError, Message, MessageStore, NotFoundError, StoreError


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite hands back naive values; they were written as UTC
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLStore(MessageStore):
    """MessageStore backed by a relational database through SQLAlchemy.

    The engine's connection pool is the only state shared between requests.
    """

    def __init__(self, engine: Engine, logger: Optional[logging.Logger] = None):
        self.engine = engine
        self.logger = logger or logging.getLogger(__name__)

    def bootstrap(self) -> None:
        # tables and indexes go in together or not at all
        try:
            with self.engine.begin() as conn:
                Base.metadata.create_all(conn, checkfirst=False)
        except SQLAlchemyError as e:
            self.logger.error("cannot bootstrap schema: %s", e)
            raise StoreError(f"bootstrap failed: {e}") from e
        self.logger.info("schema created")

    def find_recipient(self, username: str) -> str:
        try:
            with Session(self.engine) as db:
                user_id = (
                    db.query(models.User.id)
                    .filter(models.User.username == username)
                    .scalar()
                )
        except SQLAlchemyError as e:
            self.logger.error("cannot look up user %r: %s", username, e)
            raise StoreError(str(e)) from e
        if user_id is None:
            raise NotFoundError(f"user {username!r} not found")
        return user_id

    def list_messages(self, user_id: str) -> List[Message]:
        # summary view: the payload stays in the database
        try:
            with Session(self.engine) as db:
                rows = (
                    db.query(models.Message.id, models.User.username, models.Message.sent_at)
                    .join(models.User, models.Message.sender == models.User.id)
                    .filter(models.Message.recipient == user_id)
                    .order_by(models.Message.id)
                    .all()
                )
        except SQLAlchemyError as e:
            self.logger.error("cannot list messages for %r: %s", user_id, e)
            raise StoreError(str(e)) from e
        return [
            Message(id=row.id, sender=row.username, recipient=user_id, sent_at=_to_utc(row.sent_at))
            for row in rows
        ]

    def get_message(self, message_id: int) -> Message:
        try:
            with Session(self.engine) as db:
                row = (
                    db.query(
                        models.Message.id,
                        models.User.username,
                        models.Message.recipient,
                        models.Message.payload,
                        models.Message.sent_at,
                    )
                    .join(models.User, models.Message.sender == models.User.id)
                    .filter(models.Message.id == message_id)
                    .first()
                )
        except SQLAlchemyError as e:
            self.logger.error("cannot fetch message %s: %s", message_id, e)
            raise StoreError(str(e)) from e
        if row is None:
            raise NotFoundError(f"message {message_id} not found")
        return Message(
            id=row.id,
            sender=row.username,
            recipient=row.recipient,
            payload=row.payload,
            sent_at=_to_utc(row.sent_at),
        )

    def save_messages(self, *messages: Message) -> None:
        if not messages:
            return
        now = datetime.now(timezone.utc)
        values = [
            {
                "sender": m.sender,
                "recipient": m.recipient,
                "payload": m.payload,
                "sent_at": _to_utc(m.sent_at) or now,
            }
            for m in messages
        ]
        # one multi-row INSERT ... VALUES (...), (...) statement
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(models.Message).values(values))
        except SQLAlchemyError as e:
            self.logger.error("cannot save %d message(s): %s", len(values), e)
            raise StoreError(str(e)) from e

    def register_user(self, user_id: str, username: str) -> None:
        try:
            with Session(self.engine) as db:
                db.add(models.User(id=user_id, username=username))
                db.commit()
        except IntegrityError as e:
            self.logger.debug("user %r / %r already registered", user_id, username)
            raise ConflictError(f"user {username!r} already exists") from e
        except SQLAlchemyError as e:
            self.logger.error("cannot register user %r: %s", username, e)
            raise StoreError(str(e)) from e
