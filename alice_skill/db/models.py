from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from .database import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("sender_idx", "username", unique=True),)

    id = Column(String(128), primary_key=True)
    username = Column(String(128))


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (Index("recipient_idx", "recipient"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender = Column(String(128))
    recipient = Column(String(128))
    payload = Column(Text)
    sent_at = Column(DateTime(timezone=True))
    # reserved: nothing marks messages as read yet
    read_at = Column(DateTime(timezone=True), nullable=True, default=None)
