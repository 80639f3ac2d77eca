# medilens/models/chat_session.py
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from medilens.db.base import Base

DEFAULT_TITLE = "New Chat"
CHAT_CONTEXTS = ("upload", "medicine-search", "question")


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(Text, nullable=False, default=DEFAULT_TITLE)
    # fixed at creation: "upload" | "medicine-search" | "question"
    context = Column(String(32), nullable=False, default="question")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    messages = relationship(
        "ChatMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ChatMessage.id",
    )
