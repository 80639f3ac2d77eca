# medilens/models/chat_message.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from medilens.db.base import Base


class ChatMessage(Base):
    __tablename__ = "chat_messages"
    __table_args__ = (CheckConstraint("type IN ('user', 'bot')", name="ck_chat_messages_type"),)

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(8), nullable=False)  # "user" | "bot"
    content = Column(Text, nullable=False)
    attachment_type = Column(String(64), nullable=True)  # MIME type when content came from a file
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # relationship back to session
    session = relationship("ChatSession", back_populates="messages")
