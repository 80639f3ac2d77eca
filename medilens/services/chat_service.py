# medilens/services/chat_service.py
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from medilens import models
from medilens.models.chat_session import DEFAULT_TITLE

WELCOME_MESSAGES = {
    "upload": (
        "Hello! I'm your MediLens AI assistant. I can help you analyze prescriptions, medical "
        "documents, or any health-related content. You can upload files, share URLs, or simply "
        "describe what you'd like to know about your prescription."
    ),
    "medicine-search": (
        "Hi there! I'm here to help you find detailed information about medicines. Just tell me "
        "the name of any medication, and I'll provide you with usage instructions, dosage, side "
        "effects, interactions, and more from trusted medical databases."
    ),
    "question": (
        "Welcome! I'm your AI health assistant. Feel free to ask me any questions about "
        "medications, health conditions, symptoms, or general medical information. I'm here to "
        "provide you with accurate, helpful answers."
    ),
}
DEFAULT_WELCOME = "Hello! I'm your MediLens AI assistant. How can I help you today?"


def _now():
    return datetime.now(timezone.utc)


class ChatService:
    """Session/message store scoped to one user's rows."""

    def __init__(self, db: Session):
        self.db = db

    def create_session(self, user_id: str, context: str, title: Optional[str] = None):
        session = models.ChatSession(
            user_id=user_id,
            title=(title or "").strip() or DEFAULT_TITLE,
            context=context,
            created_at=_now(),
            updated_at=_now(),
        )
        self.db.add(session)
        self.db.flush()  # get id

        welcome = models.ChatMessage(
            session_id=session.id,
            type="bot",
            content=WELCOME_MESSAGES.get(context, DEFAULT_WELCOME),
            created_at=_now(),
        )
        self.db.add(welcome)
        self.db.commit()
        self.db.refresh(session)
        return session, welcome

    def list_sessions(self, user_id: str, skip: int = 0, limit: int = 50) -> List[models.ChatSession]:
        return (
            self.db.query(models.ChatSession)
            .filter(models.ChatSession.user_id == user_id)
            .order_by(models.ChatSession.updated_at.desc(), models.ChatSession.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_session(self, user_id: str, session_id: int) -> models.ChatSession:
        session = (
            self.db.query(models.ChatSession)
            .filter(
                models.ChatSession.id == session_id,
                models.ChatSession.user_id == user_id,
            )
            .first()
        )
        # sessions owned by someone else look exactly like missing ones
        if not session:
            raise HTTPException(status_code=404, detail="Chat session not found")
        return session

    def list_messages(self, session: models.ChatSession) -> List[models.ChatMessage]:
        return (
            self.db.query(models.ChatMessage)
            .filter(models.ChatMessage.session_id == session.id)
            .order_by(models.ChatMessage.created_at.asc(), models.ChatMessage.id.asc())
            .all()
        )

    def add_message(
        self,
        session: models.ChatSession,
        message_type: str,
        content: str,
        attachment_type: Optional[str] = None,
    ) -> models.ChatMessage:
        now = _now()
        message = models.ChatMessage(
            session_id=session.id,
            type=message_type,
            content=content,
            attachment_type=attachment_type,
            created_at=now,
        )
        self.db.add(message)
        session.updated_at = now
        self.db.commit()
        self.db.refresh(message)
        return message

    def rename_session(self, session: models.ChatSession, title: str) -> models.ChatSession:
        session.title = title.strip() or DEFAULT_TITLE
        session.updated_at = _now()
        self.db.commit()
        self.db.refresh(session)
        return session

    def delete_session(self, session: models.ChatSession):
        # messages go with it (cascade)
        self.db.delete(session)
        self.db.commit()
