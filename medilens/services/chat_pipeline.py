# medilens/services/chat_pipeline.py
"""
Chat pipeline: user message -> webhook -> formatted bot reply, both persisted.

Every send produces exactly two messages, the user's and one bot reply. Any
``MediLensError`` raised while getting the reply becomes that bot reply, so
nothing escapes to the caller except an empty input or a busy session.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from medilens import models
from medilens.core.errors import MediLensError, SessionBusyError, ValidationError
from medilens.models.chat_session import DEFAULT_TITLE
from medilens.schemas.file import ExtractedText
from medilens.schemas.user import UserOut
from medilens.services.chat_service import ChatService
from medilens.services.webhook_client import WebhookClient
from medilens.utils.response_formatter import reply_to_text

logger = logging.getLogger(__name__)

SOURCE = "medilens-chatbot"
PREVIEW_CHARS = 200
TITLE_CHARS = 50
ERROR_PREFIX = "I apologize, but I encountered an error processing your request."


@dataclass
class StagedUpload:
    extracted: ExtractedText
    activity_id: Optional[int] = None


class SessionState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


class PipelineStateTracker:
    """
    In-process view of which sessions wait on the webhook, plus extracted
    text staged for a session's next send. Shared by all requests of one app.
    """

    def __init__(self):
        self._awaiting: Set[int] = set()
        self._pending: Dict[int, StagedUpload] = {}

    def state(self, session_id: int) -> SessionState:
        if session_id in self._awaiting:
            return SessionState.AWAITING_RESPONSE
        return SessionState.IDLE

    def begin(self, session_id: int) -> bool:
        if session_id in self._awaiting:
            return False
        self._awaiting.add(session_id)
        return True

    def finish(self, session_id: int):
        self._awaiting.discard(session_id)

    def stash_extracted(self, session_id: int, extracted: ExtractedText, activity_id: Optional[int] = None):
        self._pending[session_id] = StagedUpload(extracted, activity_id)

    def pop_extracted(self, session_id: int) -> Optional[StagedUpload]:
        return self._pending.pop(session_id, None)

    def forget(self, session_id: int):
        self._pending.pop(session_id, None)
        self._awaiting.discard(session_id)


@dataclass
class PipelineResult:
    user_message: models.ChatMessage
    bot_message: models.ChatMessage
    reply: str
    error: Optional[str] = None
    # activity row of the uploaded file this message carried, if any
    activity_id: Optional[int] = None


def upload_preview(extracted: ExtractedText) -> str:
    content = extracted.content
    preview = content[:PREVIEW_CHARS]
    if len(content) > PREVIEW_CHARS:
        preview += "..."
    return f"📎 Uploaded file: {extracted.source_file_name or 'Unknown file'}\n\nExtracted text:\n{preview}"


def error_reply(exc: MediLensError) -> str:
    return f"{ERROR_PREFIX}\n\n{exc.message}"


class ChatPipeline:
    def __init__(self, store: ChatService, webhook: WebhookClient, tracker: PipelineStateTracker):
        self.store = store
        self.webhook = webhook
        self.tracker = tracker

    def _record(self, session, message_type, content, attachment_type=None) -> models.ChatMessage:
        try:
            return self.store.add_message(session, message_type, content, attachment_type)
        except SQLAlchemyError:
            logger.exception("Failed to persist %s message for chat session %s", message_type, session.id)
            self.store.db.rollback()
            # keep the conversation going with an unsaved copy
            return models.ChatMessage(
                session_id=session.id,
                type=message_type,
                content=content,
                attachment_type=attachment_type,
                created_at=datetime.now(timezone.utc),
            )

    def _maybe_title(self, session, text: str):
        if session.title != DEFAULT_TITLE:
            return
        title = " ".join(text.split())[:TITLE_CHARS]
        if not title:
            return
        try:
            self.store.rename_session(session, title)
        except SQLAlchemyError:
            logger.exception("Failed to title chat session %s", session.id)
            self.store.db.rollback()

    def build_payload(self, session, user: UserOut, message: str) -> dict:
        return {
            "message": message,
            "context": session.context,
            "sessionId": str(session.id),
            "userEmail": user.email,
            "userName": user.name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": SOURCE,
        }

    async def _request_reply(self, session, user: UserOut, message: str) -> str:
        raw = await self.webhook.post(self.build_payload(session, user, message))
        return reply_to_text(raw)

    async def send_message(
        self,
        session: models.ChatSession,
        user: UserOut,
        message: Optional[str] = None,
        extracted: Optional[ExtractedText] = None,
        activity_id: Optional[int] = None,
    ) -> PipelineResult:
        """
        Send one message and return both stored messages.

        Extracted text wins over typed text. When none is passed, text staged
        for the session is used and consumed; an explicit upload leaves the
        staged one for a later send.
        """
        staged = None
        if extracted is None:
            staged = self.tracker.pop_extracted(session.id)
            if staged is not None:
                extracted, activity_id = staged.extracted, staged.activity_id

        if extracted is not None:
            outbound = extracted.content
            display = upload_preview(extracted)
            attachment_type = extracted.mime_type or "file"
        else:
            outbound = (message or "").strip()
            display = outbound
            attachment_type = None
        if not outbound:
            raise ValidationError("Message must not be empty")

        if not self.tracker.begin(session.id):
            if staged is not None:
                self.tracker.stash_extracted(session.id, staged.extracted, staged.activity_id)
            raise SessionBusyError("Please wait for the current response before sending another message")

        try:
            user_message = self._record(session, "user", display, attachment_type)
            self._maybe_title(session, display)

            error = None
            try:
                reply = await self._request_reply(session, user, outbound)
            except MediLensError as exc:
                logger.warning("Chat session %s: %s (%s)", session.id, exc.code, exc.message.splitlines()[0])
                reply = error_reply(exc)
                error = exc.code

            bot_message = self._record(session, "bot", reply)
            return PipelineResult(
                user_message=user_message,
                bot_message=bot_message,
                reply=reply,
                error=error,
                activity_id=activity_id,
            )
        finally:
            self.tracker.finish(session.id)
