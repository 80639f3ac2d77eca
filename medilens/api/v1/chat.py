# medilens/api/v1/chat.py
from typing import List

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from medilens.core.config import Settings, get_settings
from medilens.core.dependencies import (
    get_current_user,
    get_db,
    get_pipeline_state,
    get_webhook_client,
)
from medilens.schemas.chat import (
    ChatMessageOut,
    ChatMessageRequest,
    ChatMessageResponse,
    ChatSessionCreate,
    ChatSessionOut,
    ChatSessionRename,
    OpenChatResponse,
)
from medilens.schemas.file import FileExtractResponse
from medilens.schemas.user import UserOut
from medilens.services.chat_pipeline import ChatPipeline, PipelineStateTracker
from medilens.services.chat_service import ChatService
from medilens.services.file_service import FileService
from medilens.services.webhook_client import WebhookClient

router = APIRouter(tags=["Chat"])


def _save_analysis(db: Session, settings: Settings, user: UserOut, result):
    # the reply becomes the analysis of the file it answered
    if result.activity_id is None or result.error is not None:
        return
    FileService(db, settings).update_activity_analysis(user.email, result.activity_id, result.reply)


def _message_response(session_id: int, result) -> dict:
    return {
        "session_id": session_id,
        "user_message": ChatMessageOut.model_validate(result.user_message),
        "bot_message": ChatMessageOut.model_validate(result.bot_message),
        "error": result.error,
    }


@router.post("/sessions", response_model=OpenChatResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: ChatSessionCreate,
    db: Session = Depends(get_db),
    user: UserOut = Depends(get_current_user),
):
    service = ChatService(db)
    session, welcome = service.create_session(user.id, payload.context, payload.title)
    return {"session": session, "messages": [welcome], "state": "idle"}


@router.get("/sessions", response_model=List[ChatSessionOut])
def list_sessions(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    user: UserOut = Depends(get_current_user),
):
    return ChatService(db).list_sessions(user.id, skip=skip, limit=limit)


@router.get("/sessions/{session_id}/messages", response_model=OpenChatResponse)
def get_transcript(
    session_id: int,
    db: Session = Depends(get_db),
    user: UserOut = Depends(get_current_user),
    tracker: PipelineStateTracker = Depends(get_pipeline_state),
):
    service = ChatService(db)
    session = service.get_session(user.id, session_id)
    return {
        "session": session,
        "messages": service.list_messages(session),
        "state": tracker.state(session.id).value,
    }


@router.patch("/sessions/{session_id}", response_model=ChatSessionOut)
def rename_session(
    session_id: int,
    payload: ChatSessionRename,
    db: Session = Depends(get_db),
    user: UserOut = Depends(get_current_user),
):
    service = ChatService(db)
    session = service.get_session(user.id, session_id)
    return service.rename_session(session, payload.title)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: int,
    db: Session = Depends(get_db),
    user: UserOut = Depends(get_current_user),
    tracker: PipelineStateTracker = Depends(get_pipeline_state),
):
    service = ChatService(db)
    session = service.get_session(user.id, session_id)
    service.delete_session(session)
    tracker.forget(session_id)


@router.post("/sessions/{session_id}/messages", response_model=ChatMessageResponse)
async def send_message(
    session_id: int,
    payload: ChatMessageRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user: UserOut = Depends(get_current_user),
    webhook: WebhookClient = Depends(get_webhook_client),
    tracker: PipelineStateTracker = Depends(get_pipeline_state),
):
    store = ChatService(db)
    session = store.get_session(user.id, session_id)
    pipeline = ChatPipeline(store, webhook, tracker)
    result = await pipeline.send_message(session, user, message=payload.message)
    _save_analysis(db, settings, user, result)
    return _message_response(session.id, result)


@router.post("/sessions/{session_id}/upload")
async def upload_to_session(
    session_id: int,
    file: UploadFile = File(...),
    send: bool = Query(True, description="Send the extracted text right away instead of staging it"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user: UserOut = Depends(get_current_user),
    webhook: WebhookClient = Depends(get_webhook_client),
    tracker: PipelineStateTracker = Depends(get_pipeline_state),
):
    """
    Extract a file into a session. With ``send=false`` the text is staged and
    goes out with the session's next message.
    """
    store = ChatService(db)
    session = store.get_session(user.id, session_id)

    file_service = FileService(db, settings)
    uploaded, extracted = await file_service.extract_upload(file)
    activity = file_service.record_activity(user.email, uploaded, extracted)
    activity_id = activity.id if activity else None

    if not send:
        tracker.stash_extracted(session.id, extracted, activity_id)
        return FileExtractResponse(
            file=uploaded,
            extracted=extracted,
            activity_id=activity_id,
            message=f"Extracted {len(extracted.content)} characters from {uploaded.name}.",
        )

    pipeline = ChatPipeline(store, webhook, tracker)
    result = await pipeline.send_message(session, user, extracted=extracted, activity_id=activity_id)
    _save_analysis(db, settings, user, result)
    return ChatMessageResponse(**_message_response(session.id, result))
