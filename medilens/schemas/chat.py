# medilens/schemas/chat.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from datetime import datetime

ChatContext = Literal["upload", "medicine-search", "question"]


class ChatSessionCreate(BaseModel):
    context: ChatContext = "question"
    title: Optional[str] = Field(default=None, max_length=200)


class ChatSessionRename(BaseModel):
    title: str = Field(min_length=1, max_length=200)


class ChatSessionOut(BaseModel):
    id: int
    user_id: str
    title: str
    context: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatMessageOut(BaseModel):
    # id is None when the store could not persist the message
    id: Optional[int] = None
    session_id: int
    type: Literal["user", "bot"]
    content: str
    attachment_type: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OpenChatResponse(BaseModel):
    session: ChatSessionOut
    messages: List[ChatMessageOut]
    state: str


class ChatMessageRequest(BaseModel):
    message: str = ""


class ChatMessageResponse(BaseModel):
    session_id: int
    user_message: ChatMessageOut
    bot_message: ChatMessageOut
    error: Optional[str] = None
