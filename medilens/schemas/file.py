# medilens/schemas/file.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class UploadedFile(BaseModel):
    name: str
    mime_type: str
    size_bytes: int


class ExtractedText(BaseModel):
    source_file_name: str
    content: str
    mime_type: Optional[str] = None


class FileExtractResponse(BaseModel):
    file: UploadedFile
    extracted: ExtractedText
    activity_id: Optional[int] = None
    message: str


class UrlValidateRequest(BaseModel):
    url: str


class UrlValidateResponse(BaseModel):
    valid: bool
    message: Optional[str] = None


class UserActivityOut(BaseModel):
    id: int
    user_email: str
    extracted_text: str
    analysis_result: str
    file_name: Optional[str]
    file_type: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
