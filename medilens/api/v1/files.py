# medilens/api/v1/files.py
from typing import List

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from medilens.core.config import Settings, get_settings
from medilens.core.dependencies import get_current_user, get_db
from medilens.schemas.file import (
    FileExtractResponse,
    UrlValidateRequest,
    UrlValidateResponse,
    UserActivityOut,
)
from medilens.schemas.user import UserOut
from medilens.services.file_service import FileService
from medilens.utils.validators import validate_url

router = APIRouter()


@router.post("/extract", response_model=FileExtractResponse)
async def extract_file(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user: UserOut = Depends(get_current_user),
):
    """
    Validate an upload, extract its text and record it in the user's activity.
    """
    svc = FileService(db, settings)
    uploaded, extracted = await svc.extract_upload(file)
    activity = svc.record_activity(user.email, uploaded, extracted)
    if activity is not None:
        message = (
            f"File processed successfully! Extracted {len(extracted.content)} characters from "
            f"{uploaded.name}. Data saved to your activity history."
        )
    else:
        message = (
            f"File processed successfully! Extracted {len(extracted.content)} characters from "
            f"{uploaded.name}. Note: Activity storage is not available right now."
        )
    return {
        "file": uploaded,
        "extracted": extracted,
        "activity_id": activity.id if activity else None,
        "message": message,
    }


@router.post("/validate-url", response_model=UrlValidateResponse)
def check_url(payload: UrlValidateRequest):
    error = validate_url(payload.url)
    return {"valid": error is None, "message": error}


@router.get("/activities", response_model=List[UserActivityOut])
def list_activities(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user: UserOut = Depends(get_current_user),
):
    return FileService(db, settings).list_activities(user.email, skip=skip, limit=limit)
