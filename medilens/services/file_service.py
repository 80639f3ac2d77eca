# medilens/services/file_service.py
import logging
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medilens import models
from medilens.core.config import Settings
from medilens.core.errors import ValidationError
from medilens.schemas.file import ExtractedText, UploadedFile
from medilens.utils.ocr import ProgressCallback
from medilens.utils.text_extractor import TextExtractor
from medilens.utils.validators import validate_upload

logger = logging.getLogger(__name__)


class FileService:
    def __init__(self, db: Session, settings: Settings, extractor: Optional[TextExtractor] = None):
        self.db = db
        self.settings = settings
        self.extractor = extractor or TextExtractor(settings=settings)

    async def extract_upload(
        self,
        uploaded_file: UploadFile,
        progress: Optional[ProgressCallback] = None,
    ) -> Tuple[UploadedFile, ExtractedText]:
        # -------------------
        # Validation
        # -------------------
        content_type = (uploaded_file.content_type or "").lower()
        data = await uploaded_file.read()
        file = UploadedFile(
            name=uploaded_file.filename or "Unknown file",
            mime_type=content_type,
            size_bytes=len(data),
        )

        error = validate_upload(
            file.mime_type,
            file.size_bytes,
            allowed_types=self.settings.ALLOWED_UPLOAD_TYPES,
            max_size_bytes=self.settings.MAX_UPLOAD_SIZE_BYTES,
        )
        if error:
            logger.info("Rejected upload %s (%s, %d bytes): %s", file.name, file.mime_type, file.size_bytes, error)
            raise ValidationError(error)

        # -------------------
        # Extract text
        # -------------------
        extracted = await self.extractor.extract_async(data, file.mime_type, file.name, progress=progress)
        return file, extracted

    def record_activity(self, user_email: str, file: UploadedFile, extracted: ExtractedText):
        """Best-effort: returns None when the activity cannot be stored."""
        activity = models.UserActivity(
            user_email=user_email,
            extracted_text=extracted.content,
            analysis_result="",
            file_name=file.name,
            file_type=file.mime_type,
        )
        try:
            self.db.add(activity)
            self.db.commit()
            self.db.refresh(activity)
        except SQLAlchemyError:
            logger.exception("Error saving extracted text for %s", file.name)
            self.db.rollback()
            return None
        logger.info("Saved extracted text to activity %s", activity.id)
        return activity

    def list_activities(self, user_email: str, skip: int = 0, limit: int = 50) -> List[models.UserActivity]:
        return (
            self.db.query(models.UserActivity)
            .filter(models.UserActivity.user_email == user_email)
            .order_by(models.UserActivity.created_at.desc(), models.UserActivity.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def update_activity_analysis(self, user_email: str, activity_id: int, analysis_result: str) -> bool:
        activity = (
            self.db.query(models.UserActivity)
            .filter(
                models.UserActivity.id == activity_id,
                models.UserActivity.user_email == user_email,
            )
            .first()
        )
        if not activity:
            return False
        activity.analysis_result = analysis_result
        try:
            self.db.commit()
        except SQLAlchemyError:
            logger.exception("Error updating analysis for activity %s", activity_id)
            self.db.rollback()
            return False
        return True
