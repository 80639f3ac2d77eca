# medilens/models/user_activity.py
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from medilens.db.base import Base


class UserActivity(Base):
    __tablename__ = "useractivity"

    id = Column(Integer, primary_key=True, index=True)
    user_email = Column(String(255), nullable=False, index=True)
    extracted_text = Column(Text, nullable=False)
    analysis_result = Column(Text, nullable=False, default="")
    file_name = Column(String, nullable=True)
    file_type = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
