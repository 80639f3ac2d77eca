# medilens/models/profile.py
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from medilens.db.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    # id comes from the auth collaborator (token subject)
    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
