# medilens/db/session.py
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medilens.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url, echo=False):
    if not database_url:
        logger.warning(
            "DATABASE_URL not configured; chat history is kept in memory and lost on restart"
        )
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, echo=echo, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG_SQL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
