# medilens/db/init_db.py
import logging

from medilens.db.base import Base
from medilens.db.session import engine


def init_tables():
    # import to ensure modules define models
    from medilens import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logging.info("Database tables ensured on %s", engine.url.render_as_string(hide_password=True))
