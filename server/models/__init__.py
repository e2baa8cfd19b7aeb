# server/models/__init__.py

from datetime import datetime, timezone
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
