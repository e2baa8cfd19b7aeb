# server/models/news.py

from sqlalchemy import Column, Integer, String, Text, DateTime
from . import Base, utcnow


class News(Base):
    __tablename__ = "news"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    text = Column(Text, nullable=False)
    place = Column(String, nullable=True)
    # public direct-download URL, never binary content
    image = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
