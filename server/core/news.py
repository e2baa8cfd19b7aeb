# server/core/news.py

from dataclasses import dataclass
from typing import Protocol

import structlog
from sqlalchemy.orm import Session

from core.storage import check_upload_size
from errors import NotFound, UploadFailed, ValidationError
from models.news import News


logger = structlog.get_logger(__name__)

MAX_NEWS_ID = 2**63 - 1


class ImageStore(Protocol):
    def upload_image(self, contents: bytes, filename: str | None) -> str: ...


@dataclass
class NewsFields:
    title: str | None = None
    text: str | None = None
    place: str | None = None


@dataclass
class ImageUpload:
    contents: bytes
    filename: str | None = None


# -------------------------------
# Validation
# -------------------------------

def validate_news_fields(fields: NewsFields) -> list[dict]:
    """
    Returns one error entry per required field that is missing or blank.
    """
    errors = []
    for name in ("title", "text"):
        value = getattr(fields, name)
        if value is None or not value.strip():
            errors.append({"field": name, "message": f"{name} is required"})
    return errors


def _store_image(store: ImageStore | None, image: ImageUpload) -> str:
    if store is None:
        raise UploadFailed("Image storage is not configured")
    return store.upload_image(image.contents, image.filename)


# -------------------------------
# News Operations
# -------------------------------

def list_news(db: Session) -> list[News]:
    return db.query(News).order_by(News.created_at.desc(), News.id.desc()).all()


def get_news(db: Session, news_id: int) -> News:
    # ids outside the signed 64-bit column range cannot exist
    if not 1 <= news_id <= MAX_NEWS_ID:
        raise NotFound("News not found")
    news = db.get(News, news_id)
    if news is None:
        raise NotFound("News not found")
    return news


def create_news(db: Session, store: ImageStore | None, fields: NewsFields, image: ImageUpload | None) -> News:
    """
    Uploads the image and stores the post pointing at its public URL.
    Nothing is uploaded when the post itself is invalid.
    """
    if image is None or not image.contents:
        raise ValidationError("No file uploaded", [{"field": "image", "message": "image is required"}])
    check_upload_size(len(image.contents))

    errors = validate_news_fields(fields)
    if errors:
        raise ValidationError("News validation failed", errors)

    news = News(title=fields.title, text=fields.text, place=fields.place or None)
    news.image = _store_image(store, image)
    db.add(news)
    db.commit()
    db.refresh(news)

    logger.info("news_created", news_id=news.id, image=news.image)
    return news


def update_news(
    db: Session,
    store: ImageStore | None,
    news_id: int,
    fields: NewsFields,
    image: ImageUpload | None = None,
) -> News:
    """
    Partial update: empty or missing fields keep their stored value, and the
    image changes only when a new file is supplied.
    """
    news = get_news(db, news_id)

    if image is not None and image.contents:
        check_upload_size(len(image.contents))
        news.image = _store_image(store, image)

    news.title = fields.title or news.title
    news.text = fields.text or news.text
    news.place = fields.place or news.place

    db.commit()
    db.refresh(news)

    logger.info("news_updated", news_id=news.id)
    return news


def delete_news(db: Session, news_id: int):
    news = get_news(db, news_id)
    db.delete(news)
    db.commit()
    logger.info("news_deleted", news_id=news_id)
