# server/api/news.py

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

from api.auth import get_current_user
from api.schemas import Message, NewsCreated, NewsOut
from core.news import (
    ImageStore,
    ImageUpload,
    NewsFields,
    create_news,
    delete_news,
    get_news,
    list_news,
    update_news,
)
from core.security import Identity
from core.storage import check_upload_size
from database import get_db


router = APIRouter(prefix="/news", tags=["news"])


def get_image_store(request: Request) -> ImageStore | None:
    return getattr(request.app.state, "image_store", None)


def read_upload(image: UploadFile | None) -> ImageUpload | None:
    """
    Reads a multipart image part into memory, refusing oversized files
    before their body is read when the size is already known.
    """
    if image is None or not image.filename:
        return None
    if image.size is not None:
        check_upload_size(image.size)
    return ImageUpload(contents=image.file.read(), filename=image.filename)


# -------------------------------
# News Endpoints
# -------------------------------

@router.post("", response_model=NewsCreated, status_code=status.HTTP_201_CREATED)
def create_news_post(
    image: UploadFile | None = File(None),
    title: str | None = Form(None),
    text: str | None = Form(None),
    place: str | None = Form(None),
    db: Session = Depends(get_db),
    store: ImageStore | None = Depends(get_image_store),
    current_user: Identity = Depends(get_current_user),
):
    fields = NewsFields(title=title, text=text, place=place)
    news = create_news(db, store, fields, read_upload(image))
    return NewsCreated(message="done", news=NewsOut.model_validate(news))


@router.get("", response_model=list[NewsOut])
def list_news_posts(db: Session = Depends(get_db)):
    return list_news(db)


@router.get("/{news_id}", response_model=NewsOut)
def get_news_post(news_id: int, db: Session = Depends(get_db)):
    return get_news(db, news_id)


@router.put("/{news_id}", response_model=NewsOut)
def update_news_post(
    news_id: int,
    image: UploadFile | None = File(None),
    title: str | None = Form(None),
    text: str | None = Form(None),
    place: str | None = Form(None),
    db: Session = Depends(get_db),
    store: ImageStore | None = Depends(get_image_store),
    current_user: Identity = Depends(get_current_user),
):
    fields = NewsFields(title=title, text=text, place=place)
    return update_news(db, store, news_id, fields, read_upload(image))


@router.delete("/{news_id}", response_model=Message)
def delete_news_post(
    news_id: int,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    delete_news(db, news_id)
    return Message(message="News deleted")
