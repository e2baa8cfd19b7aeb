# server/api/schemas.py

from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# -------------------------------
# Auth Schemas
# -------------------------------

class LoginRequest(CamelModel):
    username: str | None = None
    password: str | None = None


class UserCreate(CamelModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(CamelModel):
    id: int
    username: str
    email: str
    created_at: datetime
    updated_at: datetime


class UserCreated(CamelModel):
    message: str
    user: UserOut


class CurrentUser(CamelModel):
    id: int
    username: str


# -------------------------------
# News Schemas
# -------------------------------

class NewsOut(CamelModel):
    id: int
    title: str
    text: str
    place: str | None = None
    image: str | None = None
    created_at: datetime
    updated_at: datetime


class NewsCreated(CamelModel):
    message: str
    news: NewsOut


class Message(CamelModel):
    message: str
