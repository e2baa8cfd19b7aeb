# server/core/users.py

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import Settings
from core.security import get_password_hash, verify_password, issue_user_token
from errors import ConflictError, InvalidCredentials, ValidationError
from models.user import User


logger = structlog.get_logger(__name__)


def _missing_fields(**fields) -> list[dict]:
    return [
        {"field": name, "message": f"{name} is required"}
        for name, value in fields.items()
        if not value
    ]


def register_user(db: Session, username: str | None, email: str | None, password: str | None) -> User:
    """
    Creates a user with a bcrypt-hashed password.
    Username and email must both be unused.
    """
    errors = _missing_fields(username=username, email=email, password=password)
    if errors:
        raise ValidationError("Username, email, and password are required", errors)

    if db.query(User).filter(User.username == username).first():
        raise ConflictError("Username already exists", [{"field": "username", "message": "already exists"}])
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email already exists", [{"field": "email", "message": "already exists"}])

    user = User(username=username, email=email, hashed_password=get_password_hash(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # concurrent registration won the unique constraint
        db.rollback()
        raise ConflictError("Username or email already exists")
    db.refresh(user)

    logger.info("user_registered", user_id=user.id, username=user.username)
    return user


def authenticate_user(db: Session, username: str, password: str) -> User:
    user = db.query(User).filter(User.username == username).first()
    if not user or not verify_password(password, user.hashed_password):
        logger.info("login_rejected", username=username)
        raise InvalidCredentials()
    return user


def login(db: Session, username: str | None, password: str | None, settings: Settings) -> str:
    errors = _missing_fields(username=username, password=password)
    if errors:
        raise ValidationError("Username and password are required", errors)

    user = authenticate_user(db, username, password)
    return issue_user_token(
        user_id=user.id,
        username=user.username,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.access_token_expire_minutes,
    )
