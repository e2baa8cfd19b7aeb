# server/api/auth.py

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from api.schemas import CurrentUser, LoginRequest, Token, UserCreate, UserCreated, UserOut
from config import Settings, get_settings
from core.security import Identity, TokenCheck, verify_token
from core.users import login, register_user
from database import get_db
from errors import Forbidden, Unauthenticated


router = APIRouter()
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Identity:
    """
    Gate for state-changing routes: no bearer token is a 401,
    an expired or tampered token is a 403.
    """
    if credentials is None:
        raise Unauthenticated()

    check = verify_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    if check.status == TokenCheck.EXPIRED:
        raise Forbidden("Token has expired")
    if not check.is_valid:
        raise Forbidden("Invalid token")
    return check.identity


@router.post("/login", response_model=Token)
def login_user(
    req: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    access_token = login(db, req.username, req.password, settings)
    return Token(access_token=access_token)


@router.post("/users", response_model=UserCreated, status_code=status.HTTP_201_CREATED)
def create_user(req: UserCreate, db: Session = Depends(get_db)):
    user = register_user(db, req.username, req.email, req.password)
    return UserCreated(message="User created successfully", user=UserOut.model_validate(user))


@router.get("/users/me", response_model=CurrentUser)
def read_users_me(current_user: Identity = Depends(get_current_user)):
    return CurrentUser(id=current_user.id, username=current_user.username)
