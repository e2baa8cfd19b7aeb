# server/core/security.py

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext


BCRYPT_ROUNDS = 10

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


# -------------------------------
# Password Hashing
# -------------------------------

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# -------------------------------
# Access Tokens
# -------------------------------

@dataclass(frozen=True)
class Identity:
    id: int
    username: str


@dataclass(frozen=True)
class TokenCheck:
    """
    Outcome of verifying a bearer token: exactly one of
    valid (with identity), expired, or invalid.
    """
    status: str
    identity: Identity | None = None

    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"

    @property
    def is_valid(self) -> bool:
        return self.status == self.VALID


def create_access_token(
    data: dict,
    secret_key: str,
    algorithm: str = "HS256",
    expires_delta: timedelta | None = None,
) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def issue_user_token(user_id: int, username: str, secret_key: str, algorithm: str, expires_minutes: int) -> str:
    return create_access_token(
        data={"sub": username, "id": user_id, "username": username},
        secret_key=secret_key,
        algorithm=algorithm,
        expires_delta=timedelta(minutes=expires_minutes),
    )


def verify_token(token: str, secret_key: str, algorithm: str = "HS256") -> TokenCheck:
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except ExpiredSignatureError:
        return TokenCheck(TokenCheck.EXPIRED)
    except JWTError:
        return TokenCheck(TokenCheck.INVALID)

    user_id = payload.get("id")
    username = payload.get("username") or payload.get("sub")
    if not isinstance(user_id, int) or not username:
        return TokenCheck(TokenCheck.INVALID)
    return TokenCheck(TokenCheck.VALID, Identity(id=user_id, username=username))
