# server/models/user.py

from sqlalchemy import Column, Integer, String, DateTime
from . import Base, utcnow


# -------------------------------
# User Model
# -------------------------------

class User(Base):
    """
    Database model for application users.
    Stores username, email and the bcrypt hash of the password; the
    plaintext password never reaches this table.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
