import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import Settings
from core.security import issue_user_token
from core.storage import build_upload_path, check_upload_size, normalize_shared_link
from core.users import register_user


TEST_SECRET = "test-secret-key"


class FakeImageStore:
    """In-memory stand-in for the Dropbox store, producing real normalized links."""

    def __init__(self):
        self.uploads = []

    def upload_image(self, contents, filename):
        check_upload_size(len(contents))
        path = build_upload_path(filename)
        self.uploads.append((path, contents))
        return normalize_shared_link(f"https://www.dropbox.com/scl/fi/abc{len(self.uploads)}{path}?rlkey=xyz&dl=0")


@pytest.fixture
def test_settings():
    return Settings(database_url="sqlite://", jwt_secret_key=TEST_SECRET)


@pytest.fixture
def test_db():
    from models import Base
    import database  # noqa: F401  registers tables

    # single shared in-memory connection across the threadpool
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
async def async_client(test_db, test_settings, image_store):
    from main import app
    from config import get_settings
    from database import get_db
    from api.news import get_image_store

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_image_store] = lambda: image_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def test_user(test_db):
    return register_user(test_db, "editor", "editor@example.com", "s3cret")


@pytest.fixture
def auth_headers(test_user, test_settings):
    token = issue_user_token(
        user_id=test_user.id,
        username=test_user.username,
        secret_key=test_settings.jwt_secret_key,
        algorithm=test_settings.jwt_algorithm,
        expires_minutes=60,
    )
    return {"Authorization": f"Bearer {token}"}
