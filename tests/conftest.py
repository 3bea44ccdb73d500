"""
Pytest configuration for FashionX tests.

The app runs against an in-memory SQLite database shared through a
StaticPool; the n8n webhooks are served by an httpx.MockTransport.
"""

import os
import tempfile
from datetime import timedelta

# Settings are read at import time
os.environ.update({
    "ENVIRONMENT": "test",
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "SECRET_KEY": "test-secret-key",
    "SENDGRID_API_KEY": "",
    "GOOGLE_CLIENT_ID": "test-client-id.apps.googleusercontent.com",
    "STRIPE_SECRET_KEY": "sk_test_dummy",
    "STRIPE_WEBHOOK_SECRET": "whsec_dummy",
    "WEBHOOK_IMAGE_EDIT": "http://n8n.test/webhook/image-edit",
    "WEBHOOK_TEXT_TO_VIDEO": "http://n8n.test/webhook/text-to-video",
    "WEBHOOK_IMAGE_TO_VIDEO": "http://n8n.test/webhook/image-to-video",
    "WEBHOOK_AUDIO_TO_VIDEO": "http://n8n.test/webhook/audio-to-video",
    "UPLOAD_DIR": tempfile.mkdtemp(prefix="fashionx-uploads-"),
    "PUBLIC_URL": "http://testserver",
})

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from fashionx.core.database import Base, get_db  # noqa: E402
from fashionx.core.security import create_access_token, hash_password  # noqa: E402
from fashionx.dependencies import get_workflow_backend  # noqa: E402
from fashionx.main import app  # noqa: E402
from fashionx.models import generation, payment  # noqa: E402,F401
from fashionx.models.user import User  # noqa: E402
from fashionx.services.workflow import WorkflowBackend  # noqa: E402

PASSWORD = "secret123"


class WorkflowStub:
    """Stands in for n8n; records every outbound call"""

    def __init__(self):
        self.calls = []
        self.responder = lambda request: httpx.Response(
            200, json={"resultUrls": ["https://cdn.example.com/result.png"]}
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self.responder(request)

    @property
    def backend(self) -> WorkflowBackend:
        return WorkflowBackend(transport=httpx.MockTransport(self.handler))


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def workflow():
    return WorkflowStub()


@pytest.fixture
async def client(session_maker, workflow):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_workflow_backend] = lambda: workflow.backend
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_maker):
    async def _make_user(**fields) -> User:
        fields.setdefault("email", f"user{len(_make_user.created)}@example.com")
        fields.setdefault("first_name", "Test")
        fields.setdefault("last_name", "User")
        fields.setdefault("is_email_verified", True)
        if "password" in fields:
            fields["password_hash"] = hash_password(fields.pop("password"))
        async with session_maker() as session:
            user = User(**fields)
            session.add(user)
            await session.commit()
            await session.refresh(user)
        _make_user.created.append(user)
        return user

    _make_user.created = []
    return _make_user


@pytest.fixture
def load_user(session_maker):
    async def _load_user(user_id: str) -> User:
        async with session_maker() as session:
            return await session.get(User, user_id)

    return _load_user


@pytest.fixture
def auth_headers(client):
    def _auth_headers(user: User, expires_delta: timedelta = None, **claims) -> dict:
        """Bearer headers for `user`; drops the cookie a previous request may have set"""
        client.cookies.clear()
        return {"Authorization": f"Bearer {create_access_token(user.id, expires_delta=expires_delta, **claims)}"}

    return _auth_headers
