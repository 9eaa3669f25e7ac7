"""Shared fixtures: in-memory SQLite, a temporary upload directory and a logged-in admin client."""

import os

# Settings are read at import time; point them at throwaway resources first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"

import io
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.datastructures import Headers, UploadFile

from postdesk.core.config import settings
from postdesk.db.base import Base
from postdesk.db.session import get_db
from postdesk.main import app
from postdesk.modules.admin_users.schemas.admin_user import AdminUserCreate
from postdesk.modules.admin_users.services.admin_user import create_admin_user
from postdesk.modules.categories.models.category import Category
from postdesk.modules.posts.models.post import Post

ADMIN_USERNAME = "editor"
ADMIN_PASSWORD = "correct-horse-battery"

# Smallest byte strings that pass the image signature check
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIRECTORY", str(path))
    return path


@pytest.fixture
def admin(db_session):
    return create_admin_user(db_session, AdminUserCreate(
        username=ADMIN_USERNAME,
        full_name="Eda Editor",
        email="editor@example.com",
        password=ADMIN_PASSWORD,
    ))


@pytest.fixture
def category(db_session):
    category = Category(name="News", slug="news")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def client(db_session, upload_dir):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app, follow_redirects=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client, admin):
    """Client holding a logged-in admin session"""
    token = client.get("/admin/login").json()["csrf_token"]
    response = client.post("/admin/login", data={
        "username": ADMIN_USERNAME,
        "password": ADMIN_PASSWORD,
        "csrf_token": token,
    })
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/posts"
    return client


@pytest.fixture
def csrf_token(admin_client):
    return admin_client.get("/admin/posts").json()["csrf_token"]


@pytest.fixture
def make_post(db_session, admin):
    """Factory inserting posts directly, bypassing the write pipeline"""
    counter = {"n": 0}

    def _make_post(**overrides):
        counter["n"] += 1
        values = {
            "author_id": admin.id,
            "title": f"Post {counter['n']}",
            "slug": f"post-{counter['n']}",
            "content": f"<p>Body of post {counter['n']}</p>",
            "status": "draft",
            "view_count": 0,
        }
        values.update(overrides)
        post = Post(**values)
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


def make_upload(filename="photo.png", content=PNG_BYTES, content_type="image/png"):
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def at(day, hour=12):
    """Timestamp in October 2026 for ordering and date-filter tests"""
    return datetime(2026, 10, day, hour, 0, 0)
