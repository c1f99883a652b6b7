"""
Pytest fixtures: an in-memory database per test, repositories, services and
an API client wired to the same session.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from socialnet.database import Base, get_db
from socialnet.main import app
from socialnet.repositories import (
    CommentRepository,
    FollowRepository,
    MessageRepository,
    PostRepository,
    ReactionRepository,
    UserRepository,
)
from socialnet.services import (
    AuthService,
    CommentService,
    ContentViews,
    FollowService,
    MessageService,
    PostService,
    ReactionService,
    UserService,
)
from socialnet.utils import create_access_token
from socialnet.visibility import VisibilityPolicy


# ==================== Database ====================

@pytest.fixture(scope="function")
def test_db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db(test_db_engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# ==================== Data ====================

@pytest.fixture
def make_user(db):
    """Factory creating accounts; ``public`` controls the account privacy"""
    users = UserRepository(db)

    def _make_user(username, public=True):
        user = users.create(username=username, email=f"{username}@test.com", hashed_password="not-a-hash")
        if not public:
            user = users.update(user.id, public_account=False)
        return user

    return _make_user


@pytest.fixture
def follow(db):
    follows = FollowRepository(db)

    def _follow(follower, followed):
        return follows.follow(follower.id, followed.id)

    return _follow


# ==================== Services ====================

@pytest.fixture
def policy(db):
    return VisibilityPolicy(UserRepository(db), FollowRepository(db), PostRepository(db))


@pytest.fixture
def views(db):
    return ContentViews(UserRepository(db), CommentRepository(db), ReactionRepository(db))


@pytest.fixture
def auth_service(db):
    return AuthService(UserRepository(db))


@pytest.fixture
def user_service(db, policy):
    return UserService(UserRepository(db), FollowRepository(db), policy)


@pytest.fixture
def follow_service(db):
    return FollowService(FollowRepository(db), UserRepository(db))


@pytest.fixture
def post_service(db, policy, views):
    return PostService(PostRepository(db), UserRepository(db), policy, views)


@pytest.fixture
def comment_service(db, policy, views):
    return CommentService(CommentRepository(db), policy, views)


@pytest.fixture
def reaction_service(db, policy):
    return ReactionService(ReactionRepository(db), policy)


@pytest.fixture
def message_service(db):
    return MessageService(MessageRepository(db), FollowRepository(db), UserRepository(db))


# ==================== API ====================

@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}

    return _auth_headers
