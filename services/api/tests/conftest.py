import os

os.environ["AI_MODE"] = "mock"
os.environ["AI_IMAGES_ENABLED"] = "false"

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app, limiter
from app.db import Base, get_db
from app.models import User, Recipe, MealTracking

# --- Test Database Setup ---

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, 'sqlite')
def compile_jsonb(element, compiler, **kw):
    return "JSON"


SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool  # one shared in-memory connection
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """Test client with DB override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


import fakeredis
import fakeredis.aioredis
from app.infra import redis_client


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture(autouse=True)
def mock_redis(monkeypatch):
    server = fakeredis.FakeServer()
    # Create fake clients sharing the same server
    async_redis = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)
    sync_redis = fakeredis.FakeRedis(server=server, decode_responses=True)

    # Force the clients into the infra module
    redis_client._redis_async = async_redis
    redis_client._redis_sync = sync_redis

    yield

    # Cleanup
    redis_client._redis_async = None
    redis_client._redis_sync = None


# --- Data fixtures ---

@pytest.fixture
def make_recipe(db_session):
    def _make(**kw) -> Recipe:
        defaults = dict(
            name="Recipe",
            cuisine="Italian",
            category="dinner",
            difficulty="easy",
            cooking_time=20,
            average_rating=4.5,
            rating_count=10,
            tags=[],
            ingredients=[],
            instructions=[],
            nutrition={},
        )
        defaults.update(kw)
        recipe = Recipe(**defaults)
        db_session.add(recipe)
        db_session.commit()
        db_session.refresh(recipe)
        return recipe
    return _make


@pytest.fixture
def cook(db_session):
    """Record a cooked meal `days_ago` days before `ref` (today by default)."""
    def _cook(user: User, recipe: Recipe, days_ago: int = 1, liked=None, ref: date = None) -> MealTracking:
        ref = ref or date.today()
        meal = MealTracking(
            user_id=user.id,
            recipe_id=recipe.id,
            cooked_date=ref - timedelta(days=days_ago),
            liked=liked,
        )
        db_session.add(meal)
        db_session.commit()
        return meal
    return _cook


@pytest.fixture
def user(db_session):
    u = User(id="00000000-0000-0000-0000-000000000001", name="Sam", cooking_skill="intermediate")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def vegan_peanut_user(db_session):
    u = User(
        id="00000000-0000-0000-0000-000000000002",
        name="Alex",
        diet_type=["vegan"],
        allergies=["peanuts"],
        cooking_skill="beginner",
    )
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u
