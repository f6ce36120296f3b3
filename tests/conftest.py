from pathlib import Path

from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / ".env.test"
load_dotenv(env_file)

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from learnhub.core.rate_limit import limiter  # noqa: E402
from learnhub.core.security import create_access_token  # noqa: E402
from learnhub.db.base import Base  # noqa: E402
from learnhub.db.session import get_db  # noqa: E402
from learnhub.enrollments.dependencies import get_receipt_notifier  # noqa: E402
from learnhub.enrollments.services.stripe_gateway import StripeGateway  # noqa: E402
from learnhub.main import app  # noqa: E402
from learnhub.notifications.receipt_notifier import ReceiptNotifier  # noqa: E402
from tests.utils.factories import create_course_factory, create_user_factory  # noqa: E402
from tests.utils.stripe_events import WEBHOOK_SECRET  # noqa: E402


@pytest.fixture
def memory_engine():
    """In-memory SQLite shared by every connection of one test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(memory_engine):
    session_factory = sessionmaker(bind=memory_engine, autocommit=False, autoflush=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def payment_gateway():
    return StripeGateway(secret_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def receipt_notifier():
    notifier = MagicMock(spec=ReceiptNotifier)
    notifier.send_receipt = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
async def test_app(db_session, payment_gateway, receipt_notifier):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_receipt_notifier] = lambda: receipt_notifier

    # ASGITransport does not run the lifespan.
    app.state.payment_gateway = payment_gateway
    limiter.reset()

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
async def test_client(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        yield client


@pytest.fixture
def test_user(db_session):
    return create_user_factory(db_session, email="student@example.com", role="student")


@pytest.fixture
def other_user(db_session):
    return create_user_factory(db_session, email="other@example.com", role="student")


@pytest.fixture
def test_admin(db_session):
    return create_user_factory(db_session, email="admin@example.com", role="admin")


@pytest.fixture
def test_user_token(test_user):
    return create_access_token({"sub": str(test_user.id), "role": test_user.role})


@pytest.fixture
def other_user_token(other_user):
    return create_access_token({"sub": str(other_user.id), "role": other_user.role})


@pytest.fixture
def test_admin_token(test_admin):
    return create_access_token({"sub": str(test_admin.id), "role": test_admin.role})


@pytest.fixture
def paid_course(db_session):
    return create_course_factory(db_session, title="Paid Course", price="49.99")


@pytest.fixture
def free_course(db_session):
    return create_course_factory(db_session, title="Free Course", price="0")


@pytest.fixture
def draft_course(db_session):
    return create_course_factory(db_session, title="Draft Course", price="19.00", is_published=False)
