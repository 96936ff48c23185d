import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from subflow.database import init_db
from subflow.plugins.permission import StaticPermissionService
from subflow.workflows.engine.constants import RunMode
from subflow.workflows.engine.context import InvocationContext
from tests.factories import MEMBER, OWNER_TEAM, FakeDispatcher, RecordingStore


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def permissions():
    return StaticPermissionService()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def context():
    return InvocationContext(team_id=OWNER_TEAM, tmb_id=MEMBER, mode=RunMode.NORMAL)


@pytest.fixture
def test_context():
    return InvocationContext(team_id=OWNER_TEAM, tmb_id=MEMBER, mode=RunMode.TEST)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()
