import pytest
from sqlalchemy import create_engine

from portal_cli.db.store import KeyValueStore
from portal_cli.portal import Portal


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> KeyValueStore:
    return KeyValueStore(engine, prefix="test_")


@pytest.fixture
def redirects():
    return []


@pytest.fixture
def portal(store, redirects) -> Portal:
    portal = Portal(store, redirect=redirects.append)
    portal.bootstrap()
    return portal


@pytest.fixture
def admin(portal):
    return portal.identity.get_user_by_id("admin_001")


@pytest.fixture
def student_id(portal) -> str:
    return portal.registry.add_student(
        name="Ada Obi",
        username="ada",
        password="pw",
        matric="NOU100001",
        department="Computer Science",
        level="200",
    )


@pytest.fixture
def course_id(portal) -> str:
    return portal.registry.add_course("CIT101", "Introduction to Computing", 3)
