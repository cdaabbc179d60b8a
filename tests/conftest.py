import pytest
from unittest.mock import AsyncMock

from helpers.mock_repos import MockStore

from screening_core.catalog import QuestionnaireCatalog
from screening_core.services import Caller
from screening_db.models.enums import UserRole


@pytest.fixture(scope="session")
def catalog():
    """The bundled questionnaire catalog, loaded once."""
    c = QuestionnaireCatalog()
    c.load()
    return c

@pytest.fixture
def mock_db():
    """AsyncMock standing in for AsyncSession; flush/commit are no-ops."""
    return AsyncMock()

@pytest.fixture
def mock_store():
    """Fresh in-memory tables for each test."""
    return MockStore()

@pytest.fixture
def caretaker():
    return Caller(user_id="caretaker-1", role=UserRole.CARETAKER)

@pytest.fixture
def other_caretaker():
    return Caller(user_id="caretaker-2", role=UserRole.CARETAKER)

@pytest.fixture
def doctor():
    return Caller(user_id="doctor-1", role=UserRole.DOCTOR)

@pytest.fixture
def admin():
    return Caller(user_id="admin-1", role=UserRole.ADMIN)
