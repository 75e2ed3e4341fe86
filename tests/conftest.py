import os
import sys

import pytest

# Packages live under app/ and are imported as top-level packages
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'app'))
sys.path.insert(0, os.path.dirname(__file__))

from Database.repository.conversation_repository import InMemoryConversationStore  # noqa: E402
from Journal.models import UserEvent  # noqa: E402
from Journal.wizard import OrderWizard  # noqa: E402
from fixtures import FakeMarketData, FakeOrderRepository, FakeTrendRepository  # noqa: E402


@pytest.fixture
def store():
    return InMemoryConversationStore()


@pytest.fixture
def orders():
    return FakeOrderRepository()


@pytest.fixture
def trends():
    return FakeTrendRepository()


@pytest.fixture
def market():
    return FakeMarketData()


@pytest.fixture
def wizard(store, orders, trends, market):
    return OrderWizard(store, orders, trends, market_data=market)


@pytest.fixture
def send(wizard):
    """Feed text or a selection token to the wizard for a user"""
    def _send(text=None, selection=None, user_id=1):
        return wizard.handle(UserEvent(user_id=user_id, chat_id=100 + user_id, text=text, selection=selection))
    return _send


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "journal.db")
