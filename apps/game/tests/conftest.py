from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from django.core.cache import caches
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.game.records import GroceryPost, ReceiptItem, UserProfile
from apps.game.services import GameStore, StoreUnavailableError


@pytest.fixture(autouse=True)
def clear_game_store():
    """Every test starts and ends with an empty game store."""
    caches['game'].clear()
    yield
    caches['game'].clear()


@pytest.fixture
def store():
    return GameStore()


@pytest.fixture
def failing_store():
    """A store whose every call fails as if the backend were down."""
    store = GameStore()
    for method in ('get', 'set', 'add', 'delete'):
        setattr(store, method, AsyncMock(side_effect=StoreUnavailableError()))
    return store


@pytest.fixture
def now():
    return datetime(2024, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def milk_receipt():
    """Scenario receipt: one carton of milk."""
    return [{'item': 'Milk', 'qty': 1, 'price': '3.50'}]


@pytest.fixture
def weekly_shop():
    return [
        {'item': 'Bread', 'qty': 2, 'price': '2.25'},
        {'item': 'Eggs', 'qty': 1, 'price': '4.10'},
        {'item': 'Apples', 'qty': 6, 'price': '0.55'},
    ]


@pytest.fixture
def make_post():
    """Build a GroceryPost without touching the store."""
    def _make(
        post_id='post1',
        poster='alice',
        total='3.50',
        guesses=None,
        revealed=False,
        created_at=None,
    ):
        return GroceryPost(
            id=post_id,
            original_currency='USD',
            original_prices=[ReceiptItem(item='Milk', qty=1, price=Decimal(total))],
            converted_total_usd=Decimal(total),
            location='NY, US',
            poster_username=poster,
            created_at=created_at or datetime(2024, 3, 1, tzinfo=dt_timezone.utc),
            guesses={k: Decimal(v) for k, v in (guesses or {}).items()},
            revealed=revealed,
        )
    return _make


@pytest.fixture
def make_profile():
    def _make(username='alice', **counters):
        return UserProfile(
            username=username,
            joined_date=datetime(2024, 1, 1, tzinfo=dt_timezone.utc),
            **counters,
        )
    return _make


# =============================================================================
# API fixtures
# =============================================================================

@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def poster(db):
    return User.objects.create_user(
        username='alice',
        email='alice@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def guesser(db):
    return User.objects.create_user(
        username='bob',
        email='bob@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def bystander(db):
    return User.objects.create_user(
        username='carol',
        email='carol@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def poster_client(poster):
    return _client_for(poster)


@pytest.fixture
def guesser_client(guesser):
    return _client_for(guesser)


@pytest.fixture
def bystander_client(bystander):
    return _client_for(bystander)
