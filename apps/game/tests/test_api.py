"""
API tests for the game endpoints.

Tests cover:
- Posting receipts and guessing through HTTP
- Price hiding before the reveal
- Mapping of game errors to status codes
- Leaderboard and profile lookups
"""

from unittest.mock import AsyncMock, patch

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.game.records import RateLimitRecord
from apps.game.services import GameStore, StoreUnavailableError
from apps.game.services.store import guess_rate_limit_key


@pytest.fixture
def milk_post_id(poster_client, milk_receipt):
    """Create the milk receipt as alice and return its id."""
    response = poster_client.post(
        reverse('game:post-create'),
        {'items': milk_receipt, 'currency': 'USD', 'location': 'NY, US'},
        format='json',
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.data['post_id']


def guess_url(post_id):
    return reverse('game:post-guess', kwargs={'post_id': post_id})


def reveal_url(post_id):
    return reverse('game:post-reveal', kwargs={'post_id': post_id})


# =============================================================================
# Reference Data
# =============================================================================

@pytest.mark.django_db
class TestReferenceData:

    def test_currencies(self, api_client):
        response = api_client.get(reverse('game:currencies'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 10
        assert response.data[0] == {'code': 'USD', 'symbol': '$'}

    def test_achievements(self, api_client):
        response = api_client.get(reverse('game:achievements'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data[0]['id'] == 'first_haul'
        assert len(response.data) == 10


# =============================================================================
# Create Post
# =============================================================================

@pytest.mark.django_db
class TestCreatePost:
    """Tests for POST /api/game/posts/"""

    def test_create_success(self, poster_client, milk_receipt):
        response = poster_client.post(
            reverse('game:post-create'),
            {'items': milk_receipt, 'currency': 'USD', 'location': 'NY, US'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['converted_total_usd'] == '3.50'
        assert [a['id'] for a in response.data['new_achievements']] == ['first_haul']

    def test_create_unauthenticated(self, api_client, milk_receipt):
        response = api_client.post(
            reverse('game:post-create'),
            {'items': milk_receipt, 'currency': 'USD', 'location': 'NY, US'},
            format='json',
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_invalid_returns_field_errors(self, poster_client):
        response = poster_client.post(
            reverse('game:post-create'),
            {'items': [], 'currency': 'USD', 'location': 'NY, US'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['errors'] == [
            {'field': 'items', 'message': 'At least one item is required'}
        ]

    def test_create_missing_fields(self, poster_client):
        response = poster_client.post(reverse('game:post-create'), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_rate_limited(self, poster_client, milk_receipt, milk_post_id):
        response = poster_client.post(
            reverse('game:post-create'),
            {'items': milk_receipt, 'currency': 'USD', 'location': 'NY, US'},
            format='json',
        )

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert 'error' in response.data


# =============================================================================
# Post Detail
# =============================================================================

@pytest.mark.django_db
class TestPostDetail:
    """Tests for GET /api/game/posts/<id>/"""

    def test_prices_hidden_from_anonymous(self, api_client, milk_post_id):
        url = reverse('game:post-detail', kwargs={'post_id': milk_post_id})
        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['items'] == [{'item': 'Milk', 'qty': 1}]
        assert response.data['converted_total_usd'] is None
        assert response.data['guess_count'] == 0
        assert response.data['location'] == 'NY, US'

    def test_owner_sees_total(self, poster_client, milk_post_id):
        url = reverse('game:post-detail', kwargs={'post_id': milk_post_id})
        response = poster_client.get(url)

        assert response.data['converted_total_usd'] == '3.50'
        assert 'price' not in response.data['items'][0]

    def test_guesser_sees_total_after_guessing(self, guesser_client, milk_post_id):
        url = reverse('game:post-detail', kwargs={'post_id': milk_post_id})
        assert guesser_client.get(url).data['converted_total_usd'] is None

        guesser_client.post(guess_url(milk_post_id), {'guess': '3.00'}, format='json')
        response = guesser_client.get(url)

        assert response.data['has_guessed'] is True
        assert response.data['your_guess'] == '3.00'
        assert response.data['converted_total_usd'] == '3.50'

    def test_not_found(self, api_client):
        url = reverse('game:post-detail', kwargs={'post_id': 'missing'})
        response = api_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['error'] == 'Could not find grocery post data.'


# =============================================================================
# Guess
# =============================================================================

@pytest.mark.django_db
class TestGuess:
    """Tests for POST /api/game/posts/<id>/guess/"""

    def test_exact_guess(self, guesser_client, milk_post_id):
        response = guesser_client.post(guess_url(milk_post_id), {'guess': '3.50'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['points_awarded'] == 100
        assert response.data['is_correct'] is True
        assert response.data['feedback_message'] == 'Correct! 🎉 Amazing guess!'
        assert [a['id'] for a in response.data['new_achievements']] == [
            'first_guess', 'perfect_guesser'
        ]

    def test_numeric_guess(self, guesser_client, milk_post_id):
        response = guesser_client.post(guess_url(milk_post_id), {'guess': 10}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['points_awarded'] == 5

    def test_owner_cannot_guess(self, poster_client, milk_post_id):
        response = poster_client.post(guess_url(milk_post_id), {'guess': '3.50'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'You cannot guess on your own post!'

    def test_duplicate_guess(self, guesser_client, milk_post_id):
        guesser_client.post(guess_url(milk_post_id), {'guess': '3.00'}, format='json')
        response = guesser_client.post(guess_url(milk_post_id), {'guess': '3.50'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'You have already made a guess on this post!'

    def test_guess_cap(self, guesser, guesser_client, milk_post_id):
        record = RateLimitRecord(last_action=timezone.now(), count=3)
        GameStore().cache.set(
            guess_rate_limit_key(guesser.username, milk_post_id), record.to_json(), None
        )

        response = guesser_client.post(guess_url(milk_post_id), {'guess': '3.50'}, format='json')

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS

    def test_invalid_guess(self, guesser_client, milk_post_id):
        response = guesser_client.post(guess_url(milk_post_id), {'guess': '-1'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['errors'][0]['field'] == 'guess'

    def test_unknown_post(self, guesser_client):
        response = guesser_client.post(guess_url('missing'), {'guess': '3.50'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unauthenticated(self, api_client, milk_post_id):
        response = api_client.post(guess_url(milk_post_id), {'guess': '3.50'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Reveal
# =============================================================================

@pytest.mark.django_db
class TestReveal:
    """Tests for GET/POST /api/game/posts/<id>/reveal/"""

    def test_stranger_must_guess_first(self, bystander_client, milk_post_id):
        response = bystander_client.get(reveal_url(milk_post_id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_guesser_sees_receipt(self, guesser_client, milk_post_id):
        guesser_client.post(guess_url(milk_post_id), {'guess': '4.00'}, format='json')

        response = guesser_client.get(reveal_url(milk_post_id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['items'][0]['price'] == '3.50'
        assert response.data['original_total'] == '$3.50'
        assert response.data['guess_count'] == 1
        assert response.data['your_guess'] == '4.00'
        assert response.data['accuracy_message'] == 'Close enough! 😊'
        assert response.data['poster_points_preview'] == 50

    def test_only_owner_can_reveal(self, guesser_client, milk_post_id):
        response = guesser_client.post(reveal_url(milk_post_id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_owner_reveal_opens_to_everyone(self, poster_client, api_client, milk_post_id):
        response = poster_client.post(reveal_url(milk_post_id))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['revealed'] is True

        response = api_client.get(reveal_url(milk_post_id))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['your_guess'] is None


# =============================================================================
# Stats
# =============================================================================

@pytest.mark.django_db
class TestStats:

    def test_leaderboard(self, api_client, guesser_client, milk_post_id):
        guesser_client.post(guess_url(milk_post_id), {'guess': '3.50'}, format='json')

        response = api_client.get(reverse('game:leaderboard'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_users'] == 2
        assert [e['username'] for e in response.data['top_points']] == ['bob', 'alice']
        assert response.data['top_accuracy'] == []

    def test_profile(self, guesser_client, milk_post_id):
        guesser_client.post(guess_url(milk_post_id), {'guess': '3.50'}, format='json')

        response = guesser_client.get(reverse('game:profile'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_points'] == 100
        assert response.data['accuracy'] == 100.0
        assert [a['name'] for a in response.data['achievements']] == [
            'First Guess', 'Perfect Guesser'
        ]

    def test_profile_before_playing(self, bystander_client):
        response = bystander_client.get(reverse('game:profile'))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['error'] == 'No stats yet! Start playing to track your progress.'

    def test_other_user_stats(self, api_client, milk_post_id):
        url = reverse('game:user-stats', kwargs={'username': 'alice'})
        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['receipts_posted'] == 1


# =============================================================================
# Store Outage
# =============================================================================

@pytest.mark.django_db
class TestStoreOutage:

    def test_game_endpoint_returns_503(self, api_client):
        with patch.object(GameStore, 'get', AsyncMock(side_effect=StoreUnavailableError())):
            response = api_client.get(reverse('game:leaderboard'))

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert 'error' in response.data

    def test_health_check_ok(self, client):
        response = client.get(reverse('health-check'))

        assert response.status_code == 200
        assert response.json()['game_store'] == 'ok'

    def test_health_check_degraded(self, client):
        with patch.object(GameStore, 'ping', side_effect=StoreUnavailableError()):
            response = client.get(reverse('health-check'))

        assert response.status_code == 503
        assert response.json()['status'] == 'degraded'
