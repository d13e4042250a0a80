"""
Leaderboard service - rankings derived from stored profiles.

Nothing here is persisted: every call walks ``users:list`` and loads each
profile. Fine at game scale; a sorted set would replace it if it grew.
"""

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Optional

from apps.game.conf import game_setting
from apps.game.records import UserProfile
from .exceptions import ProfileNotFoundError
from .game_state import load_profile
from .store import GameStore, USERS_LIST_KEY

logger = logging.getLogger(__name__)


@dataclass
class Leaderboard:
    top_points: list
    top_accuracy: list
    total_users: int


async def get_all_user_profiles(store: Optional[GameStore] = None) -> list:
    """
    Load every registered player's profile.

    Unreadable profiles are skipped with a warning; store failures propagate.
    """
    store = store or GameStore()
    usernames = GameStore.decode_list(await store.get(USERS_LIST_KEY))

    profiles = []
    for username in usernames:
        try:
            profile = await load_profile(store, username)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Skipping unreadable profile for %s: %s", username, e)
            continue
        if profile is not None:
            profiles.append(profile)
    return profiles


def rank_by_points(profiles, limit: int) -> list:
    return sorted(profiles, key=lambda p: p.total_points, reverse=True)[:limit]


def _accuracy_ratio(profile: UserProfile) -> Fraction:
    if profile.total_guesses == 0:
        return Fraction(0)
    return Fraction(profile.correct_guesses, profile.total_guesses)


def rank_by_accuracy(profiles, limit: int, min_guesses: int) -> list:
    eligible = [p for p in profiles if p.total_guesses >= min_guesses]
    # Rank on the exact ratio; ``accuracy`` is rounded for display.
    return sorted(eligible, key=_accuracy_ratio, reverse=True)[:limit]


async def get_leaderboard(store: Optional[GameStore] = None) -> Leaderboard:
    """
    Top players by points and by accuracy.

    Accuracy rankings only include players with enough guesses to be
    meaningful (10 by default). Sorting is stable, so ties keep
    registration order.
    """
    profiles = await get_all_user_profiles(store)
    limit = game_setting('LEADERBOARD_SIZE')

    return Leaderboard(
        top_points=rank_by_points(profiles, limit),
        top_accuracy=rank_by_accuracy(
            profiles, limit, game_setting('ACCURACY_LEADERBOARD_MIN_GUESSES')
        ),
        total_users=len(profiles),
    )


async def get_user_stats(username: str, store: Optional[GameStore] = None) -> UserProfile:
    """
    Raises:
        ProfileNotFoundError: If the player has never posted or guessed
    """
    store = store or GameStore()
    profile = await load_profile(store, username)
    if profile is None:
        raise ProfileNotFoundError()
    return profile
