"""Game settings with defaults, overridable through ``settings.GAME_SETTINGS``."""

from django.conf import settings

DEFAULTS = {
    'STORE_CACHE_ALIAS': 'game',
    'POST_COOLDOWN_SECONDS': 300,
    'MAX_GUESSES_PER_POST': 3,
    'POST_REWARD_POINTS': 50,
    'LEADERBOARD_SIZE': 10,
    'ACCURACY_LEADERBOARD_MIN_GUESSES': 10,
    'POST_LOCK_TIMEOUT_SECONDS': 10,
    'POST_LOCK_RETRIES': 5,
}


def game_setting(name):
    """Return a game setting, falling back to the built-in default."""
    overrides = getattr(settings, 'GAME_SETTINGS', {})
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
