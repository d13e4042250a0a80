"""
Game services - Business logic layer.

This package contains all game operations:
- Posting receipts and guessing totals
- Scoring, achievements and rate limits
- Reveal statistics and leaderboards
"""

# Persistence
from .store import GameStore

# Game State
from .game_state import (
    create_post,
    submit_guess,
    load_post,
    load_profile,
    PostCreationResult,
    GuessResult,
)

# Reveal
from .reveal import (
    can_reveal,
    get_reveal_summary,
    mark_revealed,
    RevealSummary,
)

# Leaderboard
from .leaderboard import (
    get_all_user_profiles,
    get_leaderboard,
    get_user_stats,
    Leaderboard,
)

# Reference data
from .currency import (
    convert_to_usd,
    format_currency,
    get_supported_currencies,
    CURRENCY_SYMBOLS,
)
from .achievements import (
    ACHIEVEMENTS,
    get_achievement_by_id,
)

# Domain Exceptions
from .exceptions import (
    GameServiceError,
    GameValidationError,
    UnsupportedCurrencyError,
    PostNotFoundError,
    OwnerGuessError,
    DuplicateGuessError,
    RateLimitExceededError,
    ConcurrentUpdateError,
    StoreUnavailableError,
    AuthenticationRequiredError,
    RevealNotAllowedError,
    ProfileNotFoundError,
)

__all__ = [
    # Persistence
    'GameStore',
    # Game State Services
    'create_post',
    'submit_guess',
    'load_post',
    'load_profile',
    'PostCreationResult',
    'GuessResult',
    # Reveal Services
    'can_reveal',
    'get_reveal_summary',
    'mark_revealed',
    'RevealSummary',
    # Leaderboard Services
    'get_all_user_profiles',
    'get_leaderboard',
    'get_user_stats',
    'Leaderboard',
    # Reference data
    'convert_to_usd',
    'format_currency',
    'get_supported_currencies',
    'CURRENCY_SYMBOLS',
    'ACHIEVEMENTS',
    'get_achievement_by_id',
    # Exceptions
    'GameServiceError',
    'GameValidationError',
    'UnsupportedCurrencyError',
    'PostNotFoundError',
    'OwnerGuessError',
    'DuplicateGuessError',
    'RateLimitExceededError',
    'ConcurrentUpdateError',
    'StoreUnavailableError',
    'AuthenticationRequiredError',
    'RevealNotAllowedError',
    'ProfileNotFoundError',
]
