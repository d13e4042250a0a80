"""
Domain exceptions for the game app.

Every rejection carries a short human-readable message that is safe to show
to the player. Views map each type to an HTTP status.
"""


class GameServiceError(Exception):
    """Base exception for all game service errors."""
    default_message = 'Something went wrong. Please try again.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class GameValidationError(GameServiceError):
    """Submitted data failed validation. Carries field-tagged errors."""
    default_message = 'Validation failed. Please check your input.'

    def __init__(self, errors, message=None):
        super().__init__(message)
        self.errors = list(errors)


class UnsupportedCurrencyError(GameServiceError):
    """Currency code is not in the static rate table."""

    def __init__(self, currency):
        super().__init__(f'Unsupported currency: {currency}')
        self.currency = currency


class PostNotFoundError(GameServiceError):
    """Grocery post does not exist."""
    default_message = 'Could not find grocery post data.'


class OwnerGuessError(GameServiceError):
    """Poster tried to guess on their own receipt."""
    default_message = 'You cannot guess on your own post!'


class DuplicateGuessError(GameServiceError):
    """Player already has a guess recorded on this post."""
    default_message = 'You have already made a guess on this post!'


class RateLimitExceededError(GameServiceError):
    """Posting cooldown is active or the per-post guess cap is reached."""
    default_message = 'Slow down! Please try again later.'


class ConcurrentUpdateError(GameServiceError):
    """Post kept changing underneath us; the caller may retry."""
    default_message = 'This post is busy right now. Please try again.'


class StoreUnavailableError(GameServiceError):
    """Read or write against the game store failed."""
    default_message = 'Game data is temporarily unavailable. Please try again.'


class AuthenticationRequiredError(GameServiceError):
    """No acting username was supplied."""
    default_message = 'You must be logged in to play.'


class RevealNotAllowedError(GameServiceError):
    """Viewer may not see the full receipt yet."""
    default_message = 'Make a guess before viewing the full receipt.'


class ProfileNotFoundError(GameServiceError):
    """No profile has been recorded for this username."""
    default_message = 'No stats yet! Start playing to track your progress.'
