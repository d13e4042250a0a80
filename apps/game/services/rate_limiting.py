"""
Rate limiting service - posting cooldown and per-post guess cap.

Both policies read a timestamped counter, decide, and leave the write to the
caller once the action has actually gone through.

If the store cannot be read the limiter fails OPEN and allows the action.
Availability wins over strictness here; the failure is logged as a warning.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from django.utils import timezone

from apps.game.conf import game_setting
from apps.game.records import RateLimitRecord
from .exceptions import StoreUnavailableError
from .store import GameStore, post_rate_limit_key, guess_rate_limit_key

logger = logging.getLogger(__name__)


async def _load_record(store: GameStore, key: str) -> Optional[RateLimitRecord]:
    raw = await store.get(key)
    if raw is None:
        return None
    record = RateLimitRecord.from_json(raw)
    if record.last_action is None:
        raise ValueError(f"Rate limit record {key} has no timestamp")
    return record


async def check_post_rate_limit(
    store: GameStore,
    username: str,
    *,
    now: Optional[datetime] = None
) -> bool:
    """
    Return True if ``username`` may post now.

    Allowed when there is no previous post record or the cooldown
    (5 minutes by default) has fully elapsed.
    """
    now = now or timezone.now()
    try:
        record = await _load_record(store, post_rate_limit_key(username))
    except (StoreUnavailableError, ValueError, KeyError, TypeError) as e:
        logger.warning("Post rate limit check failed for %s, allowing: %s", username, e)
        return True

    if record is None:
        return True

    cooldown = timedelta(seconds=game_setting('POST_COOLDOWN_SECONDS'))
    return now - record.last_action >= cooldown


async def check_guess_rate_limit(store: GameStore, username: str, post_id: str) -> bool:
    """Return True if ``username`` still has guesses left on ``post_id``."""
    try:
        record = await _load_record(store, guess_rate_limit_key(username, post_id))
    except (StoreUnavailableError, ValueError, KeyError, TypeError) as e:
        logger.warning(
            "Guess rate limit check failed for %s on %s, allowing: %s",
            username, post_id, e,
        )
        return True

    if record is None:
        return True

    return record.count < game_setting('MAX_GUESSES_PER_POST')


async def record_post(store: GameStore, username: str, *, now: Optional[datetime] = None) -> None:
    """Start a fresh cooldown window for ``username``."""
    record = RateLimitRecord(last_action=now or timezone.now(), count=1)
    await store.set(post_rate_limit_key(username), record.to_json())


async def record_guess(
    store: GameStore,
    username: str,
    post_id: str,
    *,
    now: Optional[datetime] = None
) -> RateLimitRecord:
    """Increment the guess counter for ``(username, post_id)``."""
    now = now or timezone.now()
    key = guess_rate_limit_key(username, post_id)

    try:
        record = await _load_record(store, key)
    except (ValueError, KeyError, TypeError):
        logger.warning("Discarding unreadable guess rate limit record %s", key)
        record = None

    if record is None:
        record = RateLimitRecord(last_action=now, count=1)
    else:
        record.count += 1
        record.last_action = now

    await store.set(key, record.to_json())
    return record
