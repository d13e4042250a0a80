"""
Game state service - applies player actions to posts and profiles.

Two transactions change state:

- ``create_post``: a poster shares a receipt and earns posting points.
- ``submit_guess``: a player guesses a receipt total and earns accuracy points.

Each step writes a different key and the store has no cross-key
transactions. A store failure part-way through aborts the action and may
leave earlier writes in place (e.g. a post saved without its poster being
credited); these failures are logged as consistency risks.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.utils import timezone

from apps.game.conf import game_setting
from apps.game.records import GroceryPost, ReceiptItem, UserProfile
from .achievements import check_achievements, award_achievements
from .currency import convert_to_usd, to_decimal
from .exceptions import (
    AuthenticationRequiredError,
    ConcurrentUpdateError,
    DuplicateGuessError,
    GameValidationError,
    OwnerGuessError,
    PostNotFoundError,
    RateLimitExceededError,
    StoreUnavailableError,
)
from .rate_limiting import (
    check_post_rate_limit,
    check_guess_rate_limit,
    record_post,
    record_guess,
)
from .scoring import (
    calculate_points,
    get_accuracy_feedback,
    is_correct_guess,
    percentage_off,
)
from .store import (
    GameStore,
    USERS_LIST_KEY,
    post_key,
    post_lock,
    users_list_lock,
    user_key,
)
from .validation import (
    ValidationError,
    split_location,
    validate_currency,
    validate_guess,
    validate_location,
    validate_receipt_items,
)

logger = logging.getLogger(__name__)


@dataclass
class PostCreationResult:
    post_id: str
    post: GroceryPost
    new_achievements: list = field(default_factory=list)


@dataclass
class GuessResult:
    points_awarded: int
    is_correct: bool
    feedback_message: str
    actual_total_usd: Decimal
    percentage_off: Decimal
    new_achievements: list = field(default_factory=list)


def _require_identity(username: Optional[str]) -> str:
    if not username:
        raise AuthenticationRequiredError()
    return username


# =============================================================================
# Loading helpers
# =============================================================================

async def load_post(store: GameStore, post_id: str) -> GroceryPost:
    """
    Load a post by id.

    Raises:
        PostNotFoundError: If no post is stored under ``post_id``
        StoreUnavailableError: If the store cannot be read
    """
    raw = await store.get(post_key(post_id))
    if raw is None:
        raise PostNotFoundError()
    return GroceryPost.from_json(raw)


async def load_profile(store: GameStore, username: str) -> Optional[UserProfile]:
    raw = await store.get(user_key(username))
    if raw is None:
        return None
    return UserProfile.from_json(raw)


async def register_username(store: GameStore, username: str) -> None:
    """Append ``username`` to the known-users list if it is not there yet."""
    if username in GameStore.decode_list(await store.get(USERS_LIST_KEY)):
        return

    async with users_list_lock(store):
        usernames = GameStore.decode_list(await store.get(USERS_LIST_KEY))
        if username not in usernames:
            usernames.append(username)
            await store.set(USERS_LIST_KEY, GameStore.encode_list(usernames))


async def _load_or_init_profile(store: GameStore, username: str, now: datetime):
    """Return ``(old_profile, new_profile)`` where old may be None."""
    old_profile = await load_profile(store, username)
    if old_profile is not None:
        return old_profile, old_profile.copy()
    return None, UserProfile(username=username, joined_date=now)


async def _save_profile(store: GameStore, old_profile, new_profile: UserProfile) -> list:
    """Diff achievements, merge them once, and persist the profile."""
    unlocked = check_achievements(old_profile, new_profile)
    award_achievements(new_profile, unlocked)
    await store.set(user_key(new_profile.username), new_profile.to_json())
    return unlocked


# =============================================================================
# Create post
# =============================================================================

def _build_receipt(items) -> list:
    return [ReceiptItem.from_dict(line) for line in items]


async def create_post(
    *,
    items: list,
    currency: str,
    location: str,
    poster_username: Optional[str],
    post_id: Optional[str] = None,
    store: Optional[GameStore] = None,
    now: Optional[datetime] = None
) -> PostCreationResult:
    """
    Share a grocery receipt and credit the poster.

    This operation:
    1. Validates items, currency and location
    2. Enforces the posting cooldown
    3. Converts the receipt total to USD (rounded once, stored forever)
    4. Persists the post with no guesses and starts the cooldown
    5. Credits the poster (+1 receipt, +50 points) and unlocks achievements

    Args:
        items: Receipt lines as ``{'item', 'qty', 'price'}`` dicts
        currency: Currency code the prices are in
        location: ``"City, Country"``
        poster_username: Acting user
        post_id: Platform post id; generated when omitted
        store: Game store (defaults to the configured one)
        now: Action timestamp (defaults to the current time)

    Returns:
        PostCreationResult with the stored post and unlocked achievements

    Raises:
        AuthenticationRequiredError: If no username is given
        GameValidationError: If any field is invalid
        RateLimitExceededError: If the poster is still cooling down
        StoreUnavailableError: If a store write fails (state may be partial)
    """
    username = _require_identity(poster_username)
    store = store or GameStore()
    now = now or timezone.now()

    city, country = split_location(location)
    errors = validate_receipt_items(items)
    errors.extend(validate_currency(currency))
    errors.extend(validate_location(country, city))
    if errors:
        raise GameValidationError(errors)

    if not await check_post_rate_limit(store, username, now=now):
        minutes = game_setting('POST_COOLDOWN_SECONDS') // 60
        raise RateLimitExceededError(f'Please wait {minutes} minutes before posting again.')

    receipt = _build_receipt(items)
    original_total = sum((line.line_total for line in receipt), Decimal('0'))
    converted_total = convert_to_usd(original_total, currency)
    if converted_total <= 0:
        raise GameValidationError([
            ValidationError('items', 'Receipt total is too small to convert to USD'),
        ])

    post = GroceryPost(
        id=post_id or uuid.uuid4().hex,
        original_currency=currency,
        original_prices=receipt,
        converted_total_usd=converted_total,
        location=location.strip(),
        poster_username=username,
        created_at=now,
    )

    written = []
    try:
        await store.set(post_key(post.id), post.to_json())
        written.append('post')
        await record_post(store, username, now=now)
        written.append('rate limit')
        await register_username(store, username)
        written.append('users list')

        old_profile, profile = await _load_or_init_profile(store, username, now)
        profile.receipts_posted += 1
        profile.total_points += game_setting('POST_REWARD_POINTS')
        profile.last_post_date = now
        unlocked = await _save_profile(store, old_profile, profile)
    except (StoreUnavailableError, ConcurrentUpdateError):
        logger.error(
            "Store failure creating post %s for %s after writing [%s]; "
            "poster may not be credited",
            post.id, username, ', '.join(written),
        )
        raise

    logger.info(
        "Post %s created by %s (%s %s -> %s USD)",
        post.id, username, original_total, currency, converted_total,
    )
    return PostCreationResult(post_id=post.id, post=post, new_achievements=unlocked)


# =============================================================================
# Submit guess
# =============================================================================

async def _store_guess(store: GameStore, snapshot: GroceryPost, username: str, guess: Decimal) -> GroceryPost:
    """
    Add a guess to the post's guess map, first write wins.

    Writes are serialized per post by a lock. The version read before the
    lock is re-checked under it; a newer post is adopted and re-checked.
    """
    post = snapshot
    async with post_lock(store, post.id):
        for _ in range(game_setting('POST_LOCK_RETRIES')):
            current = await load_post(store, post.id)
            if current.has_guessed(username):
                raise DuplicateGuessError()
            if current.version != post.version:
                post = current
                continue

            post.guesses[username] = guess
            post.version += 1
            await store.set(post_key(post.id), post.to_json())
            return post

    logger.warning("Post %s kept changing while storing guess by %s", post.id, username)
    raise ConcurrentUpdateError()


async def submit_guess(
    *,
    post_id: str,
    guesser_username: Optional[str],
    guess_value,
    store: Optional[GameStore] = None,
    now: Optional[datetime] = None
) -> GuessResult:
    """
    Record a player's one guess on a post and score it.

    This operation:
    1. Validates the guess string
    2. Rejects the poster, repeat guessers and players over the guess cap
    3. Stores the guess (never overwritten)
    4. Scores it and updates the guesser's profile and achievements
    5. Counts the attempt against the per-post guess cap

    Args:
        post_id: Post being guessed
        guesser_username: Acting user
        guess_value: Guess in USD as typed (string or number)
        store: Game store (defaults to the configured one)
        now: Action timestamp (defaults to the current time)

    Returns:
        GuessResult with points, verdict, feedback and unlocked achievements

    Raises:
        AuthenticationRequiredError: If no username is given
        GameValidationError: If the guess is not a valid amount
        PostNotFoundError: If the post does not exist
        OwnerGuessError: If the poster guesses on their own post
        DuplicateGuessError: If the player already guessed this post
        RateLimitExceededError: If the player used up their guesses
        ConcurrentUpdateError: If the post stayed busy
        StoreUnavailableError: If a store write fails (state may be partial)
    """
    username = _require_identity(guesser_username)
    store = store or GameStore()
    now = now or timezone.now()

    errors = validate_guess(guess_value)
    if errors:
        raise GameValidationError(errors)
    guess = to_decimal(str(guess_value).strip())

    post = await load_post(store, post_id)
    if post.poster_username == username:
        raise OwnerGuessError()
    if post.has_guessed(username):
        raise DuplicateGuessError()
    if not await check_guess_rate_limit(store, username, post_id):
        raise RateLimitExceededError(
            f"You can only make {game_setting('MAX_GUESSES_PER_POST')} guesses per post."
        )

    actual = post.converted_total_usd
    post = await _store_guess(store, post, username, guess)

    points = calculate_points(guess, actual)
    correct = is_correct_guess(guess, actual)

    written = ['guess']
    try:
        await register_username(store, username)
        written.append('users list')

        old_profile, profile = await _load_or_init_profile(store, username, now)
        profile.total_guesses += 1
        profile.total_points += points
        if correct:
            profile.correct_guesses += 1
        unlocked = await _save_profile(store, old_profile, profile)
        written.append('profile')

        await record_guess(store, username, post_id, now=now)
    except (StoreUnavailableError, ConcurrentUpdateError):
        logger.error(
            "Store failure recording guess by %s on post %s after writing [%s]; "
            "guess may be stored without points",
            username, post_id, ', '.join(written),
        )
        raise

    logger.info(
        "Guess by %s on post %s: %s vs %s USD, %d points",
        username, post_id, guess, actual, points,
    )
    return GuessResult(
        points_awarded=points,
        is_correct=correct,
        feedback_message=get_accuracy_feedback(guess, actual),
        actual_total_usd=actual,
        percentage_off=percentage_off(guess, actual).quantize(Decimal('0.1')),
        new_achievements=unlocked,
    )
