"""
Reveal service - full receipt and guess statistics for a post.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from apps.game.records import GroceryPost
from .currency import round_cents
from .exceptions import (
    AuthenticationRequiredError,
    RevealNotAllowedError,
)
from .game_state import load_post
from .scoring import (
    calculate_accuracy,
    calculate_poster_points,
    get_reveal_message,
    percentage_off,
)
from .store import GameStore, post_key, post_lock

logger = logging.getLogger(__name__)


@dataclass
class RevealSummary:
    post: GroceryPost
    guess_count: int
    average_guess: Optional[Decimal]
    closest_guess: Optional[Decimal]
    viewer_guess: Optional[Decimal]
    viewer_percentage_off: Optional[Decimal]
    viewer_message: Optional[str]
    poster_points_preview: int


def can_reveal(post: GroceryPost, username: Optional[str]) -> bool:
    """The owner, anyone who guessed, or anyone once the post is revealed."""
    if post.revealed:
        return True
    return bool(username) and (
        username == post.poster_username or post.has_guessed(username)
    )


def summarize_guesses(post: GroceryPost):
    """
    Return ``(average, closest)`` over all guesses on ``post``.

    Both are None when nobody has guessed. Ties for closest go to the
    earliest recorded guess.
    """
    guesses = list(post.guesses.values())
    if not guesses:
        return None, None

    actual = post.converted_total_usd
    average = round_cents(sum(guesses, Decimal('0')) / len(guesses))
    closest = guesses[0]
    for guess in guesses[1:]:
        if abs(guess - actual) < abs(closest - actual):
            closest = guess
    return average, closest


def poster_points_preview(post: GroceryPost) -> int:
    """What the poster would earn from this post's engagement so far."""
    if not post.guesses:
        return calculate_poster_points(0, Decimal('100'))
    actual = post.converted_total_usd
    accuracies = [calculate_accuracy(guess, actual) for guess in post.guesses.values()]
    average_accuracy = sum(accuracies, Decimal('0')) / len(accuracies)
    return calculate_poster_points(len(accuracies), average_accuracy)


async def get_reveal_summary(
    *,
    post_id: str,
    viewer_username: Optional[str],
    store: Optional[GameStore] = None
) -> RevealSummary:
    """
    Build the full-receipt view of a post.

    Raises:
        PostNotFoundError: If the post does not exist
        RevealNotAllowedError: If the viewer has not guessed and the post
            is not revealed yet
    """
    store = store or GameStore()
    post = await load_post(store, post_id)
    if not can_reveal(post, viewer_username):
        raise RevealNotAllowedError()

    average, closest = summarize_guesses(post)
    viewer_guess = post.guesses.get(viewer_username) if viewer_username else None
    viewer_pct = viewer_message = None
    if viewer_guess is not None:
        viewer_pct = percentage_off(viewer_guess, post.converted_total_usd).quantize(Decimal('0.1'))
        viewer_message = get_reveal_message(viewer_guess, post.converted_total_usd)

    return RevealSummary(
        post=post,
        guess_count=post.guess_count,
        average_guess=average,
        closest_guess=closest,
        viewer_guess=viewer_guess,
        viewer_percentage_off=viewer_pct,
        viewer_message=viewer_message,
        poster_points_preview=poster_points_preview(post),
    )


async def mark_revealed(
    *,
    post_id: str,
    username: Optional[str],
    store: Optional[GameStore] = None
) -> GroceryPost:
    """
    Open the full receipt to everyone. Only the poster may do this.

    Raises:
        AuthenticationRequiredError: If no username is given
        PostNotFoundError: If the post does not exist
        RevealNotAllowedError: If ``username`` is not the poster
    """
    if not username:
        raise AuthenticationRequiredError()
    store = store or GameStore()

    async with post_lock(store, post_id):
        post = await load_post(store, post_id)
        if post.poster_username != username:
            raise RevealNotAllowedError('Only the poster can reveal this receipt.')
        if not post.revealed:
            post.revealed = True
            post.version += 1
            await store.set(post_key(post_id), post.to_json())
            logger.info("Post %s revealed by %s", post_id, username)
    return post
