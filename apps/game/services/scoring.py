"""
Scoring service - points and feedback for guesses and posts.

A guess is scored by how far it lands from the true USD total, as a
percentage of that total. Tier boundaries are inclusive on the better tier,
and every guess earns at least the participation floor.
"""

from decimal import Decimal, ROUND_HALF_UP

from .currency import to_decimal

# (max percent off, points, feedback suffix) from best to worst
ACCURACY_TIERS = (
    (Decimal('1'), 100, None),
    (Decimal('3'), 75, 'But very close!'),
    (Decimal('5'), 50, 'Close guess!'),
    (Decimal('10'), 25, 'Not bad!'),
    (Decimal('20'), 10, 'Getting warmer...'),
)
PARTICIPATION_POINTS = 5
PARTICIPATION_FEEDBACK = 'Way off!'
CORRECT_FEEDBACK = 'Correct! 🎉 Amazing guess!'

POSTER_BASE_POINTS = 50
# Engagement bonuses stack: reaching 20 guesses earns all three.
ENGAGEMENT_BONUSES = ((5, 25), (10, 25), (20, 50))
# First matching threshold wins; lower average accuracy means a harder receipt.
DIFFICULTY_BONUSES = ((50, 30), (70, 20), (85, 10))


def percentage_off(guess, actual) -> Decimal:
    """
    Distance between guess and actual as a percentage of actual.

    Raises:
        ValueError: If actual is not positive (post totals always are)
    """
    actual = to_decimal(actual)
    if actual <= 0:
        raise ValueError(f"Actual total must be positive, got {actual}")
    return abs(to_decimal(guess) - actual) / actual * 100


def _tier_for(guess, actual):
    pct_off = percentage_off(guess, actual)
    for max_pct, points, suffix in ACCURACY_TIERS:
        if pct_off <= max_pct:
            return points, suffix
    return PARTICIPATION_POINTS, PARTICIPATION_FEEDBACK


def calculate_points(guess, actual) -> int:
    """
    Points for a guess: 100/75/50/25/10 within 1/3/5/10/20% off, else 5.

    Example:
        >>> calculate_points(Decimal('10.00'), Decimal('3.50'))
        5
    """
    points, _ = _tier_for(guess, actual)
    return points


def is_correct_guess(guess, actual) -> bool:
    """A guess is correct when it lands within 1% of the actual total."""
    return percentage_off(guess, actual) <= ACCURACY_TIERS[0][0]


def get_accuracy_feedback(guess, actual) -> str:
    points, suffix = _tier_for(guess, actual)
    if suffix is None:
        return CORRECT_FEEDBACK
    direction = 'Too High!' if to_decimal(guess) > to_decimal(actual) else 'Too Low!'
    return f'Wrong! 📉 {direction} {suffix}'


REVEAL_MESSAGES = {
    100: 'Incredible accuracy! 🎯',
    75: 'Excellent guess! 🎉',
    50: 'Great job! 👏',
    25: 'Not bad! 👍',
    10: 'Close enough! 😊',
    PARTICIPATION_POINTS: 'Better luck next time! 🤞',
}


def get_reveal_message(guess, actual) -> str:
    """Friendlier per-tier message shown when the full receipt is revealed."""
    return REVEAL_MESSAGES[calculate_points(guess, actual)]


def calculate_accuracy(guess, actual) -> Decimal:
    """Accuracy as ``100 - percent off``, floored at 0, one decimal place."""
    accuracy = max(Decimal('0'), Decimal('100') - percentage_off(guess, actual))
    return accuracy.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


def calculate_poster_points(num_guesses: int, avg_accuracy) -> int:
    """
    Reward for a poster based on engagement and how hard the receipt was.

    Not yet applied to profiles; reveal summaries show it as a preview.
    """
    points = POSTER_BASE_POINTS

    for threshold, bonus in ENGAGEMENT_BONUSES:
        if num_guesses >= threshold:
            points += bonus

    avg_accuracy = to_decimal(avg_accuracy)
    for ceiling, bonus in DIFFICULTY_BONUSES:
        if avg_accuracy < ceiling:
            points += bonus
            break

    return points
