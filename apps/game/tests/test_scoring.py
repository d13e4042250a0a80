from decimal import Decimal

import pytest

from apps.game.services.scoring import (
    calculate_accuracy,
    calculate_points,
    calculate_poster_points,
    get_accuracy_feedback,
    get_reveal_message,
    is_correct_guess,
    percentage_off,
)

ACTUAL = Decimal('100')


class TestCalculatePoints:

    @pytest.mark.parametrize('guess, points', [
        ('100', 100),
        ('101', 100),
        ('99', 100),
        ('103', 75),
        ('105', 50),
        ('110', 25),
        ('120', 10),
        ('120.01', 5),
        ('1', 5),
    ])
    def test_tiers_inclusive_on_better_tier(self, guess, points):
        assert calculate_points(Decimal(guess), ACTUAL) == points

    def test_exact_milk_guess(self):
        assert calculate_points(Decimal('3.50'), Decimal('3.50')) == 100

    def test_way_off_still_participates(self):
        assert calculate_points(Decimal('10.00'), Decimal('3.50')) == 5

    def test_non_increasing_as_guess_drifts(self):
        guesses = [Decimal('100') + Decimal(step) / 4 for step in range(0, 200)]
        points = [calculate_points(g, ACTUAL) for g in guesses]
        assert points == sorted(points, reverse=True)

    def test_non_positive_actual_is_rejected(self):
        with pytest.raises(ValueError):
            calculate_points(Decimal('1'), Decimal('0'))


class TestIsCorrectGuess:

    @pytest.mark.parametrize('guess', ['99', '100.5', '101', '101.01', '150'])
    def test_correct_iff_full_points(self, guess):
        guess = Decimal(guess)
        assert is_correct_guess(guess, ACTUAL) == (calculate_points(guess, ACTUAL) == 100)


class TestFeedback:

    def test_correct(self):
        assert get_accuracy_feedback(Decimal('100.50'), ACTUAL) == 'Correct! 🎉 Amazing guess!'

    @pytest.mark.parametrize('guess, expected', [
        ('103', 'Wrong! 📉 Too High! But very close!'),
        ('96', 'Wrong! 📉 Too Low! Close guess!'),
        ('90', 'Wrong! 📉 Too Low! Not bad!'),
        ('115', 'Wrong! 📉 Too High! Getting warmer...'),
        ('200', 'Wrong! 📉 Too High! Way off!'),
    ])
    def test_direction_and_tier(self, guess, expected):
        assert get_accuracy_feedback(Decimal(guess), ACTUAL) == expected

    def test_reveal_messages(self):
        assert get_reveal_message(Decimal('100'), ACTUAL) == 'Incredible accuracy! 🎯'
        assert get_reveal_message(Decimal('300'), ACTUAL) == 'Better luck next time! 🤞'


class TestAccuracy:

    def test_percentage_off(self):
        assert percentage_off(Decimal('110'), ACTUAL) == Decimal('10')

    def test_accuracy(self):
        assert calculate_accuracy(Decimal('110'), ACTUAL) == Decimal('90.0')
        assert calculate_accuracy(Decimal('3.50'), Decimal('3.50')) == Decimal('100.0')

    def test_accuracy_floors_at_zero(self):
        assert calculate_accuracy(Decimal('300'), ACTUAL) == Decimal('0.0')


class TestPosterPoints:

    @pytest.mark.parametrize('num_guesses, avg_accuracy, expected', [
        (0, 100, 50),
        (4, 90, 50),
        (5, 90, 75),
        (10, 80, 110),
        (20, 60, 170),
        (20, 40, 180),
        (3, 85, 50),
        (3, Decimal('84.9'), 60),
    ])
    def test_engagement_and_difficulty(self, num_guesses, avg_accuracy, expected):
        assert calculate_poster_points(num_guesses, avg_accuracy) == expected
