"""
Achievement service - one-time milestones unlocked from profile counters.

The catalog is a fixed, ordered table. Checking is a pure diff between the
profile before and after an action: anything newly true that the old
profile did not already hold is returned, in catalog order.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from apps.game.records import UserProfile


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    icon: str
    condition: Callable[[UserProfile], bool]

    def is_met(self, profile: UserProfile) -> bool:
        return self.condition(profile)

    def as_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'icon': self.icon,
        }


def _accuracy_ace(profile: UserProfile) -> bool:
    if profile.total_guesses < 20:
        return False
    return profile.correct_guesses / profile.total_guesses >= 0.80


ACHIEVEMENTS = (
    Achievement(
        id='first_haul',
        name='First Haul',
        description='Post your first grocery receipt',
        icon='🛒',
        condition=lambda p: p.receipts_posted >= 1,
    ),
    Achievement(
        id='first_guess',
        name='First Guess',
        description='Make your first guess',
        icon='🎯',
        condition=lambda p: p.total_guesses >= 1,
    ),
    Achievement(
        id='perfect_guesser',
        name='Perfect Guesser',
        description='Get your first guess within 1%',
        icon='🎯',
        condition=lambda p: p.correct_guesses >= 1,
    ),
    Achievement(
        id='serial_poster',
        name='Serial Poster',
        description='Post 5 grocery receipts',
        icon='📄',
        condition=lambda p: p.receipts_posted >= 5,
    ),
    Achievement(
        id='guess_machine',
        name='Guess Machine',
        description='Make 25 guesses',
        icon='🤖',
        condition=lambda p: p.total_guesses >= 25,
    ),
    Achievement(
        id='sharp_shooter',
        name='Sharp Shooter',
        description='Get 10 correct guesses (within 1%)',
        icon='🎯',
        condition=lambda p: p.correct_guesses >= 10,
    ),
    Achievement(
        id='high_roller',
        name='High Roller',
        description='Earn 1000 total points',
        icon='💎',
        condition=lambda p: p.total_points >= 1000,
    ),
    Achievement(
        id='accuracy_ace',
        name='Accuracy Ace',
        description='Maintain 80%+ accuracy with 20+ guesses',
        icon='🏆',
        condition=_accuracy_ace,
    ),
    Achievement(
        id='grocery_guru',
        name='Grocery Guru',
        description='Post 10 receipts and earn 2000 points',
        icon='🧠',
        condition=lambda p: p.receipts_posted >= 10 and p.total_points >= 2000,
    ),
    Achievement(
        id='community_champion',
        name='Community Champion',
        description='Make 100 guesses',
        icon='👑',
        condition=lambda p: p.total_guesses >= 100,
    ),
)

_BY_ID = {achievement.id: achievement for achievement in ACHIEVEMENTS}


def check_achievements(
    old_profile: Optional[UserProfile],
    new_profile: UserProfile
) -> list:
    """
    Return achievements newly unlocked between two profile snapshots.

    Neither profile is modified; merge the returned ids with
    ``award_achievements``.

    Args:
        old_profile: Profile before the action, or None for a new player
        new_profile: Profile after the action

    Returns:
        List of Achievement in catalog order
    """
    already_held = set(old_profile.achievements) if old_profile else set()
    return [
        achievement
        for achievement in ACHIEVEMENTS
        if achievement.id not in already_held and achievement.is_met(new_profile)
    ]


def award_achievements(profile: UserProfile, achievements) -> None:
    """Append achievement ids to the profile, skipping any already held."""
    for achievement in achievements:
        if achievement.id not in profile.achievements:
            profile.achievements.append(achievement.id)


def get_achievement_by_id(achievement_id: str) -> Optional[Achievement]:
    return _BY_ID.get(achievement_id)
