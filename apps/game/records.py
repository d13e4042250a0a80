"""
Game records stored in the game store.

Posts, profiles and rate-limit counters are independently keyed JSON
documents rather than ORM rows. Money is kept as ``Decimal`` and written as
strings; timestamps are timezone-aware and written as ISO-8601.
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.utils.dateparse import parse_datetime


def _dump(data: dict) -> str:
    return json.dumps(data, cls=DjangoJSONEncoder)


def _parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    return parse_datetime(value)


@dataclass(frozen=True)
class ReceiptItem:
    """One line of a grocery receipt."""

    item: str
    qty: int
    price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price * self.qty

    @classmethod
    def from_dict(cls, data: dict) -> 'ReceiptItem':
        return cls(
            item=data['item'],
            qty=int(Decimal(str(data['qty']).strip())),
            price=Decimal(str(data['price']).strip()),
        )


@dataclass
class GroceryPost:
    """A shared receipt whose converted USD total players try to guess."""

    id: str
    original_currency: str
    original_prices: list
    converted_total_usd: Decimal
    location: str
    poster_username: str
    created_at: datetime
    guesses: dict = field(default_factory=dict)
    revealed: bool = False
    version: int = 0

    @property
    def original_total(self) -> Decimal:
        """Receipt total in the original currency (unrounded)."""
        return sum((line.line_total for line in self.original_prices), Decimal('0'))

    @property
    def guess_count(self) -> int:
        return len(self.guesses)

    def has_guessed(self, username: str) -> bool:
        return username in self.guesses

    def to_json(self) -> str:
        return _dump({
            'id': self.id,
            'originalCurrency': self.original_currency,
            'originalPrices': [asdict(line) for line in self.original_prices],
            'convertedTotalUSD': self.converted_total_usd,
            'location': self.location,
            'posterUsername': self.poster_username,
            'guesses': self.guesses,
            'createdAt': self.created_at,
            'revealed': self.revealed,
            'version': self.version,
        })

    @classmethod
    def from_json(cls, raw: str) -> 'GroceryPost':
        data = json.loads(raw)
        return cls(
            id=data['id'],
            original_currency=data['originalCurrency'],
            original_prices=[ReceiptItem.from_dict(line) for line in data['originalPrices']],
            converted_total_usd=Decimal(str(data['convertedTotalUSD'])),
            location=data['location'],
            poster_username=data['posterUsername'],
            guesses={
                username: Decimal(str(value))
                for username, value in data.get('guesses', {}).items()
            },
            created_at=_parse_timestamp(data['createdAt']),
            revealed=data.get('revealed', False),
            version=data.get('version', 0),
        )


@dataclass
class UserProfile:
    """Cumulative per-player statistics."""

    username: str
    joined_date: datetime
    total_points: int = 0
    receipts_posted: int = 0
    total_guesses: int = 0
    correct_guesses: int = 0
    achievements: list = field(default_factory=list)
    last_post_date: Optional[datetime] = None

    @property
    def accuracy(self) -> float:
        """Share of correct guesses as a percentage (0 with no guesses)."""
        if self.total_guesses == 0:
            return 0.0
        return round(self.correct_guesses / self.total_guesses * 100, 1)

    def copy(self) -> 'UserProfile':
        return UserProfile(
            username=self.username,
            joined_date=self.joined_date,
            total_points=self.total_points,
            receipts_posted=self.receipts_posted,
            total_guesses=self.total_guesses,
            correct_guesses=self.correct_guesses,
            achievements=list(self.achievements),
            last_post_date=self.last_post_date,
        )

    def to_json(self) -> str:
        return _dump({
            'username': self.username,
            'totalPoints': self.total_points,
            'receiptsPosted': self.receipts_posted,
            'totalGuesses': self.total_guesses,
            'correctGuesses': self.correct_guesses,
            'achievements': self.achievements,
            'lastPostDate': self.last_post_date,
            'joinedDate': self.joined_date,
        })

    @classmethod
    def from_json(cls, raw: str) -> 'UserProfile':
        data = json.loads(raw)
        return cls(
            username=data['username'],
            joined_date=_parse_timestamp(data['joinedDate']),
            total_points=data.get('totalPoints', 0),
            receipts_posted=data.get('receiptsPosted', 0),
            total_guesses=data.get('totalGuesses', 0),
            correct_guesses=data.get('correctGuesses', 0),
            achievements=list(data.get('achievements', [])),
            last_post_date=_parse_timestamp(data.get('lastPostDate')),
        )


@dataclass
class RateLimitRecord:
    """Timestamped counter backing a rate-limit policy."""

    last_action: datetime
    count: int = 1

    def to_json(self) -> str:
        return _dump({
            'lastAction': self.last_action,
            'count': self.count,
        })

    @classmethod
    def from_json(cls, raw: str) -> 'RateLimitRecord':
        data = json.loads(raw)
        return cls(
            last_action=_parse_timestamp(data['lastAction']),
            count=int(data['count']),
        )
