"""
Management command to create sample data for trying out the game.

Usage:
    python manage.py create_sample_data

This creates:
- 4 users (admin, alice, bob, charlie)
- 4 grocery receipts in different currencies
- A round of guesses on each receipt
"""

from datetime import timedelta
from decimal import Decimal

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.accounts.models import User
from apps.game.services import GameServiceError, GameStore, create_post, submit_guess

SAMPLE_RECEIPTS = [
    ('alice', 'USD', 'Austin, US', [
        {'item': 'Milk', 'qty': 1, 'price': '3.49'},
        {'item': 'Eggs (dozen)', 'qty': 1, 'price': '4.29'},
        {'item': 'Sourdough', 'qty': 1, 'price': '5.99'},
    ]),
    ('bob', 'EUR', 'Lyon, France', [
        {'item': 'Baguette', 'qty': 2, 'price': '1.20'},
        {'item': 'Comte', 'qty': 1, 'price': '6.80'},
        {'item': 'Apples', 'qty': 6, 'price': '0.45'},
    ]),
    ('charlie', 'JPY', 'Osaka, Japan', [
        {'item': 'Rice 5kg', 'qty': 1, 'price': '2380'},
        {'item': 'Natto', 'qty': 3, 'price': '98'},
    ]),
    ('alice', 'GBP', 'Leeds, UK', [
        {'item': 'Tea bags', 'qty': 1, 'price': '3.10'},
        {'item': 'Crumpets', 'qty': 2, 'price': '0.95'},
    ]),
]

# (username, multiplier of the true total) per receipt
SAMPLE_GUESSES = [
    ('bob', '1.00'),
    ('charlie', '1.08'),
    ('alice', '0.70'),
]


class Command(BaseCommand):
    help = 'Create sample players, receipts and guesses'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')
        self.create_users()
        try:
            post_ids = self.create_posts()
            self.create_guesses(post_ids)
        except GameServiceError as e:
            raise CommandError(f"{e} (run with --clear to start over)") from e

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin / admin123 (superuser)')
        self.stdout.write('  alice / password123')
        self.stdout.write('  bob / password123')
        self.stdout.write('  charlie / password123')

    def clear_data(self):
        """Clear game state and sample accounts."""
        GameStore().cache.clear()
        User.objects.filter(username__in=['admin', 'alice', 'bob', 'charlie']).delete()

    def create_users(self):
        self.stdout.write('  Creating users...')

        admin, _ = User.objects.get_or_create(
            username='admin',
            defaults={
                'email': 'admin@example.com',
                'is_staff': True,
                'is_superuser': True,
            }
        )
        admin.set_password('admin123')
        admin.save()

        for username in ('alice', 'bob', 'charlie'):
            user, _ = User.objects.get_or_create(
                username=username,
                defaults={'email': f'{username}@example.com'},
            )
            user.set_password('password123')
            user.save()

    def create_posts(self):
        self.stdout.write('  Creating receipts...')

        # Space posts out so nobody trips the posting cooldown.
        start = timezone.now() - timedelta(hours=len(SAMPLE_RECEIPTS))
        post_ids = []
        for index, (username, currency, location, items) in enumerate(SAMPLE_RECEIPTS):
            result = async_to_sync(create_post)(
                items=items,
                currency=currency,
                location=location,
                poster_username=username,
                now=start + timedelta(hours=index),
            )
            post_ids.append((result.post_id, username, result.post.converted_total_usd))
            self.stdout.write(
                f'    {username}: {location} ({result.post.converted_total_usd} USD)'
            )
        return post_ids

    def create_guesses(self, post_ids):
        self.stdout.write('  Creating guesses...')

        for post_id, poster, total in post_ids:
            for username, factor in SAMPLE_GUESSES:
                if username == poster:
                    continue
                guess = (total * Decimal(factor)).quantize(Decimal('0.01'))
                result = async_to_sync(submit_guess)(
                    post_id=post_id,
                    guesser_username=username,
                    guess_value=str(guess),
                )
                self.stdout.write(
                    f'    {username} guessed {guess} on {post_id[:8]}: '
                    f'{result.points_awarded} points'
                )
