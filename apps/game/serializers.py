from rest_framework import serializers

from .services import (
    CURRENCY_SYMBOLS,
    format_currency,
    get_achievement_by_id,
    get_supported_currencies,
)


# =============================================================================
# Input Serializers
# =============================================================================

class CreatePostSerializer(serializers.Serializer):
    """
    Shape check for a new receipt post.

    Content rules (lengths, ranges, supported currencies) are enforced by the
    game services so that errors come back tagged per receipt line.

    Fields:
        items (list): ``{'item', 'qty', 'price'}`` receipt lines
        currency (str): Currency code of the prices
        location (str): ``"City, Country"``
    """

    items = serializers.ListField(child=serializers.JSONField(), allow_empty=True)
    currency = serializers.CharField(max_length=8)
    location = serializers.CharField(allow_blank=True, trim_whitespace=False)


class GuessInputSerializer(serializers.Serializer):
    """Guess in USD, as typed by the player."""

    guess = serializers.CharField(allow_blank=True)


# =============================================================================
# Output Serializers
# =============================================================================

class AchievementSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField()
    icon = serializers.CharField()


class CurrencySerializer(serializers.Serializer):
    code = serializers.CharField()
    symbol = serializers.CharField()


class ReceiptItemSerializer(serializers.Serializer):
    item = serializers.CharField()
    qty = serializers.IntegerField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2)


class HiddenReceiptItemSerializer(serializers.Serializer):
    """Receipt line with the price withheld."""

    item = serializers.CharField()
    qty = serializers.IntegerField()


class PostPublicSerializer(serializers.Serializer):
    """
    What any viewer sees before the reveal.

    Prices are never included. The true total and the viewer's own guess
    are added only for the poster or a viewer who has already guessed.

    Context:
        viewer (str): Username of the requesting user, if any
    """

    id = serializers.CharField()
    location = serializers.CharField()
    original_currency = serializers.CharField()
    poster_username = serializers.CharField()
    created_at = serializers.DateTimeField()
    revealed = serializers.BooleanField()
    guess_count = serializers.IntegerField()
    items = HiddenReceiptItemSerializer(source='original_prices', many=True)
    has_guessed = serializers.SerializerMethodField()
    your_guess = serializers.SerializerMethodField()
    converted_total_usd = serializers.SerializerMethodField()

    def _viewer(self):
        return self.context.get('viewer')

    def _can_see_total(self, obj):
        viewer = self._viewer()
        return bool(viewer) and (viewer == obj.poster_username or obj.has_guessed(viewer))

    def get_has_guessed(self, obj):
        viewer = self._viewer()
        return bool(viewer) and obj.has_guessed(viewer)

    def get_your_guess(self, obj):
        viewer = self._viewer()
        if viewer and obj.has_guessed(viewer):
            return str(obj.guesses[viewer])
        return None

    def get_converted_total_usd(self, obj):
        if self._can_see_total(obj):
            return str(obj.converted_total_usd)
        return None


class PostRevealSerializer(serializers.Serializer):
    """Full receipt plus guess statistics, built from a RevealSummary."""

    id = serializers.CharField(source='post.id')
    location = serializers.CharField(source='post.location')
    poster_username = serializers.CharField(source='post.poster_username')
    original_currency = serializers.CharField(source='post.original_currency')
    items = ReceiptItemSerializer(source='post.original_prices', many=True)
    original_total = serializers.SerializerMethodField()
    converted_total_usd = serializers.DecimalField(
        source='post.converted_total_usd', max_digits=12, decimal_places=2
    )
    revealed = serializers.BooleanField(source='post.revealed')
    guess_count = serializers.IntegerField()
    average_guess = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    closest_guess = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    your_guess = serializers.DecimalField(
        source='viewer_guess', max_digits=12, decimal_places=2, allow_null=True
    )
    your_percentage_off = serializers.DecimalField(
        source='viewer_percentage_off', max_digits=14, decimal_places=1, allow_null=True
    )
    accuracy_message = serializers.CharField(source='viewer_message', allow_null=True)
    poster_points_preview = serializers.IntegerField()

    def get_original_total(self, obj):
        return format_currency(obj.post.original_total, obj.post.original_currency)


class GuessResultSerializer(serializers.Serializer):
    points_awarded = serializers.IntegerField()
    is_correct = serializers.BooleanField()
    feedback_message = serializers.CharField()
    actual_total_usd = serializers.DecimalField(max_digits=12, decimal_places=2)
    percentage_off = serializers.DecimalField(max_digits=14, decimal_places=1)
    new_achievements = AchievementSerializer(many=True)


class PostCreatedSerializer(serializers.Serializer):
    post_id = serializers.CharField()
    converted_total_usd = serializers.DecimalField(
        source='post.converted_total_usd', max_digits=12, decimal_places=2
    )
    new_achievements = AchievementSerializer(many=True)


class ProfileSerializer(serializers.Serializer):
    """Player stats with achievements expanded to their catalog entries."""

    username = serializers.CharField()
    total_points = serializers.IntegerField()
    receipts_posted = serializers.IntegerField()
    total_guesses = serializers.IntegerField()
    correct_guesses = serializers.IntegerField()
    accuracy = serializers.FloatField()
    joined_date = serializers.DateTimeField()
    last_post_date = serializers.DateTimeField(allow_null=True)
    achievements = serializers.SerializerMethodField()

    def get_achievements(self, obj):
        unlocked = [get_achievement_by_id(a) for a in obj.achievements]
        return AchievementSerializer([a for a in unlocked if a], many=True).data


class LeaderboardEntrySerializer(serializers.Serializer):
    username = serializers.CharField()
    total_points = serializers.IntegerField()
    total_guesses = serializers.IntegerField()
    accuracy = serializers.FloatField()


class LeaderboardSerializer(serializers.Serializer):
    top_points = LeaderboardEntrySerializer(many=True)
    top_accuracy = LeaderboardEntrySerializer(many=True)
    total_users = serializers.IntegerField()


def currency_choices():
    return [
        {'code': code, 'symbol': CURRENCY_SYMBOLS[code]}
        for code in get_supported_currencies()
    ]
