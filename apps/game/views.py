import logging

from asgiref.sync import async_to_sync
from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import (
    CreatePostSerializer,
    GuessInputSerializer,
    AchievementSerializer,
    CurrencySerializer,
    PostPublicSerializer,
    PostRevealSerializer,
    PostCreatedSerializer,
    GuessResultSerializer,
    ProfileSerializer,
    LeaderboardSerializer,
    currency_choices,
)
from .services import (
    ACHIEVEMENTS,
    create_post,
    submit_guess,
    load_post,
    get_reveal_summary,
    mark_revealed,
    get_leaderboard,
    get_user_stats,
    GameStore,
    # Exceptions
    GameServiceError,
    GameValidationError,
    UnsupportedCurrencyError,
    PostNotFoundError,
    OwnerGuessError,
    DuplicateGuessError,
    RateLimitExceededError,
    ConcurrentUpdateError,
    StoreUnavailableError,
    AuthenticationRequiredError,
    RevealNotAllowedError,
    ProfileNotFoundError,
)

logger = logging.getLogger(__name__)


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


class FieldErrorSerializer(serializers.Serializer):
    field = serializers.CharField()
    message = serializers.CharField()


class ValidationErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    errors = FieldErrorSerializer(many=True)


ERROR_STATUS = {
    UnsupportedCurrencyError: status.HTTP_400_BAD_REQUEST,
    OwnerGuessError: status.HTTP_400_BAD_REQUEST,
    DuplicateGuessError: status.HTTP_400_BAD_REQUEST,
    AuthenticationRequiredError: status.HTTP_401_UNAUTHORIZED,
    RevealNotAllowedError: status.HTTP_403_FORBIDDEN,
    PostNotFoundError: status.HTTP_404_NOT_FOUND,
    ProfileNotFoundError: status.HTTP_404_NOT_FOUND,
    ConcurrentUpdateError: status.HTTP_409_CONFLICT,
    RateLimitExceededError: status.HTTP_429_TOO_MANY_REQUESTS,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(error: GameServiceError) -> Response:
    """Translate a game service error into its HTTP response."""
    if isinstance(error, GameValidationError):
        return Response({
            'error': str(error),
            'errors': [e.as_dict() for e in error.errors],
        }, status=status.HTTP_400_BAD_REQUEST)

    for error_class, status_code in ERROR_STATUS.items():
        if isinstance(error, error_class):
            return Response({'error': str(error)}, status=status_code)

    logger.error("Unmapped game error %s: %s", type(error).__name__, error)
    return Response({'error': str(error)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _username(request):
    user = request.user
    return user.username if user.is_authenticated else None


# =============================================================================
# Reference data
# =============================================================================

@extend_schema(
    responses={200: CurrencySerializer(many=True)},
    description="Currencies a receipt can be posted in.",
    tags=['game'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def currencies(request):
    """List supported currencies with their symbols."""
    return Response(CurrencySerializer(currency_choices(), many=True).data)


@extend_schema(
    responses={200: AchievementSerializer(many=True)},
    description="Full achievement catalog.",
    tags=['game'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def achievements(request):
    """List every achievement that can be unlocked."""
    return Response(AchievementSerializer(ACHIEVEMENTS, many=True).data)


# =============================================================================
# Posts and guesses
# =============================================================================

@extend_schema(
    request=CreatePostSerializer,
    responses={
        201: PostCreatedSerializer,
        400: ValidationErrorResponseSerializer,
        429: ErrorResponseSerializer,
        503: ErrorResponseSerializer,
    },
    description="Post a grocery receipt for others to guess.",
    tags=['game'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def posts(request):
    """Create a receipt post."""
    serializer = CreatePostSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = async_to_sync(create_post)(
            items=serializer.validated_data['items'],
            currency=serializer.validated_data['currency'],
            location=serializer.validated_data['location'],
            poster_username=_username(request),
        )
    except GameServiceError as e:
        return error_response(e)

    return Response(PostCreatedSerializer(result).data, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={
        200: PostPublicSerializer,
        404: ErrorResponseSerializer,
        503: ErrorResponseSerializer,
    },
    description="Public view of a post. Prices stay hidden.",
    tags=['game'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def post_detail(request, post_id):
    """Get a post without its prices."""
    try:
        post = async_to_sync(load_post)(GameStore(), post_id)
    except GameServiceError as e:
        return error_response(e)

    serializer = PostPublicSerializer(post, context={'viewer': _username(request)})
    return Response(serializer.data)


@extend_schema(
    request=GuessInputSerializer,
    responses={
        200: GuessResultSerializer,
        400: ValidationErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
        429: ErrorResponseSerializer,
        503: ErrorResponseSerializer,
    },
    description="Guess the USD total of a post. One guess per player.",
    tags=['game'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def guess(request, post_id):
    """Submit a guess."""
    serializer = GuessInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = async_to_sync(submit_guess)(
            post_id=post_id,
            guesser_username=_username(request),
            guess_value=serializer.validated_data['guess'],
        )
    except GameServiceError as e:
        return error_response(e)

    return Response(GuessResultSerializer(result).data)


@extend_schema(
    methods=['GET'],
    responses={
        200: PostRevealSerializer,
        403: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Full receipt with guess statistics.",
    tags=['game'],
)
@extend_schema(
    methods=['POST'],
    request=None,
    responses={
        200: PostRevealSerializer,
        403: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Reveal the full receipt to everyone (poster only).",
    tags=['game'],
)
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def reveal(request, post_id):
    """Get the revealed receipt, or reveal it as the poster."""
    username = _username(request)

    try:
        if request.method == 'POST':
            async_to_sync(mark_revealed)(post_id=post_id, username=username)
        summary = async_to_sync(get_reveal_summary)(
            post_id=post_id,
            viewer_username=username,
        )
    except GameServiceError as e:
        return error_response(e)

    return Response(PostRevealSerializer(summary).data)


# =============================================================================
# Stats
# =============================================================================

@extend_schema(
    responses={
        200: LeaderboardSerializer,
        503: ErrorResponseSerializer,
    },
    description="Top players by points and by accuracy.",
    tags=['game'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def leaderboard(request):
    try:
        board = async_to_sync(get_leaderboard)()
    except GameServiceError as e:
        return error_response(e)

    return Response(LeaderboardSerializer(board).data)


@extend_schema(
    responses={
        200: ProfileSerializer,
        404: ErrorResponseSerializer,
    },
    description="Current player's stats and achievements.",
    tags=['game'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def profile(request):
    try:
        stats = async_to_sync(get_user_stats)(_username(request))
    except GameServiceError as e:
        return error_response(e)

    return Response(ProfileSerializer(stats).data)


@extend_schema(
    responses={
        200: ProfileSerializer,
        404: ErrorResponseSerializer,
    },
    description="Any player's stats and achievements.",
    tags=['game'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def user_stats(request, username):
    try:
        stats = async_to_sync(get_user_stats)(username)
    except GameServiceError as e:
        return error_response(e)

    return Response(ProfileSerializer(stats).data)
