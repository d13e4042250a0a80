"""User registration service."""

import logging

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from .exceptions import UserRegistrationError

User = get_user_model()
logger = logging.getLogger(__name__)


@transaction.atomic
def register_user(
    *,
    username: str,
    email: str,
    password: str
) -> User:
    """
    Register a new player account.

    Usernames are compared case-insensitively so that two players cannot
    end up with profiles that differ only by case.

    Args:
        username: Public player name, used as the game identity
        email: User's email address
        password: User's password (will be hashed)

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If the username or email is taken
    """
    if User.objects.filter(username__iexact=username).exists():
        raise UserRegistrationError("Username is already taken")
    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError("Email is already registered")

    try:
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
        )
    except IntegrityError as e:
        raise UserRegistrationError(f"Registration failed: {str(e)}")

    logger.info("Registered player %s", user.username)
    return user
