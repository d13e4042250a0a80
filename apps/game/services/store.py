"""
Game store - key-value persistence for posts, profiles and rate limits.

Backed by a Django cache alias (Redis in production, local memory in
development and tests). Values are JSON strings and never expire. Each key
is written atomically; there are no cross-key transactions.

Key layout:
    post:<post_id>                         serialized GroceryPost
    user:<username>                        serialized UserProfile
    users:list                             JSON array of known usernames
    ratelimit:post:<username>              post cooldown record
    ratelimit:guess:<username>:<post_id>   per-post guess counter
    lock:post:<post_id>                    short-lived guess-write lock
    lock:users:list                        short-lived users list lock
"""

import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from django.core.cache import caches

from apps.game.conf import game_setting
from .exceptions import ConcurrentUpdateError, StoreUnavailableError

logger = logging.getLogger(__name__)

USERS_LIST_KEY = 'users:list'
USERS_LIST_LOCK_KEY = 'lock:users:list'
LOCK_BACKOFF_SECONDS = 0.05


def post_key(post_id: str) -> str:
    return f'post:{post_id}'


def user_key(username: str) -> str:
    return f'user:{username}'


def post_rate_limit_key(username: str) -> str:
    return f'ratelimit:post:{username}'


def guess_rate_limit_key(username: str, post_id: str) -> str:
    return f'ratelimit:guess:{username}:{post_id}'


def post_lock_key(post_id: str) -> str:
    return f'lock:post:{post_id}'


class GameStore:
    """
    Async get/set facade over a Django cache.

    Any backend failure (connection refused, timeout, ...) surfaces as
    StoreUnavailableError so callers decide whether to fail open or abort.

    Example::

        store = GameStore()
        await store.set('user:alice', profile.to_json())
        raw = await store.get('user:alice')
    """

    def __init__(self, alias: Optional[str] = None):
        self.alias = alias or game_setting('STORE_CACHE_ALIAS')

    @property
    def cache(self):
        return caches[self.alias]

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.cache.aget(key)
        except Exception as e:
            raise StoreUnavailableError() from e

    async def set(self, key: str, value: str) -> None:
        try:
            await self.cache.aset(key, value, timeout=None)
        except Exception as e:
            raise StoreUnavailableError() from e

    async def add(self, key: str, value: str, timeout: int) -> bool:
        """Set ``key`` only if absent. Returns True when this call set it."""
        try:
            return await self.cache.aadd(key, value, timeout=timeout)
        except Exception as e:
            raise StoreUnavailableError() from e

    async def delete(self, key: str) -> None:
        try:
            await self.cache.adelete(key)
        except Exception as e:
            raise StoreUnavailableError() from e

    @staticmethod
    def encode_list(values: list) -> str:
        return json.dumps(values)

    @staticmethod
    def decode_list(raw: Optional[str]) -> list:
        """Decode a JSON array value; a missing or corrupt value is empty."""
        if raw is None:
            return []
        try:
            values = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable list value in game store")
            return []
        return values if isinstance(values, list) else []

    def ping(self) -> None:
        """Synchronous reachability check used by the health endpoint."""
        try:
            self.cache.get(USERS_LIST_KEY)
        except Exception as e:
            logger.error("Game store ping failed: %s", e)
            raise StoreUnavailableError() from e


@asynccontextmanager
async def store_lock(store: GameStore, key: str):
    """
    Hold a short-lived lock key for the duration of the block.

    The lock is set with the backend's atomic add. Waiters back off
    exponentially and give up with ConcurrentUpdateError.
    """
    token = uuid.uuid4().hex
    timeout = game_setting('POST_LOCK_TIMEOUT_SECONDS')
    retries = game_setting('POST_LOCK_RETRIES')

    for attempt in range(retries):
        if await store.add(key, token, timeout):
            break
        await asyncio.sleep(LOCK_BACKOFF_SECONDS * 2 ** attempt)
    else:
        logger.warning("Gave up waiting for lock %s", key)
        raise ConcurrentUpdateError()

    try:
        yield
    finally:
        await _release_lock(store, key, token, timeout)


async def _release_lock(store: GameStore, key: str, token: str, timeout: int) -> None:
    """
    Delete the lock key if this holder still owns it.

    A failed release is logged and left to the key's own ``timeout``
    expiry; it never undoes or fails the work done under the lock.
    """
    try:
        # The lock may have expired and been taken by someone else.
        if await store.get(key) == token:
            await store.delete(key)
    except StoreUnavailableError as e:
        logger.warning("Could not release lock %s, it expires in %ss: %s", key, timeout, e.__cause__)


def post_lock(store: GameStore, post_id: str):
    """Serialize writes to one post's guess map."""
    return store_lock(store, post_lock_key(post_id))


def users_list_lock(store: GameStore):
    return store_lock(store, USERS_LIST_LOCK_KEY)
