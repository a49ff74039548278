import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session

from app.core.config import settings
from app.models.post import Post
from app.models.user import User
from app.services.cache import TTLCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnershipResult:
    found: bool
    authorized: bool
    reason: Optional[str] = None


def ownership_key(post_id: int, user_id: int) -> str:
    return f"post:{post_id}:user:{user_id}"


# Shared across requests of this process
ownership_cache: TTLCache[OwnershipResult] = TTLCache(settings.OWNERSHIP_CACHE_TTL_SECONDS)


def invalidate_post_ownership(post_id: int) -> None:
    """Drop cached decisions for a post, e.g. after it was deleted."""
    ownership_cache.delete_prefix(f"post:{post_id}:")


def invalidate_user_ownership(user_id: int) -> None:
    """Drop cached decisions for a user, e.g. after a role change."""
    suffix = f":user:{user_id}"
    ownership_cache.delete_matching(lambda key: key.endswith(suffix))


class OwnershipService:
    """Decides whether a user may modify a post: its author or any admin."""

    def __init__(self, session: Session, cache: TTLCache = ownership_cache):
        self.session = session
        self.cache = cache

    def verify(self, post_id: int, user: User) -> OwnershipResult:
        key = ownership_key(post_id, user.id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        post = self.session.get(Post, post_id)
        if not post:
            # Not cached: the post may be created under this id later
            return OwnershipResult(found=False, authorized=False, reason="Post not found")

        if post.author_id == user.id or user.is_admin:
            result = OwnershipResult(found=True, authorized=True)
        else:
            logger.info(f"User {user.id} is not allowed to modify post {post_id}")
            result = OwnershipResult(
                found=True,
                authorized=False,
                reason="You do not have permission to modify this post",
            )

        self.cache.set(key, result)
        return result
