import logging
import re
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, desc, or_
from sqlmodel import Session, select

from app.core.errors import InvalidPostField, PostNotFound
from app.db.session import commit_or_fail
from app.models.post import Post, PostBlock, PostCategory, PostStatus, PostUpvote
from app.models.user import User
from app.services.composer import PostComposer
from app.services.image import ImageService
from app.services.ownership import invalidate_post_ownership

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100
MAX_SUMMARY_LENGTH = 300
MAX_RELATED_POSTS = 2

UPDATABLE_FIELDS = [
    "title", "title_vi", "summary", "summary_vi", "thumbnail_image_id", "category", "slug",
    "status", "related_post_id_1", "related_post_id_2", "reading_time", "featured",
]

SORT_COLUMNS = {
    "upvote_count": Post.upvote_count,
    "view_count": Post.view_count,
    "created_at": Post.created_at,
}


def slugify(title: Optional[str]) -> str:
    """URL slug from a title, suffixed with a millisecond timestamp."""
    stamp = int(time.time() * 1000)
    if not title:
        return f"untitled-{stamp}"
    base = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return f"{base}-{stamp}" if base else f"untitled-{stamp}"


def _validate_fields(data: Dict[str, Any]) -> None:
    title = data.get("title")
    if title and len(title) > MAX_TITLE_LENGTH:
        raise InvalidPostField(f"Title must be {MAX_TITLE_LENGTH} characters or less")

    summary = data.get("summary")
    if summary and len(summary) > MAX_SUMMARY_LENGTH:
        raise InvalidPostField(f"Summary must be {MAX_SUMMARY_LENGTH} characters or less")

    category = data.get("category")
    if category:
        try:
            data["category"] = PostCategory(category)
        except ValueError:
            raise InvalidPostField("Invalid category")

    status = data.get("status")
    if status:
        try:
            data["status"] = PostStatus(status)
        except ValueError:
            raise InvalidPostField("Invalid status")


class PostService:
    def __init__(self, session: Session):
        self.session = session

    def get_post(self, post_id: int) -> Post:
        post = self.session.get(Post, post_id)
        if not post:
            raise PostNotFound()
        return post

    def can_view(self, post: Post, viewer: Optional[User]) -> bool:
        if post.status == PostStatus.PUBLISHED:
            return True
        return viewer is not None and (viewer.id == post.author_id or viewer.is_admin)

    def list_posts(
        self,
        category: Optional[str] = None,
        status: Optional[str] = None,
        author_id: Optional[int] = None,
        search: Optional[str] = None,
        slug: Optional[str] = None,
        sort_by: str = "created_at",
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Post], int]:
        query = select(Post)
        filters = {}
        if category and category != "all":
            filters["category"] = category
        if status and status != "all":
            filters["status"] = status
        _validate_fields(filters)

        if "category" in filters:
            query = query.where(Post.category == filters["category"])

        if "status" in filters:
            query = query.where(Post.status == filters["status"])
        elif not status:
            query = query.where(Post.status == PostStatus.PUBLISHED)

        if author_id:
            query = query.where(Post.author_id == author_id)

        if slug:
            query = query.where(Post.slug == slug)

        if search:
            query = query.where(
                or_(
                    Post.title.ilike(f"%{search}%"),
                    Post.summary.ilike(f"%{search}%")
                )
            )

        total = self.session.exec(
            select(func.count()).select_from(query.subquery())
        ).one()

        order_column = SORT_COLUMNS.get(sort_by, Post.created_at)
        posts = self.session.exec(
            query.order_by(desc(order_column), desc(Post.id)).offset(offset).limit(limit)
        ).all()
        return list(posts), total

    def create_post(self, author: User, data: Dict[str, Any]) -> Post:
        _validate_fields(data)
        data.pop("status", None)

        post = Post(
            title=data.get("title") or None,
            title_vi=data.get("title_vi"),
            summary=data.get("summary") or None,
            summary_vi=data.get("summary_vi"),
            thumbnail_image_id=data.get("thumbnail_image_id") or None,
            category=data.get("category"),
            slug=data.get("slug") or slugify(data.get("title")),
            author_id=author.id,
            status=PostStatus.DRAFT,
        )
        self.session.add(post)
        commit_or_fail(self.session, "create post")
        self.session.refresh(post)
        logger.info(f"User {author.id} created post {post.id}")
        return post

    def update_post(self, post_id: int, updates: Dict[str, Any]) -> Post:
        post = self.get_post(post_id)

        # Filter only allowed fields
        post_updates = {key: value for key, value in updates.items() if key in UPDATABLE_FIELDS}
        _validate_fields(post_updates)

        for key in ("related_post_id_1", "related_post_id_2"):
            related_id = post_updates.get(key)
            if related_id is None:
                continue
            if related_id == post.id:
                raise InvalidPostField("A post cannot be related to itself")
            if not self.session.get(Post, related_id):
                raise InvalidPostField(f"Related post {related_id} not found")

        if post_updates.get("status") == PostStatus.PUBLISHED and post.status != PostStatus.PUBLISHED:
            post.published_at = datetime.utcnow()

        for key, value in post_updates.items():
            setattr(post, key, value)

        post.updated_at = datetime.utcnow()
        self.session.add(post)
        commit_or_fail(self.session, "update post")
        self.session.refresh(post)
        return post

    def delete_post(self, post_id: int) -> None:
        post = self.get_post(post_id)

        for block in self.session.exec(select(PostBlock).where(PostBlock.post_id == post_id)).all():
            self.session.delete(block)
        for upvote in self.session.exec(select(PostUpvote).where(PostUpvote.post_id == post_id)).all():
            self.session.delete(upvote)
        # Detach posts pointing at this one
        for other in self.session.exec(select(Post).where(
            or_(Post.related_post_id_1 == post_id, Post.related_post_id_2 == post_id)
        )).all():
            if other.related_post_id_1 == post_id:
                other.related_post_id_1 = None
            if other.related_post_id_2 == post_id:
                other.related_post_id_2 = None
            self.session.add(other)

        self.session.delete(post)
        commit_or_fail(self.session, "delete post")
        invalidate_post_ownership(post_id)
        logger.info(f"Deleted post {post_id}")

    def has_upvoted(self, post_id: int, user: Optional[User]) -> bool:
        if user is None:
            return False
        upvote = self.session.exec(
            select(PostUpvote).where(PostUpvote.post_id == post_id, PostUpvote.user_id == user.id)
        ).first()
        return upvote is not None

    def toggle_upvote(self, post_id: int, user: User) -> Tuple[bool, int]:
        """Add or remove the user's upvote; returns (upvoted, upvote_count)."""
        post = self.get_post(post_id)
        existing = self.session.exec(
            select(PostUpvote).where(PostUpvote.post_id == post_id, PostUpvote.user_id == user.id)
        ).first()

        if existing:
            self.session.delete(existing)
            post.upvote_count = max(0, post.upvote_count - 1)
            upvoted = False
        else:
            self.session.add(PostUpvote(post_id=post_id, user_id=user.id))
            post.upvote_count = post.upvote_count + 1
            upvoted = True

        self.session.add(post)
        commit_or_fail(self.session, "toggle upvote")
        return upvoted, post.upvote_count

    def increment_view(self, post_id: int) -> int:
        post = self.session.get(Post, post_id)
        if not post or post.status != PostStatus.PUBLISHED:
            raise PostNotFound("Post not found or not published")
        post.view_count = post.view_count + 1
        self.session.add(post)
        commit_or_fail(self.session, "update view count")
        return post.view_count

    def related_posts(self, post: Post) -> List[Post]:
        related_ids = [pid for pid in (post.related_post_id_1, post.related_post_id_2) if pid]
        if not related_ids:
            return []
        return list(self.session.exec(
            select(Post).where(Post.id.in_(related_ids), Post.status == PostStatus.PUBLISHED)
        ).all())

    def list_authors(self) -> List[User]:
        author_ids = select(Post.author_id).where(Post.status == PostStatus.PUBLISHED).distinct()
        return list(self.session.exec(
            select(User).where(User.id.in_(author_ids)).order_by(User.full_name)
        ).all())

    def serialize(self, post: Post) -> Dict[str, Any]:
        """Post with its author summary and resolved thumbnail."""
        data = post.model_dump()
        author = self.session.get(User, post.author_id)
        data["author"] = {
            "id": author.id,
            "username": author.username,
            "full_name": author.full_name,
            "avatar_url": author.avatar_url,
        } if author else None
        images = ImageService(self.session).resolve([post.thumbnail_image_id])
        thumbnail = images.get(post.thumbnail_image_id) if post.thumbnail_image_id else None
        data["thumbnail_image"] = thumbnail.model_dump() if thumbnail else None
        return data

    def get_detail(self, post: Post, viewer: Optional[User]) -> Dict[str, Any]:
        """Post, rendered blocks, related posts and the viewer's upvote state."""
        composer = PostComposer(self.session)
        return {
            "success": True,
            "post": self.serialize(post),
            "blocks": composer.render_blocks(composer.list_blocks(post.id)),
            "related_posts": [self.serialize(related) for related in self.related_posts(post)],
            "user_has_upvoted": self.has_upvoted(post.id, viewer),
        }
