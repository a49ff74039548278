import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import User
from app.core.errors import Forbidden, PostNotFound
from app.routers.auth import get_current_user, get_current_user_optional
from app.services.ownership import OwnershipService
from app.services.post import PostService

router = APIRouter()
logger = logging.getLogger(__name__)

class PostCreate(BaseModel):
    title: Optional[str] = None
    title_vi: Optional[str] = None
    summary: Optional[str] = None
    summary_vi: Optional[str] = None
    thumbnail_image_id: Optional[str] = None
    category: Optional[str] = None
    slug: Optional[str] = None

class PostUpdate(BaseModel):
    title: Optional[str] = None
    title_vi: Optional[str] = None
    summary: Optional[str] = None
    summary_vi: Optional[str] = None
    thumbnail_image_id: Optional[str] = None
    category: Optional[str] = None
    slug: Optional[str] = None
    status: Optional[str] = None
    related_post_id_1: Optional[int] = None
    related_post_id_2: Optional[int] = None
    reading_time: Optional[int] = None
    featured: Optional[bool] = None

def get_post_service(session: Session = Depends(get_session)) -> PostService:
    return PostService(session)

def require_post_editor(
    post_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
) -> User:
    """Caller must be the post's author or an admin."""
    ownership = OwnershipService(session).verify(post_id, current_user)
    if not ownership.found:
        raise PostNotFound()
    if not ownership.authorized:
        raise Forbidden(ownership.reason)
    return current_user

@router.get("/")
def list_posts(
    category: Optional[str] = None,
    status: Optional[str] = None,
    author: Optional[int] = None,
    search: Optional[str] = None,
    slug: Optional[str] = None,
    sort_by: str = "created_at",
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: PostService = Depends(get_post_service)
):
    posts, total = service.list_posts(
        category=category,
        status=status,
        author_id=author,
        search=search,
        slug=slug,
        sort_by=sort_by,
        limit=limit,
        offset=offset,
    )
    return {
        "success": True,
        "posts": [service.serialize(post) for post in posts],
        "total": total,
        "pagination": {
            "page": offset // limit + 1,
            "limit": limit,
            "has_more": total > offset + limit
        }
    }

@router.post("/")
def create_post(
    post_in: PostCreate,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    post = service.create_post(current_user, post_in.model_dump())
    return {"success": True, "message": "Post created successfully", "post": post}

@router.get("/authors")
def list_authors(service: PostService = Depends(get_post_service)):
    authors = service.list_authors()
    return {
        "success": True,
        "authors": [
            {"id": a.id, "username": a.username, "full_name": a.full_name, "avatar_url": a.avatar_url}
            for a in authors
        ]
    }

@router.get("/by-slug/{slug}")
def get_post_by_slug(
    slug: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    service: PostService = Depends(get_post_service)
):
    posts, _ = service.list_posts(slug=slug, status="all", limit=1)
    if not posts or not service.can_view(posts[0], current_user):
        raise PostNotFound()
    return service.get_detail(posts[0], current_user)

@router.get("/{post_id}")
def get_post(
    post_id: int,
    current_user: Optional[User] = Depends(get_current_user_optional),
    service: PostService = Depends(get_post_service)
):
    post = service.get_post(post_id)
    if not service.can_view(post, current_user):
        raise PostNotFound()
    return service.get_detail(post, current_user)

@router.put("/{post_id}")
def update_post(
    post_id: int,
    post_in: PostUpdate,
    editor: User = Depends(require_post_editor),
    service: PostService = Depends(get_post_service)
):
    post = service.update_post(post_id, post_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "Post updated successfully", "post": post}

@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    editor: User = Depends(require_post_editor),
    service: PostService = Depends(get_post_service)
):
    service.delete_post(post_id)
    logger.info(f"User {editor.id} deleted post {post_id}")
    return {"success": True, "message": "Post deleted successfully"}

@router.get("/{post_id}/upvote")
def get_upvote_status(
    post_id: int,
    current_user: Optional[User] = Depends(get_current_user_optional),
    service: PostService = Depends(get_post_service)
):
    post = service.get_post(post_id)
    return {
        "success": True,
        "upvote_count": post.upvote_count,
        "user_has_upvoted": service.has_upvoted(post_id, current_user)
    }

@router.post("/{post_id}/upvote")
def toggle_upvote(
    post_id: int,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    upvoted, upvote_count = service.toggle_upvote(post_id, current_user)
    return {"success": True, "upvoted": upvoted, "upvote_count": upvote_count}

@router.post("/{post_id}/view")
def increment_view(post_id: int, service: PostService = Depends(get_post_service)):
    return {"success": True, "view_count": service.increment_view(post_id)}
