import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlmodel import Session, select
from app.db.session import get_session
from app.models.user import User, UserPublic, UserRole
from app.models.post import Post, PostStatus
from app.models.project import Project, ProjectStatus
from app.core.errors import Forbidden
from app.routers.auth import get_current_user
from app.services.certificate import CertificateService
from app.services.post import PostService
from app.services.user import UserService
from pydantic import BaseModel

router = APIRouter()
logger = logging.getLogger(__name__)

class RoleUpdate(BaseModel):
    role: UserRole

class CertificateCreate(BaseModel):
    user_id: Optional[int] = None
    gen_number: Optional[int] = None
    suffix: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    image_id: Optional[str] = None

class CertificateUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    image_id: Optional[str] = None

def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Get current user, requiring the admin role"""
    if not current_user.is_admin:
        raise Forbidden("Admin access required")
    return current_user

def _count(session: Session, query) -> int:
    return session.exec(select(func.count()).select_from(query.subquery())).one()

@router.get("/stats")
def get_stats(
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    """Get dashboard statistics"""
    published = select(Post).where(Post.status == PostStatus.PUBLISHED)
    total_views, total_upvotes = session.exec(
        select(func.coalesce(func.sum(Post.view_count), 0), func.coalesce(func.sum(Post.upvote_count), 0))
        .where(Post.status == PostStatus.PUBLISHED)
    ).one()

    return {
        "success": True,
        "stats": {
            "total_members": _count(session, select(User).where(User.is_active == True)),
            "total_admins": _count(session, select(User).where(User.role == UserRole.ADMIN)),
            "total_projects": _count(session, select(Project)),
            "active_projects": _count(session, select(Project).where(Project.status == ProjectStatus.ACTIVE)),
            "published_posts": _count(session, published),
            "draft_posts": _count(session, select(Post).where(Post.status == PostStatus.DRAFT)),
            "total_views": total_views,
            "total_upvotes": total_upvotes
        }
    }

@router.get("/users")
def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    users, total = UserService(session).search_users(
        search=search, role=role, active_only=False, offset=offset, limit=limit
    )
    return {
        "success": True,
        "users": [UserPublic.model_validate(user) for user in users],
        "total": total,
        "pagination": {
            "page": offset // limit + 1,
            "limit": limit,
            "has_more": total > offset + limit
        }
    }

@router.put("/users/{user_id}/role")
def update_user_role(
    user_id: int,
    role_in: RoleUpdate,
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    user = UserService(session).update_role(user_id, role_in.role)
    logger.info(f"Admin {admin_user.id} set role of user {user_id} to {role_in.role.value}")
    return {"success": True, "message": "Role updated successfully", "user": UserPublic.model_validate(user)}

@router.delete("/users/{user_id}")
def deactivate_user(
    user_id: int,
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    if user_id == admin_user.id:
        raise Forbidden("Admins cannot deactivate themselves")
    UserService(session).deactivate(user_id)
    logger.info(f"Admin {admin_user.id} deactivated user {user_id}")
    return {"success": True, "message": "User deactivated successfully"}

@router.get("/posts")
def list_all_posts(
    status: Optional[str] = "all",
    category: Optional[str] = None,
    author: Optional[int] = None,
    search: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    service = PostService(session)
    posts, total = service.list_posts(
        category=category,
        status=status,
        author_id=author,
        search=search,
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

# Certificates

@router.get("/certificates")
def list_certificates(
    search: Optional[str] = None,
    gen: Optional[int] = None,
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    certificates = CertificateService(session).list_certificates(search=search, gen_number=gen)
    return {"success": True, "certificates": certificates, "total": len(certificates)}

@router.get("/certificates/generate-suffix")
def generate_suffix(
    gen: Optional[int] = None,
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    return {"success": True, "suffix": CertificateService(session).generate_suffix(gen)}

@router.post("/certificates")
def create_certificate(
    certificate_in: CertificateCreate,
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    service = CertificateService(session)
    certificate = service.create_certificate(admin_user, certificate_in.model_dump())
    return {"success": True, "message": "Certificate created successfully", "certificate": service.serialize(certificate)}

@router.get("/certificates/{certificate_pk}")
def read_certificate(
    certificate_pk: int,
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    service = CertificateService(session)
    return {"success": True, "certificate": service.serialize(service.get_certificate(certificate_pk))}

@router.put("/certificates/{certificate_pk}")
def update_certificate(
    certificate_pk: int,
    certificate_in: CertificateUpdate,
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    service = CertificateService(session)
    certificate = service.update_certificate(certificate_pk, certificate_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "Certificate updated successfully", "certificate": service.serialize(certificate)}

@router.delete("/certificates/{certificate_pk}")
def delete_certificate(
    certificate_pk: int,
    admin_user: User = Depends(get_admin_user),
    session: Session = Depends(get_session)
):
    CertificateService(session).delete_certificate(certificate_pk)
    return {"success": True, "message": "Certificate deleted successfully"}
