from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func, desc, or_
from sqlmodel import Session, select

from app.models.user import User, UserRole
from app.models.post import Post, PostStatus
from app.models.project import Project, ProjectContributor
from app.core.errors import UserNotFound, InvalidUserField
from app.db.session import commit_or_fail
from app.services.ownership import invalidate_user_ownership

PROFILE_FIELDS = ["full_name", "bio", "avatar_url", "skills", "social_links"]

class UserService:
    def __init__(self, session: Session):
        self.session = session

    def get_user_by_id(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise UserNotFound()
        return user

    def get_user_by_username(self, username: str) -> User:
        user = self.session.exec(select(User).where(User.username == username)).first()
        if not user or not user.is_active:
            raise UserNotFound()
        return user

    def search_users(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        active_only: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[User], int]:
        query = select(User)

        if active_only:
            query = query.where(User.is_active == True)

        if role and role != "all":
            try:
                query = query.where(User.role == UserRole(role))
            except ValueError:
                raise InvalidUserField("Invalid role")

        if search:
            query = query.where(
                or_(
                    User.full_name.ilike(f"%{search}%"),
                    User.username.ilike(f"%{search}%"),
                    User.email.ilike(f"%{search}%")
                )
            )

        total = self.session.exec(select(func.count()).select_from(query.subquery())).one()
        query = query.order_by(desc(User.created_at), desc(User.id)).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return list(self.session.exec(query).all()), total

    def update_profile(self, user: User, updates: Dict[str, Any]) -> User:
        for field, value in updates.items():
            if field in PROFILE_FIELDS:
                setattr(user, field, value)
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        commit_or_fail(self.session, "update profile")
        self.session.refresh(user)
        return user

    def update_role(self, user_id: int, role: UserRole) -> User:
        user = self.get_user_by_id(user_id)
        user.role = role
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        commit_or_fail(self.session, "update role")
        self.session.refresh(user)
        invalidate_user_ownership(user_id)
        return user

    def deactivate(self, user_id: int) -> User:
        user = self.get_user_by_id(user_id)
        user.is_active = False
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        commit_or_fail(self.session, "deactivate user")
        invalidate_user_ownership(user_id)
        return user

    def member_counts(self, user_ids: List[int]) -> Dict[int, Dict[str, int]]:
        """Contributed projects and published posts per user."""
        counts = {user_id: {"project_count": 0, "post_count": 0} for user_id in user_ids}
        if not user_ids:
            return counts

        project_rows = self.session.exec(
            select(ProjectContributor.user_id, func.count(ProjectContributor.id))
            .where(ProjectContributor.user_id.in_(user_ids))
            .group_by(ProjectContributor.user_id)
        ).all()
        for user_id, count in project_rows:
            counts[user_id]["project_count"] = count

        post_rows = self.session.exec(
            select(Post.author_id, func.count(Post.id))
            .where(Post.author_id.in_(user_ids), Post.status == PostStatus.PUBLISHED)
            .group_by(Post.author_id)
        ).all()
        for user_id, count in post_rows:
            counts[user_id]["post_count"] = count

        return counts

    def contributed_projects(self, user_id: int) -> List[Dict[str, Any]]:
        rows = self.session.exec(
            select(ProjectContributor, Project)
            .where(ProjectContributor.user_id == user_id, ProjectContributor.project_id == Project.id)
            .order_by(desc(Project.created_at))
        ).all()
        return [
            {
                **contributor.model_dump(),
                "project": project.model_dump(),
            }
            for contributor, project in rows
        ]
