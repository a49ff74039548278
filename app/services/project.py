import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from sqlalchemy import desc
from sqlmodel import Session, select

from app.core.errors import (
    CannotRemoveCreator,
    ContributionOverflow,
    ContributorNotFound,
    DuplicateContributor,
    Forbidden,
    InvalidContribution,
    InvalidProjectField,
    ProjectNotFound,
    UserNotFound,
)
from app.db.session import commit_or_fail
from app.models.project import Project, ProjectContributor, ProjectStatus
from app.models.user import User

logger = logging.getLogger(__name__)

URL_FIELDS = ["repo_url", "demo_url", "thumbnail_url", "video_url"]
UPDATABLE_FIELDS = [
    "title", "description", "details", "thumbnail_url", "thumbnail_image_id", "video_url",
    "repo_url", "demo_url", "tech_stack", "status", "featured",
]
# Only the owner (or an admin) may change these
OWNER_ONLY_FIELDS = ["status", "featured"]
CREATOR_ROLE = "Creator"


def _validate_urls(data: Dict[str, Any]) -> None:
    for field in URL_FIELDS:
        url = data.get(field)
        if url:
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise InvalidProjectField(f"Invalid URL for {field}")


def _validate_percentage(percentage: float) -> None:
    if percentage < 0 or percentage > 100:
        raise InvalidContribution()


class ProjectService:
    def __init__(self, session: Session):
        self.session = session

    def get_project(self, project_id: int) -> Project:
        project = self.session.get(Project, project_id)
        if not project:
            raise ProjectNotFound()
        return project

    def list_projects(self, status: Optional[str] = None, featured: Optional[bool] = None, limit: Optional[int] = None) -> List[Project]:
        query = select(Project)
        if status and status != "all":
            try:
                query = query.where(Project.status == ProjectStatus(status))
            except ValueError:
                raise InvalidProjectField("Invalid status")
        if featured is not None:
            query = query.where(Project.featured == featured)
        query = query.order_by(desc(Project.created_at), desc(Project.id))
        if limit:
            query = query.limit(limit)
        return list(self.session.exec(query).all())

    def get_contributors(self, project_id: int) -> List[Dict[str, Any]]:
        rows = self.session.exec(
            select(ProjectContributor, User)
            .where(ProjectContributor.project_id == project_id, ProjectContributor.user_id == User.id)
            .order_by(desc(ProjectContributor.contribution_percentage), ProjectContributor.id)
        ).all()
        return [
            {
                **contributor.model_dump(),
                "profile": {
                    "id": user.id,
                    "username": user.username,
                    "full_name": user.full_name,
                    "avatar_url": user.avatar_url,
                },
            }
            for contributor, user in rows
        ]

    def total_percentage(self, project_id: int, exclude_id: Optional[int] = None) -> float:
        contributors = self.session.exec(
            select(ProjectContributor).where(ProjectContributor.project_id == project_id)
        ).all()
        return sum(c.contribution_percentage or 0 for c in contributors if c.id != exclude_id)

    def is_contributor(self, project_id: int, user_id: int) -> bool:
        return self.session.exec(
            select(ProjectContributor).where(
                ProjectContributor.project_id == project_id,
                ProjectContributor.user_id == user_id,
            )
        ).first() is not None

    def check_access(self, project: Project, user: User, owner_only: bool = True) -> bool:
        """Raise Forbidden unless the user may modify the project; returns whether they own it."""
        is_owner = project.created_by == user.id or user.is_admin
        if is_owner:
            return True
        if not owner_only and self.is_contributor(project.id, user.id):
            return False
        raise Forbidden("Only project owners can manage this project")

    def create_project(self, creator: User, data: Dict[str, Any]) -> Project:
        if not data.get("title") or not data.get("description"):
            raise InvalidProjectField("Title and description are required")
        _validate_urls(data)

        contributors = data.get("contributors") or []
        initial_total = 0.0
        seen = {creator.id}
        for entry in contributors:
            percentage = entry.get("contribution_percentage") or 0
            _validate_percentage(percentage)
            if not self.session.get(User, entry.get("user_id")):
                raise UserNotFound()
            if entry["user_id"] in seen:
                raise DuplicateContributor()
            seen.add(entry["user_id"])
            initial_total += percentage
        if initial_total > 100:
            raise ContributionOverflow(
                f"Total contribution percentage would exceed 100% (requested: {initial_total:g}%)"
            )

        project = Project(
            title=data["title"],
            description=data["description"],
            details=data.get("details") or None,
            thumbnail_url=data.get("thumbnail_url") or None,
            thumbnail_image_id=data.get("thumbnail_image_id") or None,
            video_url=data.get("video_url") or None,
            repo_url=data.get("repo_url") or None,
            demo_url=data.get("demo_url") or None,
            tech_stack=data.get("tech_stack") or [],
            status=ProjectStatus.ACTIVE,
            created_by=creator.id,
        )
        self.session.add(project)
        self.session.flush()

        for entry in contributors:
            self.session.add(ProjectContributor(
                project_id=project.id,
                user_id=entry["user_id"],
                contribution_percentage=entry.get("contribution_percentage") or 0,
                role_in_project=entry.get("role_in_project") or "Contributor",
            ))
        # Creator takes the remaining share
        self.session.add(ProjectContributor(
            project_id=project.id,
            user_id=creator.id,
            contribution_percentage=max(0, 100 - initial_total),
            role_in_project=CREATOR_ROLE,
        ))

        commit_or_fail(self.session, "create project")
        self.session.refresh(project)
        logger.info(f"User {creator.id} created project {project.id}")
        return project

    def update_project(self, project_id: int, user: User, updates: Dict[str, Any]) -> Project:
        project = self.get_project(project_id)
        is_owner = self.check_access(project, user, owner_only=False)

        project_updates = {key: value for key, value in updates.items() if key in UPDATABLE_FIELDS}
        if not is_owner:
            for field in OWNER_ONLY_FIELDS:
                project_updates.pop(field, None)

        _validate_urls(project_updates)
        if "status" in project_updates:
            try:
                project_updates["status"] = ProjectStatus(project_updates["status"])
            except ValueError:
                raise InvalidProjectField("Invalid status")

        for key, value in project_updates.items():
            setattr(project, key, value)

        project.updated_at = datetime.utcnow()
        self.session.add(project)
        commit_or_fail(self.session, "update project")
        self.session.refresh(project)
        return project

    def delete_project(self, project_id: int, user: User) -> None:
        project = self.get_project(project_id)
        self.check_access(project, user)
        for contributor in self.session.exec(
            select(ProjectContributor).where(ProjectContributor.project_id == project_id)
        ).all():
            self.session.delete(contributor)
        self.session.delete(project)
        commit_or_fail(self.session, "delete project")
        logger.info(f"Deleted project {project_id}")

    def add_contributor(self, project_id: int, user: User, user_id: int, contribution_percentage: float = 0,
                        role_in_project: Optional[str] = None, description: Optional[str] = None) -> ProjectContributor:
        project = self.get_project(project_id)
        self.check_access(project, user)

        _validate_percentage(contribution_percentage)
        if not self.session.get(User, user_id):
            raise UserNotFound()
        if self.is_contributor(project_id, user_id):
            raise DuplicateContributor()

        current = self.total_percentage(project_id)
        if current + contribution_percentage > 100:
            raise ContributionOverflow(
                f"Total contribution percentage would exceed 100% (current: {current:g}%)"
            )

        contributor = ProjectContributor(
            project_id=project_id,
            user_id=user_id,
            contribution_percentage=contribution_percentage,
            role_in_project=role_in_project or "Contributor",
            description=description,
        )
        self.session.add(contributor)
        commit_or_fail(self.session, "add contributor")
        self.session.refresh(contributor)
        return contributor

    def _get_contributor(self, project_id: int, contributor_id: int) -> ProjectContributor:
        contributor = self.session.exec(
            select(ProjectContributor).where(
                ProjectContributor.id == contributor_id,
                ProjectContributor.project_id == project_id,
            )
        ).first()
        if not contributor:
            raise ContributorNotFound()
        return contributor

    def update_contributor(self, project_id: int, user: User, contributor_id: int, updates: Dict[str, Any]) -> ProjectContributor:
        project = self.get_project(project_id)
        self.check_access(project, user)
        contributor = self._get_contributor(project_id, contributor_id)

        if not any(updates.get(field) is not None for field in ("contribution_percentage", "role_in_project", "description")):
            raise InvalidContribution("No valid update fields provided")

        percentage = updates.get("contribution_percentage")
        if percentage is not None:
            _validate_percentage(percentage)
            others = self.total_percentage(project_id, exclude_id=contributor.id)
            if others + percentage > 100:
                raise ContributionOverflow(
                    f"Total contribution percentage would exceed 100% (others: {others:g}%)"
                )
            contributor.contribution_percentage = percentage

        if updates.get("role_in_project") is not None:
            contributor.role_in_project = updates["role_in_project"]
        if updates.get("description") is not None:
            contributor.description = updates["description"]

        self.session.add(contributor)
        commit_or_fail(self.session, "update contributor")
        self.session.refresh(contributor)
        return contributor

    def remove_contributor(self, project_id: int, user: User, contributor_id: int) -> None:
        project = self.get_project(project_id)
        self.check_access(project, user)
        contributor = self._get_contributor(project_id, contributor_id)

        if contributor.user_id == project.created_by:
            raise CannotRemoveCreator()

        self.session.delete(contributor)
        commit_or_fail(self.session, "remove contributor")
