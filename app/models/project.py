from typing import Optional, List
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON, Text, UniqueConstraint

class ProjectStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"

class Project(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Basic Info
    title: str = Field(index=True)
    description: str
    details: Optional[str] = Field(default=None, sa_column=Column(Text))

    # Media & Links
    thumbnail_url: Optional[str] = None
    thumbnail_image_id: Optional[str] = Field(default=None, foreign_key="image.id")
    video_url: Optional[str] = None
    repo_url: Optional[str] = None
    demo_url: Optional[str] = None
    tech_stack: List[str] = Field(default=[], sa_column=Column(JSON))

    # Metadata
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE)
    featured: bool = Field(default=False)
    created_by: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class ProjectContributor(SQLModel, table=True):
    __tablename__ = "project_contributors"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="unique_project_contributor"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    # Percentages of one project sum to at most 100
    contribution_percentage: float = Field(default=0, ge=0, le=100)
    role_in_project: Optional[str] = "Contributor"
    description: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
