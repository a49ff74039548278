from typing import Optional, List
from enum import Enum
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON
from datetime import datetime

class UserRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"

class UserBase(SQLModel):
    # Basic Info
    email: str = Field(unique=True, index=True)
    username: str = Field(unique=True, index=True)
    full_name: Optional[str] = None

    # Profile
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = Field(default=[], sa_column=Column(JSON))
    # Keys: github, linkedin, twitter, facebook, website
    social_links: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Account Status
    role: UserRole = Field(default=UserRole.MEMBER)
    is_active: bool = Field(default=True)

class User(UserBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    password_hash: str

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

class UserPublic(UserBase):
    id: int
    created_at: datetime
