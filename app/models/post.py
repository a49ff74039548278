from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON, Text, UniqueConstraint

class PostCategory(str, Enum):
    NEWS = "News"
    GOOD_TO_KNOW = "You may want to know"
    MEMBER_SPOTLIGHT = "Member Spotlight"
    COMMUNITY_ACTIVITIES = "Community Activities"

class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

class BlockType(str, Enum):
    TEXT = "text"
    QUOTE = "quote"
    IMAGE = "image"
    YOUTUBE = "youtube"

class Post(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(unique=True, index=True)

    # Content (English / Vietnamese)
    title: Optional[str] = Field(default=None, index=True)
    title_vi: Optional[str] = None
    summary: Optional[str] = Field(default=None, sa_column=Column(Text))
    summary_vi: Optional[str] = Field(default=None, sa_column=Column(Text))
    thumbnail_image_id: Optional[str] = Field(default=None, foreign_key="image.id")

    # Categorization
    category: Optional[PostCategory] = None
    status: PostStatus = Field(default=PostStatus.DRAFT, index=True)
    featured: bool = Field(default=False)

    author_id: int = Field(foreign_key="user.id", index=True)

    # At most two related posts
    related_post_id_1: Optional[int] = Field(default=None, foreign_key="post.id")
    related_post_id_2: Optional[int] = Field(default=None, foreign_key="post.id")

    # Engagement
    reading_time: int = Field(default=0)
    view_count: int = Field(default=0)
    upvote_count: int = Field(default=0)

    # Timestamps
    published_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class PostBlock(SQLModel, table=True):
    __tablename__ = "post_blocks"

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="post.id", index=True)

    type: BlockType
    # Payload shape depends on type (see app.services.composer)
    content: Dict[str, Any] = Field(default={}, sa_column=Column(JSON))
    # Caller supplied; neither unique nor contiguous
    order_index: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class PostUpvote(SQLModel, table=True):
    __tablename__ = "post_upvotes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="unique_post_upvote"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="post.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
