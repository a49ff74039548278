# Import all models to register them with SQLModel
from app.models.user import User, UserRole, UserPublic
from app.models.image import Image
from app.models.post import Post, PostBlock, PostUpvote, PostCategory, PostStatus, BlockType
from app.models.project import Project, ProjectContributor, ProjectStatus
from app.models.certificate import Certificate, CertificateFileType

__all__ = [
    "User",
    "UserRole",
    "UserPublic",
    "Image",
    "Post",
    "PostBlock",
    "PostUpvote",
    "PostCategory",
    "PostStatus",
    "BlockType",
    "Project",
    "ProjectContributor",
    "ProjectStatus",
    "Certificate",
    "CertificateFileType",
]
