from typing import Optional
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel

class CertificateFileType(str, Enum):
    IMAGE = "image"
    PDF = "pdf"

class Certificate(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Public identifier, e.g. "TN-GEN3-AB12"
    certificate_id: str = Field(unique=True, index=True)
    gen_number: int = Field(index=True)
    suffix: str

    # Recipient & issuer
    user_id: int = Field(foreign_key="user.id", index=True)
    issued_by: Optional[int] = Field(default=None, foreign_key="user.id")

    # Document
    image_id: Optional[str] = Field(default=None, foreign_key="image.id")
    file_url: Optional[str] = None
    file_type: CertificateFileType = Field(default=CertificateFileType.IMAGE)
    title: str = "Course Completion Certificate"
    description: Optional[str] = None

    # Timestamps
    issued_at: datetime = Field(default_factory=datetime.utcnow)
    created_at: datetime = Field(default_factory=datetime.utcnow)
