import uuid
from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel
from pydantic import computed_field
from app.core.config import settings

class Image(SQLModel, table=True):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)

    # Storage reference (bytes are stored elsewhere)
    filename: str
    storage_key: str
    mime_type: Optional[str] = None

    # Display metadata
    width: Optional[int] = None
    height: Optional[int] = None
    alt_text: Optional[str] = None

    uploaded_by: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @computed_field
    @property
    def public_url(self) -> str:
        if self.storage_key.startswith(("http://", "https://")):
            return self.storage_key
        key = self.storage_key.lstrip("/")
        return f"{settings.IMAGE_BASE_URL}/{key}"
