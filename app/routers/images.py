from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import User
from app.routers.auth import get_current_user
from app.services.image import ImageService

router = APIRouter()

class ImageCreate(BaseModel):
    filename: str
    storage_key: str
    mime_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    alt_text: Optional[str] = None

def get_image_service(session: Session = Depends(get_session)) -> ImageService:
    return ImageService(session)

@router.post("/")
def register_image(
    image_in: ImageCreate,
    current_user: User = Depends(get_current_user),
    service: ImageService = Depends(get_image_service)
):
    """
    Register metadata for an image whose bytes are already in storage.
    """
    image = service.register_image(current_user.id, **image_in.model_dump())
    return {"success": True, "image": image}

@router.get("/{image_id}")
def read_image(image_id: str, service: ImageService = Depends(get_image_service)):
    return {"success": True, "image": service.get_image(image_id)}
