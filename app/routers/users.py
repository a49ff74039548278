from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import User, UserPublic
from app.routers.auth import get_current_user
from app.services.user import UserService
from pydantic import BaseModel

router = APIRouter()

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    skills: Optional[List[str]] = None
    social_links: Optional[Dict[str, Any]] = None

def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)

@router.get("/me", response_model=UserPublic)
def read_user_me(current_user: User = Depends(get_current_user)):
    """
    Get current user.
    """
    return current_user

@router.patch("/me", response_model=UserPublic)
def update_user_me(
    user_in: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """
    Update the caller's own profile.
    """
    return service.update_profile(current_user, user_in.model_dump(exclude_unset=True))
