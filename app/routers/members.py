from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import UserPublic
from app.services.user import UserService

router = APIRouter()

def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)

@router.get("/")
def list_members(
    role: Optional[str] = None,
    search: Optional[str] = None,
    service: UserService = Depends(get_user_service)
):
    users, total = service.search_users(search=search, role=role)
    counts = service.member_counts([user.id for user in users])
    members = [
        {**UserPublic.model_validate(user).model_dump(), **counts[user.id]}
        for user in users
    ]
    return {"success": True, "members": members, "total": total}

@router.get("/{username}")
def read_member(username: str, service: UserService = Depends(get_user_service)):
    user = service.get_user_by_username(username)
    return {
        "success": True,
        "member": UserPublic.model_validate(user),
        "projects": service.contributed_projects(user.id)
    }
