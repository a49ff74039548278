from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import User
from app.routers.auth import get_current_user
from app.services.project import ProjectService

router = APIRouter()

class InitialContributor(BaseModel):
    user_id: int
    contribution_percentage: float = 0
    role_in_project: Optional[str] = None

class ProjectCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    details: Optional[str] = None
    thumbnail_url: Optional[str] = None
    thumbnail_image_id: Optional[str] = None
    video_url: Optional[str] = None
    repo_url: Optional[str] = None
    demo_url: Optional[str] = None
    tech_stack: List[str] = []
    contributors: List[InitialContributor] = []

class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    details: Optional[str] = None
    thumbnail_url: Optional[str] = None
    thumbnail_image_id: Optional[str] = None
    video_url: Optional[str] = None
    repo_url: Optional[str] = None
    demo_url: Optional[str] = None
    tech_stack: Optional[List[str]] = None
    status: Optional[str] = None
    featured: Optional[bool] = None

class ContributorCreate(BaseModel):
    user_id: int
    contribution_percentage: float = 0
    role_in_project: Optional[str] = None
    description: Optional[str] = None

class ContributorUpdate(BaseModel):
    contribution_percentage: Optional[float] = None
    role_in_project: Optional[str] = None
    description: Optional[str] = None

def get_project_service(session: Session = Depends(get_session)) -> ProjectService:
    return ProjectService(session)

@router.get("/")
def list_projects(
    status: Optional[str] = "active",
    featured: Optional[bool] = None,
    service: ProjectService = Depends(get_project_service)
):
    return {"success": True, "projects": service.list_projects(status=status, featured=featured)}

@router.get("/recent")
def recent_projects(
    limit: int = Query(6, ge=1, le=50),
    service: ProjectService = Depends(get_project_service)
):
    return {"success": True, "projects": service.list_projects(status="active", limit=limit)}

@router.get("/{project_id}")
def read_project(project_id: int, service: ProjectService = Depends(get_project_service)):
    project = service.get_project(project_id)
    return {
        "success": True,
        "project": project,
        "contributors": service.get_contributors(project_id)
    }

@router.post("/")
def create_project(
    project_in: ProjectCreate,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    project = service.create_project(current_user, project_in.model_dump())
    return {"success": True, "message": "Project created successfully", "project": project}

@router.put("/{project_id}")
def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    project = service.update_project(project_id, current_user, project_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "Project updated successfully", "project": project}

@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    service.delete_project(project_id, current_user)
    return {"success": True, "message": "Project deleted successfully"}

@router.get("/{project_id}/contributors")
def list_contributors(project_id: int, service: ProjectService = Depends(get_project_service)):
    service.get_project(project_id)
    return {"success": True, "contributors": service.get_contributors(project_id)}

@router.post("/{project_id}/contributors")
def add_contributor(
    project_id: int,
    contributor_in: ContributorCreate,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    contributor = service.add_contributor(project_id, current_user, **contributor_in.model_dump())
    return {"success": True, "message": "Contributor added successfully", "contributor": contributor}

@router.put("/{project_id}/contributors/{contributor_id}")
def update_contributor(
    project_id: int,
    contributor_id: int,
    contributor_in: ContributorUpdate,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    contributor = service.update_contributor(
        project_id, current_user, contributor_id, contributor_in.model_dump(exclude_unset=True)
    )
    return {"success": True, "message": "Contributor updated successfully", "contributor": contributor}

@router.delete("/{project_id}/contributors/{contributor_id}")
def remove_contributor(
    project_id: int,
    contributor_id: int,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    service.remove_contributor(project_id, current_user, contributor_id)
    return {"success": True, "message": "Contributor removed successfully"}
