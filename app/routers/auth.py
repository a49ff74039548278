from fastapi import APIRouter, Depends
from typing import Optional
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlmodel import Session, select
from app.db.session import get_session
from app.models.user import User, UserPublic
from app.core.errors import Unauthorized
from app.core.security import decode_access_token
from pydantic import BaseModel
from app.services.auth import AuthService

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/token", auto_error=False)


class Token(BaseModel):
    access_token: str
    token_type: str

class UserCreate(BaseModel):
    email: str
    password: str
    username: Optional[str] = None
    full_name: Optional[str] = None

def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(session)

@router.post("/register", response_model=UserPublic)
def register(user_in: UserCreate, service: AuthService = Depends(get_auth_service)):
    return service.register_user(user_in.email, user_in.password, username=user_in.username, full_name=user_in.full_name)

@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service),
):
    user, error_message = service.authenticate_user(form_data.username, form_data.password)
    if not user:
        raise Unauthorized(error_message)

    return {"access_token": service.create_access_token(user), "token_type": "bearer"}

def _user_from_token(token: Optional[str], session: Session) -> Optional[User]:
    if not token:
        return None
    email = decode_access_token(token)
    if email is None:
        return None
    user = session.exec(select(User).where(User.email == email)).first()
    if user is None or not user.is_active:
        return None
    return user

async def get_current_user(token: Optional[str] = Depends(oauth2_scheme), session: Session = Depends(get_session)) -> User:
    if not token:
        raise Unauthorized("Not authenticated")
    user = _user_from_token(token, session)
    if user is None:
        raise Unauthorized()
    return user

async def get_current_user_optional(token: Optional[str] = Depends(oauth2_scheme), session: Session = Depends(get_session)) -> Optional[User]:
    return _user_from_token(token, session)
