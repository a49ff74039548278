from datetime import timedelta
from typing import Optional
from sqlmodel import Session, select

from app.models.user import User, UserRole
from app.core.errors import EmailAlreadyRegistered
from app.core.security import get_password_hash, verify_password, create_access_token
from app.db.session import commit_or_fail

class AuthService:
    def __init__(self, session: Session):
        self.session = session

    def create_access_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        return create_access_token(data={"sub": user.email}, expires_delta=expires_delta)

    def get_user_by_email(self, email: str) -> Optional[User]:
        # Use ilike for case-insensitive lookup
        return self.session.exec(select(User).where(User.email == email)).first() or \
               self.session.exec(select(User).where(User.email.ilike(email))).first()

    def register_user(self, email: str, password: str, username: Optional[str] = None, full_name: Optional[str] = None) -> User:
        if self.get_user_by_email(email):
            raise EmailAlreadyRegistered()

        username = username or email.split("@")[0]
        if self.session.exec(select(User).where(User.username == username)).first():
            raise EmailAlreadyRegistered("Username already taken")

        user = User(
            email=email,
            username=username,
            full_name=full_name,
            password_hash=get_password_hash(password),
            role=UserRole.MEMBER,
            is_active=True,
        )
        self.session.add(user)
        commit_or_fail(self.session, "register user")
        self.session.refresh(user)
        return user

    def authenticate_user(self, email: str, password: str) -> tuple[Optional[User], Optional[str]]:
        user = self.get_user_by_email(email)
        if not user:
            return None, "User not found. Please check your email or register a new account."
        if not verify_password(password, user.password_hash):
            return None, "Incorrect password. Please try again."
        if not user.is_active:
            return None, "This account has been deactivated."
        return user, None
