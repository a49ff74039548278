import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session
from app.core.config import settings
from app.core.errors import PersistenceFailure

logger = logging.getLogger(__name__)

# check_same_thread is needed for SQLite, remove for PostgreSQL
connect_args = {"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

def get_session():
    with Session(engine) as session:
        yield session

def create_db_and_tables():
    SQLModel.metadata.create_all(engine)

def commit_or_fail(session: Session, action: str):
    """Commit, turning store errors into PersistenceFailure after rollback."""
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise PersistenceFailure(f"Failed to {action}: {e}")
