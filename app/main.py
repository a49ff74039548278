import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.errors import AppError
from app.db.session import create_db_and_tables

# Import models to ensure they are registered with SQLModel metadata
from app.models import User, Image, Post, PostBlock, PostUpvote, Project, ProjectContributor, Certificate

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info(f"{settings.PROJECT_NAME} started")
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
    description="API for the club's posts, projects, members and certificates"
)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail, "code": exc.code},
        headers=exc.headers
    )

@app.get("/")
def read_root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}. Visit /docs for Swagger UI."}

from app.routers import auth, posts, blocks, images, users, members, projects, certificates, admin

app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(posts.router, prefix="/api/v1/posts", tags=["posts"])
app.include_router(blocks.router, prefix="/api/v1/posts", tags=["blocks"])
app.include_router(images.router, prefix="/api/v1/images", tags=["images"])
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(members.router, prefix="/api/v1/members", tags=["members"])
app.include_router(projects.router, prefix="/api/v1/projects", tags=["projects"])
app.include_router(certificates.router, prefix="/api/v1/certificates", tags=["certificates"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])

# Add CORS
from fastapi.middleware.cors import CORSMiddleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
