"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from nocarry.config import settings
from nocarry.database import Base, engine
from nocarry.errors import register_exception_handlers
from nocarry.middleware.request_logging import RequestLoggingMiddleware

# Import routers
from nocarry.routers import auth, profile, projects, tasks, invites, files, reviews, activity, courses

# Import all models so Base.metadata knows about them
from nocarry.models.user import User                       # noqa: F401
from nocarry.models.project import Project, ProjectMember  # noqa: F401
from nocarry.models.task import Task                       # noqa: F401
from nocarry.models.invite import ProjectInvite            # noqa: F401
from nocarry.models.activity_log import ActivityLog        # noqa: F401
from nocarry.models.project_file import ProjectFile        # noqa: F401
from nocarry.models.peer_review import PeerReview          # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="NoCarry",
    description="Group-project contribution tracking with tasks, invites, peer reviews and contribution scores",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
app.include_router(tasks.router, prefix="/api/projects", tags=["Tasks"])
app.include_router(files.router, prefix="/api/projects", tags=["Files"])
app.include_router(reviews.router, prefix="/api/projects", tags=["Reviews"])
app.include_router(invites.router, prefix="/api", tags=["Invites"])
app.include_router(activity.router, prefix="/api/activity", tags=["Activity"])
app.include_router(courses.router, prefix="/api/courses", tags=["Courses"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
