import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from nursing_rocks.auth import ensure_admin_user
from nursing_rocks.config import settings
from nursing_rocks.database import Base, SessionLocal, engine

# Import models so SQLAlchemy registers tables
from nursing_rocks.models import (  # noqa: F401
    user,
    media_folder,
    gallery_image,
    approved_video,
    page_element,
)

# Routers
from nursing_rocks.routers import (
    auth_router,
    gallery_router,
    videos_router,
    elements_router,
)


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# -----------------------
# AUTO-CREATE MEDIA FOLDERS
# -----------------------
def ensure_media_folders():
    """
    Automatically create required base media directories on startup.
    """
    base = settings.LOCAL_MEDIA_PATH

    folders = [
        base,
        os.path.join(base, "gallery"),
        os.path.join(base, "videos"),
        os.path.join(base, "videos", "posters"),
        os.path.join(base, "placeholders"),
    ]

    for folder in folders:
        os.makedirs(folder, exist_ok=True)


# -----------------------
# CREATE APP
# -----------------------
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Backend API for Nursing Rocks admin editing, gallery and video approval.",
    version="1.0.0",
)
logger.info("Database: %s", settings.DATABASE_URL.split("@")[-1])

# -----------------------
# CORS
# -----------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------
# DATABASE TABLES
# -----------------------
Base.metadata.create_all(bind=engine)

with SessionLocal() as db:
    if ensure_admin_user(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD):
        logger.info("Admin account ready: %s", settings.ADMIN_EMAIL)

# -----------------------
# STATIC MEDIA FILES
# -----------------------
ensure_media_folders()
app.mount("/media", StaticFiles(directory=settings.LOCAL_MEDIA_PATH), name="media")

# -----------------------
# ROUTES
# -----------------------
app.include_router(auth_router.router)
app.include_router(gallery_router.router)
app.include_router(gallery_router.folders_router)
app.include_router(videos_router.router)
app.include_router(videos_router.admin_router)
app.include_router(elements_router.router)


# -----------------------
# HEALTH CHECK
# -----------------------
@app.get("/")
def root():
    return {"message": "Nursing Rocks API is running!"}
