from fastapi import FastAPI

from app.api.auth.routes import router as auth_router
from app.api.context.routes import router as context_router
from app.api.errors import register_error_handlers
from app.api.health import router as health_router
from app.api.playlists.routes import router as playlists_router
from app.api.reflections.routes import router as reflections_router
from app.api.vibe.routes import router as vibe_router
from app.config import get_settings
from app.core import configure_logging

configure_logging(get_settings().log_level)

app = FastAPI(
    title="Moodlist API",
    version="0.1.0",
    description="Backend API turning a mood description into a Spotify playlist.",
)

register_error_handlers(app)

app.include_router(health_router, tags=["health"])

# Auth routes
app.include_router(auth_router, prefix="/auth", tags=["auth"])

# Playlist generation routes
app.include_router(playlists_router, prefix="/playlists", tags=["playlists"])
app.include_router(reflections_router, prefix="/reflections", tags=["reflections"])

# Context & profile routes
app.include_router(context_router, prefix="/context", tags=["context"])
app.include_router(vibe_router, prefix="/vibe", tags=["vibe"])
