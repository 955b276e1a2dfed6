"""
FastAPI application factory for Sight Assist.

Routes:
- /api/status            -> readiness, detection state, listening flag
- /api/detections        -> current detection frame
- /api/history           -> recent announced frames
- /api/detection/*       -> start/stop the detection loop
- /api/listening/*       -> start/stop voice recognition
- /api/command           -> ask a question by text
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import api


def create_app(assistant: Optional[Any] = None) -> FastAPI:
    """Create the FastAPI app bound to an Assistant instance."""
    app = FastAPI(
        title="Sight Assist",
        version="0.1.0",
        description="Camera-to-speech guidance for visually impaired users",
    )

    # CORS for a local companion UI
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.assistant = assistant
    app.include_router(api.router, prefix="/api")
    return app
